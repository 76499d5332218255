"""
Centralized error messages for consistent API responses.

Views return these strings in the ``detail`` key so that a missing resource
and a resource the caller may not see produce identical bodies.
"""


class ErrorMessages:
    """Centralized error messages for consistent API responses."""

    # Resource not found messages
    RESOURCE_NOT_FOUND = "Resource not found."
    CONSENT_FORM_NOT_FOUND = "Consent form not found."
    USER_NOT_FOUND = "User not found."

    # Permission messages
    PERMISSION_DENIED = "Permission denied."

    # Validation messages
    VALIDATION_ERROR = "Validation error."

    # Store failures
    SERVICE_UNAVAILABLE = "Service temporarily unavailable. Please try again."
