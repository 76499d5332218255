"""Consent form services for business logic."""

from .consent_form_service import ConsentFormService

__all__ = ["ConsentFormService"]
