from .consent_form import (
    SHARE_TOKEN_LENGTH,
    ComfortLevel,
    ConsentForm,
    ConsentResponse,
)

__all__ = ["ComfortLevel", "ConsentForm", "ConsentResponse", "SHARE_TOKEN_LENGTH"]
