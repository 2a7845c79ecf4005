"""Pydantic schemas for API request/response models."""

from app.schemas.auth import CurrentUser, TokenPayload
from app.schemas.forms import (
    FormField,
    FormGenerateRequest,
    FormRead,
    FormRegenerateRequest,
    FormSchema,
    FormSettings,
    FormUpdate,
)
from app.schemas.submissions import (
    FieldResponse,
    RawSubmissionEntry,
    SubmissionRead,
    SubmissionStatusUpdate,
)

__all__ = [
    # Auth
    "TokenPayload",
    "CurrentUser",
    # Forms
    "FormField",
    "FormSchema",
    "FormSettings",
    "FormGenerateRequest",
    "FormRegenerateRequest",
    "FormUpdate",
    "FormRead",
    # Submissions
    "RawSubmissionEntry",
    "FieldResponse",
    "SubmissionRead",
    "SubmissionStatusUpdate",
]
