"""Enum definitions for application constants."""

from app.db.enums.forms import (
    DEFAULT_SUBMISSION_STATUS,
    FieldType,
    FormTheme,
    SubmissionStatus,
)

__all__ = [
    "DEFAULT_SUBMISSION_STATUS",
    "FieldType",
    "FormTheme",
    "SubmissionStatus",
]
