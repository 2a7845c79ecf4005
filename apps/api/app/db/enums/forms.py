"""Form-related enums."""

from enum import Enum


class FieldType(str, Enum):
    """Input types a generated form field may declare."""

    TEXT = "text"
    EMAIL = "email"
    NUMBER = "number"
    TEXTAREA = "textarea"
    SELECT = "select"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    FILE = "file"
    DATE = "date"
    TEL = "tel"
    URL = "url"

    @classmethod
    def has_value(cls, value: str) -> bool:
        return value in cls._value2member_map_


class SubmissionStatus(str, Enum):
    """Review status of a submitted form response."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FormTheme(str, Enum):
    """Visual theme of the public form page."""

    DEFAULT = "default"
    DARK = "dark"
    MINIMAL = "minimal"
    COLORFUL = "colorful"


DEFAULT_SUBMISSION_STATUS = SubmissionStatus.PENDING
