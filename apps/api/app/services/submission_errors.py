"""Errors raised while accepting form schemas and assembling submissions.

Every error carries a user-addressable message; routers surface it as the
response detail without rewording.
"""


class SubmissionError(Exception):
    """Base exception for schema and submission rejections."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Media references stored before the rejection and not cleaned up.
        self.orphaned_references: list[str] = []


class UnknownFieldError(SubmissionError):
    """A submitted entry names a field the form does not declare."""

    def __init__(self, field_name: str):
        super().__init__(f"Unknown field: {field_name}")
        self.field_name = field_name


class MissingRequiredFieldError(SubmissionError):
    """A required field has no value (or no file for file fields)."""

    def __init__(self, label: str, *, file_field: bool = False):
        if file_field:
            message = f"File upload required for '{label}'"
        else:
            message = f"Field '{label}' is required"
        super().__init__(message)
        self.label = label


class ValidationRuleError(SubmissionError):
    """A value violates one of the field's declarative rules."""

    def __init__(self, label: str, rule: str, message: str | None = None):
        super().__init__(message or f"'{label}' failed {rule} validation")
        self.label = label
        self.rule = rule


class FileUploadError(SubmissionError):
    """The media store refused one of the submission's files."""

    status_code = 500

    def __init__(self, filename: str):
        super().__init__(f"Failed to upload file: {filename}")
        self.filename = filename


class MalformedSchemaError(SubmissionError):
    """A form schema is structurally unusable."""
