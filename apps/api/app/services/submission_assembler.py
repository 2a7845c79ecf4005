"""Validate raw form answers against a form schema and assemble a submission.

Entries are processed in the order the client sent them. The first problem
aborts the whole submission with a SubmissionError. The only side effect is
uploading correlated files to the media store; persisting the resulting
record is the caller's job, so a rejected submission never leaves a row.
Repeated calls upload again (there is no dedup of identical submissions).
"""

import logging
import math
import mimetypes
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from app.db.enums import FieldType, SubmissionStatus
from app.schemas.forms import FormField, FormSchema
from app.schemas.submissions import FieldResponse, RawSubmissionEntry
from app.services.form_schema_service import field_map
from app.services.media_store import (
    MediaStore,
    StoredMedia,
    generate_media_key,
    submission_folder,
)
from app.services.submission_errors import (
    FileUploadError,
    MissingRequiredFieldError,
    SubmissionError,
    UnknownFieldError,
    ValidationRuleError,
)

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """A file received with the submission, already read into memory."""

    filename: str
    content_type: str | None
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class SubmissionRecord:
    """Validated submission, ready to be persisted."""

    responses: list[FieldResponse] = field(default_factory=list)
    total_files: int = 0
    total_file_size: int = 0
    status: str = SubmissionStatus.PENDING.value
    notes: str | None = None


class _UploadBatch:
    """Tracks the files stored for one submission so a rejection can undo them."""

    def __init__(self, media_store: MediaStore, cleanup_on_failure: bool):
        self.media_store = media_store
        self.cleanup_on_failure = cleanup_on_failure
        self.stored: list[StoredMedia] = []

    @property
    def total_bytes(self) -> int:
        return sum(item.bytes for item in self.stored)

    def store(self, upload: UploadedFile, folder: str) -> StoredMedia:
        try:
            stored = self.media_store.upload(
                upload.data,
                folder=folder,
                key=generate_media_key(),
                filename=upload.filename,
                content_type=upload.content_type,
            )
        except Exception as exc:
            logger.exception("media_upload_failed folder=%s filename=%s", folder, upload.filename)
            raise FileUploadError(upload.filename) from exc
        self.stored.append(stored)
        return stored

    def abort(self) -> list[str]:
        """Return references left behind in the media store after a rejection."""
        if not self.cleanup_on_failure:
            return [item.reference for item in self.stored]
        orphaned: list[str] = []
        for item in self.stored:
            try:
                self.media_store.delete(item.reference)
            except Exception:
                logger.warning("media_cleanup_failed key=%s", item.storage_key, exc_info=True)
                orphaned.append(item.reference)
        return orphaned


def assemble_submission(
    schema: FormSchema,
    entries: list[RawSubmissionEntry],
    files: list[UploadedFile],
    file_field_names: list[str],
    media_store: MediaStore,
    *,
    form_id: object,
    cleanup_on_failure: bool = False,
) -> SubmissionRecord:
    """
    Validate `entries` against `schema` and upload their files.

    `file_field_names` is parallel to `files`: files[i] belongs to the field
    named file_field_names[i]. Files without a tag belong to no field.

    Raises:
        UnknownFieldError, MissingRequiredFieldError, ValidationRuleError,
        FileUploadError
    """
    fields = field_map(schema)
    _check_required_fields_present(schema, entries)

    batch = _UploadBatch(media_store, cleanup_on_failure)
    record = SubmissionRecord()
    seen: set[str] = set()
    try:
        for entry in entries:
            definition = fields.get(entry.field_name)
            if definition is None:
                raise UnknownFieldError(entry.field_name)
            if entry.field_name in seen:
                raise ValidationRuleError(
                    definition.label,
                    "duplicate",
                    f"Field '{definition.label}' was submitted more than once",
                )
            seen.add(entry.field_name)

            if definition.required and _is_unanswered(definition, entry.value):
                raise MissingRequiredFieldError(definition.label)

            if definition.type == FieldType.FILE.value:
                response = _assemble_file_field(
                    definition,
                    _correlate_files(entry.field_name, files, file_field_names),
                    batch,
                    submission_folder(form_id, entry.field_name),
                )
            else:
                value = entry.value
                if not _is_empty(value):
                    _check_finite(definition, value)
                    _validate_rules(definition, value)
                response = FieldResponse(
                    field_name=entry.field_name,
                    field_type=definition.type,
                    value=_normalize_value(definition, value),
                    file_urls=[],
                    submitted_at=datetime.now(timezone.utc),
                )
            record.responses.append(response)
    except SubmissionError as exc:
        orphaned = batch.abort()
        if orphaned:
            logger.warning(
                "submission_rejected_with_stored_files count=%d kind=%s",
                len(orphaned),
                type(exc).__name__,
            )
        exc.orphaned_references = orphaned
        raise

    record.total_files = len(batch.stored)
    record.total_file_size = batch.total_bytes
    return record


def _check_required_fields_present(
    schema: FormSchema, entries: list[RawSubmissionEntry]
) -> None:
    # A missing required answer wins over any other problem in the payload.
    values: dict[str, Any] = {}
    for entry in entries:
        values.setdefault(entry.field_name, entry.value)
    for definition in sorted(schema.fields, key=lambda f: f.order):
        if not definition.required:
            continue
        is_file = definition.type == FieldType.FILE.value
        if definition.name not in values:
            raise MissingRequiredFieldError(definition.label, file_field=is_file)
        if not is_file and _is_unanswered(definition, values[definition.name]):
            raise MissingRequiredFieldError(definition.label)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, list) and len(value) == 0)


def _is_unanswered(definition: FormField, value: Any) -> bool:
    """Requiredness check; an unticked single checkbox counts as unanswered."""
    if _is_empty(value):
        return True
    is_toggle = definition.type == FieldType.CHECKBOX.value and not definition.options
    return is_toggle and value is False


def _correlate_files(
    field_name: str, files: list[UploadedFile], file_field_names: list[str]
) -> list[UploadedFile]:
    return [
        upload
        for index, upload in enumerate(files)
        if index < len(file_field_names) and file_field_names[index] == field_name
    ]


# =============================================================================
# File fields
# =============================================================================

def _assemble_file_field(
    definition: FormField,
    uploads: list[UploadedFile],
    batch: _UploadBatch,
    folder: str,
) -> FieldResponse:
    if not uploads and definition.required:
        raise MissingRequiredFieldError(definition.label, file_field=True)

    # Check every file before the first upload so rule violations store nothing.
    for upload in uploads:
        _validate_file_config(definition, upload, len(uploads))

    references = [batch.store(upload, folder).reference for upload in uploads]
    return FieldResponse(
        field_name=definition.name,
        field_type=definition.type,
        value=references or None,
        file_urls=references,
        submitted_at=datetime.now(timezone.utc),
    )


def _validate_file_config(definition: FormField, upload: UploadedFile, count: int) -> None:
    config = definition.file_config
    if config is None:
        return
    label = definition.label
    if not config.multiple and count > 1:
        raise ValidationRuleError(label, "multiple", f"Only one file allowed for '{label}'")
    if config.max_size is not None and upload.size > config.max_size:
        limit_mb = config.max_size / (1024 * 1024)
        raise ValidationRuleError(
            label,
            "maxSize",
            f"'{upload.filename}' exceeds the {limit_mb:.1f} MB limit for '{label}'",
        )
    if config.accept and not file_matches_accept(upload, config.accept):
        raise ValidationRuleError(
            label, "accept", f"File type not allowed for '{label}': {upload.filename}"
        )


def file_matches_accept(upload: UploadedFile, accept: str) -> bool:
    """Match an upload against an HTML `accept` list such as "image/*,.pdf"."""
    filename = (upload.filename or "").lower()
    content_type = (upload.content_type or "").split(";", 1)[0].strip().lower()
    if not content_type or content_type == "application/octet-stream":
        content_type = (mimetypes.guess_type(filename)[0] or "").lower()

    for token in accept.split(","):
        token = token.strip().lower()
        if not token:
            continue
        if token.startswith("."):
            if filename.endswith(token):
                return True
        elif token.endswith("/*"):
            if content_type.startswith(token[:-1]):
                return True
        elif token == content_type:
            return True
    return False


# =============================================================================
# Declarative rules
# =============================================================================

def _validate_rules(definition: FormField, value: Any) -> None:
    rules = definition.validation
    if rules is None:
        return
    label = definition.label

    if isinstance(value, (str, list)):
        if rules.min_length is not None and len(value) < rules.min_length:
            raise ValidationRuleError(
                label,
                "minLength",
                f"'{label}' must be at least {rules.min_length} characters",
            )
        if rules.max_length is not None and len(value) > rules.max_length:
            raise ValidationRuleError(
                label,
                "maxLength",
                f"'{label}' must be no more than {rules.max_length} characters",
            )

    number = _as_number(value)
    if number is not None:
        if rules.min is not None and number < rules.min:
            raise ValidationRuleError(
                label, "min", f"'{label}' must be at least {_format_number(rules.min)}"
            )
        if rules.max is not None and number > rules.max:
            raise ValidationRuleError(
                label, "max", f"'{label}' must be no more than {_format_number(rules.max)}"
            )

    if rules.pattern and isinstance(value, str):
        try:
            matched = re.fullmatch(rules.pattern, value) is not None
        except re.error:
            logger.warning("invalid_validation_pattern field=%s", definition.name)
            return
        if not matched:
            raise ValidationRuleError(
                label, "pattern", f"'{label}' does not match the required format"
            )


def _parse_float(value: Any) -> float | None:
    # bool is an int subclass; a checkbox answer is not a number
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            # ints too large for a float
            return math.copysign(math.inf, value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _as_number(value: Any) -> float | None:
    """Numeric reading of `value`; NaN and infinities do not count as numbers."""
    number = _parse_float(value)
    if number is None or not math.isfinite(number):
        return None
    return number


def _check_finite(definition: FormField, value: Any) -> None:
    # NaN slips past min/max comparisons and is stored as JSON null
    if isinstance(value, str) and definition.type != FieldType.NUMBER.value:
        return
    number = _parse_float(value)
    if number is not None and not math.isfinite(number):
        raise ValidationRuleError(
            definition.label, "number", f"'{definition.label}' must be a finite number"
        )


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def _normalize_value(definition: FormField, value: Any) -> Any:
    if definition.type != FieldType.NUMBER.value or not isinstance(value, str):
        return value
    number = _as_number(value)
    if number is None:
        return value
    return int(number) if number.is_integer() else number
