"""Acceptance checks for form schemas produced by the AI generator.

Generated schemas are untrusted: shape, field types and name uniqueness are
checked here once, so the submission assembler only ever sees well-formed
schemas.
"""

from typing import Any

from pydantic import ValidationError

from app.schemas.forms import FormField, FormSchema
from app.services.submission_errors import MalformedSchemaError


def accept_form_schema(raw: Any) -> FormSchema:
    """Validate a generated `{title, description, fields}` object."""
    if not isinstance(raw, dict):
        raise MalformedSchemaError("Form schema must be a JSON object")
    title = raw.get("title")
    if not isinstance(title, str) or not title.strip():
        raise MalformedSchemaError("Form schema is missing a title")
    description = raw.get("description")
    if description is not None and not isinstance(description, str):
        description = str(description)

    fields = accept_field_list(raw.get("fields"))
    try:
        return FormSchema(title=title.strip(), description=description, fields=fields)
    except ValidationError as exc:
        raise MalformedSchemaError(_describe_validation_error(exc)) from exc


def accept_field_list(raw_fields: Any) -> list[FormField]:
    """Validate a list of field definitions, filling in missing `order` values."""
    if not isinstance(raw_fields, list):
        raise MalformedSchemaError("Form schema fields must be an array")

    fields: list[FormField] = []
    seen: set[str] = set()
    for index, raw_field in enumerate(raw_fields):
        if not isinstance(raw_field, dict):
            raise MalformedSchemaError(f"Field #{index + 1} must be an object")
        candidate = dict(raw_field)
        candidate["order"] = candidate.get("order") or index + 1
        try:
            field = FormField.model_validate(candidate)
        except ValidationError as exc:
            raise MalformedSchemaError(
                f"Field #{index + 1}: {_describe_validation_error(exc)}"
            ) from exc
        if field.name in seen:
            raise MalformedSchemaError(f"Duplicate field name: {field.name}")
        seen.add(field.name)
        fields.append(field)
    return fields


def load_stored_schema(title: str, description: str | None, fields: list[dict]) -> FormSchema:
    """Re-check a persisted form before submissions are assembled against it."""
    return accept_form_schema({"title": title, "description": description, "fields": fields})


def dump_fields(fields: list[FormField]) -> list[dict[str, Any]]:
    """Serialize field definitions the way they are stored and served."""
    return [field.model_dump(by_alias=True, exclude_none=True) for field in fields]


def field_map(schema: FormSchema) -> dict[str, FormField]:
    return {field.name: field for field in schema.fields}


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
