"""Form generation with an AI provider.

Builds the form-designer prompt, pulls the JSON object out of the model's
reply and hands it to the schema acceptance guard. Nothing is persisted here.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from app.schemas.forms import FormField, FormSchema
from app.services.ai_provider import AIProvider, ChatMessage
from app.services.form_schema_service import accept_field_list, accept_form_schema, dump_fields
from app.services.submission_errors import MalformedSchemaError

logger = logging.getLogger(__name__)

FIELD_TYPES_HINT = "text, email, number, textarea, select, checkbox, radio, file, date, tel, url"

SYSTEM_PROMPT = "You are an expert form designer. You answer with JSON only."

GENERATE_PROMPT = """Design a web form for the following request.

Request: "{prompt}"

Guidelines:
- Keep the structure logical and easy to fill out.
- Use only these field types: {field_types}.
- For file uploads set fileConfig with accepted types (e.g. "image/*,.pdf"), maxSize in bytes and multiple.
- Add validation rules (min, max, minLength, maxLength, pattern) where they help.
- Give the form a title and a short description.

Return ONLY a JSON object with this structure:
{{
  "title": "Form Title",
  "description": "Form description",
  "fields": [
    {{
      "name": "field_name",
      "label": "Human Readable Label",
      "type": "text",
      "required": true,
      "placeholder": "Placeholder text",
      "options": ["option1", "option2"],
      "validation": {{"min": 0, "max": 100, "pattern": "", "minLength": 0, "maxLength": 100}},
      "fileConfig": {{"accept": "image/*", "maxSize": 5242880, "multiple": false}},
      "order": 1
    }}
  ]
}}

Field names must be unique. Omit keys that do not apply. No explanations."""

REGENERATE_PROMPT = """Revise an existing web form based on the creator's feedback.

Current fields:
{fields}

Request: "{prompt}"

Additional modifications: {modifications}

Guidelines:
- Keep what works and fix what the request asks for.
- Use only these field types: {field_types}.
- Keep field names unique and give every field proper validation and configuration.

Return ONLY a JSON object of the form {{"fields": [...]}} using the same field structure as above."""


class FormGenerationError(Exception):
    """The provider reply could not be turned into an acceptable form schema."""

    def __init__(self, message: str, *, code: str = "schema_generation_failed"):
        super().__init__(message)
        self.message = message
        self.code = code


def _strip_code_fences(text: str) -> str:
    content = text.strip()
    if content.startswith("```"):
        lines = content.splitlines()[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        content = "\n".join(lines).strip()
    return content


def extract_json(text: str) -> Any | None:
    """Return the JSON value in a model reply, falling back to the outermost {...} span."""
    content = _strip_code_fences(text or "")
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        pass
    match = re.search(r"\{[\s\S]*\}", content)
    if not match:
        return None
    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse JSON from AI reply: %s", exc)
        return None


async def _ask(provider: AIProvider, prompt: str) -> str:
    messages = [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        ChatMessage(role="user", content=prompt),
    ]
    try:
        response = await provider.chat(messages, temperature=0.4)
    except httpx.HTTPStatusError as exc:
        logger.warning("AI provider returned HTTP %s", exc.response.status_code)
        raise FormGenerationError("AI provider request failed", code="ai_provider_error") from exc
    except httpx.HTTPError as exc:
        logger.warning("AI provider request failed: %s", type(exc).__name__)
        raise FormGenerationError("AI provider request failed", code="ai_provider_error") from exc
    except (KeyError, IndexError, ValueError) as exc:
        raise FormGenerationError(
            "AI provider returned an unexpected response", code="ai_provider_error"
        ) from exc
    logger.info(
        "AI form reply model=%s total_tokens=%d", response.model, response.total_tokens
    )
    return response.content


async def generate_form_schema(provider: AIProvider, prompt: str) -> FormSchema:
    """Ask the provider for a new form schema and accept it."""
    text = await _ask(
        provider, GENERATE_PROMPT.format(prompt=prompt.strip(), field_types=FIELD_TYPES_HINT)
    )
    data = extract_json(text)
    if data is None:
        raise FormGenerationError("Failed to parse AI-generated form schema")
    try:
        return accept_form_schema(data)
    except MalformedSchemaError as exc:
        logger.info("Rejected AI form schema: %s", exc.message)
        raise FormGenerationError(f"Invalid form schema generated: {exc.message}") from exc


async def regenerate_form_fields(
    provider: AIProvider,
    current_fields: list[FormField],
    prompt: str,
    modifications: str | None = None,
) -> list[FormField]:
    """Ask the provider to revise a form's fields and accept the new list."""
    text = await _ask(
        provider,
        REGENERATE_PROMPT.format(
            fields=json.dumps(dump_fields(current_fields), indent=2),
            prompt=prompt.strip(),
            modifications=(modifications or "").strip() or "None specified",
            field_types=FIELD_TYPES_HINT,
        ),
    )
    data = extract_json(text)
    # Either {"fields": [...]} or the bare list
    if isinstance(data, dict):
        data = data.get("fields")
    if data is None:
        raise FormGenerationError("Failed to parse regenerated form schema")
    try:
        return accept_field_list(data)
    except MalformedSchemaError as exc:
        logger.info("Rejected regenerated fields: %s", exc.message)
        raise FormGenerationError(f"Invalid form schema generated: {exc.message}") from exc
