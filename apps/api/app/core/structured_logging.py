"""Structured logging helpers (no submitted values)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    form_id: str | None = None,
    public_id: str | None = None,
    submission_id: str | None = None,
    field_name: str | None = None,
    error_kind: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict that never carries answer values."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if form_id:
        context["form_id"] = form_id
    if public_id:
        context["public_id"] = public_id
    if submission_id:
        context["submission_id"] = submission_id
    if field_name:
        context["field_name"] = field_name
    if error_kind:
        context["error_kind"] = error_kind
    return context


def format_log_context(context: dict[str, Any]) -> str:
    """Render a context dict as space separated key=value pairs."""
    return " ".join(f"{key}={value}" for key, value in context.items())
