"""AI form generation endpoints."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_ai_provider, get_current_user, get_db
from app.core.rate_limit import limiter
from app.core.structured_logging import build_log_context, format_log_context
from app.schemas.auth import CurrentUser
from app.schemas.forms import (
    FormGenerateRequest,
    FormMutationResponse,
    FormRead,
    FormRegenerateRequest,
)
from app.services import form_service
from app.services.ai_provider import AIProvider
from app.services.form_generation_service import (
    FormGenerationError,
    generate_form_schema,
    regenerate_form_fields,
)
from app.services.submission_errors import MalformedSchemaError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


def _generation_failed(exc: FormGenerationError) -> HTTPException:
    return HTTPException(status_code=502, detail={"code": exc.code, "message": exc.message})


@router.post("/generate-form", response_model=FormMutationResponse, status_code=201)
@limiter.limit(f"{settings.RATE_LIMIT_AI}/minute")
async def generate_form(
    request: Request,
    body: FormGenerateRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    provider: AIProvider = Depends(get_ai_provider),
):
    """Generate a form from a natural-language prompt and store it."""
    prompt = (body.prompt or "").strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Please provide a prompt for form generation")

    try:
        schema = await generate_form_schema(provider, prompt)
    except FormGenerationError as exc:
        raise _generation_failed(exc) from exc

    form = form_service.create_form(
        db,
        creator_id=user.user_id,
        schema=schema,
        prompt=prompt,
        title=body.title,
        description=body.description,
    )
    context = build_log_context(user_id=str(user.user_id), form_id=str(form.id))
    logger.info("form_generated %s fields=%d", format_log_context(context), len(schema.fields))
    return FormMutationResponse(
        message="Form generated successfully", form=FormRead.model_validate(form)
    )


@router.post("/regenerate-form/{form_id}", response_model=FormMutationResponse)
@limiter.limit(f"{settings.RATE_LIMIT_AI}/minute")
async def regenerate_form(
    request: Request,
    form_id: UUID,
    body: FormRegenerateRequest,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    provider: AIProvider = Depends(get_ai_provider),
):
    """Revise an existing form's fields with the AI provider."""
    prompt = (body.prompt or "").strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Please provide a prompt for regeneration")

    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    if form.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Access denied")

    try:
        current = form_service.get_schema(form).fields
    except MalformedSchemaError as exc:
        raise HTTPException(status_code=500, detail="Stored form definition is invalid") from exc

    try:
        fields = await regenerate_form_fields(provider, current, prompt, body.modifications)
    except FormGenerationError as exc:
        raise _generation_failed(exc) from exc

    form = form_service.replace_fields(db, form, fields, prompt)
    return FormMutationResponse(
        message="Form regenerated successfully", form=FormRead.model_validate(form)
    )
