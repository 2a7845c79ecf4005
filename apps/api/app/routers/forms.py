"""Form management endpoints for creators, plus the public form view."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_current_user, get_db
from app.core.rate_limit import limiter
from app.db.models import Form
from app.schemas.auth import CurrentUser
from app.schemas.forms import (
    FormAnalyticsResponse,
    FormDuplicateRequest,
    FormEnvelope,
    FormListResponse,
    FormMutationResponse,
    FormPublicEnvelope,
    FormRead,
    FormSummary,
    FormUpdate,
    MessageResponse,
)
from app.services import form_service
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter(prefix="/forms", tags=["forms"])


def _get_owned_form(db: Session, form_id: UUID, user: CurrentUser) -> Form:
    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    if form.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return form


@router.get("/my-forms", response_model=FormListResponse)
def list_my_forms(
    pagination: PaginationParams = Depends(get_pagination),
    search: str | None = Query(None, max_length=200),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    forms, total = form_service.list_forms(db, user.user_id, pagination, search=search)
    return FormListResponse(
        forms=[FormSummary.model_validate(form) for form in forms],
        total_pages=pagination.total_pages(total),
        current_page=pagination.page,
        total=total,
    )


@router.get("/public/{public_id}", response_model=FormPublicEnvelope)
@limiter.limit(f"{settings.RATE_LIMIT_API}/minute")
def get_public_form(request: Request, public_id: str, db: Session = Depends(get_db)):
    form = form_service.get_form_by_public_id(db, public_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    if not form.is_public:
        raise HTTPException(status_code=403, detail="This form is not public")
    return FormPublicEnvelope(form=form_service.to_public_read(form))


@router.get("/{form_id}", response_model=FormEnvelope)
def get_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    form = _get_owned_form(db, form_id, user)
    return FormEnvelope(form=FormRead.model_validate(form))


@router.put("/{form_id}", response_model=FormMutationResponse)
def update_form(
    form_id: UUID,
    body: FormUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    form = _get_owned_form(db, form_id, user)
    form = form_service.update_form(db, form, body)
    return FormMutationResponse(message="Form updated successfully", form=FormRead.model_validate(form))


@router.delete("/{form_id}", response_model=MessageResponse)
def delete_form(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    form = _get_owned_form(db, form_id, user)
    form_service.delete_form(db, form)
    return MessageResponse(message="Form and all submissions deleted successfully")


@router.post("/{form_id}/duplicate", response_model=FormMutationResponse, status_code=201)
def duplicate_form(
    form_id: UUID,
    body: FormDuplicateRequest | None = None,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    form = _get_owned_form(db, form_id, user)
    body = body or FormDuplicateRequest()
    copy = form_service.duplicate_form(
        db, form, user.user_id, title=body.title, description=body.description
    )
    return FormMutationResponse(message="Form duplicated successfully", form=FormRead.model_validate(copy))


@router.get("/{form_id}/analytics", response_model=FormAnalyticsResponse)
def get_form_analytics(
    form_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    form = _get_owned_form(db, form_id, user)
    return FormAnalyticsResponse(analytics=form_service.get_form_analytics(db, form))
