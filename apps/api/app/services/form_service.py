"""Form service for generated forms: storage, lookups, edits, analytics."""

import logging
import secrets
import string
import uuid
from collections import OrderedDict
from datetime import datetime, timedelta, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from app.db.models import Form, Submission
from app.schemas.forms import (
    FieldStat,
    FormAnalytics,
    FormField,
    FormPublicRead,
    FormSchema,
    FormSettings,
    FormUpdate,
)
from app.services.form_schema_service import dump_fields, load_stored_schema
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

PUBLIC_ID_LENGTH = 26
_PUBLIC_ID_ALPHABET = string.ascii_lowercase + string.digits
RECENT_SUBMISSIONS_WINDOW = timedelta(days=7)


def generate_public_id() -> str:
    """Random base36 id used in public form links."""
    return "".join(secrets.choice(_PUBLIC_ID_ALPHABET) for _ in range(PUBLIC_ID_LENGTH))


def _unique_public_id(db: Session) -> str:
    while True:
        public_id = generate_public_id()
        if not db.query(Form.id).filter(Form.public_id == public_id).first():
            return public_id


# =============================================================================
# Create
# =============================================================================

def create_form(
    db: Session,
    creator_id: uuid.UUID,
    schema: FormSchema,
    prompt: str,
    title: str | None = None,
    description: str | None = None,
) -> Form:
    """Persist an accepted schema; explicit title/description win over generated ones."""
    form = Form(
        title=(title or "").strip() or schema.title,
        description=description or schema.description,
        prompt=prompt,
        fields=dump_fields(schema.fields),
        creator_id=creator_id,
        public_id=_unique_public_id(db),
        ai_generated_at=datetime.now(timezone.utc),
    )
    db.add(form)
    db.commit()
    db.refresh(form)
    logger.info("Created form %s with %d fields", form.id, len(schema.fields))
    return form


def duplicate_form(
    db: Session,
    form: Form,
    creator_id: uuid.UUID,
    title: str | None = None,
    description: str | None = None,
) -> Form:
    copy = Form(
        title=title or f"{form.title} (Copy)",
        description=description or form.description,
        prompt=form.prompt,
        fields=[dict(field) for field in form.fields],
        creator_id=creator_id,
        settings=dict(form.settings or {}),
        public_id=_unique_public_id(db),
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


# =============================================================================
# Read
# =============================================================================

def get_form(db: Session, form_id: uuid.UUID) -> Form | None:
    return db.query(Form).filter(Form.id == form_id).first()


def get_form_by_public_id(db: Session, public_id: str) -> Form | None:
    return (
        db.query(Form)
        .options(joinedload(Form.creator))
        .filter(Form.public_id == public_id)
        .first()
    )


def list_forms(
    db: Session,
    creator_id: uuid.UUID,
    pagination: PaginationParams,
    search: str | None = None,
) -> tuple[list[Form], int]:
    """Creator's forms, newest first, optionally filtered by title/description."""
    query = db.query(Form).filter(Form.creator_id == creator_id)
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(Form.title.ilike(pattern), Form.description.ilike(pattern)))
    query = query.order_by(Form.created_at.desc())
    return paginate_query(query, pagination)


def get_schema(form: Form) -> FormSchema:
    """
    Stored fields re-checked by the acceptance guard.

    Raises:
        MalformedSchemaError: If the stored definition no longer validates
    """
    return load_stored_schema(form.title, form.description, form.fields)


def to_public_read(form: Form) -> FormPublicRead:
    return FormPublicRead(
        id=form.id,
        public_id=form.public_id,
        title=form.title,
        description=form.description,
        fields=form.fields,
        settings=form.settings or {},
        created_at=form.created_at,
        creator_name=form.creator.name if form.creator else "",
    )


# =============================================================================
# Update / delete
# =============================================================================

def update_form(db: Session, form: Form, data: FormUpdate) -> Form:
    """Partial update; settings are merged over the current settings."""
    updates = data.model_dump(exclude_unset=True)
    for field in ("title", "description", "is_public", "allow_multiple_submissions"):
        if field in updates:
            setattr(form, field, updates[field])
    if data.settings is not None:
        merged = FormSettings.model_validate(form.settings or {}).model_dump()
        merged.update(data.settings.model_dump(exclude_unset=True))
        form.settings = FormSettings.model_validate(merged).model_dump()
    db.commit()
    db.refresh(form)
    return form


def replace_fields(db: Session, form: Form, fields: list[FormField], prompt: str) -> Form:
    """Store regenerated fields."""
    form.fields = dump_fields(fields)
    form.prompt = prompt
    form.ai_generated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(form)
    return form


def delete_form(db: Session, form: Form) -> None:
    """Delete a form together with all of its submissions."""
    db.query(Submission).filter(Submission.form_id == form.id).delete(synchronize_session=False)
    db.delete(form)
    db.commit()


def record_submission(db: Session, form_id: uuid.UUID, submitted_at: datetime) -> None:
    """Bump the submission counter in SQL so concurrent submits never lose an update."""
    db.query(Form).filter(Form.id == form_id).update(
        {
            Form.submission_count: Form.submission_count + 1,
            Form.last_submission_at: submitted_at,
        },
        synchronize_session=False,
    )


# =============================================================================
# Analytics
# =============================================================================

def get_form_analytics(db: Session, form: Form) -> FormAnalytics:
    since = datetime.now(timezone.utc) - RECENT_SUBMISSIONS_WINDOW
    base = db.query(Submission).filter(Submission.form_id == form.id)
    total = base.count()
    recent = base.filter(Submission.created_at >= since).count()

    stats: OrderedDict[str, FieldStat] = OrderedDict()
    for (responses,) in base.with_entities(Submission.responses).all():
        for response in responses or []:
            name = response.get("fieldName")
            if not name:
                continue
            stat = stats.get(name)
            if stat is None:
                stats[name] = FieldStat(
                    field_name=name,
                    response_count=1,
                    field_type=response.get("fieldType") or "",
                )
            else:
                stat.response_count += 1

    return FormAnalytics(
        total_submissions=total,
        recent_submissions=recent,
        field_stats=list(stats.values()),
        form_created=form.created_at,
        last_submission=form.last_submission_at,
    )
