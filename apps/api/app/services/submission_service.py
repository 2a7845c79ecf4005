"""Submission service: accept public submissions and manage them for creators."""

import json
import logging
import uuid
from datetime import datetime, timezone

from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.core.structured_logging import build_log_context, format_log_context
from app.db.models import Form, Submission
from app.schemas.submissions import RawSubmissionEntry, SubmitterInfo
from app.services import form_service
from app.services.media_store import MediaStore
from app.services.submission_assembler import UploadedFile, assemble_submission
from app.services.submission_errors import SubmissionError
from app.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)


class InvalidResponsesError(ValueError):
    """The `responses` form field is not a JSON array of entries."""

    pass


def parse_responses(raw: str | None) -> list[RawSubmissionEntry]:
    """Parse the JSON-encoded `responses` multipart field."""
    if raw is None:
        raise InvalidResponsesError("Invalid responses format")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidResponsesError("Invalid responses format") from exc
    if not isinstance(data, list):
        raise InvalidResponsesError("Invalid responses format")
    try:
        return [RawSubmissionEntry.model_validate(item) for item in data]
    except ValidationError as exc:
        raise InvalidResponsesError("Invalid responses format") from exc


def create_submission(
    db: Session,
    form: Form,
    entries: list[RawSubmissionEntry],
    files: list[UploadedFile],
    file_field_names: list[str],
    media_store: MediaStore,
    *,
    ip: str | None = None,
    user_agent: str | None = None,
    cleanup_on_failure: bool = False,
) -> Submission:
    """
    Validate, upload and store one submission.

    Nothing is written to the database unless the assembler accepts the
    whole payload.

    Raises:
        SubmissionError: The payload (or the stored schema) was rejected
    """
    schema = form_service.get_schema(form)
    try:
        record = assemble_submission(
            schema,
            entries,
            files,
            file_field_names,
            media_store,
            form_id=form.id,
            cleanup_on_failure=cleanup_on_failure,
        )
    except SubmissionError as exc:
        context = build_log_context(form_id=str(form.id), error_kind=type(exc).__name__)
        logger.info("submission_rejected %s", format_log_context(context))
        raise

    now = datetime.now(timezone.utc)
    submission = Submission(
        form_id=form.id,
        submitter_info=SubmitterInfo(ip=ip, user_agent=user_agent, timestamp=now).model_dump(
            mode="json", by_alias=True
        ),
        responses=[
            response.model_dump(mode="json", by_alias=True) for response in record.responses
        ],
        status=record.status,
        notes=record.notes,
        total_files=record.total_files,
        total_file_size=record.total_file_size,
    )
    db.add(submission)
    db.flush()
    form_service.record_submission(db, form.id, now)
    db.commit()
    db.refresh(submission)

    context = build_log_context(form_id=str(form.id), submission_id=str(submission.id))
    logger.info(
        "submission_accepted %s files=%d bytes=%d",
        format_log_context(context),
        record.total_files,
        record.total_file_size,
    )
    return submission


def list_submissions(
    db: Session,
    form_id: uuid.UUID,
    pagination: PaginationParams,
    status: str | None = None,
) -> tuple[list[Submission], int]:
    query = db.query(Submission).filter(Submission.form_id == form_id)
    if status:
        query = query.filter(Submission.status == status)
    query = query.order_by(Submission.created_at.desc())
    return paginate_query(query, pagination)


def get_submission(db: Session, submission_id: uuid.UUID) -> Submission | None:
    return db.query(Submission).filter(Submission.id == submission_id).first()


def update_status(
    db: Session, submission: Submission, status: str, notes: str | None = None
) -> Submission:
    submission.status = status
    if notes is not None:
        submission.notes = notes
    db.commit()
    db.refresh(submission)
    return submission


def delete_submission(db: Session, submission: Submission, media_store: MediaStore) -> None:
    """Delete stored files (best effort), then the submission row."""
    for reference in submission.file_urls():
        try:
            media_store.delete(reference)
        except Exception:
            context = build_log_context(submission_id=str(submission.id), error_kind="media_delete")
            logger.warning(
                "media_delete_failed %s", format_log_context(context), exc_info=True
            )
    db.delete(submission)
    db.commit()
