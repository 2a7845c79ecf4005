"""Public form submission and creator-side submission review endpoints."""

import json
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.core.deps import get_current_user, get_db, get_media_store, get_settings
from app.core.rate_limit import limiter
from app.db.models import Submission
from app.schemas.auth import CurrentUser
from app.schemas.forms import MessageResponse
from app.schemas.submissions import (
    SubmissionCreateResponse,
    SubmissionEnvelope,
    SubmissionListResponse,
    SubmissionRead,
    SubmissionStatusRead,
    SubmissionStatusResponse,
    SubmissionStatusUpdate,
    SubmissionStatusValue,
)
from app.services import form_service, submission_service
from app.services.media_store import MediaStore
from app.services.submission_assembler import UploadedFile
from app.services.submission_errors import MalformedSchemaError, SubmissionError
from app.utils.file_upload import (
    content_length_exceeds_limit,
    get_upload_file_size,
    upload_type_error,
)
from app.utils.pagination import PaginationParams, get_pagination

router = APIRouter(prefix="/submissions", tags=["submissions"])


def _parse_file_fields(raw: list[str] | None) -> list[str]:
    """fileFields arrives as repeated form values or as one JSON array string."""
    if not raw:
        return []
    if len(raw) == 1 and raw[0].strip().startswith("["):
        try:
            parsed = json.loads(raw[0])
        except json.JSONDecodeError as exc:
            raise HTTPException(status_code=400, detail="Invalid fileFields payload") from exc
        if not isinstance(parsed, list) or not all(isinstance(k, str) for k in parsed):
            raise HTTPException(status_code=400, detail="Invalid fileFields payload")
        return parsed
    return list(raw)


async def _read_uploads(files: list[UploadFile], max_size_bytes: int) -> list[UploadedFile]:
    uploads: list[UploadedFile] = []
    for upload in files:
        size = await get_upload_file_size(upload)
        if size > max_size_bytes:
            max_mb = max_size_bytes / (1024 * 1024)
            raise HTTPException(
                status_code=413, detail=f"File size exceeds {max_mb:.0f} MB limit"
            )
        type_error = upload_type_error(upload.filename, upload.content_type)
        if type_error:
            raise HTTPException(status_code=400, detail=type_error)
        uploads.append(
            UploadedFile(
                filename=upload.filename or "upload",
                content_type=upload.content_type,
                data=await upload.read(),
            )
        )
    return uploads


def _get_owned_submission(db: Session, submission_id: UUID, user: CurrentUser) -> Submission:
    submission = submission_service.get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    if submission.form.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return submission


@router.post("/submit/{public_id}", response_model=SubmissionCreateResponse, status_code=201)
@limiter.limit(f"{settings.RATE_LIMIT_PUBLIC_SUBMIT}/minute")
async def submit_form(
    request: Request,
    public_id: str,
    responses: str | None = Form(default=None),
    files: list[UploadFile] | None = File(default=None),
    file_fields: list[str] | None = Form(default=None, alias="fileFields"),
    db: Session = Depends(get_db),
    media_store: MediaStore = Depends(get_media_store),
    app_settings: Settings = Depends(get_settings),
):
    form = form_service.get_form_by_public_id(db, public_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    if not form.is_public:
        raise HTTPException(status_code=403, detail="This form is not public")

    try:
        entries = submission_service.parse_responses(responses)
    except submission_service.InvalidResponsesError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    files = files or []
    if content_length_exceeds_limit(
        request.headers.get("content-length"),
        max_size_bytes=app_settings.MAX_UPLOAD_FILE_SIZE_BYTES,
        max_files=len(files),
    ):
        raise HTTPException(status_code=413, detail="Upload too large")
    uploads = await _read_uploads(files, app_settings.MAX_UPLOAD_FILE_SIZE_BYTES)

    client = request.client
    try:
        submission = submission_service.create_submission(
            db,
            form,
            entries,
            uploads,
            _parse_file_fields(file_fields),
            media_store,
            ip=client.host if client else None,
            user_agent=request.headers.get("user-agent"),
            cleanup_on_failure=app_settings.MEDIA_CLEANUP_ON_FAILURE,
        )
    except MalformedSchemaError as exc:
        raise HTTPException(status_code=500, detail="Stored form definition is invalid") from exc
    except SubmissionError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return SubmissionCreateResponse(message="Form submitted successfully", submission_id=submission.id)


@router.get("/form/{form_id}", response_model=SubmissionListResponse)
def list_form_submissions(
    form_id: UUID,
    pagination: PaginationParams = Depends(get_pagination),
    status: SubmissionStatusValue | None = Query(None),
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    form = form_service.get_form(db, form_id)
    if not form:
        raise HTTPException(status_code=404, detail="Form not found")
    if form.creator_id != user.user_id:
        raise HTTPException(status_code=403, detail="Access denied")

    submissions, total = submission_service.list_submissions(db, form_id, pagination, status=status)
    return SubmissionListResponse(
        submissions=[SubmissionRead.model_validate(s) for s in submissions],
        total_pages=pagination.total_pages(total),
        current_page=pagination.page,
        total=total,
    )


@router.get("/{submission_id}", response_model=SubmissionEnvelope)
def get_submission(
    submission_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    submission = _get_owned_submission(db, submission_id, user)
    return SubmissionEnvelope(submission=SubmissionRead.model_validate(submission))


@router.put("/{submission_id}/status", response_model=SubmissionStatusResponse)
def update_submission_status(
    submission_id: UUID,
    body: SubmissionStatusUpdate,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    submission = _get_owned_submission(db, submission_id, user)
    submission = submission_service.update_status(db, submission, body.status, body.notes)
    return SubmissionStatusResponse(
        message="Submission status updated successfully",
        submission=SubmissionStatusRead(
            id=submission.id,
            status=submission.status,
            notes=submission.notes,
            updated_at=submission.updated_at,
        ),
    )


@router.delete("/{submission_id}", response_model=MessageResponse)
def delete_submission(
    submission_id: UUID,
    db: Session = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
    media_store: MediaStore = Depends(get_media_store),
):
    submission = _get_owned_submission(db, submission_id, user)
    submission_service.delete_submission(db, submission, media_store)
    return MessageResponse(message="Submission deleted successfully")
