"""Schemas for form submissions."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


SubmissionStatusValue = Literal["pending", "approved", "rejected"]


class RawSubmissionEntry(BaseModel):
    """One entry of the client's `responses` JSON array."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field_name: str
    value: Any = None


class FieldResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field_name: str
    field_type: str
    value: Any = None
    file_urls: list[str] = Field(default_factory=list)
    submitted_at: datetime


class SubmitterInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    ip: str | None = None
    user_agent: str | None = None
    timestamp: datetime | None = None


class SubmissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    form_id: UUID
    submitter_info: SubmitterInfo
    responses: list[FieldResponse]
    status: str
    notes: str | None
    total_files: int
    total_file_size: int
    response_count: int
    created_at: datetime
    updated_at: datetime


class SubmissionEnvelope(BaseModel):
    submission: SubmissionRead


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionRead]
    total_pages: int
    current_page: int
    total: int


class SubmissionCreateResponse(BaseModel):
    message: str
    submission_id: UUID


class SubmissionStatusUpdate(BaseModel):
    status: SubmissionStatusValue
    notes: str | None = None


class SubmissionStatusRead(BaseModel):
    id: UUID
    status: str
    notes: str | None
    updated_at: datetime


class SubmissionStatusResponse(BaseModel):
    message: str
    submission: SubmissionStatusRead
