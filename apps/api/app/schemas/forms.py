"""Schemas for AI-generated forms."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from app.db.enums import FieldType, FormTheme


class _CamelModel(BaseModel):
    """Field definitions travel as camelCase JSON (minLength, fileConfig, ...)."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, use_enum_values=True
    )


class FormFieldValidation(_CamelModel):
    min: float | None = None
    max: float | None = None
    min_length: int | None = Field(None, ge=0)
    max_length: int | None = Field(None, ge=0)
    pattern: str | None = None


class FormFieldFileConfig(_CamelModel):
    accept: str | None = None  # e.g. "image/*,.pdf"
    max_size: int | None = Field(None, ge=1)  # bytes
    multiple: bool = False


class FormField(_CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=200)
    type: FieldType
    required: bool = False
    placeholder: str | None = None
    options: list[str] | None = None
    validation: FormFieldValidation | None = None
    file_config: FormFieldFileConfig | None = None
    order: int

    @field_validator("options", mode="before")
    @classmethod
    def _stringify_options(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value if item is not None]
        return value


class FormSchema(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    fields: list[FormField]


class FormSettings(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    theme: FormTheme = FormTheme.DEFAULT.value
    show_progress_bar: bool = True
    redirect_url: str | None = Field(None, max_length=1000)


class FormSettingsUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    theme: FormTheme | None = None
    show_progress_bar: bool | None = None
    redirect_url: str | None = Field(None, max_length=1000)


# =============================================================================
# Requests
# =============================================================================


class FormGenerateRequest(BaseModel):
    prompt: str | None = None
    title: str | None = Field(None, max_length=200)
    description: str | None = None


class FormRegenerateRequest(BaseModel):
    prompt: str | None = None
    modifications: str | None = None


class FormUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    is_public: bool | None = None
    allow_multiple_submissions: bool | None = None
    settings: FormSettingsUpdate | None = None


class FormDuplicateRequest(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None


# =============================================================================
# Responses
# =============================================================================


class FormSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    public_id: str
    title: str
    description: str | None
    is_public: bool
    submission_count: int
    last_submission_at: datetime | None
    created_at: datetime
    updated_at: datetime


class FormRead(FormSummary):
    prompt: str
    fields: list[FormField]
    allow_multiple_submissions: bool
    settings: FormSettings
    ai_generated_at: datetime


class FormPublicRead(BaseModel):
    id: UUID
    public_id: str
    title: str
    description: str | None
    fields: list[FormField]
    settings: FormSettings
    created_at: datetime
    creator_name: str


class FormListResponse(BaseModel):
    forms: list[FormSummary]
    total_pages: int
    current_page: int
    total: int


class FormEnvelope(BaseModel):
    form: FormRead


class FormPublicEnvelope(BaseModel):
    form: FormPublicRead


class FormMutationResponse(BaseModel):
    message: str
    form: FormRead


class FieldStat(BaseModel):
    field_name: str
    response_count: int
    field_type: str


class FormAnalytics(BaseModel):
    total_submissions: int
    recent_submissions: int
    field_stats: list[FieldStat]
    form_created: datetime
    last_submission: datetime | None


class FormAnalyticsResponse(BaseModel):
    analytics: FormAnalytics


class MessageResponse(BaseModel):
    message: str
