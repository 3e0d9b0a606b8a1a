from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from jobboard.errors import RecordValidationError

JobStatus = Literal["saved", "applied", "interview_stage", "rejected", "offer"]
JOB_STATUSES: tuple[str, ...] = get_args(JobStatus)

STATUS_LABELS: dict[str, str] = {
    "saved": "Saved",
    "applied": "Applied",
    "interview_stage": "Interview stage",
    "rejected": "Rejected",
    "offer": "Offer",
}

EDITABLE_FIELDS: tuple[str, ...] = ("title", "company", "status", "url", "notes")


def ensure_status(value: Any) -> JobStatus:
    if value not in JOB_STATUSES:
        raise RecordValidationError(f"status must be one of {list(JOB_STATUSES)}, got {value!r}")
    return value


def _required_text(value: str, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError(f"{field} must not be empty")
    return value


def _not_null(value: Any, field: str) -> Any:
    if value is None:
        raise ValueError(f"{field} must not be null")
    return value


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class JobRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    title: str
    company: str
    status: JobStatus
    url: str | None = None
    notes: str | None = None
    created_at: datetime


class JobFields(BaseModel):
    title: str
    company: str
    status: JobStatus = "saved"
    url: str | None = None
    notes: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        return _required_text(value, "title")

    @field_validator("company")
    @classmethod
    def validate_company(cls, value: str) -> str:
        return _required_text(value, "company")

    @field_validator("url", "notes")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "JobFields":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise RecordValidationError.from_pydantic(exc) from exc


class JobPatch(BaseModel):
    """Partial update; only the fields that were set are sent to the store."""

    title: str | None = None
    company: str | None = None
    status: JobStatus | None = None
    url: str | None = None
    notes: str | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str | None) -> str:
        return _required_text(_not_null(value, "title"), "title")

    @field_validator("company")
    @classmethod
    def validate_company(cls, value: str | None) -> str:
        return _required_text(_not_null(value, "company"), "company")

    @field_validator("status")
    @classmethod
    def validate_status(cls, value: JobStatus | None) -> JobStatus:
        return _not_null(value, "status")

    @field_validator("url", "notes")
    @classmethod
    def normalize_optional(cls, value: str | None) -> str | None:
        return _optional_text(value)

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "JobPatch":
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise RecordValidationError.from_pydantic(exc) from exc

    @classmethod
    def from_fields(cls, fields: JobFields) -> "JobPatch":
        return cls.model_validate(fields.model_dump())

    def values(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class JobDraft(BaseModel):
    """Unvalidated working copy held by an edit session."""

    title: str = ""
    company: str = ""
    status: str = "saved"
    url: str = ""
    notes: str = ""

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobDraft":
        return cls(
            title=record.title,
            company=record.company,
            status=record.status,
            url=record.url or "",
            notes=record.notes or "",
        )

    def to_fields(self) -> JobFields:
        return JobFields.parse(self.model_dump())


class Identity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str = ""


class ChangeEvent(BaseModel):
    type: Literal["INSERT", "UPDATE", "DELETE"]
    record_id: str
    user_id: str
