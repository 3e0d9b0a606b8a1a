from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from jobboard.types import JobRecord, JobStatus


class JobCreateRequest(BaseModel):
    title: str
    company: str
    status: JobStatus = "saved"
    url: str | None = None
    notes: str | None = None


class JobUpdateRequest(BaseModel):
    title: str | None = None
    company: str | None = None
    status: JobStatus | None = None
    url: str | None = None
    notes: str | None = None


class JobCreateResponse(BaseModel):
    id: str


class JobResponse(BaseModel):
    id: str
    user_id: str
    title: str
    company: str
    status: JobStatus
    url: str | None
    notes: str | None
    created_at: datetime

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobResponse":
        return cls.model_validate(record.model_dump())
