from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from jobboard.db.models import JobApplication
from jobboard.types import JobFields, JobRecord


def to_record(row: JobApplication) -> JobRecord:
    return JobRecord(
        id=row.id,
        user_id=row.user_id,
        title=row.title,
        company=row.company,
        status=row.status,
        url=row.url,
        notes=row.notes,
        created_at=row.created_at,
    )


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def list_jobs(self, user_id: str, *, statuses: list[str] | None = None) -> list[JobApplication]:
        statement = select(JobApplication).where(JobApplication.user_id == user_id)
        if statuses:
            statement = statement.where(JobApplication.status.in_(statuses))
        statement = statement.order_by(JobApplication.created_at.desc(), JobApplication.id)
        return list(self.session.scalars(statement).all())

    def create_job(self, user_id: str, fields: JobFields) -> JobApplication:
        job = JobApplication(user_id=user_id, **fields.model_dump())
        self.session.add(job)
        self.session.commit()
        self.session.refresh(job)
        return job

    def update_job(self, job_id: str, values: dict[str, Any]) -> JobApplication:
        job = self.session.get(JobApplication, job_id)
        if not job:
            raise ValueError(f"job {job_id} not found")

        for key, value in values.items():
            setattr(job, key, value)
        self.session.commit()
        self.session.refresh(job)
        return job

    def delete_job(self, job_id: str) -> str | None:
        """Delete a job and return its owner, or None when it did not exist."""
        job = self.session.get(JobApplication, job_id)
        if not job:
            return None

        owner = job.user_id
        self.session.delete(job)
        self.session.commit()
        return owner
