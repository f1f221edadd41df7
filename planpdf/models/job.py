"""
Job model for report generation.

SECURITY: Reads on behalf of a user MUST check user_id ownership
(or admin role) before returning the row or its artifacts.
"""
import uuid
import enum
from datetime import datetime
from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from planpdf.models.base import Base, TimestampMixin, enum_column


class JobStatus(str, enum.Enum):
    """Job status enum."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @classmethod
    def parse(cls, value: str) -> "JobStatus":
        """Parse external status text; the legacy "done" spelling means COMPLETED."""
        normalized = value.strip().lower()
        if normalized == "done":
            return cls.COMPLETED
        return cls(normalized)

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


# Allowed predecessors for each target status. Terminal states have no successors.
TRANSITIONS: dict[JobStatus, tuple[JobStatus, ...]] = {
    JobStatus.PROCESSING: (JobStatus.QUEUED,),
    JobStatus.COMPLETED: (JobStatus.QUEUED, JobStatus.PROCESSING),
    JobStatus.FAILED: (JobStatus.QUEUED, JobStatus.PROCESSING),
}


class Job(Base, TimestampMixin):
    """
    Report generation job.

    Created in QUEUED state before the workflow is called, then moved
    forward by the dispatcher and the workflow callback.
    """
    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4())
    )
    report_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    status: Mapped[JobStatus] = mapped_column(
        enum_column(JobStatus),
        nullable=False,
        default=JobStatus.QUEUED
    )
    form_data: Mapped[str] = mapped_column(Text, nullable=False)
    preview_artifact_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    full_artifact_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Job(report_id={self.report_id}, user_id={self.user_id}, status={self.status})>"
