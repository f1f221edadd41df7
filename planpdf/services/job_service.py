"""
Job service for report generation jobs.

Status changes are single conditional UPDATEs keyed on the allowed
predecessor states, so a duplicate or late write can never move a job
backwards or out of a terminal state.
"""
import json
from datetime import datetime, timezone
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from planpdf.models.job import Job, JobStatus, TRANSITIONS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobService:
    """Service for managing report jobs."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_job(self, report_id: str, user_id: str, form_data: dict) -> Job:
        """
        Create a new job in QUEUED status and commit it.

        Args:
            report_id: Report UUID (client supplied or generated)
            user_id: Owner of the report
            form_data: Intake form snapshot, stored verbatim

        Returns:
            Newly created Job

        Raises:
            sqlalchemy.exc.IntegrityError: if report_id already exists
        """
        job = Job(
            report_id=report_id,
            user_id=user_id,
            form_data=json.dumps(form_data),
            status=JobStatus.QUEUED
        )
        self.db.add(job)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(job)
        return job

    async def _transition(self, report_id: str, target: JobStatus, **values) -> bool:
        """Apply target status if the job is in an allowed predecessor state."""
        stmt = (
            update(Job)
            .where(
                Job.report_id == report_id,
                Job.status.in_(TRANSITIONS[target])
            )
            .values(status=target, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount == 1

    async def mark_processing(self, report_id: str) -> bool:
        """
        Move a QUEUED job to PROCESSING once the workflow accepted it.

        Returns:
            True if applied, False if the job already moved on
        """
        return await self._transition(report_id, JobStatus.PROCESSING, started_at=utcnow())

    async def complete_job(
        self,
        report_id: str,
        preview_path: str,
        full_path: str
    ) -> bool:
        """
        Mark a job COMPLETED with its artifact paths.

        Returns:
            True if applied, False if the job was missing or already terminal
        """
        return await self._transition(
            report_id,
            JobStatus.COMPLETED,
            preview_artifact_path=preview_path,
            full_artifact_path=full_path,
            error_message=None,
            completed_at=utcnow()
        )

    async def fail_job(self, report_id: str, error_message: str) -> bool:
        """
        Mark a job FAILED with error.

        Returns:
            True if applied, False if the job was missing or already terminal
        """
        return await self._transition(
            report_id,
            JobStatus.FAILED,
            error_message=error_message,
            completed_at=utcnow()
        )

    async def get_job(self, report_id: str) -> Job | None:
        """Get job by report ID, always re-reading the row."""
        stmt = (
            select(Job)
            .where(Job.report_id == report_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_jobs_by_user(self, user_id: str) -> list[Job]:
        """Get all jobs for a user, newest first."""
        stmt = select(Job).where(Job.user_id == user_id).order_by(Job.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_recent_jobs(self, limit: int = 50) -> list[Job]:
        """Get most recent jobs across all users (admin listing)."""
        stmt = select(Job).order_by(Job.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
