"""
Admin API routes.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from planpdf.database import get_db
from planpdf.dependencies.auth import require_admin, TokenPayload
from planpdf.routes.reports import job_to_status
from planpdf.services.job_service import JobService
from planpdf.services.profile_service import ProfileService


router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
async def get_stats(
    admin: TokenPayload = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """User counts per role."""
    return await ProfileService(db).count_by_role()


@router.get("/reports")
async def list_reports(
    limit: int = Query(default=50, ge=1, le=200),
    admin: TokenPayload = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Most recent reports across all users."""
    jobs = await JobService(db).get_recent_jobs(limit)
    return {
        "reports": [
            {**job_to_status(job), "userId": job.user_id}
            for job in jobs
        ]
    }
