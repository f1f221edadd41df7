"""
Report API routes.

Creates report jobs, exposes their status, receives the workflow
callback and hands out signed links to finished reports.
"""
import hmac
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from planpdf.config import settings
from planpdf.database import get_db
from planpdf.dependencies.auth import get_current_user, has_admin_role, is_admin, TokenPayload
from planpdf.dependencies.rate_limit import check_rate_limit
from planpdf.errors import ObjectNotFound, PreviewError, StorageError
from planpdf.logging_config import get_logger
from planpdf.models.job import Job, JobStatus
from planpdf.models.profile import PlanTier
from planpdf.routes.metrics import track_report_queued, track_report_completed, track_report_failed
from planpdf.schemas.intake import BusinessPlanForm
from planpdf.services.generation_dispatcher import GenerationDispatcher, get_dispatcher
from planpdf.services.job_service import JobService
from planpdf.services.profile_service import ProfileService, effective_tier
from planpdf.services.report_access_service import (
    ReportAccessService,
    DEFAULT_EXPIRY_SECONDS,
    MIN_EXPIRY_SECONDS,
    MAX_EXPIRY_SECONDS,
)
from planpdf.services.storage_service import StorageService, get_storage


router = APIRouter(prefix="/api/reports", tags=["reports"])


class CreateReportRequest(BaseModel):
    """Request model for starting a report."""
    model_config = ConfigDict(populate_by_name=True)

    report_id: uuid.UUID | None = Field(default=None, alias="reportId")
    form_data: BusinessPlanForm = Field(alias="formData")


class CallbackRequest(BaseModel):
    """Workflow completion callback."""
    model_config = ConfigDict(populate_by_name=True)

    report_id: str | None = Field(default=None, alias="reportId")
    pdf_url: str | None = Field(default=None, alias="pdfUrl")
    preview_pdf_url: str | None = Field(default=None, alias="previewPdfUrl")
    full_pdf_url: str | None = Field(default=None, alias="fullPdfUrl")
    error: str | None = None


def job_to_status(job: Job) -> dict:
    """Convert Job model to the status response."""
    return {
        "reportId": job.report_id,
        "status": job.status.value if isinstance(job.status, JobStatus) else job.status,
        "previewPdfPath": job.preview_artifact_path,
        "fullPdfPath": job.full_artifact_path,
        "errorMessage": job.error_message,
        "createdAt": job.created_at.isoformat() if job.created_at else None,
        "completedAt": job.completed_at.isoformat() if job.completed_at else None,
    }


async def get_owned_job(
    report_id: str,
    current_user: TokenPayload,
    db: AsyncSession,
    admin: bool | None = None
) -> Job:
    """
    Load a job the caller may read.

    admin, when the caller already knows it, saves the profile lookup.

    SECURITY: only the owner or an admin gets past this point.
    """
    job = await JobService(db).get_job(report_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")

    if job.user_id != current_user.sub:
        if admin is None:
            admin = await is_admin(current_user.sub, db)
        if not admin:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    return job


@router.post("", status_code=status.HTTP_202_ACCEPTED, dependencies=[Depends(check_rate_limit)])
async def create_report(
    request: CreateReportRequest,
    background_tasks: BackgroundTasks,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    dispatcher: GenerationDispatcher = Depends(get_dispatcher)
):
    """
    Start generating a business plan.

    The job row is committed in QUEUED state before the workflow is
    triggered; the trigger runs after this response is sent.
    """
    report_id = str(request.report_id or uuid.uuid4())
    log = get_logger(report_id=report_id, user_id=current_user.sub)

    try:
        await JobService(db).create_job(report_id, current_user.sub, request.form_data.to_payload())
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Report {report_id} already exists"
        )
    except SQLAlchemyError as e:
        log.error("report_create_failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create report job"
        )

    await dispatcher.dispatch(report_id, background_tasks)
    track_report_queued()
    log.info("report_queued")

    return {"reportId": report_id, "status": JobStatus.QUEUED.value}


@router.post("/callback")
async def report_callback(
    payload: CallbackRequest,
    x_callback_secret: str | None = Header(default=None),
    db: AsyncSession = Depends(get_db)
):
    """
    Receive the workflow's completion or failure notice.

    Repeated callbacks for a finished job are acknowledged without
    changing it.
    """
    if settings.CALLBACK_SECRET and not hmac.compare_digest(
        (x_callback_secret or "").encode(), settings.CALLBACK_SECRET.encode()
    ):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid callback secret")

    if not payload.report_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="reportId is required")

    report_id = payload.report_id
    log = get_logger(report_id=report_id)
    job_service = JobService(db)

    job = await job_service.get_job(report_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")

    already_final = {"success": True, "reportId": report_id, "applied": False}
    if job.status.is_terminal:
        log.info("callback_ignored", status=job.status.value)
        return already_final

    if payload.error:
        applied = await job_service.fail_job(report_id, f"Workflow error: {payload.error}")
        if not applied:
            return already_final
        track_report_failed("workflow")
        log.warning("report_failed", error=payload.error)
        return {"success": False, "error": payload.error}

    preview = payload.preview_pdf_url or payload.pdf_url or payload.full_pdf_url
    full = payload.full_pdf_url or payload.pdf_url or payload.preview_pdf_url

    if not preview:
        await job_service.fail_job(report_id, "Workflow callback carried no PDF and no error")
        track_report_failed("workflow")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Callback must include a PDF URL or an error"
        )

    if not await job_service.complete_job(report_id, preview, full):
        return already_final

    track_report_completed()
    log.info("report_completed")
    return {"success": True, "reportId": report_id}


async def sign_report_access(
    report_id: str,
    expires_in: int,
    current_user: TokenPayload,
    db: AsyncSession,
    storage: StorageService
) -> dict:
    """Shared body of both access routes."""
    profile = await ProfileService(db).get_by_user_id(current_user.sub)
    admin = has_admin_role(profile)
    job = await get_owned_job(report_id, current_user, db, admin=admin)

    if job.status != JobStatus.COMPLETED:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="preview_not_ready")

    log = get_logger(report_id=report_id, user_id=current_user.sub)
    access = ReportAccessService(storage)

    full_access = admin or effective_tier(profile) == PlanTier.PRO

    try:
        if full_access:
            signed = await access.sign_full(job, expires_in)
        else:
            signed = await access.sign_preview(job, expires_in)
    except ObjectNotFound as e:
        log.warning("report_file_missing", error=str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report file not found")
    except (StorageError, PreviewError) as e:
        log.error("report_access_failed", error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

    log.info("report_link_signed", type=signed.type, expires_in=expires_in)
    return signed.to_dict()


# Declared before "/{report_id}" so "access" is not taken for a report id
@router.get("/access")
async def get_report_access_by_query(
    report_id: str = Query(alias="reportId"),
    exp: int = Query(default=DEFAULT_EXPIRY_SECONDS, ge=MIN_EXPIRY_SECONDS, le=MAX_EXPIRY_SECONDS),
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage)
):
    """Signed link to a finished report (query-string form)."""
    return await sign_report_access(report_id, exp, current_user, db, storage)


@router.get("/{report_id}")
async def get_report_status(
    report_id: str,
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current status and artifact paths of a report."""
    job = await get_owned_job(report_id, current_user, db)
    return job_to_status(job)


@router.get("/{report_id}/access")
async def get_report_access(
    report_id: str,
    exp: int = Query(default=DEFAULT_EXPIRY_SECONDS, ge=MIN_EXPIRY_SECONDS, le=MAX_EXPIRY_SECONDS),
    current_user: TokenPayload = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage)
):
    """
    Signed link to a finished report.

    Paid users and admins get the full PDF; free users get the 2-page
    preview, derived on first request.
    """
    return await sign_report_access(report_id, exp, current_user, db, storage)
