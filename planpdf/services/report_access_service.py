"""
Report access service.

Hands out signed links to a finished report: the full PDF for paid users
and admins, a derived 2-page preview for everyone else.
"""
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from planpdf.errors import ObjectNotFound
from planpdf.logging_config import get_logger
from planpdf.models.job import Job
from planpdf.routes.metrics import track_link_signed, track_preview_generated
from planpdf.services.pdf_preview import build_preview
from planpdf.services.storage_service import StorageService, full_report_key, preview_key

DEFAULT_EXPIRY_SECONDS = 300
MIN_EXPIRY_SECONDS = 60
MAX_EXPIRY_SECONDS = 600

PREVIEW_MESSAGE = "Upgrade to download the full business plan."


@dataclass
class SignedReport:
    """A signed link pair for one report artifact."""
    type: str
    url: str
    download_url: str
    message: str | None = None

    def to_dict(self) -> dict:
        data = {"type": self.type, "url": self.url, "downloadUrl": self.download_url}
        if self.message:
            data["message"] = self.message
        return data


def full_key_for(job: Job) -> str:
    """
    Bucket key of the job's full report.

    The callback may record a public URL instead of a key; those fall back
    to the canonical per-owner layout.
    """
    path = job.full_artifact_path
    if path and not path.startswith(("http://", "https://")):
        return path.lstrip("/")
    return full_report_key(job.user_id, job.report_id)


class ReportAccessService:
    """Signs report links against object storage."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    async def _sign(self, key: str, expires_in: int, filename: str) -> tuple[str, str]:
        url = await self.storage.create_signed_url(key, expires_in)
        download_url = await self.storage.create_signed_url(key, expires_in, download_filename=filename)
        return url, download_url

    async def sign_full(self, job: Job, expires_in: int) -> SignedReport:
        """
        Sign the full report.

        Raises:
            ObjectNotFound: if the full PDF is not in the bucket
            StorageError: on any other storage failure
        """
        key = full_key_for(job)
        if not await self.storage.exists(key):
            raise ObjectNotFound(f"Object not found: {key}")

        url, download_url = await self._sign(key, expires_in, f"business-plan-{job.report_id}.pdf")
        track_link_signed("full")
        return SignedReport(type="full", url=url, download_url=download_url)

    async def ensure_preview(self, job: Job) -> str:
        """
        Make sure the preview exists, deriving it from the full PDF if not.

        An existing preview is never rewritten.

        Returns:
            The preview's bucket key

        Raises:
            ObjectNotFound: if neither preview nor full PDF exists
            PreviewError: if the full PDF cannot be read
            StorageError: on any other storage failure
        """
        key = preview_key(job.report_id)
        if await self.storage.exists(key):
            return key

        log = get_logger(report_id=job.report_id)
        full_pdf = await self.storage.download(full_key_for(job))
        preview_pdf = await run_in_threadpool(build_preview, full_pdf)
        await self.storage.upload(key, preview_pdf)
        track_preview_generated()
        log.info("preview_generated", key=key, size=len(preview_pdf))
        return key

    async def sign_preview(self, job: Job, expires_in: int) -> SignedReport:
        """Sign the preview, deriving it first when needed."""
        key = await self.ensure_preview(job)
        url, download_url = await self._sign(
            key, expires_in, f"business-plan-{job.report_id}-preview.pdf"
        )
        track_link_signed("preview")
        return SignedReport(
            type="preview",
            url=url,
            download_url=download_url,
            message=PREVIEW_MESSAGE
        )
