"""
Workflow Service

Triggers the external generation workflow and runs the post-response
continuation that reconciles the job row with the trigger outcome.
"""
import json

import httpx
from sqlalchemy.ext.asyncio import async_sessionmaker

from planpdf.config import settings
from planpdf.errors import WorkflowError, ConfigurationError
from planpdf.logging_config import get_logger
from planpdf.routes.metrics import track_report_failed
from planpdf.services.job_service import JobService


class WorkflowClient:
    """HTTP client for the generation workflow webhook."""

    def __init__(
        self,
        webhook_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None
    ):
        self.webhook_url = webhook_url or settings.WORKFLOW_WEBHOOK_URL
        self.timeout = timeout or settings.WORKFLOW_TIMEOUT_SECONDS
        self.transport = transport

    async def trigger(self, report_id: str, user_id: str, form_data: dict) -> None:
        """
        POST a generation request to the workflow.

        Raises:
            ConfigurationError: if no webhook URL is configured
            WorkflowError: on network failure, timeout or non-2xx answer
        """
        if not self.webhook_url:
            raise ConfigurationError("Missing configuration: WORKFLOW_WEBHOOK_URL")

        payload = {
            "reportId": report_id,
            "userId": user_id,
            "formData": form_data,
        }
        if settings.CALLBACK_BASE_URL:
            payload["callbackUrl"] = f"{settings.CALLBACK_BASE_URL.rstrip('/')}/api/reports/callback"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=payload)
        except httpx.TimeoutException as e:
            raise WorkflowError(f"Workflow request timed out after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise WorkflowError(f"Failed to reach generation workflow: {e}") from e

        if not response.is_success:
            raise WorkflowError(
                f"Workflow returned {response.status_code}: {response.text[:200]}"
            )


async def run_generation(
    report_id: str,
    session_factory: async_sessionmaker,
    workflow: WorkflowClient | None = None
) -> None:
    """
    Dispatch a queued job to the workflow.

    Runs after the HTTP response has been sent, so nobody is listening for
    its outcome: failures are written to the job row instead of raised.
    """
    log = get_logger(report_id=report_id)
    workflow = workflow or WorkflowClient()

    async with session_factory() as db:
        job_service = JobService(db)
        job = await job_service.get_job(report_id)
        if job is None:
            log.error("generation_job_missing")
            return

        try:
            await workflow.trigger(report_id, job.user_id, json.loads(job.form_data))
        except (WorkflowError, ConfigurationError) as e:
            log.error("generation_dispatch_failed", error=str(e))
            await job_service.fail_job(report_id, str(e))
            track_report_failed("dispatch")
            return
        except Exception as e:
            log.exception("generation_dispatch_crashed")
            await job_service.fail_job(report_id, f"Unexpected dispatch error: {e}")
            track_report_failed("dispatch")
            return

        moved = await job_service.mark_processing(report_id)
        log.info("generation_dispatched", marked_processing=moved)
