"""
Generation dispatch strategies.

The report endpoint persists the job, answers 202 and hands the report id
to a dispatcher. The continuation either runs in-process after the
response (FastAPI background tasks) or on an ARQ worker.
"""
from fastapi import BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from planpdf.config import settings
from planpdf.database import get_session_factory
from planpdf.logging_config import get_logger
from planpdf.routes.metrics import track_report_failed
from planpdf.services.job_service import JobService
from planpdf.services.workflow_service import WorkflowClient, run_generation
from planpdf.worker import enqueue_generation


class GenerationDispatcher:
    """Base class: schedule the workflow trigger for a persisted job."""

    async def dispatch(self, report_id: str, background_tasks: BackgroundTasks) -> None:
        raise NotImplementedError


class BackgroundTaskDispatcher(GenerationDispatcher):
    """Runs the continuation after the response has been sent."""

    def __init__(self, session_factory: async_sessionmaker, workflow: WorkflowClient | None = None):
        self.session_factory = session_factory
        self.workflow = workflow

    async def dispatch(self, report_id: str, background_tasks: BackgroundTasks) -> None:
        background_tasks.add_task(run_generation, report_id, self.session_factory, self.workflow)


class QueueDispatcher(GenerationDispatcher):
    """Enqueues the continuation on the ARQ worker."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def dispatch(self, report_id: str, background_tasks: BackgroundTasks) -> None:
        if await enqueue_generation(report_id):
            return

        get_logger(report_id=report_id).error("generation_enqueue_failed")
        async with self.session_factory() as db:
            await JobService(db).fail_job(report_id, "Failed to queue report generation")
        track_report_failed("dispatch")


def get_workflow_client() -> WorkflowClient:
    """Dependency returning the workflow webhook client."""
    return WorkflowClient()


def get_dispatcher(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    workflow: WorkflowClient = Depends(get_workflow_client)
) -> GenerationDispatcher:
    """Dependency selecting the dispatcher from GENERATION_DISPATCH."""
    if settings.GENERATION_DISPATCH == "queue":
        return QueueDispatcher(session_factory)
    return BackgroundTaskDispatcher(session_factory, workflow)
