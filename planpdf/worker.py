"""
ARQ Background Worker for PlanPDF.

Runs generation dispatches from the Redis queue when
GENERATION_DISPATCH=queue.
"""

from arq import create_pool
from arq.connections import RedisSettings
from redis.exceptions import RedisError

from planpdf.config import settings
from planpdf.database import AsyncSessionLocal
from planpdf.logging_config import configure_logging, get_logger
from planpdf.services.workflow_service import run_generation


async def dispatch_generation(ctx: dict, report_id: str) -> dict:
    """Trigger the workflow for a queued report."""
    log = get_logger(report_id=report_id, job_try=ctx.get("job_try", 1))
    log.info("worker_dispatch_started")
    await run_generation(report_id, AsyncSessionLocal)
    return {"report_id": report_id}


async def startup(ctx: dict):
    configure_logging()


# Register functions for ARQ
ARQ_FUNCTIONS = [
    dispatch_generation,
]


async def enqueue_generation(report_id: str) -> bool:
    """Enqueue a generation dispatch using ARQ."""
    log = get_logger(report_id=report_id)
    try:
        redis = await create_pool(RedisSettings.from_dsn(settings.REDIS_URL))
        try:
            await redis.enqueue_job("dispatch_generation", report_id, _job_id=f"generation:{report_id}")
        finally:
            await redis.close()
    except (RedisError, OSError) as e:
        log.error("enqueue_failed", error=str(e))
        return False

    log.info("generation_enqueued")
    return True


class WorkerSettings:
    """Settings for ARQ worker - use with 'arq planpdf.worker.WorkerSettings'"""
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    job_timeout = 300
    # The continuation records its own failures, so retries would only re-trigger the workflow
    max_tries = 1
    on_startup = startup
    functions = ARQ_FUNCTIONS
