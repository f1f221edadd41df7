"""
Generation dispatch tests: the workflow trigger and both dispatchers.
"""
import json

from fastapi import BackgroundTasks

from planpdf.config import settings
from planpdf.models.job import JobStatus
from planpdf.services import generation_dispatcher
from planpdf.services.generation_dispatcher import (
    BackgroundTaskDispatcher,
    QueueDispatcher,
    get_dispatcher,
)
from planpdf.services.job_service import JobService
from planpdf.services.workflow_service import WorkflowClient, run_generation
from planpdf.worker import WorkerSettings, dispatch_generation


REPORT_ID = "9a1d3e5f-7b2c-4d6e-8f0a-1b3c5d7e9f11"


async def queue_job(session_factory):
    async with session_factory() as session:
        await JobService(session).create_job(REPORT_ID, "user-1", {"businessName": "Acme"})


async def load_job(session_factory):
    async with session_factory() as session:
        return await JobService(session).get_job(REPORT_ID)


async def test_run_generation_marks_processing(session_factory, workflow):
    await queue_job(session_factory)

    await run_generation(REPORT_ID, session_factory, workflow.client())

    assert (await load_job(session_factory)).status == JobStatus.PROCESSING
    payload = json.loads(workflow.requests[0].content)
    assert payload == {"reportId": REPORT_ID, "userId": "user-1", "formData": {"businessName": "Acme"}}


async def test_callback_url_is_sent_when_configured(session_factory, workflow, monkeypatch):
    monkeypatch.setattr(settings, "CALLBACK_BASE_URL", "https://api.planpdf.test/")
    await queue_job(session_factory)

    await run_generation(REPORT_ID, session_factory, workflow.client())

    payload = json.loads(workflow.requests[0].content)
    assert payload["callbackUrl"] == "https://api.planpdf.test/api/reports/callback"


async def test_missing_webhook_url_fails_job(session_factory, monkeypatch):
    monkeypatch.setattr(settings, "WORKFLOW_WEBHOOK_URL", None)
    await queue_job(session_factory)

    await run_generation(REPORT_ID, session_factory, WorkflowClient())

    job = await load_job(session_factory)
    assert job.status == JobStatus.FAILED
    assert "WORKFLOW_WEBHOOK_URL" in job.error_message


async def test_completed_job_is_not_moved_back(session_factory, workflow):
    # Callback landed before the trigger returned
    await queue_job(session_factory)

    async def complete_first(request):
        async with session_factory() as session:
            await JobService(session).complete_job(REPORT_ID, "p.pdf", "f.pdf")

    workflow.on_request = complete_first

    await run_generation(REPORT_ID, session_factory, workflow.client())

    assert (await load_job(session_factory)).status == JobStatus.COMPLETED


async def test_missing_job_is_ignored(session_factory, workflow):
    await run_generation("unknown", session_factory, workflow.client())

    assert workflow.requests == []


async def test_background_dispatcher_schedules_task(session_factory, workflow):
    await queue_job(session_factory)
    tasks = BackgroundTasks()

    await BackgroundTaskDispatcher(session_factory, workflow.client()).dispatch(REPORT_ID, tasks)

    assert workflow.requests == []
    await tasks()
    assert (await load_job(session_factory)).status == JobStatus.PROCESSING


async def test_queue_dispatcher_enqueues(session_factory, monkeypatch):
    enqueued = []

    async def fake_enqueue(report_id):
        enqueued.append(report_id)
        return True

    monkeypatch.setattr(generation_dispatcher, "enqueue_generation", fake_enqueue)
    await queue_job(session_factory)

    await QueueDispatcher(session_factory).dispatch(REPORT_ID, BackgroundTasks())

    assert enqueued == [REPORT_ID]
    assert (await load_job(session_factory)).status == JobStatus.QUEUED


async def test_queue_failure_fails_job(session_factory, monkeypatch):
    async def broken_enqueue(report_id):
        return False

    monkeypatch.setattr(generation_dispatcher, "enqueue_generation", broken_enqueue)
    await queue_job(session_factory)

    await QueueDispatcher(session_factory).dispatch(REPORT_ID, BackgroundTasks())

    job = await load_job(session_factory)
    assert job.status == JobStatus.FAILED
    assert job.error_message == "Failed to queue report generation"


def test_dispatcher_follows_setting(session_factory, workflow, monkeypatch):
    monkeypatch.setattr(settings, "GENERATION_DISPATCH", "queue")
    assert isinstance(get_dispatcher(session_factory, workflow.client()), QueueDispatcher)

    monkeypatch.setattr(settings, "GENERATION_DISPATCH", "background")
    assert isinstance(get_dispatcher(session_factory, workflow.client()), BackgroundTaskDispatcher)


def test_worker_settings_run_generation_once():
    assert WorkerSettings.functions == [dispatch_generation]
    assert WorkerSettings.max_tries == 1
    assert WorkerSettings.on_startup is not None
