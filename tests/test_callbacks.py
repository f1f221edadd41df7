"""
Workflow callback tests.
"""
import pytest

from planpdf.config import settings
from planpdf.models.job import JobStatus
from planpdf.services.job_service import JobService


REPORT_ID = "0b7e4a6c-2f58-4c52-b1d8-9a9f0e3c5d21"


@pytest.fixture
async def queued_job(session_factory):
    async with session_factory() as session:
        await JobService(session).create_job(REPORT_ID, "user-1", {"businessName": "Acme"})
    return REPORT_ID


async def load_job(session_factory):
    async with session_factory() as session:
        return await JobService(session).get_job(REPORT_ID)


async def test_success_callback_completes_job(client, queued_job, session_factory):
    response = await client.post("/api/reports/callback", json={
        "reportId": REPORT_ID,
        "previewPdfUrl": "https://cdn.test/preview.pdf",
        "fullPdfUrl": "https://cdn.test/full.pdf",
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "reportId": REPORT_ID}
    job = await load_job(session_factory)
    assert job.status == JobStatus.COMPLETED
    assert job.preview_artifact_path == "https://cdn.test/preview.pdf"
    assert job.full_artifact_path == "https://cdn.test/full.pdf"
    assert job.completed_at is not None


async def test_single_pdf_url_fills_both_paths(client, queued_job, session_factory):
    response = await client.post("/api/reports/callback", json={
        "reportId": REPORT_ID,
        "pdfUrl": "private/user-1/report.pdf",
    })

    assert response.status_code == 200
    job = await load_job(session_factory)
    assert job.preview_artifact_path == "private/user-1/report.pdf"
    assert job.full_artifact_path == "private/user-1/report.pdf"


async def test_full_url_only_is_used_as_preview(client, queued_job, session_factory):
    await client.post("/api/reports/callback", json={
        "reportId": REPORT_ID,
        "fullPdfUrl": "https://cdn.test/full.pdf",
    })

    job = await load_job(session_factory)
    assert job.preview_artifact_path == "https://cdn.test/full.pdf"
    assert job.full_artifact_path == "https://cdn.test/full.pdf"


async def test_error_callback_fails_job(client, queued_job, session_factory):
    response = await client.post("/api/reports/callback", json={
        "reportId": REPORT_ID,
        "error": "template rendering failed",
    })

    assert response.status_code == 200
    assert response.json() == {"success": False, "error": "template rendering failed"}
    job = await load_job(session_factory)
    assert job.status == JobStatus.FAILED
    assert job.error_message == "Workflow error: template rendering failed"


async def test_duplicate_callback_is_idempotent(client, queued_job, session_factory):
    first = {"reportId": REPORT_ID, "pdfUrl": "https://cdn.test/first.pdf"}
    await client.post("/api/reports/callback", json=first)
    completed = await load_job(session_factory)

    response = await client.post("/api/reports/callback", json={
        "reportId": REPORT_ID,
        "pdfUrl": "https://cdn.test/second.pdf",
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "reportId": REPORT_ID, "applied": False}
    job = await load_job(session_factory)
    assert job.preview_artifact_path == "https://cdn.test/first.pdf"
    assert job.completed_at == completed.completed_at


async def test_late_error_does_not_undo_completion(client, queued_job, session_factory):
    await client.post("/api/reports/callback", json={"reportId": REPORT_ID, "pdfUrl": "https://cdn.test/a.pdf"})

    response = await client.post("/api/reports/callback", json={"reportId": REPORT_ID, "error": "late"})

    assert response.json()["applied"] is False
    job = await load_job(session_factory)
    assert job.status == JobStatus.COMPLETED
    assert job.error_message is None


async def test_missing_report_id_is_400(client):
    response = await client.post("/api/reports/callback", json={"pdfUrl": "https://cdn.test/a.pdf"})

    assert response.status_code == 400
    assert response.json() == {"error": "reportId is required"}


async def test_unknown_report_id_is_404(client):
    response = await client.post("/api/reports/callback", json={
        "reportId": "does-not-exist",
        "pdfUrl": "https://cdn.test/a.pdf",
    })

    assert response.status_code == 404


async def test_callback_without_pdf_or_error_fails_job(client, queued_job, session_factory):
    response = await client.post("/api/reports/callback", json={"reportId": REPORT_ID})

    assert response.status_code == 400
    job = await load_job(session_factory)
    assert job.status == JobStatus.FAILED
    assert job.error_message


async def test_callback_secret_is_enforced_when_configured(client, queued_job, monkeypatch):
    monkeypatch.setattr(settings, "CALLBACK_SECRET", "shared-secret")
    body = {"reportId": REPORT_ID, "pdfUrl": "https://cdn.test/a.pdf"}

    missing = await client.post("/api/reports/callback", json=body)
    wrong = await client.post("/api/reports/callback", json=body, headers={"X-Callback-Secret": "nope"})
    right = await client.post("/api/reports/callback", json=body, headers={"X-Callback-Secret": "shared-secret"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert right.status_code == 200
