"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite file database, an in-memory bucket and a
mocked workflow endpoint wired into the app through dependency overrides.
"""
import io
import os

# Settings are read at import time, so the environment comes first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["WORKFLOW_WEBHOOK_URL"] = "https://workflow.test/webhook/generate"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["SENTRY_DSN"] = ""

from datetime import date

import httpx
import pytest
from botocore.exceptions import ClientError
from pypdf import PdfWriter
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from planpdf.database import get_session_factory
from planpdf.dependencies.rate_limit import check_rate_limit
from planpdf.main import app as fastapi_app
from planpdf.models.base import Base
from planpdf.models.profile import Profile, UserRole, PlanTier, PlanStatus
from planpdf.services.generation_dispatcher import get_workflow_client
from planpdf.services.jwt_service import JWTService
from planpdf.services.storage_service import StorageService, get_storage
from planpdf.services.workflow_service import WorkflowClient

BUCKET = "business-plans"
WEBHOOK_URL = os.environ["WORKFLOW_WEBHOOK_URL"]


def make_pdf(pages: int) -> bytes:
    """A PDF with the given number of blank pages."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=595, height=842)
    output = io.BytesIO()
    writer.write(output)
    return output.getvalue()


def auth_headers(user_id: str, email: str | None = None) -> dict:
    token = JWTService().create_token(user_id, email or f"{user_id}@example.com")
    return {"Authorization": f"Bearer {token}"}


def valid_form(**overrides) -> dict:
    form = {
        "privacyAccepted": True,
        "businessName": "Cloud Kitchen Co",
        "businessDescription": "Delivery-only kitchen serving office workers",
        "numberOfEmployees": "5-10",
        "customerLocation": "Bengaluru",
        "offeringType": "products",
        "deliveryMethod": "online",
        "customerGroups": [{"description": "Office workers", "incomeLevel": "middle"}],
        "productsServices": [{"name": "Lunch boxes", "description": "Daily menu"}],
        "planCurrency": "INR",
    }
    form.update(overrides)
    return form


class _Body:
    def __init__(self, data: bytes):
        self._data = data

    def read(self) -> bytes:
        return self._data


class FakeS3Client:
    """In-memory stand-in for a boto3 S3 client."""

    def __init__(self):
        self.objects: dict[tuple[str, str], bytes] = {}
        self.puts: list[str] = []
        self.signed: list[dict] = []

    def _missing(self, operation: str, code: str = "NoSuchKey"):
        return ClientError({"Error": {"Code": code, "Message": "Not Found"}}, operation)

    def head_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise self._missing("HeadObject", "404")
        return {"ContentLength": len(self.objects[(Bucket, Key)])}

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise self._missing("GetObject")
        return {"Body": _Body(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket, Key, Body, ContentType=None):
        self.objects[(Bucket, Key)] = Body
        self.puts.append(Key)
        return {}

    def generate_presigned_url(self, operation, Params, ExpiresIn):
        self.signed.append({"operation": operation, "params": Params, "expires_in": ExpiresIn})
        url = f"https://storage.test/{Params['Bucket']}/{Params['Key']}?X-Amz-Expires={ExpiresIn}"
        if "ResponseContentDisposition" in Params:
            url += "&response-content-disposition=attachment"
        return url

    def put(self, key: str, data: bytes):
        self.objects[(BUCKET, key)] = data

    def get(self, key: str) -> bytes | None:
        return self.objects.get((BUCKET, key))


class FakeWorkflow:
    """Records webhook calls and answers with a configurable status."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.error: Exception | None = None
        self.on_request = None

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.on_request is not None:
            await self.on_request(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json={"accepted": self.status_code < 400})

    def client(self) -> WorkflowClient:
        return WorkflowClient(webhook_url=WEBHOOK_URL, transport=httpx.MockTransport(self.handler))


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'planpdf.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    await engine.dispose()


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fake_s3():
    return FakeS3Client()


@pytest.fixture
def storage(fake_s3):
    return StorageService(client=fake_s3, bucket=BUCKET)


@pytest.fixture
def workflow():
    return FakeWorkflow()


@pytest.fixture
def app(session_factory, storage, workflow):
    async def no_rate_limit():
        return None

    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    fastapi_app.dependency_overrides[get_storage] = lambda: storage
    fastapi_app.dependency_overrides[get_workflow_client] = workflow.client
    fastapi_app.dependency_overrides[check_rate_limit] = no_rate_limit
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.fixture
def add_profile(session_factory):
    async def _add_profile(
        user_id: str,
        role: UserRole = UserRole.USER,
        plan: PlanTier = PlanTier.FREE,
        plan_expiry: date | None = None
    ) -> Profile:
        async with session_factory() as session:
            profile = Profile(
                user_id=user_id,
                email=f"{user_id}@example.com",
                role=role,
                plan=plan,
                plan_status=PlanStatus.ACTIVE if plan == PlanTier.PRO else PlanStatus.FREE,
                plan_expiry=plan_expiry
            )
            session.add(profile)
            await session.commit()
            return profile

    return _add_profile
