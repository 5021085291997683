"""Shared test fixtures for the call-intake tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
The LLM and CRM are replaced by httpx mock transports.
"""

import json
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("EXTERNAL_CRM_AUTHCODE", "test-authcode")

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from call_intake.core.database import Base, get_db
from call_intake.core.dependencies import get_pipeline
from call_intake.main import app
from call_intake.models.caller import Caller  # noqa: F401
from call_intake.services.call_analyzer import CallAnalyzer
from call_intake.services.crm import CrmForwarder
from call_intake.services.pipeline import IngestionPipeline

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
GEMINI_URL = "https://gemini.test/v1beta"
CRM_URL = "https://crm.test/api_v2/savecontact_v2"

# StaticPool keeps one connection, so every session sees the same in-memory DB
engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def gemini_response(analysis: dict) -> dict:
    """A generateContent envelope whose generated text is the given JSON."""
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(analysis)}]}}]}


GOOD_ANALYSIS = {
    "Call Status": "Connected-IB",
    "Lead Status": "Interested",
    "contact_status": "Interested",
    "remark": "Wants details on the two-wheeler mechanic course.",
    "contact_followupdate": "2026-10-21",
    "contact_followuptime": "Evening",
}


class Recorder:
    """Collects requests seen by a mock transport."""

    def __init__(self, handler):
        self.requests: list[httpx.Request] = []
        self._handler = handler
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


@pytest.fixture
def mock_http():
    """Factory: mock_http(handler) -> Recorder with a MockTransport."""
    return Recorder


@pytest.fixture
def gemini_envelope():
    return gemini_response


@pytest.fixture
def good_analysis():
    return dict(GOOD_ANALYSIS)


@pytest.fixture
def gemini():
    """Gemini mock returning GOOD_ANALYSIS."""
    return Recorder(lambda request: httpx.Response(200, json=gemini_response(GOOD_ANALYSIS)))


@pytest.fixture
def crm():
    """CRM mock accepting every contact."""
    return Recorder(lambda request: httpx.Response(200, json={"status": "success"}))


@pytest.fixture
def pipeline(gemini, crm):
    return IngestionPipeline(
        analyzer=CallAnalyzer(api_key="test-gemini-key", base_url=GEMINI_URL, transport=gemini.transport),
        forwarder=CrmForwarder(url=CRM_URL, authcode="test-authcode", transport=crm.transport),
    )


@pytest_asyncio.fixture
async def client(pipeline):
    """Async HTTP test client wired to the mocked pipeline."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session
