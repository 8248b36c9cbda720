"""
Pytest fixtures for filing backend tests.
"""

import asyncio
import os
import sys
import tempfile
import uuid
from pathlib import Path

import pytest
from httpx import AsyncClient, ASGITransport

# Ensure backend is in path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before importing app
_TEST_DIR = Path(tempfile.mkdtemp(prefix="filing-tests-"))
os.environ["FILING_API_KEY"] = "test-api-key-for-testing"
os.environ["DISABLE_AUTH"] = "false"
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'applications.db'}"
os.environ["UPLOAD_DIR"] = str(_TEST_DIR / "uploads")

from core.errors import BlobStoreError, RenderError, StoreError  # noqa: E402
from filing.collaborators import (  # noqa: E402
    ApplicationStore,
    BlobStore,
    DocumentRenderer,
    SuggestionProvider,
)


# =============================================================================
# Collaborator fakes
# =============================================================================

class FakeSuggestionProvider(SuggestionProvider):
    """Returns canned suggestions; can be held open with ``gate`` or made to fail."""

    def __init__(self, suggestions=None, error=None):
        self.suggestions = suggestions if suggestions is not None else [
            "Narrow the title", "Name every inventor", "Quantify the advantages",
        ]
        self.error = error
        self.gate = None
        self.contexts = []

    async def suggest(self, context):
        self.contexts.append(context)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return list(self.suggestions)


class FakeRenderer(DocumentRenderer):
    """Renders markup to tagged bytes; titles in ``fail_on`` raise RenderError."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.rendered = []

    async def render(self, content):
        title = content.splitlines()[0].strip("= ").strip()
        if title in self.fail_on:
            raise RenderError(f"Cannot render {title}")
        self.rendered.append(title)
        return f"%PDF-fake {title}".encode("utf-8")


class FakeBlobStore(BlobStore):
    def __init__(self, fail=False):
        self.fail = fail
        self.gate = None
        self.blobs = {}

    async def upload(self, data, metadata):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise BlobStoreError("Blob storage unavailable")
        reference = f"/blobs/{metadata.category}/{metadata.name}"
        self.blobs[reference] = data
        return reference


class InMemoryApplicationStore(ApplicationStore):
    """Dict-backed store recording every write in order."""

    def __init__(self):
        self.rows = {}
        self.writes = []
        self.fail = False
        self.delay = 0

    async def _pause(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise StoreError("Store is down")

    async def insert(self, payload):
        await self._pause()
        application_id = uuid.uuid4().hex
        self.rows[application_id] = {"id": application_id, **payload}
        self.writes.append(("insert", application_id, payload))
        return application_id

    async def update(self, application_id, payload):
        await self._pause()
        if application_id not in self.rows:
            raise StoreError(f"Application {application_id} does not exist")
        self.rows[application_id].update(payload)
        self.writes.append(("update", application_id, payload))
        return dict(self.rows[application_id])

    async def fetch_by_id(self, application_id):
        await self._pause()
        row = self.rows.get(application_id)
        return dict(row) if row else None

    async def fetch_all_by_owner(self, owner_id):
        await self._pause()
        return [dict(row) for row in self.rows.values() if row.get("ownerId") == owner_id]

    async def delete(self, application_id):
        await self._pause()
        return self.rows.pop(application_id, None) is not None


@pytest.fixture
def suggestion_provider():
    return FakeSuggestionProvider()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def blob_store():
    return FakeBlobStore()


@pytest.fixture
def application_store():
    return InMemoryApplicationStore()


# =============================================================================
# Records
# =============================================================================

LONG_DESCRIPTION = (
    "The sensor array samples soil moisture at four depths and reports the readings "
    "over a low-power radio link. A controller compares the readings with crop-specific "
    "thresholds and opens irrigation valves only where the deepest reading is dry."
)


@pytest.fixture
def patent_basic_info():
    return {
        "title": "Soil moisture irrigation controller",
        "inventorNames": ["Ada Lovelace", "Charles Babbage"],
        "inventionType": "utility",
        "briefSummary": "Depth-aware irrigation control.",
    }


@pytest.fixture
def patent_description():
    return {
        "technicalField": "Agricultural irrigation",
        "backgroundArt": "Timers water whole fields regardless of soil state.",
        "detailedDescription": LONG_DESCRIPTION,
        "advantageousEffects": "Uses less water.",
    }


@pytest.fixture
def trademark_basic_info():
    return {
        "applicantName": "Acme Beverages Ltd",
        "markName": "FIZZWELL",
        "filingBasis": "use",
    }


@pytest.fixture
def controller():
    from filing.session import FilingSessionController

    return FilingSessionController(strict=False)


@pytest.fixture
def patent_session(controller):
    controller.select_filing_type("patent")
    return controller


@pytest.fixture
def trademark_session(controller):
    controller.select_filing_type("trademark")
    return controller


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def valid_api_key():
    """Return the valid API key for testing."""
    return os.environ["FILING_API_KEY"]


@pytest.fixture
def valid_headers(valid_api_key):
    """Return headers with valid API key."""
    return {"X-Filing-Key": valid_api_key}


@pytest.fixture
def invalid_headers():
    """Return headers with invalid API key."""
    return {"X-Filing-Key": "invalid-key-12345"}


@pytest.fixture
async def client(suggestion_provider, tmp_path):
    """Create an async test client for the FastAPI app."""
    from main import app
    from api.routers import sessions
    from core.rate_limit import limiter
    from services.blob_store import LocalBlobStore

    limiter.reset()
    app.dependency_overrides[sessions.get_suggestion_provider] = lambda: suggestion_provider
    app.dependency_overrides[sessions.get_blob_store] = lambda: LocalBlobStore(root=tmp_path / "blobs")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
