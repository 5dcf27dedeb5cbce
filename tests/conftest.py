"""
Pytest fixtures for trialdesk tests.
"""
from typing import Callable, List

import httpx
import pytest

from trialdesk.schemas.fallback import LocalFallbackRecord
from trialdesk.services.backend_client import BackendClient
from trialdesk.services.local_store import FallbackRecordStore, LocalStore
from trialdesk.session import UserSession
from tests.fixtures.review_backend import ReviewBackend

BASE_URL = "http://testserver"


class CountingFallbackStore(FallbackRecordStore):
    """FallbackRecordStore that remembers every save."""

    def __init__(self, store: LocalStore):
        super().__init__(store)
        self.saved: List[LocalFallbackRecord] = []

    async def save(self, record: LocalFallbackRecord) -> LocalFallbackRecord:
        self.saved.append(record)
        return await super().save(record)


@pytest.fixture
def review_backend() -> ReviewBackend:
    return ReviewBackend()


@pytest.fixture
def backend(review_backend) -> BackendClient:
    """BackendClient wired to the in-memory FastAPI backend."""
    http_client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=review_backend.app),
        event_hooks={"request": [review_backend.record]},
    )
    return BackendClient(base_url=BASE_URL, client=http_client)


@pytest.fixture
def mock_backend() -> Callable[[Callable], BackendClient]:
    """Factory: BackendClient over an httpx.MockTransport handler."""
    def _make(handler) -> BackendClient:
        return BackendClient(base_url=BASE_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    return _make


@pytest.fixture
def local_store(tmp_path) -> LocalStore:
    return LocalStore(namespace="test", base_dir=str(tmp_path))


@pytest.fixture
def fallback_store(local_store) -> CountingFallbackStore:
    return CountingFallbackStore(local_store)


@pytest.fixture
def session() -> UserSession:
    return UserSession(user_id="user-1", token="token-abc", email="curator@example.org", roles=["Admin"])


@pytest.fixture
def anonymous_session() -> UserSession:
    return UserSession(user_id=None)
