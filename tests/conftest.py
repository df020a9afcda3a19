# tests/conftest.py

import pytest
from fastapi.testclient import TestClient

from passgate.api import deps
from passgate.core.config import Settings, get_settings
from passgate.core.limiter import export_limiter, limiter
from passgate.db.memory import InMemoryDocumentStore
from passgate.db.session import COMPOSITE_INDEXES
from passgate.main import app
from passgate.services.pass_management.qr_signing import QRTokenSigner
from tests.utils.auth import TEST_JWT_SECRET, TEST_QR_SECRET


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        JWT_SECRET=TEST_JWT_SECRET,
        QR_SECRET_KEY=TEST_QR_SECRET,
        STORE_BACKEND="memory",
    )

@pytest.fixture
def store() -> InMemoryDocumentStore:
    """Fresh in-memory store with the production composite indexes declared."""
    return InMemoryDocumentStore(batch_size=10, composite_indexes=COMPOSITE_INDEXES)

@pytest.fixture
def signer() -> QRTokenSigner:
    return QRTokenSigner(TEST_QR_SECRET)

@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    export_limiter.reset()
    yield
    limiter.reset()
    export_limiter.reset()

@pytest.fixture
def client(store, test_settings):
    """
    TestClient wired to the in-memory store and test secrets.
    This is for INTEGRATION tests.
    """
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: test_settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
