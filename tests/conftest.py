from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from app.services.metrics_service import MetricsCollector
from app.services.realtime import InMemoryBroadcaster
from app.services.viber_service import DispatchResult


@pytest.fixture
def db_session():
    """Mock database session."""
    return Mock()


@pytest.fixture
def mock_env(monkeypatch):
    """Set test environment variables."""
    monkeypatch.setenv("VIBER_BOT_TOKEN", "test-token")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("ENVIRONMENT", "test")


@pytest.fixture
def metrics():
    """Collector with a fixed memory reading so snapshots are deterministic."""
    return MetricsCollector(memory_reader=lambda: (1024, 4096))


@pytest.fixture
def broadcaster():
    return InMemoryBroadcaster()


@pytest.fixture
def dispatcher():
    service = Mock()
    service.send = AsyncMock(return_value=DispatchResult(success=True, provider_response={"status": 0}))
    service.send_text = AsyncMock(return_value=DispatchResult(success=True, provider_response={"status": 0}))
    return service


@pytest.fixture
def customer():
    return SimpleNamespace(id=uuid4(), viber_id="u1", name="Daw Aye")
