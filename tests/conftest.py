"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from playsync.dependencies import get_session_store, get_websocket_manager
from playsync.main import app as fastapi_app
from playsync.models import PlaybackSession
from playsync.services.broadcast_publisher import BroadcastPublisher
from playsync.services.session_store import InMemorySessionStore
from playsync.services.websocket_manager import WebSocketManager


@pytest.fixture
def store():
    """Fresh in-memory session store for each test."""
    return InMemorySessionStore()


@pytest.fixture
def channel_manager():
    """Fresh WebSocket pub/sub transport with no subscribers."""
    return WebSocketManager()


@pytest.fixture
def mock_publisher():
    """Publisher double that records publish calls."""
    publisher = AsyncMock(spec=BroadcastPublisher)
    publisher.publish = AsyncMock(return_value=None)
    return publisher


@pytest.fixture
def mock_websocket():
    """Mock WebSocket connection."""
    ws = AsyncMock()
    ws.accept = AsyncMock()
    ws.send_text = AsyncMock()
    ws.close = AsyncMock()
    return ws


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client; every table() call returns the same query builder."""
    client = MagicMock()
    client.table.return_value = MagicMock()
    return client


@pytest.fixture
def session_row():
    """A playback_session row as Supabase returns it."""
    def _row(**overrides):
        session = PlaybackSession(session_id="s1", owner_id="1", **overrides)
        return {"id": 1, "updated_at": "2025-12-12T10:20:59+00:00", **session.model_dump(mode="json")}
    return _row


@pytest.fixture
def api_app(store, channel_manager):
    """The FastAPI app wired to the per-test store and transport."""
    fastapi_app.dependency_overrides[get_session_store] = lambda: store
    fastapi_app.dependency_overrides[get_websocket_manager] = lambda: channel_manager
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def api_client(api_app):
    """Async HTTP client talking to the app in-process."""
    transport = ASGITransport(app=api_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def test_client(api_app):
    """Sync test client with lifespan, needed for WebSocket tests."""
    with TestClient(api_app) as client:
        yield client
