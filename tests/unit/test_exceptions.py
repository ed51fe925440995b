"""Unit tests for the exception hierarchy and its HTTP mapping."""

import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from playsync.main import app as playsync_app

from playsync.core.error_handlers import (
    general_exception_handler,
    playback_sync_exception_handler,
    register_error_handlers,
)
from playsync.core.exceptions import (
    BroadcastPublishException,
    ConfigurationException,
    ErrorCode,
    PlaybackSyncException,
    SessionNotFoundException,
    VersionConflictException,
)


def _request(path: str = "/api/playback/update", method: str = "POST") -> Request:
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "headers": [],
        "query_string": b"",
    })


def test_base_exception_defaults():
    """Base exception defaults to a 500 with no details."""
    exc = PlaybackSyncException("boom")

    assert exc.message == "boom"
    assert exc.code == ErrorCode.PLAYSYNC_ERROR
    assert exc.status_code == 500
    assert exc.details == {}
    assert str(exc) == "boom"


def test_session_not_found():
    """SessionNotFoundException maps to 404."""
    exc = SessionNotFoundException("s1")

    assert exc.status_code == 404
    assert exc.message == "Session not found"
    assert exc.code == ErrorCode.SESSION_NOT_FOUND
    assert exc.details == {"session_id": "s1"}


def test_version_conflict():
    """VersionConflictException maps to 409 and carries both versions."""
    exc = VersionConflictException("s1", expected_version=2, actual_version=5)

    assert exc.status_code == 409
    assert exc.details["expected_version"] == 2
    assert exc.details["actual_version"] == 5


def test_broadcast_and_config_exceptions():
    """Remaining exceptions keep the shared base."""
    assert isinstance(BroadcastPublishException("playback.s1"), PlaybackSyncException)
    assert BroadcastPublishException("playback.s1").code == ErrorCode.BROADCAST_FAILED
    assert ConfigurationException("bad").code == ErrorCode.CONFIG_ERROR


@pytest.mark.asyncio
async def test_handler_renders_error_body():
    """Core exceptions render as {"error", "code", "details"}."""
    response = await playback_sync_exception_handler(_request(), SessionNotFoundException("s1"))

    assert response.status_code == 404
    body = json.loads(response.body)
    assert body["error"] == "Session not found"
    assert body["code"] == "SESSION_NOT_FOUND"
    assert body["details"] == {"session_id": "s1"}


@pytest.mark.asyncio
async def test_handler_omits_empty_details():
    """No details key when there is nothing to add."""
    response = await playback_sync_exception_handler(_request(), PlaybackSyncException("boom"))

    assert json.loads(response.body) == {"error": "boom", "code": "PLAYSYNC_ERROR"}


@pytest.mark.asyncio
async def test_general_handler_hides_internals():
    """Unexpected errors become a generic 500."""
    response = await general_exception_handler(_request(), RuntimeError("database password is hunter2"))

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body == {"error": "Internal server error", "code": "INTERNAL_ERROR"}


def test_app_serves_generic_500_by_default():
    """With default settings an unhandled error reaches the generic handler, not a traceback page."""
    assert playsync_app.debug is False

    app = FastAPI(debug=playsync_app.debug)
    register_error_handlers(app)

    @app.get("/explode")
    async def explode():
        raise RuntimeError("database password is hunter2")

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/explode")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "code": "INTERNAL_ERROR"}
    assert "hunter2" not in response.text
