"""
Headless client for the playback sync API.

Session and device identity are passed explicitly on every call through a
SyncContext rather than kept as process-wide state.
"""
import secrets
import string
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import httpx

from playsync.core.exceptions import SessionNotFoundException
from playsync.core.logging import get_logger
from playsync.services.broadcast_publisher import PLAYBACK_UPDATED_EVENT

logger = get_logger("PlaybackSyncClient")

DEVICE_ID_SUFFIX_LENGTH = 9


def generate_device_id() -> str:
    """Client-side device id, stable for as long as the caller keeps it"""
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(DEVICE_ID_SUFFIX_LENGTH))
    return f"device_{int(time.time() * 1000)}_{suffix}"


@dataclass(frozen=True)
class SyncContext:
    """Which session this device is synchronizing, and who the device is"""
    session_id: str
    device_id: str


def is_own_echo(context: SyncContext, message: Dict[str, Any]) -> bool:
    """True when a channel message is the broadcast of this device's own update"""
    if message.get("event") != PLAYBACK_UPDATED_EVENT:
        return False
    state = message.get("data", {}).get("playbackState", {})
    return state.get("updated_by") == context.device_id


class PlaybackSyncClient:
    """
    Thin async wrapper over the HTTP endpoints.

    Raises SessionNotFoundException on 404 so the caller can start over with
    connect(); any other error status propagates as httpx.HTTPStatusError.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        api_prefix: str = "/api",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self.api_prefix = api_prefix
        self.http = httpx.AsyncClient(base_url=base_url, headers=headers, transport=transport, timeout=timeout)

    async def __aenter__(self) -> "PlaybackSyncClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.http.aclose()

    def _url(self, path: str) -> str:
        return f"{self.api_prefix}/playback{path}"

    @staticmethod
    def _check(response: httpx.Response, session_id: Optional[str]) -> Dict[str, Any]:
        if response.status_code == 404 and session_id is not None:
            raise SessionNotFoundException(session_id)
        response.raise_for_status()
        return response.json()

    # ==================== SESSION ====================

    async def get_session(self, session_id: Optional[str] = None) -> Tuple[str, Dict[str, Any]]:
        """Get-or-create a session; returns (session_id, playback_state)"""
        params = {"session_id": session_id} if session_id else None
        response = await self.http.get(self._url("/session"), params=params)
        data = self._check(response, None)
        return data["session_id"], data["playback_state"]

    async def connect(
        self,
        device_id: str,
        device_name: str,
        device_type: str = "web",
        session_id: Optional[str] = None
    ) -> Tuple[SyncContext, Dict[str, Any]]:
        """
        Join (or start) a session and register this device on it.

        Returns:
            The context to use for later calls and the current playback state
        """
        resolved_id, state = await self.get_session(session_id)
        context = SyncContext(session_id=resolved_id, device_id=device_id)
        await self.register_device(context, device_name, device_type)
        logger.info(f"Device {device_id} joined session {resolved_id}")
        return context, state

    # ==================== PLAYBACK ====================

    async def update(
        self,
        context: SyncContext,
        expected_version: Optional[int] = None,
        **changes: Any
    ) -> Dict[str, Any]:
        """
        Send a partial update (current_song_id, current_time, is_playing, volume).

        Returns:
            The canonical playback state after the update
        """
        body = {
            "session_id": context.session_id,
            "device_id": context.device_id,
            **{key: value for key, value in changes.items() if value is not None},
        }
        if expected_version is not None:
            body["expected_version"] = expected_version

        response = await self.http.post(self._url("/update"), json=body)
        return self._check(response, context.session_id)["playback_state"]

    # ==================== DEVICES ====================

    async def register_device(self, context: SyncContext, device_name: str, device_type: str) -> Dict[str, Any]:
        response = await self.http.post(
            self._url("/device/register"),
            json={
                "session_id": context.session_id,
                "device_id": context.device_id,
                "device_name": device_name,
                "device_type": device_type,
            }
        )
        return self._check(response, context.session_id)["devices"]

    async def list_devices(self, context: SyncContext) -> Tuple[Dict[str, Any], Optional[str]]:
        """Returns (devices, active_device_id)"""
        response = await self.http.get(self._url("/devices"), params={"session_id": context.session_id})
        data = self._check(response, context.session_id)
        return data["devices"], data["active_device_id"]
