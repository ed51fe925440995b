import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from playsync.core.exceptions import ConfigurationException, SessionNotFoundException, VersionConflictException
from playsync.core.logging import get_logger
from playsync.models import DEFAULT_VOLUME, DeviceInfo, PlaybackSession

logger = get_logger("SessionStore")

# Fields a playback update may write; everything else is owned by the store
UPDATABLE_FIELDS = {
    "current_track_id",
    "position_seconds",
    "is_playing",
    "volume",
    "active_device_id",
    "last_sync_at",
}


def generate_session_id() -> str:
    return str(uuid.uuid4())


class SessionStore(ABC):
    """
    Persists one PlaybackSession per session id.

    Implementations must make get_or_create, update_fields and put_device
    atomic per session id.
    """

    def __init__(self, default_volume: float = DEFAULT_VOLUME):
        self.default_volume = default_volume

    def new_session(self, session_id: str, owner_id: Optional[str]) -> PlaybackSession:
        return PlaybackSession(session_id=session_id, owner_id=owner_id, volume=self.default_volume)

    @abstractmethod
    async def get_or_create(self, session_id: Optional[str] = None, owner_id: Optional[str] = None) -> PlaybackSession:
        """
        Return the session for session_id, creating it if needed.

        A missing session_id gets a freshly generated one. An existing
        record is returned unchanged.
        """

    @abstractmethod
    async def find(self, session_id: str) -> PlaybackSession:
        """Return the stored session or raise SessionNotFoundException"""

    @abstractmethod
    async def save(self, session: PlaybackSession) -> None:
        """Persist the full record"""

    @abstractmethod
    async def update_fields(
        self,
        session_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> PlaybackSession:
        """
        Overwrite only the given fields and bump the version.

        Args:
            session_id: Session to update
            fields: Field values to write (subset of UPDATABLE_FIELDS)
            expected_version: If set, reject the write unless it matches the stored version

        Raises:
            SessionNotFoundException: session_id is unknown
            VersionConflictException: expected_version is stale
        """

    @abstractmethod
    async def put_device(self, session_id: str, device: DeviceInfo) -> Dict[str, DeviceInfo]:
        """Insert or overwrite one device entry and return every device of the session"""


class InMemorySessionStore(SessionStore):
    """
    Process-local store, used in development and tests.

    A single asyncio.Lock serializes writes. Records are copied on the way in
    and out so callers never hold a reference to stored state.
    """

    def __init__(self, default_volume: float = DEFAULT_VOLUME):
        super().__init__(default_volume)
        self.sessions: Dict[str, PlaybackSession] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(self, session_id: Optional[str] = None, owner_id: Optional[str] = None) -> PlaybackSession:
        async with self._lock:
            if session_id is None:
                session_id = generate_session_id()

            session = self.sessions.get(session_id)
            if session is None:
                session = self.new_session(session_id, owner_id)
                self.sessions[session_id] = session
                logger.info(f"Created playback session {session_id}")

            return session.model_copy(deep=True)

    async def find(self, session_id: str) -> PlaybackSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundException(session_id)
        return session.model_copy(deep=True)

    async def save(self, session: PlaybackSession) -> None:
        async with self._lock:
            self.sessions[session.session_id] = session.model_copy(deep=True)

    async def update_fields(
        self,
        session_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> PlaybackSession:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        async with self._lock:
            current = self.sessions.get(session_id)
            if current is None:
                raise SessionNotFoundException(session_id)
            if expected_version is not None and expected_version != current.version:
                raise VersionConflictException(session_id, expected_version, current.version)

            updated = current.model_copy(update={**fields, "version": current.version + 1}, deep=True)
            self.sessions[session_id] = updated
            return updated.model_copy(deep=True)

    async def put_device(self, session_id: str, device: DeviceInfo) -> Dict[str, DeviceInfo]:
        async with self._lock:
            session = self.sessions.get(session_id)
            if session is None:
                raise SessionNotFoundException(session_id)

            session.connected_devices[device.device_id] = device.model_copy()
            return {
                device_id: info.model_copy()
                for device_id, info in session.connected_devices.items()
            }


def build_session_store(settings) -> SessionStore:
    """Create the store selected by settings.session_store_backend"""
    if settings.session_store_backend == "memory":
        logger.info("Using in-memory session store")
        return InMemorySessionStore(default_volume=settings.default_volume)

    if settings.session_store_backend == "supabase":
        if not settings.supabase_url or not settings.supabase_key:
            raise ConfigurationException(
                "supabase_url and supabase_key are required for the supabase session store"
            )
        from playsync.services.supabase_service import SupabaseSessionStore, get_supabase_client

        logger.info(f"Using Supabase session store at {settings.supabase_url}")
        client = get_supabase_client(settings.supabase_url, settings.supabase_key)
        return SupabaseSessionStore(client, default_volume=settings.default_volume)

    raise ConfigurationException(f"Unknown session store backend: {settings.session_store_backend}")
