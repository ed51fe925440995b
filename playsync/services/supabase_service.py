from datetime import datetime
from typing import Any, Dict, Optional

from supabase import create_client, Client

from playsync.core.exceptions import SessionNotFoundException, VersionConflictException
from playsync.core.logging import get_logger
from playsync.models import DEFAULT_VOLUME, DeviceInfo, PlaybackSession
from playsync.services.session_store import UPDATABLE_FIELDS, SessionStore, generate_session_id

logger = get_logger("SupabaseSessionStore")

SESSION_TABLE = "playback_session"
REGISTER_DEVICE_FUNCTION = "register_playback_device"

# Retries for a version-guarded write losing a race against another writer
MAX_WRITE_ATTEMPTS = 5


def get_supabase_client(supabase_url: str, supabase_key: str) -> Client:
    return create_client(supabase_url, supabase_key)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SupabaseSessionStore(SessionStore):
    """
    Session store backed by the playback_session table.

    The schema and the register_playback_device function live in
    supabase/migrations.
    """

    def __init__(self, client: Client, default_volume: float = DEFAULT_VOLUME):
        super().__init__(default_volume)
        self.client = client

    # ==================== ROW MAPPING ====================

    @staticmethod
    def _to_row(session: PlaybackSession) -> dict:
        return session.model_dump(mode="json")

    @staticmethod
    def _from_row(row: dict) -> PlaybackSession:
        row = dict(row)
        row["connected_devices"] = row.get("connected_devices") or {}
        return PlaybackSession.model_validate(row)

    # ==================== SESSION OPERATIONS ====================

    async def get_or_create(self, session_id: Optional[str] = None, owner_id: Optional[str] = None) -> PlaybackSession:
        if session_id is None:
            session_id = generate_session_id()

        # INSERT ... ON CONFLICT DO NOTHING: concurrent creators end up with one row
        row = self._to_row(self.new_session(session_id, owner_id))
        self.client.table(SESSION_TABLE).upsert(
            row, on_conflict="session_id", ignore_duplicates=True
        ).execute()

        return await self.find(session_id)

    async def find(self, session_id: str) -> PlaybackSession:
        result = (
            self.client.table(SESSION_TABLE)
            .select("*")
            .eq("session_id", session_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            raise SessionNotFoundException(session_id)
        return self._from_row(result.data[0])

    async def save(self, session: PlaybackSession) -> None:
        self.client.table(SESSION_TABLE).upsert(
            self._to_row(session), on_conflict="session_id"
        ).execute()

    async def update_fields(
        self,
        session_id: str,
        fields: Dict[str, Any],
        expected_version: Optional[int] = None
    ) -> PlaybackSession:
        """
        Write only the given columns, guarded by the version read just before.

        Without expected_version a lost race is retried, so the last writer
        still wins per field. With expected_version a lost race is a conflict.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")

        data = {key: _serialize(value) for key, value in fields.items()}

        for attempt in range(1, MAX_WRITE_ATTEMPTS + 1):
            current = await self.find(session_id)
            if expected_version is not None and expected_version != current.version:
                raise VersionConflictException(session_id, expected_version, current.version)

            result = (
                self.client.table(SESSION_TABLE)
                .update({**data, "version": current.version + 1})
                .eq("session_id", session_id)
                .eq("version", current.version)
                .execute()
            )
            if result.data:
                return self._from_row(result.data[0])

            if expected_version is not None:
                latest = await self.find(session_id)
                raise VersionConflictException(session_id, expected_version, latest.version)

            logger.debug(f"Concurrent write on session {session_id}, retrying ({attempt}/{MAX_WRITE_ATTEMPTS})")

        latest = await self.find(session_id)
        raise VersionConflictException(session_id, None, latest.version)

    async def put_device(self, session_id: str, device: DeviceInfo) -> Dict[str, DeviceInfo]:
        # jsonb merge inside one UPDATE so concurrent registrations don't drop entries
        result = self.client.rpc(
            REGISTER_DEVICE_FUNCTION,
            {
                "p_session_id": session_id,
                "p_device_id": device.device_id,
                "p_device": device.model_dump(mode="json"),
            }
        ).execute()

        if result.data is None:
            raise SessionNotFoundException(session_id)

        return {
            device_id: DeviceInfo.model_validate(info)
            for device_id, info in result.data.items()
        }
