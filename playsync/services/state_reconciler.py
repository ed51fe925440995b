from typing import Annotated, Any, Mapping, Optional, Union

from pydantic import StringConstraints, TypeAdapter

from playsync.core.logging import get_logger
from playsync.models import DEVICE_ID_PATTERN, PlaybackSession, PlaybackUpdate, utcnow
from playsync.services.broadcast_publisher import BroadcastPublisher
from playsync.services.session_store import SessionStore

logger = get_logger("StateReconciler")


DeviceId = TypeAdapter(Annotated[str, StringConstraints(min_length=1, pattern=DEVICE_ID_PATTERN)])


class StateReconciler:
    """
    Merges partial updates from devices into the canonical session state.

    Merge policy is field-level last-writer-wins: each field present in the
    update overwrites the stored one, absent fields are kept, and the caller
    always becomes the active device. Two devices updating the same session
    at once race per field; whichever write the store applies last wins.
    """

    def __init__(self, store: SessionStore, publisher: BroadcastPublisher):
        self.store = store
        self.publisher = publisher

    async def apply_update(
        self,
        session_id: str,
        device_id: str,
        partial: Union[PlaybackUpdate, Mapping[str, Any]],
        expected_version: Optional[int] = None
    ) -> PlaybackSession:
        """
        Apply a device's partial update, persist it, then broadcast it.

        Args:
            session_id: Session to update
            device_id: Device sending the update; becomes active_device_id
            partial: Fields to change (current_track_id, position_seconds, is_playing, volume)
            expected_version: Optional optimistic concurrency token

        Returns:
            The full canonical session after the update

        Raises:
            ValidationError: invalid partial or device_id, nothing is written
            SessionNotFoundException: session_id is unknown, nothing is written or broadcast
            VersionConflictException: expected_version is stale, nothing is written or broadcast
        """
        device_id = DeviceId.validate_python(device_id)

        if not isinstance(partial, PlaybackUpdate):
            partial = PlaybackUpdate.model_validate(partial)

        changes = partial.changes()
        fields = {
            **changes,
            "active_device_id": device_id,
            "last_sync_at": utcnow(),
        }

        session = await self.store.update_fields(session_id, fields, expected_version=expected_version)
        logger.info(f"Session {session_id} v{session.version} updated by {device_id}: {changes or 'no playback fields'}")

        # Persist before publish: a device joining after the broadcast reads the same state
        await self.publisher.publish(session_id, session, device_id)

        return session
