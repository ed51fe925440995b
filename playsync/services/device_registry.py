from typing import Dict, Optional, Tuple

from playsync.core.logging import get_logger
from playsync.models import DeviceInfo, utcnow
from playsync.services.session_store import SessionStore

logger = get_logger("DeviceRegistry")


class DeviceRegistry:
    """
    Tracks which devices are attached to a playback session.

    Devices are never evicted; an entry stays until the same device_id
    registers again.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    async def register(
        self,
        session_id: str,
        device_id: str,
        display_name: str,
        device_type: str
    ) -> Dict[str, DeviceInfo]:
        """
        Upsert a device entry and stamp its last_seen.

        Returns:
            Every device of the session, keyed by device_id

        Raises:
            SessionNotFoundException: session_id is unknown
        """
        device = DeviceInfo(
            device_id=device_id,
            display_name=display_name,
            device_type=device_type,
            last_seen=utcnow()
        )
        devices = await self.store.put_device(session_id, device)
        logger.info(f"Device {display_name} ({device_id}, {device_type}) registered on session {session_id} - {len(devices)} total")
        return devices

    async def list_devices(self, session_id: str) -> Tuple[Dict[str, DeviceInfo], Optional[str]]:
        """Return (devices, active_device_id) for a session"""
        session = await self.store.find(session_id)
        return session.connected_devices, session.active_device_id
