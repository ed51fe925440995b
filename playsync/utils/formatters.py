from typing import Any, Dict, Optional

from playsync.models import DeviceInfo, PlaybackSession


def format_playback_state(session: PlaybackSession) -> Dict[str, Any]:
    """
    Format the canonical playback state with the wire field names clients use.

    Args:
        session: Stored playback session

    Returns:
        {current_song_id, current_time, is_playing, volume, active_device_id, version}
    """
    return {
        "current_song_id": session.current_track_id,
        "current_time": session.position_seconds,
        "is_playing": session.is_playing,
        "volume": session.volume,
        "active_device_id": session.active_device_id,
        "version": session.version,
    }


def format_device(device: DeviceInfo) -> Dict[str, Any]:
    return {
        "name": device.display_name,
        "type": device.device_type,
        "last_seen": device.last_seen.isoformat(),
    }


def format_devices(devices: Dict[str, DeviceInfo]) -> Dict[str, Dict[str, Any]]:
    """Format a device mapping as {device_id: {name, type, last_seen}}"""
    return {device_id: format_device(device) for device_id, device in devices.items()}


def format_broadcast_state(session: PlaybackSession, updated_by: Optional[str]) -> Dict[str, Any]:
    """Playback state as broadcast, tagged with the device that caused it"""
    return {
        **format_playback_state(session),
        "updated_by": updated_by,
    }
