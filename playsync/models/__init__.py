"""
Domain models for playsync.
These Pydantic models map to the persisted playback_session record.
"""

from .playback_session import (
    DEFAULT_VOLUME,
    DEVICE_ID_PATTERN,
    DeviceInfo,
    PlaybackSession,
    PlaybackUpdate,
    utcnow,
)

__all__ = [
    "DEFAULT_VOLUME",
    "DEVICE_ID_PATTERN",
    "DeviceInfo",
    "PlaybackSession",
    "PlaybackUpdate",
    "utcnow",
]
