from pydantic import AliasChoices, BaseModel, Field
from datetime import datetime, timezone

DEFAULT_VOLUME = 0.7

# Device ids are stored and broadcast verbatim; surrounding whitespace is rejected, never stripped
DEVICE_ID_PATTERN = r"^\S(.*\S)?$"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeviceInfo(BaseModel):
    """A device attached to a playback session"""
    device_id: str = Field(..., min_length=1, pattern=DEVICE_ID_PATTERN)
    display_name: str = Field(..., min_length=1, max_length=255)
    device_type: str = Field(..., min_length=1, max_length=50)  # web, mobile, desktop, ...
    last_seen: datetime = Field(default_factory=utcnow)


class PlaybackSession(BaseModel):
    """Canonical playback state for one session, as persisted"""
    session_id: str = Field(..., min_length=1)
    owner_id: str | None = None
    current_track_id: int | None = None
    position_seconds: float = Field(default=0.0, ge=0)
    is_playing: bool = False
    volume: float = Field(default=DEFAULT_VOLUME, ge=0.0, le=1.0)
    active_device_id: str | None = None
    connected_devices: dict[str, DeviceInfo] = Field(default_factory=dict)
    last_sync_at: datetime | None = None
    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)


class PlaybackUpdate(BaseModel):
    """
    Partial playback update sent by a device.

    A field left out (or sent as null) is not applied; the stored value stays.
    Wire names (current_song_id, current_time) are accepted as well.
    """
    current_track_id: int | None = Field(
        None, validation_alias=AliasChoices("current_track_id", "current_song_id")
    )
    position_seconds: float | None = Field(
        None, ge=0, allow_inf_nan=False, validation_alias=AliasChoices("position_seconds", "current_time")
    )
    is_playing: bool | None = None
    volume: float | None = Field(None, ge=0.0, le=1.0)

    class Config:
        extra = "forbid"

    def changes(self) -> dict:
        """Fields that are present in this update"""
        return self.model_dump(exclude_none=True)
