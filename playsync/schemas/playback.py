"""
Playback sync request and response schemas for API endpoints.
Field names follow the wire contract clients already speak.
"""
from pydantic import BaseModel, Field

from playsync.models import DEVICE_ID_PATTERN


# ==================== REQUEST SCHEMAS ====================

class UpdatePlaybackRequest(BaseModel):
    """Request schema for a device's partial playback update"""
    session_id: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1, pattern=DEVICE_ID_PATTERN)
    current_song_id: int | None = None
    current_time: float | None = Field(None, ge=0, allow_inf_nan=False)
    is_playing: bool | None = None
    volume: float | None = Field(None, ge=0.0, le=1.0)
    expected_version: int | None = Field(None, ge=0)

    class Config:
        extra = "forbid"


class RegisterDeviceRequest(BaseModel):
    """Request schema for attaching a device to a session"""
    session_id: str = Field(..., min_length=1)
    device_id: str = Field(..., min_length=1, pattern=DEVICE_ID_PATTERN)
    device_name: str = Field(..., min_length=1, max_length=255)
    device_type: str = Field(..., min_length=1, max_length=50)  # web, mobile, desktop


# ==================== RESPONSE SCHEMAS ====================

class PlaybackStateResponse(BaseModel):
    """Response schema for canonical playback state"""
    current_song_id: int | None = None
    current_time: float
    is_playing: bool
    volume: float
    active_device_id: str | None = None
    version: int


class SessionResponse(BaseModel):
    """Response schema for get-or-create session"""
    session_id: str
    playback_state: PlaybackStateResponse


class UpdatePlaybackResponse(BaseModel):
    """Response schema for an accepted update"""
    success: bool = True
    playback_state: PlaybackStateResponse


class DeviceResponse(BaseModel):
    """Response schema for one registered device"""
    name: str
    type: str
    last_seen: str


class RegisterDeviceResponse(BaseModel):
    """Response schema for device registration"""
    success: bool = True
    devices: dict[str, DeviceResponse]


class DevicesResponse(BaseModel):
    """Response schema for listing a session's devices"""
    devices: dict[str, DeviceResponse]
    active_device_id: str | None = None
