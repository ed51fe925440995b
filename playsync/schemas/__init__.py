"""
API request and response schemas (DTOs).
Separate from the domain models - these are for API endpoints and channel messages.
"""

from .playback import (
    UpdatePlaybackRequest,
    RegisterDeviceRequest,
    PlaybackStateResponse,
    SessionResponse,
    UpdatePlaybackResponse,
    DeviceResponse,
    RegisterDeviceResponse,
    DevicesResponse,
)
from .websocket import (
    ChannelMessage,
    ConnectedMessage,
    PlaybackUpdatedMessage,
    PongMessage,
)

__all__ = [
    # Playback schemas
    "UpdatePlaybackRequest",
    "RegisterDeviceRequest",
    "PlaybackStateResponse",
    "SessionResponse",
    "UpdatePlaybackResponse",
    "DeviceResponse",
    "RegisterDeviceResponse",
    "DevicesResponse",
    # Channel message schemas
    "ChannelMessage",
    "ConnectedMessage",
    "PlaybackUpdatedMessage",
    "PongMessage",
]
