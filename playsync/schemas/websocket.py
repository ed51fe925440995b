"""
Messages sent on a session's playback channel.
"""
from pydantic import BaseModel
from typing import Literal


# ==================== MESSAGE SCHEMAS ====================

class ChannelMessage(BaseModel):
    """Base channel message schema"""
    event: str
    channel: str
    data: dict


class ConnectedMessage(ChannelMessage):
    """Sent to a device right after it subscribes, carrying the current state"""
    event: Literal["connected"]


class PlaybackUpdatedMessage(ChannelMessage):
    """Broadcast after an accepted update; data.playbackState.updated_by names the sender"""
    event: Literal["playback.updated"]


class PongMessage(ChannelMessage):
    """Heartbeat response"""
    event: Literal["pong"]
