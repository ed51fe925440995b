from playsync.core.logging import get_logger
from playsync.models import PlaybackSession
from playsync.services.websocket_manager import WebSocketManager
from playsync.utils.formatters import format_broadcast_state

logger = get_logger("BroadcastPublisher")

CHANNEL_PREFIX = "playback."
PLAYBACK_UPDATED_EVENT = "playback.updated"


def channel_name(session_id: str) -> str:
    """Channel every device of a session listens on"""
    return f"{CHANNEL_PREFIX}{session_id}"


def build_playback_updated_message(session: PlaybackSession, originating_device_id: str | None) -> dict:
    channel = channel_name(session.session_id)
    return {
        "event": PLAYBACK_UPDATED_EVENT,
        "channel": channel,
        "data": {
            "playbackState": format_broadcast_state(session, originating_device_id)
        }
    }


class BroadcastPublisher:
    """
    Fans out canonical playback state to a session's channel.

    Publishing never raises: the store already holds the truth, and a
    device that missed a broadcast catches up on its next session fetch.
    """

    def __init__(self, transport: WebSocketManager):
        self.transport = transport

    async def publish(self, session_id: str, canonical_state: PlaybackSession, originating_device_id: str | None) -> None:
        channel = channel_name(session_id)
        message = build_playback_updated_message(canonical_state, originating_device_id)

        try:
            delivered = await self.transport.broadcast(channel, message)
        except Exception as e:
            logger.warning(f"Broadcast on {channel} failed, devices will resync on next fetch: {e}")
            return

        logger.debug(f"Published {PLAYBACK_UPDATED_EVENT} v{canonical_state.version} from {originating_device_id} to {delivered} subscriber(s) on {channel}")
