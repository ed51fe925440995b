from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from playsync.core.exceptions import SessionNotFoundException
from playsync.core.logging import get_logger
from playsync.dependencies import get_session_store, get_websocket_manager
from playsync.models import DEVICE_ID_PATTERN
from playsync.schemas.websocket import ConnectedMessage, PongMessage
from playsync.services.broadcast_publisher import channel_name
from playsync.services.session_store import SessionStore
from playsync.services.websocket_manager import WebSocketManager
from playsync.utils.formatters import format_playback_state

logger = get_logger("api.websocket")
router = APIRouter()


@router.websocket("/ws/playback/{session_id}")
async def playback_channel(
    websocket: WebSocket,
    session_id: str,
    device_id: str = Query(..., min_length=1, pattern=DEVICE_ID_PATTERN),
    store: SessionStore = Depends(get_session_store),
    manager: WebSocketManager = Depends(get_websocket_manager)
):
    """
    Subscribe a device to its session's playback channel.

    The device receives:
    - "connected" with the current playback state, right after subscribing
    - "playback.updated" for every accepted update, including its own
      (compare data.playbackState.updated_by with your device id to skip echoes)
    - "pong" in reply to a text "ping"
    """
    channel = channel_name(session_id)

    try:
        session = await store.find(session_id)
    except SessionNotFoundException:
        logger.warning(f"Subscription rejected for device {device_id}: session {session_id} not found")
        await websocket.close(code=1008, reason="Session not found")
        return

    await manager.subscribe(websocket, channel)
    logger.info(f"Device {device_id} subscribed to {channel} - {manager.get_subscriber_count(channel)} total")

    try:
        # Current state first, so the device starts consistent with the store
        connected = ConnectedMessage(
            event="connected",
            channel=channel,
            data={
                "device_id": device_id,
                "playbackState": format_playback_state(session)
            }
        )
        await manager.send_personal_message(websocket, connected.model_dump())

        while True:
            data = await websocket.receive_text()
            if data == "ping":
                pong = PongMessage(event="pong", channel=channel, data={})
                await manager.send_personal_message(websocket, pong.model_dump())

    except WebSocketDisconnect:
        logger.info(f"Device {device_id} disconnected from {channel}")

    except Exception as e:
        logger.error(f"WebSocket error for device {device_id} on {channel}: {e}", exc_info=True)
        try:
            await websocket.close(code=1011, reason="Internal error")
        except RuntimeError:
            # Already closed by the peer
            pass

    finally:
        manager.unsubscribe(websocket, channel)
        logger.debug(f"Device {device_id} cleaned up from {channel} - {manager.get_subscriber_count(channel)} remaining")
