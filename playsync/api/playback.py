from fastapi import APIRouter, Depends, Query
from playsync.core.logging import get_logger
from playsync.dependencies import (
    get_current_owner,
    get_device_registry,
    get_session_store,
    get_state_reconciler,
)
from playsync.models import PlaybackUpdate
from playsync.schemas.playback import (
    DevicesResponse,
    RegisterDeviceRequest,
    RegisterDeviceResponse,
    SessionResponse,
    UpdatePlaybackRequest,
    UpdatePlaybackResponse,
)
from playsync.services.device_registry import DeviceRegistry
from playsync.services.session_store import SessionStore
from playsync.services.state_reconciler import StateReconciler
from playsync.utils.formatters import format_devices, format_playback_state

logger = get_logger("api.playback")
router = APIRouter()

PLAYBACK_FIELDS = {"current_song_id", "current_time", "is_playing", "volume"}


# ==================== SESSION ====================

@router.get("/session", response_model=SessionResponse)
async def get_session(
    session_id: str | None = Query(None),
    owner_id: str = Depends(get_current_owner),
    store: SessionStore = Depends(get_session_store)
):
    """
    Get a playback session, creating it when the id is missing or unknown.

    Returns:
    {
        "session_id": str,
        "playback_state": {
            "current_song_id": int | null,
            "current_time": float,
            "is_playing": bool,
            "volume": float,
            "active_device_id": str | null,
            "version": int
        }
    }
    """
    session = await store.get_or_create(session_id or None, owner_id=owner_id)
    logger.debug(f"Session {session.session_id} fetched for owner {owner_id}")
    return {
        "session_id": session.session_id,
        "playback_state": format_playback_state(session)
    }


# ==================== PLAYBACK UPDATES ====================

@router.post("/update", response_model=UpdatePlaybackResponse)
async def update_playback(
    request: UpdatePlaybackRequest,
    reconciler: StateReconciler = Depends(get_state_reconciler)
):
    """
    Apply a partial playback update from a device and broadcast the result.
    Omitted fields keep their stored value; the caller becomes the active device.
    """
    partial = PlaybackUpdate.model_validate(request.model_dump(include=PLAYBACK_FIELDS))
    session = await reconciler.apply_update(
        request.session_id,
        request.device_id,
        partial,
        expected_version=request.expected_version
    )
    return {
        "success": True,
        "playback_state": format_playback_state(session)
    }


# ==================== DEVICES ====================

@router.post("/device/register", response_model=RegisterDeviceResponse)
async def register_device(
    request: RegisterDeviceRequest,
    registry: DeviceRegistry = Depends(get_device_registry)
):
    """Attach a device to a session, or refresh it if already attached"""
    devices = await registry.register(
        request.session_id,
        request.device_id,
        request.device_name,
        request.device_type
    )
    return {
        "success": True,
        "devices": format_devices(devices)
    }


@router.get("/devices", response_model=DevicesResponse)
async def list_devices(
    session_id: str = Query(..., min_length=1),
    registry: DeviceRegistry = Depends(get_device_registry)
):
    """List the devices attached to a session and which one is active"""
    devices, active_device_id = await registry.list_devices(session_id)
    return {
        "devices": format_devices(devices),
        "active_device_id": active_device_id
    }
