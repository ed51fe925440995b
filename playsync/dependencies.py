from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from playsync.config import get_settings
from playsync.core.logging import get_logger
from playsync.services.broadcast_publisher import BroadcastPublisher
from playsync.services.device_registry import DeviceRegistry
from playsync.services.jwt_service import verify_token
from playsync.services.session_store import SessionStore, build_session_store
from playsync.services.state_reconciler import StateReconciler
from playsync.services.websocket_manager import WebSocketManager, websocket_manager

logger = get_logger("Dependencies")
security = HTTPBearer(auto_error=False)


@lru_cache()
def get_session_store() -> SessionStore:
    return build_session_store(get_settings())


def get_websocket_manager() -> WebSocketManager:
    return websocket_manager


def get_broadcast_publisher(
    transport: WebSocketManager = Depends(get_websocket_manager)
) -> BroadcastPublisher:
    return BroadcastPublisher(transport)


def get_device_registry(store: SessionStore = Depends(get_session_store)) -> DeviceRegistry:
    return DeviceRegistry(store)


def get_state_reconciler(
    store: SessionStore = Depends(get_session_store),
    publisher: BroadcastPublisher = Depends(get_broadcast_publisher)
) -> StateReconciler:
    return StateReconciler(store, publisher)


async def get_current_owner(
    credentials: HTTPAuthorizationCredentials | None = Depends(security)
) -> str:
    """
    Resolve the account that owns new sessions.

    A bearer token must be valid and names the owner; without one the
    configured default owner is used.
    """
    if credentials is None:
        return get_settings().default_owner_id

    owner_id = verify_token(credentials.credentials)
    if owner_id is None:
        logger.warning("Invalid or expired token attempted")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Owner authenticated: {owner_id}")
    return owner_id
