from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from playsync import __version__
from playsync.api import playback, websocket
from playsync.config import get_settings
from playsync.core.error_handlers import register_error_handlers
from playsync.core.logging import setup_logging, get_logger
from playsync.dependencies import get_session_store
from playsync.services.websocket_manager import websocket_manager

# Configure logging before anything else
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Build the store up front so a bad backend configuration fails at startup
    store = get_session_store()
    logger.info(f"Application startup: {type(store).__name__} ready, environment={settings.environment}")

    yield

    logger.info("Application shutdown: closing playback channel subscriptions...")
    await websocket_manager.close_all()
    logger.info("All subscriptions closed")


app = FastAPI(
    title="playsync",
    description="Multi-device playback synchronization",
    version=__version__,
    debug=settings.debug,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(playback.router, prefix=f"{settings.api_prefix}/playback", tags=["Playback"])
app.include_router(websocket.router, tags=["WebSocket"])


@app.get("/")
async def root():
    return {"message": "playsync is running", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": __version__}
