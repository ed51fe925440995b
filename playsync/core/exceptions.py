"""Exceptions raised by the playback sync core, with the HTTP status they map to."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error responses."""

    PLAYSYNC_ERROR = "PLAYSYNC_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VERSION_CONFLICT = "VERSION_CONFLICT"

    BROADCAST_FAILED = "BROADCAST_FAILED"

    CONFIG_ERROR = "CONFIG_ERROR"


class PlaybackSyncException(Exception):
    """Base exception for playback sync errors with HTTP status code support.

    Everything the core raises on purpose inherits from this class so the
    API layer can turn it into a structured JSON error.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.PLAYSYNC_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class SessionNotFoundException(PlaybackSyncException):
    """No playback session exists for the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(
            "Session not found",
            code=ErrorCode.SESSION_NOT_FOUND,
            status_code=404,
            details={"session_id": session_id},
        )


class VersionConflictException(PlaybackSyncException):
    """The caller's expected version no longer matches the stored session."""

    def __init__(self, session_id: str, expected_version: int | None, actual_version: int):
        self.session_id = session_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            "Session was modified by another device",
            code=ErrorCode.VERSION_CONFLICT,
            status_code=409,
            details={
                "session_id": session_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            },
        )


class BroadcastPublishException(PlaybackSyncException):
    """The broadcast channel could not be reached.

    Never surfaced to HTTP clients: the update it belongs to is already persisted.
    """

    def __init__(self, channel: str, message: str = "Broadcast channel unreachable"):
        self.channel = channel
        super().__init__(
            message,
            code=ErrorCode.BROADCAST_FAILED,
            status_code=503,
            details={"channel": channel},
        )


class ConfigurationException(PlaybackSyncException):
    """Configuration errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code=ErrorCode.CONFIG_ERROR, status_code=500, details=details)
