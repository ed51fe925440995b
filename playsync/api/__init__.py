"""
API routes for playsync.
"""
from playsync.api import playback, websocket

__all__ = ["playback", "websocket"]
