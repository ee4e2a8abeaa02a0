"""
Flobot Models

Pydantic models for the chat platform's REST and websocket payloads.
"""

from .mattermost import (
    Broadcast,
    Channel,
    EventType,
    Post,
    StatusError,
    User,
    WebSocketEvent,
)

__all__ = [
    "Broadcast",
    "Channel",
    "EventType",
    "Post",
    "StatusError",
    "User",
    "WebSocketEvent",
]
