"""
Platform Clients

- MattermostClient: REST calls (identity, channels, posts, reactions)
- WebSocketClient: live event stream
"""

from .mattermost import MattermostClient
from .websocket import WebSocketClient

__all__ = [
    "MattermostClient",
    "WebSocketClient",
]
