"""
Bot Instances

The instance owns the platform session and the middleware/handler chains,
and dispatches every live event through them.
"""

from .base import Handler, Instance, Middleware, stage_name
from .mattermost import MattermostInstance

__all__ = [
    "Handler",
    "Instance",
    "Middleware",
    "MattermostInstance",
    "stage_name",
]
