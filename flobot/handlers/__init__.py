"""
Built-in Handlers

- HelpHandler: !help and !help <name>
- TriggerHandler: per-team automatic replies and reactions
- EditHandler: per-team and per-user message rewrites
"""

from .base import PostHandler
from .edit import EditHandler
from .help import HelpHandler
from .trigger import TriggerHandler, valid_match

__all__ = [
    "PostHandler",
    "EditHandler",
    "HelpHandler",
    "TriggerHandler",
    "valid_match",
]
