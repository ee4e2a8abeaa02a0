"""
Built-in Middlewares

Pre-filters run before any handler. Each returns True to let the event
through and False to drop it silently.
"""

import logging

from .instance.base import Instance
from .models import EventType, WebSocketEvent

logger = logging.getLogger("flobot.middleware")


async def ignore_self(instance: Instance, event: WebSocketEvent) -> bool:
    """Drop posts authored by the bot, so it never reacts to itself"""
    if event.event not in (EventType.POSTED.value, EventType.POST_EDITED.value):
        return True
    post = event.post()
    if post is None:
        return True
    return post.user_id != instance.me.id


async def posted_only(instance: Instance, event: WebSocketEvent) -> bool:
    """Let only new posts through"""
    return event.is_posted


async def debug(instance: Instance, event: WebSocketEvent) -> bool:
    """Log every event and keep going"""
    logger.debug("event %s seq=%d data=%s", event.event, event.seq, event.data)
    return True
