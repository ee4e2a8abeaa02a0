"""
Base Handler

Abstract base class for handlers reacting to new posts.
Decodes the post carried by a "posted" event and hands it to handle_post.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..instance.base import Instance
from ..models import Post, WebSocketEvent


class PostHandler(ABC):
    """
    Handler for "posted" events.

    Subclasses set:
    - name: Handler name, used by !help
    - help: Help text, or None to stay out of !help
    """

    name: str = ""
    help: Optional[str] = None

    async def __call__(self, instance: Instance, event: WebSocketEvent) -> None:
        if not event.is_posted:
            return
        post = event.post()
        if post is None:
            return
        await self.handle_post(instance, post)

    @abstractmethod
    async def handle_post(self, instance: Instance, post: Post) -> None:
        """
        React to a post.

        Raise to report an error; the instance logs it and carries on with
        the next handler.
        """
        pass
