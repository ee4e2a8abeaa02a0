"""
Help Handler

!help         lists the handlers that have a help text
!help <name>  shows that handler's help text
"""

import re

from ..instance.base import Instance
from ..models import Post
from .base import PostHandler

UNKNOWN_HELP = "tutétrompé"


class HelpHandler(PostHandler):
    name = "help"

    _match_topic = re.compile(r"^!help ([a-zA-Z0-9_-]+).*")

    async def handle_post(self, instance: Instance, post: Post) -> None:
        helps = instance.helps

        if post.message == "!help":
            names = sorted(helps)
            if not names:
                await instance.client.reply(post, "no help available")
                return
            reply = "".join(f"`{name}`\n" for name in names)
            await instance.client.reply(post, reply)
            return

        match = self._match_topic.match(post.message)
        if match:
            await instance.client.reply(post, helps.get(match.group(1), UNKNOWN_HELP))
