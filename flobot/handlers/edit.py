"""
Edit Handler

Rewrites posts whose whole message matches a registered edit, e.g. a team
edit "shrug" -> "¯\\_(ツ)_/¯" turns a post saying "shrug" into the shrug.

Commands:
    !edit list
    !edit team "edit" "replacement"
    !edit del "edit"
"""

import asyncio
import re
from typing import List

from ..instance.base import Instance
from ..models import Post
from ..store import Edit
from .base import PostHandler
from .trigger import OK_REACTION


def format_edit_list(edits: List[Edit]) -> str:
    if not edits:
        return "no edits yet"
    lines = ["| edit | replacement |", "| --- | --- |"]
    for e in edits:
        lines.append(f"| {e.edit} | {e.replace_with_text or e.replace_with_file or ''} |")
    return "\n".join(lines)


class EditHandler(PostHandler):
    """Replace the message of posts matching an edit"""

    name = "edit"
    help = (
        "```\n"
        "Replace a message made only of a registered edit with its replacement. "
        "Your own edits win over the team ones.\n\n"
        "!edit list\n"
        '!edit team "edit" "replacement"\n'
        '!edit del "edit"\n'
        "```"
    )

    _match_list = re.compile(r"^!edit list.*$")
    _match_team = re.compile(r'^!edit team "([^"]+)" "([^"]+)".*$')
    _match_del = re.compile(r'^!edit del "(.+)".*')

    async def handle_post(self, instance: Instance, post: Post) -> None:
        store = instance.store
        client = instance.client
        message = post.message

        if not message.startswith("!edit "):
            edit = await asyncio.to_thread(store.find_edit, post.user_id, post.team_id, message)
            if edit is not None and edit.replace_with_text:
                await client.edit_post(post, edit.replace_with_text)
            return

        if self._match_list.match(message):
            edits = await asyncio.to_thread(store.list_edits, post.team_id)
            await client.reply(post, format_edit_list(edits))
            return

        match = self._match_team.match(message)
        if match:
            await asyncio.to_thread(
                store.add_team_edit, post.team_id, match.group(1).strip(), match.group(2)
            )
            await client.react(post, OK_REACTION)
            return

        match = self._match_del.match(message)
        if match:
            await asyncio.to_thread(store.del_team_edit, post.team_id, match.group(1).strip())
            await client.react(post, OK_REACTION)
