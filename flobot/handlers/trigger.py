"""
Trigger Handler

Automatic replies or reactions to words seen in channels where the bot is.

Commands:
    !trigger list
    !trigger text "trigger" "reply"
    !trigger reaction "trigger" :emoji:
    !trigger del "trigger"

Anti-spam:
- Per channel: once a message was scanned, the channel is ignored for
  CHANNEL_DELAY seconds
- Per (channel, trigger): a trigger fires at most once every delay_repeat
  seconds
"""

import asyncio
import re
from typing import List, Optional

from ..common.tempo import Tempo
from ..instance.base import Instance
from ..models import Post
from ..store import Trigger
from .base import PostHandler

CHANNEL_DELAY = 3.0
OK_REACTION = "ok_hand"

# ASCII whitespace only: NBSP and other unicode spaces do not separate words
_ASCII_WHITESPACE = frozenset(" \t\n\x0c\r")


def valid_match(find: str, message: str) -> bool:
    """
    True if the first occurrence of find in message stands as its own word.

    The occurrence must be bounded by ASCII whitespace or by the edges of
    the message.
    """
    start = message.find(find)
    if start < 0:
        return False

    end = start + len(find)
    if start > 0 and message[start - 1] not in _ASCII_WHITESPACE:
        return False
    if end < len(message) and message[end] not in _ASCII_WHITESPACE:
        return False
    return True


def format_trigger_list(triggers: List[Trigger]) -> str:
    if not triggers:
        return "no triggers yet"
    lines = ["| trigger | reaction |", "| --- | --- |"]
    for t in triggers:
        reaction = t.text if t.is_text else f":{t.emoji}:"
        lines.append(f"| {t.triggered_by} | {reaction} |")
    return "\n".join(lines)


class TriggerHandler(PostHandler):
    """Reply or react when a registered trigger shows up in a message"""

    name = "trigger"

    _match_list = re.compile(r"^!trigger list.*$")
    _match_del = re.compile(r'^!trigger del "(.+)".*')
    _match_reaction = re.compile(r'^!trigger reaction "([^"]+)" [:"]([^:"]+)[:"].*$')
    _match_text = re.compile(r'^!trigger text "([^"]+)" "([^"]+)".*$')

    def __init__(self, tempo: Optional[Tempo] = None, delay_repeat: float = 120.0):
        """
        Args:
            tempo: Rate-limit key store, shareable with other handlers
            delay_repeat: Seconds before the same trigger fires again in a channel
        """
        self.tempo = tempo if tempo is not None else Tempo()
        self.delay_repeat = delay_repeat

    @property
    def help(self) -> str:
        return (
            "```\n"
            "Automatically react to a given text in each received message on channels "
            "where the bot is present.\n\n"
            f"There is a per channel antispam of {CHANNEL_DELAY:g} seconds, avoiding a heated "
            "channel to be polluted by the bot.\n\n"
            "A per [channel, trigger] antispam is effective and currently configured at "
            f"{self.delay_repeat:g} seconds.\n\n"
            "!trigger list\n"
            '!trigger text "trigger" "me"\n'
            '!trigger reaction "trigger" :emoji:\n'
            '!trigger del "trigger"\n'
            "```"
        )

    async def handle_post(self, instance: Instance, post: Post) -> None:
        if not post.message.startswith("!trigger "):
            await self._scan(instance, post)
            return

        store = instance.store
        client = instance.client
        message = post.message

        if self._match_list.match(message):
            triggers = await asyncio.to_thread(store.list_triggers, post.team_id)
            await client.reply(post, format_trigger_list(triggers))
            return

        match = self._match_text.match(message)
        if match:
            await asyncio.to_thread(store.add_text_trigger, post.team_id, match.group(1), match.group(2))
            await client.react(post, OK_REACTION)
            return

        match = self._match_reaction.match(message)
        if match:
            await asyncio.to_thread(store.add_emoji_trigger, post.team_id, match.group(1), match.group(2))
            await client.react(post, OK_REACTION)
            return

        match = self._match_del.match(message)
        if match:
            await asyncio.to_thread(store.del_trigger, post.team_id, match.group(1))
            await client.react(post, OK_REACTION)

    async def _scan(self, instance: Instance, post: Post) -> None:
        channel_key = f"{post.team_id}{post.channel_id}--global-channel-rate-limit"
        if self.tempo.exists(channel_key):
            return
        self.tempo.set(channel_key, CHANNEL_DELAY)

        triggers = await asyncio.to_thread(instance.store.search_triggers, post.team_id)
        for trigger in triggers:
            if not valid_match(trigger.triggered_by, post.message):
                continue

            trigger_key = (
                f"{post.team_id}{post.channel_id}{trigger.triggered_by}"
                "--trigger-channel-rate-limit"
            )
            if self.tempo.exists(trigger_key):
                continue
            self.tempo.set(trigger_key, self.delay_repeat)

            if trigger.is_text:
                # Text triggers sort after emoji ones: reactions are already sent
                await instance.client.reply(post, trigger.text)
                break
            await instance.client.react(post, trigger.emoji)
