"""
Mattermost Models

Wire shapes of the REST API and of the websocket event stream.

A websocket frame is either an event:
    {"event": "posted", "data": {...}, "broadcast": {...}, "seq": 7}
or the reply to an action we sent:
    {"status": "OK", "seq_reply": 1}
    {"status": "FAIL", "error": {...}, "seq_reply": 1}

Both are decoded into a WebSocketEvent; replies get event type "status".
"""

import json
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import EventDecodeError


# ============================================================================
# Enums
# ============================================================================

class EventType(str, Enum):
    """Websocket event types the bot knows about"""
    HELLO = "hello"
    POSTED = "posted"
    POST_EDITED = "post_edited"
    POST_DELETED = "post_deleted"
    REACTION_ADDED = "reaction_added"
    STATUS_CHANGE = "status_change"
    TYPING = "typing"
    STATUS = "status"  # reply to an action sent by the bot


# ============================================================================
# REST models
# ============================================================================

class User(BaseModel):
    """A platform user, including the bot itself"""
    model_config = ConfigDict(extra="ignore")

    id: str
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    nickname: str = ""
    is_bot: bool = False


class Channel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    team_id: str = ""
    name: str = ""
    display_name: str = ""
    type: str = ""


class Post(BaseModel):
    """
    A chat message.

    team_id is not part of the post itself; it is filled from the websocket
    event data when the post comes from a "posted" event.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    create_at: int = 0
    channel_id: str = ""
    user_id: str = ""
    root_id: str = ""
    parent_id: str = ""
    message: str = ""
    type: str = ""
    props: Dict[str, Any] = Field(default_factory=dict)
    team_id: str = ""

    @property
    def thread_root(self) -> str:
        """Id to thread a reply under"""
        return self.root_id or self.id


# ============================================================================
# Websocket models
# ============================================================================

class Broadcast(BaseModel):
    model_config = ConfigDict(extra="ignore")

    omit_users: Optional[Dict[str, bool]] = None
    user_id: str = ""
    channel_id: str = ""
    team_id: str = ""


class StatusError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    message: str = "none"
    detailed_error: str = ""
    request_id: Optional[str] = None
    status_code: int = 0


class WebSocketEvent(BaseModel):
    """One frame of the live connection"""
    model_config = ConfigDict(extra="ignore")

    event: str = ""
    data: Dict[str, Any] = Field(default_factory=dict)
    broadcast: Broadcast = Field(default_factory=Broadcast)
    seq: int = 0

    # Set on action replies only
    status: Optional[str] = None
    seq_reply: Optional[int] = None
    error: Optional[StatusError] = None

    @classmethod
    def from_frame(cls, frame: Union[str, bytes]) -> "WebSocketEvent":
        """
        Decode a raw websocket frame.

        Raises:
            EventDecodeError: if the frame is not a JSON object we understand
        """
        try:
            raw = json.loads(frame)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise EventDecodeError(f"invalid frame: {e}") from e

        if not isinstance(raw, dict):
            raise EventDecodeError(f"unexpected frame type: {type(raw).__name__}")

        if "status" in raw and "event" not in raw:
            raw["event"] = EventType.STATUS.value
        elif "event" not in raw:
            raise EventDecodeError("frame has neither event nor status")

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise EventDecodeError(f"invalid {raw.get('event')} frame: {e}") from e

    @property
    def is_posted(self) -> bool:
        return self.event == EventType.POSTED.value

    @property
    def is_status_ok(self) -> bool:
        return self.event == EventType.STATUS.value and "OK" in (self.status or "")

    def post(self) -> Optional[Post]:
        """
        Decode the post carried by a posted/post_edited event.

        The platform sends the post as a JSON string inside data.post.

        Returns:
            Post, or None if this event carries no post

        Raises:
            EventDecodeError: if data.post is present but malformed
        """
        raw_post = self.data.get("post")
        if raw_post is None:
            return None

        try:
            if isinstance(raw_post, str):
                post = Post.model_validate_json(raw_post)
            else:
                post = Post.model_validate(raw_post)
        except ValidationError as e:
            raise EventDecodeError(f"invalid post in {self.event} event: {e}") from e

        if not post.team_id:
            post.team_id = self.data.get("team_id") or self.broadcast.team_id
        return post
