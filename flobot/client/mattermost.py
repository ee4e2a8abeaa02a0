"""
Mattermost REST Client

Authenticated calls against the Mattermost API v4. Only what the bot needs:
who am I, channel lookup, posting, editing, replying and reacting.

Uses httpx.AsyncClient with a persistent connection pool.
"""

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..errors import ClientError
from ..models import Channel, Post, User

logger = logging.getLogger("flobot.client.mattermost")

M = TypeVar("M", bound=BaseModel)


class MattermostClient:
    """
    Async REST client.

    Usage:
        client = MattermostClient(
            api_url="https://chat.example.com/api/v4",
            token="bot-token",
            debug_channel="channel-id",
        )
        me = await client.get_me()
        await client.create_post(channel_id, "hello")
        await client.close()
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        debug_channel: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_url: API base URL, e.g. https://chat.example.com/api/v4
            token: Personal access or bot token
            debug_channel: Channel id used by debug()
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests)
        """
        self.api_url = api_url.rstrip("/")
        self.debug_channel = debug_channel
        self.user_id: Optional[str] = None
        self._http = httpx.AsyncClient(
            base_url=self.api_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._http.request(method, path, json=json)
        except httpx.HTTPError as e:
            raise ClientError(f"{method} {path}: {e}") from e

        logger.debug("%s %s -> %d", method, path, response.status_code)
        if response.status_code >= 400:
            detail = response.text
            try:
                detail = response.json().get("message", detail)
            except (ValueError, AttributeError):
                pass
            raise ClientError(
                f"{method} {path}: {response.status_code} {detail}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise ClientError(f"{method} {path}: invalid JSON response") from e

    async def _fetch(self, model: Type[M], method: str, path: str, json: Optional[Dict[str, Any]] = None) -> M:
        """Request and decode the response body into model"""
        data = await self._request(method, path, json=json)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ClientError(f"{method} {path}: unexpected {model.__name__} response: {e}") from e

    # ------------------------------------------------------------------ #

    async def get_me(self) -> User:
        """Fetch the authenticated user and remember its id for reactions"""
        user = await self._fetch(User, "GET", "/users/me")
        self.user_id = user.id
        return user

    async def get_channel(self, channel_id: str) -> Channel:
        return await self._fetch(Channel, "GET", f"/channels/{channel_id}")

    async def create_post(self, channel_id: str, message: str, root_id: str = "") -> Post:
        """Post a message in a channel, threaded under root_id when given"""
        payload = {"channel_id": channel_id, "message": message, "root_id": root_id}
        return await self._fetch(Post, "POST", "/posts", json=payload)

    async def edit_post(self, post: Post, message: str) -> Post:
        """Replace the message of an existing post"""
        return await self._fetch(Post, "PUT", f"/posts/{post.id}/patch", json={"message": message})

    async def reply(self, post: Post, message: str) -> Post:
        """Reply in the thread of post"""
        return await self.create_post(post.channel_id, message, root_id=post.thread_root)

    async def react(self, post: Post, emoji_name: str) -> None:
        """Add an emoji reaction to post, as the bot"""
        if not self.user_id:
            raise ClientError("cannot react before get_me()")
        payload = {
            "user_id": self.user_id,
            "post_id": post.id,
            "emoji_name": emoji_name.strip(":"),
        }
        await self._request("POST", "/reactions", json=payload)

    async def debug(self, message: str) -> Post:
        """Post to the configured debug channel"""
        if not self.debug_channel:
            raise ClientError("no debug channel configured")
        return await self.create_post(self.debug_channel, message)

    async def close(self) -> None:
        await self._http.aclose()
