"""
Mattermost WebSocket Client

Persistent, push-based connection delivering platform events.

Flow:
1. Connect to the websocket URL
2. Send authentication_challenge with the token (seq 1)
3. Wait for the OK reply to seq 1 (other frames received meanwhile are kept)
4. Reader task decodes every frame into the events queue

When the socket closes, None is put on the queue so consumers know the
stream is over. No reconnection is attempted here.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

import websockets
import websockets.exceptions

from ..errors import ClientError, EventDecodeError
from ..models import EventType, WebSocketEvent

logger = logging.getLogger("flobot.client.websocket")


class WebSocketClient:
    """
    Websocket event source.

    Usage:
        ws = WebSocketClient("wss://chat.example.com/api/v4/websocket", token)
        await ws.connect()
        ws.listen()
        event = await ws.events.get()  # None once the connection is gone
    """

    def __init__(
        self,
        ws_url: str,
        token: str,
        auth_timeout: float = 10.0,
        connector: Callable[..., Any] = websockets.connect,
    ):
        """
        Initialize websocket client.

        Args:
            ws_url: Websocket URL, e.g. wss://chat.example.com/api/v4/websocket
            token: Same token as the REST client
            auth_timeout: Seconds to wait for the authentication reply
            connector: Coroutine function opening the socket (tests)
        """
        self.ws_url = ws_url
        self._token = token
        self._auth_timeout = auth_timeout
        self._connector = connector
        self._seq = 0
        self._ws = None
        self._reader: Optional[asyncio.Task] = None
        self.events: "asyncio.Queue[Optional[WebSocketEvent]]" = asyncio.Queue()

    async def _send_action(self, action: str, data: dict) -> int:
        self._seq += 1
        await self._ws.send(json.dumps({"seq": self._seq, "action": action, "data": data}))
        return self._seq

    async def connect(self) -> None:
        """
        Open the socket and authenticate.

        Raises:
            ClientError: if the socket cannot be opened or auth is refused
        """
        if not self.ws_url.startswith(("ws://", "wss://")):
            raise ClientError(f"invalid websocket URL: {self.ws_url}")

        logger.info("Connecting to websocket %s", self.ws_url)
        try:
            self._ws = await self._connector(self.ws_url, ping_interval=30, ping_timeout=60)
        except (OSError, websockets.exceptions.WebSocketException) as e:
            raise ClientError(f"websocket connect failed: {e}") from e

        try:
            seq = await self._send_action("authentication_challenge", {"token": self._token})
            await asyncio.wait_for(self._await_reply(seq), timeout=self._auth_timeout)
        except asyncio.TimeoutError as e:
            await self._ws.close()
            raise ClientError("websocket authentication timed out") from e
        except websockets.exceptions.WebSocketException as e:
            raise ClientError(f"websocket authentication failed: {e}") from e
        except ClientError:
            await self._ws.close()
            raise

        logger.info("Websocket authenticated")

    async def _await_reply(self, seq: int) -> None:
        """Read frames until the reply to seq; queue anything else"""
        while True:
            event = self._decode(await self._ws.recv())
            if event is None:
                continue
            if event.event == EventType.STATUS.value and event.seq_reply == seq:
                if not event.is_status_ok:
                    message = event.error.message if event.error else event.status
                    raise ClientError(f"websocket authentication refused: {message}")
                return
            self.events.put_nowait(event)

    def _decode(self, frame) -> Optional[WebSocketEvent]:
        try:
            event = WebSocketEvent.from_frame(frame)
        except EventDecodeError as e:
            logger.warning("Skipping undecodable frame: %s", e)
            return None

        if event.event == EventType.STATUS.value and not event.is_status_ok:
            logger.warning(
                "Action %s failed: %s",
                event.seq_reply,
                event.error.message if event.error else event.status,
            )
        return event

    def listen(self) -> None:
        """Start the background reader. connect() must have succeeded."""
        if self._ws is None:
            raise ClientError("listen() called before connect()")
        if self._reader is None:
            self._reader = asyncio.create_task(self._read_loop())

    async def _read_loop(self) -> None:
        try:
            async for frame in self._ws:
                event = self._decode(frame)
                if event is not None:
                    await self.events.put(event)
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning("Websocket closed: %s", e)
        finally:
            logger.info("Websocket event stream ended")
            self.events.put_nowait(None)

    async def close(self) -> None:
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
