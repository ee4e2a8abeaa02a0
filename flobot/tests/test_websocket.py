"""Tests for the websocket event source, with an in-memory socket."""

import asyncio
import json

import pytest

from flobot.client import WebSocketClient
from flobot.errors import ClientError

HELLO = json.dumps({"event": "hello", "data": {"server_version": "9.0.0"}, "seq": 0})
AUTH_OK = json.dumps({"status": "OK", "seq_reply": 1})
AUTH_FAIL = json.dumps({
    "status": "FAIL",
    "seq_reply": 1,
    "error": {"id": "api.web_socket_router.not_authenticated.app_error", "message": "bad token"},
})
POSTED = json.dumps({
    "event": "posted",
    "data": {"post": json.dumps({"id": "p1", "message": "hi"}), "team_id": "t1"},
    "seq": 1,
})


class FakeSocket:
    def __init__(self, frames):
        self.incoming = list(frames)
        self.sent = []
        self.closed = False

    async def send(self, data):
        self.sent.append(json.loads(data))

    async def recv(self):
        if not self.incoming:
            await asyncio.sleep(3600)
        return self.incoming.pop(0)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self.incoming:
            raise StopAsyncIteration
        return self.incoming.pop(0)

    async def close(self):
        self.closed = True


def make_ws(socket, **kwargs):
    async def connector(url, **options):
        return socket
    return WebSocketClient("wss://chat.example.com/api/v4/websocket", "secret", connector=connector, **kwargs)


class TestConnect:
    @pytest.mark.asyncio
    async def test_sends_authentication_challenge(self):
        socket = FakeSocket([AUTH_OK])
        ws = make_ws(socket)

        await ws.connect()

        assert socket.sent == [{
            "seq": 1,
            "action": "authentication_challenge",
            "data": {"token": "secret"},
        }]

    @pytest.mark.asyncio
    async def test_frames_before_auth_reply_are_kept(self):
        ws = make_ws(FakeSocket([HELLO, AUTH_OK]))

        await ws.connect()

        event = ws.events.get_nowait()
        assert event.event == "hello"
        assert ws.events.empty()

    @pytest.mark.asyncio
    async def test_refused_authentication(self):
        socket = FakeSocket([AUTH_FAIL])
        ws = make_ws(socket)

        with pytest.raises(ClientError, match="bad token"):
            await ws.connect()
        assert socket.closed

    @pytest.mark.asyncio
    async def test_authentication_timeout(self):
        socket = FakeSocket([])
        ws = make_ws(socket, auth_timeout=0.01)

        with pytest.raises(ClientError, match="timed out"):
            await ws.connect()
        assert socket.closed

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        ws = WebSocketClient("https://chat.example.com", "secret")
        with pytest.raises(ClientError, match="invalid websocket URL"):
            await ws.connect()

    @pytest.mark.asyncio
    async def test_connect_error(self):
        async def refuse(url, **options):
            raise OSError("connection refused")

        ws = WebSocketClient("wss://chat.example.com/api/v4/websocket", "secret", connector=refuse)
        with pytest.raises(ClientError, match="connection refused"):
            await ws.connect()


class TestListen:
    @pytest.mark.asyncio
    async def test_listen_before_connect(self):
        ws = make_ws(FakeSocket([]))
        with pytest.raises(ClientError):
            ws.listen()

    @pytest.mark.asyncio
    async def test_events_then_end_of_stream(self):
        ws = make_ws(FakeSocket([AUTH_OK, POSTED, "garbage", POSTED]))
        await ws.connect()
        ws.listen()

        first = await asyncio.wait_for(ws.events.get(), timeout=1)
        second = await asyncio.wait_for(ws.events.get(), timeout=1)
        end = await asyncio.wait_for(ws.events.get(), timeout=1)

        assert first.is_posted and first.post().message == "hi"
        assert second.is_posted
        assert end is None

    @pytest.mark.asyncio
    async def test_close(self):
        socket = FakeSocket([AUTH_OK])
        ws = make_ws(socket)
        await ws.connect()
        ws.listen()

        await ws.close()

        assert socket.closed
