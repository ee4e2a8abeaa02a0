"""Tests for websocket frame decoding."""

import json

import pytest

from flobot.errors import EventDecodeError
from flobot.models import EventType, Post, WebSocketEvent


POSTED_FRAME = json.dumps({
    "event": "posted",
    "data": {
        "channel_display_name": "Town Square",
        "channel_name": "town-square",
        "channel_type": "O",
        "post": json.dumps({
            "id": "ghkm74cqzbnjxr5dx638k73xqa",
            "create_at": 1576937676623,
            "update_at": 1576937676623,
            "edit_at": 0,
            "delete_at": 0,
            "is_pinned": False,
            "user_id": "kh9859j8kir15dmxonsm8sxq1w",
            "channel_id": "amtak96j3br5iyokgunmf188jc",
            "root_id": "",
            "parent_id": "",
            "original_id": "",
            "message": "test",
            "type": "",
            "props": {},
            "hashtags": "",
            "pending_post_id": "kh9859j8kir15dmxonsm8sxq1w:1576937676569",
            "metadata": {},
        }),
        "sender_name": "@admin",
        "team_id": "49ck75z1figmpjy6eknrohsjnw",
    },
    "broadcast": {
        "omit_users": None,
        "user_id": "",
        "channel_id": "amtak96j3br5iyokgunmf188jc",
        "team_id": "",
    },
    "seq": 7,
})


class TestWebSocketEvent:
    def test_posted_frame(self):
        event = WebSocketEvent.from_frame(POSTED_FRAME)

        assert event.event == "posted"
        assert event.is_posted
        assert event.seq == 7
        assert event.data["channel_name"] == "town-square"
        assert event.broadcast.channel_id == "amtak96j3br5iyokgunmf188jc"

    def test_posted_frame_decodes_post(self):
        post = WebSocketEvent.from_frame(POSTED_FRAME).post()

        assert post.id == "ghkm74cqzbnjxr5dx638k73xqa"
        assert post.message == "test"
        assert post.user_id == "kh9859j8kir15dmxonsm8sxq1w"
        assert post.channel_id == "amtak96j3br5iyokgunmf188jc"
        # team_id comes from the event data, not from the post
        assert post.team_id == "49ck75z1figmpjy6eknrohsjnw"

    def test_invalid_post_payload(self):
        event = WebSocketEvent(event="posted", data={"post": "{not json"})
        with pytest.raises(EventDecodeError):
            event.post()

    def test_event_without_post(self):
        event = WebSocketEvent.from_frame('{"event": "typing", "data": {"user_id": "u"}}')
        assert event.post() is None
        assert not event.is_posted

    def test_app_error_status(self):
        frame = (
            '{"status": "FAIL", "error": {"id": "api.web_socket_router.bad_seq.app_error", '
            '"message": "Invalid sequence for WebSocket message.", "detailed_error": "", '
            '"status_code": 400}}'
        )
        event = WebSocketEvent.from_frame(frame)

        assert event.event == EventType.STATUS.value
        assert event.status == "FAIL"
        assert not event.is_status_ok
        assert event.error.message == "Invalid sequence for WebSocket message."
        assert event.error.status_code == 400

    def test_ok_status(self):
        event = WebSocketEvent.from_frame('{"status": "OK", "seq_reply": 1}')
        assert event.is_status_ok
        assert event.seq_reply == 1

    @pytest.mark.parametrize("frame", [
        "not json",
        "[1, 2, 3]",
        '{"data": {}}',
        '{"event": "posted", "seq": "seven"}',
    ])
    def test_undecodable_frames(self, frame):
        with pytest.raises(EventDecodeError):
            WebSocketEvent.from_frame(frame)


class TestPost:
    def test_thread_root_of_top_level_post(self):
        assert Post(id="p1").thread_root == "p1"

    def test_thread_root_of_reply(self):
        assert Post(id="p2", root_id="p1").thread_root == "p1"
