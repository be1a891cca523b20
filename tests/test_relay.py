"""
Unit tests for RelayDispatcher
===============================
Per-kind policy, peer-only delivery, activity updates.
"""

import json

import pytest

from pairlink.relay import (
    RelayDispatcher,
    TEXT_MESSAGE,
    MEDIA,
    TYPING,
    CALL_OFFER,
    CALL_ANSWER,
    ICE_CANDIDATE,
    CALL_END,
    CALL_REJECT,
    utf16_length,
)


@pytest.fixture
def pair(store):
    store.create_session("ABC123", "sid_a")
    store.add_member("ABC123", "sid_b")
    return "ABC123"


def media_payload(**overrides):
    payload = {
        "data": "data:image/png;base64,iVBORw0KGgo=",
        "mediaType": "image/png",
        "fileName": "cat.png",
        "fileSize": 1024,
    }
    payload.update(overrides)
    return payload


class TestTextMessage:

    def test_text_reaches_peer_only(self, dispatcher, emitter, pair, clock):
        assert dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": "hello"})

        assert emitter.sent == [(
            "receive-message",
            {"text": "hello", "sender": "sid_a", "timestamp": int(clock.now * 1000)},
            "sid_b",
        )]

    def test_text_updates_activity(self, dispatcher, store, pair, clock):
        clock.advance(300)

        dispatcher.relay("sid_b", pair, TEXT_MESSAGE, {"text": "hey"})

        assert store.get(pair).last_activity_at == clock.now

    @pytest.mark.parametrize("text", [None, "", 42, ["hi"]])
    def test_non_string_or_empty_text_is_dropped(self, dispatcher, emitter, pair, text):
        assert not dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": text})
        assert emitter.sent == []

    def test_oversize_text_is_reported_to_sender(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": "x" * 5001})

        assert emitter.events("sid_b") == []
        assert emitter.events("sid_a") == ["send-error"]

    def test_text_at_limit_is_relayed(self, dispatcher, emitter, pair):
        assert dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": "x" * 5000})

    def test_astral_characters_count_as_two_units(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": "\U0001F600" * 5000})

        assert emitter.events("sid_b") == []
        assert emitter.events("sid_a") == ["send-error"]

    def test_astral_text_within_limit_is_relayed(self, dispatcher, emitter, pair):
        assert dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": "\U0001F600" * 2500})

    def test_utf16_length(self):
        assert utf16_length("abc") == 3
        assert utf16_length("\U0001F600") == 2
        assert utf16_length("é") == 1
        assert utf16_length(json.loads('"\\ud800"')) == 1

    def test_no_partner_discards_without_touch(self, dispatcher, emitter, store, clock):
        store.create_session("SOLO22", "sid_a")
        before = store.get("SOLO22").last_activity_at
        clock.advance(60)

        assert not dispatcher.relay("sid_a", "SOLO22", TEXT_MESSAGE, {"text": "anyone?"})

        assert emitter.sent == []
        assert store.get("SOLO22").last_activity_at == before

    def test_successive_messages_keep_order(self, dispatcher, emitter, pair):
        for text in ("one", "two", "three"):
            dispatcher.relay("sid_a", pair, TEXT_MESSAGE, {"text": text})

        assert [data["text"] for _e, data in emitter.to("sid_b")] == ["one", "two", "three"]


class TestMedia:

    def test_media_is_relayed_with_metadata(self, dispatcher, emitter, pair, clock):
        assert dispatcher.relay("sid_a", pair, MEDIA, media_payload())

        event, data = emitter.to("sid_b")[0]
        assert event == "receive-media"
        assert data == {
            "data": "data:image/png;base64,iVBORw0KGgo=",
            "mediaType": "image/png",
            "fileName": "cat.png",
            "fileSize": 1024,
            "sender": "sid_a",
            "timestamp": int(clock.now * 1000),
        }

    def test_file_name_is_truncated(self, dispatcher, emitter, pair):
        dispatcher.relay("sid_a", pair, MEDIA, media_payload(fileName="a" * 400))

        assert len(emitter.to("sid_b")[0][1]["fileName"]) == 255

    def test_disallowed_type_is_rejected(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, MEDIA, media_payload(mediaType="application/x-sh"))

        assert emitter.events("sid_b") == []
        assert emitter.events("sid_a") == ["send-error"]

    def test_oversize_file_is_rejected(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, MEDIA, media_payload(fileSize=5_000_001))
        assert emitter.events("sid_a") == ["send-error"]

    @pytest.mark.parametrize("size", [
        json.loads('{"s": NaN}')["s"],
        json.loads('{"s": Infinity}')["s"],
        "1024",
        True,
        -1,
    ])
    def test_invalid_file_size_is_rejected(self, dispatcher, emitter, pair, size):
        assert not dispatcher.relay("sid_a", pair, MEDIA, media_payload(fileSize=size))

        assert emitter.events("sid_b") == []
        assert emitter.to("sid_a") == [("send-error", {"reason": "Invalid file size"})]

    def test_missing_file_name_is_rejected(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, MEDIA, media_payload(fileName=""))
        assert emitter.events("sid_a") == ["send-error"]

    def test_missing_data_is_dropped(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, MEDIA, media_payload(data=None))
        assert emitter.sent == []

    def test_policy_disabled_relays_anything(self, store, emitter, clock, pair):
        dispatcher = RelayDispatcher(store, emitter, clock=clock, media_policy_enabled=False)

        assert dispatcher.relay("sid_a", pair, MEDIA, media_payload(mediaType="video/mp4", fileSize=10**9))
        assert emitter.events("sid_b") == ["receive-media"]

    def test_media_updates_activity(self, dispatcher, store, pair, clock):
        clock.advance(300)
        dispatcher.relay("sid_a", pair, MEDIA, media_payload())
        assert store.get(pair).last_activity_at == clock.now


class TestTypingAndSignaling:

    def test_typing_flag_is_relayed_unmodified(self, dispatcher, emitter, pair):
        dispatcher.relay("sid_a", pair, TYPING, {"isTyping": True})
        dispatcher.relay("sid_a", pair, TYPING, {"isTyping": True})

        assert emitter.to("sid_b") == [
            ("user-typing", {"isTyping": True}),
            ("user-typing", {"isTyping": True}),
        ]

    def test_typing_does_not_touch(self, dispatcher, store, pair, clock):
        before = store.get(pair).last_activity_at
        clock.advance(60)

        dispatcher.relay("sid_a", pair, TYPING, {"isTyping": False})

        assert store.get(pair).last_activity_at == before

    def test_call_offer_is_verbatim_and_touches(self, dispatcher, emitter, store, pair, clock):
        offer = {"type": "offer", "sdp": "v=0\r\no=- 46117 2 IN IP4 127.0.0.1\r\n"}
        clock.advance(60)

        dispatcher.relay("sid_a", pair, CALL_OFFER, {"offer": offer, "callType": "video"})

        assert emitter.to("sid_b") == [
            ("incoming-call", {"offer": offer, "callType": "video", "from": "sid_a"}),
        ]
        assert store.get(pair).last_activity_at == clock.now

    def test_answer_and_ice_are_verbatim(self, dispatcher, emitter, pair):
        answer = {"type": "answer", "sdp": "v=0"}
        candidate = {"candidate": "candidate:1 1 UDP 2122252543 192.0.2.1 54400 typ host", "sdpMLineIndex": 0}

        dispatcher.relay("sid_b", pair, CALL_ANSWER, {"answer": answer})
        dispatcher.relay("sid_b", pair, ICE_CANDIDATE, {"candidate": candidate})

        assert emitter.to("sid_a") == [
            ("call-answered", {"answer": answer}),
            ("ice-candidate", {"candidate": candidate}),
        ]

    def test_end_and_reject_carry_no_payload(self, dispatcher, emitter, pair):
        dispatcher.relay("sid_a", pair, CALL_END)
        dispatcher.relay("sid_b", pair, CALL_REJECT)

        assert emitter.sent == [
            ("call-ended", None, "sid_b"),
            ("call-rejected", None, "sid_a"),
        ]

    def test_unknown_kind_is_ignored(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_a", pair, "screen-share", {"x": 1})
        assert emitter.sent == []

    def test_outsider_cannot_relay_into_session(self, dispatcher, emitter, pair):
        assert not dispatcher.relay("sid_c", pair, TEXT_MESSAGE, {"text": "let me in"})
        assert emitter.sent == []
