"""Tests for frame parsing and serialization."""

import json
import re

import pytest

from direct_relay.protocol import (
    Delivered,
    DeliveryRequest,
    ErrorReply,
    Forwarded,
    InvalidFrame,
    Registered,
    RegisterRequest,
    dump_frame,
    parse_frame,
    utc_timestamp,
)


class TestParseFrame:
    """Recognizing inbound request shapes."""

    def test_registration(self):
        req = parse_frame('{"register": true, "username": "alice"}')

        assert req == RegisterRequest(register=True, username="alice")

    def test_delivery(self):
        req = parse_frame('{"to": "bob", "message": "hi"}')

        assert isinstance(req, DeliveryRequest)
        assert req.to == "bob"
        assert req.message == "hi"

    def test_bytes_are_utf8(self):
        req = parse_frame('{"to": "bob", "message": "héllo"}'.encode("utf-8"))

        assert req.message == "héllo"

    def test_registration_wins_over_delivery(self):
        req = parse_frame('{"register": true, "username": "alice", "to": "bob", "message": "hi"}')

        assert isinstance(req, RegisterRequest)

    def test_extra_fields_ignored(self):
        req = parse_frame('{"to": "bob", "message": "hi", "from": "mallory"}')

        assert isinstance(req, DeliveryRequest)

    @pytest.mark.parametrize(
        "payload",
        [
            {"register": "true", "username": "alice"},
            {"register": 1, "username": "alice"},
            {"register": True, "username": ""},
            {"register": True},
            {"to": "bob"},
            {"to": "", "message": "hi"},
            {"to": "bob", "message": ""},
            {"to": "bob", "message": 42},
            {},
        ],
    )
    def test_neither_shape(self, payload):
        assert parse_frame(json.dumps(payload)) is None

    @pytest.mark.parametrize("raw", ["", "not json", "{", "[]", "7", '"text"', b"\xc3\x28"])
    def test_invalid(self, raw):
        with pytest.raises(InvalidFrame):
            parse_frame(raw)


class TestDumpFrame:
    """Outbound frames use the wire field names."""

    def test_registered(self):
        frame = json.loads(dump_frame(Registered(username="alice", online_count=3)))

        assert frame == {"type": "registered", "success": True, "username": "alice", "onlineCount": 3}

    def test_error(self):
        assert dump_frame(ErrorReply(message="nope")) == '{"type":"error","message":"nope"}'

    def test_forwarded_uses_from(self):
        frame = json.loads(dump_frame(Forwarded(sender="alice", message="hi", timestamp="t")))

        assert frame == {"from": "alice", "message": "hi", "timestamp": "t"}

    def test_delivered_stamps_itself(self):
        frame = json.loads(dump_frame(Delivered(to="bob")))

        assert frame["type"] == "delivered"
        assert frame["to"] == "bob"
        assert frame["timestamp"]

    def test_non_ascii_kept(self):
        assert "ünïcode" in dump_frame(ErrorReply(message="ünïcode"))


def test_utc_timestamp_format():
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


def test_register_field_uses_wire_alias():
    field = RegisterRequest.model_fields["wants_register"]

    assert "register" not in RegisterRequest.model_fields
    assert field.alias == "register"
