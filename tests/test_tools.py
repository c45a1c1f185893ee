"""Tests for the JSONL replay loader."""

import json

from direct_relay.tools.relay_sim.replay_jsonl import load_events


def test_load_events_mixed_formats(tmp_path):
    path = tmp_path / "session.jsonl"
    lines = [
        {"ts": 1000, "msg": {"to": "bob", "message": "first"}},
        {"ts": 1500, "msg": {"type": "delivered", "to": "bob", "timestamp": "t"}},
        {"to": "carol", "message": "raw line"},
        {"ts": 2000, "msg": {"from": "bob", "message": "reply", "timestamp": "t"}},
        ["not", "an", "object"],
    ]
    path.write_text("\n".join(json.dumps(x) for x in lines) + "\n\n", encoding="utf-8")

    events = load_events(path)

    assert events == [
        (1000, {"to": "bob", "message": "first"}),
        (None, {"to": "carol", "message": "raw line"}),
    ]
