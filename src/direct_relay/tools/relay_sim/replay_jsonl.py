from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

import websockets


def load_events(jsonl_path: Path) -> list[tuple[int | None, dict]]:
    """
    Read delivery requests from JSONL.

    Accepted line formats:
      - chat_client.py --out output: {"ts": <ms>, "msg": {...}}
      - raw requests per line: {"to": "...", "message": "..."}
    Lines that are not delivery requests (acks, errors, forwarded payloads) are skipped.
    """
    events: list[tuple[int | None, dict]] = []
    for line in jsonl_path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        obj = json.loads(line)
        ts = None
        if isinstance(obj, dict) and isinstance(obj.get("msg"), dict):
            raw_ts = obj.get("ts")
            ts = int(raw_ts) if isinstance(raw_ts, (int, float)) else None
            obj = obj["msg"]
        if not isinstance(obj, dict):
            continue
        if isinstance(obj.get("to"), str) and isinstance(obj.get("message"), str):
            events.append((ts, {"to": obj["to"], "message": obj["message"]}))
    return events


async def replay(
    ws_url: str,
    username: str,
    jsonl_path: Path,
    *,
    speed: float = 1.0,
    default_dt_ms: int = 0,
    to_override: str | None = None,
) -> None:
    """Register as `username` and replay recorded delivery requests into the relay."""
    events = load_events(jsonl_path)

    async with websockets.connect(ws_url) as ws:
        await ws.send(json.dumps({"register": True, "username": username}))
        reply = json.loads(await ws.recv())
        if reply.get("type") != "registered":
            raise SystemExit(f"registration failed: {reply.get('message')}")

        prev_ts: int | None = None
        for ts, msg in events:
            if ts is not None and prev_ts is not None:
                dt_ms = max(0, ts - prev_ts)
            else:
                dt_ms = default_dt_ms

            prev_ts = ts if ts is not None else prev_ts
            if dt_ms:
                await asyncio.sleep((dt_ms / 1000.0) / max(0.01, speed))

            if to_override:
                msg = {**msg, "to": to_override}
            await ws.send(json.dumps(msg, ensure_ascii=False, separators=(",", ":")))
            print(f"[replay] {await ws.recv()}")


def main() -> None:
    ap = argparse.ArgumentParser(description="Replay delivery requests from JSONL into the relay.")
    ap.add_argument("--ws", default="ws://127.0.0.1:8080/", help="Relay URL, e.g. ws://127.0.0.1:8080/")
    ap.add_argument("--name", required=True, help="Name to register before replaying")
    ap.add_argument("--in", dest="inp", required=True, help="Input JSONL path")
    ap.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (2.0 = 2x faster)")
    ap.add_argument("--default-dt-ms", type=int, default=0, help="Delay between messages if no timestamps")
    ap.add_argument("--to", dest="to_override", default=None, help="Send every message to this name instead")
    args = ap.parse_args()

    asyncio.run(
        replay(
            args.ws,
            args.name,
            Path(args.inp),
            speed=args.speed,
            default_dt_ms=args.default_dt_ms,
            to_override=args.to_override,
        )
    )


if __name__ == "__main__":
    main()
