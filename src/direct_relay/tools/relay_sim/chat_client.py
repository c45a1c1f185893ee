from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

import websockets


def _now_ms() -> int:
    return int(time.time() * 1000)


async def _print_inbound(ws, out_path: Path | None) -> None:
    f = out_path.open("a", encoding="utf-8") if out_path else None
    try:
        async for raw in ws:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            msg = json.loads(raw)
            if "from" in msg:
                print(f"[{msg.get('timestamp')}] {msg['from']}: {msg.get('message')}")
            else:
                print(f"[relay] {msg}")
            if f is not None:
                f.write(json.dumps({"ts": _now_ms(), "msg": msg}, ensure_ascii=False) + "\n")
                f.flush()
    finally:
        if f is not None:
            f.close()


async def _read_stdin_lines():
    loop = asyncio.get_running_loop()
    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            return
        yield line.rstrip("\n")


async def chat(ws_url: str, username: str, to: str, *, out_path: Path | None = None) -> None:
    """Register as `username`, then send each stdin line to `to` until EOF."""
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)
    async with websockets.connect(ws_url) as ws:
        await ws.send(json.dumps({"register": True, "username": username}))
        reader = asyncio.create_task(_print_inbound(ws, out_path))
        try:
            async for line in _read_stdin_lines():
                if not line.strip():
                    continue
                await ws.send(json.dumps({"to": to, "message": line}, ensure_ascii=False))
        finally:
            reader.cancel()


def main() -> None:
    ap = argparse.ArgumentParser(description="Interactive direct-message client for the relay.")
    ap.add_argument("--ws", default="ws://127.0.0.1:8080/", help="Relay URL, e.g. ws://127.0.0.1:8080/")
    ap.add_argument("--name", required=True, help="Name to register")
    ap.add_argument("--to", required=True, help="Recipient for every line typed")
    ap.add_argument("--out", default=None, help="Append inbound frames to this JSONL file")
    args = ap.parse_args()

    asyncio.run(chat(args.ws, args.name, args.to, out_path=Path(args.out) if args.out else None))


if __name__ == "__main__":
    main()
