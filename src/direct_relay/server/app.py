from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from .config import Settings, get_settings
from .logging import configure_logging
from .relay import Relay

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    relay = Relay(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        logger.info("relay listening on %s:%d", settings.host, settings.port)
        yield
        # uvicorn turns SIGINT/SIGTERM into a lifespan shutdown
        await relay.close_all()

    app = FastAPI(lifespan=lifespan)
    app.state.relay = relay
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.websocket("/")
    @app.websocket("/ws")
    async def ws(ws: WebSocket):
        await ws.accept()
        peer = await relay.connect(ws)
        try:
            while True:
                msg = await ws.receive()
                if msg["type"] == "websocket.disconnect":
                    break
                raw = msg.get("text")
                if raw is None:
                    raw = msg.get("bytes") or b""
                await relay.handle_frame(peer, raw)
        except WebSocketDisconnect:
            pass
        except (ConnectionError, RuntimeError) as e:
            logger.warning("connection %s failed: %s", peer.label, e)
            await relay.close(peer, code=1011)
        finally:
            await relay.disconnect(peer)

    # Any plain GET is a health check.
    @app.get("/{path:path}", response_class=PlainTextResponse)
    def healthz(path: str):
        return "server is running"

    return app


app = create_app()
