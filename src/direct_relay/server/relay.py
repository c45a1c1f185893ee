from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from direct_relay.protocol import (
    ERR_ALREADY_REGISTERED,
    ERR_INVALID_FORMAT,
    ERR_NOT_REGISTERED,
    ERR_RECIPIENT_NOT_FOUND,
    ERR_RECIPIENT_UNAVAILABLE,
    ERR_UNRECOGNIZED,
    ERR_USERNAME_TAKEN,
    Delivered,
    DeliveryRequest,
    ErrorReply,
    Forwarded,
    InvalidFrame,
    Registered,
    RegisterRequest,
    dump_frame,
    parse_frame,
)
from direct_relay.protocol.messages import OutboundMsg

from .config import Settings, get_settings
from .registry import Registry

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """The slice of a Starlette WebSocket the relay needs."""

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: str | None = None) -> None: ...


class PeerState(str, Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    CLOSED = "closed"


@dataclass(eq=False)
class Peer:
    """One accepted connection plus its lifecycle state and outbound queue."""

    conn: Connection
    outbox: asyncio.Queue[OutboundMsg]
    name: str | None = None
    state: PeerState = PeerState.UNREGISTERED
    writer: asyncio.Task[None] | None = field(default=None, repr=False)

    @property
    def label(self) -> str:
        return self.name or f"anon-{id(self):x}"

    def offer(self, msg: OutboundMsg) -> bool:
        """Queue a frame for the writer without waiting. False if closed or full."""
        if self.state is PeerState.CLOSED:
            return False
        try:
            self.outbox.put_nowait(msg)
        except asyncio.QueueFull:
            return False
        return True

    async def flush(self) -> None:
        """Wait until every queued frame has been written (or dropped)."""
        await self.outbox.join()


def _drain(q: asyncio.Queue) -> None:
    while True:
        try:
            q.get_nowait()
        except asyncio.QueueEmpty:
            return
        q.task_done()


class Relay:
    """
    Routes point-to-point messages between named connections.

    Each connection is driven by its own task calling `handle_frame`; the
    registry is the only shared state. Registration (check + insert) and
    delivery (lookup + hand-off to the recipient's outbox) both run with the
    registry lock held, and disconnect flips the peer to CLOSED and releases
    its name under the same lock, so a delivery racing a disconnect either
    lands in the outbox before the close or sees the recipient as gone.

    Frames are written by a per-peer writer task, so a slow recipient only
    backs up its own outbox and never stalls the sender or the lock.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.registry: Registry[Peer] = Registry()
        self.peers: set[Peer] = set()

    def online_count(self) -> int:
        return len(self.registry)

    # lifecycle

    async def connect(self, conn: Connection) -> Peer:
        peer = Peer(conn=conn, outbox=asyncio.Queue(maxsize=self.settings.outbox_size))
        peer.writer = asyncio.create_task(self._write_loop(peer))
        self.peers.add(peer)
        logger.info("client connected (%d open)", len(self.peers))
        return peer

    async def disconnect(self, peer: Peer) -> None:
        """Tear a peer down. Safe to call more than once; only the first call acts."""
        async with self.registry.lock:
            if peer.state is PeerState.CLOSED:
                return
            was_named = peer.state is PeerState.REGISTERED
            peer.state = PeerState.CLOSED
            released = peer.name is not None and self.registry.release(peer.name, peer)
        self.peers.discard(peer)

        if was_named:
            logger.info(
                "user %s disconnected (released=%s, %d online)",
                peer.name,
                released,
                len(self.registry),
            )
        else:
            logger.info("unregistered client disconnected")

        writer = peer.writer
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await writer
        _drain(peer.outbox)

    async def close(self, peer: Peer, code: int = 1000) -> None:
        """Disconnect a peer and close its socket so the listener's receive loop ends."""
        await self.disconnect(peer)
        try:
            await peer.conn.close(code=code)
        except (RuntimeError, ConnectionError) as e:
            logger.debug("close of %s failed: %s", peer.label, e)

    async def close_all(self, code: int = 1001) -> None:
        """
        Close every open connection, e.g. on process shutdown.

        Frames already accepted (forwards that were acked) get up to
        `shutdown_flush_s` to be written before the sockets close.
        """
        peers = list(self.peers)
        if not peers:
            return
        logger.info("closing %d open connection(s)", len(peers))
        try:
            await asyncio.wait_for(
                asyncio.gather(*(p.flush() for p in peers)),
                timeout=self.settings.shutdown_flush_s,
            )
        except asyncio.TimeoutError:
            logger.warning("outboxes not drained after %.1fs, closing anyway", self.settings.shutdown_flush_s)
        for peer in peers:
            await self.close(peer, code=code)

    async def _write_loop(self, peer: Peer) -> None:
        while True:
            msg = await peer.outbox.get()
            try:
                await peer.conn.send_text(dump_frame(msg))
            except Exception as e:
                logger.warning("send to %s failed, dropping connection: %s", peer.label, e)
                break
            finally:
                peer.outbox.task_done()
        # Transport failure counts as a disconnect; nothing is reported to any peer.
        await self.close(peer, code=1011)

    # inbound frames

    async def handle_frame(self, peer: Peer, raw: str | bytes) -> None:
        if peer.state is PeerState.CLOSED:
            return
        try:
            req = parse_frame(raw)
        except InvalidFrame as e:
            logger.info("invalid frame from %s: %s", peer.label, e)
            self._reply(peer, ErrorReply(message=ERR_INVALID_FORMAT))
            return

        if self.settings.debug_log_msgs:
            logger.info("in %s from=%s", type(req).__name__ if req is not None else "unrecognized", peer.label)

        if isinstance(req, RegisterRequest):
            await self._register(peer, req)
        elif isinstance(req, DeliveryRequest):
            await self._deliver(peer, req)
        elif self.settings.strict_frames:
            self._reply(peer, ErrorReply(message=ERR_UNRECOGNIZED))

    async def _register(self, peer: Peer, req: RegisterRequest) -> None:
        reply: OutboundMsg | None
        async with self.registry.lock:
            if peer.state is PeerState.CLOSED:
                return
            if peer.name is None:
                reply = self._claim(peer, req.username)
            else:
                reply = self._reregister(peer, req.username)
        if reply is not None:
            self._reply(peer, reply)

    def _claim(self, peer: Peer, username: str) -> OutboundMsg:
        if not self.registry.claim(username, peer):
            logger.info("username %s is already in use", username)
            return ErrorReply(message=ERR_USERNAME_TAKEN)
        peer.name = username
        peer.state = PeerState.REGISTERED
        logger.info("user %s registered (%d online)", username, len(self.registry))
        return Registered(username=username, online_count=len(self.registry))

    def _reregister(self, peer: Peer, username: str) -> OutboundMsg | None:
        policy = self.settings.reregister_policy
        if policy == "ignore":
            return None
        if policy == "reject":
            logger.info("%s tried to re-register as %s", peer.label, username)
            return ErrorReply(message=ERR_ALREADY_REGISTERED)

        old = peer.name
        if username != old:
            if not self.registry.claim(username, peer):
                return ErrorReply(message=ERR_USERNAME_TAKEN)
            self.registry.release(old, peer)
            peer.name = username
            logger.info("user %s renamed to %s", old, username)
        return Registered(username=username, online_count=len(self.registry))

    async def _deliver(self, peer: Peer, req: DeliveryRequest) -> None:
        sender = peer.name
        if sender is None:
            logger.info("unregistered client attempted to send a message")
            self._reply(peer, ErrorReply(message=ERR_NOT_REGISTERED))
            return

        async with self.registry.lock:
            recipient = self.registry.lookup(req.to)
            if recipient is None:
                reply: OutboundMsg = ErrorReply(message=ERR_RECIPIENT_NOT_FOUND)
            elif not recipient.offer(Forwarded(sender=sender, message=req.message)):
                reply = ErrorReply(message=ERR_RECIPIENT_UNAVAILABLE)
            else:
                reply = Delivered(to=req.to)

        if isinstance(reply, Delivered):
            logger.debug("forwarded message from %s to %s", sender, req.to)
        else:
            logger.info("could not deliver from %s to %s: %s", sender, req.to, reply.message)
        self._reply(peer, reply)

    def _reply(self, peer: Peer, msg: OutboundMsg) -> None:
        if not peer.offer(msg):
            logger.warning("dropped %s frame for %s (closed or backed up)", type(msg).__name__, peer.label)
