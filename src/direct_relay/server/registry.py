from __future__ import annotations

import asyncio
from typing import Generic, Iterator, TypeVar

P = TypeVar("P")


class Registry(Generic[P]):
    """
    Live mapping from bound name to peer.

    Every mutation happens with `lock` held. The individual methods never await,
    so a caller can hold the lock across a lookup and whatever it does with the
    result (claim, release, hand a frame to the peer) and other connection tasks
    observe it as one step.
    """

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self._peers: dict[str, P] = {}

    def claim(self, name: str, peer: P) -> bool:
        """Bind `name` to `peer` unless the name is already held."""
        if name in self._peers:
            return False
        self._peers[name] = peer
        return True

    def release(self, name: str, peer: P) -> bool:
        """Drop `name` only while it still points at `peer`; a repeat call is a no-op."""
        if self._peers.get(name) is not peer:
            return False
        del self._peers[name]
        return True

    def lookup(self, name: str) -> P | None:
        return self._peers.get(name)

    def names(self) -> list[str]:
        return list(self._peers)

    def __contains__(self, name: object) -> bool:
        return name in self._peers

    def __len__(self) -> int:
        return len(self._peers)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._peers))
