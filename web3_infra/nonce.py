"""NonceSequencer — serializes transaction submission per sender address.

Two submissions from the same address that read the node's transaction
count concurrently would sign with the same nonce; holding the address
lock from nonce read until ``eth_sendRawTransaction`` returns prevents it.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class NonceSequencer:
    """One re-entrant lock per lower-cased address."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.RLock] = {}

    def _lock_for(self, address: str) -> threading.RLock:
        key = address.lower()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, address: str) -> Iterator[None]:
        """Block until *address* is free, then hold it for the ``with`` body."""
        lock = self._lock_for(address)
        with lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)
