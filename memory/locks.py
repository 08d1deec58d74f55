"""Per-session mutexes for read-modify-write cycles."""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class SessionLocks:
    """One lock per session id, created on first use.

    With ``enabled=False`` every ``hold`` is a no-op, which leaves concurrent
    writers to the same session in last-write-wins order.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = self._locks[session_id] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, session_id: str) -> Iterator[None]:
        if not self.enabled:
            yield
            return
        with self._lock_for(session_id):
            yield
