"""Process-wide in-memory cache of session records.

Initialized empty at process start and never torn down. There is no eviction
and no expiry: it only backs the durable store during outages and serves as a
fast path. ``clear()`` exists for test isolation.
"""

import threading
from typing import Dict, Optional

from memory.schema import SessionMemoryRecord


class MemoryCache:
    """Lock-guarded map of session id → record.

    Records are deep-copied on the way in and out so callers can never mutate
    cached state without going through ``set``.
    """

    def __init__(self) -> None:
        self._records: Dict[str, SessionMemoryRecord] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> Optional[SessionMemoryRecord]:
        with self._lock:
            record = self._records.get(session_id)
        return record.model_copy(deep=True) if record is not None else None

    def set(self, record: SessionMemoryRecord) -> None:
        snapshot = record.model_copy(deep=True)
        with self._lock:
            self._records[snapshot.session_id] = snapshot

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._records

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


# Shared process-scoped instance
process_cache = MemoryCache()
