"""Cache-aside session memory store.

Reads go to the durable store first and fall back to the process cache;
writes always land in the cache and then try the durable store. Durable-store
failures are logged here and nowhere else: callers of ``get``/``save`` never
see them.
"""

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from memory.cache import MemoryCache
from memory.db import DurableStore, DurableStoreError
from memory.schema import SessionMemoryRecord, utcnow

logger = logging.getLogger(__name__)

_background: Optional[ThreadPoolExecutor] = None


def _default_executor() -> Executor:
    global _background
    if _background is None:
        _background = ThreadPoolExecutor(max_workers=2, thread_name_prefix="memory-persist")
    return _background


class MemoryStore:
    """Sole owner of read/write access to the durable store and the cache.

    Args:
        cache:    Process-scoped record cache.
        durable:  Optional durable store. ``None`` or an unavailable store
                  means cache-only mode.
        executor: Runs the background persist of newly created records.
    """

    def __init__(
        self,
        cache: MemoryCache,
        durable: Optional[DurableStore] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._cache = cache
        self._durable = durable
        self._executor = executor

    @property
    def durable_available(self) -> bool:
        return self._durable is not None and self._durable.available

    # ── Public API ────────────────────────────────────────────────────────

    def get(self, session_id: str) -> SessionMemoryRecord:
        """Return the session's record, creating an empty one if none exists."""
        if self.durable_available:
            try:
                stored = self._durable.fetch(session_id)
            except DurableStoreError as exc:
                logger.warning("Durable lookup failed, trying cache: %s", exc)
            else:
                if stored is not None:
                    self._cache.set(stored)
                    return stored

        cached = self._cache.get(session_id)
        if cached is not None:
            return cached

        record = SessionMemoryRecord.empty(session_id)
        self._cache.set(record)
        if self.durable_available:
            executor = self._executor or _default_executor()
            executor.submit(self._persist, record.model_copy(deep=True), False)
        return record

    def get_cached(self, session_id: str) -> Optional[SessionMemoryRecord]:
        """Cache-only lookup; never touches the durable store."""
        return self._cache.get(session_id)

    def save(self, record: SessionMemoryRecord) -> None:
        """Stamp ``updated_at`` and write to the cache, then the durable store."""
        record.updated_at = utcnow()
        self._cache.set(record)
        if self.durable_available:
            self._persist(record)

    # ── Internal ──────────────────────────────────────────────────────────

    def _persist(self, record: SessionMemoryRecord, overwrite: bool = True) -> None:
        # Fresh records are inserted only if the session has no row yet.
        try:
            self._durable.upsert(record, overwrite=overwrite)
        except DurableStoreError as exc:
            logger.warning(
                "Failed to persist memory for %s, cached only: %s", record.session_id, exc
            )
