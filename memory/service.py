"""Read/write contract used by the tool layer and the HTTP surface."""

import logging
from typing import Any, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from assistant import config
from memory.cache import MemoryCache, process_cache
from memory.db import DurableStore
from memory.locks import SessionLocks
from memory.schema import MasteryForecast, MemoryUpdate, SessionMemoryRecord, apply_update
from memory.store import MemoryStore
from memory.tracking import CombinationTracker, WordUsageTracker

logger = logging.getLogger(__name__)


class InvalidMemoryInput(ValueError):
    """Raised when a request to the memory service is malformed."""


class InvalidMemoryUpdate(InvalidMemoryInput):
    """Raised when a partial update does not match the expected shape."""


class InvalidSessionId(InvalidMemoryInput):
    """Raised for a missing or blank session id."""


def _check_session_id(session_id: str) -> str:
    if not isinstance(session_id, str) or not session_id.strip():
        raise InvalidSessionId("session id must be a non-empty string")
    return session_id


class MemoryService:
    def __init__(self, store: MemoryStore, locks: Optional[SessionLocks] = None) -> None:
        self.store = store
        self._locks = locks or SessionLocks()
        self._words = WordUsageTracker(store, self._locks)
        self._combinations = CombinationTracker(store, self._locks)

    def read_memory(self, session_id: str) -> SessionMemoryRecord:
        return self.store.get(_check_session_id(session_id))

    def write_memory_partial(
        self,
        session_id: str,
        updates: Union[MemoryUpdate, Mapping[str, Any]],
    ) -> bool:
        """Merge *updates* into the session's record.

        Raises:
            InvalidSessionId: If *session_id* is blank.
            InvalidMemoryUpdate: If *updates* is not a valid partial record.

        Returns:
            False only if the record could not even be cached.
        """
        _check_session_id(session_id)
        if not isinstance(updates, MemoryUpdate):
            try:
                updates = MemoryUpdate.model_validate(updates)
            except ValidationError as exc:
                raise InvalidMemoryUpdate(str(exc)) from exc

        with self._locks.hold(session_id):
            record = self.store.get(session_id)
            apply_update(record, updates)
            try:
                self.store.save(record)
            except Exception:  # noqa: BLE001
                logger.exception("Failed to write memory for %s", session_id)
                return False
        return True

    def record_spoken_words(self, session_id: str, words: Iterable[str]) -> bool:
        self._words.record_words(_check_session_id(session_id), words)
        return True

    def record_utterance(self, session_id: str, utterance: str) -> bool:
        self._combinations.record_utterance(_check_session_id(session_id), utterance)
        return True

    def get_forecast(self, session_id: str) -> List[MasteryForecast]:
        return list(self.store.get(_check_session_id(session_id)).mastery_forecast)


def build_service(
    database_url: Optional[str] = None,
    cache: Optional[MemoryCache] = None,
) -> MemoryService:
    """Wire a service from configuration."""
    durable = DurableStore(
        database_url if database_url is not None else config.DATABASE_URL,
        timeout_seconds=config.DB_TIMEOUT_SECONDS,
    )
    durable.init_schema()
    store = MemoryStore(cache if cache is not None else process_cache, durable)
    return MemoryService(store, SessionLocks(enabled=config.SERIALIZE_SESSION_WRITES))


# ── Module-level singleton ────────────────────────────────────────────────────

_service: Optional[MemoryService] = None


def get_service() -> MemoryService:
    """Return (and lazily create) the global MemoryService singleton."""
    global _service
    if _service is None:
        _service = build_service()
    return _service


def set_service(service: Optional[MemoryService]) -> None:
    """Replace the global service; ``None`` forces a rebuild on next use."""
    global _service
    _service = service
