"""Shared fixtures: an in-memory durable store double and a wired service."""

from concurrent.futures import Executor, Future

import pytest

from memory.cache import MemoryCache
from memory.db import DurableStoreError
from memory.locks import SessionLocks
from memory.service import MemoryService, set_service
from memory.store import MemoryStore


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:  # noqa: BLE001
            future.set_exception(exc)
        return future


class FakeDurableStore:
    """Dict-backed stand-in for DurableStore.

    ``failing = True`` makes every call raise DurableStoreError, simulating an
    unreachable database.
    """

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.failing = False
        self.rows = {}
        self.upserts = 0

    def fetch(self, session_id):
        if self.failing:
            raise DurableStoreError("connection refused")
        record = self.rows.get(session_id)
        return record.model_copy(deep=True) if record is not None else None

    def upsert(self, record, overwrite=True):
        if self.failing:
            raise DurableStoreError("connection refused")
        if not overwrite and record.session_id in self.rows:
            return
        self.upserts += 1
        self.rows[record.session_id] = record.model_copy(deep=True)


@pytest.fixture()
def cache():
    c = MemoryCache()
    yield c
    c.clear()


@pytest.fixture()
def durable():
    return FakeDurableStore()


@pytest.fixture()
def store(cache, durable):
    return MemoryStore(cache, durable, executor=InlineExecutor())


@pytest.fixture()
def degraded_store(cache):
    """Store whose durable backend is permanently unavailable."""
    return MemoryStore(cache, FakeDurableStore(available=False), executor=InlineExecutor())


@pytest.fixture()
def service(store):
    return MemoryService(store, SessionLocks())


@pytest.fixture()
def global_service(service):
    """Install *service* as the process-wide singleton for the test."""
    set_service(service)
    yield service
    set_service(None)
