"""Durable backing store for session memory.

One row per session in ``user_memory``; the full record lives in the
``memory`` JSON column and the timestamps are maintained by the database.

The adapter never retries configuration: if the URL is missing, malformed or
names an unsupported backend, it reports itself unavailable for the rest of
the process. Every runtime failure is raised as :class:`DurableStoreError`.
"""

import importlib.util
import logging
from typing import Optional

from pydantic import ValidationError
from sqlalchemy import JSON, Column, DateTime, MetaData, Table, Text, create_engine, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.pool import StaticPool

from memory.schema import SessionMemoryRecord

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

metadata = MetaData()

user_memory = Table(
    "user_memory",
    metadata,
    Column("session_id", Text, primary_key=True),
    Column("memory", JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


class DurableStoreError(RuntimeError):
    """Raised when the durable store cannot serve a request."""


def _postgres_driver() -> str:
    """Prefer psycopg 3 (the ``postgres`` extra); else SQLAlchemy's default driver."""
    if importlib.util.find_spec("psycopg") is not None:
        return "postgresql+psycopg"
    return "postgresql"


def _normalize_url(database_url: str) -> URL:
    """Parse *database_url*, accepting the ``postgres://`` scheme used by hosting providers."""
    url = make_url(database_url)
    if url.drivername in ("postgres", "postgresql"):
        url = url.set(drivername=_postgres_driver())
    return url


def _build_engine(database_url: str, timeout_seconds: int) -> Engine:
    url = _normalize_url(database_url)
    backend = url.get_backend_name()
    if backend not in _INSERTS:
        raise ValueError(f"unsupported database backend '{backend}'")

    if backend == "postgresql":
        return create_engine(
            url,
            connect_args={
                "connect_timeout": timeout_seconds,
                "options": f"-c statement_timeout={timeout_seconds * 1000}",
            },
            pool_timeout=timeout_seconds,
            pool_pre_ping=True,
        )

    connect_args = {"check_same_thread": False, "timeout": timeout_seconds}
    if url.database in (None, "", ":memory:"):
        # A single shared connection keeps an in-memory database alive.
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


class DurableStore:
    """get-by-key / upsert-by-key over :class:`SessionMemoryRecord`."""

    def __init__(self, database_url: Optional[str], timeout_seconds: int = 5) -> None:
        self._engine: Optional[Engine] = None
        self._insert = None

        if not database_url:
            logger.warning("DATABASE_URL not configured, durable memory disabled")
            return
        try:
            engine = _build_engine(database_url, timeout_seconds)
        except (ArgumentError, ValueError, ImportError) as exc:
            logger.warning("DATABASE_URL invalid (%s), durable memory disabled", exc)
            return

        self._engine = engine
        self._insert = _INSERTS[engine.dialect.name]

    @property
    def available(self) -> bool:
        return self._engine is not None

    def _require_engine(self) -> Engine:
        if self._engine is None:
            raise DurableStoreError("durable store is not configured")
        return self._engine

    def init_schema(self) -> bool:
        """Create the ``user_memory`` table if it does not exist."""
        if self._engine is None:
            logger.warning("Durable store not available, skipping schema initialization")
            return False
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            logger.error("Failed to initialize memory schema: %s", exc)
            return False
        logger.info("Memory schema initialized")
        return True

    def fetch(self, session_id: str) -> Optional[SessionMemoryRecord]:
        """Return the stored record, or None if the session has none."""
        engine = self._require_engine()
        query = select(user_memory.c.memory).where(user_memory.c.session_id == session_id)
        try:
            with engine.connect() as conn:
                row = conn.execute(query).first()
        except SQLAlchemyError as exc:
            raise DurableStoreError(f"fetch failed for session {session_id!r}: {exc}") from exc

        if row is None:
            return None
        try:
            return SessionMemoryRecord.model_validate(row.memory)
        except ValidationError as exc:
            raise DurableStoreError(
                f"stored memory for session {session_id!r} is malformed: {exc}"
            ) from exc

    def upsert(self, record: SessionMemoryRecord, overwrite: bool = True) -> None:
        """Insert the record, or replace the stored blob if the session exists.

        With ``overwrite=False`` an existing row is left untouched.
        """
        engine = self._require_engine()
        payload = record.to_json_dict()
        stmt = self._insert(user_memory).values(session_id=record.session_id, memory=payload)
        if overwrite:
            stmt = stmt.on_conflict_do_update(
                index_elements=[user_memory.c.session_id],
                set_={"memory": stmt.excluded.memory, "updated_at": func.now()},
            )
        else:
            stmt = stmt.on_conflict_do_nothing(index_elements=[user_memory.c.session_id])
        try:
            with engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise DurableStoreError(
                f"upsert failed for session {record.session_id!r}: {exc}"
            ) from exc

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
