"""Engine and session factory helpers."""

from __future__ import annotations

import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

DEFAULT_DATABASE_URL = "sqlite:///:memory:"


class Base(DeclarativeBase):
    pass


def make_engine(url: str | None = None, *, echo: bool | None = False) -> Engine:
    """Create an engine; SQLite URLs get thread-shareable connections."""
    url = url or DEFAULT_DATABASE_URL
    kwargs: dict = {"echo": bool(echo)}
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SessionFactory:
    """Hands out sessions as context managers.

    When the engine pools a single shared connection, sessions from different
    threads would share one transaction, so each session holds a lock from
    open to close and they run one at a time.
    """

    def __init__(self, engine: Engine):
        self._maker = sessionmaker(bind=engine, expire_on_commit=False)
        self._lock = threading.RLock() if isinstance(engine.pool, StaticPool) else None

    @property
    def serialized(self) -> bool:
        return self._lock is not None

    @contextmanager
    def __call__(self) -> Iterator[Session]:
        with self._guard(), self._maker() as session:
            yield session

    @contextmanager
    def begin(self) -> Iterator[Session]:
        """Session inside a transaction committed on success, rolled back on error."""
        with self._guard(), self._maker.begin() as session:
            yield session

    def _guard(self):
        return self._lock if self._lock is not None else nullcontext()


def make_session_factory(engine: Engine) -> SessionFactory:
    return SessionFactory(engine)


def init_schema(engine: Engine) -> None:
    """Create all tables known to the metadata."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
