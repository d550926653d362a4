"""
Database engines and sessions.

A `Database` owns one primary engine (all writes) and any number of
replica engines (reads). It is created once per application in the
lifespan handler and shared by every request and background worker;
sessions are short-lived and opened per operation.

Replica lag is not handled: a read right after a write may be served by
a replica that has not caught up yet.
"""

import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, List, Sequence

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from shortlink_app.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


def _engine_kwargs(url: str, settings: Settings) -> dict:
    """Pool sizing applies to server databases only (SQLite pools differ)."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_recycle": settings.db_pool_recycle,
        "pool_timeout": settings.db_pool_timeout,
        "pool_pre_ping": True,
    }


class Database:
    """
    Primary/replica session router.

    Usage:
        with db.writer() as session:   # primary, commits on success
            session.add(obj)

        with db.reader() as session:   # replica (round-robin) or primary
            session.execute(stmt)
    """

    def __init__(self, primary: Engine, replicas: Sequence[Engine] = ()):
        self.primary = primary
        self.replicas: List[Engine] = list(replicas)

        self._write_factory = sessionmaker(
            bind=primary, autoflush=False, expire_on_commit=False
        )
        read_factories = [
            sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
            for engine in self.replicas
        ] or [self._write_factory]
        self._read_factories = itertools.cycle(read_factories)
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        primary = create_engine(
            settings.database_url, **_engine_kwargs(settings.database_url, settings)
        )
        replicas = [
            create_engine(url, **_engine_kwargs(url, settings))
            for url in settings.database_replica_urls
        ]
        logger.info(
            "Database configured",
            extra={"replicas": len(replicas), "dialect": primary.dialect.name},
        )
        return cls(primary, replicas)

    @contextmanager
    def writer(self) -> Iterator[Session]:
        """Session bound to the primary; committed on success, rolled back on error."""
        session = self._write_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def reader(self) -> Iterator[Session]:
        """Read-only session, spread across replicas when any are configured."""
        with self._lock:
            factory = next(self._read_factories)
        session = factory()
        try:
            yield session
        finally:
            session.close()

    def create_all(self) -> None:
        """Create tables on the primary (replicas are expected to follow it)."""
        Base.metadata.create_all(bind=self.primary)

    def dispose(self) -> None:
        self.primary.dispose()
        for engine in self.replicas:
            engine.dispose()
