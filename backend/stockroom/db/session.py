"""Database handle and unit-of-work helpers."""

import logging
import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stockroom.db.base import Base

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine and session factory for one process.

    Constructed once at startup (see ``stockroom.main.lifespan``) and passed
    to whatever needs sessions; ``dispose()`` releases the pool on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = self._create_engine(url, echo)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def _create_engine(self, url: str, echo: bool) -> Engine:
        if not url.startswith("sqlite"):
            return create_engine(
                url,
                echo=echo,
                pool_size=20,
                max_overflow=40,
                pool_pre_ping=True,
                pool_recycle=3600,
            )

        kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if ":memory:" in url or url in ("sqlite://", "sqlite+pysqlite://"):
            kwargs["poolclass"] = StaticPool
        else:
            path = make_url(url).database
            if path and os.path.dirname(path):
                os.makedirs(os.path.dirname(path), exist_ok=True)
        engine = create_engine(url, echo=echo, **kwargs)

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            # Take over transaction control from pysqlite so BEGIN is ours
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def begin_immediate(conn):
            # SQLite has no row locks: acquire the write lock up front so
            # read-modify-write sequences never interleave.
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine

    def session(self) -> Session:
        return self.SessionLocal()

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Open a session that commits on success and rolls back on error."""
        session = self.SessionLocal()
        try:
            with atomic(session):
                yield session
        finally:
            session.close()

    def create_all(self) -> None:
        # Import models so they register with Base.metadata
        import stockroom.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit everything staged in ``db`` on success, roll all of it back on error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def get_db(request: Request) -> Generator[Session, None, None]:
    """Get database session dependency from the app's store handle."""
    database: Database = request.app.state.db
    db = database.session()
    try:
        yield db
    finally:
        db.close()


# Type alias for dependency injection
DbSession = Annotated[Session, Depends(get_db)]
