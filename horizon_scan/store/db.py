"""Engine and session setup for the SQLite store."""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models import Base


class Store:
    """Owns the engine and hands out sessions.

    Every stage opens its own short-lived session and commits each row update
    independently, so a cycle interrupted midway leaves consistent rows behind.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        options = {}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # in-memory databases live per connection; share one
            options["poolclass"] = StaticPool
        self.engine: Engine = create_engine(
            url, echo=echo, connect_args={"check_same_thread": False}, **options
        )
        event.listen(self.engine, "connect", _configure_sqlite)
        self._sessions = sessionmaker(self.engine, expire_on_commit=False)

    @classmethod
    def from_path(cls, db_path: str) -> Store:
        if db_path == ":memory:":
            return cls("sqlite://")
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return cls(f"sqlite:///{path}")

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Yield a session that is closed on exit, rolling back on error."""
        session = self._sessions()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        self.engine.dispose()


def _configure_sqlite(dbapi_connection, _record) -> None:  # noqa: ANN001
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
