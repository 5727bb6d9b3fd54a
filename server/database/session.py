# server/database/session.py
"""
Storage handle

One Database per application instance: it owns the SQLAlchemy engine and
session factory, is created from the settings and disposed on shutdown.
Routes get a session through Depends(get_db).
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)


def _sqlite_file_path(url: str) -> Optional[Path]:
    parsed = make_url(url)
    if not parsed.drivername.startswith("sqlite"):
        return None
    if not parsed.database or parsed.database == ":memory:":
        return None
    return Path(parsed.database)


def _configure_sqlite_connection(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
    finally:
        cursor.close()


class Database:
    """Engine + session factory bound to one database URL"""

    def __init__(self, url: str):
        self.url = url
        self.file_path = _sqlite_file_path(url)
        if self.file_path is not None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)

        connect_args = {}
        if url.startswith("sqlite"):
            connect_args["check_same_thread"] = False

        self.engine: Engine = create_engine(url, connect_args=connect_args)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _configure_sqlite_connection)

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info(f"Database engine disposed ({self.url})")


def get_db(request: Request) -> Iterator[Session]:
    """FastAPI dependency: a session from the app's Database, closed after the request"""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
