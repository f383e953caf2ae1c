"""Database engine and session helpers (SQLModel)."""
import logging
from typing import Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from haircare.config import settings
from haircare.realtime.live_sync import LiveSyncChannel

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: Optional[str] = None, **kwargs) -> Engine:
    """
    Create an engine with a bounded wait on every connection.

    SQLite gets foreign key enforcement turned on per connection so that
    owner references are checked the same way as on a server database.
    """
    url = url or settings.DATABASE_URL
    timeout = settings.DB_TIMEOUT_SECONDS
    is_sqlite = url.startswith("sqlite")

    if is_sqlite:
        connect_args = {"check_same_thread": False, "timeout": timeout}
    else:
        connect_args = {"connect_timeout": int(timeout)}
        kwargs.setdefault("pool_timeout", timeout)
        kwargs.setdefault("pool_pre_ping", True)

    connect_args.update(kwargs.pop("connect_args", {}))
    engine = create_engine(url, echo=settings.DB_ECHO, connect_args=connect_args, **kwargs)

    if is_sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def init_db(engine: Engine) -> None:
    """Create all tables registered on SQLModel metadata."""
    # Import models so their tables are registered
    from haircare.models import auth_session, conversation, profile  # noqa: F401

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables ensured")


def open_session(engine: Engine, live_sync: Optional[LiveSyncChannel] = None) -> Session:
    """
    Open a session bound to ``engine``.

    When ``live_sync`` is given, committed conversation writes made through
    this session are published to it.
    """
    session = Session(engine)
    if live_sync is not None:
        session.info["live_sync"] = live_sync
    return session
