"""Database engine and session factory.

PostgreSQL gets a sized connection pool.  SQLite (used by the test suite
and for quick local runs) cannot share a pool across threads, so it gets
``check_same_thread=False`` and, for in-memory URLs, a ``StaticPool`` so
every session sees the same database.  SQLite also enforces foreign keys
only when asked per connection; ``ON DELETE`` rules depend on it.
"""

from typing import Any, Dict

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from obd_dashboard.config import settings
from obd_dashboard.db.query_log import install_query_log


def _engine_kwargs(url: str) -> Dict[str, Any]:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "pool_pre_ping": True,
        "pool_size": settings.db_pool_size,
        "max_overflow": 10,
    }


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
if engine.dialect.name == "sqlite":
    _enable_sqlite_foreign_keys(engine)
install_query_log(engine)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
