"""
Engine and session factory.

The engine is built on first use from ``DATABASE_URL`` and rebuilt when that
variable changes, so tests can point at an in-memory database before anything
touches the store.
"""

import logging
import os
from typing import Any, Dict, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import URL, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./salon.db"

Base = declarative_base()

_state: Dict[str, Any] = {"url": None, "engine": None, "factory": None}


def _engine_options(url: URL) -> Dict[str, Any]:
    if url.drivername.startswith("postgres"):
        return {
            "pool_size": 20,
            "max_overflow": 40,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "connect_args": {"application_name": "salon_backend", "connect_timeout": 10},
        }
    if url.drivername.startswith("sqlite") and url.database in (None, "", ":memory:"):
        # every session must see the same in-memory database
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {}


def _enforce_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine() -> Engine:
    database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    engine: Optional[Engine] = _state["engine"]
    if engine is not None and _state["url"] == database_url:
        return engine

    if engine is not None:
        engine.dispose()
    url = make_url(database_url)
    engine = create_engine(url, echo=False, **_engine_options(url))
    if engine.dialect.name == "sqlite":
        _enforce_sqlite_foreign_keys(engine)

    _state.update(url=database_url, engine=engine, factory=None)
    logger.debug(
        "Database engine ready",
        extra={
            "context": {
                "dialect": engine.dialect.name,
                "url": url.render_as_string(hide_password=True),
            }
        },
    )
    return engine


def SessionLocal() -> Session:
    """New session on the current engine. Objects stay usable after commit."""
    engine = get_engine()
    if _state["factory"] is None:
        _state["factory"] = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )
    return _state["factory"]()


def create_tables() -> None:
    from salon.db import base  # noqa: F401  registers the models

    Base.metadata.create_all(bind=get_engine())


def drop_tables() -> None:
    from salon.db import base  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())
