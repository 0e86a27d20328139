# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from expenses_splitter.shared.config import load_config
from expenses_splitter.shared.logging import logger

_config = load_config()


class Base(DeclarativeBase):
    pass


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _is_sqlite_memory(url: str) -> bool:
    return _is_sqlite(url) and (url in ("sqlite://", "sqlite:///") or ":memory:" in url)


def _engine_options(url: str) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if _is_sqlite(url):
        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": int(_config.database.pool_timeout),
        }
    if _is_sqlite_memory(url):
        options["poolclass"] = StaticPool
    else:
        options.update(
            pool_size=_config.database.pool_size,
            max_overflow=_config.database.max_overflow,
            pool_timeout=_config.database.pool_timeout,
        )
    return options


ENGINE: Engine = create_engine(_config.database.url, **_engine_options(_config.database.url))


@event.listens_for(ENGINE, "connect")
def _set_sqlite_pragmas(dbapi_conn, _):
    """Apply safety PRAGMAs when using SQLite."""

    if not _is_sqlite(_config.database.url):
        return
    cur = dbapi_conn.cursor()
    try:
        if not _is_sqlite_memory(_config.database.url):
            cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.execute("PRAGMA busy_timeout=30000;")
    except Exception:
        logger.exception("Failed to apply SQLite PRAGMAs")
    finally:
        cur.close()


SessionLocal = scoped_session(
    sessionmaker(bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)
)


def init_db() -> None:
    # Import models so they register on Base.metadata
    from expenses_splitter.infrastructure.db import models  # noqa: F401

    Base.metadata.create_all(bind=ENGINE)
    logger.info("Database schema ensured")
