"""Database configuration and session management."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from functools import lru_cache

import logging
import re

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from sproutify_dispatch.config import get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


logger = logging.getLogger(__name__)

_BARE_POSTGRES_SCHEME = re.compile(r"^postgres(?:ql)?://", re.IGNORECASE)


def build_sqlalchemy_database_url(raw_url: str) -> str:
    """Return a SQLAlchemy URL for ``raw_url``.

    Hosted Postgres providers hand out ``postgres://`` connection strings, which
    SQLAlchemy does not accept. Those (and driverless ``postgresql://`` URLs) are
    pinned to the psycopg driver; any other URL is returned unchanged.
    """

    url = raw_url.strip()
    if _BARE_POSTGRES_SCHEME.match(url):
        return _BARE_POSTGRES_SCHEME.sub("postgresql+psycopg://", url, count=1)
    return url


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Create (once) the engine bound to the configured database."""

    database_url = build_sqlalchemy_database_url(get_settings().database_url)
    options: dict[str, object] = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
    engine = create_engine(database_url, **options)
    logger.debug("Database engine created for dialect %s", engine.dialect.name)
    return engine


@lru_cache(maxsize=1)
def get_session_factory() -> sessionmaker[Session]:
    """Return the session factory bound to :func:`get_engine`."""

    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def dispose_engine() -> None:
    """Release pooled connections and forget the cached engine."""

    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()


def initialize_database() -> None:
    """Ensure all ORM models have corresponding database tables.

    Only meant for local development and tests; the hosted database owns the
    real schema and the user-directory view.
    """

    from sproutify_dispatch.infrastructure import models  # noqa: F401  # ensure models are imported

    Base.metadata.create_all(bind=get_engine(), checkfirst=True)


@contextmanager
def session_scope() -> Iterator[Session]:
    """Open a session for the duration of a ``with`` block and close it afterwards."""

    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()
