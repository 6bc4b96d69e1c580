"""Engine and session helpers."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

logger = logging.getLogger(__name__)

DEFAULT_DB_URL = "sqlite:///policy_engine.db"

_engines: Dict[str, Engine] = {}


def get_engine(db_url: str = DEFAULT_DB_URL, echo: bool = False) -> Engine:
    """Engine for ``db_url``, created once per URL and process."""
    engine = _engines.get(db_url)
    if engine is None:
        engine = create_engine(db_url, echo=echo)
        _engines[db_url] = engine
    return engine


def dispose_engines() -> None:
    """Close pooled connections of every cached engine."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def init_database(db_url: str = DEFAULT_DB_URL) -> None:
    """Create all tables (and the partial unique index on assignments)."""
    Base.metadata.create_all(get_engine(db_url))
    logger.info("Database initialized: %s", db_url)


def get_session(db_url: str = DEFAULT_DB_URL) -> Session:
    return sessionmaker(bind=get_engine(db_url))()


@contextmanager
def session_scope(db_url: str = DEFAULT_DB_URL) -> Iterator[Session]:
    """
    Session that is rolled back on error and always closed.

    Services commit their own mutations; this only guarantees cleanup.
    """
    session = get_session(db_url)
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
