from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool

from .. import config

DRAFTS_DB_NAME = "hr_portal_drafts.db"

# ---------- ORM Base for local client models ----------
# core/models.py does: from .database import Base
Base = declarative_base()

_engines: dict[str, Engine] = {}
_sessions: dict[str, sessionmaker] = {}


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in the SQLite DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _sqlite_url(p: Path) -> str:
    return "sqlite:///" + p.as_posix()


def drafts_url() -> str:
    return _sqlite_url(config.data_dir() / DRAFTS_DB_NAME)


def get_engine(url: str | None = None) -> Engine:
    url = url or drafts_url()
    eng = _engines.get(url)
    if eng is None:
        eng = create_engine(
            url,
            connect_args={"check_same_thread": False},
            future=True,
            poolclass=NullPool,
        )
        _engines[url] = eng
    return eng


def get_sessionmaker(url: str | None = None) -> sessionmaker:
    url = url or drafts_url()
    sm = _sessions.get(url)
    if sm is None:
        sm = sessionmaker(bind=get_engine(url), autocommit=False, autoflush=False, future=True)
        _sessions[url] = sm
    return sm


def init_db(url: str | None = None) -> Engine:
    """Create the draft tables. Import inside to avoid circulars."""
    from . import models  # noqa: F401

    eng = get_engine(url)
    Base.metadata.create_all(bind=eng)
    return eng

