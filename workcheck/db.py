# workcheck/db.py
"""
Database helpers using SQLModel (SQLite by default).
Provides: engine, init_db()

DB_PATH may be a plain filepath like './data/workcheck.sqlite' or a full
SQLAlchemy URL like 'sqlite:///./data/workcheck.sqlite'.
"""

import logging
import os
from sqlmodel import SQLModel, create_engine

from .settings import settings
from . import models  # ensure models are imported so SQLModel metadata includes them

logger = logging.getLogger(__name__)

TABLE_NAMES = [
    models.CheckTemplate.__tablename__,
    models.CheckTemplateItem.__tablename__,
    models.Task.__tablename__,
    models.TaskFile.__tablename__,
    models.TaskCheck.__tablename__,
]


def _make_db_url(db_path: str) -> str:
    """
    Normalize db_path to an SQLAlchemy URL.

    Accepts:
      - full SQLAlchemy URL (anything containing '://')
      - relative or absolute file path, made absolute
    """
    if not db_path:
        raise ValueError("DB_PATH is empty in settings")

    db_path = str(db_path).strip()

    if "://" in db_path:
        return db_path

    abs_path = os.path.abspath(db_path)
    return f"sqlite:///{abs_path}"


def _ensure_sqlite_dir(db_url: str) -> None:
    # sqlite:///relative/or/absolute.sqlite -> make sure the directory exists
    prefix = "sqlite:///"
    if db_url.startswith(prefix) and ":memory:" not in db_url:
        file_path = db_url[len(prefix):]
        directory = os.path.dirname(os.path.abspath(file_path))
        os.makedirs(directory, exist_ok=True)


try:
    DB_URL = _make_db_url(settings.DB_PATH)
except ValueError:
    logger.error("Invalid DB_PATH in settings: %s", settings.DB_PATH)
    raise

_ensure_sqlite_dir(DB_URL)
logger.info("Using database URL: %s", DB_URL)

# allow check_same_thread=False since FastAPI runs sync endpoints in a threadpool
_connect_args = {"check_same_thread": False} if DB_URL.startswith("sqlite") else {}
engine = create_engine(DB_URL, echo=False, connect_args=_connect_args)


def init_db():
    """
    Create tables (idempotent).
    """
    logger.info("Initializing DB at %s", DB_URL)
    SQLModel.metadata.create_all(engine)
