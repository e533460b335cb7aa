# edupeer/database.py

import logging
from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from . import config
from .models import Base


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    db_url = config.DATABASE_URL
    if not db_url:
        logging.error("DATABASE_URL environment variable not set.")
        raise ValueError("DATABASE_URL is not configured.")

    if db_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        # An in-memory database only lives as long as its single connection.
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            options["poolclass"] = StaticPool
        return create_engine(db_url, **options)

    return create_engine(db_url, pool_pre_ping=True)


@lru_cache(maxsize=1)
def get_sessionmaker() -> sessionmaker:
    return sessionmaker(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding one SQLAlchemy session per request.
    """
    session = get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


def init_db() -> None:
    logging.info("Creating database tables...")
    Base.metadata.create_all(get_engine())
    logging.info("Database tables ready.")


def check_connection() -> None:
    """Raises if the database cannot answer a trivial query."""
    with get_engine().connect() as conn:
        conn.execute(text("SELECT 1"))
