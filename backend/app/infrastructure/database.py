"""
SQLAlchemy engine, session factory and declarative base (2.x, sync).

Routes get a session per request through ``get_db``; services commit
explicitly at the end of each ledger operation.
"""

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.settings import get_settings


def _build_engine(url: str):
    if url.startswith("sqlite"):
        # In-memory SQLite only exists on one connection
        return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


engine = _build_engine(get_settings().DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
