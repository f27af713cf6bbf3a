from contextlib import contextmanager
from typing import Generator, Iterator, Optional
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker, DeclarativeBase
from .config import settings

def _normalize_db_url(url: str) -> str:
    # Use psycopg v3 driver with SQLAlchemy
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://"):]
    return url

_DB_URL = _normalize_db_url(settings.DATABASE_URL)

_engine = None  # lazy: importing models must not need a reachable database
_SessionLocal: Optional[sessionmaker] = None

def get_engine():
    global _engine
    if _engine is None:
        kwargs = {"pool_pre_ping": True, "future": True}
        if _DB_URL.startswith("sqlite"):
            # FastAPI runs sync endpoints in a threadpool
            kwargs["connect_args"] = {"check_same_thread": False}
        _engine = create_engine(_DB_URL, **kwargs)
    return _engine

def get_sessionmaker() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(
            bind=get_engine(),
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,  # rules are serialized after commit
            future=True,
        )
    return _SessionLocal

class Base(DeclarativeBase):
    pass

def get_db() -> Generator:
    """FastAPI dependency: one session, and so one rule snapshot, per request."""
    db = get_sessionmaker()()
    try:
        yield db
    finally:
        db.close()

@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request (CLI, celery tasks); rolls back on error."""
    db = get_sessionmaker()()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
