from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from stockflow.core.config import settings


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DATABASE_ECHO,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


_DEPTH_KEY = "unit_of_work_depth"


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    One transaction per public service call.

    The outermost block commits when it completes; on any exception
    everything attempted inside it is rolled back before the exception
    propagates. Nested blocks join the enclosing one, so a service call made
    from inside another service call never commits on its own.
    """
    depth = db.info.get(_DEPTH_KEY, 0)
    db.info[_DEPTH_KEY] = depth + 1
    try:
        if depth:
            yield db
            return
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
    finally:
        db.info[_DEPTH_KEY] = depth
