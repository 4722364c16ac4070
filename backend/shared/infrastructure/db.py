"""
Database configuration and session management.
Uses SQLAlchemy 2.0 patterns.
"""

import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from shared.config.settings import DATABASE_URL


def _calculate_pool_size() -> int:
    """
    Calculate pool size based on CPU cores.
    Formula: (2 * CPU cores) + 1, capped at 20.
    """
    cores = os.cpu_count() or 4
    return min(cores * 2 + 1, 20)


def build_engine(url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite (tests, local tooling) gets no pool tuning since its pools
    reject the QueuePool arguments.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=_calculate_pool_size(),
        max_overflow=15,
        pool_timeout=30,  # Wait max 30s for connection from pool
        pool_recycle=1800,  # Recycle connections after 30 minutes
        connect_args={"connect_timeout": 10},
        echo=False,  # Set to True for SQL logging in development
    )


engine = build_engine(DATABASE_URL)

# Session factory
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/orders")
        def list_orders(db: Session = Depends(get_db)):
            ...

    The session is automatically closed after the request completes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Run a block of reads and writes as one transaction.

    Everything done through the yielded session inside the block is
    committed together when the block exits normally and rolled back
    when it raises. Nothing is committed before the block ends. If the
    session already autobegan a transaction (earlier reads in the same
    request) the block joins it.

    Usage:
        with unit_of_work(db) as tx:
            order = tx.scalar(select(Order).with_for_update())
            ...
    """
    if not db.in_transaction():
        db.begin()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
