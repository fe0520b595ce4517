"""Database configuration for the expense service."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import (
    CHAR,
    Column,
    Date,
    DateTime,
    Engine,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
)
from sqlalchemy.engine import Connection, make_url
from sqlalchemy.pool import StaticPool

metadata = MetaData()

expenses = Table(
    "expenses",
    metadata,
    Column("id", CHAR(36), primary_key=True),
    Column("description", String(255), nullable=False),
    Column("amount", Numeric(12, 2), nullable=False),
    Column("category", String(100), nullable=False),
    Column("date", Date, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    SQLite connections are shared across the server's worker threads, and an
    in-memory database needs a single pooled connection to survive between
    requests.
    """

    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)
    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    """Create database tables if they do not already exist."""

    metadata.create_all(bind=engine)


@contextmanager
def connection_scope(engine: Engine) -> Iterator[Connection]:
    """Provide a transactional scope around a series of operations."""

    connection = engine.connect()
    transaction = connection.begin()
    try:
        yield connection
        transaction.commit()
    except Exception:
        transaction.rollback()
        raise
    finally:
        connection.close()


def get_connection(request: Request) -> Iterator[Connection]:
    """FastAPI dependency that provides a connection bound to the app's engine."""

    with connection_scope(request.app.state.engine) as connection:
        yield connection
