# shopsync/db.py
"""Database engine and session utilities.

The engine and session factory are built from `Settings` by the app factory
or the CLI runner and passed down; `get_db` reads the factory off the app.
"""
from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import DBAPIError, DisconnectionError, InterfaceError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .errors import StoreUnavailable

Base = declarative_base()


def normalize_database_url(url: str) -> str:
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


def make_engine(settings):
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL not set")
    url = normalize_database_url(settings.database_url)

    if url.startswith("sqlite"):
        if url in ("sqlite://", "sqlite:///:memory:"):
            return create_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
        engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
        _begin_immediate(engine)
        return engine

    connect_args = {}
    if settings.db_sslmode:
        connect_args["sslmode"] = settings.db_sslmode
    # tuned pool settings for cloud DB
    return create_engine(
        url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def _begin_immediate(engine):
    """Make file-backed SQLite writers take the write lock when the
    transaction starts, so concurrent sessions queue instead of deadlocking."""

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_conn, _record):
        dbapi_conn.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def make_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine):
    # models must be imported so their tables are registered on Base
    from . import models  # noqa: F401
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise StoreUnavailable(f"could not create tables: {e}") from e


def is_disconnect(exc: SQLAlchemyError) -> bool:
    """True when the error means the store itself is unreachable."""
    if isinstance(exc, (InterfaceError, DisconnectionError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


def ping(engine):
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        raise StoreUnavailable(f"database unreachable: {e}") from e


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
