# matchup/db/session.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from matchup.core.config import settings


def configure_sqlite_locking(engine: Engine) -> Engine:
    """
    Make every SQLite transaction start with BEGIN IMMEDIATE.

    pysqlite defers BEGIN until the first write, so two transactions can both
    read a game's confirmed count before either writes. Taking the write lock
    up front serializes RSVP transactions the same way the Postgres row lock
    does; waiters block for the driver busy timeout and then fail.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def build_engine(database_url: str) -> Engine:
    """Create an engine configured for per-game serialized transactions."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.SQLITE_BUSY_TIMEOUT_SECONDS,
            },
        )
        return configure_sqlite_locking(engine)
    return create_engine(database_url, pool_pre_ping=True)


# The engine is the entry point to the database. It's configured with the
# database URL and handles the connection pooling.
engine = build_engine(settings.DATABASE_URL)

# SessionLocal is a factory for creating new Session objects.
# Loaded attributes survive commit so post-commit effects never reopen a
# transaction (on SQLite that would retake the write lock).
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        # Always close the session, even if the endpoint raised.
        db.close()
