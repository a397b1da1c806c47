"""Database connection and session management for studyhub.

This module supports both:
- Local SQLite (default for dev)
- PostgreSQL (production) via `DATABASE_URL`
"""

import os
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from dotenv import load_dotenv

load_dotenv()

# Database URL - SQLite by default (local dev)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studyhub.db")

def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    Separated so engine configuration can be unit tested without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # SQLite-specific setting required for FastAPI concurrency in a single process.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    # Postgres / other DBs: conservative pooling, tunable via env.
    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "5"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    engine_kwargs["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT_SEC", "30"))
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_kwargs(database_url))


# Create engine (module-level singleton)
engine = build_engine(DATABASE_URL)


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Enable foreign keys and WAL on SQLite connections."""
    if _is_sqlite_url(DATABASE_URL):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()

def _sqlite_table_has_column(dbapi_conn, table_name: str, column_name: str) -> bool:
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute(f"PRAGMA table_info({table_name})")
        cols = [row[1] for row in cursor.fetchall()]  # row[1] is column name
        return column_name in cols
    finally:
        cursor.close()


def ensure_marker_era_schema(*, engine_override: Engine = None, database_url_override: str = None) -> None:
    """Bring marker-era SQLite files up to the current schema.

    Marker-era databases predate the `recurrence_rule` column: the rule lived
    only in the description marker, which is now just the fallback read path
    (see `recurrence.marker`). `create_all()` does not alter existing tables,
    so the rule column, `series_id` and the note document column are added in place.
    Fresh databases already have them and this is a no-op.
    """
    database_url = database_url_override or DATABASE_URL
    if not _is_sqlite_url(database_url):
        return

    use_engine = engine_override or engine

    # Use raw DB-API connection for PRAGMA and ALTER TABLE
    dbapi_conn = use_engine.raw_connection()
    try:
        if _sqlite_table_has_column(dbapi_conn, "schedule_events", "id"):
            cursor = dbapi_conn.cursor()
            try:
                if not _sqlite_table_has_column(dbapi_conn, "schedule_events", "recurrence_rule"):
                    cursor.execute("ALTER TABLE schedule_events ADD COLUMN recurrence_rule JSON")
                if not _sqlite_table_has_column(dbapi_conn, "schedule_events", "series_id"):
                    cursor.execute("ALTER TABLE schedule_events ADD COLUMN series_id VARCHAR")
                    cursor.execute(
                        "CREATE INDEX IF NOT EXISTS ix_schedule_events_series_id ON schedule_events (series_id)"
                    )
                dbapi_conn.commit()
            finally:
                cursor.close()

        if _sqlite_table_has_column(dbapi_conn, "notes", "id") and not _sqlite_table_has_column(dbapi_conn, "notes", "document"):
            cursor = dbapi_conn.cursor()
            try:
                cursor.execute("ALTER TABLE notes ADD COLUMN document JSON")
                dbapi_conn.commit()
            finally:
                cursor.close()
    finally:
        dbapi_conn.close()


def get_db() -> Session:
    """Get database session (dependency for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database schema.

    - SQLite (default dev): use `create_all()` and patch marker-era files in place.
    - PostgreSQL: prefer Alembic migrations (`RUN_MIGRATIONS=true`).
    """
    run_migrations = os.getenv("RUN_MIGRATIONS", "False").lower() == "true"
    if run_migrations and not _is_sqlite_url(DATABASE_URL):
        from alembic import command
        from alembic.config import Config

        alembic_cfg = Config(os.getenv("ALEMBIC_INI", "alembic.ini"))
        # Ensure Alembic uses the same runtime DB URL.
        alembic_cfg.set_main_option("sqlalchemy.url", DATABASE_URL)
        command.upgrade(alembic_cfg, "head")
        return

    # Default behavior: create schema directly.
    from studyhub.database import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=engine)
    ensure_marker_era_schema()

    # Marker-era Postgres tables: create_all() will not add the new columns there either.
    if not _is_sqlite_url(DATABASE_URL):
        with engine.begin() as conn:
            conn.execute(
                text(
                    "ALTER TABLE schedule_events "
                    "ADD COLUMN IF NOT EXISTS recurrence_rule JSON"
                )
            )
            conn.execute(
                text(
                    "ALTER TABLE schedule_events "
                    "ADD COLUMN IF NOT EXISTS series_id VARCHAR"
                )
            )
            conn.execute(
                text(
                    "ALTER TABLE notes "
                    "ADD COLUMN IF NOT EXISTS document JSON"
                )
            )
