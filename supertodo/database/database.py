"""Database connection and session management for supertodo.

The key-value records live in a SQL database:
- Local SQLite (default)
- Any other SQLAlchemy URL via `DATABASE_URL`
"""

import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from dotenv import load_dotenv

from supertodo.models.constants import DEFAULT_NAMESPACE, DEFAULT_STORAGE_QUOTA_BYTES

load_dotenv()

# Database URL - SQLite by default
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./supertodo.db")

# Key prefix for the tasks/categories records
STORAGE_NAMESPACE = os.getenv("STORAGE_NAMESPACE", DEFAULT_NAMESPACE)


def _quota_from_env() -> int:
    raw = os.getenv("STORAGE_QUOTA_BYTES", "").strip()
    if not raw:
        return DEFAULT_STORAGE_QUOTA_BYTES
    try:
        quota = int(raw)
    except ValueError:
        return DEFAULT_STORAGE_QUOTA_BYTES
    return max(quota, 0)


# Total bytes of stored values allowed across all keys (0 disables the quota)
STORAGE_QUOTA_BYTES = _quota_from_env()


def _is_sqlite_url(database_url: str) -> bool:
    return "sqlite" in (database_url or "")


def get_engine_kwargs(database_url: str) -> dict:
    """Return deterministic create_engine kwargs for a DB URL.

    This is separated to allow deterministic unit testing without connecting.
    """
    engine_kwargs: dict = {
        "echo": os.getenv("DEBUG", "False").lower() == "true",
        "pool_pre_ping": True,
    }

    if _is_sqlite_url(database_url):
        # Required for FastAPI running sync endpoints in a threadpool.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        return engine_kwargs

    engine_kwargs["pool_size"] = int(os.getenv("DB_POOL_SIZE", "5"))
    engine_kwargs["max_overflow"] = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    engine_kwargs["pool_timeout"] = int(os.getenv("DB_POOL_TIMEOUT_SEC", "30"))
    return engine_kwargs


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, **get_engine_kwargs(database_url))


# Create engine (module-level singleton)
engine = build_engine(DATABASE_URL)


@event.listens_for(engine, "connect")
def set_sqlite_pragmas(dbapi_conn, connection_record):
    """Use WAL journaling so readers are not blocked while a write commits."""
    if _is_sqlite_url(DATABASE_URL):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for declarative models
Base = declarative_base()


def get_db() -> Session:
    """Get database session (dependency for FastAPI)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(engine_override: Engine = None) -> None:
    """Create the key-value table if it does not exist yet."""
    # Register the table on Base.metadata before create_all.
    from supertodo.database import models  # noqa: F401

    Base.metadata.create_all(bind=engine_override or engine)
