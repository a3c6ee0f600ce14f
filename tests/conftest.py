"""Pytest fixtures and configuration for supertodo tests."""

import os

# Keep the app's module-level engine off the real database file.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Set
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from supertodo.database.database import Base
from supertodo.database import models  # noqa: F401  (registers kv_records on Base)
from supertodo.database.kv_store import SqlKeyValueStore
from supertodo.database.storage_service import StorageService
from supertodo.errors import QuotaExceededError


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_NAMESPACE = "test"


class SequentialIds:
    """Deterministic id factory: id-1, id-2, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.count = 0

    def __call__(self) -> str:
        self.count += 1
        return f"{self.prefix}-{self.count}"


class FixedClock:
    """Deterministic clock that advances by ``step`` on every call."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.now
        self.now = self.now + self.step
        return value


class DictStore:
    """In-memory PersistenceStore with switchable write rejection.

    Writes to keys listed in ``reject_keys`` raise QuotaExceededError and
    writes to ``broken_keys`` raise OSError, which lets tests hit the failure
    window between two-key writes.
    """

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.reject_keys: Set[str] = set()
        self.broken_keys: Set[str] = set()
        self.writes = 0

    def read(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def write(self, key: str, value: str) -> None:
        if key in self.reject_keys:
            raise QuotaExceededError(key)
        if key in self.broken_keys:
            raise OSError(f"I/O error writing {key}")
        self.data[key] = value
        self.writes += 1

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def kv_store(db_session: Session):
    """SQL-backed key-value store without a quota."""
    return SqlKeyValueStore(db_session)


@pytest.fixture
def id_factory():
    return SequentialIds()


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def storage_service(kv_store, id_factory, clock):
    """StorageService over the SQL store with deterministic ids and timestamps."""
    return StorageService(kv_store, namespace=TEST_NAMESPACE, id_factory=id_factory, clock=clock)


@pytest.fixture
def dict_store():
    return DictStore()


@pytest.fixture
def dict_storage_service(dict_store, id_factory, clock):
    """StorageService over the in-memory DictStore."""
    return StorageService(dict_store, namespace=TEST_NAMESPACE, id_factory=id_factory, clock=clock)


@pytest.fixture
def sample_task_data():
    """Raw task fields as a collaborator would submit them."""
    return {
        "title": "Test Task",
        "description": "Test description",
        "dueDate": "2024-03-15",
        "categoryId": None,
    }


@pytest.fixture
def test_client(storage_service: StorageService):
    """Create a FastAPI test client whose storage service uses the test database."""
    from supertodo.api.app import app, get_storage_service

    def override_get_storage_service():
        return storage_service

    app.dependency_overrides[get_storage_service] = override_get_storage_service

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
