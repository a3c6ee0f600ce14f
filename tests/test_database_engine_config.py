import os


def test_get_engine_kwargs_sqlite_has_check_same_thread(monkeypatch):
    # Import lazily so monkeypatch can affect env usage deterministically.
    from supertodo.database import database as db

    kwargs = db.get_engine_kwargs("sqlite:///./supertodo.db")
    assert "connect_args" in kwargs
    assert kwargs["connect_args"]["check_same_thread"] is False
    # SQLite should not require pool sizing knobs.
    assert "pool_size" not in kwargs
    assert "max_overflow" not in kwargs
    assert kwargs["pool_pre_ping"] is True


def test_get_engine_kwargs_postgres_has_conservative_pooling(monkeypatch):
    from supertodo.database import database as db

    monkeypatch.setenv("DB_POOL_SIZE", "7")
    monkeypatch.setenv("DB_MAX_OVERFLOW", "3")
    monkeypatch.setenv("DB_POOL_TIMEOUT_SEC", "15")

    kwargs = db.get_engine_kwargs("postgresql+psycopg://u:p@localhost:5432/db")
    assert "connect_args" not in kwargs
    assert kwargs["pool_pre_ping"] is True
    assert kwargs["pool_size"] == 7
    assert kwargs["max_overflow"] == 3
    assert kwargs["pool_timeout"] == 15


def test_debug_env_enables_echo(monkeypatch):
    from supertodo.database import database as db

    monkeypatch.setenv("DEBUG", "true")
    assert db.get_engine_kwargs("sqlite://")["echo"] is True

    monkeypatch.setenv("DEBUG", "False")
    assert db.get_engine_kwargs("sqlite://")["echo"] is False


def test_sqlite_pragmas_listener_is_guarded():
    # Verify the helper used by the connect event guard behaves as expected.
    from supertodo.database import database as db

    assert db._is_sqlite_url("sqlite:///./supertodo.db") is True
    assert db._is_sqlite_url("postgresql+psycopg://u:p@localhost/db") is False


def test_quota_from_env(monkeypatch):
    from supertodo.database import database as db
    from supertodo.models.constants import DEFAULT_STORAGE_QUOTA_BYTES

    monkeypatch.delenv("STORAGE_QUOTA_BYTES", raising=False)
    assert db._quota_from_env() == DEFAULT_STORAGE_QUOTA_BYTES

    monkeypatch.setenv("STORAGE_QUOTA_BYTES", "2048")
    assert db._quota_from_env() == 2048

    monkeypatch.setenv("STORAGE_QUOTA_BYTES", "0")
    assert db._quota_from_env() == 0

    monkeypatch.setenv("STORAGE_QUOTA_BYTES", "-1")
    assert db._quota_from_env() == 0

    monkeypatch.setenv("STORAGE_QUOTA_BYTES", "lots")
    assert db._quota_from_env() == DEFAULT_STORAGE_QUOTA_BYTES


def test_init_db_creates_kv_table(tmp_path):
    """init_db should create the kv_records table on a fresh SQLite file."""
    from sqlalchemy import create_engine, inspect
    from supertodo.database import database as db

    db_path = tmp_path / "fresh.db"
    url = f"sqlite:///{db_path}"
    engine = create_engine(url, **db.get_engine_kwargs(url))

    db.init_db(engine_override=engine)

    assert os.path.exists(db_path)
    inspector = inspect(engine)
    assert "kv_records" in inspector.get_table_names()
    columns = {column["name"] for column in inspector.get_columns("kv_records")}
    assert {"key", "value", "updated_at"} <= columns

    # Safe to call again on an existing schema.
    db.init_db(engine_override=engine)
    engine.dispose()
