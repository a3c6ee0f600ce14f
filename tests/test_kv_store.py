"""Tests for the SQL-backed key-value persistence store."""

import pytest
from sqlalchemy.exc import OperationalError

from supertodo.database.kv_store import SqlKeyValueStore
from supertodo.errors import QuotaExceededError


class TestSqlKeyValueStore:

    def test_read_missing_key_returns_none(self, kv_store):
        assert kv_store.read("nothing") is None

    def test_write_then_read(self, kv_store):
        kv_store.write("a", "[1, 2]")
        assert kv_store.read("a") == "[1, 2]"

    def test_overwrite_replaces_value(self, kv_store):
        kv_store.write("a", "first")
        kv_store.write("a", "second")
        assert kv_store.read("a") == "second"

    def test_values_are_opaque_strings(self, kv_store):
        kv_store.write("a", "not json {")
        assert kv_store.read("a") == "not json {"

    def test_remove(self, kv_store):
        kv_store.write("a", "x")
        kv_store.remove("a")
        assert kv_store.read("a") is None

    def test_remove_missing_key_is_noop(self, kv_store):
        kv_store.remove("nothing")
        assert kv_store.read("nothing") is None

    def test_usage_counts_utf8_bytes(self, kv_store):
        kv_store.write("a", "é")
        kv_store.write("b", "abc")

        assert kv_store.usage_bytes() == 5
        assert kv_store.usage_bytes(exclude_key="b") == 2


class TestQuota:

    def test_write_over_quota_is_rejected_and_leaves_value(self, db_session):
        store = SqlKeyValueStore(db_session, quota_bytes=10)
        store.write("a", "12345")

        with pytest.raises(QuotaExceededError) as exc_info:
            store.write("b", "123456")

        assert exc_info.value.key == "b"
        assert "export" in exc_info.value.message
        assert store.read("b") is None
        assert store.read("a") == "12345"

    def test_replaced_value_does_not_count_twice(self, db_session):
        store = SqlKeyValueStore(db_session, quota_bytes=10)
        store.write("a", "12345")
        store.write("a", "1234567890")

        assert store.read("a") == "1234567890"

    def test_zero_quota_disables_limit(self, db_session):
        store = SqlKeyValueStore(db_session, quota_bytes=0)
        store.write("a", "x" * 10000)
        assert len(store.read("a")) == 10000

    def test_negative_quota_disables_limit(self, db_session):
        store = SqlKeyValueStore(db_session, quota_bytes=-1)
        store.write("a", "x")
        assert store.read("a") == "x"

    @pytest.mark.parametrize(
        "message",
        [
            "database or disk is full",
            "could not extend file \"base/16384/2619\": No space left on device",
        ],
    )
    def test_disk_full_is_reported_as_quota(self, kv_store, monkeypatch, message):
        def full_commit():
            raise OperationalError("INSERT", {}, Exception(message))

        monkeypatch.setattr(kv_store.db, "commit", full_commit)

        with pytest.raises(QuotaExceededError):
            kv_store.write("a", "x")

    @pytest.mark.parametrize(
        "message",
        ["database is locked", "QueuePool limit reached, connection pool is full"],
    )
    def test_other_database_errors_propagate(self, kv_store, monkeypatch, message):
        def failing_commit():
            raise OperationalError("INSERT", {}, Exception(message))

        monkeypatch.setattr(kv_store.db, "commit", failing_commit)

        with pytest.raises(OperationalError):
            kv_store.write("a", "x")
