"""Persistence store: a durable string key-value medium.

No JSON semantics live here. Values are opaque strings; the storage service
owns encoding and decoding.
"""

import logging
from typing import Optional, Protocol

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from supertodo.database.models import KeyValueRecordDB
from supertodo.errors import QuotaExceededError

logger = logging.getLogger(__name__)


class PersistenceStore(Protocol):
    """Port used by the storage service (and nothing else)."""

    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``.

        Raises:
            QuotaExceededError: If the medium has no room for the value
        """
        ...

    def remove(self, key: str) -> None: ...


def _size(value: str) -> int:
    return len(value.encode("utf-8"))


# SQLite (SQLITE_FULL) and the OS-level ENOSPC text other drivers pass through
_DISK_FULL_MESSAGES = ("database or disk is full", "no space left on device")


def _is_disk_full(error: OperationalError) -> bool:
    message = str(getattr(error, "orig", error)).lower()
    return any(marker in message for marker in _DISK_FULL_MESSAGES)


class SqlKeyValueStore:
    """PersistenceStore backed by the `kv_records` table."""

    def __init__(self, db: Session, quota_bytes: Optional[int] = None):
        self.db = db
        # Zero or negative disables the quota
        self.quota_bytes = quota_bytes if quota_bytes and quota_bytes > 0 else None

    def read(self, key: str) -> Optional[str]:
        record = self.db.query(KeyValueRecordDB).filter(KeyValueRecordDB.key == key).first()
        return record.value if record else None

    def usage_bytes(self, exclude_key: Optional[str] = None) -> int:
        """Total size of stored values, optionally ignoring one key."""
        query = self.db.query(KeyValueRecordDB.value)
        if exclude_key is not None:
            query = query.filter(KeyValueRecordDB.key != exclude_key)
        return sum(_size(row[0]) for row in query.all())

    def write(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            projected = self.usage_bytes(exclude_key=key) + _size(value)
            if projected > self.quota_bytes:
                logger.error(f"Write to {key} rejected: {projected} bytes exceeds quota of {self.quota_bytes}")
                raise QuotaExceededError(key)

        record = self.db.query(KeyValueRecordDB).filter(KeyValueRecordDB.key == key).first()
        try:
            if record:
                record.value = value
            else:
                self.db.add(KeyValueRecordDB(key=key, value=value))
            self.db.commit()
            logger.debug(f"Wrote {key} ({_size(value)} bytes)")
        except OperationalError as e:
            self.db.rollback()
            if _is_disk_full(e):
                logger.error(f"Write to {key} rejected: storage medium is full")
                raise QuotaExceededError(key) from e
            logger.error(f"Failed to write {key}: {type(e).__name__}: {str(e)}")
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to write {key}: {type(e).__name__}: {str(e)}")
            raise

    def remove(self, key: str) -> None:
        record = self.db.query(KeyValueRecordDB).filter(KeyValueRecordDB.key == key).first()
        if not record:
            return
        try:
            self.db.delete(record)
            self.db.commit()
            logger.debug(f"Removed {key}")
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to remove {key}: {type(e).__name__}: {str(e)}")
            raise
