"""SQLAlchemy database models for supertodo."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text

from supertodo.database.database import Base


class KeyValueRecordDB(Base):
    """One opaque string value per key.

    The store knows nothing about tasks or categories; each collection is a
    single JSON blob under its namespaced key.
    """

    __tablename__ = "kv_records"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
