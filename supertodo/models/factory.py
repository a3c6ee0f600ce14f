"""Id and clock providers for supertodo.

Entities and the storage service take these as injectable callables so tests
can substitute deterministic fakes.
"""

import uuid
from datetime import datetime, timezone
from typing import Callable

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    """Generate an opaque entity id (UUID v4)."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as ISO-8601 UTC with millisecond precision.

    Naive datetimes are taken to be UTC.

    Example: ``2024-03-01T09:30:00.000Z``
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing ``Z``. Naive values are taken to be UTC.

    Raises:
        ValueError: If the value is not an ISO-8601 timestamp
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
