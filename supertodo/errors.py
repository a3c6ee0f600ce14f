"""Typed errors raised by the supertodo core.

Every error carries an ``ErrorKind`` so collaborators (the HTTP surface, a
CLI, tests) can dispatch on the kind exhaustively instead of matching on
message text.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Discriminator for every failure the core can report."""
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DUPLICATE_NAME = "duplicate_name"
    INVALID_REFERENCE = "invalid_reference"
    QUOTA_EXCEEDED = "quota_exceeded"
    CORRUPTED_DATA = "corrupted_data"
    IMPORT_VALIDATION = "import_validation"


class SupertodoError(Exception):
    """Base class for all core errors."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message}


class ValidationError(SupertodoError):
    """A field violates a bound or required-ness rule."""

    kind = ErrorKind.VALIDATION


class NotFoundError(SupertodoError):
    """An operation referenced an id absent from its collection."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"entity": self.entity, "id": self.entity_id})
        return data


class DuplicateNameError(SupertodoError):
    """A category name collides case-insensitively with an existing one."""

    kind = ErrorKind.DUPLICATE_NAME

    def __init__(self, name: str):
        super().__init__("A category with this name already exists")
        self.name = name


class InvalidReferenceError(SupertodoError):
    """A task's categoryId does not resolve to an existing category."""

    kind = ErrorKind.INVALID_REFERENCE

    def __init__(self, category_id: str):
        super().__init__("Invalid category selected")
        self.category_id = category_id


class QuotaExceededError(SupertodoError):
    """The persistence medium rejected a write because it is full."""

    kind = ErrorKind.QUOTA_EXCEEDED

    def __init__(self, key: str):
        super().__init__(
            "Storage quota exceeded. Delete some tasks or categories, "
            "or export your data before adding more."
        )
        self.key = key


class CorruptedDataError(SupertodoError):
    """A stored record failed to decode.

    Raised and handled inside the storage service; it never reaches callers.
    """

    kind = ErrorKind.CORRUPTED_DATA

    def __init__(self, key: str, reason: str):
        super().__init__(f"Stored record {key} is corrupted: {reason}")
        self.key = key
        self.reason = reason


class ImportValidationError(SupertodoError):
    """An import document was rejected; nothing was written."""

    kind = ErrorKind.IMPORT_VALIDATION

    def __init__(
        self,
        message: str,
        *,
        record_kind: Optional[str] = None,
        index: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.record_kind = record_kind
        self.index = index
        self.reason = reason

    @classmethod
    def for_record(cls, record_kind: str, index: int, reason: str) -> "ImportValidationError":
        return cls(
            f"Invalid {record_kind} at index {index}: {reason}",
            record_kind=record_kind,
            index=index,
            reason=reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.record_kind is not None:
            data.update({"record_kind": self.record_kind, "index": self.index, "reason": self.reason})
        return data
