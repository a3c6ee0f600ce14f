"""Task data model for supertodo."""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from supertodo.errors import ValidationError
from supertodo.models.constants import (
    DUE_DATE_PATTERN,
    TASK_DESCRIPTION_MAX_LENGTH,
    TASK_TITLE_MAX_LENGTH,
)
from supertodo.models.factory import (
    Clock,
    IdFactory,
    format_timestamp,
    new_id,
    parse_timestamp,
    utc_now,
)

# snake_case -> persisted (camelCase) key
_FIELD_ALIASES = {
    "due_date": "dueDate",
    "category_id": "categoryId",
    "created_at": "createdAt",
}


def canonical_task_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``data`` keyed by persisted (camelCase) field names."""
    return {_FIELD_ALIASES.get(key, key): value for key, value in data.items()}


def validate_task(data: Mapping[str, Any]) -> None:
    """Validate raw task fields without constructing a Task.

    Works on any mapping, including a stored record merged with a partial
    update. Rules run in order: presence, trim, emptiness, length, format.

    Raises:
        ValidationError: With the message of the first violated rule
    """
    fields = canonical_task_fields(data)

    title = fields.get("title")
    if not title or not isinstance(title, str):
        raise ValidationError("Task title is required")
    trimmed_title = title.strip()
    if not trimmed_title:
        raise ValidationError("Task title cannot be empty")
    if len(trimmed_title) > TASK_TITLE_MAX_LENGTH:
        raise ValidationError(f"Task title must be between 1 and {TASK_TITLE_MAX_LENGTH} characters")

    description = fields.get("description")
    if description is not None:
        if not isinstance(description, str):
            raise ValidationError("Task description must be text")
        if len(description.strip()) > TASK_DESCRIPTION_MAX_LENGTH:
            raise ValidationError(f"Task description must be {TASK_DESCRIPTION_MAX_LENGTH} characters or less")

    due_date = fields.get("dueDate")
    if due_date is not None:
        if not isinstance(due_date, str) or not DUE_DATE_PATTERN.fullmatch(due_date):
            raise ValidationError("Invalid due date format")

    category_id = fields.get("categoryId")
    if category_id is not None and not isinstance(category_id, str):
        raise ValidationError("Invalid category selected")

    completed = fields.get("completed")
    if completed is not None and not isinstance(completed, bool):
        raise ValidationError("Task completed flag must be true or false")

    task_id = fields.get("id")
    if task_id is not None and not isinstance(task_id, str):
        raise ValidationError("Task id must be a string")

    created_at = fields.get("createdAt")
    if created_at is not None:
        if not isinstance(created_at, str):
            raise ValidationError("Invalid task creation timestamp")
        try:
            parse_timestamp(created_at)
        except ValueError:
            raise ValidationError("Invalid task creation timestamp") from None


class Task(BaseModel):
    """Canonical Task model.

    Instances are immutable; updates go through ``model_copy`` or a fresh
    ``Task.create``. ``to_record()`` yields the persisted/exported shape.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(..., description="Unique task identifier (UUID v4 unless supplied)")
    title: str = Field(..., max_length=TASK_TITLE_MAX_LENGTH, description="Trimmed task title")
    description: str = Field("", max_length=TASK_DESCRIPTION_MAX_LENGTH, description="Trimmed task description")
    due_date: Optional[str] = Field(None, alias="dueDate", description="Due date (YYYY-MM-DD) or null")
    category_id: Optional[str] = Field(None, alias="categoryId", description="Owning category id or null")
    completed: bool = Field(False, description="Completion flag")
    created_at: str = Field(..., alias="createdAt", description="Creation timestamp (ISO-8601, immutable)")

    @classmethod
    def create(
        cls,
        data: Mapping[str, Any],
        *,
        id_factory: IdFactory = new_id,
        clock: Clock = utc_now,
    ) -> "Task":
        """Validate raw fields and build a normalized Task.

        Strings are trimmed, defaults filled, and ``id``/``createdAt``
        generated when absent. Supplied ``id``/``createdAt`` are kept as-is,
        so ``Task.create(task.to_record()) == task``.

        Raises:
            ValidationError: If any field violates its rule
        """
        validate_task(data)
        fields = canonical_task_fields(data)
        return cls(
            id=fields.get("id") or id_factory(),
            title=fields["title"].strip(),
            description=(fields.get("description") or "").strip(),
            due_date=fields.get("dueDate"),
            category_id=fields.get("categoryId") or None,
            completed=bool(fields.get("completed") or False),
            created_at=fields.get("createdAt") or format_timestamp(clock()),
        )

    def to_record(self) -> Dict[str, Any]:
        """Plain dict in the persisted/exported (camelCase) shape."""
        return self.model_dump(by_alias=True)
