"""JSON backup document (export/import) for supertodo.

Document shape:

    {"version": "1.0", "exportDate": "<ISO-8601>",
     "data": {"tasks": [...], "categories": [...]}}

Import is all-or-nothing: every record is validated here, before the storage
service writes anything.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence, Set, Tuple

from pydantic import BaseModel, Field

from supertodo.errors import ImportValidationError, ValidationError
from supertodo.models.category import Category, name_key
from supertodo.models.constants import EXPORT_FORMAT_VERSION
from supertodo.models.factory import Clock, IdFactory, format_timestamp, new_id, utc_now
from supertodo.models.task import Task


class ImportResult(BaseModel):
    """Counts reported after a successful import."""
    tasks_imported: int = Field(..., description="Number of tasks now stored")
    categories_imported: int = Field(..., description="Number of categories now stored")


def build_export(
    tasks: Sequence[Task],
    categories: Sequence[Category],
    exported_at: datetime,
) -> Dict[str, Any]:
    """Build a backup document from the current collections."""
    return {
        "version": EXPORT_FORMAT_VERSION,
        "exportDate": format_timestamp(exported_at),
        "data": {
            "tasks": [task.to_record() for task in tasks],
            "categories": [category.to_record() for category in categories],
        },
    }


def _records(data: Mapping[str, Any], field: str) -> List[Any]:
    records = data.get(field)
    if records is None:
        return []
    if not isinstance(records, list):
        raise ImportValidationError(f"Invalid import data: {field} must be an array")
    return records


def _parse_categories(records: List[Any], id_factory: IdFactory) -> List[Category]:
    categories: List[Category] = []
    seen_ids: Set[str] = set()
    seen_names: Set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ImportValidationError.for_record("category", index, "Record must be an object")
        try:
            category = Category.create(record, id_factory=id_factory)
        except ValidationError as e:
            raise ImportValidationError.for_record("category", index, e.message) from e
        if category.id in seen_ids:
            raise ImportValidationError.for_record("category", index, "Duplicate category id")
        if name_key(category.name) in seen_names:
            raise ImportValidationError.for_record("category", index, "A category with this name already exists")
        seen_ids.add(category.id)
        seen_names.add(name_key(category.name))
        categories.append(category)
    return categories


def _parse_tasks(
    records: List[Any],
    category_ids: Set[str],
    id_factory: IdFactory,
    clock: Clock,
) -> List[Task]:
    tasks: List[Task] = []
    seen_ids: Set[str] = set()
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ImportValidationError.for_record("task", index, "Record must be an object")
        try:
            task = Task.create(record, id_factory=id_factory, clock=clock)
        except ValidationError as e:
            raise ImportValidationError.for_record("task", index, e.message) from e
        if task.id in seen_ids:
            raise ImportValidationError.for_record("task", index, "Duplicate task id")
        if task.category_id is not None and task.category_id not in category_ids:
            raise ImportValidationError.for_record("task", index, "Invalid category selected")
        seen_ids.add(task.id)
        tasks.append(task)
    return tasks


def parse_import(
    document: Any,
    *,
    id_factory: IdFactory = new_id,
    clock: Clock = utc_now,
) -> Tuple[List[Task], List[Category]]:
    """Validate a backup document and return its normalized entities.

    The ``version`` field is informational and not checked. Missing
    ``tasks``/``categories`` default to empty lists.

    Raises:
        ImportValidationError: If the shape is wrong or any record is invalid;
            per-record failures carry the record kind, index and reason
    """
    if not isinstance(document, Mapping):
        raise ImportValidationError("Invalid import data")
    data = document.get("data")
    if not isinstance(data, Mapping):
        raise ImportValidationError("Invalid import data")

    task_records = _records(data, "tasks")
    category_records = _records(data, "categories")

    categories = _parse_categories(category_records, id_factory)
    tasks = _parse_tasks(task_records, {c.id for c in categories}, id_factory, clock)
    return tasks, categories


def load_document(text: str) -> Any:
    """Decode a backup file's text.

    Raises:
        ImportValidationError: If the text is not valid JSON
    """
    try:
        return json.loads(text)
    except (TypeError, ValueError) as e:
        raise ImportValidationError("Invalid JSON file") from e
