"""Storage service: CRUD, referential integrity and backup over a key-value store.

Tasks and categories are each persisted as one JSON array under a namespaced
key (``<namespace>_tasks``, ``<namespace>_categories``). Every public method
is a synchronous read-modify-write against those two keys.
"""

import json
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, TypeVar

from supertodo.database.kv_store import PersistenceStore
from supertodo.engine.date_groups import DateGroup, group_tasks_by_date
from supertodo.errors import (
    CorruptedDataError,
    DuplicateNameError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from supertodo.integrations.backup import ImportResult, build_export, load_document, parse_import
from supertodo.models.category import Category, default_categories, name_key
from supertodo.models.constants import DEFAULT_NAMESPACE
from supertodo.models.factory import Clock, IdFactory, new_id, utc_now
from supertodo.models.task import Task, canonical_task_fields

logger = logging.getLogger(__name__)

E = TypeVar("E", Task, Category)

# Fields a partial update may not change
_IMMUTABLE_TASK_FIELDS = ("id", "createdAt")


class StorageService:
    """Single entry point for reading and mutating tasks and categories."""

    def __init__(
        self,
        store: PersistenceStore,
        namespace: str = DEFAULT_NAMESPACE,
        *,
        id_factory: IdFactory = new_id,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.namespace = namespace
        self.tasks_key = f"{namespace}_tasks"
        self.categories_key = f"{namespace}_categories"
        self._id_factory = id_factory
        self._clock = clock

    # ---- low-level helpers ----

    def _new_task(self, data: Mapping[str, Any]) -> Task:
        return Task.create(data, id_factory=self._id_factory, clock=self._clock)

    def _new_category(self, data: Mapping[str, Any]) -> Category:
        return Category.create(data, id_factory=self._id_factory)

    def _stored_task(self, record: Mapping[str, Any]) -> Task:
        # Stored records must already carry their identity; nothing is generated on read.
        fields = canonical_task_fields(record)
        if not fields.get("id") or not fields.get("createdAt"):
            raise ValidationError("Stored task is missing its id or creation timestamp")
        return self._new_task(fields)

    def _stored_category(self, record: Mapping[str, Any]) -> Category:
        if not record.get("id"):
            raise ValidationError("Stored category is missing its id")
        return self._new_category(record)

    @staticmethod
    def _decode(key: str, raw: str, factory: Callable[[Mapping[str, Any]], E]) -> List[E]:
        """Decode a stored collection.

        Raises:
            CorruptedDataError: If the value is not a JSON array of valid records
        """
        try:
            payload = json.loads(raw)
        except ValueError as e:
            raise CorruptedDataError(key, "not valid JSON") from e
        if not isinstance(payload, list):
            raise CorruptedDataError(key, "expected a JSON array")

        entities: List[E] = []
        for index, record in enumerate(payload):
            if not isinstance(record, dict):
                raise CorruptedDataError(key, f"record {index} is not an object")
            try:
                entities.append(factory(record))
            except ValidationError as e:
                raise CorruptedDataError(key, f"record {index}: {e.message}") from e
        return entities

    @staticmethod
    def _encode(entities: Sequence[E]) -> str:
        return json.dumps([entity.to_record() for entity in entities], ensure_ascii=False)

    def _save_tasks(self, tasks: Sequence[Task]) -> None:
        self.store.write(self.tasks_key, self._encode(tasks))

    def _save_categories(self, categories: Sequence[Category]) -> None:
        self.store.write(self.categories_key, self._encode(categories))

    def _save_both(self, tasks: Sequence[Task], categories: Sequence[Category]) -> None:
        """Write tasks, then categories.

        If the categories write fails, the previous tasks value is put back
        before the error propagates. A process interruption between the two
        writes can still leave tasks written and categories not.
        """
        previous_tasks = self.store.read(self.tasks_key)
        self._save_tasks(tasks)
        try:
            self._save_categories(categories)
        except Exception as e:
            logger.error(
                f"Categories write failed ({type(e).__name__}); restoring previous {self.tasks_key}"
            )
            if previous_tasks is None:
                self.store.remove(self.tasks_key)
            else:
                self.store.write(self.tasks_key, previous_tasks)
            raise

    @staticmethod
    def _index_of(entities: Sequence[E], entity_id: str, entity_name: str) -> int:
        for index, entity in enumerate(entities):
            if entity.id == entity_id:
                return index
        raise NotFoundError(entity_name, entity_id)

    @staticmethod
    def _ensure_unique_name(
        categories: Sequence[Category],
        name: str,
        exclude_id: Optional[str] = None,
    ) -> None:
        key = name_key(name)
        for category in categories:
            if category.id != exclude_id and name_key(category.name) == key:
                raise DuplicateNameError(name)

    def _ensure_category_exists(self, category_id: str) -> None:
        if self.get_category(category_id) is None:
            raise InvalidReferenceError(category_id)

    # ---- task operations ----

    def list_tasks(self) -> List[Task]:
        """All stored tasks in insertion order.

        A corrupted record is removed and treated as absent (empty list).
        """
        raw = self.store.read(self.tasks_key)
        if raw is None:
            return []
        try:
            return self._decode(self.tasks_key, raw, self._stored_task)
        except CorruptedDataError as e:
            logger.warning(f"{e.message}; clearing it and starting with no tasks")
            self.store.remove(self.tasks_key)
            return []

    def get_task(self, task_id: str) -> Optional[Task]:
        return next((task for task in self.list_tasks() if task.id == task_id), None)

    def create_task(self, data: Mapping[str, Any]) -> Task:
        """Validate, check the category reference, append and persist.

        Raises:
            ValidationError: If a field is invalid
            InvalidReferenceError: If categoryId names no existing category
            QuotaExceededError: If the store is full
        """
        task = self._new_task(data)
        if task.category_id is not None:
            self._ensure_category_exists(task.category_id)

        tasks = self.list_tasks()
        if any(existing.id == task.id for existing in tasks):
            raise ValidationError("A task with this id already exists")
        tasks.append(task)
        self._save_tasks(tasks)
        logger.debug(f"Created task {task.id}: {task.title[:50]}")
        return task

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        """Merge partial fields over the stored task, re-validate and persist.

        ``id`` and ``createdAt`` are never changed by an update.

        Raises:
            NotFoundError: If no task has this id
            ValidationError: If the merged task is invalid
            InvalidReferenceError: If a supplied categoryId names no category
        """
        tasks = self.list_tasks()
        index = self._index_of(tasks, task_id, "Task")

        changes = {
            key: value
            for key, value in canonical_task_fields(updates).items()
            if key not in _IMMUTABLE_TASK_FIELDS
        }
        # Explicit null is not "absent" in an update
        if "completed" in changes and not isinstance(changes["completed"], bool):
            raise ValidationError("Task completed flag must be true or false")
        updated = self._new_task({**tasks[index].to_record(), **changes})
        if "categoryId" in changes and updated.category_id is not None:
            self._ensure_category_exists(updated.category_id)

        tasks[index] = updated
        self._save_tasks(tasks)
        logger.debug(f"Updated task {task_id}: {updated.title[:50]}")
        return updated

    def toggle_task_completion(self, task_id: str) -> Task:
        tasks = self.list_tasks()
        index = self._index_of(tasks, task_id, "Task")
        toggled = tasks[index].model_copy(update={"completed": not tasks[index].completed})
        tasks[index] = toggled
        self._save_tasks(tasks)
        logger.debug(f"Toggled task {task_id} completed={toggled.completed}")
        return toggled

    def delete_task(self, task_id: str) -> None:
        tasks = self.list_tasks()
        remaining = [task for task in tasks if task.id != task_id]
        if len(remaining) == len(tasks):
            raise NotFoundError("Task", task_id)
        self._save_tasks(remaining)
        logger.debug(f"Deleted task {task_id}")

    # ---- category operations ----

    def list_categories(self) -> List[Category]:
        """All stored categories in insertion order.

        On first-ever access (no stored record) the four default categories
        are seeded and persisted. A corrupted record is removed and the
        defaults are re-seeded. An explicitly stored empty list stays empty.
        """
        raw = self.store.read(self.categories_key)
        if raw is not None:
            try:
                return self._decode(self.categories_key, raw, self._stored_category)
            except CorruptedDataError as e:
                logger.warning(f"{e.message}; clearing it and re-seeding default categories")
                self.store.remove(self.categories_key)

        categories = default_categories(self._id_factory)
        self._save_categories(categories)
        logger.info(f"Seeded {len(categories)} default categories under {self.categories_key}")
        return categories

    def get_category(self, category_id: str) -> Optional[Category]:
        return next((c for c in self.list_categories() if c.id == category_id), None)

    def create_category(self, data: Mapping[str, Any]) -> Category:
        """Validate, enforce case-insensitive name uniqueness, append and persist.

        Raises:
            ValidationError: If a field is invalid
            DuplicateNameError: If the name collides with an existing category
        """
        category = self._new_category(data)
        categories = self.list_categories()
        self._ensure_unique_name(categories, category.name)
        if any(existing.id == category.id for existing in categories):
            raise ValidationError("A category with this id already exists")

        categories.append(category)
        self._save_categories(categories)
        logger.debug(f"Created category {category.id}: {category.name}")
        return category

    def update_category(self, category_id: str, updates: Mapping[str, Any]) -> Category:
        """Merge partial fields, re-validate, re-check name uniqueness and persist.

        Renaming a category to its own name in a different case is allowed.

        Raises:
            NotFoundError: If no category has this id
            ValidationError: If the merged category is invalid
            DuplicateNameError: If the new name collides with another category
        """
        categories = self.list_categories()
        index = self._index_of(categories, category_id, "Category")

        changes = {key: value for key, value in updates.items() if key != "id"}
        updated = self._new_category({**categories[index].to_record(), **changes})
        if "name" in changes:
            self._ensure_unique_name(categories, updated.name, exclude_id=category_id)

        categories[index] = updated
        self._save_categories(categories)
        logger.debug(f"Updated category {category_id}: {updated.name}")
        return updated

    def delete_category(self, category_id: str) -> None:
        """Remove a category and detach its tasks (categoryId -> null).

        Tasks are written first, then categories.

        Raises:
            NotFoundError: If no category has this id
        """
        categories = self.list_categories()
        remaining = [c for c in categories if c.id != category_id]
        if len(remaining) == len(categories):
            raise NotFoundError("Category", category_id)

        detached = 0
        tasks: List[Task] = []
        for task in self.list_tasks():
            if task.category_id == category_id:
                task = task.model_copy(update={"category_id": None})
                detached += 1
            tasks.append(task)

        self._save_both(tasks, remaining)
        logger.debug(f"Deleted category {category_id}; {detached} tasks now uncategorized")

    # ---- query operations ----

    def tasks_in_category(self, category_id: Optional[str]) -> List[Task]:
        """Tasks whose categoryId equals ``category_id`` (None selects uncategorized)."""
        return [task for task in self.list_tasks() if task.category_id == category_id]

    def tasks_grouped_by_date(self, today: Optional[date] = None) -> Dict[DateGroup, List[Task]]:
        return group_tasks_by_date(self.list_tasks(), today)

    # ---- backup operations ----

    def export_data(self) -> Dict[str, Any]:
        """Snapshot of both stored collections as a backup document."""
        return build_export(self.list_tasks(), self.list_categories(), self._clock())

    def export_json(self, indent: int = 2) -> str:
        return json.dumps(self.export_data(), indent=indent, ensure_ascii=False)

    def import_data(self, document: Any) -> ImportResult:
        """Replace both collections with the document's contents.

        Every record is validated before anything is written; on any failure
        the stored collections are left untouched.

        Raises:
            ImportValidationError: If the document or any record is invalid
            QuotaExceededError: If the store cannot hold the imported data
        """
        tasks, categories = parse_import(document, id_factory=self._id_factory, clock=self._clock)
        self._save_both(tasks, categories)
        logger.info(f"Imported {len(tasks)} tasks and {len(categories)} categories")
        return ImportResult(tasks_imported=len(tasks), categories_imported=len(categories))

    def import_json(self, text: str) -> ImportResult:
        return self.import_data(load_document(text))
