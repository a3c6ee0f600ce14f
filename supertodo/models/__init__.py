"""Data models for supertodo."""

from supertodo.models.task import Task, validate_task
from supertodo.models.category import Category, default_categories, validate_category

__all__ = [
    "Task",
    "Category",
    "validate_task",
    "validate_category",
    "default_categories",
]
