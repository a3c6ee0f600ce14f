"""Response models for the supertodo HTTP API."""

from typing import Dict, List

from pydantic import BaseModel, Field

from supertodo.models.category import Category
from supertodo.models.task import Task


class TaskResponse(BaseModel):
    task: Task


class TaskListResponse(BaseModel):
    tasks: List[Task]
    count: int


class CategoryResponse(BaseModel):
    category: Category


class CategoryListResponse(BaseModel):
    categories: List[Category]
    count: int


class GroupedTasksResponse(BaseModel):
    """Tasks grouped by due date; every group is present, possibly empty."""
    today: str = Field(..., description="Reference date used for grouping (YYYY-MM-DD)")
    order: List[str] = Field(..., description="Group keys in display order")
    display_names: Dict[str, str] = Field(default_factory=dict)
    groups: Dict[str, List[Task]]
