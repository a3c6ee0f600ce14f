"""Presentation engines for supertodo."""

from supertodo.engine.date_groups import (
    DateGroup,
    GROUP_ORDER,
    classify_task,
    get_group_display_name,
    group_tasks_by_date,
)

__all__ = [
    "DateGroup",
    "GROUP_ORDER",
    "classify_task",
    "get_group_display_name",
    "group_tasks_by_date",
]
