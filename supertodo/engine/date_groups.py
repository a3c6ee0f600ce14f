"""Date grouping logic for supertodo.

Partitions tasks into six ordered display groups by due date relative to
today, then sorts each group. This function is deterministic for a fixed
``today``.
"""

from datetime import date, timedelta
from enum import Enum
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional

from supertodo.models.factory import parse_timestamp
from supertodo.models.task import Task


class DateGroup(str, Enum):
    """Display group a task falls into."""
    TODAY = "today"
    TOMORROW = "tomorrow"
    THIS_WEEK = "thisWeek"
    FUTURE = "future"
    PAST = "past"
    UNSCHEDULED = "unscheduled"


# Canonical display order
GROUP_ORDER = (
    DateGroup.TODAY,
    DateGroup.TOMORROW,
    DateGroup.THIS_WEEK,
    DateGroup.FUTURE,
    DateGroup.PAST,
    DateGroup.UNSCHEDULED,
)

GROUP_DISPLAY_NAMES = {
    DateGroup.TODAY: "Today",
    DateGroup.TOMORROW: "Tomorrow",
    DateGroup.THIS_WEEK: "This Week",
    DateGroup.FUTURE: "Future",
    DateGroup.PAST: "Past",
    DateGroup.UNSCHEDULED: "Unscheduled",
}


def get_group_display_name(group: DateGroup) -> str:
    """Human-readable heading for a group (falls back to the raw key)."""
    try:
        return GROUP_DISPLAY_NAMES[DateGroup(group)]
    except ValueError:
        return str(group)


def classify_task(task: Task, today: date) -> DateGroup:
    """Assign a task to exactly one date group.

    Rules are checked in priority order:
    1. No due date -> unscheduled
    2. Before today -> past
    3. Today -> today
    4. Today + 1 -> tomorrow
    5. Before today + 7 -> thisWeek
    6. Otherwise -> future

    Due dates are zero-padded YYYY-MM-DD strings, so comparing them as strings
    is the same as comparing them as dates.
    """
    if not task.due_date:
        return DateGroup.UNSCHEDULED

    today_key = today.isoformat()
    tomorrow_key = (today + timedelta(days=1)).isoformat()
    week_end_key = (today + timedelta(days=7)).isoformat()

    if task.due_date < today_key:
        return DateGroup.PAST
    if task.due_date == today_key:
        return DateGroup.TODAY
    if task.due_date == tomorrow_key:
        return DateGroup.TOMORROW
    if task.due_date < week_end_key:
        return DateGroup.THIS_WEEK
    return DateGroup.FUTURE


def _compare_tasks(a: Task, b: Task) -> int:
    """Incomplete first; then earliest due date; then newest created."""
    if a.completed != b.completed:
        return 1 if a.completed else -1

    if a.due_date and b.due_date:
        if a.due_date == b.due_date:
            return 0
        return -1 if a.due_date < b.due_date else 1

    a_created = parse_timestamp(a.created_at)
    b_created = parse_timestamp(b.created_at)
    if a_created == b_created:
        return 0
    return -1 if a_created > b_created else 1


def group_tasks_by_date(tasks: Iterable[Task], today: Optional[date] = None) -> Dict[DateGroup, List[Task]]:
    """Group and sort tasks for display.

    Args:
        tasks: Tasks to group
        today: Reference date (defaults to the local date)

    Returns:
        Dict with all six groups in display order; empty groups are kept
    """
    if today is None:
        today = date.today()

    groups: Dict[DateGroup, List[Task]] = {group: [] for group in GROUP_ORDER}
    for task in tasks:
        groups[classify_task(task, today)].append(task)

    for group in GROUP_ORDER:
        groups[group].sort(key=cmp_to_key(_compare_tasks))

    return groups
