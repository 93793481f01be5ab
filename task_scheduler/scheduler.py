"""Dependency-aware ordering of a project's tasks onto a timeline."""
from __future__ import annotations

import logging
import math
from collections import Counter
from datetime import date, timedelta
from typing import Iterable, List, Sequence, Set, Tuple

from .models import ScheduledTask, TaskDescriptor, as_date


logger = logging.getLogger(__name__)

HOURS_PER_WORK_DAY = 8


class DuplicateTitleError(ValueError):
    """Raised when a scheduling run contains the same title more than once."""

    def __init__(self, titles: Iterable[str]) -> None:
        self.titles = sorted(titles)
        super().__init__(f"Duplicate task titles: {', '.join(self.titles)}")


def work_days_for(hours: int) -> int:
    """Whole work-days needed for `hours` of effort, never less than one."""
    return max(1, math.ceil(hours / HOURS_PER_WORK_DAY))


def schedule_tasks(tasks: Sequence[TaskDescriptor], start_date: date) -> List[ScheduledTask]:
    """Order `tasks` into a timeline beginning at `start_date`.

    Each round picks, among the unscheduled tasks whose dependencies are all
    scheduled, the one with the earliest due date (tasks without one go
    last), then the fewest hours, then the earliest input position. When no
    task is ready, because of a cycle or a dependency on an unknown title,
    the same ordering is applied to every unscheduled task so the run always
    makes progress.

    A task whose due date has already passed when its turn comes starts on
    the due date instead, and the next task starts the day after it ends.
    """
    _reject_duplicate_titles(tasks)

    remaining: List[Tuple[int, TaskDescriptor]] = list(enumerate(tasks))
    completed: Set[str] = set()
    result: List[ScheduledTask] = []
    current_date = as_date(start_date)

    while remaining:
        ready = [entry for entry in remaining if completed.issuperset(entry[1].dependencies)]
        if ready:
            index, task = min(ready, key=_priority)
        else:
            index, task = min(remaining, key=_priority)
            unmet = [dep for dep in task.dependencies if dep not in completed]
            logger.warning(
                "No task is ready; scheduling %r with unmet dependencies %s",
                task.title,
                unmet,
            )

        start = current_date
        if task.due_date is not None and current_date > task.due_date:
            start = task.due_date
        end = start + timedelta(days=work_days_for(task.estimated_hours) - 1)

        result.append(
            ScheduledTask(
                title=task.title,
                scheduled_start_date=start,
                scheduled_end_date=end,
                estimated_hours=task.estimated_hours,
                dependencies=task.dependencies,
                assigned_to_user_id=None,
                original_due_date=task.due_date,
            )
        )
        logger.debug("Scheduled %r from %s to %s", task.title, start, end)

        completed.add(task.title)
        remaining.remove((index, task))
        current_date = end + timedelta(days=1)

    return result


def recommended_order(schedule: Iterable[ScheduledTask]) -> List[str]:
    """Return the titles of `schedule` in the order they were scheduled."""
    return [task.title for task in schedule]


def find_overlaps(schedule: Sequence[ScheduledTask]) -> List[Tuple[str, str]]:
    """List pairs of scheduled tasks whose date ranges intersect.

    Overlaps only arise when a task was pulled back to its due date; they are
    reported here rather than resolved.
    """
    overlaps: List[Tuple[str, str]] = []
    for position, first in enumerate(schedule):
        for second in schedule[position + 1:]:
            if (
                first.scheduled_start_date <= second.scheduled_end_date
                and second.scheduled_start_date <= first.scheduled_end_date
            ):
                overlaps.append((first.title, second.title))
    return overlaps


def _priority(entry: Tuple[int, TaskDescriptor]):
    index, task = entry
    due = task.due_date
    return (due is None, due or date.max, task.estimated_hours, index)


def _reject_duplicate_titles(tasks: Sequence[TaskDescriptor]) -> None:
    counts = Counter(task.title for task in tasks)
    duplicates = [title for title, count in counts.items() if count > 1]
    if duplicates:
        raise DuplicateTitleError(duplicates)
