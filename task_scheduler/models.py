"""Data models shared across the scheduler."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple


DEFAULT_ESTIMATED_HOURS = 8


def as_date(value: Optional[date]) -> Optional[date]:
    """Drop any time-of-day component, keeping only the calendar date."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class TaskDescriptor:
    """Input to a single scheduling run; titles identify tasks within the run."""

    title: str
    estimated_hours: int
    due_date: Optional[date] = None
    dependencies: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "due_date", as_date(self.due_date))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))


@dataclass(frozen=True)
class ScheduledTask:
    """A task placed on the timeline by the scheduler."""

    title: str
    scheduled_start_date: date
    scheduled_end_date: date
    estimated_hours: int
    dependencies: Tuple[str, ...] = ()
    assigned_to_user_id: Optional[str] = None
    original_due_date: Optional[date] = None

    def duration_days(self) -> int:
        """Return the number of calendar days covered, both ends included."""
        return (self.scheduled_end_date - self.scheduled_start_date).days + 1

    def covers(self, day: date) -> bool:
        return self.scheduled_start_date <= day <= self.scheduled_end_date

    def is_overdue_on(self, day: date) -> bool:
        """Return True when `day` falls after the original due date."""
        return self.original_due_date is not None and day > self.original_due_date

    def to_dict(self) -> dict:
        """Render the task in the camelCase shape returned to API callers."""
        return {
            "title": self.title,
            "scheduledStartDate": self.scheduled_start_date.isoformat(),
            "scheduledEndDate": self.scheduled_end_date.isoformat(),
            "estimatedHours": self.estimated_hours,
            "dependencies": list(self.dependencies),
            "assignedToUserId": self.assigned_to_user_id,
            "originalDueDate": _iso_or_none(self.original_due_date),
        }


class TaskStatus(str, Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    completed = "completed"


@dataclass
class ProjectTask:
    """Persisted representation of a task belonging to a project."""

    title: str
    estimated_hours: int = DEFAULT_ESTIMATED_HOURS
    due_date: Optional[date] = None
    dependencies: List[str] = field(default_factory=list)
    status: TaskStatus = TaskStatus.not_started
    description: Optional[str] = None
    assigned_to_user_id: Optional[str] = None
    scheduled_order: Optional[int] = None

    def is_completed(self) -> bool:
        return self.status is TaskStatus.completed

    def to_descriptor(self) -> TaskDescriptor:
        """Project the persisted task onto the scheduler's input type."""
        return TaskDescriptor(
            title=self.title,
            estimated_hours=self.estimated_hours,
            due_date=self.due_date,
            dependencies=tuple(self.dependencies),
        )


def descriptors_for_open_tasks(tasks: Iterable[ProjectTask]) -> List[TaskDescriptor]:
    """Return descriptors for every task that is not yet completed."""
    return [task.to_descriptor() for task in tasks if not task.is_completed()]


def _iso_or_none(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()
