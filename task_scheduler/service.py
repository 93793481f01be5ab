"""Translation between schedule requests/responses and the scheduler core."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import ProjectTask, ScheduledTask, TaskDescriptor, descriptors_for_open_tasks
from .scheduler import recommended_order, schedule_tasks


logger = logging.getLogger(__name__)


class ScheduleRequestError(ValueError):
    """Raised when a schedule request payload cannot be interpreted."""


@dataclass
class ScheduleRequest:
    start_date: Optional[date] = None
    tasks: List[TaskDescriptor] = field(default_factory=list)


@dataclass
class ScheduleResponse:
    recommended_order: List[str]
    detailed_schedule: List[ScheduledTask]

    def to_dict(self) -> dict:
        return {
            "recommendedOrder": list(self.recommended_order),
            "detailedSchedule": [task.to_dict() for task in self.detailed_schedule],
        }


def parse_schedule_request(payload: Optional[Mapping[str, Any]]) -> ScheduleRequest:
    """Build a request from its camelCase mapping form.

    `None` is accepted and means "start today, schedule the project's tasks".
    """
    if payload is None:
        return ScheduleRequest()
    if not isinstance(payload, Mapping):
        raise ScheduleRequestError("Schedule request must be an object")

    start_date = _parse_date(payload.get("startDate"), "startDate")
    raw_tasks = payload.get("tasks") or []
    if not isinstance(raw_tasks, list):
        raise ScheduleRequestError("tasks must be a list")

    tasks = [_parse_task(raw, position) for position, raw in enumerate(raw_tasks)]
    return ScheduleRequest(start_date=start_date, tasks=tasks)


def plan_schedule(
    request: ScheduleRequest,
    project_tasks: Iterable[ProjectTask] = (),
    today: Optional[date] = None,
) -> ScheduleResponse:
    """Schedule the request's tasks, or the project's open tasks when it has none."""
    start_date = request.start_date or today or datetime.now(timezone.utc).date()
    if request.tasks:
        descriptors = list(request.tasks)
    else:
        descriptors = descriptors_for_open_tasks(project_tasks)
        logger.info("Request carries no tasks; using %d open project tasks", len(descriptors))

    schedule = schedule_tasks(descriptors, start_date)
    return ScheduleResponse(
        recommended_order=recommended_order(schedule),
        detailed_schedule=schedule,
    )


def apply_scheduled_order(
    project_tasks: Iterable[ProjectTask],
    order: Sequence[Tuple[str, int]],
) -> None:
    """Record explicit positions on project tasks, clearing any not listed."""
    lookup = {}
    for title, position in order:
        if position < 0:
            raise ScheduleRequestError(f"Order for {title!r} must not be negative")
        lookup.setdefault(title, position)

    for task in project_tasks:
        task.scheduled_order = lookup.get(task.title)


def apply_recommended_order(project_tasks: Iterable[ProjectTask], response: ScheduleResponse) -> None:
    """Persist a computed schedule's order onto the matching project tasks."""
    apply_scheduled_order(
        project_tasks,
        [(title, position) for position, title in enumerate(response.recommended_order)],
    )


def _parse_task(raw: Any, position: int) -> TaskDescriptor:
    if not isinstance(raw, Mapping):
        raise ScheduleRequestError(f"Task #{position} must be an object")

    title = raw.get("title")
    if not isinstance(title, str) or not title:
        raise ScheduleRequestError(f"Task #{position} is missing a title")

    hours = raw.get("estimatedHours")
    if isinstance(hours, bool) or not isinstance(hours, int):
        raise ScheduleRequestError(f"Task {title!r} needs an integer estimatedHours")

    dependencies = raw.get("dependencies") or []
    if not isinstance(dependencies, list) or not all(isinstance(dep, str) for dep in dependencies):
        raise ScheduleRequestError(f"Task {title!r} dependencies must be a list of titles")

    return TaskDescriptor(
        title=title,
        estimated_hours=hours,
        due_date=_parse_date(raw.get("dueDate"), f"dueDate of {title!r}"),
        dependencies=tuple(dependencies),
    )


def _parse_date(value: Any, label: str) -> Optional[date]:
    """Accept a date, a datetime, or their ISO-8601 text; aware values go to UTC first."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError as exc:
            raise ScheduleRequestError(f"{label} is not an ISO-8601 date: {value!r}") from exc
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    raise ScheduleRequestError(f"{label} must be a date")
