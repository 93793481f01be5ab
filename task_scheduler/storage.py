"""CSV persistence helpers."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple
import csv

from .models import DEFAULT_ESTIMATED_HOURS, ProjectTask, TaskStatus


_PROJECT_PREFIX = "#project"
_TASK_HEADER = [
    "title",
    "estimated_hours",
    "due_date",
    "dependencies",
    "status",
    "scheduled_order",
    "assigned_to",
    "description",
]
_DEPENDENCY_SEPARATOR = ","


def encode_dependencies(dependencies: Sequence[str]) -> str:
    """Join dependency titles into the single delimited cell stored on disk."""
    return _DEPENDENCY_SEPARATOR.join(dependencies)


def decode_dependencies(text: Optional[str]) -> List[str]:
    """Split a stored dependency cell back into titles, dropping blanks."""
    if text is None or not text.strip():
        return []
    parts = (part.strip() for part in text.split(_DEPENDENCY_SEPARATOR))
    return [part for part in parts if part]


def save_project(path: Path | str, title: str, tasks: Iterable[ProjectTask]) -> None:
    """Persist the project to CSV."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow([_PROJECT_PREFIX, title])
        writer.writerow(_TASK_HEADER)
        for task in tasks:
            writer.writerow([
                task.title,
                task.estimated_hours,
                _serialize_optional_date(task.due_date),
                encode_dependencies(task.dependencies),
                task.status.value,
                _serialize_optional_int(task.scheduled_order),
                task.assigned_to_user_id or "",
                task.description or "",
            ])


def load_project(path: Path | str) -> Tuple[str, List[ProjectTask]]:
    """Load a project from CSV."""
    csv_path = Path(path)
    with csv_path.open("r", newline="", encoding="utf-8") as handle:
        reader = csv.reader(handle)
        project_line = next(reader, None)
        if not project_line or project_line[0] != _PROJECT_PREFIX:
            raise ValueError("Invalid project CSV: missing project line")
        title = project_line[1] if len(project_line) > 1 else ""

        header = next(reader, None)
        if header != _TASK_HEADER:
            raise ValueError("Invalid project CSV: missing task header")

        tasks: List[ProjectTask] = []
        for row in reader:
            if len(row) < len(_TASK_HEADER):
                continue
            name, hours_raw, due_raw, deps_raw, status_raw, order_raw, assigned, description = row[:len(_TASK_HEADER)]
            if not name.strip():
                continue
            hours = _parse_optional_int(hours_raw)
            task = ProjectTask(
                title=name,
                estimated_hours=DEFAULT_ESTIMATED_HOURS if hours is None else hours,
                due_date=_parse_optional_date(due_raw),
                dependencies=decode_dependencies(deps_raw),
                status=_parse_status(status_raw),
                scheduled_order=_parse_optional_int(order_raw),
                assigned_to_user_id=assigned or None,
                description=description or None,
            )
            tasks.append(task)

        return title, tasks


def _serialize_optional_int(value: Optional[int]) -> str:
    return "" if value is None else str(value)


def _serialize_optional_date(value: Optional[date]) -> str:
    return "" if value is None else value.isoformat()


def _parse_optional_int(value: str) -> Optional[int]:
    text = value.strip() if value is not None else ""
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _parse_optional_date(value: str) -> Optional[date]:
    text = value.strip() if value is not None else ""
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def _parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value.strip())
    except ValueError:
        return TaskStatus.not_started
