import logging
from datetime import date, datetime, timedelta

import pytest

from task_scheduler.models import ScheduledTask, TaskDescriptor
from task_scheduler.scheduler import (
    DuplicateTitleError,
    find_overlaps,
    recommended_order,
    schedule_tasks,
    work_days_for,
)


def _by_title(schedule):
    return {task.title: task for task in schedule}


def test_two_task_chain_gets_consecutive_dates(monday: date) -> None:
    tasks = [
        TaskDescriptor("A", 8),
        TaskDescriptor("B", 16, dependencies=["A"]),
    ]

    schedule = schedule_tasks(tasks, monday)

    assert schedule == [
        ScheduledTask("A", date(2024, 1, 1), date(2024, 1, 1), 8),
        ScheduledTask("B", date(2024, 1, 2), date(2024, 1, 3), 16, dependencies=("A",)),
    ]
    assert recommended_order(schedule) == ["A", "B"]
    assert all(task.assigned_to_user_id is None for task in schedule)


def test_empty_input_returns_empty_schedule(monday: date) -> None:
    assert schedule_tasks([], monday) == []


@pytest.mark.parametrize(
    ("hours", "days"),
    [(8, 1), (9, 2), (16, 2), (17, 3), (1, 1), (0, 1), (-5, 1)],
)
def test_work_days_round_up_with_one_day_minimum(hours: int, days: int) -> None:
    assert work_days_for(hours) == days


def test_task_span_matches_work_days(monday: date) -> None:
    schedule = schedule_tasks(
        [TaskDescriptor("Eight", 8), TaskDescriptor("Nine", 9), TaskDescriptor("Zero", 0)],
        monday,
    )
    spans = {task.title: task.duration_days() for task in schedule}

    assert spans == {"Zero": 1, "Eight": 1, "Nine": 2}
    for task in schedule:
        assert task.scheduled_end_date >= task.scheduled_start_date


def test_dependency_is_scheduled_before_dependent(monday: date) -> None:
    tasks = [
        TaskDescriptor("Deploy", 4, dependencies=["Build", "Test"]),
        TaskDescriptor("Test", 8, dependencies=["Build"]),
        TaskDescriptor("Build", 24),
    ]

    order = recommended_order(schedule_tasks(tasks, monday))

    assert order == ["Build", "Test", "Deploy"]


def test_earlier_due_date_goes_first(monday: date) -> None:
    tasks = [
        TaskDescriptor("Later", 8, due_date=monday + timedelta(days=10)),
        TaskDescriptor("Sooner", 8, due_date=monday + timedelta(days=1)),
    ]

    assert recommended_order(schedule_tasks(tasks, monday)) == ["Sooner", "Later"]


def test_tasks_without_due_date_go_after_dated_tasks(monday: date) -> None:
    tasks = [
        TaskDescriptor("Someday", 1),
        TaskDescriptor("Dated", 40, due_date=date(2030, 1, 1)),
    ]

    assert recommended_order(schedule_tasks(tasks, monday)) == ["Dated", "Someday"]


def test_fewer_hours_breaks_due_date_ties(monday: date) -> None:
    due = date(2024, 2, 1)
    tasks = [
        TaskDescriptor("Long", 24, due_date=due),
        TaskDescriptor("Short", 4, due_date=due),
    ]

    assert recommended_order(schedule_tasks(tasks, monday)) == ["Short", "Long"]


def test_equal_keys_keep_input_order(monday: date) -> None:
    tasks = [TaskDescriptor(title, 8) for title in ["Charlie", "Alpha", "Bravo"]]

    assert recommended_order(schedule_tasks(tasks, monday)) == ["Charlie", "Alpha", "Bravo"]


def test_mutual_dependency_still_terminates(monday: date) -> None:
    tasks = [
        TaskDescriptor("A", 16, dependencies=["B"]),
        TaskDescriptor("B", 8, dependencies=["A"]),
    ]

    schedule = schedule_tasks(tasks, monday)

    assert len(schedule) == 2
    # B wins the fallback on hours; A is then ready.
    assert recommended_order(schedule) == ["B", "A"]
    assert schedule[1].scheduled_start_date == date(2024, 1, 2)
    assert schedule[1].scheduled_end_date == date(2024, 1, 3)


def test_self_dependency_is_scheduled(monday: date) -> None:
    schedule = schedule_tasks([TaskDescriptor("Loop", 8, dependencies=["Loop"])], monday)

    assert recommended_order(schedule) == ["Loop"]


def test_missing_dependency_falls_back_after_ready_tasks(monday: date, caplog) -> None:
    tasks = [
        TaskDescriptor("Haunted", 8, dependencies=["Ghost"]),
        TaskDescriptor("Plain", 8),
    ]

    with caplog.at_level(logging.WARNING, logger="task_scheduler.scheduler"):
        schedule = schedule_tasks(tasks, monday)

    order = recommended_order(schedule)
    assert order == ["Plain", "Haunted"]
    assert order.count("Haunted") == 1
    assert "Ghost" in caplog.text


def test_fallback_uses_due_date_ordering(monday: date) -> None:
    tasks = [
        TaskDescriptor("NoDue", 1, dependencies=["Ghost"]),
        TaskDescriptor("Due", 40, due_date=date(2024, 1, 20), dependencies=["Ghost"]),
    ]

    assert recommended_order(schedule_tasks(tasks, monday)) == ["Due", "NoDue"]


def test_overdue_task_is_rewound_to_its_due_date() -> None:
    start = date(2024, 1, 10)
    schedule = schedule_tasks([TaskDescriptor("Late", 12, due_date=date(2024, 1, 3))], start)

    assert schedule[0].scheduled_start_date == date(2024, 1, 3)
    assert schedule[0].scheduled_end_date == date(2024, 1, 4)
    assert schedule[0].original_due_date == date(2024, 1, 3)


def test_task_due_on_start_day_is_not_rewound(monday: date) -> None:
    schedule = schedule_tasks([TaskDescriptor("Today", 8, due_date=monday)], monday)

    assert schedule[0].scheduled_start_date == monday


def test_rewind_moves_the_cursor_back_and_can_overlap(monday: date) -> None:
    tasks = [
        TaskDescriptor("A", 24, due_date=date(2024, 1, 5)),
        TaskDescriptor("B", 8, due_date=date(2024, 1, 2), dependencies=["A"]),
        TaskDescriptor("C", 8),
    ]

    schedule = _by_title(schedule_tasks(tasks, monday))

    assert (schedule["A"].scheduled_start_date, schedule["A"].scheduled_end_date) == (
        date(2024, 1, 1),
        date(2024, 1, 3),
    )
    assert schedule["B"].scheduled_start_date == date(2024, 1, 2)
    assert schedule["C"].scheduled_start_date == date(2024, 1, 3)
    assert find_overlaps(schedule_tasks(tasks, monday)) == [("A", "B"), ("A", "C")]


def test_sequential_schedule_has_no_overlaps(monday: date) -> None:
    tasks = [TaskDescriptor("A", 8), TaskDescriptor("B", 16), TaskDescriptor("C", 4)]

    assert find_overlaps(schedule_tasks(tasks, monday)) == []


def test_times_of_day_are_dropped() -> None:
    tasks = [TaskDescriptor("Dated", 8, due_date=datetime(2024, 1, 9, 17, 45))]

    schedule = schedule_tasks(tasks, datetime(2024, 1, 8, 15, 30))

    assert schedule[0].scheduled_start_date == date(2024, 1, 8)
    assert schedule[0].original_due_date == date(2024, 1, 9)


def test_output_titles_match_input_titles(monday: date) -> None:
    tasks = [
        TaskDescriptor("Spec", 8),
        TaskDescriptor("Build", 30, dependencies=["Spec"], due_date=date(2024, 1, 2)),
        TaskDescriptor("Docs", 3, dependencies=["Missing"]),
        TaskDescriptor("Ship", 2, dependencies=["Build", "Docs"]),
        TaskDescriptor("Polish", 5, dependencies=["Ship", "Polish"]),
    ]

    schedule = schedule_tasks(tasks, monday)

    assert len(schedule) == len(tasks)
    assert {task.title for task in schedule} == {task.title for task in tasks}
    order = recommended_order(schedule)
    assert order.index("Spec") < order.index("Build") < order.index("Ship")


def test_duplicate_titles_are_rejected(monday: date) -> None:
    tasks = [TaskDescriptor("A", 8), TaskDescriptor("B", 8), TaskDescriptor("A", 4)]

    with pytest.raises(DuplicateTitleError) as excinfo:
        schedule_tasks(tasks, monday)

    assert excinfo.value.titles == ["A"]
    assert isinstance(excinfo.value, ValueError)
