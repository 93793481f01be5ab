"""Command-line entry point for scheduling a project file."""
from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from PyQt6.QtWidgets import QApplication

from .exporters import export_as_csv, export_as_pdf
from .scheduler import find_overlaps
from .service import ScheduleRequest, apply_recommended_order, plan_schedule
from .storage import load_project, save_project


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="task-scheduler",
        description="Propose a timeline for the open tasks of a project CSV",
    )
    parser.add_argument("project", type=Path, help="project CSV file")
    parser.add_argument(
        "--start",
        type=date.fromisoformat,
        default=None,
        help="first day of the schedule (YYYY-MM-DD, default: today in UTC)",
    )
    parser.add_argument("--csv", type=Path, default=None, help="export the schedule as CSV")
    parser.add_argument("--pdf", type=Path, default=None, help="export the schedule as a PDF Gantt chart")
    parser.add_argument("--json", action="store_true", help="print the full schedule as JSON")
    parser.add_argument(
        "--apply-order",
        action="store_true",
        help="write the recommended order back into the project file",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        title, tasks = load_project(args.project)
        response = plan_schedule(ScheduleRequest(start_date=args.start), tasks)
    except (OSError, ValueError, csv.Error) as exc:
        print(f"task-scheduler: {exc}", file=sys.stderr)
        return 1

    logger.info("Scheduled %d tasks of project %r", len(response.detailed_schedule), title)
    for first, second in find_overlaps(response.detailed_schedule):
        logger.info("%r overlaps %r", first, second)

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
    else:
        for task in response.detailed_schedule:
            print(f"{task.scheduled_start_date} .. {task.scheduled_end_date}  {task.title}")

    try:
        if args.csv is not None:
            export_as_csv(args.csv, response.detailed_schedule)
            logger.info("Exported CSV to %s", args.csv)
        if args.pdf is not None:
            _ensure_qt_application()
            export_as_pdf(args.pdf, response.detailed_schedule)
            logger.info("Exported PDF to %s", args.pdf)
        if args.apply_order:
            apply_recommended_order(tasks, response)
            save_project(args.project, title, tasks)
            logger.info("Saved scheduled order to %s", args.project)
    except OSError as exc:
        print(f"task-scheduler: {exc}", file=sys.stderr)
        return 1
    return 0


def _ensure_qt_application() -> QApplication:
    """PDF rendering needs fonts, which need a Qt application."""
    app = QApplication.instance()
    if app is None:
        app = QApplication(sys.argv[:1])
    return app


def run() -> None:
    """Entry point used by the `task-scheduler` console script."""
    sys.exit(main())


if __name__ == "__main__":
    run()
