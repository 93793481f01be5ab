"""Export helpers for CSV and PDF."""
from __future__ import annotations

import csv
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path
from typing import Iterable, List, Optional

from PyQt6.QtCore import Qt, QRect, QRectF
from PyQt6.QtGui import QColor, QFont, QPageLayout, QPageSize, QPainter, QPen, QPdfWriter

from .models import ScheduledTask

CSV_HEADERS = ["Task", "Start", "End"]
CSV_ACTIVE_MARKER = "X"
CSV_OVERDUE_MARKER = "O"

PDF_TITLE_MIN_WIDTH = 160
PDF_TITLE_MAX_WIDTH_RATIO = 0.35  # fraction of available width
PDF_TITLE_PADDING = 12
PDF_DATE_WIDTH = 160
PDF_DAY_MIN_WIDTH = 12
PDF_PAGE_MARGIN_RATIO = 0.04
PDF_HEADER_HEIGHT = 40
PDF_ROW_HEIGHT_MIN = 24
PDF_ROW_HEIGHT_MAX = 48
PDF_FONT_SIZE = 10
PDF_GRID_COLOR = QColor("#333333")
PDF_HEADER_COLOR = QColor("#eceff1")
PDF_TASK_COLOR = QColor("#1976d2")
PDF_OVERDUE_COLOR = QColor("#e53935")
PDF_DUE_LINE_WIDTH = 3


def timeline_days(schedule: Iterable[ScheduledTask]) -> List[date]:
    """Every calendar day from the earliest start to the latest end."""
    tasks = list(schedule)
    if not tasks:
        return []
    first = min(task.scheduled_start_date for task in tasks)
    last = max(task.scheduled_end_date for task in tasks)
    return [first + timedelta(days=offset) for offset in range((last - first).days + 1)]


def export_as_csv(path: Path | str, schedule: Iterable[ScheduledTask]) -> None:
    """Export a rich CSV with one visualization column per day."""
    csv_path = Path(path)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    tasks = list(schedule)
    days = timeline_days(tasks)
    header = CSV_HEADERS + [day.isoformat() for day in days]
    with csv_path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(header)
        for task in tasks:
            row = [
                task.title,
                task.scheduled_start_date.isoformat(),
                task.scheduled_end_date.isoformat(),
            ]
            markers = []
            for day in days:
                if not task.covers(day):
                    markers.append("")
                elif task.is_overdue_on(day):
                    markers.append(CSV_OVERDUE_MARKER)
                else:
                    markers.append(CSV_ACTIVE_MARKER)
            writer.writerow(row + markers)


def export_as_pdf(path: Path | str, schedule: Iterable[ScheduledTask]) -> None:
    """Render the schedule as a Gantt chart to PDF."""
    pdf_path = Path(path)
    pdf_path.parent.mkdir(parents=True, exist_ok=True)

    writer = QPdfWriter(str(pdf_path))
    writer.setPageSize(QPageSize(QPageSize.PageSizeId.A4))
    writer.setPageOrientation(QPageLayout.Orientation.Landscape)
    writer.setResolution(300)

    tasks = list(schedule)
    painter = QPainter(writer)
    font = QFont(painter.font())
    font.setPointSize(PDF_FONT_SIZE)
    painter.setFont(font)
    pen = QPen(PDF_GRID_COLOR)
    pen.setWidth(1)
    painter.setPen(pen)

    chart = _measure_chart(painter, writer, tasks)
    _draw_header(painter, chart)
    top = chart.body_top
    for task in tasks:
        _draw_task_row(painter, chart, task, top)
        top += chart.row_height
    if not tasks:
        rect = QRectF(chart.left, top, chart.width, chart.row_height)
        painter.drawRect(rect)
        painter.drawText(rect, Qt.AlignmentFlag.AlignCenter, "No tasks scheduled")
    painter.end()


@dataclass
class _Chart:
    """Positions of the text columns and the day grid on the page."""

    left: float
    top: float
    width: float
    title_width: float
    days: List[date]
    day_left: float
    day_width: float
    row_height: float

    @property
    def body_top(self) -> float:
        return self.top + PDF_HEADER_HEIGHT

    def day_rect(self, offset: int, top: float, height: float) -> QRectF:
        return QRectF(self.day_left + offset * self.day_width, top, self.day_width, height)


def _measure_chart(painter: QPainter, writer: QPdfWriter, tasks: List[ScheduledTask]) -> _Chart:
    page: QRect = writer.pageLayout().paintRectPixels(writer.resolution())
    margin = int(page.width() * PDF_PAGE_MARGIN_RATIO)
    content = page.adjusted(margin, margin, -margin, -margin)

    metrics = painter.fontMetrics()
    longest = max((metrics.horizontalAdvance(task.title) for task in tasks), default=0)
    title_width = min(
        max(PDF_TITLE_MIN_WIDTH, longest + 2 * PDF_TITLE_PADDING),
        content.width() * PDF_TITLE_MAX_WIDTH_RATIO,
    )

    days = timeline_days(tasks)
    day_left = content.left() + title_width + 2 * PDF_DATE_WIDTH
    day_width = max(PDF_DAY_MIN_WIDTH, (content.right() - day_left) / max(1, len(days)))

    rows = max(1, len(tasks))
    row_height = min(PDF_ROW_HEIGHT_MAX, max(PDF_ROW_HEIGHT_MIN, (content.height() - PDF_HEADER_HEIGHT) / rows))

    return _Chart(
        left=content.left(),
        top=content.top(),
        width=content.width(),
        title_width=title_width,
        days=days,
        day_left=day_left,
        day_width=day_width,
        row_height=row_height,
    )


def _draw_cell(painter: QPainter, rect: QRectF, text: str, *, fill: Optional[QColor] = None, left_align: bool = False) -> None:
    if fill is not None:
        painter.fillRect(rect, fill)
    painter.drawRect(rect)
    if left_align:
        alignment = Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft
        rect = rect.adjusted(PDF_TITLE_PADDING, 0, -PDF_TITLE_PADDING, 0)
    else:
        alignment = Qt.AlignmentFlag.AlignCenter
    painter.drawText(rect, alignment, text)


def _text_cells(chart: _Chart, top: float, height: float) -> List[QRectF]:
    """Rects for the Task, Start and End columns of one row."""
    title = QRectF(chart.left, top, chart.title_width, height)
    start = QRectF(title.right(), top, PDF_DATE_WIDTH, height)
    end = QRectF(start.right(), top, PDF_DATE_WIDTH, height)
    return [title, start, end]


def _draw_header(painter: QPainter, chart: _Chart) -> None:
    for rect, label in zip(_text_cells(chart, chart.top, PDF_HEADER_HEIGHT), CSV_HEADERS):
        _draw_cell(painter, rect, label, fill=PDF_HEADER_COLOR)
    # Day columns carry the day of month; the first of each month shows the month too.
    for offset, day in enumerate(chart.days):
        label = day.strftime("%b %d") if day.day == 1 or offset == 0 else str(day.day)
        _draw_cell(painter, chart.day_rect(offset, chart.top, PDF_HEADER_HEIGHT), label, fill=PDF_HEADER_COLOR)


def _draw_task_row(painter: QPainter, chart: _Chart, task: ScheduledTask, top: float) -> None:
    values = [task.title, task.scheduled_start_date.isoformat(), task.scheduled_end_date.isoformat()]
    for position, (rect, value) in enumerate(zip(_text_cells(chart, top, chart.row_height), values)):
        _draw_cell(painter, rect, value, left_align=position == 0)

    for offset, day in enumerate(chart.days):
        rect = chart.day_rect(offset, top, chart.row_height)
        painter.drawRect(rect)
        if task.covers(day):
            color = PDF_OVERDUE_COLOR if task.is_overdue_on(day) else PDF_TASK_COLOR
            painter.fillRect(rect.adjusted(1, 1, -1, -1), color)
        if day == task.original_due_date:
            painter.fillRect(
                QRectF(rect.right() - PDF_DUE_LINE_WIDTH, rect.top(), PDF_DUE_LINE_WIDTH, rect.height()),
                PDF_OVERDUE_COLOR,
            )
