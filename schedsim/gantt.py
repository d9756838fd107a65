from __future__ import annotations

from typing import List

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import TimelineInterval

PALETTE = [
    "#4285F4",
    "#EA4335",
    "#FBBC05",
    "#34A853",
    "#FF6D01",
    "#46BDC6",
    "#7B1FA2",
    "#0097A7",
    "#689F38",
    "#F06292",
    "#5D4037",
    "#00ACC1",
    "#3949AB",
    "#8D6E63",
    "#78909C",
]


def process_color(pid: int) -> str:
    """Stable color for a process id, cycling through the palette."""
    return PALETTE[(pid - 1) % len(PALETTE)]


def _sorted(intervals: List[TimelineInterval]) -> List[TimelineInterval]:
    return sorted(intervals, key=lambda iv: (iv.start, iv.end))


def _time_marks(intervals: List[TimelineInterval]) -> str:
    # One column per time unit; each mark starts at its own column unless the
    # previous mark is still in the way.
    marks = "0"
    for iv in intervals:
        if len(marks) < iv.end:
            marks = marks.ljust(iv.end)
        else:
            marks += " "
        marks += str(iv.end)
    return marks


def render_gantt(intervals: List[TimelineInterval]) -> str:
    """
    Plain-text Gantt chart. Busy time is drawn with ``=``, idle time with ``.``.
    """
    if not intervals:
        return "(no execution)"

    intervals = _sorted(intervals)

    line = "|"
    labels = "|"
    for iv in intervals:
        width = max(1, iv.duration)
        line += ("." if iv.is_idle else "=") * width
        labels += iv.label[:width].ljust(width)
    line += "|"

    return "\n".join(
        [
            "Gantt Chart:",
            line,
            labels.rstrip(),
            _time_marks(intervals),
        ]
    )


def build_rich_gantt(intervals: List[TimelineInterval]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not intervals:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    intervals = _sorted(intervals)

    timeline = Text()
    labels = Text()

    for iv in intervals:
        width = max(1, iv.duration)
        if iv.is_idle:
            timeline.append("·" * width, style="dim")
            labels.append(iv.label[:width].ljust(width), style="dim")
        else:
            timeline.append(" " * width, style=f"on {process_color(iv.owner_id)}")
            labels.append(iv.label[:width].ljust(width), style="bold")

    table = Table.grid(padding=(0, 0))
    table.add_row(timeline)
    table.add_row(labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, _time_marks(intervals)
