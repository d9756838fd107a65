from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from .models import IDLE, OwnerId, SchedulerInvariantError, TimelineInterval


def merge_intervals(intervals: Iterable[TimelineInterval]) -> List[TimelineInterval]:
    """
    Collapse neighbouring intervals with the same owner that abut each other.

    Returns new interval objects; the input is left untouched. Merging an
    already merged timeline is a no-op.
    """
    merged: List[TimelineInterval] = []
    for iv in intervals:
        last = merged[-1] if merged else None
        if last is not None and last.owner_id == iv.owner_id and last.end == iv.start:
            last.end = iv.end
        else:
            merged.append(TimelineInterval(owner_id=iv.owner_id, start=iv.start, end=iv.end))
    return merged


def is_contiguous(intervals: Iterable[TimelineInterval]) -> bool:
    """
    True if the intervals, sorted by start, tile [0, makespan] without gaps or overlaps.
    """
    expected_start = 0
    for iv in sorted(intervals, key=lambda i: i.start):
        if iv.start != expected_start or iv.end <= iv.start:
            return False
        expected_start = iv.end
    return True


class Timeline:
    """
    Ordered recorder for the execution intervals of one simulation run.

    Whole slices go in through :meth:`add` / :meth:`idle`. Preemptive
    algorithms that extend a run unit by unit use :meth:`open` and
    :meth:`close` instead, so a process that keeps the CPU produces a single
    interval rather than one per time unit.
    """

    def __init__(self) -> None:
        self._intervals: List[TimelineInterval] = []
        self._open: Optional[Tuple[OwnerId, int]] = None

    def add(self, owner_id: OwnerId, start: int, end: int) -> None:
        if start < end:  # zero-length slices carry no information
            self._intervals.append(TimelineInterval(owner_id=owner_id, start=start, end=end))

    def idle(self, start: int, end: int) -> None:
        self.add(IDLE, start, end)

    @property
    def running(self) -> Optional[OwnerId]:
        """Owner of the currently open run, if any."""
        return self._open[0] if self._open else None

    def open(self, owner_id: OwnerId, start: int) -> None:
        if self._open is not None:
            raise SchedulerInvariantError(f"Run for {self._open[0]!r} is still open")
        self._open = (owner_id, start)

    def close(self, end: int) -> None:
        """Close the open run at ``end``. Does nothing if no run is open."""
        if self._open is None:
            return
        owner_id, start = self._open
        self._open = None
        self.add(owner_id, start, end)

    def merged(self) -> List[TimelineInterval]:
        return merge_intervals(self._intervals)
