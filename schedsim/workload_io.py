from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import Process

logger = logging.getLogger(__name__)


class WorkloadError(ValueError):
    """Raised when workload input cannot be turned into a valid process set."""


# Demonstration workloads: (arrival times, burst times, priorities).
EXAMPLE_WORKLOADS = [
    ("0 1 2 3", "5 3 8 6", "2 1 4 3"),
    ("1 2 3 4", "4 6 2 5", "3 1 4 2"),
    ("0 2 4 6", "7 5 3 9", "1 3 2 4"),
    ("3 5 7 9", "6 4 7 3", "4 2 3 1"),
]


def build_processes(
    arrivals: Sequence[int],
    bursts: Sequence[int],
    priorities: Optional[Sequence[int]] = None,
    require_priority: bool = False,
) -> List[Process]:
    """
    Validate parallel arrival/burst/priority lists and build processes with
    ids 1..n in input order. Missing priorities default to 0.
    """
    if not arrivals or not bursts:
        raise WorkloadError("Please enter arrival and burst times")

    if len(arrivals) != len(bursts):
        raise WorkloadError("Number of arrival times must match number of burst times")

    if any(a < 0 for a in arrivals):
        raise WorkloadError("Arrival times must not be negative")

    if any(b <= 0 for b in bursts):
        raise WorkloadError("Burst times must be greater than zero")

    priorities = list(priorities or [])
    if require_priority and len(priorities) != len(arrivals):
        raise WorkloadError("Please enter priority values for all processes")
    if priorities and len(priorities) != len(arrivals):
        raise WorkloadError("Number of priorities must match number of processes")

    return [
        Process(
            id=i + 1,
            arrival_time=arrival,
            burst_time=burst,
            priority=priorities[i] if priorities else 0,
        )
        for i, (arrival, burst) in enumerate(zip(arrivals, bursts))
    ]


def _parse_ints(text: Optional[str], what: str) -> List[int]:
    if not text or not text.strip():
        return []
    try:
        return [int(tok) for tok in text.split()]
    except ValueError as exc:
        raise WorkloadError(f"Invalid {what}: {text!r} (expected whitespace-separated integers)") from exc


def parse_process_lists(
    arrivals: str,
    bursts: str,
    priorities: Optional[str] = None,
    require_priority: bool = False,
) -> List[Process]:
    """
    Build processes from whitespace-separated strings, e.g. ``"0 1 2"``.
    """
    return build_processes(
        _parse_ints(arrivals, "arrival times"),
        _parse_ints(bursts, "burst times"),
        _parse_ints(priorities, "priorities"),
        require_priority=require_priority,
    )


def example_workload(number: int, require_priority: bool = False) -> List[Process]:
    """
    Return one of the bundled demonstration workloads (1-based).
    """
    if not 1 <= number <= len(EXAMPLE_WORKLOADS):
        raise WorkloadError(f"Example must be between 1 and {len(EXAMPLE_WORKLOADS)}, got {number}")
    arrivals, bursts, priorities = EXAMPLE_WORKLOADS[number - 1]
    return parse_process_lists(arrivals, bursts, priorities, require_priority=require_priority)


def validate_quantum(quantum: Optional[int]) -> int:
    if quantum is None or quantum <= 0:
        raise WorkloadError("Time quantum must be greater than zero")
    return quantum


def load_workload(path: str | Path, require_priority: bool = False) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.

    Each entry needs ``arrival_time`` and ``burst_time`` and may carry
    ``priority``. Ids are assigned by position in the file.
    """
    processes, _ = read_workload(path, require_priority=require_priority)
    return processes


def read_workload(path: str | Path, require_priority: bool = False) -> Tuple[List[Process], bool]:
    """
    Like :func:`load_workload`, but also report whether the file carried
    priorities for every entry.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        rows = _load_json(path)
    elif suffix == ".csv":
        rows = _load_csv(path)
    else:
        raise WorkloadError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    arrivals: List[int] = []
    bursts: List[int] = []
    priorities: List[Optional[int]] = []
    for row in rows:
        arrival, burst, priority = _fields_from_mapping(row)
        arrivals.append(arrival)
        bursts.append(burst)
        priorities.append(priority)

    given = [p for p in priorities if p is not None]
    if given and len(given) != len(priorities):
        if require_priority:
            raise WorkloadError("Please enter priority values for all processes")
        logger.warning("%s: some entries have no priority; defaulting those to 0", path)

    processes = build_processes(
        arrivals,
        bursts,
        [0 if p is None else p for p in priorities] if given else None,
        require_priority=require_priority,
    )
    logger.info("Loaded %d processes from %s", len(processes), path)
    return processes, len(given) == len(priorities)


def _load_json(path: Path) -> list:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, Iterable) or isinstance(raw, (str, dict)):
        raise WorkloadError("JSON workload must be a list of process objects")

    return list(raw)


def _load_csv(path: Path) -> list:
    with path.open("r", encoding="utf-8", newline="") as f:
        return list(csv.DictReader(f))


def _as_int(value, what: str, mapping) -> int:
    # JSON hands over bools and floats as-is; only whole numbers are accepted.
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise WorkloadError(f"Invalid {what} {value!r} in entry: {mapping!r} (expected an integer)")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise WorkloadError(f"Invalid {what} {value!r} in entry: {mapping!r} (expected an integer)") from exc


def _fields_from_mapping(mapping) -> tuple:
    try:
        arrival_val = mapping["arrival_time"]
        burst_val = mapping["burst_time"]
    except (KeyError, TypeError) as exc:
        raise WorkloadError(f"Invalid process entry: {mapping!r}") from exc

    arrival_time = _as_int(arrival_val, "arrival_time", mapping)
    burst_time = _as_int(burst_val, "burst_time", mapping)

    priority_val = mapping.get("priority")
    priority = _as_int(priority_val, "priority", mapping) if priority_val not in (None, "") else None

    return arrival_time, burst_time, priority
