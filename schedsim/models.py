from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

# Owner marker for timeline intervals where the CPU has nothing to run.
IDLE = "idle"

OwnerId = Union[int, str]


class SchedulerInvariantError(RuntimeError):
    """
    Raised when the simulation reaches a state valid input can never produce,
    e.g. unfinished processes with nothing ready and nothing left to arrive.
    """


@dataclass
class Process:
    """
    A process record. The simulation fields start at their sentinels and are
    written by exactly one algorithm run.
    """

    id: int
    arrival_time: int
    burst_time: int
    priority: int = 0

    remaining_time: int = field(init=False)
    start_time: int = field(init=False, default=-1)
    finish_time: int = field(init=False, default=-1)
    waiting_time: int = field(init=False, default=-1)
    turnaround_time: int = field(init=False, default=-1)
    response_time: int = field(init=False, default=-1)

    def __post_init__(self) -> None:
        self.remaining_time = self.burst_time

    @property
    def label(self) -> str:
        return f"P{self.id}"

    @property
    def started(self) -> bool:
        return self.start_time != -1

    @property
    def finished(self) -> bool:
        return self.finish_time != -1

    def fresh(self) -> Process:
        """Return a copy with only the input fields set and all timing reset."""
        return replace(self)


@dataclass
class TimelineInterval:
    """
    One contiguous stretch of CPU time owned by a process or by IDLE.
    """

    owner_id: OwnerId
    start: int
    end: int

    @property
    def is_idle(self) -> bool:
        return self.owner_id == IDLE

    @property
    def duration(self) -> int:
        return self.end - self.start

    @property
    def label(self) -> str:
        return "Idle" if self.is_idle else f"P{self.owner_id}"


@dataclass
class SystemMetrics:
    makespan: int
    cpu_busy_time: int
    idle_time: int
    throughput: float
    cpu_utilization: float


@dataclass
class SimulationResult:
    algorithm: str
    quantum: Optional[int]
    processes: List[Process] = field(default_factory=list)
    timeline: List[TimelineInterval] = field(default_factory=list)
    average_waiting_time: float = 0.0
    average_turnaround_time: float = 0.0
    average_response_time: float = 0.0
    system: Optional[SystemMetrics] = None
