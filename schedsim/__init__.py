"""
schedsim package.

Simulates single-CPU scheduling disciplines (FCFS, SJF, LJF, Priority and
Round Robin, preemptive and not) and reports per-process and average metrics,
with a command-line interface for running and comparing them.
"""

from .algorithms import ALGORITHMS, run_algorithm
from .models import IDLE, Process, SimulationResult, TimelineInterval

__all__ = [
    "ALGORITHMS",
    "IDLE",
    "Process",
    "SimulationResult",
    "TimelineInterval",
    "cli",
    "run_algorithm",
]
