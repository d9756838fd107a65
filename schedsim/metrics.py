from __future__ import annotations

from typing import List, Optional

from .models import (
    Process,
    SchedulerInvariantError,
    SimulationResult,
    SystemMetrics,
    TimelineInterval,
)


def compute_process_metrics(processes: List[Process]) -> None:
    """
    Fill in turnaround, waiting and response time on each finished process.
    """
    for p in processes:
        if not (p.started and p.finished):
            raise SchedulerInvariantError(f"{p.label} was never run to completion")

        p.turnaround_time = p.finish_time - p.arrival_time
        p.waiting_time = p.turnaround_time - p.burst_time
        p.response_time = p.start_time - p.arrival_time


def compute_system_metrics(processes: List[Process], timeline: List[TimelineInterval]) -> SystemMetrics:
    """
    Compute throughput and CPU utilization from the finished processes and
    the timeline, idle intervals included.
    """
    makespan = max((iv.end for iv in timeline), default=0)
    cpu_busy_time = sum(iv.duration for iv in timeline if not iv.is_idle)

    return SystemMetrics(
        makespan=makespan,
        cpu_busy_time=cpu_busy_time,
        idle_time=makespan - cpu_busy_time,
        throughput=len(processes) / makespan if makespan > 0 else 0.0,
        cpu_utilization=cpu_busy_time / makespan if makespan > 0 else 0.0,
    )


def summarize_process_metrics(processes: List[Process]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }


def build_result(
    algorithm: str,
    processes: List[Process],
    timeline: List[TimelineInterval],
    quantum: Optional[int] = None,
) -> SimulationResult:
    """
    Derive all metrics for a finished run and package them as a result.
    """
    compute_process_metrics(processes)
    summary = summarize_process_metrics(processes)

    return SimulationResult(
        algorithm=algorithm,
        quantum=quantum,
        processes=sorted(processes, key=lambda p: p.id),
        timeline=timeline,
        average_waiting_time=summary["avg_waiting"],
        average_turnaround_time=summary["avg_turnaround"],
        average_response_time=summary["avg_response"],
        system=compute_system_metrics(processes, timeline),
    )
