from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from .metrics import build_result
from .models import Process, SchedulerInvariantError, SimulationResult
from .timeline import Timeline

logger = logging.getLogger(__name__)

DEFAULT_QUANTUM = 2

DISPLAY_NAMES: Dict[str, str] = {
    "fcfs": "FCFS",
    "sjfNonPreemptive": "SJF (non-preemptive)",
    "sjfPreemptive": "SJF (preemptive)",
    "ljfNonPreemptive": "LJF (non-preemptive)",
    "ljfPreemptive": "LJF (preemptive)",
    "priorityNonPreemptive": "Priority (non-preemptive)",
    "priorityPreemptive": "Priority (preemptive)",
    "roundRobin": "Round Robin",
}

# Picks the next process to run from a non-empty ready list (in arrival
# order) at the given time.
SelectionPolicy = Callable[[List[Process], int], Process]


def _fresh_by_arrival(processes: List[Process]) -> List[Process]:
    # sorted() is stable, so equal arrivals keep input order.
    return sorted((p.fresh() for p in processes), key=lambda p: p.arrival_time)


def _idle_until_next_arrival(pending: List[Process], time: int, timeline: Timeline) -> int:
    """
    Record an idle gap up to the next arrival among ``pending`` and return
    that arrival time.
    """
    future = [p.arrival_time for p in pending if p.arrival_time > time]
    if not future:
        raise SchedulerInvariantError(
            f"No process ready at t={time} and none left to arrive, "
            f"but {len(pending)} still unfinished"
        )

    next_arrival = min(future)
    logger.debug("t=%d: CPU idle until %d", time, next_arrival)
    timeline.idle(time, next_arrival)
    return next_arrival


def _pick_min(key: Callable[[Process], object]) -> SelectionPolicy:
    # min() returns the first of several equal candidates, which gives the
    # earliest-arrival tie-break since ready lists keep arrival order.
    def policy(ready: List[Process], time: int) -> Process:
        return min(ready, key=key)

    return policy


shortest_burst = _pick_min(lambda p: p.burst_time)
longest_burst = _pick_min(lambda p: -p.burst_time)
shortest_remaining = _pick_min(lambda p: p.remaining_time)
longest_remaining = _pick_min(lambda p: -p.remaining_time)
highest_priority = _pick_min(lambda p: p.priority)


def _simulate(
    processes: List[Process],
    policy: SelectionPolicy,
    preemptive: bool,
    algorithm: str,
) -> SimulationResult:
    """
    Generic single-CPU simulation driver.

    Non-preemptive: at each decision point the policy picks one ready process
    which then runs to completion.

    Preemptive: time advances one unit at a time and the policy re-picks on
    every unit. A change of process closes the running interval and opens a
    new one, so uninterrupted runs come out as a single interval.
    """
    work = _fresh_by_arrival(processes)
    pending: List[Process] = list(work)
    timeline = Timeline()
    time = 0

    while pending:
        ready = [p for p in pending if p.arrival_time <= time]

        if not ready:
            timeline.close(time)
            time = _idle_until_next_arrival(pending, time, timeline)
            continue

        p = policy(ready, time)

        if not p.started:
            p.start_time = time

        if not preemptive:
            logger.debug("t=%d: dispatch %s for %d", time, p.label, p.remaining_time)
            timeline.add(p.id, time, time + p.remaining_time)
            time += p.remaining_time
            p.remaining_time = 0
        else:
            if timeline.running != p.id:
                if timeline.running is not None:
                    logger.debug("t=%d: P%s preempted by %s", time, timeline.running, p.label)
                timeline.close(time)
                timeline.open(p.id, time)
            time += 1
            p.remaining_time -= 1

        if p.remaining_time == 0:
            p.finish_time = time
            timeline.close(time)
            pending = [q for q in pending if q is not p]
            logger.debug("t=%d: %s finished", time, p.label)

    return build_result(algorithm, work, timeline.merged())


def schedule_fcfs(processes: List[Process]) -> SimulationResult:
    """
    First-Come First-Serve (non-preemptive) scheduling.

    Processes run once each in stable arrival order; gaps between a
    completion and the next arrival are recorded as idle time.
    """
    processes_sorted = _fresh_by_arrival(processes)

    time = 0
    timeline = Timeline()

    for p in processes_sorted:
        if time < p.arrival_time:
            timeline.idle(time, p.arrival_time)
            time = p.arrival_time

        p.start_time = time
        p.finish_time = time + p.burst_time
        p.remaining_time = 0
        timeline.add(p.id, p.start_time, p.finish_time)
        logger.debug("t=%d: dispatch %s for %d", time, p.label, p.burst_time)

        time = p.finish_time

    return build_result(DISPLAY_NAMES["fcfs"], processes_sorted, timeline.merged())


def schedule_sjf(processes: List[Process]) -> SimulationResult:
    """
    Shortest Job First (non-preemptive).

    At each decision point, among processes that have arrived and are not yet
    completed, choose the one with the smallest burst time.
    """
    return _simulate(processes, shortest_burst, preemptive=False, algorithm=DISPLAY_NAMES["sjfNonPreemptive"])


def schedule_srtf(processes: List[Process]) -> SimulationResult:
    """
    Shortest Remaining Time First (preemptive SJF).
    """
    return _simulate(processes, shortest_remaining, preemptive=True, algorithm=DISPLAY_NAMES["sjfPreemptive"])


def schedule_ljf(processes: List[Process]) -> SimulationResult:
    """
    Longest Job First (non-preemptive): the ready process with the largest
    burst time runs to completion.
    """
    return _simulate(processes, longest_burst, preemptive=False, algorithm=DISPLAY_NAMES["ljfNonPreemptive"])


def schedule_lrtf(processes: List[Process]) -> SimulationResult:
    return _simulate(processes, longest_remaining, preemptive=True, algorithm=DISPLAY_NAMES["ljfPreemptive"])


def schedule_priority(processes: List[Process]) -> SimulationResult:
    """
    Static Priority scheduling (non-preemptive).

    Lower numeric priority value means higher priority.
    """
    return _simulate(
        processes, highest_priority, preemptive=False, algorithm=DISPLAY_NAMES["priorityNonPreemptive"]
    )


def schedule_priority_preemptive(processes: List[Process]) -> SimulationResult:
    """
    Static Priority scheduling (preemptive); a newly arrived process with a
    lower priority value takes the CPU at the next time unit.
    """
    return _simulate(
        processes, highest_priority, preemptive=True, algorithm=DISPLAY_NAMES["priorityPreemptive"]
    )


def schedule_round_robin(processes: List[Process], quantum: int) -> SimulationResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Processes that arrive during a slice are queued before the process whose
    slice just ended is put back at the tail.
    """
    by_arrival = _fresh_by_arrival(processes)
    n = len(by_arrival)

    time = 0
    timeline = Timeline()
    ready: Deque[Process] = deque()
    next_index = 0  # first process in by_arrival not yet queued
    completed = 0

    def enqueue_new_arrivals(current_time: int) -> None:
        nonlocal next_index
        while next_index < n and by_arrival[next_index].arrival_time <= current_time:
            ready.append(by_arrival[next_index])
            next_index += 1

    while completed < n:
        enqueue_new_arrivals(time)

        if not ready:
            time = _idle_until_next_arrival(by_arrival[next_index:], time, timeline)
            continue

        p = ready.popleft()
        if not p.started:
            p.start_time = time

        run_time = min(quantum, p.remaining_time)
        timeline.add(p.id, time, time + run_time)
        logger.debug("t=%d: %s runs for %d", time, p.label, run_time)

        time += run_time
        p.remaining_time -= run_time

        # Arrivals during the slice go ahead of the process that just ran.
        enqueue_new_arrivals(time)

        if p.remaining_time > 0:
            ready.append(p)
        else:
            p.finish_time = time
            completed += 1
            logger.debug("t=%d: %s finished", time, p.label)

    return build_result(DISPLAY_NAMES["roundRobin"], by_arrival, timeline.merged(), quantum=quantum)


ALGORITHMS: Dict[str, Callable[..., SimulationResult]] = {
    "fcfs": schedule_fcfs,
    "sjfNonPreemptive": schedule_sjf,
    "sjfPreemptive": schedule_srtf,
    "ljfNonPreemptive": schedule_ljf,
    "ljfPreemptive": schedule_lrtf,
    "priorityNonPreemptive": schedule_priority,
    "priorityPreemptive": schedule_priority_preemptive,
    "roundRobin": schedule_round_robin,
}

ALIASES: Dict[str, str] = {
    "sjf": "sjfNonPreemptive",
    "srtf": "sjfPreemptive",
    "ljf": "ljfNonPreemptive",
    "lrtf": "ljfPreemptive",
    "priority": "priorityNonPreemptive",
    "rr": "roundRobin",
}

PRIORITY_ALGORITHMS = frozenset({"priorityNonPreemptive", "priorityPreemptive"})
QUANTUM_ALGORITHMS = frozenset({"roundRobin"})

_LOOKUP: Dict[str, str] = {name.lower(): name for name in ALGORITHMS}
_LOOKUP.update(ALIASES)


def resolve_algorithm(name: str) -> str:
    """
    Map an identifier or alias (case-insensitive) to its canonical identifier.
    """
    canonical = _LOOKUP.get(name.strip().lower())
    if canonical is None:
        raise ValueError(f"Unknown or unimplemented algorithm '{name}'")
    return canonical


def requires_priority(name: str) -> bool:
    return resolve_algorithm(name) in PRIORITY_ALGORITHMS


def uses_quantum(name: str) -> bool:
    return resolve_algorithm(name) in QUANTUM_ALGORITHMS


def run_algorithm(name: str, processes: List[Process], quantum: Optional[int] = None) -> SimulationResult:
    """
    Dispatch to the requested algorithm. Quantum is only used by Round Robin
    and ignored otherwise.

    The caller's processes are never modified; every run simulates on fresh
    copies and returns them in the result.
    """
    canonical = resolve_algorithm(name)
    func = ALGORITHMS[canonical]
    logger.debug("Running %s on %d processes", canonical, len(processes))

    if canonical in QUANTUM_ALGORITHMS:
        if quantum is None or quantum <= 0:
            raise ValueError("Round Robin requires a positive quantum (use --quantum)")
        return func(processes, quantum=quantum)

    return func(processes)
