import pytest

from schedsim.algorithms import (
    ALGORITHMS,
    _idle_until_next_arrival,
    resolve_algorithm,
    run_algorithm,
    schedule_fcfs,
    schedule_ljf,
    schedule_lrtf,
    schedule_priority,
    schedule_priority_preemptive,
    schedule_round_robin,
    schedule_sjf,
    schedule_srtf,
)
from schedsim.models import IDLE, Process, SchedulerInvariantError
from schedsim.timeline import Timeline, is_contiguous
from schedsim.workload_io import example_workload

NON_PREEMPTIVE = ["fcfs", "sjfNonPreemptive", "ljfNonPreemptive", "priorityNonPreemptive"]


def _procs():
    return [
        Process(1, arrival_time=0, burst_time=5, priority=2),
        Process(2, arrival_time=1, burst_time=3, priority=1),
        Process(3, arrival_time=2, burst_time=8, priority=3),
    ]


def _make(*rows):
    """Build processes from (arrival, burst[, priority]) tuples, ids 1..n."""
    return [Process(i + 1, *row) for i, row in enumerate(rows)]


def _slices(result):
    return [(s.owner_id, s.start, s.end) for s in result.timeline]


def test_fcfs_order():
    res = schedule_fcfs(_procs())
    assert [s.owner_id for s in res.timeline] == [1, 2, 3]
    assert res.processes[0].waiting_time == 0
    assert res.processes[1].waiting_time == 4
    assert res.processes[2].waiting_time == 6


def test_fcfs_two_processes():
    res = schedule_fcfs(_make((0, 5), (1, 3)))
    assert _slices(res) == [(1, 0, 5), (2, 5, 8)]
    assert res.processes[1].waiting_time == 4


def test_fcfs_fills_gaps_with_idle():
    res = schedule_fcfs(_make((2, 3), (10, 1)))
    assert _slices(res) == [(IDLE, 0, 2), (1, 2, 5), (IDLE, 5, 10), (2, 10, 11)]


def test_fcfs_equal_arrivals_keep_input_order():
    res = schedule_fcfs(_make((0, 4), (0, 1), (0, 2)))
    assert [s.owner_id for s in res.timeline] == [1, 2, 3]


def test_sjf_order():
    res = schedule_sjf(_procs())
    assert [s.owner_id for s in res.timeline] == [1, 2, 3]


def test_sjf_does_not_preempt_running_job():
    res = schedule_sjf(_make((0, 7), (2, 4), (4, 1)))
    assert _slices(res) == [(1, 0, 7), (3, 7, 8), (2, 8, 12)]


def test_sjf_tie_prefers_earlier_candidate():
    res = schedule_sjf(_make((0, 1), (1, 2), (1, 2)))
    assert _slices(res) == [(1, 0, 1), (2, 1, 3), (3, 3, 5)]


def test_srtf_preempts_longer_job():
    res = schedule_srtf(_make((0, 7), (2, 4)))
    assert _slices(res) == [(1, 0, 2), (2, 2, 6), (1, 6, 11)]

    a, b = res.processes
    assert (a.start_time, a.finish_time, a.waiting_time, a.response_time) == (0, 11, 4, 0)
    assert (b.start_time, b.finish_time, b.waiting_time) == (2, 6, 0)


def test_srtf_idles_between_bursts():
    res = schedule_srtf(_make((0, 2), (5, 3)))
    assert _slices(res) == [(1, 0, 2), (IDLE, 2, 5), (2, 5, 8)]


def test_ljf_picks_longest_ready_job():
    res = schedule_ljf(_make((0, 2), (1, 6), (1, 3)))
    assert _slices(res) == [(1, 0, 2), (2, 2, 8), (3, 8, 11)]


def test_lrtf_alternates_on_ties():
    res = schedule_lrtf(_make((0, 3), (1, 5)))
    assert _slices(res) == [(1, 0, 1), (2, 1, 4), (1, 4, 5), (2, 5, 6), (1, 6, 7), (2, 7, 8)]
    assert [p.finish_time for p in res.processes] == [7, 8]


def test_priority_static():
    res = schedule_priority(_procs())
    # P1 starts alone at 0, then P2 has the best priority (1)
    assert res.timeline[0].owner_id == 1
    assert res.timeline[1].owner_id == 2


def test_priority_tie_uses_arrival_order_not_id():
    procs = _make((2, 1, 1), (0, 3, 5), (1, 2, 1))
    res = schedule_priority(procs)
    assert _slices(res) == [(2, 0, 3), (3, 3, 5), (1, 5, 6)]


def test_priority_preemptive():
    res = schedule_priority_preemptive(_make((0, 4, 3), (1, 2, 1), (2, 1, 2)))
    assert _slices(res) == [(1, 0, 1), (2, 1, 3), (3, 3, 4), (1, 4, 7)]

    a = res.processes[0]
    assert (a.start_time, a.finish_time, a.waiting_time, a.response_time) == (0, 7, 3, 0)


def test_rr_quantum_2():
    res = schedule_round_robin(_make((0, 5), (1, 3)), quantum=2)
    assert _slices(res) == [(1, 0, 2), (2, 2, 4), (1, 4, 6), (2, 6, 7), (1, 7, 8)]
    assert [p.finish_time for p in res.processes] == [8, 7]
    assert res.quantum == 2


@pytest.mark.parametrize("arrival", [1, 2])
def test_rr_arrivals_queue_before_requeued_process(arrival):
    res = schedule_round_robin(_make((0, 4), (arrival, 2)), quantum=2)
    assert _slices(res) == [(1, 0, 2), (2, 2, 4), (1, 4, 6)]


def test_rr_merges_consecutive_slices_of_lone_process():
    res = schedule_round_robin(_make((0, 5)), quantum=2)
    assert _slices(res) == [(1, 0, 5)]


def test_rr_idle_until_first_arrival():
    res = schedule_round_robin(_make((1, 2)), quantum=2)
    assert _slices(res) == [(IDLE, 0, 1), (1, 1, 3)]


def test_rr_example_workload_regression():
    res = schedule_round_robin(example_workload(1), quantum=2)
    assert _slices(res) == [
        (1, 0, 2),
        (2, 2, 4),
        (3, 4, 6),
        (1, 6, 8),
        (4, 8, 10),
        (2, 10, 11),
        (3, 11, 13),
        (1, 13, 14),
        (4, 14, 16),
        (3, 16, 18),
        (4, 18, 20),
        (3, 20, 22),
    ]
    assert [p.finish_time for p in res.processes] == [14, 11, 22, 20]


def test_fcfs_example_workload_averages():
    res = schedule_fcfs(example_workload(1))
    assert res.average_waiting_time == pytest.approx(5.75)
    assert res.average_turnaround_time == pytest.approx(11.25)


WORKLOADS = [
    [(0, 5, 2), (1, 3, 1), (2, 8, 4), (3, 6, 3)],
    [(3, 6, 4), (5, 4, 2), (7, 7, 3), (9, 3, 1)],
    [(0, 1, 1), (0, 1, 1), (0, 1, 1)],
    [(4, 2, 2), (20, 5, 1), (0, 3, 3), (21, 1, 0)],
    [(0, 10, 5), (1, 1, 1), (2, 1, 1), (3, 1, 1), (12, 4, 2)],
]


@pytest.mark.parametrize("algorithm", list(ALGORITHMS))
@pytest.mark.parametrize("rows", WORKLOADS)
def test_schedule_properties(algorithm, rows):
    procs = _make(*rows)
    res = run_algorithm(algorithm, procs, quantum=2)

    assert [p.id for p in res.processes] == [p.id for p in procs]
    for p in res.processes:
        assert p.start_time != -1 and p.finish_time != -1
        assert p.finish_time > p.start_time >= p.arrival_time >= 0
        assert p.remaining_time == 0
        assert sum(s.duration for s in res.timeline if s.owner_id == p.id) == p.burst_time
        if algorithm in NON_PREEMPTIVE:
            assert p.finish_time - p.start_time == p.burst_time

    assert is_contiguous(res.timeline)
    for a, b in zip(res.timeline, res.timeline[1:]):
        assert a.owner_id != b.owner_id

    n = len(res.processes)
    assert res.average_waiting_time == pytest.approx(sum(p.waiting_time for p in res.processes) / n)
    assert res.average_turnaround_time == pytest.approx(sum(p.turnaround_time for p in res.processes) / n)


@pytest.mark.parametrize("algorithm", list(ALGORITHMS))
def test_runs_do_not_touch_caller_processes(algorithm):
    procs = _procs()
    first = run_algorithm(algorithm, procs, quantum=2)
    second = run_algorithm(algorithm, procs, quantum=2)

    for p in procs:
        assert p.remaining_time == p.burst_time
        assert p.start_time == -1 and p.finish_time == -1
    assert _slices(first) == _slices(second)
    assert first.processes[0] is not procs[0]


def test_run_algorithm_accepts_aliases_and_any_case():
    assert resolve_algorithm("SRTF") == "sjfPreemptive"
    assert resolve_algorithm("rr") == "roundRobin"
    assert resolve_algorithm("PRIORITYPREEMPTIVE") == "priorityPreemptive"
    assert run_algorithm("sjf", _procs()).algorithm == "SJF (non-preemptive)"


def test_run_algorithm_rejects_unknown_name():
    with pytest.raises(ValueError):
        run_algorithm("lottery", _procs())


@pytest.mark.parametrize("quantum", [None, 0, -1])
def test_round_robin_needs_positive_quantum(quantum):
    with pytest.raises(ValueError):
        run_algorithm("roundRobin", _procs(), quantum=quantum)


def test_quantum_ignored_by_other_algorithms():
    assert run_algorithm("fcfs", _procs(), quantum=5).quantum is None


def test_deadlock_is_an_invariant_error():
    with pytest.raises(SchedulerInvariantError):
        _idle_until_next_arrival([Process(1, arrival_time=0, burst_time=3)], 5, Timeline())
