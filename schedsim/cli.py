from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from typing import List, Optional, Tuple

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .algorithms import (
    ALGORITHMS,
    ALIASES,
    DEFAULT_QUANTUM,
    DISPLAY_NAMES,
    requires_priority,
    resolve_algorithm,
    run_algorithm,
    uses_quantum,
)
from .gantt import build_rich_gantt, render_gantt
from .models import Process, SimulationResult
from .workload_io import (
    EXAMPLE_WORKLOADS,
    WorkloadError,
    example_workload,
    parse_process_lists,
    read_workload,
    validate_quantum,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="Single-CPU scheduling simulator (FCFS, SJF, LJF, Priority, Round Robin).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase log output (-v for info, -vv for every scheduling decision).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one scheduling algorithm on a workload.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Algorithm identifier or alias (see 'schedsim algorithms').",
    )
    _add_workload_arguments(run_parser)
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_QUANTUM,
        help=f"Time quantum for Round Robin (default: {DEFAULT_QUANTUM}).",
    )
    output = run_parser.add_mutually_exclusive_group()
    output.add_argument(
        "--plain",
        action="store_true",
        help="Print a plain-text Gantt chart instead of the colored one.",
    )
    output.add_argument(
        "--json",
        action="store_true",
        help="Print the full result as JSON.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple algorithms on the same workload and compare average metrics.",
    )
    _add_workload_arguments(compare_parser)
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help="Algorithms to compare (default: all).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=DEFAULT_QUANTUM,
        help=f"Time quantum used for Round Robin when included (default: {DEFAULT_QUANTUM}).",
    )

    subparsers.add_parser("algorithms", help="List available algorithms and their aliases.")

    return parser


def _add_workload_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--workload",
        "-w",
        help="Path to JSON or CSV workload file.",
    )
    source.add_argument(
        "--arrival",
        help='Whitespace-separated arrival times, e.g. "0 1 2" (use with --burst).',
    )
    source.add_argument(
        "--example",
        type=int,
        choices=range(1, len(EXAMPLE_WORKLOADS) + 1),
        help="Use one of the bundled example workloads.",
    )
    parser.add_argument("--burst", help="Whitespace-separated burst times (with --arrival).")
    parser.add_argument("--priority", help="Whitespace-separated priorities (with --arrival).")


def _load_processes(args: argparse.Namespace, require_priority: bool = False) -> Tuple[List[Process], bool]:
    """
    Load the workload named on the command line. The flag tells whether every
    process came with an explicit priority.
    """
    if args.workload:
        return read_workload(args.workload, require_priority=require_priority)
    if args.example is not None:
        return example_workload(args.example, require_priority=require_priority), True
    if not args.burst:
        raise WorkloadError("--arrival requires --burst")
    processes = parse_process_lists(args.arrival, args.burst, args.priority, require_priority=require_priority)
    return processes, bool(args.priority and args.priority.strip())


def _print_result(result: SimulationResult, console: Console, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")

    console.print()

    if plain:
        console.print(render_gantt(result.timeline), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks)

    console.print()

    headers = [
        "Process",
        "Arrival",
        "Burst",
        "Priority",
        "Start",
        "Finish",
        "Waiting",
        "Turnaround",
        "Response",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"Process", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            p.label,
            str(p.arrival_time),
            str(p.burst_time),
            str(p.priority),
            str(p.start_time),
            str(p.finish_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
        )

    console.print(proc_table)
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{result.average_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{result.average_turnaround_time:.2f}")
    sys_table.add_row("Avg response", f"{result.average_response_time:.2f}")
    if result.system:
        sys = result.system
        sys_table.add_row("Makespan", str(sys.makespan))
        sys_table.add_row("Idle time", str(sys.idle_time))
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")

    console.print(sys_table)


def result_to_dict(result: SimulationResult) -> dict:
    return dataclasses.asdict(result)


def _run(args: argparse.Namespace, console: Console) -> int:
    algorithm = resolve_algorithm(args.algorithm)
    quantum: Optional[int] = None
    if uses_quantum(algorithm):
        quantum = validate_quantum(args.quantum)

    processes, _ = _load_processes(args, require_priority=requires_priority(algorithm))
    result = run_algorithm(algorithm, processes, quantum=quantum)

    if args.json:
        console.print_json(json.dumps(result_to_dict(result)))
    else:
        _print_result(result, console, plain=args.plain)
    return 0


def _compare(args: argparse.Namespace, console: Console) -> int:
    algorithms = [resolve_algorithm(a) for a in args.algorithms]
    processes, with_priorities = _load_processes(args)

    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("CPU util.", justify="right")

    for alg in algorithms:
        if requires_priority(alg) and not with_priorities:
            logger.warning("Skipping %s: workload has no priorities", alg)
            continue

        q = validate_quantum(args.quantum) if uses_quantum(alg) else None
        result = run_algorithm(alg, processes, quantum=q)
        utilization = result.system.cpu_utilization if result.system else 0.0
        summary_table.add_row(
            result.algorithm,
            "" if result.quantum is None else str(result.quantum),
            f"{result.average_waiting_time:.2f}",
            f"{result.average_turnaround_time:.2f}",
            f"{result.average_response_time:.2f}",
            f"{utilization*100:.1f}%",
        )

    console.print(summary_table)
    return 0


def _list_algorithms(console: Console) -> int:
    aliases_by_name: dict = {}
    for alias, name in ALIASES.items():
        aliases_by_name.setdefault(name, []).append(alias)

    table = Table(title="Algorithms", box=box.SIMPLE_HEAVY)
    table.add_column("Identifier")
    table.add_column("Name")
    table.add_column("Aliases")
    table.add_column("Needs")

    for name in ALGORITHMS:
        needs = "quantum" if uses_quantum(name) else "priorities" if requires_priority(name) else ""
        table.add_row(name, DISPLAY_NAMES[name], ", ".join(aliases_by_name.get(name, [])), needs)

    console.print(table)
    return 0


def configure_logging(verbosity: int, console: Optional[Console] = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    console = Console()
    configure_logging(args.verbose, Console(stderr=True))

    try:
        if args.command == "run":
            return _run(args, console)
        if args.command == "compare":
            return _compare(args, console)
        if args.command == "algorithms":
            return _list_algorithms(console)
    except ValueError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
