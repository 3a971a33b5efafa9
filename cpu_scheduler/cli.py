from __future__ import annotations

import argparse
import logging
from pathlib import Path

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .algorithms import ALGORITHMS, run_algorithm
from .metrics import summarize_results
from .models import SJF_TIE_BREAKS, SchedulerParams, SimulationResult, clone_all
from .verify import collect_case_files, verify_file
from .workload_io import Workload, load_workload

logger = logging.getLogger(__name__)

EXIT_MISMATCH = 1
EXIT_USAGE = 2


def _add_param_overrides(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--context-switch",
        "-c",
        type=int,
        default=None,
        help="Context switch cost (overrides the workload file; default: 0).",
    )
    parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round robin (overrides rrQuantum).",
    )
    parser.add_argument(
        "--aging",
        type=int,
        default=None,
        help="Aging interval for priority scheduling (overrides agingInterval).",
    )
    parser.add_argument(
        "--tie-break",
        choices=SJF_TIE_BREAKS,
        default=None,
        help="SJF tie-break on equal remaining time (default: arrival).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cpu-scheduler",
        description="CPU scheduling simulator (preemptive SJF, RR, Priority with aging, AG).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log scheduling decisions (preemptions, aging, quantum changes, completions).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run one scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help=f"Algorithm to use ({', '.join(ALGORITHMS)}).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    _add_param_overrides(run_parser)

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run several algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help=f"Algorithms to compare (default: {' '.join(ALGORITHMS)}).",
    )
    _add_param_overrides(compare_parser)

    verify_parser = subparsers.add_parser(
        "verify",
        help="Check results against the expectedOutput of golden workload files.",
    )
    verify_parser.add_argument(
        "paths",
        nargs="+",
        help="Golden JSON files or directories containing them.",
    )

    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _params_from_args(workload: Workload, args: argparse.Namespace) -> SchedulerParams:
    params = workload.params
    return SchedulerParams(
        context_switch=args.context_switch if args.context_switch is not None else params.context_switch,
        rr_quantum=args.quantum if args.quantum is not None else params.rr_quantum,
        aging_interval=args.aging if args.aging is not None else params.aging_interval,
        sjf_tie_break=args.tie_break or params.sjf_tie_break,
    )


def _format_order(order: list[str]) -> Text:
    text = Text()
    for i, name in enumerate(order):
        if i:
            text.append(" -> ", style="dim")
        text.append(name, style="bold")
    return text


def _print_result(result: SimulationResult, console: Console) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.algorithm}")
    console.print()

    console.print("[bold]Execution order:[/bold]")
    if result.execution_order:
        console.print(_format_order(result.execution_order))
    else:
        console.print("(no execution)")
    console.print()

    show_history = bool(result.quantum_history)

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    proc_table.add_column("Name", justify="center")
    proc_table.add_column("Wait", justify="right")
    proc_table.add_column("Turnaround", justify="right")
    if show_history:
        proc_table.add_column("Quantum history")

    for r in result.process_results.values():
        row = [r.name, str(r.waiting_time), str(r.turnaround_time)]
        if show_history:
            row.append(", ".join(str(q) for q in result.quantum_history.get(r.name, [])))
        proc_table.add_row(*row)

    console.print(proc_table)
    console.print()

    sys_table = Table(title="Averages", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")
    sys_table.add_row("Avg waiting", f"{result.average_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{result.average_turnaround_time:.2f}")
    console.print(sys_table)


def _run(args: argparse.Namespace, console: Console) -> int:
    workload = load_workload(Path(args.workload))
    params = _params_from_args(workload, args)
    result = run_algorithm(args.algorithm, workload.processes, params)
    _print_result(result, console)
    return 0


def _compare(args: argparse.Namespace, console: Console) -> int:
    workload = load_workload(Path(args.workload))
    params = _params_from_args(workload, args)

    results = []
    for alg in args.algorithms:
        alg = alg.lower()
        if alg == "ag" and not all(p.quantum > 0 for p in workload.processes):
            logger.warning("Skipping AG: every process needs a positive quantum")
            continue
        if alg == "rr" and params.rr_quantum is None:
            logger.warning("Skipping RR: no quantum given (use --quantum)")
            continue
        if alg == "priority" and params.aging_interval is None:
            logger.warning("Skipping Priority: no aging interval given (use --aging)")
            continue
        results.append(run_algorithm(alg, clone_all(workload.processes), params))

    title = f"Algorithm comparison: {workload.name}" if workload.name else "Algorithm comparison"
    summary_table = Table(title=title, box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Dispatches", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Worst waiting", justify="right")

    for row in summarize_results(results):
        summary_table.add_row(
            str(row["algorithm"]),
            str(row["dispatches"]),
            f"{row['avg_waiting']:.2f}",
            f"{row['avg_turnaround']:.2f}",
            str(row["worst_waiting"]),
        )

    console.print(summary_table)
    return 0


def _verify(args: argparse.Namespace, console: Console) -> int:
    files = collect_case_files(args.paths)
    if not files:
        raise ValueError("No golden JSON files found")

    table = Table(title="Golden verification", box=box.SIMPLE_HEAVY)
    table.add_column("Case")
    table.add_column("Algorithm")
    table.add_column("Status", justify="center")

    failures = []
    for path in files:
        report = verify_file(path)
        for algorithm, mismatches in report.items():
            status = "[green]ok[/green]" if not mismatches else f"[red]{len(mismatches)} mismatch(es)[/red]"
            table.add_row(path.name, algorithm, status)
            failures.extend((path.name, m) for m in mismatches)

    console.print(table)
    for case, mismatch in failures:
        console.print(f"[red]{escape(case)}[/red] {escape(str(mismatch))}")

    return EXIT_MISMATCH if failures else 0


COMMANDS = {
    "run": _run,
    "compare": _compare,
    "verify": _verify,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    console = Console()
    handler = COMMANDS[args.command]

    try:
        return handler(args, console)
    except (ValueError, OSError) as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())
