"""
Compare simulation results against golden expected outputs.

Golden files use the ``expectedOutput`` layout of the workload JSON format:
execution order and per-process times must match exactly, averages within
``AVERAGE_TOLERANCE``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .algorithms import run_algorithm
from .models import SimulationResult, clone_all
from .workload_io import Workload, load_workload

logger = logging.getLogger(__name__)

AVERAGE_TOLERANCE = 0.01


@dataclass
class Mismatch:
    algorithm: str
    field: str
    expected: Any
    actual: Any

    def __str__(self) -> str:
        return f"{self.algorithm}: {self.field} expected {self.expected!r}, got {self.actual!r}"


def compare_result(algorithm: str, expected: Dict[str, Any], result: SimulationResult) -> List[Mismatch]:
    mismatches: List[Mismatch] = []

    def check(field: str, want: Any, got: Any) -> None:
        if want != got:
            mismatches.append(Mismatch(algorithm, field, want, got))

    if "executionOrder" in expected:
        check("executionOrder", list(expected["executionOrder"]), result.execution_order)

    for key, actual in (
        ("averageWaitingTime", result.average_waiting_time),
        ("averageTurnaroundTime", result.average_turnaround_time),
    ):
        if key in expected and abs(float(expected[key]) - actual) > AVERAGE_TOLERANCE:
            mismatches.append(Mismatch(algorithm, key, expected[key], actual))

    for entry in expected.get("processResults", []):
        name = entry["name"]
        actual = result.process_results.get(name)
        if actual is None:
            mismatches.append(Mismatch(algorithm, f"{name}.result", entry, None))
            continue
        if "waitingTime" in entry:
            check(f"{name}.waitingTime", entry["waitingTime"], actual.waiting_time)
        if "turnaroundTime" in entry:
            check(f"{name}.turnaroundTime", entry["turnaroundTime"], actual.turnaround_time)
        if "quantumHistory" in entry:
            check(f"{name}.quantumHistory", list(entry["quantumHistory"]), result.quantum_history.get(name))

    return mismatches


def verify_workload(workload: Workload) -> Dict[str, List[Mismatch]]:
    """
    Run every policy the workload has expectations for, each on its own copy.
    """
    report: Dict[str, List[Mismatch]] = {}
    for algorithm, expected in workload.expected.items():
        result = run_algorithm(algorithm, clone_all(workload.processes), workload.params)
        report[algorithm] = compare_result(algorithm, expected, result)
        logger.debug("%s/%s: %d mismatches", workload.name, algorithm, len(report[algorithm]))
    return report


def collect_case_files(paths: Iterable[str | Path]) -> List[Path]:
    """
    Expand directories into their ``*.json`` files, sorted by name.
    """
    files: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            files.extend(sorted(path.glob("*.json")))
        elif path.exists():
            files.append(path)
        else:
            raise ValueError(f"Golden case not found: {path}")
    return files


def verify_file(path: str | Path) -> Dict[str, List[Mismatch]]:
    workload = load_workload(path)
    if not workload.expected:
        raise ValueError(f"{path}: no expectedOutput to verify against")
    return verify_workload(workload)
