from __future__ import annotations

import math
from typing import Dict, Iterable, List

from .models import ProcessResult, SimulationResult


def round_half_up(value: float, digits: int = 2) -> float:
    """
    Round like ``Math.round`` does: halves go up, not to even.
    """
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _mean_rounded(values: List[int]) -> float:
    if not values:
        return 0.0
    # Scale the integer total before dividing so exact halves stay exact.
    return math.floor(sum(values) * 100 / len(values) + 0.5) / 100


def compute_averages(result: SimulationResult) -> SimulationResult:
    """
    Fill in the average waiting and turnaround times from the per-process results.
    """
    results = list(result.process_results.values())
    result.average_waiting_time = _mean_rounded([r.waiting_time for r in results])
    result.average_turnaround_time = _mean_rounded([r.turnaround_time for r in results])
    return result


def summarize_results(results: Iterable[SimulationResult]) -> List[Dict[str, object]]:
    """
    Return one row per result for side-by-side comparison.
    """
    rows: List[Dict[str, object]] = []
    for result in results:
        rows.append(
            {
                "algorithm": result.algorithm,
                "dispatches": len(result.execution_order),
                "avg_waiting": result.average_waiting_time,
                "avg_turnaround": result.average_turnaround_time,
                "worst_waiting": _worst(result.process_results.values()),
            }
        )
    return rows


def _worst(results: Iterable[ProcessResult]) -> int:
    return max((r.waiting_time for r in results), default=0)
