"""
CPU scheduling simulator package.

Runs a workload through preemptive SJF, Round Robin, Priority with aging and
the adaptive-granularity (AG) hybrid, and reports dispatch order, per-process
waiting/turnaround times and AG quantum histories.
"""

from .algorithms import ALGORITHMS, run_algorithm, run_all
from .models import Process, SchedulerParams, SimulationResult

__all__ = [
    "ALGORITHMS",
    "Process",
    "SchedulerParams",
    "SimulationResult",
    "cli",
    "run_algorithm",
    "run_all",
]
