from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional


@dataclass(eq=False)
class Process:
    """
    Simulation state of one task for a single run.

    Schedulers mutate ``remaining_time``, ``priority`` and ``quantum``, so
    every run works on its own clones (see :meth:`clone`).
    """

    name: str
    arrival_time: int
    burst_time: int
    priority: int = 0
    quantum: int = 0
    remaining_time: int = field(init=False, default=0)
    completion_time: Optional[int] = None
    waiting_time: Optional[int] = None
    turnaround_time: Optional[int] = None

    def __post_init__(self) -> None:
        self.remaining_time = self.burst_time

    def clone(self) -> Process:
        return Process(
            name=self.name,
            arrival_time=self.arrival_time,
            burst_time=self.burst_time,
            priority=self.priority,
            quantum=self.quantum,
        )

    def complete(self, clock: int) -> ProcessResult:
        self.completion_time = clock
        self.turnaround_time = clock - self.arrival_time
        self.waiting_time = self.turnaround_time - self.burst_time
        return ProcessResult(
            name=self.name,
            waiting_time=self.waiting_time,
            turnaround_time=self.turnaround_time,
        )


@dataclass
class ProcessResult:
    name: str
    waiting_time: int
    turnaround_time: int


@dataclass
class SimulationResult:
    algorithm: str
    execution_order: List[str] = field(default_factory=list)
    process_results: Dict[str, ProcessResult] = field(default_factory=dict)
    # Only populated by the AG scheduler.
    quantum_history: Dict[str, List[int]] = field(default_factory=dict)
    average_waiting_time: float = 0.0
    average_turnaround_time: float = 0.0


SJF_TIE_BREAKS = ("arrival", "input")


@dataclass
class SchedulerParams:
    """
    Per-policy knobs. Each policy only reads the fields it needs.
    """

    context_switch: int = 0
    rr_quantum: Optional[int] = None
    aging_interval: Optional[int] = None
    sjf_tie_break: str = "arrival"

    def validate_for(self, algorithm: str) -> None:
        if self.context_switch < 0:
            raise ValueError("Context switch cost cannot be negative")
        if algorithm == "sjf" and self.sjf_tie_break not in SJF_TIE_BREAKS:
            raise ValueError(
                f"Unknown SJF tie-break '{self.sjf_tie_break}' (use {', '.join(SJF_TIE_BREAKS)})"
            )
        if algorithm == "rr" and (self.rr_quantum is None or self.rr_quantum <= 0):
            raise ValueError("Round Robin requires a positive quantum (use --quantum)")
        if algorithm == "priority" and (self.aging_interval is None or self.aging_interval <= 0):
            raise ValueError("Priority scheduling requires a positive aging interval (use --aging)")


def clone_all(processes: Iterable[Process]) -> List[Process]:
    return [p.clone() for p in processes]


def validate_processes(processes: List[Process], require_quantum: bool = False) -> None:
    """
    Reject workloads the schedulers cannot run to completion.

    Duplicate names would collapse result keys, a negative arrival or a
    non-positive burst breaks the progress guarantee, and AG loops forever on
    a non-positive quantum.
    """
    seen: set[str] = set()
    for p in processes:
        if p.name in seen:
            raise ValueError(f"Duplicate process name '{p.name}'")
        seen.add(p.name)
        if p.arrival_time < 0:
            raise ValueError(f"Process '{p.name}' has a negative arrival time")
        if p.burst_time <= 0:
            raise ValueError(f"Process '{p.name}' must have a positive burst time")
        if require_quantum and p.quantum <= 0:
            raise ValueError(f"Process '{p.name}' needs a positive quantum for AG scheduling")
