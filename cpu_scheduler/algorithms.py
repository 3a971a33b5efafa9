from __future__ import annotations

import logging
import math
from collections import deque
from typing import Callable, Deque, Dict, Iterable, List, Optional

from .metrics import compute_averages
from .models import (
    Process,
    ProcessResult,
    SchedulerParams,
    SimulationResult,
    clone_all,
    validate_processes,
)

logger = logging.getLogger(__name__)


def _by_arrival(processes: List[Process]) -> List[Process]:
    # sorted() is stable, so equal arrivals keep their input order.
    return sorted(processes, key=lambda p: p.arrival_time)


def schedule_sjf(processes: List[Process], params: Optional[SchedulerParams] = None) -> SimulationResult:
    """
    Shortest Remaining Time First (preemptive SJF), stepped one time unit at a time.

    Consecutive units of the same process collapse into a single entry of the
    execution order. Ties on remaining time go to the earlier arrival
    (``sjf_tie_break="arrival"``) or to the earlier input position
    (``sjf_tie_break="input"``).
    """
    params = params or SchedulerParams()
    working = clone_all(processes)

    if params.sjf_tie_break == "input":
        pending = list(working)
    else:
        pending = _by_arrival(working)

    result = SimulationResult(algorithm="SJF (preemptive)")
    time = 0
    completed = 0
    last: Optional[Process] = None

    while completed < len(pending):
        ready = [p for p in pending if p.arrival_time <= time and p.remaining_time > 0]
        if not ready:
            time += 1
            continue

        # min() returns the first minimal element, which is the tie-break.
        current = min(ready, key=lambda p: p.remaining_time)

        if last is not None and current is not last:
            time += params.context_switch

        if not result.execution_order or result.execution_order[-1] != current.name:
            result.execution_order.append(current.name)

        current.remaining_time -= 1
        time += 1

        if current.remaining_time == 0:
            result.process_results[current.name] = current.complete(time)
            completed += 1
            logger.debug("SJF: %s finished at t=%d", current.name, time)

        last = current

    return compute_averages(result)


def schedule_rr(processes: List[Process], params: Optional[SchedulerParams] = None) -> SimulationResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Every dispatch is recorded. Processes that arrive during a slice are queued
    ahead of the process that just used it.
    """
    params = params or SchedulerParams()
    quantum = params.rr_quantum
    if quantum is None or quantum <= 0:
        raise ValueError("Round Robin requires a positive quantum (use --quantum)")

    arrivals = _by_arrival(clone_all(processes))
    result = SimulationResult(algorithm="Round Robin")

    ready: Deque[Process] = deque()
    time = 0
    next_index = 0
    completed = 0

    def enqueue_new_arrivals(current_time: int) -> None:
        nonlocal next_index
        while next_index < len(arrivals) and arrivals[next_index].arrival_time <= current_time:
            ready.append(arrivals[next_index])
            next_index += 1

    while completed < len(arrivals):
        enqueue_new_arrivals(time)

        if not ready:
            time += 1
            continue

        p = ready.popleft()
        result.execution_order.append(p.name)

        run_time = min(quantum, p.remaining_time)
        p.remaining_time -= run_time
        time += run_time

        enqueue_new_arrivals(time)

        if p.remaining_time > 0:
            ready.append(p)
        else:
            result.process_results[p.name] = p.complete(time)
            completed += 1
            logger.debug("RR: %s finished at t=%d", p.name, time)

        # No switch cost after the final dispatch.
        if ready:
            time += params.context_switch

    return compute_averages(result)


class _AgingPriorityRun:
    """
    One run of preemptive priority scheduling with aging.

    Ready processes are ordered by ``(priority, arrival, input index)``, which
    never ties. Only waiting processes age; the running one keeps its priority
    until it is put back in the ready set.
    """

    def __init__(self, processes: List[Process], context_switch: int, aging_interval: int) -> None:
        self.processes = clone_all(processes)
        self.context_switch = context_switch
        self.aging_interval = aging_interval

        self.clock = 0
        self.ready: List[int] = []
        self.admitted = [False] * len(self.processes)
        self.last_update = [p.arrival_time for p in self.processes]
        self.active: Optional[int] = None
        self.dispatches: List[int] = []

    def _key(self, index: int):
        p = self.processes[index]
        return (p.priority, p.arrival_time, index)

    def _outranks(self, candidate: int, current: int) -> bool:
        return self._key(candidate) < self._key(current)

    def _best(self) -> int:
        return min(self.ready, key=self._key)

    def _pop_best(self) -> int:
        best = self._best()
        self.ready.remove(best)
        return best

    def _admit(self) -> None:
        for i, p in enumerate(self.processes):
            if not self.admitted[i] and p.arrival_time <= self.clock and p.remaining_time > 0:
                self.ready.append(i)
                self.admitted[i] = True
                self.last_update[i] = self.clock

    def _apply_aging(self) -> None:
        for i in self.ready:
            waited = self.clock - self.last_update[i]
            if waited >= self.aging_interval:
                p = self.processes[i]
                p.priority = max(1, p.priority - waited // self.aging_interval)
                self.last_update[i] = self.clock
                logger.debug("Priority: %s aged to %d at t=%d", p.name, p.priority, self.clock)

    def _dispatch(self) -> None:
        self.active = self._pop_best()
        self.dispatches.append(self.active)

    def _switch_and_settle(self) -> None:
        self.clock += self.context_switch
        self._admit()
        if self.ready:
            self._apply_aging()

    def _finished(self) -> bool:
        return all(p.remaining_time == 0 for p in self.processes)

    def _next_slice(self, current: Process) -> int:
        step = self.aging_interval
        until_aging = min(
            (step - (self.clock - self.last_update[i]) % step for i in self.ready),
            default=None,
        )
        until_arrival = min(
            (
                p.arrival_time - self.clock
                for i, p in enumerate(self.processes)
                if not self.admitted[i] and p.arrival_time > self.clock
            ),
            default=None,
        )
        limits = [current.remaining_time]
        limits.extend(t for t in (until_aging, until_arrival) if t is not None)
        return max(1, min(limits))

    def run(self) -> None:
        while not self._finished():
            self._admit()

            if self.active is None and not self.ready:
                self.clock += 1
                continue

            reschedule = self.active is None or (
                bool(self.ready) and self._outranks(self._best(), self.active)
            )

            if reschedule:
                if self.active is not None:
                    logger.debug(
                        "Priority: %s preempted at t=%d", self.processes[self.active].name, self.clock
                    )
                    self.ready.append(self.active)
                    self.last_update[self.active] = self.clock

                self._dispatch()
                if len(self.dispatches) > 1:
                    self.clock += self.context_switch
                    self._admit()

                if self.ready:
                    self._apply_aging()
                    # The switch delay may have changed the best candidate; check once more.
                    if self._outranks(self._best(), self.active):
                        self.ready.append(self.active)
                        self._dispatch()
                        self._switch_and_settle()

            current = self.processes[self.active]
            run_time = self._next_slice(current)
            current.remaining_time -= run_time
            self.clock += run_time

            self._admit()
            if self.ready:
                self._apply_aging()

            if current.remaining_time == 0:
                current.complete(self.clock)
                logger.debug("Priority: %s finished at t=%d", current.name, self.clock)
                self.active = None


def schedule_priority(processes: List[Process], params: Optional[SchedulerParams] = None) -> SimulationResult:
    """
    Preemptive priority scheduling with aging.

    Lower numeric priority value means higher priority. A process waiting in
    the ready set improves by one level per full ``aging_interval`` waited,
    never below 1. Waiting time is measured against the original burst.
    """
    params = params or SchedulerParams()
    if params.aging_interval is None or params.aging_interval <= 0:
        raise ValueError("Priority scheduling requires a positive aging interval (use --aging)")

    run = _AgingPriorityRun(processes, params.context_switch, params.aging_interval)
    run.run()

    result = SimulationResult(algorithm="Priority (aging)")
    result.execution_order = [run.processes[i].name for i in run.dispatches]
    for p in run.processes:
        result.process_results[p.name] = ProcessResult(
            name=p.name,
            waiting_time=p.waiting_time,
            turnaround_time=p.turnaround_time,
        )
    return compute_averages(result)


def _best_priority(queue: Iterable[Process]) -> Optional[Process]:
    return min(queue, key=lambda p: p.priority, default=None)


def _shortest_job(queue: Iterable[Process]) -> Optional[Process]:
    return min(queue, key=lambda p: p.remaining_time, default=None)


def schedule_ag(processes: List[Process], params: Optional[SchedulerParams] = None) -> SimulationResult:
    """
    Adaptive-granularity hybrid: round robin with per-process, self-tuning quanta.

    Once 25% of its quantum (rounded up) is used, the running process yields to
    a ready process with a strictly better priority and banks half of its
    unused quantum. From 50% on, it yields to a ready process with strictly
    less remaining work and banks all of it. A process that uses up its
    quantum gets two more units and goes to the back of the queue. Every
    quantum change is recorded; the history ends with 0 on completion.
    """
    params = params or SchedulerParams()
    working = clone_all(processes)

    result = SimulationResult(algorithm="AG")
    for p in working:
        result.quantum_history[p.name] = [p.quantum]

    arrivals = _by_arrival(working)
    ready: Deque[Process] = deque()
    time = 0
    next_index = 0
    finished = 0
    current: Optional[Process] = None
    elapsed = 0

    def enqueue_new_arrivals() -> None:
        nonlocal next_index
        while next_index < len(arrivals) and arrivals[next_index].arrival_time <= time:
            ready.append(arrivals[next_index])
            next_index += 1

    def adjust_quantum(p: Process, quantum: int) -> None:
        p.quantum = quantum
        result.quantum_history[p.name].append(quantum)
        logger.debug("AG: %s quantum -> %d at t=%d", p.name, quantum, time)

    while finished < len(arrivals):
        enqueue_new_arrivals()

        if current is None:
            if not ready:
                time += 1
                continue
            current = ready.popleft()
            elapsed = 0
            result.execution_order.append(current.name)

        q = current.quantum
        time25 = math.ceil(q * 0.25)
        time50 = 2 * time25

        replacement: Optional[Process] = None
        if elapsed == time25:
            candidate = _best_priority(ready)
            if candidate is not None and candidate.priority < current.priority:
                replacement = candidate
                adjust_quantum(current, q + math.ceil((q - elapsed) / 2))
        elif elapsed >= time50:
            candidate = _shortest_job(ready)
            if candidate is not None and candidate.remaining_time < current.remaining_time:
                replacement = candidate
                adjust_quantum(current, q + (q - elapsed))

        if replacement is not None:
            logger.debug("AG: %s preempted by %s at t=%d", current.name, replacement.name, time)
            ready.append(current)
            ready.remove(replacement)
            current = replacement
            elapsed = 0
            result.execution_order.append(current.name)

            for _ in range(params.context_switch):
                time += 1
                enqueue_new_arrivals()
            continue

        current.remaining_time -= 1
        elapsed += 1
        time += 1

        # Arrivals during this tick are admitted at the top of the next iteration.
        if current.remaining_time == 0:
            adjust_quantum(current, 0)
            result.process_results[current.name] = current.complete(time)
            finished += 1
            current = None
        elif elapsed == current.quantum:
            adjust_quantum(current, current.quantum + 2)
            ready.append(current)
            current = None

    return compute_averages(result)


ALGORITHMS: Dict[str, Callable[[List[Process], Optional[SchedulerParams]], SimulationResult]] = {
    "sjf": schedule_sjf,
    "rr": schedule_rr,
    "priority": schedule_priority,
    "ag": schedule_ag,
}


def run_algorithm(
    name: str, processes: List[Process], params: Optional[SchedulerParams] = None
) -> SimulationResult:
    """
    Validate the workload and parameters, then dispatch to the requested policy.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm '{name}' (use {', '.join(ALGORITHMS)})")

    params = params or SchedulerParams()
    params.validate_for(name)
    validate_processes(processes, require_quantum=name == "ag")

    func = ALGORITHMS[name]
    return func(processes, params)


def run_all(
    processes: List[Process],
    params: Optional[SchedulerParams] = None,
    algorithms: Optional[Iterable[str]] = None,
) -> Dict[str, SimulationResult]:
    """
    Run several policies on the same workload. Each one gets its own copy.
    """
    names = list(algorithms) if algorithms is not None else list(ALGORITHMS)
    return {name: run_algorithm(name, clone_all(processes), params) for name in names}
