from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import Process, SchedulerParams

# expectedOutput keys used by golden files, mapped to algorithm names.
EXPECTED_KEYS = {
    "SJF": "sjf",
    "RR": "rr",
    "Priority": "priority",
    "AG": "ag",
}


@dataclass
class Workload:
    """
    Processes plus whatever parameters and expected outputs the file carried.
    """

    processes: List[Process]
    params: SchedulerParams = field(default_factory=SchedulerParams)
    name: Optional[str] = None
    # algorithm name -> raw expected block (executionOrder, processResults, ...)
    expected: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def load_workload(path: str | Path) -> Workload:
    """
    Load a workload from a JSON or CSV file.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return Workload(processes=_load_csv(path), name=path.stem)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> Workload:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path}: invalid JSON ({exc})") from exc

    return workload_from_json(raw, default_name=path.stem)


def workload_from_json(raw: Any, default_name: Optional[str] = None) -> Workload:
    """
    Build a workload from decoded JSON.

    Accepts a bare list of process objects, an ``{"input": ..., "expectedOutput": ...}``
    test case, or just the ``input`` block.
    """
    if isinstance(raw, list):
        return Workload(processes=_processes_from_list(raw), name=default_name)

    if not isinstance(raw, dict):
        raise ValueError("JSON workload must be a list of processes or an object")

    block = raw.get("input", raw)
    if not isinstance(block, dict) or "processes" not in block:
        raise ValueError("JSON workload is missing a 'processes' list")

    try:
        params = SchedulerParams(
            context_switch=int(block.get("contextSwitch", 0)),
            rr_quantum=_optional_int(block.get("rrQuantum")),
            aging_interval=_optional_int(block.get("agingInterval")),
        )
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid scheduler parameters: {block!r}") from exc

    return Workload(
        processes=_processes_from_list(block["processes"]),
        params=params,
        name=raw.get("name") or default_name,
        expected=_expected_from_json(raw.get("expectedOutput")),
    )


def _expected_from_json(raw: Any) -> Dict[str, Dict[str, Any]]:
    if not raw:
        return {}
    if not isinstance(raw, dict):
        raise ValueError("expectedOutput must be an object")

    # AG cases carry a single expected block without a policy key.
    if "executionOrder" in raw:
        return {"ag": raw}

    expected: Dict[str, Dict[str, Any]] = {}
    for key, block in raw.items():
        if block is None:
            continue
        name = EXPECTED_KEYS.get(key)
        if name is None:
            raise ValueError(f"Unknown expectedOutput section '{key}'")
        expected[name] = block
    return expected


def _processes_from_list(raw: Any) -> List[Process]:
    if not isinstance(raw, list):
        raise ValueError("JSON workload must be a list of process objects")
    return [_process_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[Process]:
    processes: List[Process] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            processes.append(_process_from_mapping(row))
    return processes


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def _process_from_mapping(mapping) -> Process:
    try:
        name = str(mapping["name"])
        arrival_time = int(mapping["arrival"])
        burst_time = int(mapping["burst"])
        priority = _optional_int(mapping.get("priority"))
        quantum = _optional_int(mapping.get("quantum"))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc

    return Process(
        name=name,
        arrival_time=arrival_time,
        burst_time=burst_time,
        priority=priority if priority is not None else 0,
        quantum=quantum if quantum is not None else 0,
    )
