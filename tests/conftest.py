import pytest


@pytest.fixture
def golden_case():
    """Two-process workload with hand-checked SJF, RR and Priority outputs."""
    return {
        "name": "two processes",
        "input": {
            "contextSwitch": 0,
            "rrQuantum": 2,
            "agingInterval": 10,
            "processes": [
                {"name": "P1", "arrival": 0, "burst": 4, "priority": 3},
                {"name": "P2", "arrival": 1, "burst": 2, "priority": 1},
            ],
        },
        "expectedOutput": {
            "SJF": {
                "executionOrder": ["P1", "P2", "P1"],
                "processResults": [
                    {"name": "P1", "waitingTime": 2, "turnaroundTime": 6},
                    {"name": "P2", "waitingTime": 0, "turnaroundTime": 2},
                ],
                "averageWaitingTime": 1.0,
                "averageTurnaroundTime": 4.0,
            },
            "RR": {
                "executionOrder": ["P1", "P2", "P1"],
                "processResults": [
                    {"name": "P1", "waitingTime": 2, "turnaroundTime": 6},
                    {"name": "P2", "waitingTime": 1, "turnaroundTime": 3},
                ],
                "averageWaitingTime": 1.5,
                "averageTurnaroundTime": 4.5,
            },
            "Priority": {
                "executionOrder": ["P1", "P2", "P1"],
                "processResults": [
                    {"name": "P1", "waitingTime": 2, "turnaroundTime": 6},
                    {"name": "P2", "waitingTime": 0, "turnaroundTime": 2},
                ],
                "averageWaitingTime": 1.0,
                "averageTurnaroundTime": 4.0,
            },
        },
    }


@pytest.fixture
def ag_case():
    return {
        "input": {
            "processes": [
                {"name": "A", "arrival": 0, "burst": 5, "priority": 3, "quantum": 4},
                {"name": "B", "arrival": 1, "burst": 3, "priority": 1, "quantum": 2},
            ]
        },
        "expectedOutput": {
            "executionOrder": ["A", "B", "A", "B", "A"],
            "processResults": [
                {"name": "A", "waitingTime": 3, "turnaroundTime": 8, "quantumHistory": [4, 6, 8, 0]},
                {"name": "B", "waitingTime": 2, "turnaroundTime": 5, "quantumHistory": [2, 4, 0]},
            ],
            "averageWaitingTime": 2.5,
            "averageTurnaroundTime": 6.5,
        },
    }
