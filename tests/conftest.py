import math
from datetime import datetime
from typing import Dict, List, Tuple

import pytest

from polycube.controller.animation import Animator
from polycube.controller.sync import PolyCubeController
from polycube.model.datastore import DataStore
from polycube.model.records import Record

CATEGORIES = ["Letter", "Meeting", "Publication", "Travel"]
START = datetime(1935, 1, 1)
END = datetime(1945, 12, 31)


def make_records(n: int = 100) -> List[Record]:
    """n records spread evenly over 1935-1945; two thirds of them link forward."""
    step = (END - START) // (n - 1)
    records = []
    for i in range(n):
        targets = [f"r{(i + 1) % n}", f"r{(i + 7) % n}"] if i % 3 else []
        records.append(Record(
            id=f"r{i}",
            date_time=START + step * i,
            category_1=CATEGORIES[i % len(CATEGORIES)],
            longitude=2.0 + (i % 10) * 1.5,
            latitude=45.0 + (i % 7) * 0.8,
            target_nodes=targets,
        ))
    return records


def ring_positions(records: List[Record]) -> Dict[str, Tuple[float, float]]:
    n = len(records)
    return {r.id: (math.cos(2 * math.pi * i / n), math.sin(2 * math.pi * i / n)) for i, r in enumerate(records)}


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture
def records() -> List[Record]:
    return make_records()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def animator(clock) -> Animator:
    return Animator(clock=clock)


@pytest.fixture
def datastore(records) -> DataStore:
    dm = DataStore()
    dm.set_records(records)
    return dm


@pytest.fixture
def controller(records, animator) -> PolyCubeController:
    ctrl = PolyCubeController(DataStore(), animator=animator)
    ctrl.load_records(records, ring_positions(records))
    return ctrl
