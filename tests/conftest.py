"""Shared test fixtures and data loading for allocation-engine.

All test data lives in data/fixtures/ as JSON files.  This module loads
that data and exposes helper functions + pytest fixtures for the tests.

Evaluation date: Fri 2024-03-15 (see reference.json).  Every engine built
here uses a fixed clock pinned to that date.
"""

from __future__ import annotations

import json
import shutil
from datetime import date, timedelta
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
FIXTURES_DIR = Path(__file__).resolve().parent.parent / "data" / "fixtures"
SCENARIOS_DIR = FIXTURES_DIR / "scenarios"


# ---------------------------------------------------------------------------
# Data loaders
# ---------------------------------------------------------------------------
def _load_json(path: Path):
    with open(path) as f:
        return json.load(f)


_reference = _load_json(FIXTURES_DIR / "reference.json")
_engineers = _load_json(FIXTURES_DIR / "engineers.json")
_projects = _load_json(FIXTURES_DIR / "projects.json")
_allocations = _load_json(FIXTURES_DIR / "allocations.json")


# ---------------------------------------------------------------------------
# Reference constants derived from reference.json
# ---------------------------------------------------------------------------
TODAY = date.fromisoformat(_reference["today"])
YESTERDAY = date.fromisoformat(_reference["yesterday"])
EXPECTED_CAPACITY: dict[str, int] = _reference["expected_capacity"]
EXPECTED_BENCH: list[str] = _reference["expected_bench"]


# ---------------------------------------------------------------------------
# Convenience helpers (importable by test modules)
# ---------------------------------------------------------------------------
class FixedClock:
    """Clock returning a settable date.  advance() moves it forward."""

    def __init__(self, today: date = TODAY) -> None:
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int) -> None:
        self.today = self.today + timedelta(days=days)


def sequential_ids(prefix: str = "alloc-test"):
    """Deterministic id factory: alloc-test0001, alloc-test0002, ..."""
    counter = iter(range(1, 10_000))
    return lambda: f"{prefix}{next(counter):04d}"


def make_store(with_allocations: bool = True):
    """InMemoryStore seeded from the JSON fixtures."""
    from allocation_engine.store import InMemoryStore
    from allocation_engine.types import Allocation, Engineer, Project

    return InMemoryStore(
        engineers=[Engineer.from_dict(e) for e in _engineers],
        projects=[Project.from_dict(p) for p in _projects],
        allocations=(
            [Allocation.from_dict(a) for a in _allocations]
            if with_allocations else []
        ),
    )


def make_engine(store=None, clock=None):
    """AllocationEngine over the fixture store with a fixed clock."""
    from allocation_engine.engine import AllocationEngine

    return AllocationEngine(
        store if store is not None else make_store(),
        clock=clock if clock is not None else FixedClock(),
        id_factory=sequential_ids(),
    )


def copy_fixture_dir(target: Path) -> Path:
    """Copy the three fixture collections into target for file-store tests."""
    for name in ("engineers.json", "projects.json", "allocations.json"):
        shutil.copy(FIXTURES_DIR / name, target / name)
    return target


# ---------------------------------------------------------------------------
# Scenario loader
# ---------------------------------------------------------------------------
def load_scenarios(name: str):
    """Load a scenario file from data/fixtures/scenarios/{name}.json."""
    return _load_json(SCENARIOS_DIR / f"{name}.json")


# ---------------------------------------------------------------------------
# pytest fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def store():
    return make_store()


@pytest.fixture
def engine(store, clock):
    return make_engine(store, clock)


@pytest.fixture
def empty_engine(clock):
    """Fixture engineers and projects, no allocations at all."""
    return make_engine(make_store(with_allocations=False), clock)


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Temporary directory holding a copy of the JSON fixture collections."""
    return copy_fixture_dir(tmp_path)
