#!/usr/bin/env python
"""Visual verification report for allocation-engine.

Run:  uv run python scripts/verify.py

Produces a formatted report showing:
  1. Fixture data (engineers, projects, allocations) classified at the
     reference date
  2. Admission scenarios from data/fixtures/scenarios/allocate.json
  3. The documented walk-through: allocate, reject, update, bench, history
"""

from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths and data loading
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
FIXTURES = ROOT / "data" / "fixtures"
SCENARIOS = FIXTURES / "scenarios"

sys.path.insert(0, str(ROOT / "src"))

from allocation_engine.activity import activity_state
from allocation_engine.engine import AllocationEngine
from allocation_engine.store import InMemoryStore, JsonFileStore


def _load(path: Path):
    with open(path) as f:
        return json.load(f)


_ref = _load(FIXTURES / "reference.json")
TODAY = date.fromisoformat(_ref["today"])

# ---------------------------------------------------------------------------
# Formatting helpers. Each returns lines; main() prints them.
# ---------------------------------------------------------------------------
WIDTH = 90


def banner(title: str) -> list[str]:
    return ["", f"== {title} ".ljust(WIDTH, "=")]


def heading(title: str) -> list[str]:
    return ["", f"  {title}", "  " + "~" * len(title)]


def render_table(headers: list[str], rows: list[list[str]], indent: int = 4) -> list[str]:
    """Align rows under headers.

    Columns whose cells all end in '%' are right-aligned.
    """
    body = [row + [""] * (len(headers) - len(row)) for row in rows]
    columns = list(zip(headers, *body))
    widths = [max(len(cell) for cell in col) for col in columns]
    percent = [bool(body) and all(c.endswith("%") for c in col[1:]) for col in columns]

    def line(cells):
        aligned = [
            c.rjust(w) if right else c.ljust(w)
            for c, w, right in zip(cells, widths, percent)
        ]
        return (" " * indent + " | ".join(aligned)).rstrip()

    rule = " " * indent + "-+-".join("-" * w for w in widths)
    return [line(headers), rule] + [line(row) for row in body]


def _fixture_engine(clock=lambda: TODAY) -> AllocationEngine:
    """Engine over an in-memory copy of the fixtures, so nothing on disk changes."""
    disk = JsonFileStore(FIXTURES)
    store = InMemoryStore(
        disk.load_engineers(), disk.load_projects(), disk.load_allocations()
    )
    return AllocationEngine(store, clock=clock)


# ---------------------------------------------------------------------------
# Section 1: Fixture data
# ---------------------------------------------------------------------------
def section_fixtures() -> list[str]:
    lines = banner(f"FIXTURE DATA  (evaluated at {TODAY.isoformat()})")
    engine = _fixture_engine()

    lines += heading("Engineers")
    capacity = engine.capacity_by_engineer()
    rows = []
    for e in engine.store.load_engineers():
        rows.append([e.id, e.name, e.role, f"{capacity[e.id]}%",
                     f"{engine.available_capacity(e.id)}%"])
    lines += render_table(["Id", "Name", "Role", "Committed", "Free"], rows)

    lines += heading("Allocations")
    rows = []
    for a in engine.store.load_allocations():
        rows.append([a.id, a.engineer_id, a.project_id, f"{a.percentage}%",
                     a.start_date, a.end_date, activity_state(a, TODAY).value])
    lines += render_table(
        ["Id", "Engineer", "Project", "Pct", "Start", "End", "State"], rows
    )

    lines += heading("Bench")
    lines.append("    " + (", ".join(e.id for e in engine.bench()) or "(nobody)"))
    return lines


# ---------------------------------------------------------------------------
# Section 2: Admission scenarios
# ---------------------------------------------------------------------------
def section_allocate_scenarios() -> list[str]:
    lines = banner("ADMISSION SCENARIOS")
    data = _load(SCENARIOS / "allocate.json")

    lines += heading("engine.allocate(engineer, project, pct, start, end)")
    rows = []
    for s in data["allocate"]:
        engine = _fixture_engine()
        result = engine.allocate(s["engineer_id"], s["project_id"],
                                 s["percentage"], s["start_date"], s["end_date"])
        status = "PASS" if result.ok is s["ok"] else "FAIL"
        outcome = "ok" if result.ok else type(result.error).__name__
        rows.append([s["id"], s["engineer_id"], f"{s['percentage']}%",
                     outcome, status])
    lines += render_table(["Scenario", "Engineer", "Pct", "Outcome", "Check"], rows)
    return lines


# ---------------------------------------------------------------------------
# Section 3: Walk-through
# ---------------------------------------------------------------------------
def section_walkthrough() -> list[str]:
    lines = banner("WALK-THROUGH: eng-001")
    disk = JsonFileStore(FIXTURES)
    engine = AllocationEngine(
        InMemoryStore(disk.load_engineers(), disk.load_projects()),
        clock=lambda: TODAY,
    )

    def step(label, result):
        return [label, result.message, f"{engine.active_capacity('eng-001')}%"]

    first = engine.allocate("eng-001", "proj-001", 60, "2024-01-01", "2024-12-31")
    steps = [step("allocate 60% proj-001", first)]
    steps.append(step("allocate 50% proj-002", engine.allocate(
        "eng-001", "proj-002", 50, "2024-02-01", "2024-06-01")))
    steps.append(step("update to 90%", engine.update(first.payload.id, percentage=90)))
    steps.append(step("move to bench", engine.end_allocations("eng-001")))
    lines += render_table(["Step", "Message", "Capacity"], steps)

    lines += heading("History after bench transition")
    rows = []
    for h in engine.history_for_engineer("eng-001"):
        a = h.allocation
        rows.append([a.id, a.project_id, f"{a.percentage}%", a.start_date,
                     a.end_date, h.state.value])
    lines += render_table(["Id", "Project", "Pct", "Start", "End", "State"], rows)
    return lines


def main():
    for section in (section_fixtures, section_allocate_scenarios, section_walkthrough):
        print("\n".join(section()))
    print()


if __name__ == "__main__":
    main()
