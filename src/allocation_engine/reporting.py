"""Read-only text and markdown views over the engine.

Every view goes through the engine's activity predicate: "current" always
means active as of the engine's clock, never "every record on file".
Functions build a list of lines and return the joined string.
"""

from __future__ import annotations

from allocation_engine.engine import AllocationEngine, AllocationHistory, headroom
from allocation_engine.schema import MAX_PERCENTAGE
from allocation_engine.types import Allocation, Engineer, Project


def _names(engine: AllocationEngine) -> tuple[dict[str, Engineer], dict[str, Project]]:
    engineers = {e.id: e for e in engine.store.load_engineers()}
    projects = {p.id: p for p in engine.store.load_projects()}
    return engineers, projects


def _skills(engineer: Engineer) -> str:
    return ", ".join(sorted(engineer.skills)) or "(none)"


def _duration(allocation: Allocation) -> str:
    return f"{allocation.start_date} to {allocation.end_date}"


def engineer_report(engine: AllocationEngine, engineer_id: str) -> str:
    """Plain-text summary of one engineer's current allocations.

    Raises NotFoundError for an unknown engineer.
    """
    engineer = engine.get_engineer(engineer_id)
    _, projects = _names(engine)
    current = engine.active_allocations(engineer_id)

    lines = [f"Engineer: {engineer.name} ({engineer.role})"]
    if not current:
        lines.append("Status: On Bench (0% allocated)")
        return "\n".join(lines)

    total = sum(a.percentage for a in current)
    lines.append(f"Total Allocation: {total}%")
    lines.append(f"Available Capacity: {headroom(total)}%")
    if total > MAX_PERCENTAGE:
        lines.append(f"Warning: over-allocated by {total - MAX_PERCENTAGE}%")
    lines.append("")
    lines.append("Current Allocations:")
    for a in current:
        project = projects.get(a.project_id)
        name = project.name if project else a.project_id
        lines.append(f"  - [{a.id}] {name}: {a.percentage}% ({_duration(a)})")
    return "\n".join(lines)


def bench_report(engine: AllocationEngine) -> str:
    bench = engine.bench()
    if not bench:
        return "No engineers are currently on the bench. All engineers are allocated."

    lines = [f"Engineers on Bench ({len(bench)}):", ""]
    for engineer in bench:
        lines.append(f"  - {engineer.name} ({engineer.role}) [{engineer.id}]")
        lines.append(f"    Skills: {_skills(engineer)}")
    return "\n".join(lines)


def available_report(
    engine: AllocationEngine,
    skill: str | None = None,
    min_capacity: int = 1,
) -> str:
    found = engine.available_engineers(skill=skill, min_capacity=min_capacity)
    qualifier = f" with skill '{skill}'" if skill else ""
    if not found:
        return f"No engineers{qualifier} have {min_capacity}% or more capacity free."

    lines = [f"Available Engineers{qualifier} ({len(found)}):", ""]
    for engineer, free in found:
        lines.append(f"  - {engineer.name} ({engineer.role}): {free}% available")
        lines.append(f"    Skills: {_skills(engineer)}")
    return "\n".join(lines)


def allocations_report(engine: AllocationEngine, include_past: bool = False) -> str:
    """Every allocation across engineers and projects.

    Past allocations are left out unless include_past is set.
    """
    engineers, projects = _names(engine)
    if include_past:
        allocations = engine.store.load_allocations()
        title = "All Allocations"
    else:
        allocations = engine.active_allocations()
        title = "Current Allocations"

    if not allocations:
        return "No allocations found."

    lines = [f"{title}:", ""]
    for a in allocations:
        engineer = engineers.get(a.engineer_id)
        project = projects.get(a.project_id)
        lines.append(
            f"  [{a.id}] {engineer.name if engineer else a.engineer_id}"
            f" → {project.name if project else a.project_id}"
        )
        lines.append(f"    Allocation: {a.percentage}%")
        lines.append(f"    Duration: {_duration(a)}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def history_report(engine: AllocationEngine, history: AllocationHistory) -> str:
    """Chronological list of allocations tagged CURRENT or PAST."""
    engineers, projects = _names(engine)
    entries = list(history)
    if not entries:
        return f"No allocation history for '{history.key}'."

    lines = [f"Allocation history for {history.key} (as of {history.today.isoformat()}):", ""]
    for entry in entries:
        a = entry.allocation
        engineer = engineers.get(a.engineer_id)
        project = projects.get(a.project_id)
        lines.append(
            f"  {entry.state.value:<7s} [{a.id}] "
            f"{engineer.name if engineer else a.engineer_id} → "
            f"{project.name if project else a.project_id}: "
            f"{a.percentage}% ({_duration(a)})"
        )
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Markdown views
# ---------------------------------------------------------------------------
def projects_markdown(engine: AllocationEngine) -> str:
    projects = engine.store.load_projects()
    lines = ["# All Projects", ""]
    for p in projects:
        lines.append(f"## {p.name} ({p.id})")
        lines.append(f"**Status:** {p.status}")
        lines.append(f"**Description:** {p.description}")
        lines.append("")
    lines.append(f"Total Projects: {len(projects)}")
    return "\n".join(lines)


def engineers_markdown(engine: AllocationEngine) -> str:
    engineers = engine.store.load_engineers()
    lines = ["# All Engineers", ""]
    for e in engineers:
        lines.append(f"## {e.name} ({e.id})")
        lines.append(f"**Role:** {e.role}")
        lines.append(f"**Skills:** {_skills(e)}")
        lines.append("")
    lines.append(f"Total Engineers: {len(engineers)}")
    return "\n".join(lines)


def allocations_markdown(engine: AllocationEngine) -> str:
    engineers, projects = _names(engine)
    allocations = engine.active_allocations()
    lines = ["# Current Allocations", ""]
    if not allocations:
        lines.append("No allocations found.")
        return "\n".join(lines)

    for a in allocations:
        engineer = engineers.get(a.engineer_id)
        project = projects.get(a.project_id)
        lines.append(f"## Allocation {a.id}")
        lines.append(f"**Engineer:** {engineer.name if engineer else a.engineer_id}")
        lines.append(f"**Project:** {project.name if project else a.project_id}")
        lines.append(f"**Allocation:** {a.percentage}%")
        lines.append(f"**Duration:** {_duration(a)}")
        lines.append("")
    lines.append(f"Total Allocations: {len(allocations)}")
    return "\n".join(lines)


def engineer_details_markdown(engine: AllocationEngine, engineer_id: str) -> str:
    """Engineer profile with capacity summary and current projects."""
    engineer = engine.get_engineer(engineer_id)
    _, projects = _names(engine)
    current = engine.active_allocations(engineer_id)
    total = sum(a.percentage for a in current)

    lines = [
        f"# {engineer.name}",
        "",
        f"**ID:** {engineer.id}",
        f"**Role:** {engineer.role}",
        f"**Skills:** {_skills(engineer)}",
        "",
        "## Allocation Summary",
        f"**Total Allocation:** {total}%",
        f"**Available Capacity:** {headroom(total)}%",
        f"**Status:** {engine.engineer_status(engineer_id).value}",
        "",
    ]
    if total > MAX_PERCENTAGE:
        lines += [
            f"**Warning:** over-allocated by {total - MAX_PERCENTAGE}%",
            "",
        ]
    lines += [
        "## Current Projects",
        "",
    ]
    if not current:
        lines.append("No active allocations. Engineer is available on the bench.")
    for a in current:
        project = projects.get(a.project_id)
        lines.append(f"### {project.name if project else a.project_id}")
        lines.append(f"- **Allocation:** {a.percentage}%")
        lines.append(f"- **Duration:** {_duration(a)}")
        lines.append(f"- **Allocation ID:** {a.id}")
        lines.append("")
    return "\n".join(lines)


def project_details_markdown(engine: AllocationEngine, project_id: str) -> str:
    """Project profile with the engineers currently assigned and past ones."""
    project = engine.get_project(project_id)
    engineers, _ = _names(engine)
    entries = list(engine.history_for_project(project_id))
    current = [e.allocation for e in entries if e.is_current]
    past = [e.allocation for e in entries if not e.is_current]

    lines = [
        f"# {project.name}",
        "",
        f"**ID:** {project.id}",
        f"**Status:** {project.status}",
        f"**Description:** {project.description}",
        "",
        "## Resource Summary",
        f"**Total Engineer Allocation:** {sum(a.percentage for a in current)}% "
        f"(sum of all engineer percentages)",
        f"**Engineers Assigned:** {len({a.engineer_id for a in current})}",
        "",
        "## Assigned Engineers",
        "",
    ]
    if not current:
        lines.append("No engineers currently allocated to this project.")
        lines.append("")
    for a in current:
        engineer = engineers.get(a.engineer_id)
        lines.append(f"### {engineer.name if engineer else a.engineer_id}")
        lines.append(f"- **Role:** {engineer.role if engineer else 'Unknown'}")
        lines.append(f"- **Allocation:** {a.percentage}%")
        lines.append(f"- **Duration:** {_duration(a)}")
        lines.append(f"- **Allocation ID:** {a.id}")
        lines.append("")

    if past:
        lines.append("## Past Engineers")
        lines.append("")
        for a in past:
            engineer = engineers.get(a.engineer_id)
            lines.append(
                f"- {engineer.name if engineer else a.engineer_id}: "
                f"{a.percentage}% ({_duration(a)})"
            )
    return "\n".join(lines)
