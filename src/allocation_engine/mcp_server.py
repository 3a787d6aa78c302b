"""MCP server exposing the allocation engine as tools and resources.

Write tools return {"success", "message", ...} dicts. Read tools and
resources return text produced by allocation_engine.reporting.

Run:
    allocation-mcp
    # or
    python -m allocation_engine.mcp_server
"""

from __future__ import annotations

import json
import logging
import sys

from mcp.server.fastmcp import FastMCP

from allocation_engine import config, reporting
from allocation_engine.engine import AllocationEngine
from allocation_engine.store import JsonFileStore
from allocation_engine.types import (
    UNSET,
    AllocationError,
    AllocationUpdate,
    NotFoundError,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    config.MCP_SERVER_NAME,
    instructions="""\
Tracks fractional allocations of engineers to projects. An engineer's \
allocations that are still running (end date today or later) may never sum \
to more than 100%. Past allocations are kept as history and never deleted.

- Use allocate_engineer to assign an engineer to a project at a percentage.
- Use update_allocation to change an allocation's percentage or dates. \
Only the fields you pass are changed.
- Use move_to_bench to end all of an engineer's current allocations \
(their end date becomes yesterday).
- Use get_bench_engineers or find_available_engineers to find free capacity.
- Use get_allocation_history for "who worked on X" or "what did Y work on".

Ids look like eng-001, proj-001 and alloc-1a2b3c4d. Dates are YYYY-MM-DD.\
""",
)

_engine: AllocationEngine | None = None


def _get_engine() -> AllocationEngine:
    """Process-wide engine, so every tool call shares one write lock."""
    global _engine
    if _engine is None:
        data_dir = config.data_dir()
        logger.info("Using data directory %s", data_dir)
        _engine = AllocationEngine(JsonFileStore(data_dir))
    return _engine


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


@mcp.tool()
def allocate_engineer(
    engineer_id: str,
    project_id: str,
    allocation_percentage: int,
    start_date: str,
    end_date: str,
) -> dict:
    """Allocate an engineer to a project with a specified percentage.

    Args:
        engineer_id: The ID of the engineer to allocate (e.g. "eng-001")
        project_id: The ID of the project (e.g. "proj-001")
        allocation_percentage: The percentage of time allocated (0-100)
        start_date: Start date in YYYY-MM-DD format
        end_date: End date in YYYY-MM-DD format (inclusive)
    """
    result = _get_engine().allocate(
        engineer_id, project_id, allocation_percentage, start_date, end_date
    )
    return {
        "success": result.ok,
        "message": result.message,
        "allocation": result.payload.to_dict() if result.ok else None,
    }


@mcp.tool()
def update_allocation(
    allocation_id: str,
    new_percentage: int | None = None,
    new_start_date: str | None = None,
    new_end_date: str | None = None,
) -> dict:
    """Update an existing allocation's percentage, start date, or end date.

    Only provided fields are changed.

    Args:
        allocation_id: The ID of the allocation to update (e.g. "alloc-1a2b3c4d")
        new_percentage: New allocation percentage (0-100)
        new_start_date: New start date in YYYY-MM-DD format
        new_end_date: New end date in YYYY-MM-DD format
    """
    request = AllocationUpdate(
        percentage=UNSET if new_percentage is None else new_percentage,
        start_date=UNSET if new_start_date is None else new_start_date,
        end_date=UNSET if new_end_date is None else new_end_date,
    )
    result = _get_engine().update(allocation_id, request)
    return {"success": result.ok, "message": result.message}


@mcp.tool()
def move_to_bench(engineer_id: str) -> dict:
    """End all of an engineer's current allocations, keeping them as history.

    Args:
        engineer_id: The ID of the engineer (e.g. "eng-001")
    """
    result = _get_engine().end_allocations(engineer_id)
    return {
        "success": result.ok,
        "message": result.message,
        "removedCount": result.count,
        "removedAllocationIds": list(result.payload or ()),
    }


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


@mcp.tool()
def get_engineer_allocations(engineer_id: str) -> dict:
    """View the current allocations and free capacity of one engineer.

    Args:
        engineer_id: The ID of the engineer (e.g. "eng-001")
    """
    try:
        details = reporting.engineer_report(_get_engine(), engineer_id)
    except AllocationError as e:
        details = str(e)
    return {"engineerId": engineer_id, "details": details}


@mcp.tool()
def get_bench_engineers() -> dict:
    """List all engineers with 0% current allocation (on bench / available)."""
    try:
        return {"details": reporting.bench_report(_get_engine())}
    except AllocationError as e:
        return {"details": str(e)}


@mcp.tool()
def find_available_engineers(skill: str | None = None, min_capacity: int = 1) -> dict:
    """Find engineers with free capacity, optionally with a specific skill.

    Args:
        skill: Skill tag to filter by, case-insensitive (e.g. "Python")
        min_capacity: Minimum free percentage required (default 1)
    """
    try:
        details = reporting.available_report(
            _get_engine(), skill=skill, min_capacity=min_capacity
        )
    except AllocationError as e:
        details = str(e)
    return {"details": details}


@mcp.tool()
def get_all_allocations(include_past: bool = False) -> dict:
    """View allocations across all engineers and projects.

    Args:
        include_past: Also list allocations that have already ended
    """
    try:
        details = reporting.allocations_report(_get_engine(), include_past)
    except AllocationError as e:
        details = str(e)
    return {"details": details}


@mcp.tool()
def get_allocation_history(
    engineer_id: str | None = None,
    project_id: str | None = None,
) -> dict:
    """Chronological allocation history for an engineer or a project.

    Pass exactly one of engineer_id or project_id. Each entry is tagged
    CURRENT or PAST.

    Args:
        engineer_id: The ID of the engineer (e.g. "eng-001")
        project_id: The ID of the project (e.g. "proj-001")
    """
    if (engineer_id is None) == (project_id is None):
        return {"details": "Error: pass exactly one of engineer_id or project_id."}

    engine = _get_engine()
    try:
        if engineer_id is not None:
            history = engine.history_for_engineer(engineer_id)
        else:
            history = engine.history_for_project(project_id)
    except AllocationError as e:
        return {"details": str(e)}
    return {"details": reporting.history_report(engine, history)}


@mcp.tool()
def list_engineers() -> dict:
    """List all engineers with their details."""
    engineers = _get_engine().store.load_engineers()
    return {"count": len(engineers), "engineers": [e.to_dict() for e in engineers]}


@mcp.tool()
def list_projects() -> dict:
    """List all projects with their details."""
    projects = _get_engine().store.load_projects()
    return {"count": len(projects), "projects": [p.to_dict() for p in projects]}


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@mcp.resource("allocation://projects/list")
def projects_list() -> str:
    """List of all projects with their details, status, and descriptions."""
    return reporting.projects_markdown(_get_engine())


@mcp.resource("allocation://engineers/list")
def engineers_list() -> str:
    """List of all engineers with their details, roles, and skills."""
    return reporting.engineers_markdown(_get_engine())


@mcp.resource("allocation://allocations/list")
def allocations_list() -> str:
    """List of all current allocations across engineers and projects."""
    return reporting.allocations_markdown(_get_engine())


@mcp.resource("allocation://engineer/{engineer_id}")
def engineer_details(engineer_id: str) -> str:
    """Details of one engineer including their current allocations."""
    try:
        return reporting.engineer_details_markdown(_get_engine(), engineer_id)
    except NotFoundError:
        return f"# Engineer Not Found\n\nNo engineer found with ID: {engineer_id}"
    except AllocationError as e:
        return f"# Error\n\n{e}"


@mcp.resource("allocation://project/{project_id}")
def project_details(project_id: str) -> str:
    """Details of one project including assigned engineers."""
    try:
        return reporting.project_details_markdown(_get_engine(), project_id)
    except NotFoundError:
        return f"# Project Not Found\n\nNo project found with ID: {project_id}"
    except AllocationError as e:
        return f"# Error\n\n{e}"


@mcp.resource("allocation://projects/json")
def projects_json() -> str:
    """Raw JSON data of all projects."""
    projects = _get_engine().store.load_projects()
    return json.dumps([p.to_dict() for p in projects], indent=2)


@mcp.resource("allocation://engineers/json")
def engineers_json() -> str:
    """Raw JSON data of all engineers."""
    engineers = _get_engine().store.load_engineers()
    return json.dumps([e.to_dict() for e in engineers], indent=2)


@mcp.resource("allocation://allocations/json")
def allocations_json() -> str:
    """Raw JSON data of all allocations, past and current."""
    allocations = _get_engine().store.load_allocations()
    return json.dumps([a.to_dict() for a in allocations], indent=2)


def main():
    """Entry point for the MCP server. Logs go to stderr; stdout is the wire."""
    logging.basicConfig(
        stream=sys.stderr, level=config.log_level(), format=config.LOG_FORMAT
    )
    mcp.run(transport=config.MCP_TRANSPORT)


if __name__ == "__main__":
    main()
