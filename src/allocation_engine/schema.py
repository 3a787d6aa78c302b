"""Input validation for allocation percentages and stored records."""

from __future__ import annotations

from typing import Any

MIN_PERCENTAGE = 0
MAX_PERCENTAGE = 100

_ENGINEER_FIELDS = {"id": str, "name": str}
_PROJECT_FIELDS = {"id": str, "name": str}
_ALLOCATION_FIELDS = {
    "id": str,
    "engineerId": str,
    "projectId": str,
    "allocationPercentage": int,
    "startDate": str,
    "endDate": str,
}


def validate_percentage(value: object) -> list[str]:
    """Validate an allocation percentage. Returns list of error messages.

    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        return [f"Allocation percentage must be an integer, got {value!r}."]
    if value < MIN_PERCENTAGE or value > MAX_PERCENTAGE:
        return [
            f"Allocation percentage must be between {MIN_PERCENTAGE} "
            f"and {MAX_PERCENTAGE}."
        ]
    return []


def validate_date(name: str, value: object) -> list[str]:
    """Validate a start or end date supplied to a write.

    Only the type is checked. Content stays opaque; the activity predicate
    fails open on strings it cannot parse.
    """
    if not isinstance(value, str):
        return [f"{name} must be a YYYY-MM-DD string, got {value!r}."]
    return []


def _validate_fields(
    kind: str,
    index: int,
    entry: Any,
    fields: dict[str, type],
) -> list[str]:
    if not isinstance(entry, dict):
        return [f"{kind} {index}: expected an object, got {type(entry).__name__}"]

    errors: list[str] = []
    for name, expected in fields.items():
        if name not in entry:
            errors.append(f"{kind} {index}: missing '{name}'")
            continue
        value = entry[name]
        if isinstance(value, bool) or not isinstance(value, expected):
            errors.append(
                f"{kind} {index}: '{name}' must be {expected.__name__}, "
                f"got {value!r}"
            )
    return errors


def validate_engineers(entries: Any) -> list[str]:
    """Validate raw engineer records loaded from storage.

    Checks:
    - The collection is a list of objects
    - id and name are strings
    - skills, if present, is a list of strings
    - ids are unique
    """
    if not isinstance(entries, list):
        return ["engineers: expected a list"]

    errors: list[str] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        entry_errors = _validate_fields("Engineer", i, entry, _ENGINEER_FIELDS)
        errors.extend(entry_errors)
        if entry_errors:
            continue
        skills = entry.get("skills", [])
        if not isinstance(skills, list) or not all(
            isinstance(s, str) for s in skills
        ):
            errors.append(f"Engineer {i}: 'skills' must be a list of strings")
        if entry["id"] in seen:
            errors.append(f"Engineer {i}: duplicate id {entry['id']!r}")
        seen.add(entry["id"])
    return errors


def validate_projects(entries: Any) -> list[str]:
    """Validate raw project records. Same shape rules as engineers."""
    if not isinstance(entries, list):
        return ["projects: expected a list"]

    errors: list[str] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        entry_errors = _validate_fields("Project", i, entry, _PROJECT_FIELDS)
        errors.extend(entry_errors)
        if entry_errors:
            continue
        if entry["id"] in seen:
            errors.append(f"Project {i}: duplicate id {entry['id']!r}")
        seen.add(entry["id"])
    return errors


def validate_allocations(entries: Any) -> list[str]:
    """Validate raw allocation records.

    Dates are only checked for type here. Their content is left to the
    activity predicate, which fails open on values it cannot parse.
    """
    if not isinstance(entries, list):
        return ["allocations: expected a list"]

    errors: list[str] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        entry_errors = _validate_fields(
            "Allocation", i, entry, _ALLOCATION_FIELDS
        )
        errors.extend(entry_errors)
        if entry_errors:
            continue
        for message in validate_percentage(entry["allocationPercentage"]):
            errors.append(f"Allocation {i}: {message}")
        if entry["id"] in seen:
            errors.append(f"Allocation {i}: duplicate id {entry['id']!r}")
        seen.add(entry["id"])
    return errors
