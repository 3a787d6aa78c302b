"""Shared types: records, update requests, results and the error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Engineer:
    """A person whose capacity is allocated. Read-only for the engine."""

    id: str
    name: str
    role: str = ""
    skills: frozenset[str] = field(default_factory=frozenset)

    def has_skill(self, skill: str) -> bool:
        """Case-insensitive skill tag match."""
        wanted = skill.strip().lower()
        return any(s.lower() == wanted for s in self.skills)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "skills": sorted(self.skills),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Engineer:
        return cls(
            id=data["id"],
            name=data["name"],
            role=data.get("role", ""),
            skills=frozenset(data.get("skills", ())),
        )


@dataclass(frozen=True)
class Project:
    """A work item engineers are allocated to. Read-only for the engine."""

    id: str
    name: str
    description: str = ""
    status: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Project:
        return cls(
            id=data["id"],
            name=data["name"],
            description=data.get("description", ""),
            status=data.get("status", ""),
        )


@dataclass
class Allocation:
    """One engineer's fractional commitment to one project.

    Invariants:
        - id, engineer_id and project_id never change after creation
        - 0 <= percentage <= 100
        - start_date and end_date are inclusive YYYY-MM-DD strings
    """

    id: str
    engineer_id: str
    project_id: str
    percentage: int
    start_date: str
    end_date: str

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the on-disk camelCase keys."""
        return {
            "id": self.id,
            "engineerId": self.engineer_id,
            "projectId": self.project_id,
            "allocationPercentage": self.percentage,
            "startDate": self.start_date,
            "endDate": self.end_date,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Allocation:
        return cls(
            id=data["id"],
            engineer_id=data["engineerId"],
            project_id=data["projectId"],
            percentage=data["allocationPercentage"],
            start_date=data["startDate"],
            end_date=data["endDate"],
        )


class _Unset:
    """Marker for an update field the caller did not touch."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


@dataclass(frozen=True)
class AllocationUpdate:
    """Per-field changes to an allocation. UNSET means leave unchanged.

    An empty string is a value like any other; only UNSET skips a field.
    """

    percentage: int | _Unset = UNSET
    start_date: str | _Unset = UNSET
    end_date: str | _Unset = UNSET

    @property
    def changes_percentage(self) -> bool:
        return self.percentage is not UNSET

    def is_empty(self) -> bool:
        return (
            self.percentage is UNSET
            and self.start_date is UNSET
            and self.end_date is UNSET
        )


class ActivityState(str, Enum):
    """Derived state of an allocation at an evaluation date. Never stored."""

    CURRENT = "CURRENT"
    PAST = "PAST"


class CapacityStatus(str, Enum):
    ON_BENCH = "On Bench (Available)"
    PARTIALLY_ALLOCATED = "Partially Allocated"
    FULLY_ALLOCATED = "Fully Allocated"


@dataclass(frozen=True)
class HistoryEntry:
    allocation: Allocation
    state: ActivityState

    @property
    def is_current(self) -> bool:
        return self.state is ActivityState.CURRENT


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutating engine operation.

    ok=False results carry the error that caused them and guarantee that
    nothing was persisted.
    """

    ok: bool
    message: str
    payload: Any = None
    error: AllocationError | None = None

    @property
    def count(self) -> int:
        """Number of records a bench transition ended."""
        if isinstance(self.payload, tuple):
            return len(self.payload)
        return 0


class AllocationError(Exception):
    """Base class for every failure the engine reports."""


class ValidationError(AllocationError):
    """Raised when an input value is outside its allowed range."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(reason)


class NotFoundError(AllocationError):
    """Raised when an engineer, project or allocation id does not resolve."""

    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} with ID '{identifier}' not found.")


class CapacityExceededError(AllocationError):
    """Raised when a write would push an engineer past 100% active capacity."""

    def __init__(self, engineer_id: str, total: int, message: str) -> None:
        self.engineer_id = engineer_id
        self.total = total
        super().__init__(message)


class StorageError(AllocationError):
    """Raised when the backing store cannot be read or written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Storage error for {path}: {reason}")
