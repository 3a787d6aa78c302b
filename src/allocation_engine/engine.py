"""Capacity allocation engine: admission, update and bench transitions.

The engine holds no allocation state of its own. Every operation loads the
collections it needs from the injected store, decides, and (for writes)
saves the whole allocation collection back. "Today" comes from an injected
clock so every decision is reproducible.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import date
from typing import Callable, Iterator, Sequence

from allocation_engine.activity import (
    Clock,
    activity_state,
    is_active,
    start_sort_key,
    yesterday,
)
from allocation_engine.schema import (
    MAX_PERCENTAGE,
    validate_date,
    validate_percentage,
)
from allocation_engine.store import EntityStore
from allocation_engine.types import (
    UNSET,
    Allocation,
    AllocationError,
    AllocationUpdate,
    CapacityExceededError,
    CapacityStatus,
    Engineer,
    HistoryEntry,
    NotFoundError,
    OperationResult,
    Project,
    ValidationError,
    _Unset,
)

logger = logging.getLogger(__name__)


def new_allocation_id() -> str:
    """Allocation id: 'alloc-' followed by 8 random hex characters."""
    return f"alloc-{uuid.uuid4().hex[:8]}"


def active_total(
    allocations: Sequence[Allocation],
    engineer_id: str,
    today: date,
    exclude_id: str | None = None,
) -> int:
    """Sum of percentage over an engineer's allocations active on today."""
    return sum(
        a.percentage
        for a in allocations
        if a.engineer_id == engineer_id
        and a.id != exclude_id
        and is_active(a.end_date, today)
    )


def headroom(total: int) -> int:
    """Free percentage left under the ceiling. Never negative.

    A total above 100 can only arise from date-only updates, which are not
    re-checked.
    """
    return max(0, MAX_PERCENTAGE - total)


def _check_percentage(value: object) -> None:
    errors = validate_percentage(value)
    if errors:
        raise ValidationError("percentage", value, errors[0])


def _check_date(name: str, value: object) -> None:
    errors = validate_date(name, value)
    if errors:
        raise ValidationError(name, value, errors[0])


def _find(items: Sequence, kind: str, identifier: str):
    for item in items:
        if item.id == identifier:
            return item
    raise NotFoundError(kind, identifier)


class AllocationHistory:
    """Allocations for one engineer or project, oldest start date first.

    Lazy and restartable: ordering and CURRENT/PAST tagging happen on each
    iteration against the evaluation date captured when the query was made.
    """

    def __init__(
        self,
        key: str,
        allocations: Sequence[Allocation],
        today: date,
    ) -> None:
        self.key = key
        self.today = today
        self._allocations = tuple(allocations)

    def __iter__(self) -> Iterator[HistoryEntry]:
        for allocation in sorted(self._allocations, key=start_sort_key):
            yield HistoryEntry(allocation, activity_state(allocation, self.today))

    def __len__(self) -> int:
        return len(self._allocations)

    def __repr__(self) -> str:
        return (
            f"AllocationHistory(key={self.key!r}, "
            f"entries={len(self)}, today={self.today.isoformat()})"
        )


class AllocationEngine:
    """Validates and applies allocation writes against the 100% ceiling.

    Mutating operations (allocate, update, end_allocations) are serialised
    by a per-engine lock and return an OperationResult instead of raising.
    Queries take no lock and raise AllocationError subclasses directly; they
    are not guaranteed a consistent snapshot while a write is in flight.
    """

    def __init__(
        self,
        store: EntityStore,
        clock: Clock = date.today,
        id_factory: Callable[[], str] = new_allocation_id,
    ) -> None:
        self.store = store
        self._clock = clock
        self._id_factory = id_factory
        self._write_lock = threading.Lock()

    def today(self) -> date:
        return self._clock()

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_engineer(self, engineer_id: str) -> Engineer:
        return _find(self.store.load_engineers(), "Engineer", engineer_id)

    def get_project(self, project_id: str) -> Project:
        return _find(self.store.load_projects(), "Project", project_id)

    def get_allocation(self, allocation_id: str) -> Allocation:
        return _find(self.store.load_allocations(), "Allocation", allocation_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def allocate(
        self,
        engineer_id: str,
        project_id: str,
        percentage: int,
        start_date: str,
        end_date: str,
    ) -> OperationResult:
        """Create an allocation if the engineer has room for it.

        Fails without writing when the percentage is outside 0-100, a date
        is not a string, either id does not resolve, or active capacity plus
        percentage exceeds 100.
        On success the payload is the new Allocation.
        """
        try:
            _check_percentage(percentage)
            _check_date("start_date", start_date)
            _check_date("end_date", end_date)
            with self._write_lock:
                engineer, project, allocation = self._allocate(
                    engineer_id, project_id, percentage, start_date, end_date
                )
        except AllocationError as e:
            logger.warning("Allocate %s -> %s rejected: %s",
                           engineer_id, project_id, e)
            return OperationResult(False, str(e), error=e)

        logger.info("Allocated %s to %s at %d%% as %s",
                    engineer_id, project_id, percentage, allocation.id)
        return OperationResult(
            True,
            f"Successfully allocated {engineer.name} to {project.name} "
            f"at {percentage}%.",
            allocation,
        )

    def _allocate(
        self,
        engineer_id: str,
        project_id: str,
        percentage: int,
        start_date: str,
        end_date: str,
    ) -> tuple[Engineer, Project, Allocation]:
        engineer = _find(self.store.load_engineers(), "Engineer", engineer_id)
        project = _find(self.store.load_projects(), "Project", project_id)
        allocations = self.store.load_allocations()

        total = active_total(allocations, engineer_id, self.today()) + percentage
        if total > MAX_PERCENTAGE:
            raise CapacityExceededError(
                engineer_id,
                total,
                f"Cannot allocate. Engineer '{engineer.name}' would be "
                f"over-allocated ({total}%).",
            )

        allocation = Allocation(
            id=self._id_factory(),
            engineer_id=engineer_id,
            project_id=project_id,
            percentage=percentage,
            start_date=start_date,
            end_date=end_date,
        )
        allocations.append(allocation)
        self.store.save_allocations(allocations)
        return engineer, project, allocation

    def update(
        self,
        allocation_id: str,
        request: AllocationUpdate | None = None,
        *,
        percentage: int | _Unset = UNSET,
        start_date: str | _Unset = UNSET,
        end_date: str | _Unset = UNSET,
    ) -> OperationResult:
        """Apply per-field changes to an existing allocation.

        Pass either an AllocationUpdate or the keyword fields. A new
        percentage is re-checked against the ceiling using the engineer's
        other active allocations. Date changes must be strings and are
        otherwise written as given.
        """
        if request is None:
            request = AllocationUpdate(
                percentage=percentage, start_date=start_date, end_date=end_date
            )

        try:
            if request.changes_percentage:
                _check_percentage(request.percentage)
            if request.start_date is not UNSET:
                _check_date("start_date", request.start_date)
            if request.end_date is not UNSET:
                _check_date("end_date", request.end_date)
            with self._write_lock:
                changed = self._update(allocation_id, request)
        except AllocationError as e:
            logger.warning("Update of %s rejected: %s", allocation_id, e)
            return OperationResult(False, str(e), error=e)

        if not changed:
            return OperationResult(
                True, f"No changes requested for allocation '{allocation_id}'."
            )
        logger.info("Updated allocation %s: %s", allocation_id, request)
        return OperationResult(
            True, f"Successfully updated allocation '{allocation_id}'."
        )

    def _update(self, allocation_id: str, request: AllocationUpdate) -> bool:
        allocations = self.store.load_allocations()
        allocation = _find(allocations, "Allocation", allocation_id)
        if request.is_empty():
            return False

        if request.changes_percentage:
            # The record being edited is excluded so it can be lowered from
            # a value that sat on the boundary.
            total = active_total(
                allocations,
                allocation.engineer_id,
                self.today(),
                exclude_id=allocation_id,
            ) + request.percentage
            if total > MAX_PERCENTAGE:
                raise CapacityExceededError(
                    allocation.engineer_id,
                    total,
                    f"Cannot update. Engineer would be over-allocated ({total}%).",
                )
            allocation.percentage = request.percentage

        if request.start_date is not UNSET:
            allocation.start_date = request.start_date
        if request.end_date is not UNSET:
            allocation.end_date = request.end_date

        self.store.save_allocations(allocations)
        return True

    def end_allocations(self, engineer_id: str) -> OperationResult:
        """Move an engineer to the bench.

        Every currently active allocation gets yesterday as its end date.
        Records are kept for history. The payload is the tuple of ended
        allocation ids; with nothing active it is empty and nothing is written.
        """
        try:
            with self._write_lock:
                engineer, ended = self._end_allocations(engineer_id)
        except AllocationError as e:
            logger.warning("Bench transition for %s rejected: %s",
                           engineer_id, e)
            return OperationResult(False, str(e), error=e)

        if not ended:
            return OperationResult(
                True,
                f"{engineer.name} has no active allocations. "
                f"Already on the bench.",
                (),
            )
        logger.info("Moved %s to bench, ended %s", engineer_id, ", ".join(ended))
        return OperationResult(
            True,
            f"Moved {engineer.name} to the bench. Ended {len(ended)} "
            f"allocation(s): {', '.join(ended)}.",
            ended,
        )

    def _end_allocations(self, engineer_id: str) -> tuple[Engineer, tuple[str, ...]]:
        engineer = _find(self.store.load_engineers(), "Engineer", engineer_id)
        allocations = self.store.load_allocations()
        today = self.today()

        active = [
            a for a in allocations
            if a.engineer_id == engineer_id and is_active(a.end_date, today)
        ]
        if not active:
            return engineer, ()

        new_end = yesterday(today)
        for allocation in active:
            allocation.end_date = new_end
        self.store.save_allocations(allocations)
        return engineer, tuple(a.id for a in active)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def active_capacity(self, engineer_id: str) -> int:
        """Committed percentage for an engineer as of today."""
        self.get_engineer(engineer_id)
        return active_total(self.store.load_allocations(), engineer_id, self.today())

    def available_capacity(self, engineer_id: str) -> int:
        return headroom(self.active_capacity(engineer_id))

    def engineer_status(self, engineer_id: str) -> CapacityStatus:
        committed = self.active_capacity(engineer_id)
        if committed == 0:
            return CapacityStatus.ON_BENCH
        if committed >= MAX_PERCENTAGE:
            return CapacityStatus.FULLY_ALLOCATED
        return CapacityStatus.PARTIALLY_ALLOCATED

    def active_allocations(self, engineer_id: str | None = None) -> list[Allocation]:
        """Allocations active today, optionally for a single engineer."""
        today = self.today()
        return [
            a for a in self.store.load_allocations()
            if (engineer_id is None or a.engineer_id == engineer_id)
            and is_active(a.end_date, today)
        ]

    def capacity_by_engineer(self) -> dict[str, int]:
        """Active committed percentage for every engineer, in store order."""
        allocations = self.store.load_allocations()
        today = self.today()
        return {
            e.id: active_total(allocations, e.id, today)
            for e in self.store.load_engineers()
        }

    def bench(self) -> list[Engineer]:
        """Engineers with exactly zero active capacity."""
        capacity = self.capacity_by_engineer()
        return [e for e in self.store.load_engineers() if capacity[e.id] == 0]

    def available_engineers(
        self,
        skill: str | None = None,
        min_capacity: int = 1,
    ) -> list[tuple[Engineer, int]]:
        """Engineers with at least min_capacity percent free.

        Returns (engineer, available percentage) pairs, most available first.
        """
        capacity = self.capacity_by_engineer()
        found = [
            (e, headroom(capacity[e.id]))
            for e in self.store.load_engineers()
            if headroom(capacity[e.id]) >= min_capacity
            and (skill is None or e.has_skill(skill))
        ]
        found.sort(key=lambda pair: -pair[1])
        return found

    def history_for_engineer(self, engineer_id: str) -> AllocationHistory:
        self.get_engineer(engineer_id)
        allocations = [
            a for a in self.store.load_allocations() if a.engineer_id == engineer_id
        ]
        return AllocationHistory(engineer_id, allocations, self.today())

    def history_for_project(self, project_id: str) -> AllocationHistory:
        self.get_project(project_id)
        allocations = [
            a for a in self.store.load_allocations() if a.project_id == project_id
        ]
        return AllocationHistory(project_id, allocations, self.today())
