"""allocation-engine: Capacity-checked allocation of engineers to projects."""

from allocation_engine.activity import activity_state, is_active, yesterday
from allocation_engine.engine import (
    AllocationEngine,
    AllocationHistory,
    active_total,
    new_allocation_id,
)
from allocation_engine.store import EntityStore, InMemoryStore, JsonFileStore
from allocation_engine.types import (
    UNSET,
    ActivityState,
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
    StorageError,
    ValidationError,
)

__all__ = [
    "ActivityState",
    "Allocation",
    "AllocationEngine",
    "AllocationError",
    "AllocationHistory",
    "AllocationUpdate",
    "CapacityExceededError",
    "CapacityStatus",
    "Engineer",
    "EntityStore",
    "HistoryEntry",
    "InMemoryStore",
    "JsonFileStore",
    "NotFoundError",
    "OperationResult",
    "Project",
    "StorageError",
    "UNSET",
    "ValidationError",
    "active_total",
    "activity_state",
    "is_active",
    "new_allocation_id",
    "yesterday",
]
