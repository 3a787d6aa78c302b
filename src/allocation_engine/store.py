"""Entity stores: whole-collection load and save of engineers, projects and
allocations.

The unit of persistence is the entire collection. There is no record-level
locking; callers serialise writes (the engine does so with its own lock).
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol, Sequence

from allocation_engine.schema import (
    validate_allocations,
    validate_engineers,
    validate_projects,
)
from allocation_engine.types import Allocation, Engineer, Project, StorageError

logger = logging.getLogger(__name__)

ENGINEERS_FILE = "engineers.json"
PROJECTS_FILE = "projects.json"
ALLOCATIONS_FILE = "allocations.json"


class EntityStore(Protocol):
    """Read/write contract the engine depends on. Failures raise StorageError."""

    def load_engineers(self) -> list[Engineer]: ...

    def load_projects(self) -> list[Project]: ...

    def load_allocations(self) -> list[Allocation]: ...

    def save_allocations(self, allocations: Sequence[Allocation]) -> None: ...


class JsonFileStore:
    """Three JSON files in one directory, in the cross-platform format:

    engineers.json    [{"id", "name", "role", "skills": [...]}, ...]
    projects.json     [{"id", "name", "description", "status"}, ...]
    allocations.json  [{"id", "engineerId", "projectId",
                        "allocationPercentage", "startDate", "endDate"}, ...]

    A missing allocations.json reads as an empty collection. Engineers and
    projects are required.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def __repr__(self) -> str:
        return f"JsonFileStore({str(self.data_dir)!r})"

    def _read(self, name: str, *, required: bool = True) -> Any:
        path = self.data_dir / name
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            if not required:
                return []
            raise StorageError(str(path), "file not found") from None
        except json.JSONDecodeError as e:
            raise StorageError(str(path), f"malformed JSON - {e}") from e
        except OSError as e:
            raise StorageError(str(path), f"unreadable - {e}") from e

    def _check(self, name: str, errors: list[str]) -> None:
        if errors:
            path = self.data_dir / name
            raise StorageError(
                str(path),
                "validation errors:\n" + "\n".join(f"  - {e}" for e in errors),
            )

    def load_engineers(self) -> list[Engineer]:
        raw = self._read(ENGINEERS_FILE)
        self._check(ENGINEERS_FILE, validate_engineers(raw))
        return [Engineer.from_dict(e) for e in raw]

    def load_projects(self) -> list[Project]:
        raw = self._read(PROJECTS_FILE)
        self._check(PROJECTS_FILE, validate_projects(raw))
        return [Project.from_dict(p) for p in raw]

    def load_allocations(self) -> list[Allocation]:
        raw = self._read(ALLOCATIONS_FILE, required=False)
        self._check(ALLOCATIONS_FILE, validate_allocations(raw))
        return [Allocation.from_dict(a) for a in raw]

    def save_allocations(self, allocations: Sequence[Allocation]) -> None:
        """Overwrite allocations.json atomically (temp file + rename).

        A crash mid-write leaves the previous file intact.
        """
        path = self.data_dir / ALLOCATIONS_FILE
        payload = json.dumps([a.to_dict() for a in allocations], indent=2)
        tmp_name: str | None = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".allocations-", suffix=".tmp", dir=self.data_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise StorageError(str(path), f"write failed - {e}") from e
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Wrote %d allocations to %s", len(allocations), path)


class InMemoryStore:
    """Store backed by Python lists. Hands out and keeps deep copies so
    callers can never mutate stored state without a save.
    """

    def __init__(
        self,
        engineers: Sequence[Engineer] = (),
        projects: Sequence[Project] = (),
        allocations: Sequence[Allocation] = (),
    ) -> None:
        self._engineers = list(engineers)
        self._projects = list(projects)
        self._allocations = copy.deepcopy(list(allocations))
        self.save_count = 0

    def load_engineers(self) -> list[Engineer]:
        return list(self._engineers)

    def load_projects(self) -> list[Project]:
        return list(self._projects)

    def load_allocations(self) -> list[Allocation]:
        return copy.deepcopy(self._allocations)

    def save_allocations(self, allocations: Sequence[Allocation]) -> None:
        self._allocations = copy.deepcopy(list(allocations))
        self.save_count += 1
