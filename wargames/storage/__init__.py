"""
World Storage Layer

RESPONSIBILITY: Load the current World, accept the World an intervention
returned, keep its version history
ALLOWED INPUTS: Immutable World values
OUTPUTS: World values, StoreWriteResult

WHAT THIS LAYER MUST NOT DO:
============================
- Propagate, extract or otherwise interpret worlds
- Modify a stored World in place
- Serialize concurrent writers (the caller does that)

BOUNDARY ENFORCEMENT:
=====================
- Versions are append-only; saving never rewrites an earlier version
- Malformed world files are rejected here, before the engine sees them
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Deque, List, Optional
import os

# ONLY import from contracts - never from other layers' implementations
from ..contracts.base import (
    AuditEventType, AuditLogEntry, Error, ErrorCode, Result, Timestamp, VersionId
)
from ..contracts.world import World
from ..domain.serialization import read_world, write_world
from ..observability import LogCollector


@dataclass(frozen=True)
class StoreWriteResult:
    """Result of saving a World."""
    success: bool
    version_id: Optional[VersionId] = None
    error: Optional[Error] = None
    write_timestamp: Optional[Timestamp] = None


@dataclass(frozen=True)
class WorldVersion:
    version_id: VersionId
    world: World
    created_at: Timestamp


# =============================================================================
# STORE INTERFACE (Dependency Inversion)
# =============================================================================

class WorldStore:
    """
    Abstract world store.

    ``load`` returns a Result holding a World or an explicit Error.
    """

    def load(self) -> Result:
        raise NotImplementedError

    def save(self, world: World) -> StoreWriteResult:
        raise NotImplementedError

    def history(self) -> List[WorldVersion]:
        raise NotImplementedError


class _VersionedStore(WorldStore):
    """
    Shared version bookkeeping.

    With ``max_versions`` only the newest versions stay in memory; sequence
    numbers keep counting and parent links still name evicted versions.
    """

    LAYER = "storage"

    def __init__(self, max_versions: Optional[int] = None):
        if max_versions is not None and max_versions < 1:
            raise ValueError("max_versions must be at least 1")
        self._versions: Deque[WorldVersion] = deque(maxlen=max_versions)
        self._sequence = 0
        self._audit = LogCollector(self.LAYER, max_versions)

    def _append_version(self, world: World) -> VersionId:
        parent = self._versions[-1].version_id.value if self._versions else None
        self._sequence += 1
        version_id = VersionId.generate(world.content_hash(), self._sequence, parent)
        self._versions.append(
            WorldVersion(version_id=version_id, world=world, created_at=Timestamp.now())
        )
        self._audit.log(
            AuditEventType.STORAGE, "world_saved",
            entity_id=version_id.value, entity_type="world",
            metadata={"sequence": str(version_id.sequence)}
        )
        return version_id

    def history(self) -> List[WorldVersion]:
        return list(self._versions)

    def get_version(self, version_id: str) -> Result:
        for version in self._versions:
            if version.version_id.value == version_id:
                return Result.success(version.world)
        return Result.failure(Error.create(
            ErrorCode.VERSION_NOT_FOUND, f"No world version {version_id!r}"
        ))

    def get_audit_log(self) -> List[AuditLogEntry]:
        return self._audit.get_entries()


# =============================================================================
# IN-MEMORY STORE (Reference Implementation)
# =============================================================================

class InMemoryWorldStore(_VersionedStore):
    """Holds worlds in memory. Suitable for tests and demos."""

    def __init__(self, initial: Optional[World] = None, max_versions: Optional[int] = None):
        super().__init__(max_versions)
        if initial is not None:
            self._append_version(initial)

    def load(self) -> Result:
        if not self._versions:
            return Result.failure(Error.create(ErrorCode.WORLD_NOT_FOUND, "Store is empty"))
        return Result.success(self._versions[-1].world)

    def save(self, world: World) -> StoreWriteResult:
        version_id = self._append_version(world)
        return StoreWriteResult(success=True, version_id=version_id, write_timestamp=Timestamp.now())


# =============================================================================
# FILE STORE (JSON world file)
# =============================================================================

class FileWorldStore(_VersionedStore):
    """
    World persisted as one JSON file in the wire format.

    Every save replaces the file atomically; history is kept in memory
    for the lifetime of the store.
    """

    def __init__(self, path: str, max_versions: Optional[int] = None):
        super().__init__(max_versions)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Result:
        if not self._path.exists():
            return Result.failure(
                Error.create(ErrorCode.WORLD_NOT_FOUND, f"No world file at {self._path}")
            )
        try:
            world = read_world(self._path)
        except ValueError as e:
            self._audit.log(
                AuditEventType.ERROR, "world_rejected",
                entity_id=str(self._path), entity_type="world_file",
                metadata={"error_code": ErrorCode.MALFORMED_WORLD.name}
            )
            return Result.failure(
                Error.create(ErrorCode.MALFORMED_WORLD, str(e)).with_context("path", str(self._path))
            )
        return Result.success(world)

    def save(self, world: World) -> StoreWriteResult:
        try:
            write_world(self._path, world)
        except OSError as e:
            return StoreWriteResult(
                success=False,
                error=Error.create(ErrorCode.WRITE_FAILED, str(e)).with_context("path", str(self._path))
            )
        version_id = self._append_version(world)
        return StoreWriteResult(success=True, version_id=version_id, write_timestamp=Timestamp.now())


@dataclass
class WorldStoreConfig:
    backend_type: str = "file"  # "memory" or "file"
    world_path: str = os.path.join("data", "wwi.json")
    # In-memory history only; the file always holds the latest world
    max_versions: Optional[int] = None


def create_store(config: Optional[WorldStoreConfig] = None) -> WorldStore:
    config = config or WorldStoreConfig()
    if config.backend_type == "file":
        return FileWorldStore(config.world_path, config.max_versions)
    if config.backend_type == "memory":
        return InMemoryWorldStore(max_versions=config.max_versions)
    raise ValueError(f"Unknown store backend: {config.backend_type!r}")
