"""Shared plumbing for the road, path and parking handlers."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

import numpy as np

from .models import Mesh, MeshArena
from .mutator import MeshMutator
from .overrides import OverrideRegistry
from .records import RecordStore

logger = logging.getLogger(__name__)


class ScanStatus(str, Enum):
    altered = "altered"
    unchanged = "unchanged"
    skipped = "skipped"
    failed = "failed"


@dataclass(frozen=True)
class ScanResult:
    name: Optional[str]
    status: ScanStatus
    reason: str = ""

    @classmethod
    def altered(cls, name) -> "ScanResult":
        return cls(name, ScanStatus.altered)

    @classmethod
    def unchanged(cls, name, reason: str = "no eligible geometry") -> "ScanResult":
        return cls(name, ScanStatus.unchanged, reason)

    @classmethod
    def skipped(cls, name, reason: str) -> "ScanResult":
        return cls(name, ScanStatus.skipped, reason)

    @classmethod
    def failed(cls, name, reason: str) -> "ScanResult":
        return cls(name, ScanStatus.failed, reason)


class BaseHandler:
    """Owns one asset category's records, mutator and original buffers."""

    category = "assets"

    def __init__(self, arena: MeshArena, registry: Optional[OverrideRegistry] = None,
                 originals: Optional[Dict[int, np.ndarray]] = None):
        self.arena = arena
        self.registry = registry or OverrideRegistry()
        self.mutator = MeshMutator(arena)
        self.records = RecordStore()
        # Pristine vertex buffers by mesh handle, captured on first sight.
        # Handlers over the same arena must share one mapping.
        self._originals: Dict[int, np.ndarray] = originals if originals is not None else {}

    def original_vertices(self, mesh: Optional[Mesh]) -> Optional[np.ndarray]:
        """Vertices of *mesh* as first seen by any handler sharing this cache."""
        if mesh is None or not mesh.readable:
            return None
        original = self._originals.get(mesh.handle)
        if original is None:
            original = mesh.vertices
            self._originals[mesh.handle] = original
        return original

    def restore_for_apply(self, handle: Optional[int], vertices) -> None:
        """Restore originals unless this cycle already re-derived the mesh."""
        if not self.mutator.is_processed(handle):
            self.mutator.restore(handle, vertices)

    def summarize(self, results) -> Dict[ScanStatus, int]:
        counts = {status: 0 for status in ScanStatus}
        for result in results:
            counts[result.status] += 1
        logger.info(f"{self.category}: {counts[ScanStatus.altered]} altered, "
                    f"{counts[ScanStatus.unchanged]} unchanged, "
                    f"{counts[ScanStatus.skipped]} skipped, "
                    f"{counts[ScanStatus.failed]} failed")
        return counts
