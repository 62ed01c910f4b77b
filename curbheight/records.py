"""Original-state records kept for every altered asset."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterator, Optional, Tuple, TypeVar

import numpy as np

from .overrides import NetParams

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class ComponentRecord:
    """Original main/LOD vertices for one segment or node.

    Captured once before the first mutation and never overwritten.
    Eligibility is frozen from the original geometry.
    """
    network: object
    eligible_curbs: bool = True
    eligible_bridge: bool = False
    main_vertices: Optional[np.ndarray] = None
    lod_vertices: Optional[np.ndarray] = None


@dataclass(eq=False)
class AssetRecord:
    """Original data for one network prefab, prior to alteration."""
    # None when the prefab's surface level was never changed.
    surface_level: Optional[float] = None
    segments: Dict[object, ComponentRecord] = field(default_factory=dict)
    nodes: Dict[object, ComponentRecord] = field(default_factory=dict)
    lanes: Dict[object, float] = field(default_factory=dict)
    params: NetParams = field(default_factory=NetParams)

    # Bridge pillars.
    adjust_pillars: bool = False
    bridge_pillar_offset: float = 0.0
    middle_pillar_offset: float = 0.0

    # Tram catenary wires.
    has_wires: bool = False

    def components(self) -> Iterator[Tuple[object, ComponentRecord]]:
        """Segments then nodes, with their records."""
        yield from self.segments.items()
        yield from self.nodes.items()

    @property
    def eligible_bridge(self) -> bool:
        return any(c.eligible_bridge for _, c in self.components())


@dataclass(eq=False)
class ParkingRecord:
    """Original data for a parking structure.

    ``vertices`` is None when the mesh was shared and already handled by
    another structure in the same cycle; it must not be restored from here.
    """
    vertices: Optional[np.ndarray] = None
    lod_vertices: Optional[np.ndarray] = None
    prop_heights: Dict[object, float] = field(default_factory=dict)


K = TypeVar("K")
R = TypeVar("R")


class RecordStore(Generic[K, R]):
    """Identity-keyed records; assets without a record are never touched."""

    def __init__(self):
        self._records: Dict[K, R] = {}

    def add(self, asset: K, record: R) -> None:
        if asset in self._records:
            logger.warning(f"replacing existing record for {getattr(asset, 'name', asset)}")
        self._records[asset] = record

    def get(self, asset: K) -> Optional[R]:
        return self._records.get(asset)

    def items(self):
        return self._records.items()

    def __contains__(self, asset) -> bool:
        return asset in self._records

    def __iter__(self) -> Iterator[K]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)
