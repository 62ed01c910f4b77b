"""Identifier-keyed overrides for assets that don't follow vanilla geometry.

Lookup order for networks: custom surface table, cohort tables, bridge
exclusions, then defaults.  The identifier is the asset name's prefix up
to the first separator.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .constants import (
    ASSET_ID_SEPARATOR, BIG_PARKING_LOTS, BRIDGE_EXCLUDED_ROADS,
    CURB_10CM_ROADS, CURB_10CM_SURFACE, CUSTOM_ROAD_OVERRIDES,
    PARKING_LOT_ROADS, PATH_EXCLUDED_PREFIXES, PATH_PACK_ID,
)

logger = logging.getLogger(__name__)


class ParamKind(str, Enum):
    default = "default"
    custom = "custom"
    cohort = "cohort"
    bridge_excluded = "bridge_excluded"


class ParkingKind(str, Enum):
    parking_lot_road = "parking_lot_road"
    big_parking_lot = "big_parking_lot"


@dataclass(frozen=True)
class SurfaceBand:
    """Nominal surface level plus the open interval snapped onto the new one."""
    surface_level: float
    top_bound: float
    bottom_bound: float

    @classmethod
    def from_tuple(cls, values: Tuple[float, float, float]) -> "SurfaceBand":
        return cls(*values)


@dataclass(frozen=True)
class NetParams:
    """Parameters resolved once per network."""
    kind: ParamKind = ParamKind.default
    asset_id: Optional[str] = None
    surface: Optional[SurfaceBand] = None
    label: Optional[str] = None

    @property
    def is_override(self) -> bool:
        """True when default classification is bypassed entirely."""
        return self.surface is not None

    @property
    def allow_bridge(self) -> bool:
        return self.kind == ParamKind.default


DEFAULT_PARAMS = NetParams()


def asset_id(name: Optional[str]) -> Optional[str]:
    """Return the identifier prefix of *name*, or None if it has none."""
    if not name:
        return None
    index = name.find(ASSET_ID_SEPARATOR)
    if index <= 0:
        return None
    return name[:index]


class OverrideRegistry:
    def __init__(self,
                 custom: Optional[Dict[str, Tuple[float, float, float]]] = None,
                 cohorts: Optional[Dict[str, Tuple[Tuple[float, float, float], Iterable[str]]]] = None,
                 bridge_exclusions: Iterable[str] = (),
                 parking_lot_roads: Iterable[str] = PARKING_LOT_ROADS,
                 big_parking_lots: Iterable[str] = BIG_PARKING_LOTS):
        if custom is None:
            custom = CUSTOM_ROAD_OVERRIDES
        if cohorts is None:
            cohorts = {"10cm curbs": (CURB_10CM_SURFACE, CURB_10CM_ROADS)}

        self.custom: Dict[str, SurfaceBand] = {
            key: SurfaceBand.from_tuple(values) for key, values in custom.items()}
        self.cohorts: Dict[str, Tuple[SurfaceBand, FrozenSet[str]]] = {
            label: (SurfaceBand.from_tuple(surface), frozenset(ids))
            for label, (surface, ids) in cohorts.items()}
        self.bridge_exclusions = frozenset(BRIDGE_EXCLUDED_ROADS) | frozenset(bridge_exclusions)
        self.parking_lot_roads = frozenset(parking_lot_roads)
        self.big_parking_lots = frozenset(big_parking_lots)

    @classmethod
    def from_settings(cls, settings) -> "OverrideRegistry":
        return cls(bridge_exclusions=settings.bridge_exclusions)

    def resolve(self, name: Optional[str]) -> NetParams:
        """Resolve network parameters for the prefab called *name*."""
        key = asset_id(name)
        if key is None:
            return DEFAULT_PARAMS

        surface = self.custom.get(key)
        if surface is not None:
            return NetParams(ParamKind.custom, key, surface, "custom road")

        for label, (surface, ids) in self.cohorts.items():
            if key in ids:
                return NetParams(ParamKind.cohort, key, surface, label)

        if key in self.bridge_exclusions:
            return NetParams(ParamKind.bridge_excluded, key, None, "bridge excluded")

        return DEFAULT_PARAMS

    def parking_kind(self, name: Optional[str]) -> Optional[ParkingKind]:
        key = asset_id(name)
        if key in self.parking_lot_roads:
            return ParkingKind.parking_lot_road
        if key in self.big_parking_lots:
            return ParkingKind.big_parking_lot
        return None

    @staticmethod
    def is_path_pack(name: Optional[str]) -> bool:
        return bool(name) and name.startswith(PATH_PACK_ID)

    @staticmethod
    def is_excluded_path(name: Optional[str]) -> bool:
        """Nature reserve paths are never altered."""
        return bool(name) and name.startswith(PATH_EXCLUDED_PREFIXES)
