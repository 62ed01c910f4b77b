"""CurbController: scan once at load, then apply or revert on settings changes."""

import logging
from typing import Dict, List, Optional

import numpy as np

from .config import CurbSettings, configure_logging
from .handler import ScanResult
from .meshio import ReplacementMeshLoader
from .models import AssetCatalog
from .overrides import OverrideRegistry
from .parking import ParkingHandler
from .paths import PathHandler
from .roads import RoadHandler
from .simulation import ActionQueue, HostHooks

logger = logging.getLogger(__name__)


class CurbController:
    """Owns every record and cycle-scoped set for one loaded session.

    Scan, apply and revert each run to completion over all assets; host
    recomputation (lanes, bridge pillars) is only ever queued.
    """

    def __init__(self, catalog: AssetCatalog, settings: Optional[CurbSettings] = None,
                 registry: Optional[OverrideRegistry] = None,
                 loader: Optional[ReplacementMeshLoader] = None,
                 queue: Optional[ActionQueue] = None,
                 hooks: Optional[HostHooks] = None):
        self.catalog = catalog
        self.settings = settings or CurbSettings()
        self.registry = registry or OverrideRegistry.from_settings(self.settings)
        self.queue = queue or ActionQueue()
        self.hooks = hooks or HostHooks()

        arena = catalog.arena
        # One pristine cache: path-pack road bridges are scanned by both
        # the road and path handlers.
        originals: Dict[int, np.ndarray] = {}
        self.roads = RoadHandler(arena, self.registry, loader or ReplacementMeshLoader(),
                                 originals=originals)
        self.paths = PathHandler(arena, self.registry, originals)
        self.parking = ParkingHandler(arena, self.registry, originals)

        configure_logging(self.settings)

    # ── Load-time scan ───────────────────────────────────────────────────

    def scan(self) -> List[ScanResult]:
        return self.scan_networks() + self.scan_buildings()

    def scan_networks(self) -> List[ScanResult]:
        """Build road and path records and apply the current settings."""
        networks = self.catalog.networks
        return self.roads.scan(networks, self.settings) + self.paths.scan(networks, self.settings)

    def scan_buildings(self) -> List[ScanResult]:
        return self.parking.scan(self.catalog.buildings, self.settings)

    def on_level_loaded(self) -> None:
        """Post-load: push pillar offsets and refresh placed bridge pillars."""
        if self.settings.enable_bridges:
            self.roads.refresh_pillars(self.settings)
            self._refresh_pillars()

    # ── Settings changes ─────────────────────────────────────────────────

    def apply(self, settings: Optional[CurbSettings] = None, *,
              roads: bool = True, paths: bool = True) -> None:
        """Re-derive every recorded asset from *settings* (or the current ones).

        Parking lots follow the road curb height, so they go with *roads*.
        """
        if settings is not None:
            self.settings = settings
        configure_logging(self.settings)
        logger.info(f"applying curb height {self.settings.curb_height:.2f}")

        if roads:
            self.roads.apply(self.settings)
            self.parking.apply(self.settings)
        if paths:
            self.paths.apply(self.settings, bases=self.roads.derived)

        if roads:
            self._refresh_pillars()
            self._recalculate_lanes()

    def revert(self, *, roads: bool = True, paths: bool = True) -> None:
        """Restore all recorded assets to their original state."""
        logger.info("reverting curb height changes")
        if roads:
            self.roads.revert()
            self.parking.revert()
        if paths:
            self.paths.revert(bases=self.roads.derived)

        if roads:
            self._refresh_pillars()
            self._recalculate_lanes()

    # ── Deferred host work ───────────────────────────────────────────────

    def _recalculate_lanes(self) -> None:
        networks = list(self.roads.records)
        hooks = self.hooks

        def recalculate_lanes():
            hooks.update_lanes(networks)

        self.queue.add_action(recalculate_lanes)

    def _refresh_pillars(self) -> None:
        if not self.settings.update_pillars:
            return

        logger.info("adjusting existing pillars")
        networks = self.roads.pillar_networks()
        hooks = self.hooks

        def adjust_pillars():
            hooks.update_pillars(networks)

        self.queue.add_action(adjust_pillars)

    # ── Reporting ────────────────────────────────────────────────────────

    def describe(self) -> List[Dict]:
        """One summary row per recorded asset."""
        rows = []
        for handler in (self.roads, self.paths):
            for network, record in handler.records.items():
                rows.append({
                    "name": network.name,
                    "category": handler.category,
                    "override": record.params.kind.value,
                    "segments": len(record.segments),
                    "nodes": len(record.nodes),
                    "lanes": len(record.lanes),
                    "eligible_bridge": record.eligible_bridge,
                    "adjust_pillars": record.adjust_pillars,
                    "surface_level": network.surface_level,
                })
        for building, record in self.parking.records.items():
            rows.append({
                "name": building.name,
                "category": self.parking.category,
                "override": "parking",
                "segments": 0,
                "nodes": 0,
                "lanes": 0,
                "eligible_bridge": False,
                "adjust_pillars": False,
                "surface_level": None,
                "props": len(record.prop_heights),
                "shared_mesh": record.vertices is None,
            })
        return rows
