"""Road, bridge, tunnel and dam networks: curbs, bridge decks, lanes, wires.

Original concept: adjusting vanilla -30cm curbs to -15cm by rescaling the
road mesh vertices below ground level.  Bridge decks are compressed
towards a threshold, sub-surface geometry (tram track beds) is shifted to
stay under the new surface, and lanes follow the surface.
"""

import logging
import math
from functools import partial
from typing import Dict, Iterable, List, Optional, Set

import numpy as np

from .constants import (
    ELECTRICITY_SHADER, MAX_CURB_DEPTH_TRIGGER, MIN_BAND_VERTICES,
    MIN_CURB_DEPTH_TRIGGER, ORIGINAL_CURB_HEIGHT, ROAD_SHADERS,
)
from .geometry import BandBounds, classify_vertices
from .handler import BaseHandler, ScanResult
from .meshio import ReplacementMeshLoader
from .models import Mesh, NetworkAsset
from .mutator import raise_transform, road_transform, surface_transform
from .overrides import NetParams
from .pillars import push_pillar_offsets, restore_pillar_offsets
from .records import AssetRecord, ComponentRecord

logger = logging.getLogger(__name__)


def _same_level(a: float, b: float) -> bool:
    return math.isclose(a, b, abs_tol=1e-4)


class RoadHandler(BaseHandler):
    category = "roads"

    def __init__(self, arena, registry=None,
                 loader: Optional[ReplacementMeshLoader] = None, originals=None):
        super().__init__(arena, registry, originals)
        self.loader = loader
        # Catenary wire meshes, with original vertices.
        self.wires: Dict[int, np.ndarray] = {}
        # Buffers this handler left behind in its last scan or apply pass.
        self.derived: Dict[int, np.ndarray] = {}

    # ── Scan ─────────────────────────────────────────────────────────────

    def scan(self, networks: Iterable[NetworkAsset], settings) -> List[ScanResult]:
        """Build records for every eligible road network and apply *settings*."""
        checked: Set[int] = set()
        results = []

        logger.info("starting road load processing")
        with self.mutator.cycle():
            for network in networks:
                result = self._scan_network(network, settings, checked)
                if result is not None:
                    results.append(result)
            self._capture_derived()

        self.summarize(results)
        logger.info("finished road load processing")
        return results

    def _scan_network(self, network, settings, checked) -> Optional[ScanResult]:
        name = getattr(network, "name", None)
        try:
            if network is None or name is None or network.segments is None or network.nodes is None:
                return ScanResult.skipped(name, "incomplete prefab")
            if not network.kind.is_road:
                return None

            params = self.registry.resolve(name)
            if params.is_override:
                logger.info(f"processing {params.label} {name} with ID {params.asset_id}")
                record = self._scan_override(network, params, settings, checked)
            else:
                record = self._scan_default(network, params, settings, checked)

            if record is None:
                return ScanResult.unchanged(name)

            self.records.add(network, record)
            return ScanResult.altered(name)

        except Exception as e:
            # One malformed prefab must never stop the rest.
            logger.exception(f"exception reading network {name}")
            return ScanResult.failed(name, str(e))

    def _scan_default(self, network, params: NetParams, settings, checked) -> Optional[AssetRecord]:
        altered = False
        record = AssetRecord(params=params)

        if network.is_bridge:
            record.bridge_pillar_offset = network.bridge_pillar_offset or 0.0
            record.middle_pillar_offset = network.middle_pillar_offset or 0.0

        if _same_level(network.surface_level, ORIGINAL_CURB_HEIGHT):
            altered = True
            record.surface_level = network.surface_level
            network.surface_level = settings.surface_level

        is_bridge = network.is_bridge and params.allow_bridge
        bounds = BandBounds.with_threshold(settings.signed_bridge_threshold)

        for component, component_records in self._components(network, record):
            mesh = self._road_mesh(network, component, checked)
            if mesh is None:
                continue

            vertices = self.original_vertices(mesh)
            result = classify_vertices(vertices, MIN_BAND_VERTICES, bounds, is_bridge)
            if not result.eligible:
                continue

            altered = True
            component_record = ComponentRecord(
                network=network,
                eligible_curbs=result.eligible_curbs,
                eligible_bridge=result.eligible_bridge,
                main_vertices=vertices,
                lod_vertices=self.original_vertices(self.arena.get(component.lod_mesh)),
            )
            component_records[component] = component_record
            self._adjust_component(component, component_record, params, settings)

        has_trams = False
        for lane in network.lanes or []:
            offset = lane.vertical_offset
            if MAX_CURB_DEPTH_TRIGGER < offset < MIN_CURB_DEPTH_TRIGGER:
                altered = True
                record.lanes[lane] = offset
                lane.vertical_offset = offset * settings.curb_multiplier
            has_trams |= lane.has_trams
        record.has_wires = has_trams

        if not altered:
            return None

        if network.is_bridge and record.eligible_bridge:
            record.adjust_pillars = True
            push_pillar_offsets(network, record, settings)

        if has_trams and settings.do_tram_catenaries:
            self._adjust_wires(network, settings)

        return record

    def _scan_override(self, network, params: NetParams, settings, checked) -> Optional[AssetRecord]:
        altered = False
        record = AssetRecord(params=params)
        surface = params.surface

        if _same_level(network.surface_level, surface.surface_level):
            altered = True
            record.surface_level = network.surface_level
            network.surface_level = settings.surface_level

        for component, component_records in self._components(network, record):
            mesh = self._road_mesh(network, component, checked)
            if mesh is None:
                continue

            altered = True
            component_record = ComponentRecord(
                network=network,
                eligible_curbs=True,
                eligible_bridge=False,
                main_vertices=self.original_vertices(mesh),
                lod_vertices=self.original_vertices(self.arena.get(component.lod_mesh)),
            )
            component_records[component] = component_record
            self._adjust_component(component, component_record, params, settings)

        for lane in network.lanes or []:
            if _same_level(lane.vertical_offset, surface.surface_level):
                altered = True
                record.lanes[lane] = lane.vertical_offset
                lane.vertical_offset = settings.surface_level

        return record if altered else None

    @staticmethod
    def _components(network, record):
        for segment in network.segments:
            if segment is not None:
                yield segment, record.segments
        for node in network.nodes:
            if node is not None:
                yield node, record.nodes

    def _road_mesh(self, network, component, checked: Set[int]) -> Optional[Mesh]:
        """Return the component's mesh if it's a first-seen, readable road mesh."""
        mesh = self.arena.get(component.main_mesh)
        if mesh is None or mesh.name is None or component.shader is None:
            return None
        if component.shader not in ROAD_SHADERS:
            return None

        if not mesh.readable:
            logger.debug(f"unreadable mesh {mesh.name} for network {network.name}")
            replacement = self.loader.load(mesh.name) if self.loader is not None else None
            if replacement is None:
                logger.info(f"skipping unreadable mesh {mesh.name} for network {network.name}")
                return None
            logger.info(f"substituting unreadable mesh {mesh.name} for network {network.name}")
            component.main_mesh = self.arena.add(replacement)
            mesh = replacement

        if mesh.handle in checked:
            return None
        checked.add(mesh.handle)
        return mesh

    # ── Mesh adjustment ──────────────────────────────────────────────────

    def _transform(self, component_record: ComponentRecord, params: NetParams, settings):
        if params.is_override:
            return partial(surface_transform,
                           top=params.surface.top_bound,
                           bottom=params.surface.bottom_bound,
                           surface_level=settings.surface_level)
        return partial(road_transform,
                       multiplier=settings.curb_multiplier,
                       shift=settings.curb_shift,
                       bridge=component_record.eligible_bridge and settings.enable_bridges,
                       threshold=settings.signed_bridge_threshold,
                       scale=settings.bridge_scale)

    def _adjust_component(self, component, component_record, params, settings) -> None:
        transform = self._transform(component_record, params, settings)
        self.mutator.adjust(component.main_mesh, transform)
        if settings.do_road_lods and component_record.lod_vertices is not None:
            self.mutator.adjust(component.lod_mesh, transform)

    def _adjust_wires(self, network, settings) -> None:
        """Lift tram catenary wires by the same amount as the road surface."""
        for component in list(network.segments) + list(network.nodes):
            if component is None or component.material is None:
                continue
            if component.shader != ELECTRICITY_SHADER:
                continue

            mesh = self.arena.get(component.main_mesh)
            if mesh is None or not mesh.readable or self.mutator.is_processed(mesh.handle):
                continue

            original = self.wires.setdefault(mesh.handle, self.original_vertices(mesh))
            self.mutator.restore(mesh.handle, original)
            if self.mutator.adjust(mesh.handle, partial(raise_transform,
                                                        amount=settings.curb_shift,
                                                        min_height=None)):
                logger.info(f"adjusted catenary mesh {mesh.name}")

    def _restore_wires(self) -> None:
        for handle, original in self.wires.items():
            self.mutator.restore(handle, original)

    def _capture_derived(self) -> None:
        self.derived = {handle: self.arena[handle].vertices for handle in self.mutator.processed}

    # ── Apply / revert ───────────────────────────────────────────────────

    def apply(self, settings) -> None:
        """Restore every recorded mesh and re-derive it from *settings*."""
        with self.mutator.cycle():
            for network, record in self.records.items():
                params = record.params

                if record.surface_level is not None:
                    network.surface_level = settings.surface_level

                for component, component_record in record.components():
                    self.restore_for_apply(component.main_mesh, component_record.main_vertices)
                    self.restore_for_apply(component.lod_mesh, component_record.lod_vertices)
                    self._adjust_component(component, component_record, params, settings)

                push_pillar_offsets(network, record, settings)

                for lane in record.lanes:
                    lane.vertical_offset = settings.surface_level

            if settings.do_tram_catenaries:
                for network, record in self.records.items():
                    if record.has_wires:
                        self._adjust_wires(network, settings)
            else:
                self._restore_wires()

            self._capture_derived()

    def revert(self) -> None:
        """Restore every recorded value verbatim; records are kept."""
        with self.mutator.cycle():
            for network, record in self.records.items():
                logger.debug(f"reverting {network.name}")

                if record.surface_level is not None:
                    network.surface_level = record.surface_level

                for component, component_record in record.components():
                    self.mutator.restore(component.main_mesh, component_record.main_vertices)
                    self.mutator.restore(component.lod_mesh, component_record.lod_vertices)

                for lane, original in record.lanes.items():
                    lane.vertical_offset = original

                restore_pillar_offsets(network, record)

            self._restore_wires()
        self.derived = {}

    def refresh_pillars(self, settings) -> None:
        """Re-push pillar offsets for adjustable bridges (post-load)."""
        for network, record in self.records.items():
            push_pillar_offsets(network, record, settings)

    def pillar_networks(self) -> List[NetworkAsset]:
        return [network for network, record in self.records.items() if record.adjust_pillars]
