"""Pedestrian paths: base and curb heights."""

import logging
from functools import partial
from typing import Iterable, List, Optional, Set

from .handler import BaseHandler, ScanResult
from .models import NetworkAsset
from .mutator import path_transform
from .records import AssetRecord, ComponentRecord

logger = logging.getLogger(__name__)


class PathHandler(BaseHandler):
    category = "paths"

    def is_path(self, network: NetworkAsset) -> bool:
        return network.kind.is_path or self.registry.is_path_pack(network.name)

    def scan(self, networks: Iterable[NetworkAsset], settings) -> List[ScanResult]:
        """Record every path mesh; adjust them if path changes are enabled."""
        checked: Set[int] = set()
        results = []

        logger.info("starting path load processing")
        with self.mutator.cycle():
            for network in networks:
                result = self._scan_network(network, settings, checked)
                if result is not None:
                    results.append(result)

        self.summarize(results)
        logger.info("finished path load processing")
        return results

    def _scan_network(self, network, settings, checked) -> Optional[ScanResult]:
        name = getattr(network, "name", None)
        try:
            if network is None or name is None or network.segments is None or network.nodes is None:
                return ScanResult.skipped(name, "incomplete prefab")
            if not self.is_path(network):
                return None
            if self.registry.is_excluded_path(name):
                return ScanResult.skipped(name, "nature reserve path")

            record = AssetRecord()
            raise_zero = network.kind.is_elevated

            for component, component_records in (
                    [(s, record.segments) for s in network.segments if s is not None]
                    + [(n, record.nodes) for n in network.nodes if n is not None]):
                mesh = self.arena.get(component.main_mesh)
                if mesh is None or mesh.name is None or component.shader is None:
                    continue
                if mesh.handle in checked:
                    continue
                checked.add(mesh.handle)

                if not mesh.readable:
                    logger.info(f"skipping unreadable path mesh {mesh.name} for network {name}")
                    continue

                component_record = ComponentRecord(
                    network=network,
                    main_vertices=self.original_vertices(mesh),
                    lod_vertices=self.original_vertices(self.arena.get(component.lod_mesh)),
                )
                component_records[component] = component_record

                if settings.enable_paths:
                    self._adjust_component(component, component_record, raise_zero, settings)

            if not record.segments and not record.nodes:
                return ScanResult.unchanged(name, "no path meshes")

            self.records.add(network, record)
            return ScanResult.altered(name)

        except Exception as e:
            logger.exception(f"exception reading network {name}")
            return ScanResult.failed(name, str(e))

    def _adjust_component(self, component, component_record, raise_zero: bool, settings) -> None:
        self.mutator.adjust(component.main_mesh, partial(
            path_transform,
            base_height=settings.path_base_height,
            curb_height=settings.path_curb_height,
            raise_zero=raise_zero))

        # LODs never get their zero level raised.
        if settings.do_path_lods and component_record.lod_vertices is not None:
            self.mutator.adjust(component.lod_mesh, partial(
                path_transform,
                base_height=settings.path_base_height,
                curb_height=settings.path_curb_height))

    @staticmethod
    def _start(handle, original, bases):
        """Buffer a path mesh is re-derived from: the road handler's result if it has one."""
        if bases and handle in bases:
            return bases[handle]
        return original

    def apply(self, settings, bases=None) -> None:
        """Re-derive every path mesh.

        *bases* maps mesh handles to buffers already produced by another
        handler in this pass; those meshes are transformed from that buffer
        instead of being restored to their originals.
        """
        with self.mutator.cycle():
            for network, record in self.records.items():
                raise_zero = network.kind.is_elevated
                for component, component_record in record.components():
                    self.restore_for_apply(component.main_mesh, self._start(
                        component.main_mesh, component_record.main_vertices, bases))
                    self.restore_for_apply(component.lod_mesh, self._start(
                        component.lod_mesh, component_record.lod_vertices, bases))
                    if settings.enable_paths:
                        self._adjust_component(component, component_record, raise_zero, settings)

    def revert(self, bases=None) -> None:
        with self.mutator.cycle():
            for network, record in self.records.items():
                logger.debug(f"reverting path {network.name}")
                for component, component_record in record.components():
                    self.mutator.restore(component.main_mesh, self._start(
                        component.main_mesh, component_record.main_vertices, bases))
                    self.mutator.restore(component.lod_mesh, self._start(
                        component.lod_mesh, component_record.lod_vertices, bases))
