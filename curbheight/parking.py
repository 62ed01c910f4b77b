"""Parking lot 'buildings' raised in line with the road curb height."""

import logging
from functools import partial
from typing import Iterable, List, Optional

from .constants import INVISIBLE_PARKING_PROP
from .handler import BaseHandler, ScanResult
from .models import ParkingStructure
from .mutator import raise_transform
from .overrides import ParkingKind
from .records import ParkingRecord

logger = logging.getLogger(__name__)


class ParkingHandler(BaseHandler):
    category = "parking"

    def scan(self, buildings: Iterable[ParkingStructure], settings) -> List[ScanResult]:
        logger.info("raising parking lots")
        results = []
        with self.mutator.cycle():
            for building in buildings:
                result = self._scan_building(building, settings)
                if result is not None:
                    results.append(result)

        self.summarize(results)
        logger.info("finished raising parking lots")
        return results

    def _scan_building(self, building, settings) -> Optional[ScanResult]:
        name = getattr(building, "name", None)
        if name is None:
            return None

        try:
            kind = self.registry.parking_kind(name)
            if kind == ParkingKind.parking_lot_road:
                return self._scan_parking_lot_road(building, settings)
            if kind == ParkingKind.big_parking_lot:
                return self._scan_big_parking_lot(building, settings)
            return None

        except Exception as e:
            logger.exception(f"exception checking building {name}")
            return ScanResult.failed(name, str(e))

    def _raise(self, handle, settings) -> bool:
        return self.mutator.adjust(handle, partial(raise_transform, amount=settings.curb_shift))

    def _scan_parking_lot_road(self, building, settings) -> ScanResult:
        logger.info(f"raising Parking Lot Road {building.name}")

        mesh = self.arena.get(building.mesh)
        if mesh is None or not mesh.readable:
            logger.info(f"no vertices found for {building.name}")
            return ScanResult.skipped(building.name, "no vertices")

        record = ParkingRecord(vertices=self.original_vertices(mesh))
        if self.mutator.is_processed(mesh.handle):
            # Shared mesh already raised for another building this cycle.
            logger.info(f"skipping processed mesh {mesh.name}")
            record.vertices = None
        else:
            self._raise(mesh.handle, settings)
            lod = self.arena.get(building.lod_mesh)
            record.lod_vertices = self.original_vertices(lod)
            if settings.do_road_lods and record.lod_vertices is not None:
                self._raise(lod.handle, settings)

        for prop in building.props or []:
            if prop is None or prop.name is None:
                continue
            if prop.height < 0:
                record.prop_heights[prop] = prop.height
                prop.height = prop.height + settings.curb_shift

        self.records.add(building, record)
        return ScanResult.altered(building.name)

    def _scan_big_parking_lot(self, building, settings) -> ScanResult:
        if building.props is None:
            return ScanResult.skipped(building.name, "no props")

        # Mesh is never touched; only the invisible parking space markers move.
        record = ParkingRecord()
        for prop in building.props:
            if prop is not None and prop.name == INVISIBLE_PARKING_PROP:
                record.prop_heights[prop] = prop.height
                prop.height = prop.height + settings.curb_shift

        if not record.prop_heights:
            return ScanResult.unchanged(building.name, "no parking space markers")

        logger.info(f"raised Big Parking Lot {building.name}")
        self.records.add(building, record)
        return ScanResult.altered(building.name)

    def apply(self, settings) -> None:
        with self.mutator.cycle():
            for building, record in self.records.items():
                if record.vertices is not None:
                    self.restore_for_apply(building.mesh, record.vertices)
                    self._raise(building.mesh, settings)
                if record.lod_vertices is not None:
                    self.restore_for_apply(building.lod_mesh, record.lod_vertices)
                    if settings.do_road_lods:
                        self._raise(building.lod_mesh, settings)

                for prop, original in record.prop_heights.items():
                    prop.height = original + settings.curb_shift

    def revert(self) -> None:
        with self.mutator.cycle():
            for building, record in self.records.items():
                # None marks a shared mesh restored through another record.
                if record.vertices is not None:
                    self.mutator.restore(building.mesh, record.vertices)
                if record.lod_vertices is not None:
                    self.mutator.restore(building.lod_mesh, record.lod_vertices)

                for prop, original in record.prop_heights.items():
                    prop.height = original
