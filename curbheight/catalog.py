"""JSON asset catalogs: load networks and buildings, export mutated meshes.

A catalog names every mesh once and lets any number of segments, nodes
and buildings reference it by key, so shared meshes stay shared::

    {
      "meshes": {
        "road": {"file": "road.ply"},
        "road_lod": {"file": "road_lod.dat", "readable": false},
        "quad": {"vertices": [[0, -0.3, 0], ...], "triangles": [0, 1, 2]}
      },
      "networks": [
        {"name": "123.Basic Road", "kind": "road", "surface_level": -0.3,
         "segments": [{"mesh": "road", "lod_mesh": "road_lod",
                       "shader": "Custom/Net/Road"}],
         "lanes": [{"vertical_offset": -0.3, "vehicle_types": ["car"]}]}
      ],
      "buildings": [
        {"name": "1285201733.Parking Lot", "mesh": "lot",
         "props": [{"name": "Bench", "position": [0, -0.1, 0]}]}
      ]
    }

Relative mesh files resolve against the catalog's directory.
"""

import json
import logging
import pathlib
import re
from typing import Dict, List, Optional, Union

import trimesh
from pydantic import BaseModel, ValidationError

from .meshio import MeshFormatError, read_mesh_record, write_mesh_record
from .models import (
    AssetCatalog, Lane, Mesh, NetKind, NetworkAsset, Node, ParkingStructure,
    Prop, Segment,
)

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """The catalog file is missing, malformed or references unknown meshes."""


# ── File schema ──────────────────────────────────────────────────────────

class MeshEntry(BaseModel):
    file: Optional[str] = None
    vertices: Optional[List[List[float]]] = None
    triangles: Optional[List[int]] = None
    readable: bool = True


class ComponentEntry(BaseModel):
    mesh: Optional[str] = None
    lod_mesh: Optional[str] = None
    shader: Optional[str] = None
    material: Optional[str] = None


class LaneEntry(BaseModel):
    vertical_offset: float = 0.0
    vehicle_types: List[str] = []


class NetworkEntry(BaseModel):
    name: str
    kind: NetKind = NetKind.road
    surface_level: float = 0.0
    bridge_pillar_offset: Optional[float] = None
    middle_pillar_offset: Optional[float] = None
    segments: List[ComponentEntry] = []
    nodes: List[ComponentEntry] = []
    lanes: List[LaneEntry] = []


class PropEntry(BaseModel):
    name: Optional[str] = None
    position: List[float] = [0.0, 0.0, 0.0]


class BuildingEntry(BaseModel):
    name: str
    mesh: Optional[str] = None
    lod_mesh: Optional[str] = None
    props: List[PropEntry] = []


class CatalogFile(BaseModel):
    meshes: Dict[str, MeshEntry] = {}
    networks: List[NetworkEntry] = []
    buildings: List[BuildingEntry] = []


# ── Loading ──────────────────────────────────────────────────────────────

def _load_mesh(name: str, entry: MeshEntry, base_dir: pathlib.Path) -> Mesh:
    if entry.file is not None:
        path = pathlib.Path(entry.file)
        if not path.is_absolute():
            path = base_dir / path
        if not path.is_file():
            raise CatalogError(f"mesh {name!r}: file not found: {path}")

        if path.suffix.lower() == ".dat":
            try:
                mesh = read_mesh_record(path, name)
            except MeshFormatError as e:
                raise CatalogError(str(e)) from e
            mesh.readable = entry.readable
            return mesh

        try:
            tm = trimesh.load(str(path), force='mesh', process=False)
        except Exception as e:
            raise CatalogError(f"mesh {name!r}: cannot load {path}: {e}") from e
        return Mesh.from_trimesh(name, tm, readable=entry.readable)

    return Mesh(name, vertices=entry.vertices, triangles=entry.triangles,
                readable=entry.readable)


def _handle(handles: Dict[str, int], key: Optional[str], owner: str) -> Optional[int]:
    if key is None:
        return None
    if key not in handles:
        raise CatalogError(f"{owner}: unknown mesh {key!r}")
    return handles[key]


def build_catalog(data: Union[dict, CatalogFile],
                  base_dir: Union[str, pathlib.Path] = ".") -> AssetCatalog:
    """Build an ``AssetCatalog`` from already-parsed catalog data."""
    try:
        parsed = data if isinstance(data, CatalogFile) else CatalogFile.model_validate(data)
    except ValidationError as e:
        raise CatalogError(f"invalid catalog: {e}") from e

    base_dir = pathlib.Path(base_dir)
    catalog = AssetCatalog()
    handles: Dict[str, int] = {}
    for name, entry in parsed.meshes.items():
        handles[name] = catalog.arena.add(_load_mesh(name, entry, base_dir))

    for net in parsed.networks:
        def component(entry: ComponentEntry, cls):
            return cls(main_mesh=_handle(handles, entry.mesh, net.name),
                       lod_mesh=_handle(handles, entry.lod_mesh, net.name),
                       shader=entry.shader, material=entry.material)

        catalog.networks.append(NetworkAsset(
            name=net.name,
            kind=net.kind,
            surface_level=net.surface_level,
            segments=[component(s, Segment) for s in net.segments],
            nodes=[component(n, Node) for n in net.nodes],
            lanes=[Lane(lane.vertical_offset, frozenset(lane.vehicle_types))
                   for lane in net.lanes],
            bridge_pillar_offset=net.bridge_pillar_offset,
            middle_pillar_offset=net.middle_pillar_offset,
        ))

    for building in parsed.buildings:
        catalog.buildings.append(ParkingStructure(
            name=building.name,
            mesh=_handle(handles, building.mesh, building.name),
            lod_mesh=_handle(handles, building.lod_mesh, building.name),
            props=[Prop(p.name, list(p.position)) for p in building.props],
        ))

    logger.info(f"Loaded catalog: {len(catalog.arena)} meshes, "
                f"{len(catalog.networks)} networks, {len(catalog.buildings)} buildings")
    return catalog


def load_catalog(path: Union[str, pathlib.Path]) -> AssetCatalog:
    path = pathlib.Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"cannot read catalog {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise CatalogError(f"catalog {path} is not valid JSON: {e}") from e
    return build_catalog(data, path.parent)


# ── Export ───────────────────────────────────────────────────────────────

def _safe_name(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_") or "mesh"


def export_meshes(catalog: AssetCatalog, directory: Union[str, pathlib.Path],
                  file_type: str = "ply") -> List[pathlib.Path]:
    """Write every readable mesh in the catalog to *directory*.

    ``file_type`` is any trimesh export format, or ``dat`` for the binary
    mesh record layout.
    """
    directory = pathlib.Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    written = []
    for mesh in catalog.arena:
        if not mesh.readable:
            logger.debug(f"not exporting unreadable mesh {mesh.name}")
            continue
        path = directory / f"{_safe_name(mesh.name)}_{mesh.handle}.{file_type}"
        if file_type == "dat":
            write_mesh_record(mesh, path)
        else:
            mesh.to_trimesh().export(str(path), file_type=file_type)
        written.append(path)

    logger.info(f"Exported {len(written)} meshes to {directory}")
    return written


def catalog_state(catalog: AssetCatalog) -> dict:
    """Current scalar heights of every network and building."""
    return {
        "networks": [
            {
                "name": n.name,
                "surface_level": n.surface_level,
                "lanes": [lane.vertical_offset for lane in n.lanes],
                "bridge_pillar_offset": n.bridge_pillar_offset,
                "middle_pillar_offset": n.middle_pillar_offset,
            }
            for n in catalog.networks
        ],
        "buildings": [
            {"name": b.name, "props": [p.height for p in b.props or []]}
            for b in catalog.buildings
        ],
    }
