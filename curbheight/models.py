"""Meshes, the mesh arena, and the network / building asset model."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

import numpy as np
import trimesh

logger = logging.getLogger(__name__)


class MeshNotReadableError(RuntimeError):
    """The host does not expose this mesh's vertex buffer."""


def _frozen(values, dtype, width: int) -> np.ndarray:
    """Copy *values* into a read-only ``(n, width)`` array."""
    arr = np.array(values if values is not None else [], dtype=dtype)
    arr = arr.reshape(-1, width) if width > 1 else arr.reshape(-1)
    arr.flags.writeable = False
    return arr


class Mesh:
    """Vertex buffer plus topology that is never modified.

    The vertex buffer is write-only-by-replacement: ``mesh.vertices = new``
    swaps in a fresh read-only array; element edits raise ``ValueError``.
    """

    def __init__(self, name: str, vertices=None, triangles=None, uvs=None,
                 normals=None, colors=None, readable: bool = True):
        self.name = name
        self.handle: Optional[int] = None
        self.readable = readable
        self._vertices = _frozen(vertices, np.float32, 3)
        self.triangles = _frozen(triangles, np.int32, 1)
        self.uvs = _frozen(uvs, np.float32, 2)
        self.normals = _frozen(normals, np.float32, 3)
        self.colors = _frozen(colors, np.float32, 4)

    @property
    def vertices(self) -> np.ndarray:
        if not self.readable:
            raise MeshNotReadableError(f"mesh {self.name!r} is not readable")
        return self._vertices

    @vertices.setter
    def vertices(self, values) -> None:
        new = _frozen(values, np.float32, 3)
        if len(new) != len(self._vertices):
            raise ValueError(f"mesh {self.name!r}: vertex count changed "
                             f"({len(self._vertices)} -> {len(new)})")
        self._vertices = new

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    def to_trimesh(self) -> trimesh.Trimesh:
        """Return a trimesh copy for export (no vertex merging)."""
        faces = self.triangles.reshape(-1, 3) if len(self.triangles) else None
        kwargs = {}
        if len(self.normals) == len(self._vertices) and len(self.normals):
            kwargs["vertex_normals"] = self.normals
        if len(self.colors) == len(self._vertices) and len(self.colors):
            kwargs["vertex_colors"] = np.clip(self.colors, 0.0, 1.0)
        return trimesh.Trimesh(vertices=self._vertices.astype(np.float64),
                               faces=faces, process=False, **kwargs)

    @classmethod
    def from_trimesh(cls, name: str, tm: trimesh.Trimesh,
                     readable: bool = True) -> "Mesh":
        """Build a mesh from a loaded trimesh, keeping its vertex order."""
        uvs = None
        visual = getattr(tm, "visual", None)
        if getattr(visual, "uv", None) is not None:
            uvs = visual.uv
        colors = None
        if getattr(visual, "kind", None) == "vertex":
            colors = np.asarray(visual.vertex_colors, dtype=np.float32) / 255.0
        return cls(name, vertices=tm.vertices, triangles=tm.faces.reshape(-1),
                   uvs=uvs, normals=tm.vertex_normals, colors=colors,
                   readable=readable)

    def __repr__(self) -> str:
        return f"Mesh({self.name!r}, handle={self.handle}, vertices={len(self._vertices)})"


class MeshArena:
    """Owns every mesh and hands out stable integer handles.

    Many assets can reference the same handle; identity tracking (checked /
    processed sets) is done on handles rather than on objects.
    """

    def __init__(self):
        self._meshes: Dict[int, Mesh] = {}
        self._next = 1

    def add(self, mesh: Mesh) -> int:
        handle = self._next
        self._next += 1
        mesh.handle = handle
        self._meshes[handle] = mesh
        return handle

    def get(self, handle: Optional[int]) -> Optional[Mesh]:
        if handle is None:
            return None
        return self._meshes.get(handle)

    def __getitem__(self, handle: int) -> Mesh:
        return self._meshes[handle]

    def __contains__(self, handle) -> bool:
        return handle in self._meshes

    def __iter__(self) -> Iterator[Mesh]:
        return iter(self._meshes.values())

    def __len__(self) -> int:
        return len(self._meshes)


class NetKind(str, Enum):
    road = "road"
    road_bridge = "road_bridge"
    road_tunnel = "road_tunnel"
    dam = "dam"
    pedestrian_way = "pedestrian_way"
    pedestrian_bridge = "pedestrian_bridge"
    other = "other"

    @property
    def is_road(self) -> bool:
        return self in (NetKind.road, NetKind.road_bridge,
                        NetKind.road_tunnel, NetKind.dam)

    @property
    def is_path(self) -> bool:
        return self in (NetKind.pedestrian_way, NetKind.pedestrian_bridge)

    @property
    def is_elevated(self) -> bool:
        """Bridge networks whose zero-level path surface gets raised."""
        return self in (NetKind.road_bridge, NetKind.pedestrian_bridge)


@dataclass(eq=False)
class Segment:
    main_mesh: Optional[int] = None
    lod_mesh: Optional[int] = None
    shader: Optional[str] = None
    material: Optional[str] = None


@dataclass(eq=False)
class Node:
    main_mesh: Optional[int] = None
    lod_mesh: Optional[int] = None
    shader: Optional[str] = None
    material: Optional[str] = None


@dataclass(eq=False)
class Lane:
    vertical_offset: float = 0.0
    vehicle_types: frozenset = frozenset()

    @property
    def has_trams(self) -> bool:
        return "tram" in self.vehicle_types


@dataclass(eq=False)
class NetworkAsset:
    """One loaded network prefab (road, path, bridge, tunnel, dam)."""
    name: str
    kind: NetKind = NetKind.road
    surface_level: float = 0.0
    segments: List[Segment] = field(default_factory=list)
    nodes: List[Node] = field(default_factory=list)
    lanes: List[Lane] = field(default_factory=list)
    # Road bridge pillar offsets (None for anything that isn't a road bridge).
    bridge_pillar_offset: Optional[float] = None
    middle_pillar_offset: Optional[float] = None

    @property
    def is_bridge(self) -> bool:
        return self.kind == NetKind.road_bridge


@dataclass(eq=False)
class Prop:
    name: Optional[str]
    position: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])

    @property
    def height(self) -> float:
        return self.position[1]

    @height.setter
    def height(self, value: float) -> None:
        self.position[1] = value


@dataclass(eq=False)
class ParkingStructure:
    """Building prefab; only a few parking lot identifiers are ever touched."""
    name: str
    mesh: Optional[int] = None
    lod_mesh: Optional[int] = None
    props: Optional[List[Prop]] = field(default_factory=list)


@dataclass
class AssetCatalog:
    """Every loaded prefab plus the arena that owns their meshes."""
    arena: MeshArena = field(default_factory=MeshArena)
    networks: List[NetworkAsset] = field(default_factory=list)
    buildings: List[ParkingStructure] = field(default_factory=list)

    def network(self, name: str) -> Optional[NetworkAsset]:
        return next((n for n in self.networks if n.name == name), None)

    def building(self, name: str) -> Optional[ParkingStructure]:
        return next((b for b in self.buildings if b.name == name), None)
