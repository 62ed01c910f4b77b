import numpy as np
import pytest

from curbheight.config import CurbSettings
from curbheight.lifecycle import CurbController
from curbheight.meshio import ReplacementMeshLoader
from curbheight.models import (
    AssetCatalog, Lane, Mesh, NetKind, NetworkAsset, ParkingStructure, Prop, Segment,
)
from curbheight.simulation import HostHooks

# Four vertices per band: ground, curb, sub-surface (tram bed), bridge deck.
ROAD_PROFILE = [0.0] * 4 + [-0.30] * 4 + [-0.40] * 4 + [-1.0] * 4


def make_vertices(heights) -> np.ndarray:
    heights = np.asarray(heights, dtype=np.float32)
    vertices = np.zeros((len(heights), 3), dtype=np.float32)
    vertices[:, 0] = np.arange(len(heights))
    vertices[:, 1] = heights
    vertices[:, 2] = np.arange(len(heights)) % 2
    return vertices


def make_mesh(name, heights, readable=True) -> Mesh:
    count = len(heights)
    triangles = [i for k in range(max(count - 2, 0)) for i in (k, k + 1, k + 2)]
    return Mesh(name, vertices=make_vertices(heights), triangles=triangles,
                readable=readable)


class RecordingHooks(HostHooks):
    def __init__(self):
        self.lane_calls = []
        self.pillar_calls = []

    def update_lanes(self, networks):
        self.lane_calls.append(list(networks))

    def update_pillars(self, networks):
        self.pillar_calls.append(list(networks))


class CatalogBuilder:
    """Assembles small synthetic catalogs for handler and controller tests."""

    def __init__(self, mesh_dir):
        self.catalog = AssetCatalog()
        self.mesh_dir = mesh_dir

    @property
    def arena(self):
        return self.catalog.arena

    def mesh(self, name, heights, readable=True) -> int:
        return self.arena.add(make_mesh(name, heights, readable))

    def heights(self, handle) -> np.ndarray:
        return self.arena[handle].vertices[:, 1]

    def network(self, name, heights=ROAD_PROFILE, *, kind=NetKind.road,
                shader="Custom/Net/Road", mesh=None, lod=None, lod_heights=None,
                lanes=(), surface_level=-0.30, readable=True,
                pillar_offsets=(-1.0, -2.0)) -> NetworkAsset:
        if mesh is None:
            mesh = self.mesh(f"{name}_mesh", heights, readable)
        if lod is None and lod_heights is not None:
            lod = self.mesh(f"{name}_lod", lod_heights)

        network = NetworkAsset(
            name=name,
            kind=kind,
            surface_level=surface_level,
            segments=[Segment(main_mesh=mesh, lod_mesh=lod, shader=shader, material="road")],
            nodes=[],
            lanes=[lane if isinstance(lane, Lane) else Lane(lane, frozenset({"car"}))
                   for lane in lanes],
        )
        if kind == NetKind.road_bridge:
            network.bridge_pillar_offset, network.middle_pillar_offset = pillar_offsets
        self.catalog.networks.append(network)
        return network

    def building(self, name, heights=None, *, mesh=None, lod_heights=None,
                 props=()) -> ParkingStructure:
        if mesh is None and heights is not None:
            mesh = self.mesh(f"{name}_mesh", heights)
        lod = self.mesh(f"{name}_lod", lod_heights) if lod_heights is not None else None
        building = ParkingStructure(
            name=name, mesh=mesh, lod_mesh=lod,
            props=[Prop(prop_name, list(position)) for prop_name, position in props])
        self.catalog.buildings.append(building)
        return building

    def controller(self, settings=None, **kwargs) -> CurbController:
        kwargs.setdefault("hooks", RecordingHooks())
        kwargs.setdefault("loader", ReplacementMeshLoader(self.mesh_dir))
        return CurbController(self.catalog, settings or CurbSettings(), **kwargs)


@pytest.fixture
def build(tmp_path):
    mesh_dir = tmp_path / "meshes"
    mesh_dir.mkdir()
    return CatalogBuilder(mesh_dir)


@pytest.fixture
def settings():
    return CurbSettings()
