import numpy as np
import pytest

from conftest import ROAD_PROFILE, make_mesh
from curbheight.config import CurbSettings
from curbheight.handler import ScanStatus
from curbheight.meshio import write_mesh_record
from curbheight.models import Lane, NetKind, NetworkAsset, Segment


def test_scan_adjusts_curbs_lanes_and_surface(build):
    road = build.network("Basic Road", lanes=[-0.30, 0.0, -0.25])
    controller = build.controller()

    results = controller.scan()

    assert [r.status for r in results] == [ScanStatus.altered]
    heights = build.heights(road.segments[0].main_mesh)
    np.testing.assert_allclose(heights[4:8], [-0.15] * 4, atol=1e-6)
    np.testing.assert_allclose(heights[8:12], [-0.25] * 4, atol=1e-6)
    # Not a bridge: the deck band is untouched.
    np.testing.assert_allclose(heights[12:], [-1.0] * 4)
    assert road.surface_level == -0.15
    assert [lane.vertical_offset for lane in road.lanes] == pytest.approx([-0.15, 0.0, -0.125])


def test_apply_sets_recorded_lanes_to_surface_level(build):
    road = build.network("Basic Road", lanes=[-0.30, 0.0, -0.25])
    controller = build.controller()
    controller.scan()

    controller.apply()
    assert [lane.vertical_offset for lane in road.lanes] == pytest.approx([-0.15, 0.0, -0.15])

    controller.revert()
    assert [lane.vertical_offset for lane in road.lanes] == [-0.30, 0.0, -0.25]


def test_non_vanilla_surface_level_is_left_alone(build):
    road = build.network("Raised Road", surface_level=-0.2)
    controller = build.controller()
    controller.scan()

    assert road.surface_level == -0.2
    assert controller.roads.records.get(road).surface_level is None
    controller.revert()
    assert road.surface_level == -0.2


def test_shared_mesh_is_mutated_once(build):
    first = build.network("Road A")
    second = build.network("Road B", mesh=first.segments[0].main_mesh)
    controller = build.controller()

    results = controller.scan()

    # The second road still gets its own surface level changed.
    assert [r.status for r in results] == [ScanStatus.altered, ScanStatus.altered]
    assert not controller.roads.records.get(second).segments
    np.testing.assert_allclose(build.heights(first.segments[0].main_mesh)[4:8],
                               [-0.15] * 4, atol=1e-6)


def test_non_road_shader_is_ignored(build):
    build.network("Decorated Road", shader="Custom/Buildings/Building/Default", surface_level=0.0)
    controller = build.controller()

    assert [r.status for r in controller.scan()] == [ScanStatus.unchanged]
    assert len(controller.roads.records) == 0


def test_lods_follow_setting(build, settings):
    road = build.network("Basic Road", lod_heights=ROAD_PROFILE)
    lod = road.segments[0].lod_mesh
    controller = build.controller(settings)
    controller.scan()

    np.testing.assert_allclose(build.heights(lod)[4:8], [-0.30] * 4, atol=1e-6)

    controller.apply(settings.updated(do_road_lods=True))
    np.testing.assert_allclose(build.heights(lod)[4:8], [-0.15] * 4, atol=1e-6)

    controller.apply(settings.updated(do_road_lods=False))
    np.testing.assert_allclose(build.heights(lod)[4:8], [-0.30] * 4, atol=1e-6)


def test_shared_lod_is_mutated_once_and_restored(build):
    settings = CurbSettings(do_road_lods=True)
    first = build.network("Road A", lod_heights=ROAD_PROFILE)
    lod = first.segments[0].lod_mesh
    build.network("Road B", lod=lod)
    original = build.arena[lod].vertices
    controller = build.controller(settings)

    controller.scan()
    controller.apply()
    np.testing.assert_allclose(build.heights(lod)[4:8], [-0.15] * 4, atol=1e-6)

    controller.revert()
    np.testing.assert_array_equal(build.arena[lod].vertices, original)


def test_unreadable_mesh_without_replacement_is_skipped(build):
    road = build.network("Locked Road", readable=False, surface_level=0.0)
    controller = build.controller()

    assert [r.status for r in controller.scan()] == [ScanStatus.unchanged]
    assert road not in controller.roads.records


def test_unreadable_mesh_is_substituted(build):
    road = build.network("Locked Road", readable=False)
    handle = road.segments[0].main_mesh
    write_mesh_record(make_mesh("Locked Road_mesh", ROAD_PROFILE), build.mesh_dir / "Locked Road_mesh.dat")
    controller = build.controller()

    assert [r.status for r in controller.scan()] == [ScanStatus.altered]
    assert road.segments[0].main_mesh != handle
    np.testing.assert_allclose(build.heights(road.segments[0].main_mesh)[4:8],
                               [-0.15] * 4, atol=1e-6)


def test_one_bad_network_does_not_stop_the_scan(build):
    build.catalog.networks.append(NetworkAsset("Broken Road", kind=None))
    build.catalog.networks.append(NetworkAsset("No Segments", segments=None))
    road = build.network("Basic Road")
    controller = build.controller()

    results = controller.roads.scan(build.catalog.networks, controller.settings)

    assert [r.status for r in results] == [ScanStatus.failed, ScanStatus.skipped, ScanStatus.altered]
    assert road in controller.roads.records


def test_custom_surface_road(build):
    heights = [0.0] * 4 + [-0.15] * 4 + [-0.40] * 4
    road = build.network("1729876865.Cobblestone Road", heights, surface_level=-0.15,
                         lanes=[-0.15, -0.30])
    mesh = road.segments[0].main_mesh
    controller = build.controller(CurbSettings(curb_height=0.2))
    controller.scan()

    np.testing.assert_allclose(build.heights(mesh), [0.0] * 4 + [-0.2] * 4 + [-0.40] * 4, atol=1e-6)
    assert road.surface_level == -0.2
    assert [lane.vertical_offset for lane in road.lanes] == [-0.2, -0.30]

    controller.revert()
    np.testing.assert_allclose(build.heights(mesh), heights, atol=1e-6)
    assert road.surface_level == -0.15
    assert [lane.vertical_offset for lane in road.lanes] == [-0.15, -0.30]


def test_ten_centimetre_cohort_road(build):
    road = build.network("2211907342.BIG Suburbs", [0.0] * 4 + [-0.10] * 4, surface_level=-0.10)
    controller = build.controller()
    controller.scan()

    np.testing.assert_allclose(build.heights(road.segments[0].main_mesh)[4:], [-0.15] * 4, atol=1e-6)
    assert road.surface_level == -0.15
    assert controller.roads.records.get(road).params.label == "10cm curbs"


def test_tram_catenaries_follow_surface(build, settings):
    road = build.network("Tram Road", lanes=[Lane(-0.30, frozenset({"tram"}))])
    wire = build.mesh("Tram Wire", [5.0] * 4)
    road.segments.append(Segment(main_mesh=wire, shader="Custom/Net/Electricity", material="wire"))
    controller = build.controller(settings)

    controller.scan()
    np.testing.assert_allclose(build.heights(wire), [5.15] * 4, atol=1e-6)

    controller.apply()
    np.testing.assert_allclose(build.heights(wire), [5.15] * 4, atol=1e-6)

    controller.apply(settings.updated(do_tram_catenaries=False))
    np.testing.assert_allclose(build.heights(wire), [5.0] * 4, atol=1e-6)

    controller.apply(settings.updated(curb_height=0.2))
    np.testing.assert_allclose(build.heights(wire), [5.1] * 4, atol=1e-6)

    controller.revert()
    np.testing.assert_allclose(build.heights(wire), [5.0] * 4, atol=1e-6)


def test_road_without_trams_keeps_wires(build):
    road = build.network("Bus Road")
    wire = build.mesh("Trolley Wire", [5.0] * 4)
    road.segments.append(Segment(main_mesh=wire, shader="Custom/Net/Electricity", material="wire"))
    build.controller().scan()

    np.testing.assert_allclose(build.heights(wire), [5.0] * 4)


def test_paths_are_not_roads(build):
    build.network("Gravel Path", [0.0, 0.05, 0.2, 0.2], kind=NetKind.pedestrian_way)
    controller = build.controller()
    controller.scan_networks()

    assert len(controller.roads.records) == 0
