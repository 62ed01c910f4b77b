import numpy as np
import pytest

from conftest import ROAD_PROFILE
from curbheight.config import CurbSettings
from curbheight.models import NetKind
from curbheight.simulation import ActionQueue


def _snapshot(build):
    meshes = {mesh.handle: mesh.vertices.copy() for mesh in build.arena if mesh.readable}
    networks = [(n.surface_level, [lane.vertical_offset for lane in n.lanes],
                 n.bridge_pillar_offset, n.middle_pillar_offset)
                for n in build.catalog.networks]
    props = [[p.height for p in b.props] for b in build.catalog.buildings]
    return meshes, networks, props


def _assert_same(a, b):
    meshes_a, networks_a, props_a = a
    meshes_b, networks_b, props_b = b
    assert meshes_a.keys() == meshes_b.keys()
    for handle in meshes_a:
        np.testing.assert_array_equal(meshes_a[handle], meshes_b[handle])
    assert networks_a == networks_b
    assert props_a == props_b


@pytest.fixture
def city(build):
    build.network("Basic Road", lod_heights=ROAD_PROFILE, lanes=[-0.30])
    build.network("Highway Bridge", kind=NetKind.road_bridge, lanes=[-0.30])
    shared = build.network("Road A")
    build.network("Road B", mesh=shared.segments[0].main_mesh)
    build.network("2211907342.BIG Suburbs", [0.0] * 4 + [-0.10] * 4, surface_level=-0.10)
    build.network("Gravel Path", [0.0] * 4 + [0.05] * 4 + [0.2] * 4, kind=NetKind.pedestrian_way)
    build.network("2212198462.Pack Road", lanes=[-0.30])
    build.building("1285201733.Parking Lot", [-0.2794] * 4 + [0.0] * 4,
                   props=[("Bench", (0.0, -0.1, 0.0))])
    return build


def test_revert_restores_everything_bit_for_bit(city):
    before = _snapshot(city)
    controller = city.controller(CurbSettings(do_road_lods=True, enable_paths=True))

    controller.scan()
    controller.on_level_loaded()
    controller.apply(controller.settings.updated(curb_height=0.25))
    controller.revert()

    _assert_same(_snapshot(city), before)


def test_apply_is_idempotent(city):
    controller = city.controller(CurbSettings(do_road_lods=True, enable_paths=True))
    controller.scan()

    controller.apply()
    once = _snapshot(city)
    controller.apply()
    controller.apply()

    _assert_same(_snapshot(city), once)


def test_apply_after_change_matches_fresh_scan(city):
    target = CurbSettings(curb_height=0.2, do_road_lods=True, enable_paths=True)
    controller = city.controller(CurbSettings())
    controller.scan()
    controller.apply(target)
    changed = _snapshot(city)

    controller.revert()
    fresh = city.controller(target)
    fresh.scan()

    _assert_same(_snapshot(city), changed)


def test_cycles_survive_repeated_revert_and_apply(city):
    before = _snapshot(city)
    controller = city.controller()
    controller.scan()

    for height in (0.1, 0.2, 0.29, 0.07):
        controller.apply(controller.settings.updated(curb_height=height))
        controller.revert()
        controller.revert()

    _assert_same(_snapshot(city), before)


def _pack_road(build):
    return next(n for n in build.catalog.networks if n.name.startswith("2212198462"))


def test_path_pack_road_takes_new_curb_height(city):
    mesh = _pack_road(city).segments[0].main_mesh
    before = city.heights(mesh).copy()
    controller = city.controller()
    controller.scan()

    controller.apply(controller.settings.updated(curb_height=0.25))
    np.testing.assert_allclose(city.heights(mesh)[4:8], [-0.25] * 4, atol=1e-6)

    controller.revert()
    np.testing.assert_array_equal(city.heights(mesh), before)


def test_path_pack_road_keeps_road_changes_on_path_revert(city):
    mesh = _pack_road(city).segments[0].main_mesh
    controller = city.controller(CurbSettings(enable_paths=True))
    controller.scan()

    controller.revert(roads=False)
    np.testing.assert_allclose(city.heights(mesh)[4:8], [-0.15] * 4, atol=1e-6)

    controller.apply(controller.settings.updated(curb_height=0.2), paths=False)
    controller.apply(roads=False)
    np.testing.assert_allclose(city.heights(mesh)[4:8], [-0.2] * 4, atol=1e-6)


def test_apply_queues_lane_and_pillar_work_once(city):
    queue = ActionQueue()
    controller = city.controller(queue=queue)
    controller.scan()
    assert queue.pending == 0

    controller.apply()
    assert queue.pending == 2

    assert queue.run_pending() == 2
    hooks = controller.hooks
    assert len(hooks.lane_calls) == 1
    assert {n.name for n in hooks.lane_calls[0]} >= {"Basic Road", "Highway Bridge"}
    assert [n.name for n in hooks.pillar_calls[0]] == ["Highway Bridge"]


def test_pillar_refresh_follows_update_setting(city):
    controller = city.controller(CurbSettings(update_pillars=False))
    controller.scan()

    controller.revert()
    assert controller.queue.pending == 1


def test_paths_only_apply_skips_lane_work(city, settings):
    controller = city.controller(settings)
    controller.scan()

    controller.apply(settings.updated(enable_paths=True), roads=False)
    assert controller.queue.pending == 0


def test_level_loaded_refreshes_pillars(city):
    enabled = city.controller()
    enabled.scan()
    enabled.on_level_loaded()
    assert enabled.queue.pending == 1

    disabled = city.controller(CurbSettings(enable_bridges=False))
    assert disabled.queue.pending == 0
    disabled.on_level_loaded()
    assert disabled.queue.pending == 0


def test_failing_action_does_not_block_the_rest():
    queue = ActionQueue()
    ran = []

    def broken():
        raise RuntimeError("host not ready")

    queue.add_action(broken)
    queue.add_action(lambda: ran.append(True))

    assert queue.run_pending() == 2
    assert ran == [True]
    assert queue.pending == 0


def test_describe_lists_every_record(city):
    controller = city.controller()
    controller.scan()

    rows = {row["name"]: row for row in controller.describe()}
    assert rows["Highway Bridge"]["adjust_pillars"]
    assert rows["2211907342.BIG Suburbs"]["override"] == "cohort"
    assert rows["Gravel Path"]["category"] == "paths"
    assert rows["1285201733.Parking Lot"]["category"] == "parking"
