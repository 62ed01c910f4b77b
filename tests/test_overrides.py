import pytest

from curbheight.config import CurbSettings
from curbheight.overrides import (
    DEFAULT_PARAMS, OverrideRegistry, ParamKind, ParkingKind, asset_id,
)


@pytest.mark.parametrize("name, expected", [
    ("1729876865.Cobblestone Road_Data", "1729876865"),
    ("Basic Road", None),
    (".hidden", None),
    (None, None),
])
def test_asset_id(name, expected):
    assert asset_id(name) == expected


def test_custom_surface_road():
    params = OverrideRegistry().resolve("1729876865.Cobblestone Road_Data")

    assert params.kind == ParamKind.custom
    assert params.is_override
    assert not params.allow_bridge
    assert params.surface.surface_level == -0.15
    assert (params.surface.top_bound, params.surface.bottom_bound) == (-0.06, -0.31)


def test_ten_centimetre_cohort():
    params = OverrideRegistry().resolve("2211907342.BIG Suburbs 2 Lane")

    assert params.kind == ParamKind.cohort
    assert params.label == "10cm curbs"
    assert params.surface.surface_level == -0.10


def test_bridge_exclusions_from_settings():
    registry = OverrideRegistry.from_settings(CurbSettings(bridge_exclusions=["555"]))
    params = registry.resolve("555.Highway Bridge")

    assert params.kind == ParamKind.bridge_excluded
    assert not params.is_override
    assert not params.allow_bridge


def test_custom_table_wins_over_exclusion():
    registry = OverrideRegistry(bridge_exclusions=["1729876865"])

    assert registry.resolve("1729876865.Cobblestone").kind == ParamKind.custom


def test_unknown_asset_uses_defaults():
    registry = OverrideRegistry()

    assert registry.resolve("Basic Road") is DEFAULT_PARAMS
    assert registry.resolve("42.Some Road") is DEFAULT_PARAMS
    assert DEFAULT_PARAMS.allow_bridge


def test_parking_kinds():
    registry = OverrideRegistry()

    assert registry.parking_kind("1285201733.Parking Lot") == ParkingKind.parking_lot_road
    assert registry.parking_kind("2115188517.Big Lot") == ParkingKind.big_parking_lot
    assert registry.parking_kind("Office") is None


def test_path_pack_and_nature_reserve():
    assert OverrideRegistry.is_path_pack("2212198462.Gravel Path")
    assert not OverrideRegistry.is_path_pack("Gravel Path")
    assert OverrideRegistry.is_excluded_path("Nature Reserve Path")
    assert OverrideRegistry.is_excluded_path("2212198462.Natural Park Path")
    assert not OverrideRegistry.is_excluded_path("2212198462.Gravel Path")
