import json

import pytest
from click.testing import CliRunner

from conftest import ROAD_PROFILE, make_mesh
from curbheight.cli import cli
from curbheight.meshio import read_mesh_record, write_mesh_record


@pytest.fixture
def catalog_file(tmp_path):
    write_mesh_record(make_mesh("road", ROAD_PROFILE), tmp_path / "road.dat")
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps({
        "meshes": {"road": {"file": "road.dat"}},
        "networks": [
            {"name": "Basic Road", "surface_level": -0.3,
             "segments": [{"mesh": "road", "shader": "Custom/Net/Road"}],
             "lanes": [{"vertical_offset": -0.3}]},
        ],
    }), encoding="utf-8")
    return path


def test_classify(tmp_path):
    path = write_mesh_record(make_mesh("road", ROAD_PROFILE), tmp_path / "road.dat")

    result = CliRunner().invoke(cli, ["classify", str(path), "--bridge"])

    assert result.exit_code == 0, result.output
    assert "16 vertices" in result.output
    lines = {line.split(":")[0].strip(): line.split() for line in result.output.splitlines()}
    assert lines["curb"] == ["curb:", "4", "eligible=True"]
    assert lines["eligible"] == ["eligible:", "True"]


def test_inspect(catalog_file, tmp_path):
    result = CliRunner().invoke(cli, ["inspect", str(catalog_file),
                                      "--settings", str(tmp_path / "settings.json")])

    assert result.exit_code == 0, result.output
    assert "Basic Road (default): 1 segments, 0 nodes, 1 lanes" in result.output
    assert "1 recorded assets" in result.output


def test_adjust_exports_meshes_and_state(catalog_file, tmp_path):
    out = tmp_path / "out"
    settings_path = tmp_path / "settings.json"

    result = CliRunner().invoke(cli, [
        "adjust", str(catalog_file), "-o", str(out), "--settings", str(settings_path),
        "--curb-height", "0.2", "--format", "dat", "--save",
    ])

    assert result.exit_code == 0, result.output
    state = json.loads((out / "state.json").read_text(encoding="utf-8"))
    assert state["networks"][0]["surface_level"] == -0.2
    mesh = read_mesh_record(next(out.glob("*.dat")))
    assert abs(float(mesh.vertices[4, 1]) + 0.2) < 1e-6
    assert json.loads(settings_path.read_text(encoding="utf-8"))["curb_height"] == 0.2


def test_adjust_reports_bad_catalog(tmp_path):
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")

    result = CliRunner().invoke(cli, ["adjust", str(bad), "-o", str(tmp_path / "out"),
                                      "--settings", str(tmp_path / "settings.json")])

    assert result.exit_code == 1
    assert "not valid JSON" in result.output
