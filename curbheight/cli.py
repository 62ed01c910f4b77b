"""Click CLI commands for curb height adjustment."""

import json
import logging
import pathlib
from typing import Optional

import click
import trimesh

from .catalog import catalog_state, export_meshes, load_catalog
from .config import CurbSettings, load_settings, save_settings
from .constants import MIN_BAND_VERTICES
from .geometry import BandBounds, classify_vertices
from .handler import ScanStatus
from .lifecycle import CurbController
from .meshio import read_mesh_record
from .models import Mesh

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """Curb height CLI for classifying and adjusting network meshes."""
    pass


def _read_mesh(path: pathlib.Path) -> Mesh:
    if path.suffix.lower() == ".dat":
        return read_mesh_record(path)
    return Mesh.from_trimesh(path.stem, trimesh.load(str(path), force='mesh', process=False))


@cli.command()
@click.argument('mesh_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--bridge/--no-bridge', default=False, help='Classify as a bridge-capable asset')
@click.option('--threshold', '-t', default=0.5, help='Bridge threshold (positive metres)')
def classify(mesh_file: str, bridge: bool, threshold: float):
    """Report height-band vertex counts for one mesh file."""
    try:
        mesh = _read_mesh(pathlib.Path(mesh_file))
        result = classify_vertices(mesh.vertices, MIN_BAND_VERTICES,
                                   BandBounds.with_threshold(-abs(threshold)), bridge)
    except Exception as e:
        logger.error(f"Error classifying mesh: {e}")
        raise click.ClickException(str(e))

    click.echo(f"{mesh.name}: {mesh.vertex_count} vertices")
    click.echo(f"  curb:        {result.curb_count:6d}  eligible={result.eligible_curbs}")
    click.echo(f"  sub-surface: {result.sub_count:6d}  eligible={result.eligible_sub}")
    click.echo(f"  bridge:      {result.bridge_count:6d}  eligible={result.eligible_bridge}")
    if result.full_depth:
        click.echo("  full depth structure (no bridge adjustment)")
    click.echo(f"  eligible: {result.eligible}")


def _scan(catalog_file: str, settings: CurbSettings) -> CurbController:
    catalog = load_catalog(catalog_file)
    controller = CurbController(catalog, settings)
    results = controller.scan()
    controller.on_level_loaded()

    failed = [r for r in results if r.status == ScanStatus.failed]
    for result in failed:
        click.echo(f"  [failed] {result.name}: {result.reason}", err=True)
    return controller


@cli.command()
@click.argument('catalog_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--settings', '-s', 'settings_file', default=None, help='Settings JSON file')
def inspect(catalog_file: str, settings_file: Optional[str]):
    """Scan a catalog and list every recorded asset."""
    try:
        controller = _scan(catalog_file, load_settings(settings_file))
    except Exception as e:
        logger.error(f"Error scanning catalog: {e}")
        raise click.ClickException(str(e))

    rows = controller.describe()
    for row in rows:
        flags = []
        if row["eligible_bridge"]:
            flags.append("bridge")
        if row["adjust_pillars"]:
            flags.append("pillars")
        if row.get("shared_mesh"):
            flags.append("shared")
        click.echo(f"[{row['category']:7s}] {row['name']} ({row['override']}): "
                   f"{row['segments']} segments, {row['nodes']} nodes, "
                   f"{row['lanes']} lanes {' '.join(flags)}".rstrip())
    click.echo(f"\n{len(rows)} recorded assets")


@cli.command()
@click.argument('catalog_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', required=True, help='Output directory for adjusted meshes')
@click.option('--settings', '-s', 'settings_file', default=None, help='Settings JSON file')
@click.option('--curb-height', type=float, default=None, help='New curb height (metres, 0.07 - 0.29)')
@click.option('--bridges', type=bool, default=None, help='Compress bridge decks (yes/no)')
@click.option('--bridge-threshold', type=float, default=None, help='Bridge threshold (metres)')
@click.option('--bridge-scale', type=float, default=None, help='Bridge scale factor')
@click.option('--road-lods', type=bool, default=None, help='Adjust road LOD meshes (yes/no)')
@click.option('--paths', type=bool, default=None, help='Adjust pedestrian paths (yes/no)')
@click.option('--path-base-height', type=float, default=None, help='Path base height (metres)')
@click.option('--path-curb-height', type=float, default=None, help='Path curb height (metres)')
@click.option('--path-lods', type=bool, default=None, help='Adjust path LOD meshes (yes/no)')
@click.option('--format', '-f', 'file_type', default='ply', help='Mesh export format (trimesh type or dat)')
@click.option('--save', is_flag=True, help='Persist the resulting settings')
def adjust(catalog_file: str, output: str, settings_file: Optional[str], file_type: str,
           save: bool, **overrides):
    """Scan a catalog, apply curb settings and export the adjusted meshes."""
    field_names = {
        "curb_height": "curb_height",
        "bridges": "enable_bridges",
        "bridge_threshold": "bridge_threshold",
        "bridge_scale": "bridge_scale",
        "road_lods": "do_road_lods",
        "paths": "enable_paths",
        "path_base_height": "path_base_height",
        "path_curb_height": "path_curb_height",
        "path_lods": "do_path_lods",
    }
    try:
        settings = load_settings(settings_file)
        controller = _scan(catalog_file, settings)

        updates = {field_names[k]: v for k, v in overrides.items() if v is not None}
        new_settings = settings.updated(**updates)
        controller.apply(new_settings)
        ran = controller.queue.run_pending()
        logger.info(f"Ran {ran} deferred actions")

        written = export_meshes(controller.catalog, output, file_type=file_type)
        state_path = pathlib.Path(output) / "state.json"
        state_path.write_text(json.dumps(catalog_state(controller.catalog), indent=2),
                              encoding="utf-8")
        if save:
            save_settings(new_settings, settings_file)
    except Exception as e:
        logger.error(f"Error adjusting catalog: {e}")
        raise click.ClickException(str(e))

    click.echo(f"Curb height {new_settings.curb_height:.2f} m: "
               f"{len(controller.describe())} assets recorded, {len(written)} meshes written")
    click.echo(f"State: {state_path}")
