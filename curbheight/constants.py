"""Height bands, setting bounds, identifier tables, paths and logging."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# ── Vanilla geometry ─────────────────────────────────────────────────────
# Heights are signed vertical offsets from ground level (metres, Y-up).
ORIGINAL_CURB_HEIGHT = -0.30
DEFAULT_NEW_CURB_HEIGHT = -0.15
DEFAULT_BRIDGE_THRESHOLD = -0.5
DEFAULT_BRIDGE_SCALE = 0.25

# Depth triggers. Vanilla tram rails have tops at -0.225, LRT tram rails
# have bases at -0.5.
MIN_CURB_DEPTH_TRIGGER = -0.21
MAX_CURB_DEPTH_TRIGGER = -0.32
MAX_SUB_DEPTH_TRIGGER = -0.55
BRIDGE_DEPTH_CUTOFF = -5.0

# Minimum number of vertices in a band for a mesh to count as eligible, and
# the minimum number altered before a new buffer is committed (one quad).
MIN_BAND_VERTICES = 4

# ── Setting bounds (positive heights, as entered by the user) ────────────
MIN_CURB_HEIGHT = 0.07
MAX_CURB_HEIGHT = 0.29
MIN_BRIDGE_THRESHOLD = 0.55
MAX_BRIDGE_THRESHOLD = 2.0
MIN_BRIDGE_SCALE = 0.1
MAX_BRIDGE_SCALE = 1.0

# ── Pedestrian paths ─────────────────────────────────────────────────────
PATH_ORIGINAL_BASE_HEIGHT = 0.10
PATH_ORIGINAL_CURB_HEIGHT = 0.10
PATH_DEFAULT_BASE_HEIGHT = 0.05
PATH_DEFAULT_CURB_HEIGHT = 0.05
PATH_MIN_HEIGHT = 0.01
PATH_MAX_HEIGHT = 0.10
PATH_BASE_THRESHOLD = 0.11
PATH_GROUND_TOLERANCE = 0.01

# ── Parking lots ─────────────────────────────────────────────────────────
# Parking lot road meshes bottom out at -0.2794001.
PARKING_MIN_HEIGHT_TRIGGER = -0.279
INVISIBLE_PARKING_PROP = "Invisible Parking Space"

# ── Shaders used as a coarse mesh filter ─────────────────────────────────
ROAD_SHADERS = frozenset({
    "Custom/Net/Road",
    "Custom/Net/RoadBridge",
    "Custom/Net/TrainBridge",
})
ELECTRICITY_SHADER = "Custom/Net/Electricity"

# ── Identifier tables ────────────────────────────────────────────────────
# Asset identifiers are the name prefix before ASSET_ID_SEPARATOR
# (e.g. "1729876865.Cobblestone Road_Data" -> "1729876865").
ASSET_ID_SEPARATOR = "."

# Roads whose surface sits at a non-vanilla level.
# Value: (nominal surface level, top bound, bottom bound).
CUSTOM_ROAD_OVERRIDES = {
    "1729876865": (-0.15, -0.06, -0.31),   # Paris cobblestone roads
    "1521824617": (-0.14, -0.06, -0.31),   # Cobblestone Lane (1-tile wide)
}

# Roads built to a 10cm curb convention; all share one parameter set.
CURB_10CM_SURFACE = (-0.10, -0.06, -0.31)
CURB_10CM_ROADS = frozenset({
    "2211907342",   # BIG suburbs 2 lane
    "2211898750",   # BIG suburbs 2 lane worn
    # 0.1m sunken + Prague curbs
    "2643462494", "2643463468", "2643464569", "2643465478", "2643466243",
    "2643467084", "2643468733", "2643467962", "2643469133", "2643470190",
    "2643469678", "2643470754", "2643471147",
    "2270053832",   # Tiny Narrow Alley
})

# Roads processed with default bands but never given bridge deck changes.
# Extended at runtime by CurbSettings.bridge_exclusions.
BRIDGE_EXCLUDED_ROADS = frozenset()

# Path pack whose networks are treated as paths regardless of their AI.
PATH_PACK_ID = "2212198462"
PATH_EXCLUDED_PREFIXES = ("Nature Reserve", "2212198462.Natural Park")

# Parking lot roads (including PLR II): mesh and props raised.
PARKING_LOT_ROADS = frozenset({"1285201733", "1293870311", "1293869603", "1969111282"})

# Big Parking Lots: invisible parking space markers raised only.
BIG_PARKING_LOTS = frozenset({"2115188517", "2121900156", "2116510188"})

# Load environment variables
load_dotenv()

# Configure base paths
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
DATA_DIR = pathlib.Path(os.environ.get("CURBHEIGHT_DATA_DIR", BASE_DIR / "data"))
MESH_DIR = pathlib.Path(os.environ.get("CURBHEIGHT_MESH_DIR", DATA_DIR / "meshes"))
SETTINGS_FILE = pathlib.Path(os.environ.get("CURBHEIGHT_SETTINGS", DATA_DIR / "curbheight.json"))

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)
