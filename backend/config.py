import os
import pathlib

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
DATA_DIR = BASE_DIR / "data"

# Catalog loaded on first request when no session was installed explicitly.
CATALOG_PATH = os.environ.get("CURBHEIGHT_CATALOG", "").strip() or None
SETTINGS_PATH = pathlib.Path(os.environ.get("CURBHEIGHT_SETTINGS", DATA_DIR / "curbheight.json"))

# Set CURBHEIGHT_NO_SAVE=1 to keep settings changes in memory only
SAVE_SETTINGS = os.environ.get("CURBHEIGHT_NO_SAVE", "").strip() not in ("1", "true", "yes")

CORS_ORIGINS = [
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
