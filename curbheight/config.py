"""User settings: validated, clamped, persisted as JSON."""

import logging
import pathlib
from typing import List, Optional, Union

from pydantic import BaseModel, field_validator

from .constants import (
    DEFAULT_BRIDGE_SCALE, DEFAULT_BRIDGE_THRESHOLD, DEFAULT_NEW_CURB_HEIGHT,
    MAX_BRIDGE_SCALE, MAX_BRIDGE_THRESHOLD, MAX_CURB_HEIGHT, MIN_BRIDGE_SCALE,
    MIN_BRIDGE_THRESHOLD, MIN_CURB_HEIGHT, ORIGINAL_CURB_HEIGHT,
    PATH_DEFAULT_BASE_HEIGHT, PATH_DEFAULT_CURB_HEIGHT, PATH_MAX_HEIGHT,
    PATH_MIN_HEIGHT, SETTINGS_FILE,
)

logger = logging.getLogger(__name__)

SETTINGS_VERSION = 1


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(float(value), low), high)


class CurbSettings(BaseModel):
    """Configured heights are positive figures in metres.

    Supplied values are clamped to their permitted ranges; defaults are
    used as-is.
    """
    version: int = SETTINGS_VERSION
    detailed_logging: bool = False

    curb_height: float = -DEFAULT_NEW_CURB_HEIGHT
    do_road_lods: bool = False
    do_tram_catenaries: bool = True

    enable_bridges: bool = True
    update_pillars: bool = True
    bridge_threshold: float = -DEFAULT_BRIDGE_THRESHOLD
    bridge_scale: float = DEFAULT_BRIDGE_SCALE
    bridge_exclusions: List[str] = []

    enable_paths: bool = False
    path_base_height: float = PATH_DEFAULT_BASE_HEIGHT
    path_curb_height: float = PATH_DEFAULT_CURB_HEIGHT
    do_path_lods: bool = False

    @field_validator("curb_height")
    @classmethod
    def _clamp_curb_height(cls, v):
        return _clamp(v, MIN_CURB_HEIGHT, MAX_CURB_HEIGHT)

    @field_validator("bridge_threshold")
    @classmethod
    def _clamp_bridge_threshold(cls, v):
        return _clamp(v, MIN_BRIDGE_THRESHOLD, MAX_BRIDGE_THRESHOLD)

    @field_validator("bridge_scale")
    @classmethod
    def _clamp_bridge_scale(cls, v):
        return _clamp(v, MIN_BRIDGE_SCALE, MAX_BRIDGE_SCALE)

    @field_validator("path_base_height", "path_curb_height")
    @classmethod
    def _clamp_path_height(cls, v):
        return _clamp(v, PATH_MIN_HEIGHT, PATH_MAX_HEIGHT)

    def updated(self, **changes) -> "CurbSettings":
        """Copy with *changes* validated and clamped; other fields untouched."""
        validated = CurbSettings.model_validate(changes)
        return self.model_copy(update={key: getattr(validated, key) for key in changes})

    # ── Derived signed quantities ────────────────────────────────────────

    @property
    def surface_level(self) -> float:
        """New road surface level (negative)."""
        return -self.curb_height

    @property
    def curb_multiplier(self) -> float:
        return self.surface_level / ORIGINAL_CURB_HEIGHT

    @property
    def curb_shift(self) -> float:
        """Upward shift from the vanilla surface to the new one."""
        return self.surface_level - ORIGINAL_CURB_HEIGHT

    @property
    def signed_bridge_threshold(self) -> float:
        return -self.bridge_threshold


def configure_logging(settings: CurbSettings) -> None:
    level = logging.DEBUG if settings.detailed_logging else logging.INFO
    logging.getLogger("curbheight").setLevel(level)


def load_settings(path: Optional[Union[str, pathlib.Path]] = None) -> CurbSettings:
    """Load settings from *path*, falling back to defaults if unavailable."""
    path = pathlib.Path(path) if path is not None else SETTINGS_FILE
    if not path.exists():
        logger.info(f"No settings file at {path}; using defaults")
        return CurbSettings()

    try:
        settings = CurbSettings.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Error reading settings file {path}: {e}; using defaults")
        return CurbSettings()

    configure_logging(settings)
    return settings


def save_settings(settings: CurbSettings,
                  path: Optional[Union[str, pathlib.Path]] = None) -> pathlib.Path:
    path = pathlib.Path(path) if path is not None else SETTINGS_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
    logger.info(f"Saved settings to {path}")
    return path
