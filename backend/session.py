import logging
import pathlib
import sys
import threading
from typing import Optional

# Ensure the project root is importable so we can reach curbheight/
_project_root = str(pathlib.Path(__file__).parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

logger = logging.getLogger(__name__)


class NoSessionError(LookupError):
    """No catalog has been loaded or installed."""


class SessionManager:
    """Holds the one loaded catalog and its controller.

    Scan, apply and revert must never interleave, so every use goes
    through ``lock``.
    """

    def __init__(self) -> None:
        self.controller = None
        self.settings_path: Optional[pathlib.Path] = None
        self.lock = threading.Lock()

    def install(self, controller, settings_path=None) -> None:
        """Use an already-scanned controller (tests, embedding hosts)."""
        self.controller = controller
        self.settings_path = pathlib.Path(settings_path) if settings_path is not None else None

    def reset(self) -> None:
        self.controller = None
        self.settings_path = None

    def get(self):
        if self.controller is None:
            self.controller = self._load()
        return self.controller

    def _load(self):
        from curbheight import CurbController, load_catalog, load_settings  # noqa: import here to avoid top-level side-effects
        from backend import config as _cfg

        if _cfg.CATALOG_PATH is None:
            raise NoSessionError("no catalog loaded; set CURBHEIGHT_CATALOG")

        settings = load_settings(_cfg.SETTINGS_PATH)
        controller = CurbController(load_catalog(_cfg.CATALOG_PATH), settings)
        results = controller.scan()
        controller.on_level_loaded()
        logger.info(f"Loaded catalog {_cfg.CATALOG_PATH}: {len(results)} assets scanned")

        if _cfg.SAVE_SETTINGS:
            self.settings_path = _cfg.SETTINGS_PATH
        return controller


# Singleton instance used across the application
session_manager = SessionManager()
