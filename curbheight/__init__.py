"""curbheight package: redefine road curb heights on shared network meshes.

Import constants FIRST so .env and logging are configured before any
other module reads them.
"""

from curbheight import constants as _constants  # noqa: F401

from curbheight.catalog import CatalogError, load_catalog
from curbheight.config import CurbSettings, load_settings, save_settings
from curbheight.lifecycle import CurbController
from curbheight.models import AssetCatalog, Mesh, MeshArena
