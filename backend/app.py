import sys
import pathlib

# Ensure the project root (parent of backend/) is on sys.path so that
# ``import curbheight`` resolves to the package beside backend/.
_project_root = str(pathlib.Path(__file__).parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend import config
from backend.routers import settings
from backend.session import session_manager

app = FastAPI(
    title="Curb Height API",
    description="Apply and revert curb height settings on a loaded asset catalog",
    version="0.1.0",
)

# ---------------------------------------------------------------------------
# CORS -- allow the settings panel dev server
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(settings.router)


@app.get("/")
async def root():
    return {
        "status": "ok",
        "service": "Curb Height API",
        "loaded": session_manager.controller is not None,
    }
