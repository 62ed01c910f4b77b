import logging

from fastapi import APIRouter, HTTPException

from backend.models import ActionResponse, ApplyResponse, RecordInfo, RecordList, SettingsUpdate
from backend.session import NoSessionError, session_manager
from curbheight.config import CurbSettings, save_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["settings"])


def _controller():
    try:
        return session_manager.get()
    except NoSessionError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


@router.get("/settings", response_model=CurbSettings)
def get_settings():
    """Return the settings currently applied to the loaded catalog."""
    with session_manager.lock:
        return _controller().settings


@router.put("/settings", response_model=ApplyResponse)
def put_settings(update: SettingsUpdate):
    """Validate (clamp) a settings change, apply it and persist it.

    Uses ``def`` (not ``async def``) so FastAPI runs it in a threadpool;
    applying re-derives every recorded mesh.
    """
    changes = update.model_dump(exclude_none=True)
    with session_manager.lock:
        controller = _controller()
        settings = controller.settings.updated(**changes)
        controller.apply(settings)
        if session_manager.settings_path is not None:
            save_settings(settings, session_manager.settings_path)

        return ApplyResponse(settings=settings, pending_actions=controller.queue.pending)


@router.post("/revert", response_model=ActionResponse)
def revert():
    """Restore every recorded asset to its original state."""
    with session_manager.lock:
        controller = _controller()
        controller.revert()
        return ActionResponse(status="reverted", pending_actions=controller.queue.pending)


@router.post("/tick", response_model=ActionResponse)
def tick():
    """Run deferred lane and pillar recomputation, as the host's tick would."""
    with session_manager.lock:
        controller = _controller()
        ran = controller.queue.run_pending()
        return ActionResponse(status="ok", pending_actions=controller.queue.pending, ran=ran)


@router.get("/records", response_model=RecordList)
def list_records():
    """Summarize every recorded asset."""
    with session_manager.lock:
        rows = _controller().describe()
    return RecordList(count=len(rows), records=[RecordInfo(**row) for row in rows])
