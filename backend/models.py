from typing import List, Optional

from pydantic import BaseModel

from curbheight.config import CurbSettings


class SettingsUpdate(BaseModel):
    """Partial settings change; omitted fields keep their current value."""
    detailed_logging: Optional[bool] = None
    curb_height: Optional[float] = None
    do_road_lods: Optional[bool] = None
    do_tram_catenaries: Optional[bool] = None
    enable_bridges: Optional[bool] = None
    update_pillars: Optional[bool] = None
    bridge_threshold: Optional[float] = None
    bridge_scale: Optional[float] = None
    enable_paths: Optional[bool] = None
    path_base_height: Optional[float] = None
    path_curb_height: Optional[float] = None
    do_path_lods: Optional[bool] = None


class ApplyResponse(BaseModel):
    settings: CurbSettings
    pending_actions: int


class ActionResponse(BaseModel):
    status: str
    pending_actions: int
    ran: int = 0


class RecordInfo(BaseModel):
    name: str
    category: str
    override: str
    segments: int = 0
    nodes: int = 0
    lanes: int = 0
    eligible_bridge: bool = False
    adjust_pillars: bool = False
    surface_level: Optional[float] = None
    props: Optional[int] = None
    shared_mesh: Optional[bool] = None


class RecordList(BaseModel):
    count: int
    records: List[RecordInfo]
