"""Height-band classification of unlabeled mesh vertices.

Network meshes carry no semantic labels, so eligibility is decided from
vertex heights alone.  Bands are checked in order (curb, sub-surface,
bridge); a vertex is counted in the first band it falls into.

  curb         bottom < y < top                 (-0.32 .. -0.21)
  sub-surface  sub_bottom < y < top, not curb   (-0.55 .. -0.32)
  bridge       cutoff <= y < bridge_top         (-5.0 .. threshold)
  full depth   y < cutoff                       (whole-height structure)
"""

import logging
from dataclasses import dataclass

import numpy as np

from .constants import (
    BRIDGE_DEPTH_CUTOFF, DEFAULT_BRIDGE_THRESHOLD, MAX_CURB_DEPTH_TRIGGER,
    MAX_SUB_DEPTH_TRIGGER, MIN_BAND_VERTICES, MIN_CURB_DEPTH_TRIGGER,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BandBounds:
    """Signed band boundaries; larger magnitude is deeper."""
    curb_top: float = MIN_CURB_DEPTH_TRIGGER
    curb_bottom: float = MAX_CURB_DEPTH_TRIGGER
    sub_bottom: float = MAX_SUB_DEPTH_TRIGGER
    bridge_top: float = DEFAULT_BRIDGE_THRESHOLD
    bridge_cutoff: float = BRIDGE_DEPTH_CUTOFF

    @classmethod
    def with_threshold(cls, bridge_threshold: float) -> "BandBounds":
        """Default bands with the bridge band starting at *bridge_threshold*."""
        return cls(bridge_top=bridge_threshold)


@dataclass(frozen=True)
class Classification:
    curb_count: int
    sub_count: int
    bridge_count: int
    full_depth: bool
    eligible_curbs: bool
    eligible_sub: bool
    eligible_bridge: bool

    @property
    def eligible(self) -> bool:
        return self.eligible_curbs or self.eligible_sub or self.eligible_bridge


def band_masks(y: np.ndarray, bounds: BandBounds):
    """Return boolean masks ``(curb, sub, bridge, full_depth)`` for heights *y*."""
    curb = (y < bounds.curb_top) & (y > bounds.curb_bottom)
    sub = ~curb & (y < bounds.curb_top) & (y > bounds.sub_bottom)
    bridge = ~curb & ~sub & (y < bounds.bridge_top) & (y >= bounds.bridge_cutoff)
    full_depth = y < bounds.bridge_cutoff
    return curb, sub, bridge, full_depth


def classify_vertices(vertices, quorum: int = MIN_BAND_VERTICES,
                      bounds: BandBounds = BandBounds(),
                      is_bridge: bool = False) -> Classification:
    """Count vertices per band and decide per-band eligibility.

    A band is eligible when it holds at least *quorum* vertices.  The
    bridge band additionally needs a bridge-capable asset and a mesh with
    no vertex below the absolute cutoff.
    """
    verts = np.asarray(vertices, dtype=np.float32).reshape(-1, 3)
    curb, sub, bridge, full_depth = band_masks(verts[:, 1], bounds)

    curb_count = int(curb.sum())
    sub_count = int(sub.sum())
    bridge_count = int(bridge.sum())
    is_full_depth = bool(full_depth.any())

    return Classification(
        curb_count=curb_count,
        sub_count=sub_count,
        bridge_count=bridge_count,
        full_depth=is_full_depth,
        eligible_curbs=curb_count >= quorum,
        eligible_sub=sub_count >= quorum,
        eligible_bridge=is_bridge and not is_full_depth and bridge_count >= quorum,
    )
