"""Vertex-buffer transforms and the once-per-cycle mesh mutator.

Transforms are pure: they take a vertex buffer and return a ``MeshEdit``
holding a new buffer, per-band change counts and whether the edit should
be committed.  ``MeshMutator`` applies them, guarding against mutating the
same shared mesh twice in one apply/revert/scan cycle.
"""

import contextlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Set

import numpy as np

from .constants import (
    MIN_BAND_VERTICES, PARKING_MIN_HEIGHT_TRIGGER, PATH_BASE_THRESHOLD,
    PATH_GROUND_TOLERANCE, PATH_ORIGINAL_BASE_HEIGHT, PATH_ORIGINAL_CURB_HEIGHT,
)
from .geometry import BandBounds
from .pillars import bridge_adjustment

logger = logging.getLogger(__name__)


@dataclass
class MeshEdit:
    vertices: np.ndarray
    counts: Dict[str, int] = field(default_factory=dict)
    commit: bool = False


Transform = Callable[[np.ndarray], MeshEdit]


# ── Transforms ───────────────────────────────────────────────────────────

def road_transform(vertices: np.ndarray, *, multiplier: float, shift: float,
                   bridge: bool = False, threshold: float = 0.0,
                   scale: float = 1.0, bounds: BandBounds = BandBounds(),
                   quorum: int = MIN_BAND_VERTICES) -> MeshEdit:
    """Curb, sub-surface and (optionally) bridge deck adjustment.

    Below-ground vertices above the curb bottom are scaled about ground
    level; sub-surface vertices (e.g. LRT track beds) are shifted by the
    same amount the curb moved; bridge deck vertices are compressed
    towards the threshold.
    """
    new = np.array(vertices, dtype=np.float32, copy=True)
    y = new[:, 1].copy()

    below = y < 0.0
    # Whole (curb_bottom, 0) range, not just the classifier's curb band.
    curb = below & (y > bounds.curb_bottom)
    sub = below & ~curb & (y > bounds.sub_bottom)
    if bridge:
        deck = (below & ~curb & ~sub
                & (y < threshold) & (y >= bounds.bridge_cutoff))
    else:
        deck = np.zeros_like(below)

    new[curb, 1] = y[curb] * multiplier
    new[sub, 1] = y[sub] + shift
    new[deck, 1] = bridge_adjustment(y[deck], threshold, scale)

    curb_changed = int(curb.sum() + sub.sum())
    bridge_changed = int(deck.sum())

    # Need at least one quad; partial edits leave seams on flat LODs.
    commit = curb_changed >= quorum or (bridge and bridge_changed >= quorum)
    return MeshEdit(new, {"curb": curb_changed, "bridge": bridge_changed}, commit)


def surface_transform(vertices: np.ndarray, *, top: float, bottom: float,
                      surface_level: float,
                      quorum: int = MIN_BAND_VERTICES) -> MeshEdit:
    """Snap vertices strictly between *bottom* and *top* to *surface_level*."""
    new = np.array(vertices, dtype=np.float32, copy=True)
    y = new[:, 1]
    band = (y < top) & (y > bottom)
    new[band, 1] = surface_level
    changed = int(band.sum())
    return MeshEdit(new, {"curb": changed}, changed >= quorum)


def path_transform(vertices: np.ndarray, *, base_height: float,
                   curb_height: float, raise_zero: bool = False) -> MeshEdit:
    """Pedestrian path base and curb adjustment (always committed).

    Below-ground geometry is left alone.  Elevated paths get their
    zero-level surface lifted to the new base height.
    """
    new = np.array(vertices, dtype=np.float32, copy=True)
    y = new[:, 1].copy()

    eligible = y >= -PATH_GROUND_TOLERANCE
    if raise_zero:
        zero = eligible & (y < PATH_GROUND_TOLERANCE)
    else:
        zero = np.zeros_like(eligible)
    base = eligible & ~zero & (y < PATH_BASE_THRESHOLD)
    curb = eligible & ~zero & ~base

    new[zero, 1] = y[zero] + base_height
    new[base, 1] = y[base] * (base_height / PATH_ORIGINAL_BASE_HEIGHT)
    new[curb, 1] = (y[curb] - PATH_ORIGINAL_BASE_HEIGHT - PATH_ORIGINAL_CURB_HEIGHT
                    + base_height + curb_height)

    counts = {"zero": int(zero.sum()), "base": int(base.sum()), "curb": int(curb.sum())}
    return MeshEdit(new, counts, True)


def raise_transform(vertices: np.ndarray, *, amount: float,
                    min_height: Optional[float] = PARKING_MIN_HEIGHT_TRIGGER) -> MeshEdit:
    """Shift every vertex up by *amount*.

    With *min_height* set, the edit only commits if the mesh reaches below
    it (parking lot road meshes bottom out at -0.2794).
    """
    new = np.array(vertices, dtype=np.float32, copy=True)
    new[:, 1] += amount
    if min_height is None:
        commit = len(new) > 0
    else:
        commit = len(new) > 0 and float(np.asarray(vertices)[:, 1].min()) < min_height
    return MeshEdit(new, {"raised": len(new) if commit else 0}, commit)


# ── Mutator ──────────────────────────────────────────────────────────────

class MeshMutator:
    """Applies transforms to arena meshes at most once per cycle."""

    def __init__(self, arena):
        self.arena = arena
        self._processed: Set[int] = set()

    @property
    def processed(self) -> frozenset:
        return frozenset(self._processed)

    def is_processed(self, handle: Optional[int]) -> bool:
        return handle in self._processed

    @contextlib.contextmanager
    def cycle(self):
        """Scope one scan/apply/revert pass; the processed set is cleared at both ends."""
        self._processed.clear()
        try:
            yield self
        finally:
            self._processed.clear()

    def adjust(self, handle: Optional[int], transform: Transform) -> bool:
        """Run *transform* on the mesh behind *handle*; True if committed.

        Uncommitted meshes are left untouched and not marked processed, so
        another caller in the same cycle may still try them.
        """
        mesh = self.arena.get(handle)
        if mesh is None or handle in self._processed:
            return False

        edit = transform(mesh.vertices)
        if not edit.commit:
            logger.debug(f"not committing {mesh.name}: {edit.counts}")
            return False

        mesh.vertices = edit.vertices
        self._processed.add(handle)
        return True

    def restore(self, handle: Optional[int], vertices: Optional[np.ndarray]) -> None:
        """Put recorded original vertices back on a mesh."""
        mesh = self.arena.get(handle)
        if mesh is None or vertices is None:
            return
        mesh.vertices = vertices
