"""Bridge pillar offsets, derived with the same pivot transform as bridge decks."""

import logging

import numpy as np

logger = logging.getLogger(__name__)


def bridge_adjustment(original, threshold: float, scale: float):
    """Compress heights below *threshold* towards it by *scale*.

    Works on a scalar or a numpy array; values at or above the threshold
    are returned unchanged.
    """
    if isinstance(original, np.ndarray):
        return np.where(original < threshold,
                        ((original - threshold) * scale) + threshold,
                        original).astype(original.dtype)
    if original < threshold:
        return ((original - threshold) * scale) + threshold
    return original


def push_pillar_offsets(network, record, settings) -> None:
    """Write adjusted (or original) pillar offsets onto a bridge network."""
    if not record.adjust_pillars or not network.is_bridge:
        return

    if settings.enable_bridges:
        network.bridge_pillar_offset = bridge_adjustment(
            record.bridge_pillar_offset, settings.signed_bridge_threshold,
            settings.bridge_scale)
        network.middle_pillar_offset = bridge_adjustment(
            record.middle_pillar_offset, settings.signed_bridge_threshold,
            settings.bridge_scale)
    else:
        restore_pillar_offsets(network, record)

    logger.debug(f"pillar offsets for {network.name}: "
                 f"{network.bridge_pillar_offset:.3f} / "
                 f"{network.middle_pillar_offset:.3f}")


def restore_pillar_offsets(network, record) -> None:
    if record.adjust_pillars and network.is_bridge:
        network.bridge_pillar_offset = record.bridge_pillar_offset
        network.middle_pillar_offset = record.middle_pillar_offset
