"""
Stepped snapping of a box towards its neighbours along one local axis.

Each neighbour in reach contributes three reference planes (its near
face, centre and far face measured along the axis) and each reference
yields three snap offsets, landing the origin's trailing face, centre
or leading face on it. Repeated presses step through the positive
offsets in ascending order.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from oriented_box import Face, OrientedBox, aabb_gap
from proximity import NearbyMap

logger = logging.getLogger(__name__)


@dataclass
class SmartMoveConfig:
    reach: float = 1.0              # max AABB gap to a neighbour
    min_offset: float = 1e-5        # offsets at or below this are ignored


def smart_move_offsets(
    origin: OrientedBox,
    candidates: Sequence[OrientedBox],
    nearby_map: NearbyMap,
    axis: Face,
    config: Optional[SmartMoveConfig] = None,
) -> List[float]:
    """Sorted positive snap offsets along the origin's ``axis`` direction."""
    if config is None:
        config = SmartMoveConfig()
    axis = Face(axis)
    normal = origin.direction(axis)
    half = origin.extent_along(axis)

    indices: List[int] = []
    for face in (axis, axis.opposite):
        for idx, _ in nearby_map.get(face, []):
            if idx not in indices:
                indices.append(idx)

    offsets: List[float] = []
    for idx in indices:
        cand = candidates[idx]
        if aabb_gap(origin, cand) > config.reach:
            continue
        centre = float((cand.center - origin.center) @ normal)
        radius = float(np.sum(cand.half_extent * np.abs(cand.axes @ normal)))
        for ref in (centre - radius, centre, centre + radius):
            for shift in (-half, 0.0, half):
                offset = ref + shift
                if offset > config.min_offset:
                    offsets.append(offset)

    offsets.sort()
    return offsets


def smart_move(
    origin: OrientedBox,
    candidates: Sequence[OrientedBox],
    nearby_map: NearbyMap,
    axis: Face,
    step_index: int,
    config: Optional[SmartMoveConfig] = None,
) -> float:
    """Offset for the ``step_index``-th press, clamped to the last snap.

    Returns 0.0 when no neighbour yields a positive snap.
    """
    offsets = smart_move_offsets(origin, candidates, nearby_map, axis, config)
    if not offsets:
        logger.debug("smart move along %s: no snap targets", Face(axis).name)
        return 0.0
    step = min(max(int(step_index), 0), len(offsets) - 1)
    logger.debug("smart move along %s: step %d of %s", Face(axis).name, step, offsets)
    return offsets[step]
