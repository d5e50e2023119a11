"""
Face-to-face proximity between an origin box and nearby candidate boxes.

For each of the origin's six faces, lists the candidate faces pointing
straight back at it, optionally requiring that the two faces touch
(centre separation equals the sum of half-extents) and that their
rectangles overlap when projected onto the shared plane.
"""
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import Polygon

from oriented_box import BoxFace, Face, OrientedBox, normalized

logger = logging.getLogger(__name__)

NearbyMap = Dict[Face, List[Tuple[int, Face]]]


@dataclass
class ProximityConfig:
    """Tolerances for face matching."""
    facing_tolerance: float = 1e-3      # |n_a + n_b| below this = facing
    separation_tolerance: float = 1e-2  # allowed error on face contact distance
    overlap_margin: float = 0.1         # rect growth per in-plane half-axis
    coincide_tolerance: float = 1e-6


def nearby(
    origin: OrientedBox,
    candidates: Sequence[OrientedBox],
    check_separation: bool = True,
    check_overlap: bool = True,
    config: Optional[ProximityConfig] = None,
) -> NearbyMap:
    """Map each origin face to the candidate faces that face it.

    Args:
        origin: Box whose faces are tested.
        candidates: Other boxes, referenced in the result by index.
        check_separation: Require the faces to be in contact.
        check_overlap: Require the face rectangles to overlap.

    Returns:
        Dict with all six Face keys; each value lists
        ``(candidate_index, candidate_face)`` in candidate order.
    """
    if config is None:
        config = ProximityConfig()

    result: NearbyMap = {face: [] for face in Face}
    origin_faces = origin.faces()

    for idx, cand in enumerate(candidates):
        if origin.coincides(cand, atol=config.coincide_tolerance):
            continue
        cand_faces = cand.faces()
        for of in origin_faces:
            n_o = of.unit_normal
            for cf in cand_faces:
                if np.linalg.norm(n_o + cf.unit_normal) > config.facing_tolerance:
                    continue
                if check_separation and not _faces_in_contact(
                    origin, cand, of, cf, config,
                ):
                    continue
                if check_overlap and not _faces_overlap(of, cf, config):
                    continue
                result[of.index].append((idx, cf.index))

    logger.debug(
        "nearby: %d face matches across %d candidates",
        sum(len(v) for v in result.values()), len(candidates),
    )
    return result


# ─── Internal ─────────────────────────────────────────────────────────────────

def _faces_in_contact(
    origin: OrientedBox,
    cand: OrientedBox,
    of: BoxFace,
    cf: BoxFace,
    config: ProximityConfig,
) -> bool:
    dist = float((cand.center - origin.center) @ of.unit_normal)
    expected = origin.extent_along(of.index) + cand.extent_along(cf.index)
    return abs(dist - expected) <= config.separation_tolerance


def _face_polygon(
    face: BoxFace,
    origin_center: np.ndarray,
    u_hat: np.ndarray,
    v_hat: np.ndarray,
    margin: float,
) -> Polygon:
    """Grown face rectangle in the (u_hat, v_hat) coordinates of a plane."""
    u = face.axis_u + normalized(face.axis_u) * margin
    v = face.axis_v + normalized(face.axis_v) * margin
    c = face.center
    corners = [c + u + v, c - u + v, c - u - v, c + u - v]
    return Polygon([
        (float((p - origin_center) @ u_hat), float((p - origin_center) @ v_hat))
        for p in corners
    ])


def _faces_overlap(of: BoxFace, cf: BoxFace, config: ProximityConfig) -> bool:
    u_hat = normalized(of.axis_u)
    v_hat = normalized(of.axis_v)
    a = _face_polygon(of, of.center, u_hat, v_hat, config.overlap_margin)
    b = _face_polygon(cf, of.center, u_hat, v_hat, config.overlap_margin)
    return a.intersects(b)
