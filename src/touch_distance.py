"""
Touch-distance solver for drag-to-surface placement.

Answers "how far must box A travel along a direction before its boundary
first meets box B?" by testing every pair of box features (vertices,
edges, faces) and keeping the smallest valid travel distance.

Supported feature pairs:
  vertex -> face  ray from the vertex against the face rectangle
  edge   -> edge  sweep of the moving edge against a bounded segment
Every other combination reports no contact.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np

from oriented_box import BoxFace, OrientedBox

logger = logging.getLogger(__name__)


@dataclass
class TouchConfig:
    """Numeric tolerances for the touch solver."""
    parallel_epsilon: float = 1e-6   # |cos| below this is treated as parallel
    boundary_epsilon: float = 1e-5   # slack on face/segment bounds checks
    distance_epsilon: float = 1e-6   # travel this far behind 0 still counts as 0


@dataclass
class VertexFeature:
    point: np.ndarray


@dataclass
class EdgeFeature:
    start: np.ndarray
    end: np.ndarray


@dataclass
class FaceFeature:
    face: BoxFace


Feature = Union[VertexFeature, EdgeFeature, FaceFeature]


def box_features(box: OrientedBox) -> List[Feature]:
    """All 26 features of a box: 6 faces, 8 vertices, 12 edges."""
    features: List[Feature] = [FaceFeature(f) for f in box.faces()]
    features.extend(VertexFeature(v) for v in box.vertices())
    features.extend(EdgeFeature(a, b) for a, b in box.edges())
    return features


def touch_distance(
    a: OrientedBox,
    b: OrientedBox,
    direction,
    config: Optional[TouchConfig] = None,
) -> float:
    """Distance ``a`` must move along ``direction`` to touch ``b``.

    Each (A feature, B feature) pair is tested moving A along
    ``direction``. Pairs of different feature kinds are also tested the
    other way round, moving B's feature along the reversed direction;
    same-kind pairs (edge/edge) are only tested forwards.

    Returns:
        The smallest non-negative travel distance, or ``math.inf`` when
        no feature pair can be brought into contact.
    """
    if config is None:
        config = TouchConfig()
    d = np.asarray(direction, dtype=float)
    d = d / np.linalg.norm(d)

    a_features = box_features(a)
    b_features = box_features(b)

    best = math.inf
    for fa in a_features:
        for fb in b_features:
            dist = feature_touch_distance(fa, fb, d, config)
            if dist is not None and dist < best:
                best = dist
            if type(fa) is not type(fb):
                dist = feature_touch_distance(fb, fa, -d, config)
                if dist is not None and dist < best:
                    best = dist

    logger.debug("touch distance along %s: %s", d, best)
    return best


def feature_touch_distance(
    moving: Feature,
    target: Feature,
    direction: np.ndarray,
    config: Optional[TouchConfig] = None,
) -> Optional[float]:
    """Travel distance for one ordered feature pair, or None if no contact."""
    if config is None:
        config = TouchConfig()
    if isinstance(moving, VertexFeature) and isinstance(target, FaceFeature):
        return _vertex_to_face(moving.point, target.face, direction, config)
    if isinstance(moving, EdgeFeature) and isinstance(target, EdgeFeature):
        return _edge_to_edge(moving, target, direction, config)
    return None


# ─── Internal ─────────────────────────────────────────────────────────────────

def _vertex_to_face(
    point: np.ndarray,
    face: BoxFace,
    direction: np.ndarray,
    config: TouchConfig,
) -> Optional[float]:
    """Cast a ray from ``point`` and test the hit against the face rectangle."""
    n = face.unit_normal
    denom = float(direction @ n)
    if abs(denom) < config.parallel_epsilon:
        return None

    t = float((face.center - point) @ n) / denom
    if t < -config.distance_epsilon:
        return None
    t = max(t, 0.0)

    offset = point + direction * t - face.center
    for axis in (face.axis_u, face.axis_v):
        half = float(np.linalg.norm(axis))
        if half < 1e-12:
            return None
        if abs(float(offset @ axis)) / half > half + config.boundary_epsilon:
            return None
    return t


def _edge_to_edge(
    moving: EdgeFeature,
    target: EdgeFeature,
    direction: np.ndarray,
    config: TouchConfig,
) -> Optional[float]:
    """Sweep the moving edge along ``direction`` into the target segment.

    The swept edge spans a plane; the target segment must cross that plane
    inside its bounds, and the crossing must fall within the moving edge's
    extent once the travel component is removed. The result is the signed
    travel along ``direction`` that brings the two edges together.
    """
    a_dir = moving.end - moving.start
    plane_normal = np.cross(direction, a_dir)
    pn_len = float(np.linalg.norm(plane_normal))
    if pn_len < config.parallel_epsilon:
        return None
    plane_normal /= pn_len

    b_vec = target.end - target.start
    b_len = float(np.linalg.norm(b_vec))
    if b_len < 1e-12:
        return None
    b_dir = b_vec / b_len

    denom = float(b_dir @ plane_normal)
    if abs(denom) < config.parallel_epsilon:
        return None
    t = float((moving.start - target.start) @ plane_normal) / denom
    if t < -config.boundary_epsilon or t > b_len + config.boundary_epsilon:
        return None

    hit_offset = target.start + b_dir * t - moving.start

    # Component of the moving edge perpendicular to the travel direction.
    perp = a_dir - float(a_dir @ direction) * direction
    perp_len = float(np.linalg.norm(perp))
    if perp_len < 1e-12:
        return None
    s = float(hit_offset @ perp) / perp_len
    if s < -config.boundary_epsilon or s > perp_len + config.boundary_epsilon:
        return None

    residual = hit_offset - (s / perp_len) * a_dir
    travel = float(residual @ direction)
    if travel < -config.distance_epsilon:
        return None
    return max(travel, 0.0)
