"""
Adjacency between adjustable hull segments.

Two hull segments are adjacent when they sit flush against each other
with a matching cross-section at the seam. Hull local axes are:

  X  width   (right)
  Y  height  (up)       TOP = Face.POS_Y, BOTTOM = Face.NEG_Y
  Z  length  (forward)  FRONT = Face.POS_Z, BACK = Face.NEG_Z

A neighbour may be mounted upside down (vertical flip) and/or facing
backwards (horizontal flip); the flip flags tell edit propagation how
to map the origin's attributes onto the neighbour's own.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence

from hull_parts import AdjustableHull
from oriented_box import Face, OrientedBox

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Flip:
    horizontal: bool = False
    vertical: bool = False

    def combined(self, other: "Flip") -> "Flip":
        """Flip of a two-hop path: each flag is the XOR of both hops."""
        return Flip(
            horizontal=self.horizontal != other.horizontal,
            vertical=self.vertical != other.vertical,
        )


@dataclass(frozen=True)
class HullNeighbor:
    index: int
    flip: Flip = field(default_factory=Flip)


class HullSide(Enum):
    FRONT = "front"
    BACK = "back"
    TOP = "top"
    BOTTOM = "bottom"
    FRONT_TOP = "front_top"
    FRONT_BOTTOM = "front_bottom"
    BACK_TOP = "back_top"
    BACK_BOTTOM = "back_bottom"


_SIDE_FACES = {
    HullSide.FRONT: Face.POS_Z,
    HullSide.BACK: Face.NEG_Z,
    HullSide.TOP: Face.POS_Y,
    HullSide.BOTTOM: Face.NEG_Y,
}


@dataclass
class HullAdjacencyConfig:
    """Tolerances for hull seam matching."""
    axis_tolerance: float = 1e-3        # slack on |dot| == 1 for colinear axes
    position_tolerance: float = 1e-2    # offsets and gap distances
    width_tolerance: float = 0.002
    roundness_tolerance: float = 0.002


@dataclass
class HullPlacement:
    """A hull segment as the adjacency solver sees it."""
    box: OrientedBox
    hull: AdjustableHull


def adjacent_hulls(
    origin: HullPlacement,
    candidates: Sequence[HullPlacement],
    skip_index: Optional[int] = None,
    config: Optional[HullAdjacencyConfig] = None,
) -> Dict[Face, HullNeighbor]:
    """First-order neighbours of ``origin`` keyed by the origin face they touch.

    Only Face.POS_Z/NEG_Z (front/back) and Face.POS_Y/NEG_Y (top/bottom)
    can appear. The first matching candidate wins for each face.

    Args:
        origin: The hull whose neighbours are wanted.
        candidates: Hulls to test, referenced in the result by index.
        skip_index: Candidate index to ignore (the origin's own entry).
    """
    if config is None:
        config = HullAdjacencyConfig()

    result: Dict[Face, HullNeighbor] = {}
    for idx, cand in enumerate(candidates):
        if idx == skip_index or cand is origin:
            continue
        match = _match(origin, cand, config)
        if match is None:
            continue
        face, flip = match
        if face not in result:
            result[face] = HullNeighbor(idx, flip)

    logger.debug("adjacent hulls: %s", {f.name: n.index for f, n in result.items()})
    return result


def hull_adjacent(
    origin: HullPlacement,
    candidates: Sequence[HullPlacement],
    skip_index: Optional[int] = None,
    config: Optional[HullAdjacencyConfig] = None,
) -> Dict[HullSide, HullNeighbor]:
    """Neighbours on all eight sides, including the four diagonal corners.

    A corner is reached through the front or back neighbour: its top
    (or bottom) neighbour as seen from the origin. When the first hop is
    upside down, "above" is that neighbour's own bottom.
    """
    if config is None:
        config = HullAdjacencyConfig()

    first = adjacent_hulls(origin, candidates, skip_index, config)
    result: Dict[HullSide, HullNeighbor] = {}
    for side, face in _SIDE_FACES.items():
        if face in first:
            result[side] = first[face]

    corners = (
        (HullSide.FRONT, HullSide.FRONT_TOP, HullSide.FRONT_BOTTOM),
        (HullSide.BACK, HullSide.BACK_TOP, HullSide.BACK_BOTTOM),
    )
    for end_side, top_corner, bottom_corner in corners:
        hop = result.get(end_side)
        if hop is None:
            continue
        second = adjacent_hulls(
            candidates[hop.index], candidates, hop.index, config,
        )
        up, down = Face.POS_Y, Face.NEG_Y
        if hop.flip.vertical:
            up, down = down, up
        for corner, face in ((top_corner, up), (bottom_corner, down)):
            neighbour = second.get(face)
            if neighbour is None or neighbour.index == skip_index:
                continue
            result[corner] = HullNeighbor(
                neighbour.index, hop.flip.combined(neighbour.flip),
            )

    return result


# ─── Internal ─────────────────────────────────────────────────────────────────

def _touching_face_width(hull: AdjustableHull, front: bool, top: bool) -> float:
    """Width of the top or bottom face at one end."""
    bottom, top_total = hull.section_widths(front)
    return top_total if top else bottom


def _match(
    origin: HullPlacement,
    cand: HullPlacement,
    config: HullAdjacencyConfig,
):
    """(origin face, Flip) if ``cand`` is flush against ``origin``, else None."""
    right_o, up_o, fwd_o = origin.box.axes
    _, up_c, fwd_c = cand.box.axes

    up_dot = float(up_o @ up_c)
    fwd_dot = float(fwd_o @ fwd_c)
    if abs(abs(up_dot) - 1.0) > config.axis_tolerance:
        return None
    if abs(abs(fwd_dot) - 1.0) > config.axis_tolerance:
        return None
    flip = Flip(horizontal=fwd_dot < 0, vertical=up_dot < 0)

    d = cand.box.center - origin.box.center
    tol = config.position_tolerance
    if abs(float(d @ right_o)) > tol:
        return None

    rise = float(d @ up_o)
    along = float(d @ fwd_o)
    _, hy_o, hz_o = origin.box.half_extent
    _, hy_c, hz_c = cand.box.half_extent

    if (
        abs(rise) <= tol
        and abs(hy_o - hy_c) <= tol
        and abs(abs(along) - (hz_o + hz_c)) <= tol
    ):
        origin_front = along > 0
        check_front = float(d @ fwd_c) < 0
        if _end_seam_matches(origin.hull, cand.hull, origin_front, check_front,
                             flip, config):
            return (Face.POS_Z if origin_front else Face.NEG_Z), flip
        return None

    if (
        abs(along) <= tol
        and abs(hz_o - hz_c) <= tol
        and abs(abs(rise) - (hy_o + hy_c)) <= tol
    ):
        origin_top = rise > 0
        check_top = float(d @ up_c) < 0
        if _stack_seam_matches(origin.hull, cand.hull, origin_top, check_top,
                               flip, config):
            return (Face.POS_Y if origin_top else Face.NEG_Y), flip
    return None


def _end_seam_matches(
    origin: AdjustableHull,
    cand: AdjustableHull,
    origin_front: bool,
    check_front: bool,
    flip: Flip,
    config: HullAdjacencyConfig,
) -> bool:
    """Front/back seam: equal cross-sections and roundness."""
    cand_top, cand_bottom = cand.top_roundness, cand.bottom_roundness
    if flip.vertical:
        cand_top, cand_bottom = cand_bottom, cand_top
    if abs(origin.top_roundness - cand_top) > config.roundness_tolerance:
        return False
    if abs(origin.bottom_roundness - cand_bottom) > config.roundness_tolerance:
        return False

    o_bottom, o_top = origin.section_widths(origin_front)
    c_bottom, c_top = cand.section_widths(check_front)
    if flip.vertical:
        c_bottom, c_top = c_top, c_bottom
    return (
        abs(o_bottom - c_bottom) <= config.width_tolerance
        and abs(o_top - c_top) <= config.width_tolerance
    )


def _stack_seam_matches(
    origin: AdjustableHull,
    cand: AdjustableHull,
    origin_top: bool,
    check_top: bool,
    flip: Flip,
    config: HullAdjacencyConfig,
) -> bool:
    """Top/bottom seam: both touching faces flat and equally wide at each end."""
    if abs(origin.roundness(origin_top)) > config.roundness_tolerance:
        return False
    if abs(cand.roundness(check_top)) > config.roundness_tolerance:
        return False

    o_front = _touching_face_width(origin, True, origin_top)
    o_back = _touching_face_width(origin, False, origin_top)
    c_front = _touching_face_width(cand, True, check_top)
    c_back = _touching_face_width(cand, False, check_top)
    if flip.horizontal:
        c_front, c_back = c_back, c_front
    return (
        abs(o_front - c_front) <= config.width_tolerance
        and abs(o_back - c_back) <= config.width_tolerance
    )
