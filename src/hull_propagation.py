"""
Edit propagation across adjacent hull segments.

When one attribute of a hull changes, its neighbours are rewritten so
every shared seam keeps an identical cross-section. Writes are derived
only from the origin's post-edit values and each neighbour's flip
flags; nothing propagates beyond the origin's direct and corner
neighbours.
"""
import logging
from typing import Dict, Mapping, MutableMapping, Optional, Sequence

from hull_adjacency import HullNeighbor, HullSide
from hull_parts import AdjustableHull, HullAttribute

logger = logging.getLogger(__name__)

_END_ATTRIBUTES = {
    HullAttribute.FRONT_WIDTH: True,
    HullAttribute.FRONT_SPREAD: True,
    HullAttribute.BACK_WIDTH: False,
    HullAttribute.BACK_SPREAD: False,
}

_STACKED_ON_TOP = (HullSide.TOP, HullSide.FRONT_TOP, HullSide.BACK_TOP)
_STACKED_BELOW = (HullSide.BOTTOM, HullSide.FRONT_BOTTOM, HullSide.BACK_BOTTOM)


def propagate(
    hulls: Sequence[AdjustableHull],
    origin_index: int,
    attribute: HullAttribute,
    value: float,
    adjacency: Mapping[HullSide, HullNeighbor],
    working_set: Optional[MutableMapping[int, AdjustableHull]] = None,
) -> Dict[int, AdjustableHull]:
    """Set ``attribute`` on the origin hull and keep its seams matched.

    Args:
        hulls: Pre-edit hull values; neighbour indices refer to this list.
        origin_index: Index of the edited hull.
        attribute: The attribute being edited.
        value: New value for the origin.
        adjacency: ``hull_adjacent`` result computed before the edit.
        working_set: Copies already written by earlier edits in the same
            batch, by index. New writes land on these copies and new
            copies are added to it, so several origins edited together
            share one copy per hull.

    Returns:
        Updated copies of every hull in the working set whose values
        differ from ``hulls``, by index. ``hulls`` itself is left
        untouched.
    """
    updated = {} if working_set is None else working_set

    def working(index: int) -> AdjustableHull:
        if index not in updated:
            updated[index] = hulls[index].copy()
        return updated[index]

    origin = working(origin_index)
    origin.set(attribute, value)

    if attribute in _END_ATTRIBUTES:
        _propagate_end_section(origin, _END_ATTRIBUTES[attribute], adjacency, working)
    elif attribute in (HullAttribute.TOP_ROUNDNESS, HullAttribute.BOTTOM_ROUNDNESS):
        _propagate_roundness(
            attribute is HullAttribute.TOP_ROUNDNESS, value, adjacency, working,
        )
    elif attribute is HullAttribute.HEIGHT:
        # Stacked hulls keep their own height.
        for side in (HullSide.FRONT, HullSide.BACK):
            neighbour = adjacency.get(side)
            if neighbour is not None:
                _write(working(neighbour.index), neighbour.index,
                       HullAttribute.HEIGHT, value)

    changed = {
        index: hull for index, hull in updated.items()
        if not hull.isclose(hulls[index])
    }
    logger.info(
        "propagated %s=%.4f from hull %d to %d hull(s)",
        attribute.value, value, origin_index, len(changed),
    )
    return changed


# ─── Internal ─────────────────────────────────────────────────────────────────

def _write(hull: AdjustableHull, index: int, attribute: HullAttribute, value: float):
    logger.debug("hull %d: %s -> %.4f", index, attribute.value, value)
    hull.set(attribute, value)


def _roundness_attribute(own_top: bool) -> HullAttribute:
    return HullAttribute.TOP_ROUNDNESS if own_top else HullAttribute.BOTTOM_ROUNDNESS


def _propagate_roundness(
    top: bool,
    value: float,
    adjacency: Mapping[HullSide, HullNeighbor],
    working,
) -> None:
    # Across an end seam the neighbour's edge on the same side follows.
    for side in (HullSide.FRONT, HullSide.BACK):
        neighbour = adjacency.get(side)
        if neighbour is None:
            continue
        own_top = top != neighbour.flip.vertical
        _write(working(neighbour.index), neighbour.index,
               _roundness_attribute(own_top), value)

    # Hulls stacked on the edited face, directly or over a corner, meet
    # it with their facing face.
    for side in (_STACKED_ON_TOP if top else _STACKED_BELOW):
        neighbour = adjacency.get(side)
        if neighbour is None:
            continue
        own_top = (not top) != neighbour.flip.vertical
        _write(working(neighbour.index), neighbour.index,
               _roundness_attribute(own_top), value)


def _set_face_width(
    hull: AdjustableHull,
    index: int,
    front: bool,
    own_top: bool,
    value: float,
) -> None:
    """Set the width of one of ``hull``'s top/bottom faces at one end.

    The opposite face keeps its total width.
    """
    logger.debug(
        "hull %d: %s %s width -> %.4f",
        index, "front" if front else "back", "top" if own_top else "bottom", value,
    )
    hull.set_section_width(front, bottom=not own_top, value=value)


def _propagate_end_section(
    origin: AdjustableHull,
    front: bool,
    adjacency: Mapping[HullSide, HullNeighbor],
    working,
) -> None:
    bottom_width, top_width = origin.section_widths(front)

    if front:
        end_side, top_corner, bottom_corner = (
            HullSide.FRONT, HullSide.FRONT_TOP, HullSide.FRONT_BOTTOM)
    else:
        end_side, top_corner, bottom_corner = (
            HullSide.BACK, HullSide.BACK_TOP, HullSide.BACK_BOTTOM)

    # Neighbour across the seam takes the whole section.
    neighbour = adjacency.get(end_side)
    if neighbour is not None:
        hull = working(neighbour.index)
        touching_front = front == neighbour.flip.horizontal
        bottom, top = bottom_width, top_width
        if neighbour.flip.vertical:
            bottom, top = top, bottom
        prefix = "front" if touching_front else "back"
        _write(hull, neighbour.index, HullAttribute.parse(f"{prefix}_width"), bottom)
        _write(hull, neighbour.index, HullAttribute.parse(f"{prefix}_spread"),
               top - bottom)

    # Stacked neighbours share the origin's top or bottom face at this end.
    stacked = (
        (HullSide.TOP, top_width, True, front),
        (HullSide.BOTTOM, bottom_width, False, front),
        (top_corner, top_width, True, not front),
        (bottom_corner, bottom_width, False, not front),
    )
    for side, width, above, aligned_front in stacked:
        neighbour = adjacency.get(side)
        if neighbour is None:
            continue
        # A hull above touches with its own bottom, unless it is upside down.
        own_top = (not above) != neighbour.flip.vertical
        end_front = aligned_front != neighbour.flip.horizontal
        _set_face_width(working(neighbour.index), neighbour.index,
                        end_front, own_top, width)
