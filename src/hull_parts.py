"""
Part data consumed by the geometry engine.

The scene framework owns live parts; this module defines the plain values
the engine reads from it (pose, adjustable-hull attributes, collider
metadata) and how a part's collision box is derived from them.
"""
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Dict, Optional

import numpy as np

from oriented_box import OrientedBox, euler_to_rotation


class HullEditorError(Exception):
    """Base exception for engine errors."""
    pass


class MissingColliderError(HullEditorError):
    """A part type has no collider metadata registered."""
    pass


class HullAttribute(Enum):
    """Editable adjustable-hull attributes, valued by their save-file names."""
    LENGTH = "length"
    HEIGHT = "height"
    FRONT_WIDTH = "frontWidth"
    BACK_WIDTH = "backWidth"
    FRONT_SPREAD = "frontSpread"
    BACK_SPREAD = "backSpread"
    TOP_ROUNDNESS = "upCurve"
    BOTTOM_ROUNDNESS = "downCurve"
    HEIGHT_SCALE = "heightScale"
    HEIGHT_OFFSET = "heightOffset"

    @property
    def field_name(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, key: str) -> "HullAttribute":
        """Accept either the save-file name or the snake_case field name."""
        for attr in cls:
            if key == attr.value or key.lower() == attr.field_name:
                return attr
        raise ValueError(f"Unknown hull attribute: {key}")


@dataclass
class AdjustableHull:
    """Parametric hull segment lofted between a front and a back cross-section.

    Widths are full widths of the bottom edge; ``*_spread`` is how much
    wider the top edge is. Roundness 0 gives a flat edge, 1 a fully
    rounded one. No validation is applied.
    """
    length: float = 1.0
    height: float = 1.0
    front_width: float = 1.0
    back_width: float = 1.0
    front_spread: float = 0.0
    back_spread: float = 0.0
    top_roundness: float = 0.0
    bottom_roundness: float = 0.0
    height_scale: float = 1.0
    height_offset: float = 0.0

    def get(self, attribute: HullAttribute) -> float:
        return getattr(self, attribute.field_name)

    def set(self, attribute: HullAttribute, value: float) -> None:
        setattr(self, attribute.field_name, float(value))

    def copy(self) -> "AdjustableHull":
        return replace(self)

    def end_width(self, front: bool) -> float:
        return self.front_width if front else self.back_width

    def end_spread(self, front: bool) -> float:
        return self.front_spread if front else self.back_spread

    def section_widths(self, front: bool):
        """(bottom, top) total widths of the front or back cross-section."""
        width = self.end_width(front)
        return width, width + self.end_spread(front)

    def set_section_width(self, front: bool, bottom: bool, value: float) -> None:
        """Set the bottom or top total width of one end.

        Setting the bottom moves the width and keeps the top total width
        where it was; setting the top only changes the spread.
        """
        prefix = "front" if front else "back"
        width = getattr(self, f"{prefix}_width")
        spread = getattr(self, f"{prefix}_spread")
        if bottom:
            setattr(self, f"{prefix}_spread", (spread + width) - value)
            setattr(self, f"{prefix}_width", float(value))
        else:
            setattr(self, f"{prefix}_spread", value - width)

    def roundness(self, top: bool) -> float:
        return self.top_roundness if top else self.bottom_roundness

    def to_dict(self) -> Dict[str, float]:
        return {attr.value: float(self.get(attr)) for attr in HullAttribute}

    @classmethod
    def from_dict(cls, data: Dict[str, float]) -> "AdjustableHull":
        hull = cls()
        for key, value in data.items():
            hull.set(HullAttribute.parse(key), float(value))
        return hull

    def isclose(self, other: "AdjustableHull", atol: float = 1e-9) -> bool:
        return all(
            abs(getattr(self, f.name) - getattr(other, f.name)) <= atol
            for f in fields(self)
        )


@dataclass
class Pose:
    """Position, Euler rotation in degrees (x, y, z) and scale of a part."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float)
        self.rotation = np.asarray(self.rotation, dtype=float)
        self.scale = np.asarray(self.scale, dtype=float)

    def copy(self) -> "Pose":
        return Pose(self.position.copy(), self.rotation.copy(), self.scale.copy())


@dataclass
class PartMetadata:
    """Static collider description of a part type."""
    half_extent: np.ndarray
    center_offset: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        self.half_extent = np.asarray(self.half_extent, dtype=float)
        self.center_offset = np.asarray(self.center_offset, dtype=float)


class PartRegistry:
    """Read-only lookup of collider metadata keyed by part type id."""

    def __init__(self, entries: Optional[Dict[int, PartMetadata]] = None):
        self._entries: Dict[int, PartMetadata] = dict(entries or {})

    def register(self, type_id: int, metadata: PartMetadata) -> None:
        self._entries[type_id] = metadata

    def __contains__(self, type_id: int) -> bool:
        return type_id in self._entries

    def lookup(self, type_id: int) -> PartMetadata:
        try:
            return self._entries[type_id]
        except KeyError:
            raise MissingColliderError(
                f"No collider metadata registered for part type {type_id}"
            ) from None


@dataclass
class Part:
    """A placed part: identity, type, pose and optional hull attributes."""
    part_id: str
    type_id: int
    pose: Pose = field(default_factory=Pose)
    hull: Optional[AdjustableHull] = None

    @property
    def is_hull(self) -> bool:
        return self.hull is not None


def collider_box(
    pose: Pose,
    metadata: PartMetadata,
    hull: Optional[AdjustableHull] = None,
) -> OrientedBox:
    """Collision box of a part in world space.

    For adjustable hulls the height (Y) and length (Z) extents come from
    the hull attributes rather than the static metadata.
    """
    rotation = euler_to_rotation(pose.rotation)
    half_extent = metadata.half_extent * pose.scale
    if hull is not None:
        half_extent = half_extent.copy()
        half_extent[1] = hull.height * 0.5 * pose.scale[1]
        half_extent[2] = hull.length * 0.5 * pose.scale[2]
    center = pose.position + rotation.apply(metadata.center_offset * pose.scale)
    return OrientedBox(center=center, rotation=rotation, half_extent=half_extent)
