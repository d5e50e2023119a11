"""
Oriented-box primitive shared by every solver.

An OrientedBox is a cuboid defined by a centre, a rotation and per-axis
half-extents. Faces, vertices and edges are addressed by small fixed
indices so solvers can use array lookups instead of dispatch:

  faces     0..5  ->  +X, +Y, +Z, -X, -Y, -Z   (face i opposite face (i+3) % 6)
  vertices  0..7  ->  sign bits, bit0 = X, bit1 = Y, bit2 = Z (set = positive)
  edges     0..11 ->  vertex pairs differing in one bit (X, then Y, then Z edges)
"""
from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Tuple

import numpy as np
from scipy.spatial.transform import Rotation


class Face(IntEnum):
    """Local axis directions of a box, used as face indices."""
    POS_X = 0
    POS_Y = 1
    POS_Z = 2
    NEG_X = 3
    NEG_Y = 4
    NEG_Z = 5

    @property
    def opposite(self) -> "Face":
        return Face((self + 3) % 6)

    @property
    def axis(self) -> int:
        """Index (0, 1, 2) of the local axis this face is perpendicular to."""
        return int(self) % 3

    @property
    def sign(self) -> float:
        return 1.0 if self < 3 else -1.0


AXIS_VECTORS = np.array([
    [1.0, 0.0, 0.0],
    [0.0, 1.0, 0.0],
    [0.0, 0.0, 1.0],
    [-1.0, 0.0, 0.0],
    [0.0, -1.0, 0.0],
    [0.0, 0.0, -1.0],
])

# (low vertex, high vertex) per edge; the pair differs in exactly one bit.
EDGE_VERTICES: Tuple[Tuple[int, int], ...] = (
    (0, 1), (2, 3), (4, 5), (6, 7),
    (0, 2), (1, 3), (4, 6), (5, 7),
    (0, 4), (1, 5), (2, 6), (3, 7),
)


@dataclass
class BoxFace:
    """One face of an oriented box in world space.

    normal, axis_u and axis_v are scaled by the box half-extents, so the
    face rectangle is center +/- axis_u +/- axis_v.
    """
    index: Face
    center: np.ndarray      # (3,) world-space face centre
    normal: np.ndarray      # (3,) outward normal * half-extent along it
    axis_u: np.ndarray      # (3,) first in-plane half-extent vector
    axis_v: np.ndarray      # (3,) second in-plane half-extent vector

    @property
    def unit_normal(self) -> np.ndarray:
        return normalized(self.normal)

    def corners(self) -> np.ndarray:
        """The four face corners, in winding order around the centre."""
        c, u, v = self.center, self.axis_u, self.axis_v
        return np.array([c + u + v, c - u + v, c - u - v, c + u - v])


@dataclass
class OrientedBox:
    """A cuboid collision volume: centre, rotation and half-extents."""
    center: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: Rotation = field(default_factory=Rotation.identity)
    half_extent: np.ndarray = field(default_factory=lambda: np.full(3, 0.5))

    def __post_init__(self):
        self.center = np.asarray(self.center, dtype=float)
        self.half_extent = np.asarray(self.half_extent, dtype=float)
        if not isinstance(self.rotation, Rotation):
            # Accept a scalar-last (x, y, z, w) quaternion.
            self.rotation = Rotation.from_quat(np.asarray(self.rotation, dtype=float))

    @classmethod
    def from_pose(
        cls,
        position,
        rotation_deg=(0.0, 0.0, 0.0),
        half_extent=(0.5, 0.5, 0.5),
    ) -> "OrientedBox":
        """Build a box from a position and Euler rotation in degrees.

        The rotation is applied in intrinsic Y, X, Z order, matching how
        part poses are stored in ship saves.
        """
        return cls(
            center=np.asarray(position, dtype=float),
            rotation=euler_to_rotation(rotation_deg),
            half_extent=np.asarray(half_extent, dtype=float),
        )

    # ─── Axes ────────────────────────────────────────────────────────────

    @property
    def axes(self) -> np.ndarray:
        """(3, 3) matrix whose rows are the local X, Y, Z unit axes."""
        return self.rotation.as_matrix().T

    def axis(self, k: int) -> np.ndarray:
        return self.axes[k]

    def direction(self, face: int) -> np.ndarray:
        """World-space unit direction of local face ``face``."""
        face = Face(face)
        return face.sign * self.axes[face.axis]

    def extent_along(self, face: int) -> float:
        return float(self.half_extent[Face(face).axis])

    # ─── Features ────────────────────────────────────────────────────────

    def face(self, i: int) -> BoxFace:
        face = Face(i)
        axes = self.axes
        k = face.axis
        ku, kv = (k + 1) % 3, (k + 2) % 3
        normal = face.sign * axes[k] * self.half_extent[k]
        # Negative faces flip u so that u x v keeps pointing outwards.
        axis_u = face.sign * axes[ku] * self.half_extent[ku]
        axis_v = axes[kv] * self.half_extent[kv]
        return BoxFace(
            index=face,
            center=self.center + normal,
            normal=normal,
            axis_u=axis_u,
            axis_v=axis_v,
        )

    def vertex(self, i: int) -> np.ndarray:
        if not 0 <= i < 8:
            raise IndexError(f"Vertex index out of range: {i}")
        signs = np.array([1.0 if i & (1 << k) else -1.0 for k in range(3)])
        return self.center + (signs * self.half_extent) @ self.axes

    def edge(self, i: int) -> Tuple[np.ndarray, np.ndarray]:
        lo, hi = EDGE_VERTICES[i]
        return self.vertex(lo), self.vertex(hi)

    def faces(self) -> List[BoxFace]:
        return [self.face(i) for i in range(6)]

    def vertices(self) -> np.ndarray:
        return np.array([self.vertex(i) for i in range(8)])

    def edges(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return [self.edge(i) for i in range(12)]

    # ─── Bounds ──────────────────────────────────────────────────────────

    def aabb(self) -> Tuple[np.ndarray, np.ndarray]:
        """World axis-aligned bounds (min, max)."""
        verts = self.vertices()
        return verts.min(axis=0), verts.max(axis=0)

    def translated(self, offset) -> "OrientedBox":
        return OrientedBox(
            center=self.center + np.asarray(offset, dtype=float),
            rotation=self.rotation,
            half_extent=self.half_extent.copy(),
        )

    def coincides(self, other: "OrientedBox", atol: float = 1e-9) -> bool:
        """True when both boxes describe the same volume and orientation."""
        return (
            np.allclose(self.center, other.center, atol=atol)
            and np.allclose(self.half_extent, other.half_extent, atol=atol)
            and np.allclose(self.axes, other.axes, atol=atol)
        )


def euler_to_rotation(rotation_deg) -> Rotation:
    """Euler (x, y, z) degrees applied in intrinsic Y, X, Z order."""
    rx, ry, rz = (float(a) for a in rotation_deg)
    return Rotation.from_euler("YXZ", [ry, rx, rz], degrees=True)


def rotation_to_euler(rotation: Rotation) -> Tuple[float, float, float]:
    """Inverse of :func:`euler_to_rotation`, returned as (x, y, z) degrees."""
    ry, rx, rz = rotation.as_euler("YXZ", degrees=True)
    return (float(rx), float(ry), float(rz))


def aabb_gap(a: OrientedBox, b: OrientedBox) -> float:
    """Distance between the world AABBs of two boxes (0 when they overlap)."""
    a_min, a_max = a.aabb()
    b_min, b_max = b.aabb()
    gap = np.maximum(0.0, np.maximum(a_min - b_max, b_min - a_max))
    return float(np.linalg.norm(gap))


def round_to_axis(box: OrientedBox, direction) -> Face:
    """Face of ``box`` whose outward direction is closest to ``direction``."""
    d = normalized(np.asarray(direction, dtype=float))
    dots = [float(box.direction(i) @ d) for i in range(6)]
    return Face(int(np.argmax(dots)))


def normalized(v: np.ndarray) -> np.ndarray:
    n = np.linalg.norm(v)
    if n < 1e-12:
        return np.zeros_like(v)
    return v / n
