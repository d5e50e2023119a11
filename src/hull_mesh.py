"""
Lofted mesh generation for adjustable hull segments.

The front (+Z) and back (-Z) cross-sections are sampled around a full
turn, each closed with a fan cap around its centroid, and joined with a
quad strip. Roundness blends each sample between a square outline
(roundness 0) and an ellipse (roundness 1).

Vertex layout for resolution R:
  0 .. R-1        front ring
  R               front centroid
  R+1 .. 2R       back ring
  2R+1            back centroid
"""
import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np
import trimesh

from hull_parts import AdjustableHull

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION = 24


@dataclass
class HullMeshBuffers:
    """Renderer-facing buffers for one hull mesh."""
    positions: np.ndarray               # (V, 3) float
    uvs: np.ndarray                     # (V, 2) float
    indices: np.ndarray                 # (T, 3) int
    normals: Optional[np.ndarray] = None

    def flat_shaded(self) -> "HullMeshBuffers":
        """Unshared vertices per triangle with the face normal on each."""
        flat = self.indices.reshape(-1)
        positions = self.positions[flat]
        tris = positions.reshape(-1, 3, 3)
        normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        normals = np.divide(normals, lengths, out=np.zeros_like(normals),
                            where=lengths > 1e-12)
        return HullMeshBuffers(
            positions=positions,
            uvs=self.uvs[flat],
            indices=np.arange(len(flat)).reshape(-1, 3),
            normals=np.repeat(normals, 3, axis=0),
        )


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def hull_cross_section(
    hull: AdjustableHull,
    front: bool,
    resolution: int = DEFAULT_RESOLUTION,
) -> np.ndarray:
    """(resolution, 3) ring of one end, counter-clockwise seen from +Z."""
    if resolution < 3:
        raise ValueError(f"Hull mesh resolution must be at least 3, got {resolution}")

    width = hull.end_width(front)
    top_width = width + hull.end_spread(front)
    if front:
        y_scale = hull.height_scale * hull.height * 0.5
        y_offset = hull.height_offset * hull.height
    else:
        y_scale = hull.height * 0.5
        y_offset = 0.0
    half_height = hull.height * 0.5
    z = hull.length * 0.5 if front else -hull.length * 0.5

    ring = np.empty((resolution, 3))
    for i in range(resolution):
        angle = 2.0 * math.pi * i / resolution
        s, c = math.sin(angle), math.cos(angle)
        roundness = hull.top_roundness if s > 0 else hull.bottom_roundness
        # 1/max(|sin|,|cos|) pushes the unit circle out onto the unit square.
        blend = _lerp(1.0 / max(abs(s), abs(c)), 1.0, roundness)
        x = c * blend * _lerp(width * 0.5, top_width * 0.5, s * blend * 0.5 + 0.5)
        y = min(max(s * blend * y_scale + y_offset, -half_height), half_height)
        ring[i] = (x, y, z)
    return ring


def hull_mesh_buffers(
    hull: AdjustableHull,
    resolution: int = DEFAULT_RESOLUTION,
) -> HullMeshBuffers:
    """Positions, UVs and outward-wound triangles of a hull segment."""
    front_ring = hull_cross_section(hull, True, resolution)
    back_ring = hull_cross_section(hull, False, resolution)
    positions = np.vstack([
        front_ring, front_ring.mean(axis=0, keepdims=True),
        back_ring, back_ring.mean(axis=0, keepdims=True),
    ])

    u = np.append(np.arange(resolution) / resolution, 0.5)
    uvs = np.vstack([
        np.column_stack([u, np.zeros(resolution + 1)]),
        np.column_stack([u, np.ones(resolution + 1)]),
    ])

    indices = np.array(_triangles(resolution), dtype=np.int64)
    return HullMeshBuffers(positions=positions, uvs=uvs, indices=indices)


def build_hull_mesh(
    hull: AdjustableHull,
    resolution: int = DEFAULT_RESOLUTION,
) -> trimesh.Trimesh:
    """Closed trimesh of a hull segment in its local frame."""
    buffers = hull_mesh_buffers(hull, resolution)
    mesh = trimesh.Trimesh(
        vertices=buffers.positions,
        faces=buffers.indices,
        visual=trimesh.visual.TextureVisuals(uv=buffers.uvs),
        process=False,
    )
    logger.debug(
        "hull mesh: %d vertices, %d faces (resolution %d)",
        len(mesh.vertices), len(mesh.faces), resolution,
    )
    return mesh


# ─── Internal ─────────────────────────────────────────────────────────────────

def _triangles(resolution: int):
    r = resolution
    back = r + 1
    front_centre, back_centre = r, back + r
    tris = []

    # Caps: front faces +Z, back is wound the other way to face -Z.
    for i in range(r):
        prev = (i - 1) % r
        tris.append((prev, i, front_centre))
        tris.append((back_centre, back + i, back + prev))

    # Side wall, including the wrap-around segment.
    for i in range(r):
        prev = (i - 1) % r
        tris.append((back + prev, i, prev))
        tris.append((back + prev, back + i, i))
    return tris
