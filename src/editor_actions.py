"""
Editor actions that drive the geometry solvers against a scene of parts.

EditorScene is a plain in-memory stand-in for the host editor's part
store: it owns parts, the current selection and the collider registry,
and exposes the user-facing operations (move, smart move, attribute
edits with seam propagation, touch placement for spawn/paste/drag).
Every action reads colliders from one snapshot before it writes
anything back.
"""
import logging
import math
from dataclasses import dataclass, field, fields
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import trimesh
from scipy.spatial.transform import Rotation

from hull_adjacency import HullAdjacencyConfig, HullPlacement, hull_adjacent
from hull_mesh import DEFAULT_RESOLUTION, build_hull_mesh
from hull_parts import (
    AdjustableHull,
    HullAttribute,
    HullEditorError,
    Part,
    PartRegistry,
    collider_box,
)
from hull_propagation import propagate
from oriented_box import OrientedBox, round_to_axis
from proximity import ProximityConfig, nearby
from smart_move import SmartMoveConfig, smart_move
from touch_distance import TouchConfig, touch_distance

logger = logging.getLogger(__name__)

MeshListener = Callable[[str, trimesh.Trimesh], None]

DEFAULT_SPAWN_DISTANCE = 100.0


class SelectionError(HullEditorError):
    """An action needs a selection shape the scene does not have."""
    pass


@dataclass
class EditorSettings:
    """Editor toggles plus the tolerances of every solver."""
    edit_near: bool = True
    group_edit: bool = False
    mesh_resolution: int = DEFAULT_RESOLUTION
    touch: TouchConfig = field(default_factory=TouchConfig)
    proximity: ProximityConfig = field(default_factory=ProximityConfig)
    adjacency: HullAdjacencyConfig = field(default_factory=HullAdjacencyConfig)
    smart_move: SmartMoveConfig = field(default_factory=SmartMoveConfig)

    @classmethod
    def from_dict(cls, data: Dict) -> "EditorSettings":
        """Build settings from a (possibly partial) nested dict.

        Unknown keys raise ValueError so typos in saved settings surface.
        """
        nested = {
            "touch": TouchConfig,
            "proximity": ProximityConfig,
            "adjacency": HullAdjacencyConfig,
            "smart_move": SmartMoveConfig,
        }
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                raise ValueError(f"Unknown editor setting: {key}")
            if key in nested:
                sub_known = {f.name for f in fields(nested[key])}
                unknown = set(value) - sub_known
                if unknown:
                    raise ValueError(f"Unknown {key} settings: {sorted(unknown)}")
                value = nested[key](**value)
            kwargs[key] = value
        return cls(**kwargs)


class EditorScene:
    """Parts, selection and collider registry for one edited ship."""

    def __init__(
        self,
        registry: PartRegistry,
        settings: Optional[EditorSettings] = None,
        mesh_listener: Optional[MeshListener] = None,
    ):
        self.registry = registry
        self.settings = settings or EditorSettings()
        self.mesh_listener = mesh_listener
        self.parts: Dict[str, Part] = {}
        self.selection: List[str] = []

    # ─── Scene bookkeeping ───────────────────────────────────────────────

    def add_part(self, part: Part, select: bool = False) -> Part:
        if part.part_id in self.parts:
            raise ValueError(f"Duplicate part id: {part.part_id}")
        self.registry.lookup(part.type_id)
        self.parts[part.part_id] = part
        if select:
            self.selection.append(part.part_id)
        if part.is_hull:
            self._notify_mesh(part)
        return part

    def part(self, part_id: str) -> Part:
        return self.parts[part_id]

    def select(self, *part_ids: str) -> None:
        for part_id in part_ids:
            self.part(part_id)
        self.selection = list(part_ids)

    def collider(self, part_id: str) -> OrientedBox:
        part = self.part(part_id)
        return collider_box(part.pose, self.registry.lookup(part.type_id), part.hull)

    def snapshot(self) -> Tuple[List[str], List[OrientedBox]]:
        """Part ids and their colliders, in scene order."""
        ids = list(self.parts)
        return ids, [self.collider(part_id) for part_id in ids]

    # ─── Movement ────────────────────────────────────────────────────────

    def move_selected(
        self,
        vector,
        camera_rotation: Optional[Rotation] = None,
        multiplier: float = 1.0,
    ) -> np.ndarray:
        """Translate the selection along a camera-relative vector.

        The camera rotation is snapped to the nearest 90 degrees on each
        Euler axis so moves stay on the grid axes.
        """
        translation = np.asarray(vector, dtype=float)
        if camera_rotation is not None:
            translation = snap_rotation(camera_rotation).apply(translation)
        translation = translation * multiplier

        for part_id in self.selection:
            self.part(part_id).pose.position += translation
        logger.info("moved %d part(s) by %s", len(self.selection), translation)
        return translation

    def smart_move_selected(
        self,
        direction,
        multiplier: int = 0,
        camera_rotation: Optional[Rotation] = None,
    ) -> Dict[str, float]:
        """Snap each selected part towards its neighbours.

        ``direction`` is rounded to the closest local axis of each part;
        ``multiplier`` picks which snap target to step to (0 = nearest).
        Returns the applied offset per part id.
        """
        world_dir = np.asarray(direction, dtype=float)
        if camera_rotation is not None:
            world_dir = camera_rotation.apply(world_dir)

        _, boxes = self.snapshot()
        applied: Dict[str, float] = {}
        for part_id in self.selection:
            origin = self.collider(part_id)
            axis = round_to_axis(origin, world_dir)
            near = nearby(origin, boxes, False, False, self.settings.proximity)
            offset = smart_move(origin, boxes, near, axis, int(multiplier),
                                self.settings.smart_move)
            self.part(part_id).pose.position += origin.direction(axis) * offset
            applied[part_id] = offset
        logger.info("smart move along %s: %s", world_dir, applied)
        return applied

    # ─── Attribute edits ─────────────────────────────────────────────────

    def set_attribute(
        self,
        attribute: Union[HullAttribute, str],
        value: float,
    ) -> List[str]:
        """Set a hull attribute on the selection.

        Group edit shifts every selected hull by the same amount so the
        selection's mean lands on ``value``. Otherwise, with edit_near on,
        neighbouring hulls are rewritten to keep their seams matched.

        Returns:
            Ids of every hull whose attributes changed.
        """
        if isinstance(attribute, str):
            attribute = HullAttribute.parse(attribute)
        selected = [pid for pid in self.selection if self.part(pid).is_hull]
        if not selected:
            return []

        updates: Dict[str, AdjustableHull] = {}
        if self.settings.group_edit:
            current = [self.part(pid).hull.get(attribute) for pid in selected]
            difference = value - float(np.mean(current))
            for pid, orig in zip(selected, current):
                hull = self.part(pid).hull.copy()
                hull.set(attribute, orig + difference)
                updates[pid] = hull
        elif self.settings.edit_near:
            updates = self._propagated_updates(selected, attribute, value)
        else:
            for pid in selected:
                hull = self.part(pid).hull.copy()
                hull.set(attribute, value)
                updates[pid] = hull

        changed = []
        for pid, hull in updates.items():
            part = self.part(pid)
            if part.hull.isclose(hull):
                continue
            part.hull = hull
            changed.append(pid)
            self._notify_mesh(part)
        logger.info("set %s=%.4f: %d hull(s) changed", attribute.value, value, len(changed))
        return changed

    def _propagated_updates(
        self,
        selected: Sequence[str],
        attribute: HullAttribute,
        value: float,
    ) -> Dict[str, AdjustableHull]:
        hull_ids = [pid for pid, part in self.parts.items() if part.is_hull]
        placements = [
            HullPlacement(self.collider(pid), self.part(pid).hull.copy())
            for pid in hull_ids
        ]
        hulls = [p.hull for p in placements]

        # All adjacency is resolved on the pre-edit snapshot.
        adjacencies = []
        for pid in selected:
            index = hull_ids.index(pid)
            adjacencies.append((index, hull_adjacent(
                placements[index], placements, index, self.settings.adjacency,
            )))

        # One working copy per hull, shared by every selected origin.
        working_set: Dict[int, AdjustableHull] = {}
        changed: Dict[int, AdjustableHull] = {}
        for index, adjacency in adjacencies:
            changed = propagate(
                hulls, index, attribute, value, adjacency, working_set,
            )
        return {hull_ids[i]: hull for i, hull in changed.items()}

    # ─── Placement ───────────────────────────────────────────────────────

    def place_touching(
        self,
        part: Part,
        eye,
        direction,
        target_id: Optional[str] = None,
        max_distance: float = DEFAULT_SPAWN_DISTANCE,
    ) -> Optional[np.ndarray]:
        """Position along a view ray where ``part`` first touches a target.

        The part's collider is placed at the eye and swept along
        ``direction`` into the target's collider; the travel is capped at
        ``max_distance``. Returns None when the travel is unbounded (no
        contact and an infinite cap).
        """
        eye = np.asarray(eye, dtype=float)
        d = np.asarray(direction, dtype=float)
        d = d / np.linalg.norm(d)

        dist = max_distance
        if target_id is not None:
            metadata = self.registry.lookup(part.type_id)
            box = collider_box(part.pose, metadata, part.hull)
            box = OrientedBox(
                center=eye + metadata.center_offset,
                rotation=box.rotation,
                half_extent=box.half_extent,
            )
            dist = min(dist, touch_distance(box, self.collider(target_id), d,
                                            self.settings.touch))
        if math.isinf(dist):
            return None
        return eye + d * dist

    def spawn_part(
        self,
        part: Part,
        eye,
        direction,
        target_id: Optional[str] = None,
        select: bool = False,
    ) -> Part:
        """Add ``part`` in front of the camera, resting against the target.

        Also used for paste. With ``select`` the new part replaces the
        current selection.
        """
        position = self.place_touching(part, eye, direction, target_id)
        part.pose.position = position
        if select:
            self.selection = []
        self.add_part(part, select=select)
        logger.info("spawned %s (type %d) at %s", part.part_id, part.type_id, position)
        return part

    def drag_floating(self, eye, direction, target_id: str) -> Optional[np.ndarray]:
        """Move the single selected part to rest against the hovered target.

        Leaves the part where it is and returns None when it cannot reach
        the target along the ray.
        """
        if len(self.selection) != 1:
            raise SelectionError(
                f"Floating drag needs exactly one selected part, got {len(self.selection)}"
            )
        part = self.part(self.selection[0])
        position = self.place_touching(part, eye, direction, target_id,
                                       max_distance=math.inf)
        if position is not None:
            part.pose.position = position
        return position

    def _notify_mesh(self, part: Part) -> None:
        if self.mesh_listener is None:
            return
        self.mesh_listener(
            part.part_id, build_hull_mesh(part.hull, self.settings.mesh_resolution),
        )


def snap_rotation(rotation: Rotation) -> Rotation:
    """Round each Euler angle of ``rotation`` to a multiple of 90 degrees."""
    angles = rotation.as_euler("XYZ")
    snapped = np.round(angles / (math.pi / 2)) * (math.pi / 2)
    return Rotation.from_euler("XYZ", snapped)
