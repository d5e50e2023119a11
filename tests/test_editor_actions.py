"""Tests for editor_actions module."""
import numpy as np
import pytest
import trimesh
from scipy.spatial.transform import Rotation

from editor_actions import EditorScene, EditorSettings, SelectionError, snap_rotation
from hull_parts import AdjustableHull, HullAttribute, MissingColliderError, Part, Pose

HULL_TYPE = 0
BLOCK_TYPE = 1


def _block(part_id, position=(0.0, 0.0, 0.0)):
    return Part(part_id, BLOCK_TYPE, Pose(position=position))


def _hull(part_id, position=(0.0, 0.0, 0.0), **kwargs):
    base = dict(length=1.0, height=4.0, front_width=2.0, back_width=2.0)
    base.update(kwargs)
    return Part(part_id, HULL_TYPE, Pose(position=position), AdjustableHull(**base))


@pytest.fixture
def meshes():
    return []


@pytest.fixture
def scene(registry, meshes):
    return EditorScene(registry, mesh_listener=lambda pid, mesh: meshes.append((pid, mesh)))


class TestSettings:

    def test_from_dict(self):
        settings = EditorSettings.from_dict({
            "edit_near": False,
            "touch": {"boundary_epsilon": 1e-4},
            "smart_move": {"reach": 2.0},
        })
        assert settings.edit_near is False
        assert settings.touch.boundary_epsilon == 1e-4
        assert settings.smart_move.reach == 2.0
        assert settings.proximity.overlap_margin == 0.1

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            EditorSettings.from_dict({"snap": True})
        with pytest.raises(ValueError):
            EditorSettings.from_dict({"touch": {"eps": 1.0}})


class TestSceneBookkeeping:

    def test_unknown_part_type(self, scene):
        with pytest.raises(MissingColliderError):
            scene.add_part(Part("x", 99))

    def test_unknown_part_id(self, scene):
        with pytest.raises(KeyError):
            scene.collider("missing")

    def test_duplicate_id(self, scene):
        scene.add_part(_block("a"))
        with pytest.raises(ValueError):
            scene.add_part(_block("a"))

    def test_snapshot_order(self, scene):
        scene.add_part(_block("a"))
        scene.add_part(_block("b", (2.0, 0.0, 0.0)))
        ids, boxes = scene.snapshot()
        assert ids == ["a", "b"]
        np.testing.assert_allclose(boxes[1].center, [2, 0, 0])

    def test_hull_added_notifies(self, scene, meshes):
        scene.add_part(_hull("h"))
        scene.add_part(_block("b", (5.0, 0.0, 0.0)))
        assert [pid for pid, _ in meshes] == ["h"]
        assert isinstance(meshes[0][1], trimesh.Trimesh)


class TestMovement:
    """Plain and smart moves of the selection."""

    def test_move_selected(self, scene):
        scene.add_part(_block("a"), select=True)
        scene.add_part(_block("b", (5.0, 0.0, 0.0)))
        scene.move_selected([1.0, 0.0, 0.0], multiplier=2.0)
        np.testing.assert_allclose(scene.part("a").pose.position, [2, 0, 0])
        np.testing.assert_allclose(scene.part("b").pose.position, [5, 0, 0])

    def test_camera_snapped_to_grid(self, scene):
        scene.add_part(_block("a"), select=True)
        camera = Rotation.from_euler("XYZ", [0.0, 0.0, 80.0], degrees=True)
        scene.move_selected([1.0, 0.0, 0.0], camera)
        np.testing.assert_allclose(scene.part("a").pose.position, [0, 1, 0], atol=1e-12)

    def test_snap_rotation(self):
        snapped = snap_rotation(Rotation.from_euler("XYZ", [10.0, 30.0, -50.0], degrees=True))
        np.testing.assert_allclose(snapped.as_euler("XYZ", degrees=True), [0, 0, -90], atol=1e-9)

    def test_smart_move_steps(self, scene):
        scene.add_part(_block("a"), select=True)
        scene.add_part(_block("b", (1.5, 0.0, 0.0)))
        assert scene.smart_move_selected([1.0, 0.1, 0.0]) == {"a": pytest.approx(0.5)}
        np.testing.assert_allclose(scene.part("a").pose.position, [0.5, 0, 0])
        # Now flush against b; the next press puts its leading face on b's centre.
        scene.smart_move_selected([1.0, 0.0, 0.0], multiplier=0)
        np.testing.assert_allclose(scene.part("a").pose.position, [1.0, 0, 0])

    def test_smart_move_without_neighbours(self, scene):
        scene.add_part(_block("a"), select=True)
        assert scene.smart_move_selected([0.0, 1.0, 0.0]) == {"a": 0.0}
        np.testing.assert_allclose(scene.part("a").pose.position, [0, 0, 0])


class TestSetAttribute:
    """Hull attribute edits with and without seam propagation."""

    def test_edit_near_reaches_neighbour(self, scene, meshes):
        scene.add_part(_hull("h1"), select=True)
        scene.add_part(_hull("h2", (0.0, 0.0, 1.0)))
        meshes.clear()
        changed = scene.set_attribute(HullAttribute.FRONT_WIDTH, 3.0)
        assert changed == ["h1", "h2"]
        assert scene.part("h1").hull.front_width == 3.0
        assert scene.part("h2").hull.back_width == pytest.approx(3.0)
        assert [pid for pid, _ in meshes] == ["h1", "h2"]

    def test_plain_edit(self, registry):
        scene = EditorScene(registry, EditorSettings(edit_near=False))
        scene.add_part(_hull("h1"), select=True)
        scene.add_part(_hull("h2", (0.0, 0.0, 1.0)))
        assert scene.set_attribute("frontWidth", 3.0) == ["h1"]
        assert scene.part("h2").hull.back_width == 2.0

    def test_group_edit_keeps_offsets(self, registry):
        scene = EditorScene(registry, EditorSettings(group_edit=True))
        scene.add_part(_hull("h1", length=1.0), select=True)
        scene.add_part(_hull("h2", (9.0, 0.0, 0.0), length=3.0), select=True)
        scene.set_attribute(HullAttribute.LENGTH, 4.0)
        assert scene.part("h1").hull.length == pytest.approx(3.0)
        assert scene.part("h2").hull.length == pytest.approx(5.0)

    def test_non_hull_selection_ignored(self, scene):
        scene.add_part(_block("a"), select=True)
        assert scene.set_attribute(HullAttribute.HEIGHT, 2.0) == []

    def test_edit_chain_stays_joined(self, scene):
        scene.add_part(_hull("h1"), select=True)
        scene.add_part(_hull("h2", (0.0, 0.0, 1.0)))
        scene.set_attribute(HullAttribute.FRONT_SPREAD, 0.5)
        scene.select("h2")
        changed = scene.set_attribute(HullAttribute.BACK_WIDTH, 2.5)
        assert set(changed) == {"h1", "h2"}
        assert scene.part("h1").hull.section_widths(True) == pytest.approx((2.5, 3.0))

    @pytest.mark.parametrize("order", [("h1", "h2"), ("h2", "h1")])
    def test_selected_neighbours_share_seam(self, scene, order):
        scene.add_part(_hull("h1"))
        scene.add_part(_hull("h2", (0.0, 0.0, 1.0)))
        scene.add_part(_hull("h3", (0.0, 0.0, 2.0)))
        scene.select(*order)
        changed = scene.set_attribute(HullAttribute.FRONT_WIDTH, 3.0)
        assert set(changed) == {"h1", "h2", "h3"}
        assert scene.part("h1").hull.front_width == pytest.approx(3.0)
        assert scene.part("h2").hull.back_width == pytest.approx(3.0)
        assert scene.part("h2").hull.front_width == pytest.approx(3.0)
        assert scene.part("h3").hull.back_width == pytest.approx(3.0)
        assert scene.part("h3").hull.front_width == pytest.approx(2.0)


class TestPlacement:
    """Spawn, paste and floating drag."""

    def test_place_touching(self, scene):
        scene.add_part(_block("target"))
        position = scene.place_touching(_block("new"), [-5.0, 0.0, 0.0], [1.0, 0.0, 0.0], "target")
        np.testing.assert_allclose(position, [-1.0, 0.0, 0.0])

    def test_place_without_target(self, scene):
        position = scene.place_touching(_block("new"), [0.0, 0.0, 0.0], [0.0, 0.0, 2.0])
        np.testing.assert_allclose(position, [0.0, 0.0, 100.0])

    def test_place_capped(self, scene):
        scene.add_part(_block("target"))
        position = scene.place_touching(_block("new"), [-5.0, 0.0, 0.0], [-1.0, 0.0, 0.0], "target")
        np.testing.assert_allclose(position, [-105.0, 0.0, 0.0])

    def test_spawn_selects(self, scene):
        scene.add_part(_block("target"), select=True)
        part = scene.spawn_part(_block("new"), [-5.0, 0.0, 0.0], [1.0, 0.0, 0.0], "target",
                                select=True)
        assert scene.selection == ["new"]
        np.testing.assert_allclose(part.pose.position, [-1.0, 0.0, 0.0])

    def test_drag_floating(self, scene):
        scene.add_part(_block("target"))
        scene.add_part(_block("held", (7.0, 7.0, 7.0)), select=True)
        assert scene.drag_floating([0.0, 0.0, -4.0], [0.0, 0.0, 1.0], "target") is not None
        np.testing.assert_allclose(scene.part("held").pose.position, [0.0, 0.0, -1.0])

    def test_drag_floating_misses(self, scene):
        scene.add_part(_block("target"))
        scene.add_part(_block("held", (7.0, 7.0, 7.0)), select=True)
        assert scene.drag_floating([0.0, 0.0, -4.0], [0.0, 0.0, -1.0], "target") is None
        np.testing.assert_allclose(scene.part("held").pose.position, [7.0, 7.0, 7.0])

    def test_drag_needs_single_selection(self, scene):
        scene.add_part(_block("target"))
        with pytest.raises(SelectionError):
            scene.drag_floating([0.0, 0.0, -4.0], [0.0, 0.0, 1.0], "target")
