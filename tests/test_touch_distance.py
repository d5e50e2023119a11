"""Tests for touch_distance module."""
import math

import numpy as np
import pytest

from oriented_box import OrientedBox
from touch_distance import (
    EdgeFeature,
    FaceFeature,
    TouchConfig,
    VertexFeature,
    box_features,
    feature_touch_distance,
    touch_distance,
)


def _box(position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0), half=(0.5, 0.5, 0.5)):
    return OrientedBox.from_pose(position, rotation, half)


class TestTouchDistance:
    """Sweeping one box into another."""

    def test_face_to_face(self):
        assert touch_distance(_box(), _box((3.0, 0.0, 0.0)), [1, 0, 0]) == pytest.approx(2.0)

    def test_direction_is_normalised(self):
        assert touch_distance(_box(), _box((3.0, 0.0, 0.0)), [5, 0, 0]) == pytest.approx(2.0)

    def test_already_touching(self):
        assert touch_distance(_box(), _box((1.0, 0.0, 0.0)), [1, 0, 0]) == pytest.approx(0.0)

    def test_moving_away(self):
        assert math.isinf(touch_distance(_box(), _box((3.0, 0.0, 0.0)), [-1, 0, 0]))

    def test_missing_sideways(self):
        assert math.isinf(touch_distance(_box(), _box((3.0, 0.0, 0.0)), [0, 1, 0]))

    def test_reverse_symmetry(self):
        a = _box()
        b = _box((3.0, 0.2, 0.1), half=(0.5, 1.0, 0.7))
        forward = touch_distance(a, b, [1, 0, 0])
        backward = touch_distance(b, a, [-1, 0, 0])
        assert forward == pytest.approx(2.0)
        assert backward == pytest.approx(forward)

    def test_rotated_target_edge_leads(self):
        # Target turned 45 degrees presents a vertical edge to the mover's face.
        b = _box((3.0, 0.0, 0.0), rotation=(0.0, 45.0, 0.0))
        expected = 2.5 - math.sqrt(0.5)
        assert touch_distance(_box(), b, [1, 0, 0]) == pytest.approx(expected)

    def test_crossed_edges(self):
        # Mover leads with an edge along Z, target with an edge along Y.
        a = _box(rotation=(0.0, 0.0, 45.0))
        b = _box((3.0, 0.0, 0.0), rotation=(0.0, 45.0, 0.0))
        assert touch_distance(a, b, [1, 0, 0]) == pytest.approx(3.0 - math.sqrt(2.0))


class TestFeaturePairs:
    """Individual feature-pair solvers."""

    def test_feature_count(self):
        features = box_features(_box())
        assert len(features) == 26
        assert sum(isinstance(f, FaceFeature) for f in features) == 6
        assert sum(isinstance(f, VertexFeature) for f in features) == 8

    def test_vertex_to_face(self):
        face = _box((3.0, 0.0, 0.0)).face(3)
        vertex = VertexFeature(np.array([0.5, 0.2, -0.3]))
        dist = feature_touch_distance(vertex, FaceFeature(face), np.array([1.0, 0.0, 0.0]))
        assert dist == pytest.approx(2.0)

    def test_vertex_misses_face(self):
        face = _box((3.0, 0.0, 0.0)).face(3)
        vertex = VertexFeature(np.array([0.5, 0.8, 0.0]))
        assert feature_touch_distance(
            vertex, FaceFeature(face), np.array([1.0, 0.0, 0.0]),
        ) is None

    def test_edge_to_edge(self):
        moving = EdgeFeature(np.array([0.0, 0.0, -1.0]), np.array([0.0, 0.0, 1.0]))
        target = EdgeFeature(np.array([2.0, -1.0, 0.0]), np.array([2.0, 1.0, 0.0]))
        dist = feature_touch_distance(moving, target, np.array([1.0, 0.0, 0.0]))
        assert dist == pytest.approx(2.0)

    def test_edge_behind(self):
        moving = EdgeFeature(np.array([0.0, 0.0, -1.0]), np.array([0.0, 0.0, 1.0]))
        target = EdgeFeature(np.array([-2.0, -1.0, 0.0]), np.array([-2.0, 1.0, 0.0]))
        assert feature_touch_distance(
            moving, target, np.array([1.0, 0.0, 0.0]),
        ) is None

    def test_unsupported_pair(self):
        box = _box()
        assert feature_touch_distance(
            FaceFeature(box.face(0)), FaceFeature(box.face(3)), np.array([1.0, 0.0, 0.0]),
        ) is None

    def test_custom_config(self):
        config = TouchConfig(boundary_epsilon=0.1)
        face = _box((3.0, 0.0, 0.0)).face(3)
        vertex = VertexFeature(np.array([0.5, 0.55, 0.0]))
        dist = feature_touch_distance(
            vertex, FaceFeature(face), np.array([1.0, 0.0, 0.0]), config,
        )
        assert dist == pytest.approx(2.0)
