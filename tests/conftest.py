"""
Shared test fixtures for the hull editor geometry tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from hull_adjacency import HullPlacement
from hull_parts import AdjustableHull, PartMetadata, PartRegistry, Pose, collider_box

HULL_TYPE = 0
BLOCK_TYPE = 1


@pytest.fixture
def registry():
    """Adjustable hull (type 0) and a unit block (type 1)."""
    return PartRegistry({
        HULL_TYPE: PartMetadata(half_extent=[1.0, 0.5, 0.5]),
        BLOCK_TYPE: PartMetadata(half_extent=[0.5, 0.5, 0.5]),
    })


@pytest.fixture
def seam_hull():
    """2 wide, 4 tall, 1 long, flat everywhere."""
    return AdjustableHull(length=1.0, height=4.0, front_width=2.0, back_width=2.0)


@pytest.fixture
def make_placement(registry):
    """Factory: hull + pose -> HullPlacement with its collider box."""
    def _make(hull, position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0)):
        pose = Pose(position=position, rotation=rotation)
        box = collider_box(pose, registry.lookup(HULL_TYPE), hull)
        return HullPlacement(box=box, hull=hull)
    return _make
