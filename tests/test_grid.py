import numpy as np
import pytest

from webcam.config import GridConfig
from voxel.grid import Grid


def test_snap_to_cell_centre(grid):
    assert np.allclose(grid.snap((0.3, 0.2, -0.7)), (0.5, 0.5, -0.5))
    assert np.allclose(grid.snap((-2.01, 3.99, 1.0)), (-2.5, 3.5, 1.5))


@pytest.mark.parametrize("point", [
    (0.0, 0.0, 0.0),
    (1.2, 3.7, -4.4),
    (-4.9, 9.9, 4.9),
    (12.0, -3.0, -30.0),
])
def test_snap_is_idempotent(grid, point):
    once = grid.snap(point)
    assert np.allclose(grid.snap(once), once)


def test_snap_clamps_to_bounds(grid):
    assert np.allclose(grid.snap((100.0, -5.0, -100.0)), (4.5, 0.5, -4.5))
    assert np.allclose(grid.snap((0.0, 50.0, 0.0)), (0.5, 9.5, 0.5))


def test_bounds_follow_config():
    grid = Grid(GridConfig(grid_size=4, cell_size=2.0, max_height=3))

    assert grid.min_xz == -3.0
    assert grid.max_xz == 3.0
    assert grid.ground_y == 1.0
    assert grid.max_y == 5.0
    assert np.allclose(grid.snap((0.5, 0.5, 0.5)), (1.0, 1.0, 1.0))


def test_key_and_center_agree(grid):
    key = grid.key((-0.5, 2.5, 3.5))

    assert key == (-1, 2, 3)
    assert np.allclose(grid.center(key), (-0.5, 2.5, 3.5))


def test_column_center(grid):
    assert grid.column_center(1.9, -0.1) == (1.5, -0.5)


def test_contains(grid):
    assert grid.contains((0, 0, 0))
    assert grid.contains((-5, 9, 4))
    assert not grid.contains((5, 0, 0))
    assert not grid.contains((0, -1, 0))
    assert not grid.contains((0, 10, 0))
    assert not grid.contains((0, 0, -6))
