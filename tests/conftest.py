import pytest

from webcam.config import Config
from voxel.grid import Grid
from voxel.store import VoxelStore


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def grid(config):
    return Grid(config.grid)


@pytest.fixture
def store(grid):
    return VoxelStore(grid)


@pytest.fixture
def make_hand():
    """Factory for 21 landmarks with the index tip at (x, y)."""
    def _make(x=0.5, y=0.5, pinch=False):
        landmarks = [(x, y, 0.0)] * 21
        thumb_x = x + 0.02 if pinch else x + 0.3
        landmarks[4] = (thumb_x, y, 0.0)
        return landmarks
    return _make


@pytest.fixture
def aim():
    """Factory for the landmark (x, y, z) whose cursor ray passes through a world point."""
    def _aim(camera, point):
        ndc, _ = camera.project(point)
        nx, ny = ndc[0]
        return (1 - (nx + 1) / 2, (1 - ny) / 2, 0.0)
    return _aim
