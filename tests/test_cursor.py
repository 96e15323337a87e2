import numpy as np
import pytest

from voxel.camera import PerspectiveCamera
from voxel.cursor import CursorResolver, GhostCursor, landmark_to_ndc


@pytest.fixture
def camera(config):
    return PerspectiveCamera.from_config(config.scene)


@pytest.fixture
def resolver(camera, store, grid):
    return CursorResolver(camera, store, grid)


def test_landmark_to_ndc_unmirrors_x():
    assert landmark_to_ndc((0.0, 0.0, 0.0)) == (1.0, 1.0)
    assert landmark_to_ndc((1.0, 1.0, 0.0)) == (-1.0, -1.0)
    assert landmark_to_ndc((0.5, 0.5, 0.0)) == (0.0, 0.0)


def test_empty_floor_snaps_to_ground_cell(resolver, camera, aim):
    landmark = aim(camera, np.array([2.3, 0.0, -1.2]))

    assert np.allclose(resolver.resolve(landmark), (2.5, 0.5, -1.5))


def test_top_face_hit_places_above(resolver, camera, store, aim):
    store.insert((0.5, 0.5, 0.5), 1)
    landmark = aim(camera, np.array([0.5, 0.99, 0.5]))

    assert np.allclose(resolver.resolve(landmark), (0.5, 1.5, 0.5))


def test_low_side_face_hit_places_beside(resolver, camera, store, aim):
    store.insert((0.5, 0.5, 0.5), 1)
    landmark = aim(camera, np.array([0.5, 0.6, 0.99]))

    assert np.allclose(resolver.resolve(landmark), (0.5, 0.5, 1.5))


def test_high_side_face_hit_is_pulled_on_top(resolver, camera, store, aim):
    store.insert((0.5, 0.5, 0.5), 1)
    landmark = aim(camera, np.array([0.5, 0.9, 0.99]))

    assert np.allclose(resolver.resolve(landmark), (0.5, 1.5, 0.5))


def test_floor_hit_under_floating_voxel_stacks_on_column(resolver, camera, store, aim):
    # The ray passes below the hovering voxel and meets the floor in its column
    store.insert((0.5, 3.5, 0.5), 1)
    landmark = aim(camera, np.array([0.5, 0.0, 0.5]))

    assert np.allclose(resolver.resolve(landmark), (0.5, 4.5, 0.5))


def test_result_stays_in_bounds(resolver, camera, aim):
    landmark = aim(camera, np.array([30.0, 0.0, -2.0]))

    assert np.allclose(resolver.resolve(landmark), (4.5, 0.5, -1.5))


def test_sky_ray_falls_back_to_ground_layer(resolver, grid):
    position = resolver.resolve((0.5, 0.0, 0.0))

    assert position[1] == pytest.approx(0.5)
    assert grid.min_xz <= position[0] <= grid.max_xz
    assert grid.min_xz <= position[2] <= grid.max_xz


def test_resolve_is_deterministic_and_read_only(resolver, camera, store, aim):
    store.insert((0.5, 0.5, 0.5), 1)
    landmark = aim(camera, np.array([0.5, 0.99, 0.5]))

    first = resolver.resolve(landmark)
    second = resolver.resolve(landmark)

    assert np.array_equal(first, second)
    assert len(store) == 1


def test_ghost_lerps_and_snaps(grid):
    ghost = GhostCursor(grid, 0.12)
    assert not ghost.visible

    position = ghost.update(np.array([4.5, 0.5, 4.5]))

    assert np.allclose(ghost.smoothed, (0.54, 0.5, 0.54))
    assert np.allclose(position, (0.5, 0.5, 0.5))
    assert ghost.visible

    for _ in range(100):
        position = ghost.update(np.array([4.5, 0.5, 4.5]))
    assert np.allclose(position, (4.5, 0.5, 4.5))

    ghost.hide()
    assert not ghost.visible
