import math

import numpy as np
import pytest

from voxel.camera import PerspectiveCamera, Ray
from voxel.raycast import intersect_ground, raycast_voxels


@pytest.fixture
def camera():
    return PerspectiveCamera(position=(8, 8, 12), target=(0, 0, 0), fov=60, aspect=4 / 3)


def test_target_projects_to_centre(camera):
    ndc, depth = camera.project(np.array([[0.0, 0.0, 0.0]]))

    assert np.allclose(ndc[0], (0.0, 0.0), atol=1e-9)
    assert depth[0] == pytest.approx(math.sqrt(8 ** 2 + 8 ** 2 + 12 ** 2))


def test_centre_ray_hits_ground_at_target(camera):
    ray = camera.ray_from_ndc((0.0, 0.0))

    assert np.linalg.norm(ray.direction) == pytest.approx(1.0)
    assert np.allclose(intersect_ground(ray), (0.0, 0.0, 0.0), atol=1e-9)


def test_unproject_then_project(camera):
    point = camera.unproject((0.3, -0.2), 0.5)
    ndc, depth = camera.project(point)

    assert np.allclose(ndc[0], (0.3, -0.2))
    assert depth[0] > camera.near


def test_points_behind_camera_have_negative_depth(camera):
    _, depth = camera.project(np.array([[16.0, 16.0, 24.0]]))
    assert depth[0] < 0


def test_ground_miss_for_upward_or_parallel_rays():
    assert intersect_ground(Ray(np.array([0.0, 5.0, 0.0]), np.array([0.0, 1.0, 0.0]))) is None
    assert intersect_ground(Ray(np.array([0.0, 5.0, 0.0]), np.array([1.0, 0.0, 0.0]))) is None


def test_zoom_is_clamped(camera):
    camera.zoom(100.0)
    assert np.linalg.norm(camera.position - camera.target) == pytest.approx(50.0)

    camera.zoom(0.001)
    assert np.linalg.norm(camera.position - camera.target) == pytest.approx(5.0)


def test_orbit_keeps_distance_and_clamps_pitch(camera):
    radius = np.linalg.norm(camera.position)

    camera.orbit(0.7, 0.0)
    assert np.linalg.norm(camera.position) == pytest.approx(radius)

    camera.orbit(0.0, -10.0)
    assert camera.position[1] == pytest.approx(radius * math.cos(0.05))


def test_raycast_top_face(store):
    voxel = store.insert((0.5, 0.5, 0.5), 1)
    ray = Ray(np.array([0.5, 5.0, 0.5]), np.array([0.0, -1.0, 0.0]))

    hit = raycast_voxels(ray, store.voxels, 1.0)

    assert hit.voxel is voxel
    assert np.allclose(hit.normal, (0, 1, 0))
    assert hit.distance == pytest.approx(5.0 - 0.5 - 0.49)
    assert hit.local[1] == pytest.approx(0.49)


def test_raycast_picks_nearest_box(store):
    store.insert((0.5, 0.5, 0.5), 1)
    near = store.insert((-2.5, 0.5, 0.5), 2)
    ray = Ray(np.array([-6.0, 0.5, 0.5]), np.array([1.0, 0.0, 0.0]))

    hit = raycast_voxels(ray, store.voxels, 1.0)

    assert hit.voxel is near
    assert np.allclose(hit.normal, (-1, 0, 0))


def test_raycast_miss(store):
    store.insert((0.5, 0.5, 0.5), 1)
    ray = Ray(np.array([0.5, 5.0, 0.5]), np.array([0.0, 1.0, 0.0]))

    assert raycast_voxels(ray, store.voxels, 1.0) is None
    assert raycast_voxels(ray, [], 1.0) is None
