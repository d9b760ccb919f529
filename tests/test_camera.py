"""Unit tests for the pinhole camera.

Tests cover:
- Orthonormal basis computation
- Ray generation for the centre and corners of the image
- Batched per-pixel ray generation
- Degenerate set-ups rejected at construction
- Serialization
"""

import math

import numpy as np
import pytest

from raykernel.camera import Camera
from raykernel.errors import ConstructionError


@pytest.fixture
def camera():
    return Camera(eye=(0.0, 0.0, 3.0), look_at=(0.0, 0.0, 0.0), up=(0.0, 1.0, 0.0), fov=90.0)


class TestCameraBasis:
    """Tests for camera setup and basis computation."""

    def test_orthonormal_basis(self, camera):
        """Test that u, v, w form an orthonormal basis."""
        u, v, w = camera.basis()
        for a, b in ((u, v), (u, w), (v, w)):
            assert abs(float(np.dot(a, b))) < 1e-12
        for vec in (u, v, w):
            assert abs(float(np.linalg.norm(vec)) - 1.0) < 1e-12

    def test_basis_directions_looking_down_negative_z(self, camera):
        u, v, w = camera.basis()
        np.testing.assert_allclose(u, (1.0, 0.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(v, (0.0, 1.0, 0.0), atol=1e-12)
        np.testing.assert_allclose(w, (0.0, 0.0, 1.0), atol=1e-12)

    def test_tilted_up_vector_is_orthogonalised(self):
        cam = Camera(eye=(0.0, 0.0, 3.0), look_at=(0.0, 0.0, 0.0), up=(0.0, 1.0, 1.0))
        _, v, _ = cam.basis()
        np.testing.assert_allclose(v, (0.0, 1.0, 0.0), atol=1e-12)

    def test_camera_is_immutable(self, camera):
        with pytest.raises(AttributeError):
            camera.fov = 30.0


class TestRayGeneration:
    """Tests for get_ray() and generate_rays()."""

    def test_center_ray(self, camera):
        ray = camera.get_ray(0.5, 0.5)
        assert ray.origin.tolist() == [0.0, 0.0, 3.0]
        np.testing.assert_allclose(ray.direction, (0.0, 0.0, -1.0), atol=1e-12)

    def test_corner_ray_matches_fov(self, camera):
        """Test the top-right corner ray spans half the 90 degree field of view."""
        ray = camera.get_ray(1.0, 1.0)
        expected = np.array((1.0, 1.0, -1.0)) / math.sqrt(3.0)
        np.testing.assert_allclose(ray.direction, expected, atol=1e-12)

    def test_aspect_ratio_widens_horizontally(self):
        cam = Camera(eye=(0.0, 0.0, 0.0), look_at=(0.0, 0.0, -1.0), fov=90.0, aspect_ratio=2.0)
        d = cam.get_ray(1.0, 0.5).direction
        assert d[0] / -d[2] == pytest.approx(2.0)

    def test_generate_rays_shape_and_order(self, camera):
        origins, directions = camera.generate_rays(4, 2)
        assert origins.shape == (2, 4, 3)
        assert directions.shape == (2, 4, 3)
        np.testing.assert_allclose(np.linalg.norm(directions, axis=-1), 1.0)
        # First row is the top of the image, first column the left
        assert directions[0, 0, 1] > 0.0 > directions[1, 0, 1]
        assert directions[0, 0, 0] < 0.0 < directions[0, 3, 0]

    def test_generate_rays_match_get_ray(self, camera):
        _, directions = camera.generate_rays(4, 4)
        ray = camera.get_ray(0.625, 1.0 - 0.375)
        np.testing.assert_allclose(directions[1, 2], ray.direction, atol=1e-12)

    @pytest.mark.parametrize("size", [(0, 4), (4, 0)])
    def test_empty_image_rejected(self, camera, size):
        with pytest.raises(ConstructionError):
            camera.generate_rays(*size)


class TestCameraValidation:
    """Tests for degenerate cameras and serialization."""

    def test_eye_on_look_at(self):
        with pytest.raises(ConstructionError):
            Camera(eye=(1.0, 1.0, 1.0), look_at=(1.0, 1.0, 1.0))

    def test_up_parallel_to_view(self):
        with pytest.raises(ConstructionError):
            Camera(eye=(0.0, 3.0, 0.0), look_at=(0.0, 0.0, 0.0), up=(0.0, 1.0, 0.0))

    def test_zero_up(self):
        with pytest.raises(ConstructionError):
            Camera(eye=(0.0, 0.0, 3.0), look_at=(0.0, 0.0, 0.0), up=(0.0, 0.0, 0.0))

    @pytest.mark.parametrize("fov", [0.0, 180.0, -10.0])
    def test_fov_range(self, fov):
        with pytest.raises(ConstructionError):
            Camera(eye=(0.0, 0.0, 3.0), look_at=(0.0, 0.0, 0.0), fov=fov)

    def test_round_trip(self, camera):
        rebuilt = Camera.from_dict(camera.to_dict())
        assert rebuilt.to_dict() == camera.to_dict()

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConstructionError):
            Camera.from_dict({"eye": [0, 0, 1], "look_at": [0, 0, 0], "zoom": 2.0})
