"""Unit tests for the unit cube, unit rectangle and gnomon.

Tests cover:
- Slab intersection with face normals
- Axis-parallel rays and misses
- Rectangle plane and bounds tests
- Gnomon parts, bounds and validation
- AABB helpers
"""

import numpy as np
import pytest

from raykernel.core.ray import Ray
from raykernel.errors import ConstructionError
from raykernel.geometry import AABB, CubeUnit, Gnomon, Gnonom, RectangleUnit


class TestCubeUnit:
    """Tests for the [-1, 1]^3 cube."""

    def test_entry_and_exit(self, down_z):
        hits = CubeUnit().intersect(down_z)
        assert [h.t for h in hits] == pytest.approx([4.0, 6.0])
        assert hits[0].normal.tolist() == [0.0, 0.0, 1.0]
        assert hits[1].normal.tolist() == [0.0, 0.0, -1.0]

    def test_side_face(self):
        hit = CubeUnit().closest_hit(Ray((5.0, 0.3, -0.2), (-1.0, 0.0, 0.0)))
        assert hit.t == pytest.approx(4.0)
        assert hit.normal.tolist() == [1.0, 0.0, 0.0]

    def test_from_inside(self):
        hits = CubeUnit().intersect(Ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)))
        assert [h.t for h in hits] == pytest.approx([1.0])
        assert hits[0].normal.tolist() == [0.0, 0.0, -1.0]

    def test_axis_parallel_miss(self):
        """Test a ray outside the slab it runs parallel to misses."""
        assert CubeUnit().intersect(Ray((2.0, 0.0, 5.0), (0.0, 0.0, -1.0))) == []

    def test_oblique_miss(self):
        assert CubeUnit().intersect(Ray((3.0, 0.0, 5.0), (0.0, 1.0, -1.0))) == []

    def test_bounds(self):
        box = CubeUnit().bounds()
        assert box.minimum.tolist() == [-1.0, -1.0, -1.0]
        assert box.maximum.tolist() == [1.0, 1.0, 1.0]


class TestRectangleUnit:
    """Tests for the unit rectangle in the plane y = 0."""

    def test_hit_from_above(self):
        hits = RectangleUnit().intersect(Ray((0.5, 5.0, -0.5), (0.0, -1.0, 0.0)))
        assert [h.t for h in hits] == pytest.approx([5.0])
        assert hits[0].normal.tolist() == [0.0, 1.0, 0.0]

    def test_hit_from_below_keeps_normal(self):
        hit = RectangleUnit().closest_hit(Ray((0.0, -5.0, 0.0), (0.0, 1.0, 0.0)))
        assert hit.normal.tolist() == [0.0, 1.0, 0.0]

    def test_outside_bounds(self):
        assert RectangleUnit().intersect(Ray((1.5, 5.0, 0.0), (0.0, -1.0, 0.0))) == []

    def test_parallel_ray(self):
        assert RectangleUnit().intersect(Ray((0.0, 1.0, 0.0), (1.0, 0.0, 0.0))) == []

    def test_flat_bounds(self):
        box = RectangleUnit().bounds()
        assert box.extent.tolist() == [2.0, 0.0, 2.0]


class TestGnomon:
    """Tests for the axis triad."""

    def test_parts(self):
        """Test three rods along +x, +y, +z plus the origin cube."""
        parts = Gnomon(length=2.0, thickness=0.1).parts()
        assert len(parts) == 4
        lo, hi = parts[0]
        np.testing.assert_allclose(lo, (0.0, -0.1, -0.1))
        np.testing.assert_allclose(hi, (2.0, 0.1, 0.1))
        lo, hi = parts[3]
        np.testing.assert_allclose(lo, (-0.2, -0.2, -0.2))
        np.testing.assert_allclose(hi, (0.2, 0.2, 0.2))

    def test_hit_x_rod(self):
        hits = Gnomon().intersect(Ray((0.5, 0.0, 5.0), (0.0, 0.0, -1.0)))
        assert [h.t for h in hits] == pytest.approx([4.98, 5.02])
        assert hits[0].normal.tolist() == [0.0, 0.0, 1.0]

    def test_miss_between_rods(self):
        assert Gnomon().intersect(Ray((0.5, 0.5, 5.0), (0.0, 0.0, -1.0))) == []

    def test_normal_at_rod_surface(self):
        assert Gnomon().normal_at((0.5, 0.0, 0.02)).tolist() == [0.0, 0.0, 1.0]

    def test_bounds(self):
        box = Gnomon().bounds()
        np.testing.assert_allclose(box.minimum, (-0.04, -0.04, -0.04))
        np.testing.assert_allclose(box.maximum, (1.0, 1.0, 1.0))

    def test_too_thick(self):
        with pytest.raises(ConstructionError):
            Gnomon(length=1.0, thickness=0.6)

    def test_alias(self):
        assert Gnonom is Gnomon


class TestAABB:
    """Tests for bounding boxes."""

    def test_inverted_box_rejected(self):
        with pytest.raises(ConstructionError):
            AABB((1.0, 0.0, 0.0), (0.0, 1.0, 1.0))

    def test_union_and_contains(self):
        box = AABB((0.0, 0.0, 0.0), (1.0, 1.0, 1.0)).union(AABB((2.0, 2.0, 2.0), (3.0, 3.0, 3.0)))
        assert box.contains((1.5, 1.5, 1.5))
        assert not box.contains((3.5, 0.0, 0.0))

    def test_transformed_bounds_rotated_box(self):
        """Test the corners are mapped, giving a conservative box."""
        from raykernel.core.transform import Transform

        matrix = Transform().rotate_z(45.0).translate(10.0, 0.0, 0.0).matrix
        box = AABB((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0)).transformed(matrix)
        r = np.sqrt(2.0)
        np.testing.assert_allclose(box.minimum, (10.0 - r, -r, -1.0), atol=1e-12)
        np.testing.assert_allclose(box.maximum, (10.0 + r, r, 1.0), atol=1e-12)

    def test_hit_interval(self, down_z):
        box = AABB((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))
        assert box.hit_interval(down_z) == pytest.approx((4.0, 6.0))
        assert not box.intersects(Ray((5.0, 5.0, 5.0), (1.0, 0.0, 0.0)))

    def test_padded(self):
        box = AABB((0.0, 0.0, 0.0), (1.0, 1.0, 1.0)).padded(0.5)
        assert box.minimum.tolist() == [-0.5, -0.5, -0.5]
