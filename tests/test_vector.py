"""Unit tests for the vector and ray modules.

Tests cover:
- Point/vector construction and validation
- Vector utility functions (dot, cross, normalize, length, reflect)
- Ray construction and evaluation
"""

import math

import numpy as np
import pytest

from raykernel.core.ray import Ray, make_ray, ray_at
from raykernel.core.vector import (
    P,
    V,
    as_vec3,
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize,
    reflect,
)
from raykernel.errors import ConstructionError


class TestConstruction:
    """Tests for building points and vectors."""

    def test_point_and_vector_are_float_arrays(self):
        """Test P and V build (3,) float64 arrays."""
        p = P(1, 2, 3)
        v = V(0.5, 0.0, -1)
        assert p.shape == (3,)
        assert p.dtype == np.float64
        assert v.tolist() == [0.5, 0.0, -1.0]

    def test_values_are_read_only(self):
        """Test that built vectors cannot be modified in place."""
        v = V(1.0, 2.0, 3.0)
        with pytest.raises(ValueError):
            v[0] = 5.0

    def test_wrong_length_rejected(self):
        """Test that anything but three components raises."""
        with pytest.raises(ConstructionError):
            as_vec3((1.0, 2.0))
        with pytest.raises(ConstructionError):
            as_vec3((1.0, 2.0, 3.0, 4.0))

    def test_non_finite_rejected(self):
        """Test that NaN and infinity are rejected."""
        with pytest.raises(ConstructionError):
            V(math.nan, 0.0, 0.0)
        with pytest.raises(ConstructionError):
            P(0.0, math.inf, 0.0)

    def test_non_numeric_rejected(self):
        """Test that strings are rejected with a ConstructionError."""
        with pytest.raises(ConstructionError):
            as_vec3(("a", "b", "c"))

    def test_construction_error_is_value_error(self):
        """Test ConstructionError can be caught as ValueError."""
        with pytest.raises(ValueError):
            V(math.nan, 0.0, 0.0)


class TestVectorOperations:
    """Tests for vector utility functions."""

    def test_dot(self):
        assert dot(V(1, 2, 3), V(4, 5, 6)) == 32.0

    def test_cross_follows_right_hand_rule(self):
        """Test x cross y is z."""
        assert cross(V(1, 0, 0), V(0, 1, 0)).tolist() == [0.0, 0.0, 1.0]

    def test_length(self):
        assert length(V(3, 4, 0)) == 5.0
        assert length_squared(V(3, 4, 0)) == 25.0

    def test_normalize(self):
        """Test normalize produces a unit vector in the same direction."""
        n = normalize(V(0, 0, -2))
        assert n.tolist() == [0.0, 0.0, -1.0]

    def test_normalize_zero_vector_raises(self):
        """Test normalizing a zero vector raises instead of returning NaN."""
        with pytest.raises(ConstructionError):
            normalize(V(0, 0, 0))

    def test_near_zero(self):
        assert near_zero(V(1e-10, -1e-10, 0.0))
        assert not near_zero(V(1e-3, 0.0, 0.0))

    def test_reflect(self):
        """Test reflection about the +y normal flips the y component."""
        r = reflect(V(1, -1, 0), V(0, 1, 0))
        assert r.tolist() == [1.0, 1.0, 0.0]


class TestRay:
    """Tests for the Ray dataclass."""

    def test_at(self):
        """Test ray.at computes origin + t * direction."""
        ray = Ray((1.0, 2.0, 3.0), (0.0, 0.0, -2.0))
        assert ray.at(0.0).tolist() == [1.0, 2.0, 3.0]
        assert ray.at(1.5).tolist() == [1.0, 2.0, 0.0]
        assert ray_at(ray, -1.0).tolist() == [1.0, 2.0, 5.0]

    def test_direction_is_not_normalized(self):
        """Test the direction keeps its length."""
        ray = make_ray((0, 0, 0), (0, 0, 3))
        assert length(ray.direction) == 3.0
        assert length(ray.normalized().direction) == pytest.approx(1.0)

    def test_zero_direction_rejected(self):
        with pytest.raises(ConstructionError):
            Ray((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_ray_is_immutable(self):
        ray = Ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        with pytest.raises(AttributeError):
            ray.origin = P(1, 1, 1)
