"""Unit tests for the Transform class.

Tests cover:
- Elementary builders and their composition order
- The cached inverse staying consistent with the forward matrix
- Normal mapping under non-uniform scale
- Ray mapping without renormalisation
- from_matrix validation
- Freezing
"""

import numpy as np
import pytest

from raykernel.core.ray import Ray
from raykernel.core.transform import Transform
from raykernel.core.vector import dot, length
from raykernel.errors import ConstructionError


class TestBuilders:
    """Tests for scale, rotate and translate."""

    def test_identity(self):
        t = Transform()
        assert t.is_identity()
        assert t.apply((1.0, 2.0, 3.0)).tolist() == [1.0, 2.0, 3.0]

    def test_builders_chain(self):
        t = Transform()
        assert t.scale(2.0, 2.0, 2.0) is t
        assert t.translate(1.0, 0.0, 0.0) is t

    def test_later_calls_apply_after_earlier_ones(self):
        """Test scale then translate scales first."""
        t = Transform().scale(2.0, 2.0, 2.0).translate(1.0, 0.0, 0.0)
        assert t.apply((1.0, 0.0, 0.0)).tolist() == [3.0, 0.0, 0.0]

        u = Transform().translate(1.0, 0.0, 0.0).scale(2.0, 2.0, 2.0)
        assert u.apply((1.0, 0.0, 0.0)).tolist() == [4.0, 0.0, 0.0]

    def test_rotate_z_quarter_turn(self):
        """Test a right-handed 90 degree turn maps x onto y."""
        p = Transform().rotate_z(90.0).apply((1.0, 0.0, 0.0))
        np.testing.assert_allclose(p, (0.0, 1.0, 0.0), atol=1e-12)

    def test_rotate_order_is_x_then_y_then_z(self):
        """Test rotate(dx, dy, dz) equals the three single-axis rotations."""
        a = Transform().rotate(30.0, 45.0, 60.0)
        b = Transform().rotate_x(30.0).rotate_y(45.0).rotate_z(60.0)
        np.testing.assert_allclose(a.matrix, b.matrix)

    def test_translation_ignored_for_vectors(self):
        t = Transform().translate(5.0, 5.0, 5.0)
        assert t.apply_vector((1.0, 0.0, 0.0)).tolist() == [1.0, 0.0, 0.0]

    @pytest.mark.parametrize("factors", [(0.0, 1.0, 1.0), (1.0, np.inf, 1.0), (1.0, 1.0, np.nan)])
    def test_degenerate_scale_rejected(self, factors):
        with pytest.raises(ConstructionError):
            Transform().scale(*factors)

    def test_non_finite_translation_rejected(self):
        with pytest.raises(ConstructionError):
            Transform().translate(np.nan, 0.0, 0.0)


class TestInverse:
    """Tests for the eagerly maintained inverse."""

    def test_inverse_matches_forward(self):
        """Test M @ M_inv is the identity after a mixed chain."""
        t = (
            Transform()
            .scale(2.0, 0.5, 3.0)
            .rotate(10.0, 20.0, 30.0)
            .translate(1.0, -2.0, 4.0)
            .rotate_y(-75.0)
        )
        np.testing.assert_allclose(t.matrix @ t.inverse_matrix, np.eye(4), atol=1e-12)

    def test_apply_inverse_round_trip(self):
        t = Transform().scale(2.0, 1.0, 1.0).rotate_x(40.0).translate(0.0, 3.0, 0.0)
        p = (0.3, -1.2, 2.5)
        np.testing.assert_allclose(t.apply_inverse(t.apply(p)), p, atol=1e-12)
        np.testing.assert_allclose(t.apply_inverse_vector(t.apply_vector(p)), p, atol=1e-12)

    def test_matrices_are_read_only(self):
        t = Transform()
        with pytest.raises(ValueError):
            t.matrix[0, 0] = 2.0


class TestNormals:
    """Tests for normal mapping."""

    def test_normal_stays_perpendicular_under_non_uniform_scale(self):
        """Test the inverse-transpose keeps normals perpendicular to tangents."""
        t = Transform().scale(4.0, 1.0, 1.0).rotate_z(30.0)
        tangent = np.array((1.0, -1.0, 0.0))
        normal = np.array((1.0, 1.0, 0.0))
        world_tangent = t.apply_vector(tangent)
        world_normal = t.apply_normal(normal)
        assert abs(dot(world_tangent, world_normal)) < 1e-12
        assert length(world_normal) == pytest.approx(1.0)

    def test_normal_matrix(self):
        t = Transform().scale(2.0, 1.0, 1.0)
        np.testing.assert_allclose(t.normal_matrix, np.diag((0.5, 1.0, 1.0)))


class TestRays:
    """Tests for mapping rays between frames."""

    def test_inverse_transform_ray_keeps_t(self):
        """Test t names the same point in both frames."""
        t = Transform().scale(3.0, 3.0, 3.0).translate(0.0, 0.0, -4.0)
        world = Ray((0.0, 0.0, 5.0), (0.0, 0.0, -1.0))
        local = t.inverse_transform_ray(world)
        assert length(local.direction) == pytest.approx(1.0 / 3.0)
        np.testing.assert_allclose(t.apply(local.at(2.5)), world.at(2.5), atol=1e-12)

    def test_transform_ray_round_trip(self):
        t = Transform().rotate_y(90.0).translate(1.0, 2.0, 3.0)
        ray = Ray((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        back = t.inverse_transform_ray(t.transform_ray(ray))
        np.testing.assert_allclose(back.origin, ray.origin, atol=1e-12)
        np.testing.assert_allclose(back.direction, ray.direction, atol=1e-12)


class TestCompositionAndMatrices:
    """Tests for composition, copies and from_matrix."""

    def test_matmul_applies_right_operand_first(self):
        a = Transform().translate(1.0, 0.0, 0.0)
        b = Transform().scale(2.0, 2.0, 2.0)
        assert (a @ b).apply((1.0, 0.0, 0.0)).tolist() == [3.0, 0.0, 0.0]
        np.testing.assert_allclose((a @ b).matrix @ (a @ b).inverse_matrix, np.eye(4))

    def test_copy_is_independent(self):
        a = Transform().translate(1.0, 0.0, 0.0)
        b = a.copy()
        b.translate(1.0, 0.0, 0.0)
        assert a.apply((0.0, 0.0, 0.0)).tolist() == [1.0, 0.0, 0.0]
        assert b.apply((0.0, 0.0, 0.0)).tolist() == [2.0, 0.0, 0.0]

    def test_from_matrix(self):
        source = Transform().scale(1.0, 2.0, 3.0).rotate_x(15.0).translate(1.0, 1.0, 1.0)
        rebuilt = Transform.from_matrix(source.matrix.tolist())
        np.testing.assert_allclose(rebuilt.inverse_matrix, source.inverse_matrix, atol=1e-12)

    @pytest.mark.parametrize(
        "matrix",
        [
            np.eye(3),
            np.diag((1.0, 0.0, 1.0, 1.0)),
            np.full((4, 4), np.nan),
            np.ones((4, 4)),
        ],
    )
    def test_from_matrix_rejects_bad_input(self, matrix):
        """Test wrong shape, singular, non-finite and non-affine matrices."""
        with pytest.raises(ConstructionError):
            Transform.from_matrix(matrix)


class TestFreeze:
    """Tests for read-only transforms."""

    def test_frozen_builders_raise(self):
        t = Transform().translate(1.0, 0.0, 0.0)
        assert t.freeze() is t
        assert t.is_frozen
        for builder, args in [
            (t.scale, (2.0, 2.0, 2.0)),
            (t.rotate, (0.0, 90.0, 0.0)),
            (t.rotate_x, (10.0,)),
            (t.translate, (0.0, 1.0, 0.0)),
        ]:
            with pytest.raises(ConstructionError):
                builder(*args)
        assert t.apply((0.0, 0.0, 0.0)).tolist() == [1.0, 0.0, 0.0]

    def test_copy_and_composition_are_unfrozen(self):
        frozen = Transform().scale(2.0, 2.0, 2.0).freeze()
        assert not frozen.copy().is_frozen
        assert not (frozen @ Transform()).is_frozen
        frozen.copy().translate(1.0, 0.0, 0.0)
