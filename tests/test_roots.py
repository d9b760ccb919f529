"""Unit tests for the root finders.

Tests cover:
- Robust quadratic solving, including the linear and tangent cases
- Companion-matrix real roots with double roots
- Bracketed roots on an interval and non-convergence reporting
"""

import math

import pytest
from numpy.polynomial import Polynomial

from raykernel.core.roots import bracketed_roots, real_roots, solve_quadratic
from raykernel.errors import NumericNonConvergence


class TestSolveQuadratic:
    """Tests for solve_quadratic()."""

    def test_two_roots_sorted(self):
        assert solve_quadratic(1.0, -3.0, 2.0) == pytest.approx([1.0, 2.0])
        assert solve_quadratic(-1.0, 3.0, -2.0) == pytest.approx([1.0, 2.0])

    def test_no_real_roots(self):
        assert solve_quadratic(1.0, 0.0, 1.0) == []

    def test_tangent_gives_one_root(self):
        assert solve_quadratic(1.0, -2.0, 1.0) == [1.0]

    def test_linear_fallback(self):
        assert solve_quadratic(0.0, 2.0, -4.0) == [2.0]
        assert solve_quadratic(0.0, 0.0, 1.0) == []

    def test_no_cancellation_for_tiny_root(self):
        """Test the small root keeps full relative precision."""
        roots = solve_quadratic(1.0, -1e8, 1.0)
        assert roots[0] == pytest.approx(1e-8, rel=1e-12)
        assert roots[1] == pytest.approx(1e8, rel=1e-12)


class TestRealRoots:
    """Tests for real_roots()."""

    def test_quartic_with_four_roots(self):
        poly = Polynomial.fromroots([-2.0, -0.5, 1.0, 3.0])
        assert real_roots(poly) == pytest.approx([-2.0, -0.5, 1.0, 3.0])

    def test_complex_roots_dropped(self):
        # (t^2 + 1)(t - 2)
        poly = Polynomial([1.0, 0.0, 1.0]) * Polynomial([-2.0, 1.0])
        assert real_roots(poly) == pytest.approx([2.0])

    def test_double_root_found(self):
        """Test a double root is reported near its true value."""
        poly = Polynomial.fromroots([1.0, 1.0, 4.0])
        roots = real_roots(poly)
        assert roots[-1] == pytest.approx(4.0)
        assert 1 <= len(roots[:-1]) <= 2
        for root in roots[:-1]:
            assert root == pytest.approx(1.0, abs=1e-6)

    def test_vanishing_leading_coefficient_trimmed(self):
        """Test a cubic with a negligible leading term behaves as a quadratic."""
        assert real_roots([2.0, -3.0, 1.0, 1e-20]) == pytest.approx([1.0, 2.0])

    def test_constant_has_no_roots(self):
        assert real_roots([3.0]) == []
        assert real_roots([0.0, 0.0]) == []


class TestBracketedRoots:
    """Tests for bracketed_roots()."""

    def test_sqrt_two(self):
        roots = bracketed_roots(Polynomial([-2.0, 0.0, 1.0]), 0.0, 4.0)
        assert roots == pytest.approx([math.sqrt(2.0)], abs=1e-9)

    def test_only_roots_in_interval(self):
        poly = Polynomial.fromroots([-1.0, 0.5, 2.5, 7.0])
        assert bracketed_roots(poly, 0.0, 3.0) == pytest.approx([0.5, 2.5], abs=1e-9)

    def test_close_roots_separated_by_critical_point(self):
        """Test two roots inside one uniform sample step are both found."""
        poly = Polynomial.fromroots([1.0, 1.001])
        roots = bracketed_roots(poly, 0.0, 10.0, samples=4)
        assert roots == pytest.approx([1.0, 1.001], abs=1e-9)

    def test_touching_root_found(self):
        """Test a double root (no sign change) at a critical point is found."""
        poly = Polynomial.fromroots([2.0, 2.0])
        assert bracketed_roots(poly, 0.0, 5.0) == pytest.approx([2.0], abs=1e-9)

    def test_empty_interval(self):
        assert bracketed_roots(Polynomial([-1.0, 1.0]), 2.0, 2.0) == []

    def test_non_convergence_raises(self):
        """Test an impossible tolerance exhausts the iteration budget."""
        poly = Polynomial([-2.0, 0.0, 1.0])
        with pytest.raises(NumericNonConvergence):
            bracketed_roots(poly, 0.0, 4.0, samples=1, max_iterations=1, tolerance=1e-300)
