"""Real root finding for the polynomial equations of ray intersection.

Three solvers cover every shape in the kernel:

- solve_quadratic: closed form with the cancellation-free formulation from
  Ray Tracing Gems (spheres, cylinders, cones).
- real_roots: all real roots of a polynomial of any degree from the
  eigenvalues of its companion matrix, polished with Newton steps (torus).
- bracketed_roots: the roots inside an interval, found by splitting the
  interval into monotone segments and refining every sign change with a
  safeguarded Newton/bisection iteration (the algebraic surfaces, whose
  self-intersection curves produce clustered and multiple roots that
  eigenvalue methods resolve poorly).

Polynomials are numpy.polynomial.Polynomial instances, coefficients in
ascending order of degree.

Example:
    >>> from numpy.polynomial import Polynomial
    >>> from raykernel.core.roots import bracketed_roots
    >>> bracketed_roots(Polynomial([-2.0, 0.0, 1.0]), 0.0, 4.0)
    [1.4142135623730951]
"""

import math
from collections.abc import Sequence

import numpy as np
from numpy.polynomial import Polynomial

from raykernel.core.config import ROOT_MAX_ITERATIONS, ROOT_SAMPLES, ROOT_TOLERANCE
from raykernel.errors import NumericNonConvergence

# Coefficients smaller than this fraction of the largest one are dropped
_COEF_TRIM = 1e-14

# Eigenvalues whose imaginary part is below this (relative) count as real
_IMAG_TOLERANCE = 1e-6

# Roots closer than this (relative) are merged into one
_MERGE_TOLERANCE = 1e-9

# |F| below this fraction of the largest coefficient counts as a zero
_ZERO_TOLERANCE = 1e-12

_POLISH_STEPS = 8


def solve_quadratic(a: float, b: float, c: float) -> list[float]:
    """Solve a*t^2 + b*t + c = 0 for real t.

    Uses q = -(b + sign(b) * sqrt(discriminant)) / 2 so that neither root is
    computed by subtracting nearly equal numbers. A zero leading coefficient
    falls back to the linear equation.

    Args:
        a: Quadratic coefficient.
        b: Linear coefficient.
        c: Constant term.

    Returns:
        The distinct real roots in ascending order (zero, one or two).
    """
    if a == 0.0:
        if b == 0.0:
            return []
        return [-c / b]

    discriminant = b * b - 4.0 * a * c
    if discriminant < 0.0:
        return []
    if discriminant == 0.0:
        return [-b / (2.0 * a)]

    sqrt_d = math.sqrt(discriminant)
    q = -0.5 * (b + math.copysign(sqrt_d, b))
    t0 = q / a
    t1 = c / q
    return [t0, t1] if t0 <= t1 else [t1, t0]


def _as_polynomial(poly: Polynomial | Sequence[float]) -> Polynomial:
    if not isinstance(poly, Polynomial):
        poly = Polynomial(np.asarray(poly, dtype=np.float64))
    coef = np.asarray(poly.coef, dtype=np.float64)
    scale = float(np.max(np.abs(coef))) if coef.size else 0.0
    if scale == 0.0:
        return Polynomial([0.0])
    # Drop vanishing leading terms so the degree is honest
    keep = len(coef)
    while keep > 1 and abs(coef[keep - 1]) <= _COEF_TRIM * scale:
        keep -= 1
    return Polynomial(coef[:keep])


def _merge_close(roots: list[float]) -> list[float]:
    roots = sorted(roots)
    merged: list[float] = []
    for r in roots:
        if merged and abs(r - merged[-1]) <= _MERGE_TOLERANCE * max(1.0, abs(r)):
            continue
        merged.append(r)
    return merged


def _polish(poly: Polynomial, deriv: Polynomial, x: float) -> float:
    """Improve a root estimate with a few Newton steps that never increase |F|."""
    fx = poly(x)
    for _ in range(_POLISH_STEPS):
        dfx = deriv(x)
        if dfx == 0.0 or fx == 0.0:
            break
        x_new = x - fx / dfx
        f_new = poly(x_new)
        if not abs(f_new) < abs(fx):
            break
        x, fx = x_new, f_new
    return float(x)


def real_roots(poly: Polynomial | Sequence[float]) -> list[float]:
    """Find all real roots of a polynomial.

    The roots come from the companion-matrix eigenvalues; values with a
    negligible imaginary part are kept, polished with Newton's method and
    near-duplicates (the two halves of a double root) merged.

    Args:
        poly: A Polynomial or its ascending coefficient sequence.

    Returns:
        The distinct real roots in ascending order.
    """
    poly = _as_polynomial(poly)
    degree = poly.degree()
    if degree < 1:
        return []
    coef = poly.coef
    if degree == 1:
        return [-coef[0] / coef[1]]
    if degree == 2:
        return solve_quadratic(coef[2], coef[1], coef[0])

    deriv = poly.deriv()
    candidates = []
    for root in poly.roots():
        if abs(root.imag) <= _IMAG_TOLERANCE * max(1.0, abs(root.real)):
            candidates.append(_polish(poly, deriv, float(root.real)))
    return _merge_close(candidates)


def _refine(
    poly: Polynomial,
    deriv: Polynomial,
    lo: float,
    hi: float,
    f_lo: float,
    max_iterations: int,
    tolerance: float,
) -> float:
    """Refine a root bracketed by [lo, hi] with safeguarded Newton steps.

    A Newton step is taken when it lands strictly inside the current
    bracket, otherwise the bracket is bisected.

    Raises:
        NumericNonConvergence: If the bracket is still wider than tolerance
            after max_iterations steps, or F evaluates to a non-finite value.
    """
    x = 0.5 * (lo + hi)
    for _ in range(max_iterations):
        fx = float(poly(x))
        if not math.isfinite(fx):
            raise NumericNonConvergence(f"Polynomial evaluated to {fx} at t={x}")
        if fx == 0.0:
            return x

        # Shrink the bracket around the sign change
        if (fx < 0.0) == (f_lo < 0.0):
            lo, f_lo = x, fx
        else:
            hi = x

        dfx = float(deriv(x))
        x_new = x - fx / dfx if dfx != 0.0 else math.nan
        if not (lo < x_new < hi):
            x_new = 0.5 * (lo + hi)

        if abs(x_new - x) <= tolerance or hi - lo <= tolerance:
            return x_new
        x = x_new

    raise NumericNonConvergence(
        f"Root in [{lo}, {hi}] did not converge within {max_iterations} iterations"
    )


def bracketed_roots(
    poly: Polynomial | Sequence[float],
    t_lo: float,
    t_hi: float,
    samples: int = ROOT_SAMPLES,
    max_iterations: int = ROOT_MAX_ITERATIONS,
    tolerance: float = ROOT_TOLERANCE,
) -> list[float]:
    """Find the real roots of a polynomial inside [t_lo, t_hi].

    The interval is split at `samples` uniform steps and at the real
    critical points of the polynomial, which makes every piece monotone.
    Pieces whose end values differ in sign hold exactly one simple root and
    are refined; end points where |F| is negligible (touching roots, which
    sit at critical points) are accepted directly.

    Args:
        poly: A Polynomial or its ascending coefficient sequence.
        t_lo: Lower end of the search interval.
        t_hi: Upper end of the search interval.
        samples: Number of uniform sub-intervals.
        max_iterations: Refinement budget per root.
        tolerance: Absolute convergence tolerance in t.

    Returns:
        The distinct roots in ascending order.

    Raises:
        NumericNonConvergence: If a root does not converge or the polynomial
            is not finite on the interval.
    """
    poly = _as_polynomial(poly)
    if poly.degree() < 1 or not t_hi > t_lo:
        return []

    deriv = poly.deriv()
    breakpoints = np.linspace(t_lo, t_hi, max(1, samples) + 1)
    critical = [t for t in real_roots(deriv) if t_lo < t < t_hi]
    if critical:
        breakpoints = np.unique(np.concatenate([breakpoints, critical]))

    values = poly(breakpoints)
    if not np.all(np.isfinite(values)):
        raise NumericNonConvergence("Polynomial is not finite on the search interval")

    zero_tol = _ZERO_TOLERANCE * float(np.max(np.abs(poly.coef)))
    roots: list[float] = []
    for i, (t, f) in enumerate(zip(breakpoints, values)):
        if abs(f) <= zero_tol:
            roots.append(float(t))
            continue
        if i + 1 < len(breakpoints):
            f_next = values[i + 1]
            if abs(f_next) > zero_tol and (f < 0.0) != (f_next < 0.0):
                roots.append(
                    _refine(
                        poly,
                        deriv,
                        float(t),
                        float(breakpoints[i + 1]),
                        float(f),
                        max_iterations,
                        tolerance,
                    )
                )
    return _merge_close(roots)
