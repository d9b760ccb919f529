"""Algebraic surfaces given by an implicit polynomial F(x, y, z) = 0.

The family covers the classical immersions of the projective plane:

    Roman(k)       x^2 y^2 + y^2 z^2 + z^2 x^2 - k x y z
                   image of k (vw, uw, uv) on the unit sphere
    Steiner()      Roman surface with k = 1
    Steiner2()     x^2 z^2 + x^2 y^2 + y^4 - x y^2
                   image of (u^2, uv, vw)
    CrossCap2(p, q)
                   (x^2 + y^2) z^2 - S z + S^2  with  S = p y^2 - q x^2
                   image of (vw, uw, p u^2 - q v^2), 0 < p, q < 1
    CrossCap()     the cross-cap with p = q = 1

The implicit sets also contain the surfaces' double lines extended to
infinity; those are singular (zero gradient) and clipping to the bounding
sphere of the parametric image removes the rest.

Intersection substitutes the re-based ray into F with numpy Polynomial
arithmetic and hands the resulting univariate polynomial to the bracketing
root finder. Rays that miss the bounding sphere never reach the root
finder. A root finder failure is logged and reported as a miss.

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry.algebraic import Steiner
    >>> hit = Steiner().closest_hit(Ray((0.2, 0.3, 5.0), (0.0, 0.0, -1.0)))
    >>> abs(Steiner().implicit(*hit.point)) < 1e-9
    True
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
from numpy.polynomial import Polynomial

from raykernel.core.config import BOUNDING_MARGIN, IntersectionConfig
from raykernel.core.ray import Ray
from raykernel.core.roots import bracketed_roots
from raykernel.core.vector import Point3, Vector3
from raykernel.errors import ConstructionError, NumericNonConvergence
from raykernel.geometry.base import (
    Shape,
    ShapeHit,
    ShapeKind,
    gradient_normal,
    hits_from_roots,
    normal_from_gradient,
    register_intersector,
)
from raykernel.geometry.bounds import AABB, sphere_interval

logger = logging.getLogger(__name__)

# Gradients below this (in unit-ball coordinates) are treated as singular.
# Touching roots within about 1e-6 of a double line have gradients of that
# order, so the cutoff sits well above it.
_SINGULAR_GRADIENT = 1e-5


class AlgebraicSurface(Shape):
    """Shared behaviour of the implicit surfaces.

    Subclasses provide implicit() (valid for floats and Polynomials alike),
    gradient(), parametric() and bounding_radius.
    """

    def implicit(self, x: Any, y: Any, z: Any) -> Any:
        raise NotImplementedError

    def gradient(self, x: float, y: float, z: float) -> Vector3:
        raise NotImplementedError

    def parametric(self, u: float, v: float, w: float) -> Point3:
        """Map a point (u, v, w) of the unit sphere onto the surface."""
        raise NotImplementedError

    @property
    def bounding_radius(self) -> float:
        raise NotImplementedError

    def normal_at(self, point: Any) -> Vector3:
        x, y, z = point
        return normal_from_gradient(self.gradient(x, y, z), point)

    def bounds(self) -> AABB:
        return AABB.around_sphere((0.0, 0.0, 0.0), self.bounding_radius)


# =============================================================================
# Roman / Steiner
# =============================================================================


def _roman(x: Any, y: Any, z: Any, k: float) -> Any:
    return x * x * y * y + y * y * z * z + z * z * x * x - k * x * y * z


def _roman_gradient(x: float, y: float, z: float, k: float) -> Vector3:
    return np.array(
        (
            2.0 * x * y * y + 2.0 * x * z * z - k * y * z,
            2.0 * y * x * x + 2.0 * y * z * z - k * x * z,
            2.0 * z * y * y + 2.0 * z * x * x - k * x * y,
        )
    )


@dataclass(frozen=True, eq=False)
class Roman(AlgebraicSurface):
    """Steiner's Roman surface scaled by k.

    Attributes:
        k: Size parameter (positive).
    """

    kind: ClassVar[ShapeKind] = ShapeKind.ROMAN

    k: float = 1.0

    def __post_init__(self) -> None:
        k = float(self.k)
        if not (math.isfinite(k) and k > 0.0):
            raise ConstructionError(f"Roman surface requires k > 0, got {self.k}")
        object.__setattr__(self, "k", k)

    def implicit(self, x: Any, y: Any, z: Any) -> Any:
        return _roman(x, y, z, self.k)

    def gradient(self, x: float, y: float, z: float) -> Vector3:
        return _roman_gradient(x, y, z, self.k)

    def parametric(self, u: float, v: float, w: float) -> Point3:
        return self.k * np.array((v * w, u * w, u * v))

    @property
    def bounding_radius(self) -> float:
        return self.k / math.sqrt(3.0)


@dataclass(frozen=True, eq=False)
class Steiner(AlgebraicSurface):
    """Steiner's Roman surface at unit scale."""

    kind: ClassVar[ShapeKind] = ShapeKind.STEINER

    def implicit(self, x: Any, y: Any, z: Any) -> Any:
        return _roman(x, y, z, 1.0)

    def gradient(self, x: float, y: float, z: float) -> Vector3:
        return _roman_gradient(x, y, z, 1.0)

    def parametric(self, u: float, v: float, w: float) -> Point3:
        return np.array((v * w, u * w, u * v))

    @property
    def bounding_radius(self) -> float:
        return 1.0 / math.sqrt(3.0)


@dataclass(frozen=True, eq=False)
class Steiner2(AlgebraicSurface):
    """Second Steiner immersion, the image of (u^2, uv, vw)."""

    kind: ClassVar[ShapeKind] = ShapeKind.STEINER2

    def implicit(self, x: Any, y: Any, z: Any) -> Any:
        return x * x * z * z + x * x * y * y + y * y * y * y - x * y * y

    def gradient(self, x: float, y: float, z: float) -> Vector3:
        return np.array(
            (
                2.0 * x * z * z + 2.0 * x * y * y - y * y,
                2.0 * x * x * y + 4.0 * y * y * y - 2.0 * x * y,
                2.0 * x * x * z,
            )
        )

    def parametric(self, u: float, v: float, w: float) -> Point3:
        return np.array((u * u, u * v, v * w))

    @property
    def bounding_radius(self) -> float:
        return 1.0


# =============================================================================
# Cross-caps
# =============================================================================


def _cross_cap(x: Any, y: Any, z: Any, p: float, q: float) -> Any:
    s = p * y * y - q * x * x
    return (x * x + y * y) * z * z - s * z + s * s


def _cross_cap_gradient(x: float, y: float, z: float, p: float, q: float) -> Vector3:
    s = p * y * y - q * x * x
    return np.array(
        (
            2.0 * x * z * z + 2.0 * q * x * z - 4.0 * q * x * s,
            2.0 * y * z * z - 2.0 * p * y * z + 4.0 * p * y * s,
            2.0 * (x * x + y * y) * z - s,
        )
    )


@dataclass(frozen=True, eq=False)
class CrossCap2(AlgebraicSurface):
    """Cross-cap with independent weights on its two quadratic terms.

    Attributes:
        p: Weight of u^2, strictly between 0 and 1.
        q: Weight of v^2, strictly between 0 and 1.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.CROSS_CAP2

    p: float = 0.5
    q: float = 0.5

    def __post_init__(self) -> None:
        for name in ("p", "q"):
            value = float(getattr(self, name))
            if not 0.0 < value < 1.0:
                raise ConstructionError(f"CrossCap2 requires 0 < {name} < 1, got {value}")
            object.__setattr__(self, name, value)

    def implicit(self, x: Any, y: Any, z: Any) -> Any:
        return _cross_cap(x, y, z, self.p, self.q)

    def gradient(self, x: float, y: float, z: float) -> Vector3:
        return _cross_cap_gradient(x, y, z, self.p, self.q)

    def parametric(self, u: float, v: float, w: float) -> Point3:
        return np.array((v * w, u * w, self.p * u * u - self.q * v * v))

    @property
    def bounding_radius(self) -> float:
        return math.sqrt(0.25 + max(self.p, self.q) ** 2)


@dataclass(frozen=True, eq=False)
class CrossCap(AlgebraicSurface):
    """The classical cross-cap, the image of (vw, uw, u^2 - v^2)."""

    kind: ClassVar[ShapeKind] = ShapeKind.CROSS_CAP

    def implicit(self, x: Any, y: Any, z: Any) -> Any:
        return _cross_cap(x, y, z, 1.0, 1.0)

    def gradient(self, x: float, y: float, z: float) -> Vector3:
        return _cross_cap_gradient(x, y, z, 1.0, 1.0)

    def parametric(self, u: float, v: float, w: float) -> Point3:
        return np.array((v * w, u * w, u * u - v * v))

    @property
    def bounding_radius(self) -> float:
        return math.sqrt(1.25)


# =============================================================================
# Intersection
# =============================================================================


@register_intersector(ShapeKind.ROMAN)
@register_intersector(ShapeKind.STEINER)
@register_intersector(ShapeKind.STEINER2)
@register_intersector(ShapeKind.CROSS_CAP)
@register_intersector(ShapeKind.CROSS_CAP2)
def hit_algebraic(
    surface: AlgebraicSurface, ray: Ray, config: IntersectionConfig
) -> list[ShapeHit]:
    """Intersect a ray with an implicit algebraic surface.

    Args:
        surface: The surface to test.
        ray: Local-space ray.
        config: Accepted t range and root-finder budget.

    Returns:
        Hits sorted by t with gradient normals. Hits on singular points are
        dropped, and a root-finder failure yields no hits.
    """
    radius = surface.bounding_radius * (1.0 + BOUNDING_MARGIN)
    interval = sphere_interval(ray, radius)
    if interval is None:
        return []
    t_enter, t_exit = interval
    if t_exit <= config.epsilon:
        return []

    # Re-base at the entry point (or the origin when starting inside) and
    # solve in the unit ball with an arc-length parameter u, so the
    # polynomial coefficients are O(1) whatever the surface size.
    t_base = max(t_enter, 0.0)
    speed = float(np.linalg.norm(ray.direction))
    o = (ray.origin + t_base * ray.direction) / radius
    d = ray.direction / speed
    # Every implicit equation in the family is quartic
    poly = (
        surface.implicit(
            Polynomial([o[0], d[0]]) * radius,
            Polynomial([o[1], d[1]]) * radius,
            Polynomial([o[2], d[2]]) * radius,
        )
        / radius**4
    )

    try:
        roots = bracketed_roots(
            poly,
            0.0,
            (t_exit - t_base) * speed / radius,
            samples=config.root_samples,
            max_iterations=config.root_max_iterations,
            tolerance=config.root_tolerance,
        )
    except NumericNonConvergence as exc:
        logger.warning("%s intersection treated as a miss: %s", type(surface).__name__, exc)
        return []

    min_gradient = _SINGULAR_GRADIENT * radius**3
    return hits_from_roots(
        ray,
        [t_base + u * radius / speed for u in roots],
        lambda p: gradient_normal(surface.gradient(p[0], p[1], p[2]), tolerance=min_gradient),
        config,
    )
