"""Torus primitive around the z axis.

The torus with tube radius r and centre-line radius R is the zero set of

    F(x, y, z) = (x^2 + y^2 + z^2 + R^2 - r^2)^2 - 4 R^2 (x^2 + y^2)

Substituting the ray gives a quartic in t. The ray is first clipped to the
bounding sphere of radius R + r and re-based at its entry point, which keeps
the quartic's coefficients small; the roots then come from the general
real-root finder.

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry.torus import Torus
    >>> torus = Torus(inner_radius=0.25, outer_radius=1.0)
    >>> hits = torus.intersect(Ray((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0)))
    >>> [round(h.t, 6) for h in hits]
    [3.75, 4.25, 5.75, 6.25]
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
from numpy.polynomial import Polynomial

from raykernel.core.config import BOUNDING_MARGIN, IntersectionConfig
from raykernel.core.ray import Ray
from raykernel.core.roots import real_roots
from raykernel.core.vector import Vector3
from raykernel.errors import ConstructionError
from raykernel.geometry.base import (
    Shape,
    ShapeHit,
    ShapeKind,
    gradient_normal,
    hits_from_roots,
    normal_from_gradient,
    register_intersector,
    require_positive,
)
from raykernel.geometry.bounds import AABB, sphere_interval


@dataclass(frozen=True, eq=False)
class Torus(Shape):
    """A ring torus centred on the origin, symmetric about the z axis.

    Attributes:
        inner_radius: Radius r of the tube.
        outer_radius: Radius R of the tube's centre line; must exceed r.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.TORUS

    inner_radius: float = 0.25
    outer_radius: float = 1.0

    def __post_init__(self) -> None:
        r = require_positive("inner_radius", self.inner_radius)
        big_r = require_positive("outer_radius", self.outer_radius)
        if r >= big_r:
            raise ConstructionError(
                f"inner_radius ({r}) must be smaller than outer_radius ({big_r})"
            )
        object.__setattr__(self, "inner_radius", r)
        object.__setattr__(self, "outer_radius", big_r)

    @property
    def bounding_radius(self) -> float:
        return self.outer_radius + self.inner_radius

    def implicit(self, point: Any) -> float:
        """Evaluate F at a point; zero on the surface, negative inside the tube."""
        x, y, z = point
        r, big_r = self.inner_radius, self.outer_radius
        s = x * x + y * y + z * z + big_r * big_r - r * r
        return float(s * s - 4.0 * big_r * big_r * (x * x + y * y))

    def gradient(self, point: Any) -> Vector3:
        x, y, z = point
        r, big_r = self.inner_radius, self.outer_radius
        s = x * x + y * y + z * z + big_r * big_r - r * r
        return np.array(
            (
                4.0 * x * s - 8.0 * big_r * big_r * x,
                4.0 * y * s - 8.0 * big_r * big_r * y,
                4.0 * z * s,
            )
        )

    def normal_at(self, point: Any) -> Vector3:
        return normal_from_gradient(self.gradient(point), point)

    def bounds(self) -> AABB:
        extent = self.bounding_radius
        return AABB((-extent, -extent, -self.inner_radius), (extent, extent, self.inner_radius))


@register_intersector(ShapeKind.TORUS)
def hit_torus(torus: Torus, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with a torus.

    Args:
        torus: The torus to test.
        ray: Local-space ray.
        config: Accepted t range.

    Returns:
        Up to four hits sorted by t, with gradient normals.
    """
    radius = torus.bounding_radius * (1.0 + BOUNDING_MARGIN)
    interval = sphere_interval(ray, radius)
    if interval is None:
        return []
    t_enter, t_exit = interval
    if t_exit <= config.epsilon:
        return []

    # Re-base at the entry point (or the origin when starting inside)
    t_base = max(t_enter, 0.0)
    o = ray.origin + t_base * ray.direction
    d = ray.direction

    r, big_r = torus.inner_radius, torus.outer_radius
    px = Polynomial([o[0], d[0]])
    py = Polynomial([o[1], d[1]])
    pz = Polynomial([o[2], d[2]])
    s = px * px + py * py + pz * pz + (big_r * big_r - r * r)
    quartic = s * s - 4.0 * big_r * big_r * (px * px + py * py)

    span = t_exit - t_base
    roots = [t_base + u for u in real_roots(quartic) if -1e-9 <= u <= span + 1e-9]
    return hits_from_roots(ray, roots, lambda p: gradient_normal(torus.gradient(p)), config)
