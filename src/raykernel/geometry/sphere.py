"""Sphere primitive with robust ray-sphere intersection.

The intersection solves |o + t*d - c|^2 = r^2, i.e.

    a*t^2 + 2*h*t + c' = 0,   a = d.d,  h = d.(o - c),  c' = |o - c|^2 - r^2

with the cancellation-free quadratic formula from Ray Tracing Gems, so that
rays grazing the silhouette (h^2 close to a*c') stay accurate.

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry.sphere import Sphere
    >>> sphere = Sphere(center=(0.0, 0.0, 0.0), radius=1.0)
    >>> hit = sphere.closest_hit(Ray((0.0, 0.0, 5.0), (0.0, 0.0, -1.0)))
    >>> round(hit.t, 6), hit.normal.tolist()
    (4.0, [0.0, 0.0, 1.0])
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np

from raykernel.core.config import IntersectionConfig
from raykernel.core.ray import Ray
from raykernel.core.roots import solve_quadratic
from raykernel.core.vector import Point3, Vector3, as_vec3, normalize
from raykernel.geometry.base import (
    Shape,
    ShapeHit,
    ShapeKind,
    hits_from_roots,
    register_intersector,
    require_positive,
)
from raykernel.geometry.bounds import AABB


@dataclass(frozen=True, eq=False)
class Sphere(Shape):
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
    """

    kind: ClassVar[ShapeKind] = ShapeKind.SPHERE

    center: Point3 = (0.0, 0.0, 0.0)  # type: ignore[assignment]
    radius: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", as_vec3(self.center, name="center"))
        object.__setattr__(self, "radius", require_positive("radius", self.radius))

    def normal_at(self, point: Any) -> Vector3:
        return normalize(np.asarray(point, dtype=np.float64) - self.center)

    def bounds(self) -> AABB:
        return AABB.around_sphere(self.center, self.radius)


@register_intersector(ShapeKind.SPHERE)
def hit_sphere(sphere: Sphere, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with a sphere.

    Args:
        sphere: The sphere to test.
        ray: Local-space ray (need not be normalized).
        config: Accepted t range.

    Returns:
        Up to two hits (entry and exit) sorted by t, with outward normals.
    """
    # Vector from sphere center to ray origin
    oc = ray.origin - sphere.center

    a = float(np.dot(ray.direction, ray.direction))
    h = float(np.dot(ray.direction, oc))  # half of the traditional 'b'
    c = float(np.dot(oc, oc)) - sphere.radius * sphere.radius

    roots = solve_quadratic(a, 2.0 * h, c)

    # Outward normal: points from center to hit point
    return hits_from_roots(ray, roots, sphere.normal_at, config)
