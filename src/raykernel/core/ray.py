"""Ray data structure.

A ray is an origin point and a direction vector. The direction is not
required to be unit length: when a world ray is mapped into a node's local
frame its direction is transformed but not renormalised, so the ray
parameter t names the same point in every frame.

Example:
    >>> from raykernel.core.ray import Ray
    >>> ray = Ray(origin=(0.0, 0.0, 5.0), direction=(0.0, 0.0, -1.0))
    >>> ray.at(4.0).tolist()
    [0.0, 0.0, 1.0]
"""

from dataclasses import dataclass
from typing import Any

import numpy as np

from raykernel.core.vector import Point3, Vector3, as_vec3, normalize
from raykernel.errors import ConstructionError


@dataclass(frozen=True)
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. Must be non-zero but
            need not be normalized.
    """

    origin: Point3
    direction: Vector3

    def __post_init__(self) -> None:
        object.__setattr__(self, "origin", as_vec3(self.origin, name="ray origin"))
        direction = as_vec3(self.direction, name="ray direction")
        if not np.any(direction):
            raise ConstructionError("Ray direction must be non-zero")
        object.__setattr__(self, "direction", direction)

    def at(self, t: float) -> Point3:
        """Compute the point along the ray at parameter t.

        Args:
            t: The parameter value. Positive values are in front of the origin.

        Returns:
            The point origin + t * direction.
        """
        p = self.origin + t * self.direction
        p.setflags(write=False)
        return p

    def normalized(self) -> "Ray":
        """Return a ray with the same origin and a unit direction."""
        return Ray(self.origin, normalize(self.direction))


def make_ray(origin: Any, direction: Any) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


def ray_at(ray: Ray, t: float) -> Point3:
    """Compute the point ray.origin + t * ray.direction."""
    return ray.at(t)
