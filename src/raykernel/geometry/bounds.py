"""Axis-aligned bounding boxes.

Every shape and node reports an AABB so that an acceleration structure can
be layered on top of the kernel. Boxes are transformed by mapping their
eight corners, which gives a conservative (possibly loose) box after
rotation.

Example:
    >>> from raykernel.geometry.bounds import AABB
    >>> box = AABB((-1.0, -1.0, -1.0), (1.0, 1.0, 1.0))
    >>> box.center.tolist()
    [0.0, 0.0, 0.0]
"""

import itertools
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from raykernel.core.ray import Ray
from raykernel.core.roots import solve_quadratic
from raykernel.core.vector import Point3, as_vec3
from raykernel.errors import ConstructionError


@dataclass(frozen=True)
class AABB:
    """Axis-aligned box [minimum, maximum].

    Attributes:
        minimum: Lower corner.
        maximum: Upper corner, component-wise >= minimum.
    """

    minimum: Point3
    maximum: Point3

    def __post_init__(self) -> None:
        lo = as_vec3(self.minimum, name="minimum")
        hi = as_vec3(self.maximum, name="maximum")
        if np.any(lo > hi):
            raise ConstructionError(f"AABB minimum {lo.tolist()} exceeds maximum {hi.tolist()}")
        object.__setattr__(self, "minimum", lo)
        object.__setattr__(self, "maximum", hi)

    @classmethod
    def from_points(cls, points: Any) -> "AABB":
        """Smallest box containing all rows of an (n, 3) array."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if pts.shape[0] == 0:
            raise ConstructionError("Cannot bound an empty point set")
        return cls(pts.min(axis=0), pts.max(axis=0))

    @classmethod
    def around_sphere(cls, center: Any, radius: float) -> "AABB":
        c = as_vec3(center, name="center")
        return cls(c - radius, c + radius)

    @property
    def center(self) -> Point3:
        return 0.5 * (self.minimum + self.maximum)

    @property
    def extent(self) -> npt.NDArray[np.float64]:
        return self.maximum - self.minimum

    def corners(self) -> npt.NDArray[np.float64]:
        """Return the eight corners as an (8, 3) array."""
        return np.array(
            [
                [self.maximum[i] if pick else self.minimum[i] for i, pick in enumerate(bits)]
                for bits in itertools.product((False, True), repeat=3)
            ]
        )

    def union(self, other: "AABB") -> "AABB":
        lo = np.minimum(self.minimum, other.minimum)
        return AABB(lo, np.maximum(self.maximum, other.maximum))

    def padded(self, amount: float) -> "AABB":
        return AABB(self.minimum - amount, self.maximum + amount)

    def transformed(self, matrix: npt.NDArray[np.float64]) -> "AABB":
        """Bound this box after an affine 4x4 transform."""
        corners = self.corners() @ matrix[:3, :3].T + matrix[:3, 3]
        return AABB.from_points(corners)

    def contains(self, point: Any) -> bool:
        p = np.asarray(point, dtype=np.float64)
        return bool(np.all(p >= self.minimum) and np.all(p <= self.maximum))

    def hit_interval(
        self, ray: Ray, t_min: float = 0.0, t_max: float = np.inf
    ) -> tuple[float, float] | None:
        """Clip a ray against the box with the slab method.

        Axes along which the ray does not move are handled by a containment
        test on the origin instead of a division.

        Args:
            ray: The ray to clip.
            t_min: Lower bound of the parameter range.
            t_max: Upper bound of the parameter range.

        Returns:
            The (t_enter, t_exit) overlap with [t_min, t_max], or None when
            the ray misses the box.
        """
        return slab_interval(ray.origin, ray.direction, self.minimum, self.maximum, t_min, t_max)

    def intersects(self, ray: Ray, t_min: float = 0.0, t_max: float = np.inf) -> bool:
        return self.hit_interval(ray, t_min, t_max) is not None


def slab_interval(
    origin: npt.NDArray[np.float64],
    direction: npt.NDArray[np.float64],
    lo: npt.NDArray[np.float64],
    hi: npt.NDArray[np.float64],
    t_min: float,
    t_max: float,
) -> tuple[float, float] | None:
    """Intersect the parameter range of a ray with an axis-aligned slab box.

    Returns:
        (t_enter, t_exit) or None if the range is empty.
    """
    t0, t1 = t_min, t_max
    for axis in range(3):
        d = direction[axis]
        if d == 0.0:
            if origin[axis] < lo[axis] or origin[axis] > hi[axis]:
                return None
            continue
        near = (lo[axis] - origin[axis]) / d
        far = (hi[axis] - origin[axis]) / d
        if near > far:
            near, far = far, near
        t0 = max(t0, near)
        t1 = min(t1, far)
        if t0 > t1:
            return None
    return t0, t1


def sphere_interval(ray: Ray, radius: float) -> tuple[float, float] | None:
    """Parameter range in which a ray is inside the origin-centred sphere.

    Returns:
        (t_enter, t_exit), or None if the ray misses the sphere.
    """
    o, d = ray.origin, ray.direction
    roots = solve_quadratic(
        float(np.dot(d, d)), 2.0 * float(np.dot(o, d)), float(np.dot(o, o)) - radius * radius
    )
    if len(roots) < 2:
        return None
    return roots[0], roots[1]
