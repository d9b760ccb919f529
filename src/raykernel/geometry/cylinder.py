"""Quadric solids of revolution about the y axis: disk, cylinder and cone.

All three share the same pieces: a quadratic for the curved side clipped to
the height range, and flat circular caps tested like a rectangle (plane
test, then radius test).

    Disk(radius)            x^2 + z^2 <= r^2 in the plane y = 0, normal +y
    Cylinder(height, r)     x^2 + z^2 = r^2, -h/2 <= y <= h/2, capped
    Cone(height, r)         x^2 + z^2 = (r/h)^2 (h/2 - y)^2, apex at y = h/2,
                            base disk at y = -h/2

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry.cylinder import Cylinder
    >>> hits = Cylinder(height=2.0, radius=1.0).intersect(Ray((5.0, 0.0, 0.0), (-1.0, 0.0, 0.0)))
    >>> [round(h.t, 6) for h in hits]
    [4.0, 6.0]
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np

from raykernel.core.config import IntersectionConfig
from raykernel.core.ray import Ray
from raykernel.core.roots import solve_quadratic
from raykernel.core.vector import Vector3, as_vec3
from raykernel.geometry.base import (
    Shape,
    ShapeHit,
    ShapeKind,
    gradient_normal,
    register_intersector,
    require_positive,
)
from raykernel.geometry.bounds import AABB

_UP = as_vec3((0.0, 1.0, 0.0))
_DOWN = as_vec3((0.0, -1.0, 0.0))


def _cap_root(ray: Ray, y: float, radius: float) -> float | None:
    """Parameter where the ray crosses the disk of the given radius at height y."""
    dy = float(ray.direction[1])
    if dy == 0.0:
        return None
    t = (y - float(ray.origin[1])) / dy
    x = ray.origin[0] + t * ray.direction[0]
    z = ray.origin[2] + t * ray.direction[2]
    if x * x + z * z > radius * radius:
        return None
    return t


def _collect(
    ray: Ray, candidates: list[tuple[float, Vector3 | None]], config: IntersectionConfig
) -> list[ShapeHit]:
    hits = []
    for t, normal in sorted(candidates, key=lambda c: c[0]):
        if normal is None or not (config.epsilon < t < config.t_max):
            continue
        hits.append(ShapeHit(t=float(t), point=ray.at(t), normal=normal))
    return hits


@dataclass(frozen=True, eq=False)
class Disk(Shape):
    """A flat disk in the plane y = 0 facing +y.

    Attributes:
        radius: Disk radius (positive).
    """

    kind: ClassVar[ShapeKind] = ShapeKind.DISK

    radius: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "radius", require_positive("radius", self.radius))

    def normal_at(self, point: Any) -> Vector3:
        return _UP

    def bounds(self) -> AABB:
        r = self.radius
        return AABB((-r, 0.0, -r), (r, 0.0, r))


@register_intersector(ShapeKind.DISK)
def hit_disk(disk: Disk, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with a disk; the normal is +y from either side."""
    t = _cap_root(ray, 0.0, disk.radius)
    if t is None:
        return []
    return _collect(ray, [(t, _UP)], config)


@dataclass(frozen=True, eq=False)
class Cylinder(Shape):
    """A capped cylinder centred on the origin with its axis along y.

    Attributes:
        height: Total height; the cylinder spans -height/2 <= y <= height/2.
        radius: Radius of the side and caps.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.CYLINDER

    height: float = 2.0
    radius: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "height", require_positive("height", self.height))
        object.__setattr__(self, "radius", require_positive("radius", self.radius))

    def _side_normal(self, point: Any) -> Vector3 | None:
        return gradient_normal((point[0], 0.0, point[2]))

    def normal_at(self, point: Any) -> Vector3:
        p = np.asarray(point, dtype=np.float64)
        half = 0.5 * self.height
        cap_gap = half - abs(p[1])
        side_gap = self.radius - float(np.hypot(p[0], p[2]))
        normal = self._side_normal(p)
        if cap_gap < side_gap or normal is None:
            return _UP if p[1] > 0.0 else _DOWN
        return normal

    def bounds(self) -> AABB:
        r, half = self.radius, 0.5 * self.height
        return AABB((-r, -half, -r), (r, half, r))


@register_intersector(ShapeKind.CYLINDER)
def hit_cylinder(cyl: Cylinder, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with the side and both caps of a cylinder."""
    o, d = ray.origin, ray.direction
    half = 0.5 * cyl.height

    a = d[0] * d[0] + d[2] * d[2]
    b = 2.0 * (o[0] * d[0] + o[2] * d[2])
    c = o[0] * o[0] + o[2] * o[2] - cyl.radius * cyl.radius

    candidates: list[tuple[float, Vector3 | None]] = []
    for t in solve_quadratic(float(a), float(b), float(c)):
        y = o[1] + t * d[1]
        if -half <= y <= half:
            p = ray.at(t)
            candidates.append((t, cyl._side_normal(p)))

    for y_cap, normal in ((half, _UP), (-half, _DOWN)):
        t_cap = _cap_root(ray, y_cap, cyl.radius)
        if t_cap is not None:
            candidates.append((t_cap, normal))

    return _collect(ray, candidates, config)


@dataclass(frozen=True, eq=False)
class Cone(Shape):
    """A closed cone with its apex on +y and base disk on -y.

    Attributes:
        height: Distance from base to apex; the cone spans
            -height/2 <= y <= height/2.
        radius: Radius of the base disk.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.CONE

    height: float = 2.0
    radius: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "height", require_positive("height", self.height))
        object.__setattr__(self, "radius", require_positive("radius", self.radius))

    @property
    def slope(self) -> float:
        """Radius gained per unit of distance from the apex."""
        return self.radius / self.height

    def _side_normal(self, point: Any) -> Vector3 | None:
        k2 = self.slope * self.slope
        # Gradient of x^2 + z^2 - k^2 (h/2 - y)^2, halved; vanishes at the apex
        return gradient_normal((point[0], k2 * (0.5 * self.height - point[1]), point[2]))

    def normal_at(self, point: Any) -> Vector3:
        p = np.asarray(point, dtype=np.float64)
        if abs(p[1] + 0.5 * self.height) < 1e-9:
            return _DOWN
        normal = self._side_normal(p)
        return _UP if normal is None else normal

    def bounds(self) -> AABB:
        r, half = self.radius, 0.5 * self.height
        return AABB((-r, -half, -r), (r, half, r))


@register_intersector(ShapeKind.CONE)
def hit_cone(cone: Cone, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with the side and base of a cone.

    The side is the lower nappe of x^2 + z^2 = k^2 (h/2 - y)^2; roots on the
    mirrored upper nappe fall outside the height range and are dropped.
    """
    o, d = ray.origin, ray.direction
    half = 0.5 * cone.height
    k2 = cone.slope * cone.slope

    # Distance below the apex along -y: s(t) = s0 + t * ds
    s0 = half - o[1]
    ds = -d[1]

    a = d[0] * d[0] + d[2] * d[2] - k2 * ds * ds
    b = 2.0 * (o[0] * d[0] + o[2] * d[2] - k2 * s0 * ds)
    c = o[0] * o[0] + o[2] * o[2] - k2 * s0 * s0

    candidates: list[tuple[float, Vector3 | None]] = []
    for t in solve_quadratic(float(a), float(b), float(c)):
        y = o[1] + t * d[1]
        if -half <= y <= half:
            candidates.append((t, cone._side_normal(ray.at(t))))

    t_base = _cap_root(ray, -half, cone.radius)
    if t_base is not None:
        candidates.append((t_base, _DOWN))

    return _collect(ray, candidates, config)
