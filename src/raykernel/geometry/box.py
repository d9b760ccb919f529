"""Axis-aligned box primitives: unit cube, unit rectangle and the gnomon.

The unit cube spans [-1, 1] on every axis and is intersected with the slab
method. The unit rectangle is the square |x|, |z| <= 1 in the plane y = 0;
like a quad it is a plane test followed by a bounds test. The gnomon is a
debugging aid drawn as three thin rods along +x, +y and +z plus a small
cube marking the origin.

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry.box import CubeUnit
    >>> hits = CubeUnit().intersect(Ray((0.0, 0.0, 5.0), (0.0, 0.0, -1.0)))
    >>> [(round(h.t, 6), h.normal.tolist()) for h in hits]
    [(4.0, [0.0, 0.0, 1.0]), (6.0, [0.0, 0.0, -1.0])]
"""

from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
import numpy.typing as npt

from raykernel.core.config import IntersectionConfig
from raykernel.core.ray import Ray
from raykernel.core.vector import Vector3, as_vec3
from raykernel.errors import ConstructionError
from raykernel.geometry.base import (
    Shape,
    ShapeHit,
    ShapeKind,
    hits_from_roots,
    register_intersector,
    require_positive,
)
from raykernel.geometry.bounds import AABB, slab_interval

_UP = as_vec3((0.0, 1.0, 0.0))


def box_normal(point: Any, lo: npt.NDArray[np.float64], hi: npt.NDArray[np.float64]) -> Vector3:
    """Face normal of the box side closest to a surface point."""
    p = np.asarray(point, dtype=np.float64)
    center = 0.5 * (lo + hi)
    half = 0.5 * (hi - lo)
    # Axis whose face the point lies on has the largest relative offset
    rel = (p - center) / half
    axis = int(np.argmax(np.abs(rel)))
    n = np.zeros(3)
    n[axis] = 1.0 if rel[axis] >= 0.0 else -1.0
    return as_vec3(n, name="normal")


def hit_box(
    ray: Ray,
    lo: npt.NDArray[np.float64],
    hi: npt.NDArray[np.float64],
    config: IntersectionConfig,
) -> list[ShapeHit]:
    """Intersect a ray with the box [lo, hi].

    Returns:
        The entry and exit hits inside the accepted t range.
    """
    interval = slab_interval(ray.origin, ray.direction, lo, hi, -np.inf, np.inf)
    if interval is None:
        return []
    t_enter, t_exit = interval
    roots = [t_enter] if t_enter == t_exit else [t_enter, t_exit]
    return hits_from_roots(ray, roots, lambda p: box_normal(p, lo, hi), config)


_CUBE_LO = as_vec3((-1.0, -1.0, -1.0))
_CUBE_HI = as_vec3((1.0, 1.0, 1.0))


@dataclass(frozen=True, eq=False)
class CubeUnit(Shape):
    """The axis-aligned cube [-1, 1]^3."""

    kind: ClassVar[ShapeKind] = ShapeKind.CUBE

    def normal_at(self, point: Any) -> Vector3:
        return box_normal(point, _CUBE_LO, _CUBE_HI)

    def bounds(self) -> AABB:
        return AABB(_CUBE_LO, _CUBE_HI)


@register_intersector(ShapeKind.CUBE)
def hit_cube(cube: CubeUnit, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with the unit cube using per-axis slabs."""
    return hit_box(ray, _CUBE_LO, _CUBE_HI, config)


@dataclass(frozen=True, eq=False)
class RectangleUnit(Shape):
    """The square |x| <= 1, |z| <= 1 in the plane y = 0, facing +y."""

    kind: ClassVar[ShapeKind] = ShapeKind.RECTANGLE

    def normal_at(self, point: Any) -> Vector3:
        return _UP

    def bounds(self) -> AABB:
        return AABB((-1.0, 0.0, -1.0), (1.0, 0.0, 1.0))


@register_intersector(ShapeKind.RECTANGLE)
def hit_rectangle(rect: RectangleUnit, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with the unit rectangle.

    Plane test first, then bounds test on the hit point. The normal is +y
    from either side.
    """
    denom = float(ray.direction[1])

    # Ray parallel to the plane
    if denom == 0.0:
        return []

    t = -float(ray.origin[1]) / denom
    p = ray.origin + t * ray.direction
    if abs(p[0]) > 1.0 or abs(p[2]) > 1.0:
        return []
    return hits_from_roots(ray, [t], rect.normal_at, config)


@dataclass(frozen=True, eq=False)
class Gnomon(Shape):
    """Axis triad for orientation debugging.

    Attributes:
        length: Length of each rod along its positive axis.
        thickness: Half-width of the rods; the origin cube has half-width
            twice this.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.GNOMON

    length: float = 1.0
    thickness: float = 0.02

    def __post_init__(self) -> None:
        object.__setattr__(self, "length", require_positive("length", self.length))
        object.__setattr__(self, "thickness", require_positive("thickness", self.thickness))
        if 2.0 * self.thickness >= self.length:
            raise ConstructionError(
                f"Gnomon thickness ({self.thickness}) is too large for length ({self.length})"
            )

    def parts(self) -> list[tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]]:
        """Return the (lo, hi) corners of the x, y, z rods and the origin cube."""
        w, length = self.thickness, self.length
        boxes = []
        for axis in range(3):
            lo = np.full(3, -w)
            hi = np.full(3, w)
            lo[axis], hi[axis] = 0.0, length
            boxes.append((lo, hi))
        boxes.append((np.full(3, -2.0 * w), np.full(3, 2.0 * w)))
        return boxes

    def normal_at(self, point: Any) -> Vector3:
        p = np.asarray(point, dtype=np.float64)
        # Pick the part whose surface is nearest the point
        parts = self.parts()
        gaps = [abs(float(np.max(np.maximum(lo - p, p - hi)))) for lo, hi in parts]
        lo, hi = parts[int(np.argmin(gaps))]
        return box_normal(p, lo, hi)

    def bounds(self) -> AABB:
        w = 2.0 * self.thickness
        return AABB((-w, -w, -w), (self.length,) * 3)


# Misspelling kept by older scene scripts
Gnonom = Gnomon


@register_intersector(ShapeKind.GNOMON)
def hit_gnomon(gnomon: Gnomon, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with every part of the gnomon and merge the hits."""
    hits: list[ShapeHit] = []
    for lo, hi in gnomon.parts():
        hits.extend(hit_box(ray, lo, hi, config))
    hits.sort(key=lambda h: h.t)
    return hits
