"""Shape variants, hit records and the single intersection entry point.

Every primitive is a frozen dataclass tagged with a ShapeKind. Intersection
routines register themselves per kind and are reached through
intersect_shape(), the same way the GPU path dispatches on an integer
primitive type:

    @register_intersector(ShapeKind.SPHERE)
    def _intersect_sphere(shape, ray, config): ...

Shapes live in their own local frame; node transforms are applied by the
caller. Local rays need not have unit direction, so t is shared with the
world ray the local ray came from.

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry import Sphere
    >>> hits = Sphere().intersect(Ray((0.0, 0.0, 5.0), (0.0, 0.0, -1.0)))
    >>> [round(h.t, 6) for h in hits]
    [4.0, 6.0]
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, fields
from enum import IntEnum
from typing import Any, ClassVar

import numpy as np

from raykernel.core.config import IntersectionConfig, resolve_config
from raykernel.core.ray import Ray
from raykernel.core.vector import Point3, Vector3, as_vec3
from raykernel.errors import ConstructionError
from raykernel.geometry.bounds import AABB


class ShapeKind(IntEnum):
    """Enumeration of the closed set of shape variants.

    The integer values double as primitive type codes in the batch tracer.
    """

    SPHERE = 0
    CUBE = 1
    RECTANGLE = 2
    DISK = 3
    CYLINDER = 4
    CONE = 5
    TORUS = 6
    GNOMON = 7
    MESH = 8
    STEINER = 9
    STEINER2 = 10
    CROSS_CAP = 11
    CROSS_CAP2 = 12
    ROMAN = 13


@dataclass(frozen=True)
class ShapeHit:
    """A single ray-shape intersection in the shape's local frame.

    Attributes:
        t: Ray parameter of the hit.
        point: Local hit point.
        normal: Unit outward (or gradient) normal at the hit, not flipped
            toward the ray.
    """

    t: float
    point: Point3
    normal: Vector3


Intersector = Callable[[Any, Ray, IntersectionConfig], list[ShapeHit]]

_INTERSECTORS: dict[ShapeKind, Intersector] = {}
_SHAPE_TYPES: dict[str, type["Shape"]] = {}


def register_intersector(kind: ShapeKind) -> Callable[[Intersector], Intersector]:
    """Register the intersection routine for one shape kind."""

    def decorator(func: Intersector) -> Intersector:
        _INTERSECTORS[kind] = func
        return func

    return decorator


def intersect_shape(
    shape: "Shape", ray: Ray, config: IntersectionConfig | None = None
) -> list[ShapeHit]:
    """Intersect a local-space ray with any shape.

    Args:
        shape: The shape to test.
        ray: A ray in the shape's local frame.
        config: Tolerances; the module default when None.

    Returns:
        All hits with epsilon < t < t_max, sorted by ascending t. An empty
        list is a miss.

    Raises:
        TypeError: If no intersector is registered for the shape's kind.
    """
    try:
        intersector = _INTERSECTORS[shape.kind]
    except KeyError:
        raise TypeError(f"No intersector registered for {type(shape).__name__}") from None
    return intersector(shape, ray, resolve_config(config))


def hits_from_roots(
    ray: Ray,
    roots: Iterable[float],
    normal_fn: Callable[[Point3], Vector3 | None],
    config: IntersectionConfig,
) -> list[ShapeHit]:
    """Turn candidate ray parameters into sorted, range-filtered hits.

    Args:
        ray: The local ray.
        roots: Candidate t values, in any order.
        normal_fn: Maps a hit point to its unit normal, or None to reject the
            hit (singular points of implicit surfaces).
        config: Tolerances for the accepted t range.

    Returns:
        Hits sorted by t.
    """
    hits = []
    for t in sorted(roots):
        if not (config.epsilon < t < config.t_max):
            continue
        point = ray.at(t)
        normal = normal_fn(point)
        if normal is None:
            continue
        hits.append(ShapeHit(t=float(t), point=point, normal=normal))
    return hits


def _jsonable(value: Any) -> Any:
    if isinstance(value, np.ndarray):
        return value.tolist()
    return value


class Shape:
    """Base class for all shape variants.

    Subclasses are frozen dataclasses that set the `kind` class variable and
    validate their parameters in __post_init__.
    """

    kind: ClassVar[ShapeKind]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "kind" in cls.__dict__:
            _SHAPE_TYPES[cls.kind.name.lower()] = cls

    def intersect(self, ray: Ray, config: IntersectionConfig | None = None) -> list[ShapeHit]:
        """Intersect a local-space ray; see intersect_shape()."""
        return intersect_shape(self, ray, config)

    def closest_hit(self, ray: Ray, config: IntersectionConfig | None = None) -> ShapeHit | None:
        """Return the nearest hit, or None on a miss."""
        hits = intersect_shape(self, ray, config)
        return hits[0] if hits else None

    def normal_at(self, point: Any) -> Vector3:
        """Return the local unit normal at a point on the surface."""
        raise NotImplementedError

    def bounds(self) -> AABB:
        """Return the local axis-aligned bounding box."""
        raise NotImplementedError

    def params(self) -> dict[str, Any]:
        """Return the construction parameters as plain Python values."""
        values = fields(self)  # type: ignore[arg-type]
        return {f.name: _jsonable(getattr(self, f.name)) for f in values}

    def to_dict(self) -> dict[str, Any]:
        """Serialize to {"type": ..., "params": ...}."""
        return {"type": self.kind.name.lower(), "params": self.params()}


def shape_from_dict(data: dict[str, Any]) -> Shape:
    """Rebuild a shape serialized with Shape.to_dict().

    Raises:
        ConstructionError: If the type name is unknown or the parameters are
            invalid for it.
    """
    type_name = str(data.get("type", "")).lower()
    try:
        cls = _SHAPE_TYPES[type_name]
    except KeyError:
        raise ConstructionError(f"Unknown shape type {type_name!r}") from None
    try:
        return cls(**data.get("params", {}))
    except TypeError as exc:
        raise ConstructionError(f"Invalid parameters for {type_name}: {exc}") from exc


def gradient_normal(gradient: Any, tolerance: float = 1e-12) -> Vector3 | None:
    """Normalize a gradient, or return None where its norm is below tolerance."""
    g = np.asarray(gradient, dtype=np.float64)
    norm = float(np.linalg.norm(g))
    if not np.isfinite(norm) or norm < tolerance:
        return None
    return as_vec3(g / norm, name="normal")


def require_positive(name: str, value: float) -> float:
    """Validate a strictly positive finite parameter."""
    value = float(value)
    if not (np.isfinite(value) and value > 0.0):
        raise ConstructionError(f"{name} must be a positive finite number, got {value}")
    return value


def normal_from_gradient(gradient: Any, point: Any) -> Vector3:
    """Normalize a surface gradient for normal_at().

    Raises:
        ValueError: If the gradient vanishes (singular point of the surface).
    """
    normal = gradient_normal(gradient)
    if normal is None:
        raise ValueError(f"Surface normal is undefined at singular point {list(point)}")
    return normal
