"""Core math module.

This module contains the numeric building blocks shared by every shape:

Components:
    config: Intersection tolerances with environment overrides
    vector: Point/vector construction and vector utilities
    ray: Ray data structure
    roots: Quadratic, companion-matrix and bracketing root finders
    transform: Affine transforms with cached inverse and normal mapping

Everything here works on float64 numpy arrays and is pure Python-side
code; the Taichi batch path lives in raykernel.scene.batch.
"""

from .config import DEFAULT_CONFIG, IntersectionConfig, resolve_config
from .ray import Ray, make_ray, ray_at
from .roots import bracketed_roots, real_roots, solve_quadratic
from .transform import Transform
from .vector import (
    P,
    Point3,
    V,
    Vector3,
    as_vec3,
    cross,
    dot,
    length,
    length_squared,
    near_zero,
    normalize,
    point3,
    reflect,
    vec3,
)

__all__ = [
    # Config
    "IntersectionConfig",
    "DEFAULT_CONFIG",
    "resolve_config",
    # Vectors
    "Vector3",
    "Point3",
    "vec3",
    "point3",
    "V",
    "P",
    "as_vec3",
    "dot",
    "cross",
    "length",
    "length_squared",
    "normalize",
    "near_zero",
    "reflect",
    # Rays
    "Ray",
    "make_ray",
    "ray_at",
    # Roots
    "solve_quadratic",
    "real_roots",
    "bracketed_roots",
    # Transforms
    "Transform",
]
