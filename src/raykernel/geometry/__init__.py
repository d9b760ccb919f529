"""Geometry module for shape primitives and bounding boxes.

This module provides the closed set of shape variants and their
intersection routines:

Components:
    base: ShapeKind, ShapeHit and the intersect_shape() dispatch
    bounds: Axis-aligned bounding boxes and ray clipping
    sphere: Sphere primitive
    box: Unit cube, unit rectangle and the gnomon debug triad
    cylinder: Disk, capped cylinder and cone
    torus: Torus (quartic)
    algebraic: Roman, Steiner, Steiner2, CrossCap and CrossCap2 surfaces
    mesh: Triangle mesh

Every intersection routine works in the shape's local frame and returns
all hits inside the accepted t range, sorted by t:
    hits = intersect_shape(shape, local_ray, config)
"""

from .algebraic import AlgebraicSurface, CrossCap, CrossCap2, Roman, Steiner, Steiner2
from .base import (
    Shape,
    ShapeHit,
    ShapeKind,
    intersect_shape,
    register_intersector,
    shape_from_dict,
)
from .bounds import AABB
from .box import CubeUnit, Gnomon, Gnonom, RectangleUnit
from .cylinder import Cone, Cylinder, Disk
from .mesh import Mesh
from .sphere import Sphere
from .torus import Torus

__all__ = [
    # Dispatch
    "Shape",
    "ShapeHit",
    "ShapeKind",
    "intersect_shape",
    "register_intersector",
    "shape_from_dict",
    "AABB",
    # Analytic primitives
    "Sphere",
    "CubeUnit",
    "RectangleUnit",
    "Gnomon",
    "Gnonom",
    "Disk",
    "Cylinder",
    "Cone",
    "Torus",
    "Mesh",
    # Algebraic surfaces
    "AlgebraicSurface",
    "Roman",
    "Steiner",
    "Steiner2",
    "CrossCap",
    "CrossCap2",
]
