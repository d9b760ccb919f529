"""Scene-graph and geometric-primitive kernel for a ray tracer.

This package builds scenes out of transformed shapes and answers
ray-scene intersection queries for an external shading renderer, with:
- Analytic primitives (sphere, cube, rectangle, disk, cylinder, cone)
- Quartic and algebraic surfaces (torus, Roman/Steiner, cross-caps)
- Triangle meshes
- Hierarchical nodes with cached inverse transforms
- Named cameras, lights and materials
- Batch intersection of ray arrays with Taichi

Subpackages:
    core: Vectors, rays, transforms, root finders and tolerances
    geometry: Shape primitives and intersection algorithms
    materials: Phong-style material coefficients and presets
    scene: Nodes, lights, registries, the Scene and batch tracing
    camera: Pinhole camera with ray generation

Example:
    >>> from raykernel import P, V, Camera, Node, Ray, Scene, Sphere, red
    >>> scene = Scene()
    >>> main = scene.add_camera("main", Camera(eye=P(0, 0, 5), look_at=P(0, 0, 0)))
    >>> ball = scene.add_node("ball", Node(Sphere(), red()))
    >>> scene.intersect(Ray(P(0, 0, 5), V(0, 0, -1))).t
    4.0
"""

import logging

from .camera import Camera
from .core import DEFAULT_CONFIG, IntersectionConfig, P, Ray, Transform, V
from .errors import ConstructionError, LookupMiss, NumericNonConvergence, RayKernelError
from .geometry import (
    AABB,
    Cone,
    CrossCap,
    CrossCap2,
    CubeUnit,
    Cylinder,
    Disk,
    Gnomon,
    Gnonom,
    Mesh,
    RectangleUnit,
    Roman,
    Shape,
    ShapeHit,
    ShapeKind,
    Sphere,
    Steiner,
    Steiner2,
    Torus,
)
from .logging_config import setup_logging
from .materials import DEFAULT_MATERIAL, Material, blue, green, magenta, red, turquoise
from .scene import (
    Ambient,
    AmbientLight,
    Light,
    Node,
    PointLight,
    Scene,
    SceneConfig,
    SceneHitRecord,
    flatten_scene,
)

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Core
    "P",
    "V",
    "Ray",
    "Transform",
    "IntersectionConfig",
    "DEFAULT_CONFIG",
    # Shapes
    "Shape",
    "ShapeHit",
    "ShapeKind",
    "AABB",
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
    "Roman",
    "Steiner",
    "Steiner2",
    "CrossCap",
    "CrossCap2",
    # Materials
    "Material",
    "DEFAULT_MATERIAL",
    "red",
    "blue",
    "green",
    "magenta",
    "turquoise",
    # Scene
    "Camera",
    "PointLight",
    "Light",
    "AmbientLight",
    "Ambient",
    "Node",
    "Scene",
    "SceneConfig",
    "SceneHitRecord",
    "flatten_scene",
    # Errors and logging
    "RayKernelError",
    "ConstructionError",
    "NumericNonConvergence",
    "LookupMiss",
    "setup_logging",
]
