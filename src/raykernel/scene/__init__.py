"""Scene module for the scene graph, lights and ray-scene queries.

This module handles scene representation and ray-scene queries:

Components:
    node: Transformed shapes with materials and owned child nodes
    light: Point and ambient lights
    registry: Insertion-ordered, name-keyed registries
    intersection: SceneHitRecord returned to the renderer
    manager: Scene container coordinating cameras, lights, materials and nodes
    flatten: Lowering of node trees to flat instance tables
    batch: Taichi kernel intersecting arrays of rays (import explicitly)

The scene module manages:
    - Named objects with last-write-wins replacement
    - Nearest-hit and shadow queries over the active node trees
    - Freezing for read-only sharing between renderer threads
    - Scene serialization through SceneConfig

The batch module allocates Taichi fields at import time and is therefore
not imported here; use `from raykernel.scene.batch import BatchTracer`
after `ti.init()`.
"""

from .flatten import FlatScene, Instance, PrimitiveType, flatten_scene
from .intersection import SceneHitRecord, closest_hit
from .light import Ambient, AmbientLight, AnyLight, Light, LightKind, PointLight, light_from_dict
from .manager import Scene, SceneConfig
from .node import Node
from .registry import Registry, RegistryView

__all__ = [
    # Graph
    "Node",
    "Scene",
    "SceneConfig",
    "Registry",
    "RegistryView",
    # Queries
    "SceneHitRecord",
    "closest_hit",
    # Lights
    "PointLight",
    "AmbientLight",
    "AnyLight",
    "Light",
    "Ambient",
    "LightKind",
    "light_from_dict",
    # Flattening
    "flatten_scene",
    "FlatScene",
    "Instance",
    "PrimitiveType",
]
