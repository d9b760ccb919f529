"""Flatten a scene graph into instance tables for batch intersection.

The batch tracer cannot walk Python node trees, so the active part of the
graph is turned into a flat list of primitive instances, each with its
accumulated world matrix and inverse, a primitive type code, up to eight
float parameters and a material index. Mesh triangles go to one shared
table that instances index into. Composite and alias shapes are lowered to
the primitive codes the kernel understands:

    CubeUnit        -> BOX [-1, 1]^3
    Gnomon          -> four BOX instances
    Steiner         -> ROMAN with k = 1
    CrossCap        -> CROSS_CAP2 with p = q = 1

Example:
    >>> from raykernel.geometry import Gnomon
    >>> from raykernel.scene.manager import Scene
    >>> from raykernel.scene.node import Node
    >>> scene = Scene()
    >>> axes = scene.add_node("axes", Node(Gnomon()))
    >>> len(flatten_scene(scene).instances)
    4
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np
import numpy.typing as npt

from raykernel.geometry.algebraic import (
    AlgebraicSurface,
    CrossCap,
    CrossCap2,
    Roman,
    Steiner,
    Steiner2,
)
from raykernel.geometry.base import Shape
from raykernel.geometry.box import CubeUnit, Gnomon, RectangleUnit
from raykernel.geometry.cylinder import Cone, Cylinder, Disk
from raykernel.geometry.mesh import Mesh
from raykernel.geometry.sphere import Sphere
from raykernel.geometry.torus import Torus
from raykernel.materials.material import Material
from raykernel.scene.manager import Scene
from raykernel.scene.node import Node

logger = logging.getLogger(__name__)

NUM_PARAMS = 8


class PrimitiveType(IntEnum):
    """Primitive type codes understood by the batch kernel."""

    SPHERE = 0
    BOX = 1
    RECTANGLE = 2
    DISK = 3
    CYLINDER = 4
    CONE = 5
    TORUS = 6
    MESH = 7
    ROMAN = 8
    STEINER2 = 9
    CROSS_CAP2 = 10


@dataclass
class Instance:
    """One primitive placed in world space.

    Attributes:
        primitive: Primitive type code.
        world: 4x4 local-to-world matrix.
        inverse: 4x4 world-to-local matrix.
        params: Primitive parameters (layout depends on the type).
        material_index: Index into FlatScene.materials.
        node: The scene node the instance came from.
        triangle_start: First row of the triangle table (meshes only).
        triangle_count: Number of triangles (meshes only).
    """

    primitive: PrimitiveType
    world: npt.NDArray[np.float64]
    inverse: npt.NDArray[np.float64]
    params: tuple[float, ...]
    material_index: int
    node: Node
    triangle_start: int = 0
    triangle_count: int = 0


@dataclass
class FlatScene:
    """Flat instance and triangle tables of a scene.

    Attributes:
        instances: Primitive instances in depth-first node order.
        triangles: Shared (m, 3, 3) triangle table in local mesh coordinates.
        materials: Distinct materials referenced by the instances.
    """

    instances: list[Instance] = field(default_factory=list)
    triangles: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros((0, 3, 3)))
    materials: list[Material] = field(default_factory=list)

    def param_table(self) -> npt.NDArray[np.float64]:
        """Return all instance parameters as an (n, NUM_PARAMS) array."""
        table = np.zeros((len(self.instances), NUM_PARAMS))
        for i, inst in enumerate(self.instances):
            table[i, : len(inst.params)] = inst.params
        return table


def _primitive_params(shape: Shape) -> list[tuple[PrimitiveType, tuple[float, ...]]]:
    """Lower a shape to (primitive type, params) pairs."""
    if isinstance(shape, Sphere):
        return [(PrimitiveType.SPHERE, (*shape.center.tolist(), shape.radius))]
    if isinstance(shape, CubeUnit):
        return [(PrimitiveType.BOX, (-1.0, -1.0, -1.0, 1.0, 1.0, 1.0))]
    if isinstance(shape, Gnomon):
        return [
            (PrimitiveType.BOX, (*lo.tolist(), *hi.tolist())) for lo, hi in shape.parts()
        ]
    if isinstance(shape, RectangleUnit):
        return [(PrimitiveType.RECTANGLE, ())]
    if isinstance(shape, Disk):
        return [(PrimitiveType.DISK, (shape.radius,))]
    if isinstance(shape, Cylinder):
        return [(PrimitiveType.CYLINDER, (shape.height, shape.radius))]
    if isinstance(shape, Cone):
        return [(PrimitiveType.CONE, (shape.height, shape.radius))]
    if isinstance(shape, Torus):
        return [
            (
                PrimitiveType.TORUS,
                (shape.inner_radius, shape.outer_radius, 0.0, 0.0, 0.0, 0.0, 0.0)
                + (shape.bounding_radius,),
            )
        ]
    if isinstance(shape, AlgebraicSurface):
        radius = shape.bounding_radius
        if isinstance(shape, Roman):
            return [(PrimitiveType.ROMAN, (shape.k, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, radius))]
        if isinstance(shape, Steiner):
            return [(PrimitiveType.ROMAN, (1.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, radius))]
        if isinstance(shape, Steiner2):
            return [(PrimitiveType.STEINER2, (0.0,) * 7 + (radius,))]
        if isinstance(shape, CrossCap2):
            return [(PrimitiveType.CROSS_CAP2, (shape.p, shape.q, 0.0, 0.0, 0.0, 0.0, 0.0, radius))]
        if isinstance(shape, CrossCap):
            return [(PrimitiveType.CROSS_CAP2, (1.0, 1.0, 0.0, 0.0, 0.0, 0.0, 0.0, radius))]
    raise TypeError(f"Cannot flatten shape of type {type(shape).__name__}")


def flatten_scene(scene: Scene) -> FlatScene:
    """Flatten the active node trees of a scene.

    Args:
        scene: The scene to flatten. Inactive nodes are skipped together
            with their subtrees.

    Returns:
        The instance, triangle and material tables.
    """
    flat = FlatScene()
    material_ids: dict[int, int] = {}
    triangle_blocks: list[npt.NDArray[np.float64]] = []
    triangle_count = 0
    node_count = 0

    def material_index(material: Material) -> int:
        key = id(material)
        if key not in material_ids:
            material_ids[key] = len(flat.materials)
            flat.materials.append(material)
        return material_ids[key]

    def visit(node: Node, parent: npt.NDArray[np.float64]) -> None:
        nonlocal triangle_count, node_count
        if not node.is_active:
            return
        node_count += 1
        world = parent @ node.transform.matrix
        inverse = np.linalg.inv(world)
        mat_index = material_index(node.material)

        if isinstance(node.shape, Mesh):
            tris = node.shape.triangles
            flat.instances.append(
                Instance(
                    primitive=PrimitiveType.MESH,
                    world=world,
                    inverse=inverse,
                    params=(),
                    material_index=mat_index,
                    node=node,
                    triangle_start=triangle_count,
                    triangle_count=len(tris),
                )
            )
            triangle_blocks.append(tris)
            triangle_count += len(tris)
        else:
            for primitive, params in _primitive_params(node.shape):
                flat.instances.append(
                    Instance(primitive, world, inverse, tuple(params), mat_index, node)
                )

        for child in node.children:
            visit(child, world)

    for root in scene.nodes().values():
        visit(root, np.eye(4))

    if triangle_blocks:
        flat.triangles = np.concatenate(triangle_blocks, axis=0)

    logger.debug(
        "Flattened %d nodes into %d instances and %d triangles",
        node_count,
        len(flat.instances),
        triangle_count,
    )
    return flat
