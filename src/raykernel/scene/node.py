"""Scene-graph nodes.

A node owns one shape, references one material, owns a Transform and an
ordered list of child nodes. Each child is owned by exactly one parent, so
the graph is a forest of trees. Builder calls chain:

    >>> from raykernel.geometry import CubeUnit, Sphere
    >>> from raykernel.scene.node import Node
    >>> arm = Node(CubeUnit()).scale(1.0, 0.1, 0.1).translate(1.0, 0.0, 0.0)
    >>> body = Node(Sphere()).add_child(arm).rotate(0.0, 45.0, 0.0)

A child's transform is relative to its parent's local frame. Intersection
maps the world ray into each frame without renormalising its direction,
so the ray parameter t is the same at every level and hits from different
levels compare directly.
"""

from collections.abc import Iterator
from typing import Any

import numpy as np
import numpy.typing as npt

from raykernel.core.config import IntersectionConfig, resolve_config
from raykernel.core.ray import Ray
from raykernel.core.transform import Transform
from raykernel.core.vector import Point3, Vector3
from raykernel.errors import ConstructionError
from raykernel.geometry.base import Shape
from raykernel.geometry.bounds import AABB
from raykernel.materials.material import DEFAULT_MATERIAL, Material
from raykernel.scene.intersection import SceneHitRecord, make_hit_record

# A hit expressed in some node's parent frame
_FrameHit = tuple[float, Point3, Vector3, "Node"]


class Node:
    """A transformed shape with a material and child nodes.

    Attributes:
        shape: The node's shape, in local coordinates.
        material: The node's material (shared by reference).
        name: Optional label used in logs and serialization.
        transform: Local-to-parent transform.
        is_active: Inactive nodes and their whole subtrees are invisible.
    """

    def __init__(
        self,
        shape: Shape,
        material: Material | None = None,
        name: str | None = None,
    ) -> None:
        if not isinstance(shape, Shape):
            raise ConstructionError(f"Node shape must be a Shape, got {type(shape).__name__}")
        if material is not None and not isinstance(material, Material):
            raise ConstructionError(
                f"Node material must be a Material, got {type(material).__name__}"
            )
        self.shape = shape
        self.material = DEFAULT_MATERIAL if material is None else material
        self.name = name
        self._transform = Transform()
        self.is_active = True
        self._children: list[Node] = []
        self._parent: Node | None = None
        self._frozen = False

    def __repr__(self) -> str:
        label = self.name or type(self.shape).__name__
        return f"Node({label!r}, children={len(self._children)}, active={self.is_active})"

    # =========================================================================
    # Builders (chainable)
    # =========================================================================

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ConstructionError(f"{self!r} is frozen and can no longer be modified")

    def scale(self, sx: float, sy: float, sz: float) -> "Node":
        """Append a scale to the node's transform."""
        self._check_mutable()
        self.transform.scale(sx, sy, sz)
        return self

    def rotate(self, dx: float, dy: float, dz: float) -> "Node":
        """Append rotations about x, then y, then z (degrees)."""
        self._check_mutable()
        self.transform.rotate(dx, dy, dz)
        return self

    def translate(self, dx: float, dy: float, dz: float) -> "Node":
        """Append a translation to the node's transform."""
        self._check_mutable()
        self.transform.translate(dx, dy, dz)
        return self

    def active(self, flag: bool) -> "Node":
        """Show or hide this node together with its subtree."""
        self._check_mutable()
        self.is_active = bool(flag)
        return self

    def set_material(self, material: Material) -> "Node":
        """Replace the node's material."""
        self._check_mutable()
        if not isinstance(material, Material):
            raise ConstructionError(
                f"Node material must be a Material, got {type(material).__name__}"
            )
        self.material = material
        return self

    def add_child(self, child: "Node") -> "Node":
        """Attach a child node; returns self (the parent) for chaining.

        Raises:
            ConstructionError: If the child already has a parent, is this
                node, or is one of its ancestors.
        """
        self._check_mutable()
        if not isinstance(child, Node):
            raise ConstructionError(f"Child must be a Node, got {type(child).__name__}")
        if child._parent is not None:
            raise ConstructionError(f"{child!r} already belongs to {child._parent!r}")
        ancestor: Node | None = self
        while ancestor is not None:
            if ancestor is child:
                raise ConstructionError(f"Adding {child!r} to {self!r} would create a cycle")
            ancestor = ancestor._parent
        child._parent = self
        self._children.append(child)
        return self

    def freeze(self) -> None:
        """Make this node, its transform and its subtree read-only."""
        for node in self.walk():
            node._frozen = True
            node._transform.freeze()

    # =========================================================================
    # Structure
    # =========================================================================

    @property
    def transform(self) -> Transform:
        return self._transform

    @transform.setter
    def transform(self, transform: Transform) -> None:
        self._check_mutable()
        if not isinstance(transform, Transform):
            raise ConstructionError(
                f"Node transform must be a Transform, got {type(transform).__name__}"
            )
        # Nodes own their transform exclusively
        self._transform = transform.copy()

    @property
    def children(self) -> tuple["Node", ...]:
        return tuple(self._children)

    @property
    def parent(self) -> "Node | None":
        return self._parent

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def walk(self) -> Iterator["Node"]:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self._children:
            yield from child.walk()

    def world_bounds(self, parent_matrix: npt.NDArray[np.float64] | None = None) -> AABB | None:
        """Bound the visible part of the subtree in world (or parent) space.

        Returns:
            The box, or None when the node is inactive.
        """
        if not self.is_active:
            return None
        matrix = self.transform.matrix
        if parent_matrix is not None:
            matrix = parent_matrix @ matrix
        box = self.shape.bounds().transformed(matrix)
        for child in self._children:
            child_box = child.world_bounds(matrix)
            if child_box is not None:
                box = box.union(child_box)
        return box

    # =========================================================================
    # Intersection
    # =========================================================================

    def _trace(self, parent_ray: Ray, config: IntersectionConfig) -> _FrameHit | None:
        """Closest hit in the subtree, expressed in the parent's frame."""
        if not self.is_active:
            return None

        local_ray = self.transform.inverse_transform_ray(parent_ray)
        best: _FrameHit | None = None
        hit = self.shape.closest_hit(local_ray, config)
        if hit is not None:
            best = (hit.t, hit.point, hit.normal, self)

        # Children see the ray in this node's local frame
        for child in self._children:
            child_hit = child._trace(local_ray, config)
            if child_hit is not None and (best is None or child_hit[0] < best[0]):
                best = child_hit

        if best is None:
            return None
        t, point, normal, node = best
        return t, self.transform.apply(point), self.transform.apply_normal(normal), node

    def intersect(
        self, ray: Ray, config: IntersectionConfig | None = None
    ) -> SceneHitRecord | None:
        """Intersect a world-space ray with this node's subtree.

        Args:
            ray: World-space ray (this node is treated as a root).
            config: Tolerances; the module default when None.

        Returns:
            The closest hit, or None if the subtree is inactive or missed.
        """
        found = self._trace(ray, resolve_config(config))
        if found is None:
            return None
        t, point, normal, node = found
        return make_hit_record(ray, t, point, normal, node)

    def to_dict(self, material_ref: Any = None) -> dict[str, Any]:
        """Serialize the subtree.

        Args:
            material_ref: Callable mapping a Material to its registered name
                (or None when it is not registered, in which case the
                material is written inline).
        """
        name = material_ref(self.material) if material_ref is not None else None
        return {
            "name": self.name,
            "shape": self.shape.to_dict(),
            "material": name if name is not None else self.material.to_dict(),
            "transform": self.transform.matrix.tolist(),
            "active": self.is_active,
            "children": [child.to_dict(material_ref) for child in self._children],
        }
