"""Scene-level hit records.

A SceneHitRecord is what the renderer receives for a ray: the world-space
hit with the material of the node that was hit. Node trees and the scene
produce these by taking the closest record over their parts.

Example:
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry import Sphere
    >>> from raykernel.scene.node import Node
    >>> rec = Node(Sphere()).translate(0.0, 0.0, -3.0).intersect(
    ...     Ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0)))
    >>> round(rec.t, 6), rec.front_face
    (2.0, True)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from raykernel.core.ray import Ray
from raykernel.core.vector import Point3, Vector3, as_vec3, dot
from raykernel.materials.material import Material

if TYPE_CHECKING:
    from raykernel.scene.node import Node


@dataclass(frozen=True)
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        t: The world ray parameter of the hit.
        point: World-space hit point.
        normal: Unit outward (or gradient) world normal, not flipped.
        material: Material of the node that was hit.
        front_face: True if the ray arrived against the normal, i.e. hit
            the outside of the surface.
        node: The node whose shape was hit.
    """

    t: float
    point: Point3
    normal: Vector3
    material: Material
    front_face: bool
    node: "Node"

    def shading_normal(self) -> Vector3:
        """Return the normal flipped to face the incoming ray."""
        return self.normal if self.front_face else as_vec3(-self.normal, name="normal")


def make_hit_record(
    ray: Ray, t: float, point: Point3, normal: Vector3, node: "Node"
) -> SceneHitRecord:
    """Build a world hit record, deriving front_face from the ray direction."""
    return SceneHitRecord(
        t=float(t),
        point=point,
        normal=normal,
        material=node.material,
        front_face=dot(ray.direction, normal) < 0.0,
        node=node,
    )


def closest_hit(records: Iterable[SceneHitRecord | None]) -> SceneHitRecord | None:
    """Return the record with the smallest t, ignoring misses (None)."""
    best = None
    for rec in records:
        if rec is not None and (best is None or rec.t < best.t):
            best = rec
    return best
