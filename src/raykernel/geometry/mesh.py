"""Triangle mesh primitive.

A mesh is a fixed array of triangles supplied by the caller (loading files
is the caller's concern; `source` only records where they came from).
Intersection runs the Moller-Trumbore test against every triangle at once
with numpy and reports flat per-triangle normals.

Example:
    >>> import numpy as np
    >>> from raykernel.core.ray import Ray
    >>> from raykernel.geometry.mesh import Mesh
    >>> tri = np.array([[[-1.0, -1.0, 0.0], [1.0, -1.0, 0.0], [0.0, 1.0, 0.0]]])
    >>> hit = Mesh(tri).closest_hit(Ray((0.0, 0.0, 3.0), (0.0, 0.0, -1.0)))
    >>> round(hit.t, 6), hit.normal.tolist()
    (3.0, [0.0, 0.0, 1.0])
"""

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

import numpy as np
import numpy.typing as npt

from raykernel.core.config import IntersectionConfig
from raykernel.core.ray import Ray
from raykernel.core.vector import Vector3, as_vec3
from raykernel.errors import ConstructionError
from raykernel.geometry.base import Shape, ShapeHit, ShapeKind, register_intersector
from raykernel.geometry.bounds import AABB

logger = logging.getLogger(__name__)

# Triangles with a smaller doubled area are considered degenerate
_MIN_AREA = 1e-12

# Determinants below this mean the ray is parallel to the triangle
_PARALLEL = 1e-12


@dataclass(frozen=True, eq=False)
class Mesh(Shape):
    """A set of triangles with flat shading.

    Attributes:
        triangles: Array of shape (n, 3, 3): n triangles of three vertices.
            Vertex order defines the normal by the right-hand rule.
        source: Optional description of where the triangles came from.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.MESH

    triangles: npt.NDArray[np.float64]
    source: str | None = None

    def __post_init__(self) -> None:
        try:
            tris = np.array(self.triangles, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise ConstructionError("Mesh triangles must be numeric") from exc
        if tris.ndim != 3 or tris.shape[1:] != (3, 3):
            raise ConstructionError(f"Mesh triangles must have shape (n, 3, 3), got {tris.shape}")
        if not np.all(np.isfinite(tris)):
            raise ConstructionError("Mesh vertices must be finite")

        normals = np.cross(tris[:, 1] - tris[:, 0], tris[:, 2] - tris[:, 0])
        areas = np.linalg.norm(normals, axis=1)
        valid = areas > _MIN_AREA
        dropped = int(np.count_nonzero(~valid))
        if dropped:
            logger.warning(
                "Dropped %d degenerate triangle(s) from mesh %s", dropped, self.source or "<inline>"
            )
        if not np.any(valid):
            raise ConstructionError("Mesh has no non-degenerate triangles")

        tris = tris[valid]
        tris.setflags(write=False)
        unit_normals = normals[valid] / areas[valid][:, None]
        unit_normals.setflags(write=False)
        object.__setattr__(self, "triangles", tris)
        object.__setattr__(self, "_normals", unit_normals)

    @property
    def face_normals(self) -> npt.NDArray[np.float64]:
        """Unit normals, one per triangle."""
        return self._normals  # type: ignore[attr-defined]

    def __len__(self) -> int:
        return int(self.triangles.shape[0])

    def normal_at(self, point: Any) -> Vector3:
        p = np.asarray(point, dtype=np.float64)
        # Normal of the triangle whose plane passes closest to the point
        offsets = np.abs(np.einsum("ij,ij->i", p - self.triangles[:, 0], self.face_normals))
        return as_vec3(self.face_normals[int(np.argmin(offsets))], name="normal")

    def bounds(self) -> AABB:
        return AABB.from_points(self.triangles.reshape(-1, 3))


@register_intersector(ShapeKind.MESH)
def hit_mesh(mesh: Mesh, ray: Ray, config: IntersectionConfig) -> list[ShapeHit]:
    """Intersect a ray with every triangle of a mesh (Moller-Trumbore).

    Returns:
        One hit per intersected triangle, sorted by t.
    """
    v0 = mesh.triangles[:, 0]
    edge1 = mesh.triangles[:, 1] - v0
    edge2 = mesh.triangles[:, 2] - v0

    pvec = np.cross(ray.direction, edge2)
    det = np.einsum("ij,ij->i", edge1, pvec)
    ok = np.abs(det) > _PARALLEL
    inv_det = np.zeros_like(det)
    inv_det[ok] = 1.0 / det[ok]

    tvec = ray.origin - v0
    u = np.einsum("ij,ij->i", tvec, pvec) * inv_det
    qvec = np.cross(tvec, edge1)
    v = (qvec @ ray.direction) * inv_det
    t = np.einsum("ij,ij->i", edge2, qvec) * inv_det

    ok &= (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0)
    ok &= (t > config.epsilon) & (t < config.t_max)

    hits = [
        ShapeHit(t=float(t[i]), point=ray.at(float(t[i])), normal=as_vec3(mesh.face_normals[i]))
        for i in np.flatnonzero(ok)
    ]
    hits.sort(key=lambda h: h.t)
    return hits
