"""Affine transforms with an eagerly maintained inverse.

A Transform holds a 4x4 forward matrix M (column-vector convention, points
are p' = M @ [p, 1]) together with its inverse. Builder methods compose a
new elementary transform E *after* everything accumulated so far:

    M     <- E @ M
    M_inv <- M_inv @ E_inv

E_inv is the exact inverse of the elementary step (reciprocal scale,
negated angle, negated offset), so no general matrix inversion happens
while building a node. Normals use the inverse-transpose of the linear
part, which keeps them perpendicular to surfaces under non-uniform scale.

Example:
    >>> from raykernel.core.transform import Transform
    >>> t = Transform().scale(2.0, 2.0, 2.0).translate(1.0, 0.0, 0.0)
    >>> t.apply((1.0, 0.0, 0.0)).tolist()
    [3.0, 0.0, 0.0]
"""

import math
from typing import Any

import numpy as np
import numpy.typing as npt

from raykernel.core.ray import Ray
from raykernel.core.vector import Point3, Vector3, as_vec3, normalize
from raykernel.errors import ConstructionError

Matrix4 = npt.NDArray[np.float64]

# Condition number above which from_matrix treats a matrix as singular
_SINGULAR_CONDITION = 1e12


def _readonly(m: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    m = np.array(m, dtype=np.float64)
    m.setflags(write=False)
    return m


def _rotation_x(degrees: float) -> Matrix4:
    c, s = math.cos(math.radians(degrees)), math.sin(math.radians(degrees))
    m = np.eye(4)
    m[1, 1], m[1, 2] = c, -s
    m[2, 1], m[2, 2] = s, c
    return m


def _rotation_y(degrees: float) -> Matrix4:
    c, s = math.cos(math.radians(degrees)), math.sin(math.radians(degrees))
    m = np.eye(4)
    m[0, 0], m[0, 2] = c, s
    m[2, 0], m[2, 2] = -s, c
    return m


def _rotation_z(degrees: float) -> Matrix4:
    c, s = math.cos(math.radians(degrees)), math.sin(math.radians(degrees))
    m = np.eye(4)
    m[0, 0], m[0, 1] = c, -s
    m[1, 0], m[1, 1] = s, c
    return m


def _check_finite(name: str, *values: float) -> None:
    for v in values:
        if not math.isfinite(v):
            raise ConstructionError(f"{name} requires finite values, got {values}")


class Transform:
    """Accumulated affine transform and its inverse.

    Builder methods mutate the transform and return self so calls chain.
    After freeze() they raise ConstructionError.

    Attributes:
        matrix: Read-only copy of the forward matrix.
        inverse_matrix: Read-only copy of the inverse matrix.
        normal_matrix: Inverse-transpose of the upper-left 3x3 block.
    """

    def __init__(self) -> None:
        """Initialize the identity transform."""
        self._m = np.eye(4)
        self._m_inv = np.eye(4)
        self._frozen = False

    @classmethod
    def from_matrix(cls, matrix: Any) -> "Transform":
        """Build a transform from an explicit 4x4 affine matrix.

        Args:
            matrix: Any array-like of shape (4, 4) whose last row is
                (0, 0, 0, 1).

        Returns:
            A new Transform.

        Raises:
            ConstructionError: If the matrix is malformed, non-finite or
                singular.
        """
        m = np.array(matrix, dtype=np.float64)
        if m.shape != (4, 4):
            raise ConstructionError(f"Transform matrix must be 4x4, got shape {m.shape}")
        if not np.all(np.isfinite(m)):
            raise ConstructionError("Transform matrix must be finite")
        if not np.allclose(m[3], (0.0, 0.0, 0.0, 1.0)):
            raise ConstructionError("Transform matrix must be affine (last row 0, 0, 0, 1)")
        if np.linalg.cond(m[:3, :3]) > _SINGULAR_CONDITION:
            raise ConstructionError("Transform matrix is singular")
        t = cls()
        t._m = m
        t._m_inv = np.linalg.inv(m)
        return t

    # =========================================================================
    # Builders
    # =========================================================================

    def _compose(self, forward: Matrix4, inverse: Matrix4) -> "Transform":
        if self._frozen:
            raise ConstructionError("Transform is frozen and can no longer be modified")
        self._m = forward @ self._m
        self._m_inv = self._m_inv @ inverse
        return self

    def scale(self, sx: float, sy: float, sz: float) -> "Transform":
        """Scale along the axes.

        Raises:
            ConstructionError: If any factor is zero or not finite.
        """
        _check_finite("scale", sx, sy, sz)
        if sx == 0.0 or sy == 0.0 or sz == 0.0:
            raise ConstructionError(f"Scale factors must be non-zero, got ({sx}, {sy}, {sz})")
        return self._compose(
            np.diag((sx, sy, sz, 1.0)),
            np.diag((1.0 / sx, 1.0 / sy, 1.0 / sz, 1.0)),
        )

    def rotate_x(self, degrees: float) -> "Transform":
        """Rotate about the x axis (right-handed, degrees)."""
        _check_finite("rotate_x", degrees)
        return self._compose(_rotation_x(degrees), _rotation_x(-degrees))

    def rotate_y(self, degrees: float) -> "Transform":
        """Rotate about the y axis (right-handed, degrees)."""
        _check_finite("rotate_y", degrees)
        return self._compose(_rotation_y(degrees), _rotation_y(-degrees))

    def rotate_z(self, degrees: float) -> "Transform":
        """Rotate about the z axis (right-handed, degrees)."""
        _check_finite("rotate_z", degrees)
        return self._compose(_rotation_z(degrees), _rotation_z(-degrees))

    def rotate(self, dx: float, dy: float, dz: float) -> "Transform":
        """Rotate about x, then y, then z (degrees)."""
        return self.rotate_x(dx).rotate_y(dy).rotate_z(dz)

    def translate(self, dx: float, dy: float, dz: float) -> "Transform":
        """Translate by (dx, dy, dz)."""
        _check_finite("translate", dx, dy, dz)
        forward = np.eye(4)
        forward[:3, 3] = (dx, dy, dz)
        inverse = np.eye(4)
        inverse[:3, 3] = (-dx, -dy, -dz)
        return self._compose(forward, inverse)

    # =========================================================================
    # Application
    # =========================================================================

    def apply(self, point: Any) -> Point3:
        """Map a point from local to parent space."""
        p = as_vec3(point, name="point")
        return _readonly(self._m[:3, :3] @ p + self._m[:3, 3])

    def apply_vector(self, vector: Any) -> Vector3:
        """Map a direction from local to parent space (ignores translation)."""
        v = as_vec3(vector)
        return _readonly(self._m[:3, :3] @ v)

    def apply_inverse(self, point: Any) -> Point3:
        """Map a point from parent to local space."""
        p = as_vec3(point, name="point")
        return _readonly(self._m_inv[:3, :3] @ p + self._m_inv[:3, 3])

    def apply_inverse_vector(self, vector: Any) -> Vector3:
        """Map a direction from parent to local space."""
        v = as_vec3(vector)
        return _readonly(self._m_inv[:3, :3] @ v)

    def apply_normal(self, normal: Any) -> Vector3:
        """Map a surface normal from local to parent space.

        Args:
            normal: A local surface normal (any non-zero length).

        Returns:
            The unit parent-space normal, computed with the inverse-transpose
            of the linear part.
        """
        n = as_vec3(normal, name="normal")
        return normalize(self._m_inv[:3, :3].T @ n)

    def transform_ray(self, ray: Ray) -> Ray:
        """Map a ray from local to parent space (direction not renormalised)."""
        return Ray(self.apply(ray.origin), self.apply_vector(ray.direction))

    def inverse_transform_ray(self, ray: Ray) -> Ray:
        """Map a ray from parent to local space (direction not renormalised)."""
        return Ray(self.apply_inverse(ray.origin), self.apply_inverse_vector(ray.direction))

    # =========================================================================
    # Composition and access
    # =========================================================================

    def __matmul__(self, other: "Transform") -> "Transform":
        """Compose so that (a @ b).apply(p) == a.apply(b.apply(p))."""
        if not isinstance(other, Transform):
            return NotImplemented
        t = Transform()
        t._m = self._m @ other._m
        t._m_inv = other._m_inv @ self._m_inv
        return t

    def copy(self) -> "Transform":
        """Return an independent, unfrozen copy."""
        t = Transform()
        t._m = self._m.copy()
        t._m_inv = self._m_inv.copy()
        return t

    def freeze(self) -> "Transform":
        """Reject every later builder call; returns self."""
        self._frozen = True
        return self

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def matrix(self) -> Matrix4:
        return _readonly(self._m)

    @property
    def inverse_matrix(self) -> Matrix4:
        return _readonly(self._m_inv)

    @property
    def normal_matrix(self) -> npt.NDArray[np.float64]:
        return _readonly(self._m_inv[:3, :3].T)

    def is_identity(self) -> bool:
        """Check whether the transform is (numerically) the identity."""
        return bool(np.allclose(self._m, np.eye(4)))

    def __repr__(self) -> str:
        return f"Transform({self._m.tolist()!r})"
