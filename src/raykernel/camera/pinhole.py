"""Pinhole camera model for perspective ray generation.

The camera is described by look-at parameters (eye, look_at, up) plus a
vertical field of view and an aspect ratio. From them it builds an
orthonormal basis (u, v, w):
- w: points from look_at toward eye (opposite the view direction)
- u: points right in the image plane
- v: points up in the image plane

Degenerate set-ups (eye on look_at, or up parallel to the view direction)
are rejected when the camera is built.

Example:
    >>> from raykernel.camera.pinhole import Camera
    >>> camera = Camera(eye=(0.0, 0.0, 3.0), look_at=(0.0, 0.0, 0.0), up=(0.0, 1.0, 0.0))
    >>> ray = camera.get_ray(0.5, 0.5)  # ray through the image centre
    >>> [round(c, 6) for c in ray.direction.tolist()]
    [0.0, 0.0, -1.0]
"""

import math
from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

from raykernel.core.ray import Ray
from raykernel.core.vector import Point3, Vector3, as_vec3
from raykernel.errors import ConstructionError

# sin of the smallest accepted angle between up and the view direction
_PARALLEL_TOLERANCE = 1e-9


@dataclass(frozen=True, eq=False)
class Camera:
    """A pinhole (perspective) camera.

    Attributes:
        eye: Camera position in world space.
        look_at: Point the camera is looking at.
        up: Up direction for camera orientation (need not be orthogonal to
            the view direction).
        fov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Image width divided by height.
    """

    eye: Point3
    look_at: Point3
    up: Vector3 = (0.0, 1.0, 0.0)  # type: ignore[assignment]
    fov: float = 60.0
    aspect_ratio: float = 1.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "eye", as_vec3(self.eye, name="eye"))
        object.__setattr__(self, "look_at", as_vec3(self.look_at, name="look_at"))
        object.__setattr__(self, "up", as_vec3(self.up, name="up"))
        if not 0.0 < self.fov < 180.0:
            raise ConstructionError(f"fov must be in (0, 180) degrees, got {self.fov}")
        if not (math.isfinite(self.aspect_ratio) and self.aspect_ratio > 0.0):
            raise ConstructionError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        # Build the basis once so degenerate cameras fail at construction
        object.__setattr__(self, "_basis", self._compute_basis())

    def _compute_basis(self) -> tuple[Vector3, Vector3, Vector3]:
        forward = self.look_at - self.eye
        forward_len = float(np.linalg.norm(forward))
        if forward_len == 0.0:
            raise ConstructionError("Camera eye and look_at coincide")
        up_len = float(np.linalg.norm(self.up))
        if up_len == 0.0:
            raise ConstructionError("Camera up vector is zero")

        # w points from look_at toward eye (backward)
        w = -forward / forward_len

        # u points right (perpendicular to w and up)
        u = np.cross(self.up, w)
        u_len = float(np.linalg.norm(u))
        if u_len <= _PARALLEL_TOLERANCE * up_len:
            raise ConstructionError("Camera up vector is parallel to the view direction")
        u = u / u_len

        # v points up in the camera's frame
        v = np.cross(w, u)
        return as_vec3(u), as_vec3(v), as_vec3(w)

    def basis(self) -> tuple[Vector3, Vector3, Vector3]:
        """Return the (u, v, w) basis: right, up and backward unit vectors."""
        return self._basis

    def _viewport(self) -> tuple[Vector3, Vector3, Vector3]:
        u, v, w = self._basis
        h = math.tan(math.radians(self.fov) / 2.0)

        # Viewport dimensions at unit distance
        viewport_height = 2.0 * h
        viewport_width = self.aspect_ratio * viewport_height
        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = self.eye - w - horizontal / 2.0 - vertical / 2.0
        return lower_left, horizontal, vertical

    def get_ray(self, s: float, t: float) -> Ray:
        """Generate the ray through normalized image coordinates (s, t).

        Args:
            s: Horizontal coordinate in [0, 1] (left to right).
            t: Vertical coordinate in [0, 1] (bottom to top).

        Returns:
            A ray from the eye with a unit direction.
        """
        lower_left, horizontal, vertical = self._viewport()
        direction = lower_left + s * horizontal + t * vertical - self.eye
        return Ray(self.eye, direction / np.linalg.norm(direction))

    def generate_rays(
        self, width: int, height: int
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        """Generate one ray per pixel centre.

        Rows run from the top of the image to the bottom.

        Args:
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            (origins, directions), both of shape (height, width, 3), with
            unit directions.
        """
        if width < 1 or height < 1:
            raise ConstructionError(f"Image size must be positive, got {width}x{height}")
        lower_left, horizontal, vertical = self._viewport()
        s = (np.arange(width) + 0.5) / width
        t = 1.0 - (np.arange(height) + 0.5) / height
        directions = (
            lower_left[None, None, :]
            + s[None, :, None] * horizontal[None, None, :]
            + t[:, None, None] * vertical[None, None, :]
            - self.eye[None, None, :]
        )
        directions /= np.linalg.norm(directions, axis=-1, keepdims=True)
        origins = np.broadcast_to(self.eye, directions.shape).copy()
        return origins, directions

    def to_dict(self) -> dict[str, Any]:
        return {
            "eye": self.eye.tolist(),
            "look_at": self.look_at.tolist(),
            "up": self.up.tolist(),
            "fov": self.fov,
            "aspect_ratio": self.aspect_ratio,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Camera":
        try:
            return cls(**data)
        except TypeError as exc:
            raise ConstructionError(f"Invalid camera parameters: {exc}") from exc
