"""Point and ambient light sources.

Lights are data for the external shader. A point light's intensity at
distance d is its colour times

    attenuation(d) = 1 / (a + b*d + c*d^2)

for falloff coefficients (a, b, c). Every light has an active flag so a
scene script can switch lights off without removing them.

Example:
    >>> from raykernel.scene.light import PointLight
    >>> lamp = PointLight(position=(0.0, 5.0, 0.0), color=(1.0, 1.0, 1.0),
    ...                   falloff=(1.0, 0.0, 0.25))
    >>> lamp.attenuation(2.0)
    0.5
"""

import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import numpy as np

from raykernel.core.vector import Point3, Vector3, as_vec3
from raykernel.errors import ConstructionError


class LightKind(IntEnum):
    """Enumeration of supported light types."""

    POINT = 0
    AMBIENT = 1


def _colour(value: Any) -> Vector3:
    c = as_vec3(value, name="color")
    if np.any(c < 0.0):
        raise ConstructionError(f"Light color must be non-negative, got {c.tolist()}")
    return c


@dataclass(eq=False)
class PointLight:
    """A point light with polynomial distance falloff.

    Attributes:
        position: World-space position.
        color: Emitted colour (non-negative, may exceed 1).
        falloff: Coefficients (a, b, c) of a + b*d + c*d^2; non-negative and
            not all zero.
        is_active: Whether the light contributes to shading.
    """

    position: Point3
    color: Vector3 = (1.0, 1.0, 1.0)  # type: ignore[assignment]
    falloff: tuple[float, float, float] = (1.0, 0.0, 0.0)
    is_active: bool = field(default=True)

    kind = LightKind.POINT

    def __post_init__(self) -> None:
        self.position = as_vec3(self.position, name="position")
        self.color = _colour(self.color)
        coeffs = as_vec3(self.falloff, name="falloff")
        if np.any(coeffs < 0.0) or not np.any(coeffs > 0.0):
            raise ConstructionError(
                f"Falloff coefficients must be non-negative and not all zero, got {coeffs.tolist()}"
            )
        self.falloff = (float(coeffs[0]), float(coeffs[1]), float(coeffs[2]))

    @classmethod
    def white(cls, position: Any) -> "PointLight":
        """A white light without distance falloff."""
        return cls(position=position, color=(1.0, 1.0, 1.0), falloff=(1.0, 0.0, 0.0))

    def active(self, flag: bool) -> "PointLight":
        """Switch the light on or off; returns self for chaining."""
        self.is_active = bool(flag)
        return self

    def attenuation(self, distance: float) -> float:
        """Intensity factor at the given distance from the light."""
        a, b, c = self.falloff
        return 1.0 / (a + b * distance + c * distance * distance)

    def intensity_at(self, point: Any) -> Vector3:
        """Colour arriving at a point, ignoring occlusion."""
        d = math.dist(self.position, as_vec3(point, name="point"))
        return self.color * self.attenuation(d)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "point",
            "position": self.position.tolist(),
            "color": self.color.tolist(),
            "falloff": list(self.falloff),
            "active": self.is_active,
        }


@dataclass(eq=False)
class AmbientLight:
    """Uniform ambient illumination.

    Attributes:
        color: Ambient colour (non-negative).
        is_active: Whether the light contributes to shading.
    """

    color: Vector3 = (0.1, 0.1, 0.1)  # type: ignore[assignment]
    is_active: bool = field(default=True)

    kind = LightKind.AMBIENT

    def __post_init__(self) -> None:
        self.color = _colour(self.color)

    def active(self, flag: bool) -> "AmbientLight":
        """Switch the light on or off; returns self for chaining."""
        self.is_active = bool(flag)
        return self

    def to_dict(self) -> dict[str, Any]:
        return {"type": "ambient", "color": self.color.tolist(), "active": self.is_active}


AnyLight = PointLight | AmbientLight

# Scene-construction spellings
Light = PointLight
Ambient = AmbientLight


def light_from_dict(data: dict[str, Any]) -> AnyLight:
    """Rebuild a light serialized with to_dict().

    Raises:
        ConstructionError: If the light type is unknown.
    """
    kind = data.get("type")
    active = bool(data.get("active", True))
    if kind == "point":
        light: AnyLight = PointLight(
            position=data["position"],
            color=data.get("color", (1.0, 1.0, 1.0)),
            falloff=tuple(data.get("falloff", (1.0, 0.0, 0.0))),
        )
    elif kind == "ambient":
        light = AmbientLight(color=data.get("color", (0.1, 0.1, 0.1)))
    else:
        raise ConstructionError(f"Unknown light type {kind!r}")
    return light.active(active)
