"""Phong-style surface material parameters.

A material only carries the coefficients a renderer needs for shading; the
kernel never evaluates a BRDF. Materials are immutable and shared by
reference between nodes.

    diffuse     kd, diffuse reflectance (RGB)
    specular    ks, specular reflectance (RGB)
    reflective  kr, mirror reflectance used for recursive reflection (RGB)
    shininess   Phong exponent

Example:
    >>> from raykernel.materials.material import Material
    >>> gold = Material(diffuse=(0.8, 0.6, 0.2), specular=(1.0, 1.0, 1.0),
    ...                 reflective=(0.3, 0.3, 0.3), shininess=40.0)
    >>> gold.to_dict()["shininess"]
    40.0
"""

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from raykernel.core.vector import Vector3, as_vec3
from raykernel.errors import ConstructionError


def _colour(name: str, value: Any) -> Vector3:
    c = as_vec3(value, name=name)
    for i, component in enumerate(c):
        if component < 0.0:
            raise ConstructionError(f"{name} component {i} = {component} must be non-negative")
    return c


@dataclass(frozen=True, eq=False)
class Material:
    """Shading coefficients of a surface.

    Attributes:
        diffuse: Diffuse colour kd; components must be non-negative.
        specular: Specular colour ks; components must be non-negative.
        reflective: Mirror colour kr; components must be non-negative.
        shininess: Non-negative Phong exponent.
    """

    diffuse: Vector3 = (0.5, 0.5, 0.5)  # type: ignore[assignment]
    specular: Vector3 = (0.0, 0.0, 0.0)  # type: ignore[assignment]
    reflective: Vector3 = (0.0, 0.0, 0.0)  # type: ignore[assignment]
    shininess: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "diffuse", _colour("diffuse", self.diffuse))
        object.__setattr__(self, "specular", _colour("specular", self.specular))
        object.__setattr__(self, "reflective", _colour("reflective", self.reflective))
        shininess = float(self.shininess)
        if not (math.isfinite(shininess) and shininess >= 0.0):
            raise ConstructionError(f"shininess must be a finite value >= 0, got {self.shininess}")
        object.__setattr__(self, "shininess", shininess)

    @property
    def is_reflective(self) -> bool:
        """Whether a renderer should spawn a reflection ray."""
        return bool(np.any(self.reflective > 0.0))

    def same_as(self, other: "Material") -> bool:
        """Compare coefficients (materials are otherwise compared by identity)."""
        return (
            np.array_equal(self.diffuse, other.diffuse)
            and np.array_equal(self.specular, other.specular)
            and np.array_equal(self.reflective, other.reflective)
            and self.shininess == other.shininess
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dictionary of plain lists and floats."""
        return {
            "diffuse": self.diffuse.tolist(),
            "specular": self.specular.tolist(),
            "reflective": self.reflective.tolist(),
            "shininess": self.shininess,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Material":
        """Rebuild a material serialized with to_dict()."""
        try:
            return cls(**data)
        except TypeError as exc:
            raise ConstructionError(f"Invalid material parameters: {exc}") from exc


# Grey diffuse material used by nodes built without one
DEFAULT_MATERIAL = Material()


# =============================================================================
# Presets
# =============================================================================


def red() -> Material:
    return Material(diffuse=(0.8, 0.0, 0.3), specular=(0.8, 0.3, 0.0), shininess=0.5)


def blue() -> Material:
    return Material(diffuse=(0.0, 0.3, 0.6), specular=(0.3, 0.0, 0.6), shininess=0.5)


def green() -> Material:
    return Material(diffuse=(0.0, 1.0, 0.0), specular=(0.0, 1.0, 0.0), shininess=0.5)


def magenta() -> Material:
    return Material(diffuse=(1.0, 0.0, 1.0), specular=(1.0, 0.0, 1.0), shininess=0.5)


def turquoise() -> Material:
    return Material(diffuse=(0.25, 0.3, 0.7), specular=(0.25, 0.3, 0.7), shininess=0.5)


PRESETS = {
    "red": red,
    "blue": blue,
    "green": green,
    "magenta": magenta,
    "turquoise": turquoise,
}
