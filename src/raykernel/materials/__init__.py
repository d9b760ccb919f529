"""Materials module.

Components:
    material: Immutable Phong-style coefficients (kd, ks, kr, shininess)
        plus the named presets

Materials are plain data handed to the external renderer together with a
hit; no scattering or BRDF evaluation happens here.
"""

from .material import (
    DEFAULT_MATERIAL,
    PRESETS,
    Material,
    blue,
    green,
    magenta,
    red,
    turquoise,
)

__all__ = [
    "Material",
    "DEFAULT_MATERIAL",
    "PRESETS",
    "red",
    "blue",
    "green",
    "magenta",
    "turquoise",
]
