"""Intersection settings shared by shapes, nodes and scenes.

Defaults come from module constants that can be overridden through
environment variables, so a renderer can tune the kernel without code
changes:

    RAYKERNEL_EPSILON               minimum accepted hit distance
    RAYKERNEL_T_MAX                 maximum accepted hit distance
    RAYKERNEL_ROOT_SAMPLES          uniform bracketing samples per ray
    RAYKERNEL_ROOT_MAX_ITERATIONS   refinement steps per bracketed root
    RAYKERNEL_ROOT_TOLERANCE        convergence tolerance of the refinement

Example:
    >>> from raykernel.core.config import DEFAULT_CONFIG
    >>> fine = DEFAULT_CONFIG.with_overrides(root_samples=128)
"""

import math
import os
from dataclasses import dataclass, replace

from raykernel.errors import ConstructionError

# Hits closer than this are rejected to avoid self-intersection (shadow acne)
EPSILON = float(os.getenv("RAYKERNEL_EPSILON", "1e-4"))

# Anything further away than this counts as a miss
T_MAX = float(os.getenv("RAYKERNEL_T_MAX", "1e7"))

ROOT_SAMPLES = int(os.getenv("RAYKERNEL_ROOT_SAMPLES", "32"))
ROOT_MAX_ITERATIONS = int(os.getenv("RAYKERNEL_ROOT_MAX_ITERATIONS", "64"))
ROOT_TOLERANCE = float(os.getenv("RAYKERNEL_ROOT_TOLERANCE", "1e-10"))

# Relative padding applied to the bounding spheres of implicit surfaces
BOUNDING_MARGIN = 1e-3


@dataclass(frozen=True)
class IntersectionConfig:
    """Numeric settings for ray queries.

    Attributes:
        epsilon: Hits must satisfy t > epsilon.
        t_max: Hits must satisfy t < t_max.
        root_samples: Number of uniform sub-intervals used to bracket roots
            of implicit surfaces along a ray.
        root_max_iterations: Maximum refinement steps for a single root.
        root_tolerance: Interval width at which a root counts as converged.
    """

    epsilon: float = EPSILON
    t_max: float = T_MAX
    root_samples: int = ROOT_SAMPLES
    root_max_iterations: int = ROOT_MAX_ITERATIONS
    root_tolerance: float = ROOT_TOLERANCE

    def __post_init__(self) -> None:
        if not (math.isfinite(self.epsilon) and self.epsilon >= 0.0):
            raise ConstructionError(f"epsilon must be a finite value >= 0, got {self.epsilon}")
        if not self.t_max > self.epsilon:
            raise ConstructionError(
                f"t_max ({self.t_max}) must be greater than epsilon ({self.epsilon})"
            )
        if self.root_samples < 1:
            raise ConstructionError(f"root_samples must be >= 1, got {self.root_samples}")
        if self.root_max_iterations < 1:
            raise ConstructionError(
                f"root_max_iterations must be >= 1, got {self.root_max_iterations}"
            )
        if not self.root_tolerance > 0.0:
            raise ConstructionError(f"root_tolerance must be > 0, got {self.root_tolerance}")

    def with_overrides(self, **changes: float) -> "IntersectionConfig":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


DEFAULT_CONFIG = IntersectionConfig()


def resolve_config(config: IntersectionConfig | None) -> IntersectionConfig:
    """Return config, or the module default when it is None."""
    return DEFAULT_CONFIG if config is None else config
