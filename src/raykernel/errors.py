"""Exception types raised by the scene-graph kernel.

Construction problems (bad shape parameters, degenerate cameras, zero-length
normalisation, zero scale) are raised immediately at the offending call.
Numeric failures during intersection are raised by the root finders and
turned into misses by the shapes that call them. Strict registry lookups of
unknown names raise LookupMiss; the non-strict getters return None instead.
"""


class RayKernelError(Exception):
    """Base class for all kernel errors."""


class ConstructionError(RayKernelError, ValueError):
    """Invalid value supplied while building a scene."""


class NumericNonConvergence(RayKernelError, ArithmeticError):
    """A root finder failed to converge within its iteration budget."""


class LookupMiss(RayKernelError, KeyError):
    """A camera, light, material or node name is not registered."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"No {kind} registered under {name!r}")
        self.kind = kind
        self.name = name

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])
