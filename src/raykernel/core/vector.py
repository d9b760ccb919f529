"""Point and vector helpers for the scene-graph kernel.

Points, vectors, normals and colours are all read-only float64 numpy arrays
of shape (3,). Which of them a value is follows from the transform method
it is passed to, not from a separate type.

Example:
    >>> from raykernel.core.vector import P, V, dot, normalize
    >>> origin = P(0.0, 0.0, 5.0)
    >>> direction = normalize(V(0.0, 0.0, -2.0))
    >>> float(dot(direction, V(0.0, 0.0, -1.0)))
    1.0
"""

from typing import Any

import numpy as np
import numpy.typing as npt

from raykernel.errors import ConstructionError

# Type aliases for 3D arrays; the distinction is documentary only
Vector3 = npt.NDArray[np.float64]
Point3 = npt.NDArray[np.float64]

# Threshold below which a vector length is treated as zero
_ZERO_LENGTH = 1e-12


def _frozen(values: Any) -> Vector3:
    arr = np.array(values, dtype=np.float64)
    arr.setflags(write=False)
    return arr


def as_vec3(value: Any, name: str = "vector") -> Vector3:
    """Coerce a 3-sequence to a read-only float64 array.

    Args:
        value: Any sequence or array with exactly three numeric entries.
        name: Name used in the error message.

    Returns:
        A new read-only array of shape (3,).

    Raises:
        ConstructionError: If the value does not have three entries or any
            entry is NaN or infinite.
    """
    try:
        arr = np.array(value, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as exc:
        raise ConstructionError(f"{name} must be a sequence of 3 numbers, got {value!r}") from exc
    if arr.shape != (3,):
        raise ConstructionError(f"{name} must have exactly 3 components, got {arr.shape[0]}")
    if not np.all(np.isfinite(arr)):
        raise ConstructionError(f"{name} must be finite, got {arr.tolist()}")
    arr.setflags(write=False)
    return arr


def vec3(x: float, y: float, z: float) -> Vector3:
    """Build a direction vector (or colour) from three components."""
    return as_vec3((x, y, z))


def point3(x: float, y: float, z: float) -> Point3:
    """Build a point from three coordinates."""
    return as_vec3((x, y, z), name="point")


# Scene-construction spellings
V = vec3
P = point3


def dot(a: Vector3, b: Vector3) -> float:
    """Compute the dot product a . b."""
    return float(np.dot(a, b))


def cross(a: Vector3, b: Vector3) -> Vector3:
    """Compute the cross product a x b."""
    return _frozen(np.cross(a, b))


def length_squared(v: Vector3) -> float:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return float(np.dot(v, v))


def length(v: Vector3) -> float:
    """Compute the Euclidean length of a vector."""
    return float(np.sqrt(np.dot(v, v)))


def normalize(v: Vector3) -> Vector3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.

    Raises:
        ConstructionError: If v has zero length.
    """
    n = length(v)
    if n < _ZERO_LENGTH:
        raise ConstructionError("Cannot normalize a zero-length vector")
    return _frozen(np.asarray(v, dtype=np.float64) / n)


def near_zero(v: Vector3, tolerance: float = 1e-8) -> bool:
    """Check whether every component of v is within tolerance of zero."""
    return bool(np.all(np.abs(v) < tolerance))


def reflect(incident: Vector3, normal: Vector3) -> Vector3:
    """Reflect an incident direction about a unit normal.

    Args:
        incident: The incoming direction (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction.
    """
    incident = np.asarray(incident, dtype=np.float64)
    return _frozen(incident - 2.0 * np.dot(incident, normal) * np.asarray(normal))
