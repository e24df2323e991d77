"""Ray data structure and vector utilities for CPU path tracing.

This module provides the fundamental Ray dataclass and the small set of vector
and frame operations used by the intersection and shading layers. Vectors are
plain ``numpy`` float64 arrays of shape (3,); frames are (3, 3) arrays whose
columns are the local axes expressed in world space.

Example:
    >>> from src.pathtracer.core.ray import Ray, vec3
    >>> ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=vec3(0.0, 0.0, -1.0))
    >>> point = ray.at(5.0)  # Point 5 units along the ray
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext

Vec3 = npt.NDArray[np.float64]
Mat3 = npt.NDArray[np.float64]

ZERO = np.zeros(3)
ONE = np.ones(3)
IDENTITY3 = np.eye(3)


def vec3(x: float, y: float, z: float) -> Vec3:
    """Create a 3D vector."""
    return np.array((x, y, z), dtype=np.float64)


def as_vec3(value) -> Vec3:
    """Convert a tuple, list or array-like of three numbers to a vector.

    Raises:
        ValueError: If the value does not have exactly three components.
    """
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"Expected 3 components, got {arr.shape[0]}")
    return arr


@dataclass(frozen=True)
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. Unit length is not
            enforced on construction; callers normalize where it matters.
    """

    origin: Vec3
    direction: Vec3

    def at(self, distance: float) -> Vec3:
        """Compute the point ``origin + distance * direction``."""
        return self.origin + distance * self.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


def dot(a: Vec3, b: Vec3) -> float:
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Vec3, b: Vec3) -> Vec3:
    return np.array(
        (
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0],
        )
    )


def length_squared(v: Vec3) -> float:
    return dot(v, v)


def length(v: Vec3) -> float:
    return math.sqrt(dot(v, v))


def normalize_or_zero(v: Vec3) -> Vec3:
    """Normalize a vector, returning the zero vector for degenerate input.

    Zero-length and non-finite vectors (for example the sum of two exactly
    antiparallel unit vectors) map to zero instead of propagating NaN.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the direction of v, or the zero vector.
    """
    len_sq = dot(v, v)
    if len_sq > 0.0 and math.isfinite(len_sq):
        return v / math.sqrt(len_sq)
    return ZERO.copy()


normalize = normalize_or_zero


def reflect(incident: Vec3, normal: Vec3) -> Vec3:
    """Reflect an incident vector about a unit normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        ``incident - 2 * dot(incident, normal) * normal``.
    """
    return incident - 2.0 * dot(incident, normal) * normal


def point_in_unit_ball(ctx: TraceContext) -> Vec3:
    """Draw a uniformly distributed point inside the unit ball.

    Uses rejection sampling on quasi-random 3D draws from the trace context,
    rescaled from [0, 1)^3 to [-1, 1)^3. The expected number of draws is
    6 / pi (about 1.91).

    Args:
        ctx: The sampling context supplying 3D draws.

    Returns:
        A point with squared length <= 1.
    """
    while True:
        p = 2.0 * ctx.rng3() - ONE
        if dot(p, p) <= 1.0:
            return p


# =============================================================================
# Linear Frames
# =============================================================================


def quat_to_matrix(q) -> Mat3:
    """Build a rotation matrix from a ``(w, x, y, z)`` quaternion.

    The quaternion is normalized first.

    Raises:
        ValueError: If the quaternion has zero length.
    """
    w, x, y, z = (float(c) for c in q)
    n = math.sqrt(w * w + x * x + y * y + z * z)
    if n == 0.0:
        raise ValueError("Quaternion must be non-zero")
    w, x, y, z = w / n, x / n, y / n, z / n
    return np.array(
        (
            (1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)),
            (2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)),
            (2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)),
        )
    )


def axis_angle_matrix(axis, angle: float) -> Mat3:
    """Build a rotation matrix of ``angle`` radians about ``axis``."""
    a = normalize_or_zero(as_vec3(axis))
    if not a.any():
        raise ValueError("Rotation axis must be non-zero")
    half = 0.5 * angle
    s = math.sin(half)
    return quat_to_matrix((math.cos(half), a[0] * s, a[1] * s, a[2] * s))


def is_orthonormal(m: Mat3, tolerance: float = 1e-6) -> bool:
    """Check that a 3x3 matrix is orthonormal (its transpose is its inverse)."""
    return bool(np.allclose(m.T @ m, IDENTITY3, atol=tolerance))
