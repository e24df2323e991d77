"""Pinhole camera model for perspective projection ray generation.

The camera is placed with a look-at frame (eye, target, up) and a vertical
field of view. Pixel coordinates follow image conventions: x grows to the
right, y grows downward, and integer coordinates address the top-left corner
of a pixel, so ``(x + 0.5, y + 0.5)`` is its center. Fractional coordinates
are used for sub-pixel (anti-aliasing) offsets.

The eye-space direction for pixel (px, py) of a W x H image is:

    tan_v  = tan(vfov / 2)
    tan_h  = W * tan_v / H
    n      = ((px + 0.5, py + 0.5) - (W, H) / 2) / (W, H)
    d_eye  = normalize(2 * tan_h * n.x, -2 * tan_v * n.y, 1)

and it is mapped to world space through the (right, up, forward) basis.

Example:
    >>> from src.pathtracer.camera.pinhole import PinholeCamera
    >>> camera = PinholeCamera(
    ...     eye=(3.0, 4.5, 1.75),
    ...     target=(0.0, 0.0, 1.0),
    ...     up=(0.0, 0.0, 1.0),
    ...     vfov=45.0,
    ... )
    >>> ray = camera.get_ray(256.0, 256.0, 512, 512)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from src.pathtracer.core.ray import (
    Mat3,
    Ray,
    Vec3,
    as_vec3,
    cross,
    normalize_or_zero,
    vec3,
)


def pixel_to_dir(px: float, py: float, width: int, height: int, vfov: float) -> Vec3:
    """Eye-space unit direction through a pixel position.

    Args:
        px: Horizontal pixel coordinate (0 = left edge).
        py: Vertical pixel coordinate (0 = top edge).
        width: Image width in pixels.
        height: Image height in pixels.
        vfov: Vertical field of view in degrees.

    Returns:
        Unit direction with +Z forward, +X right and +Y up.
    """
    tan_half_v = math.tan(0.5 * math.radians(vfov))
    tan_half_h = width * tan_half_v / height
    nx = (px + 0.5 - 0.5 * width) / width
    ny = (py + 0.5 - 0.5 * height) / height
    return normalize_or_zero(vec3(2.0 * tan_half_h * nx, -2.0 * tan_half_v * ny, 1.0))


def look_at_basis(eye: Vec3, target: Vec3, up: Vec3) -> Mat3:
    """Camera-to-world rotation with columns (right, up, forward).

    Raises:
        ValueError: If eye and target coincide, or up is parallel to the
            view direction.
    """
    forward = normalize_or_zero(target - eye)
    if not forward.any():
        raise ValueError("Camera eye and target must differ")
    right = normalize_or_zero(cross(forward, up))
    if not right.any():
        raise ValueError("Camera up vector must not be parallel to the view direction")
    true_up = cross(right, forward)
    return np.column_stack((right, true_up, forward))


@dataclass
class PinholeCamera:
    """Configuration for a pinhole (perspective) camera.

    Attributes:
        eye: Camera position in world space.
        target: Point the camera is looking at.
        up: Approximate up direction (typically +Z for these scenes).
        vfov: Vertical field of view in degrees.
    """

    eye: tuple[float, float, float]
    target: tuple[float, float, float]
    up: tuple[float, float, float] = (0.0, 0.0, 1.0)
    vfov: float = 45.0
    _origin: Vec3 = field(init=False, repr=False)
    _basis: Mat3 = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        self._origin = as_vec3(self.eye)
        self._basis = look_at_basis(self._origin, as_vec3(self.target), as_vec3(self.up))

    @property
    def basis(self) -> Mat3:
        """Camera-to-world rotation (columns right, up, forward)."""
        return self._basis

    def pixel_to_dir(self, px: float, py: float, width: int, height: int) -> Vec3:
        """Eye-space direction through a pixel position for this camera's fov."""
        return pixel_to_dir(px, py, width, height, self.vfov)

    def get_ray(self, px: float, py: float, width: int, height: int) -> Ray:
        """Generate the world-space primary ray through a pixel position.

        Args:
            px: Horizontal pixel coordinate, may be fractional.
            py: Vertical pixel coordinate, may be fractional.
            width: Image width in pixels.
            height: Image height in pixels.

        Returns:
            A ray from the eye with a unit direction.
        """
        local = self.pixel_to_dir(px, py, width, height)
        return Ray(self._origin, normalize_or_zero(self._basis @ local))
