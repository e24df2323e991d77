"""Oriented box primitive.

A cuboid is an axis-aligned box [mins, maxs] in its own local space, placed in
the world by a rigid transform (rotation + translation). Intersection uses the
slab method in local space: the ray is transformed into the box frame, each
axis contributes an entry/exit interval, and the tightest interval wins.

The face that was hit is identified by the smallest distance from the local
hit point to any of the six faces. Faces are checked in the order
-X, -Y, -Z, +X, +Y, +Z and only a strictly smaller distance replaces the
current choice, so edges and corners resolve deterministically.

Example:
    >>> from src.pathtracer.core.ray import axis_angle_matrix, vec3
    >>> from src.pathtracer.geometry.cuboid import Cuboid
    >>> box = Cuboid(
    ...     origin=vec3(0, 0, 0.5),
    ...     orientation=axis_angle_matrix((0, 0, 1), 0.3),
    ...     mins=(-0.5, -0.5, -0.5),
    ...     maxs=(0.5, 0.5, 0.5),
    ...     material=material,
    ... )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from src.pathtracer.core.ray import (
    IDENTITY3,
    Mat3,
    Ray,
    as_vec3,
    is_orthonormal,
    quat_to_matrix,
)
from src.pathtracer.geometry.hit import Bounds, Hit, Shape

if TYPE_CHECKING:
    from src.pathtracer.materials.material import Material

# Face check order: (axis, sign) for -X, -Y, -Z, +X, +Y, +Z
_FACE_ORDER = ((0, -1.0), (1, -1.0), (2, -1.0), (0, 1.0), (1, 1.0), (2, 1.0))


def _orientation_matrix(orientation) -> Mat3:
    if orientation is None:
        return IDENTITY3.copy()
    arr = np.asarray(orientation, dtype=np.float64)
    if arr.shape == (4,):
        return quat_to_matrix(arr)
    if arr.shape == (3, 3):
        if not is_orthonormal(arr):
            raise ValueError("Cuboid orientation matrix must be orthonormal")
        return arr.copy()
    raise ValueError(
        f"Orientation must be a (w, x, y, z) quaternion or a 3x3 matrix, got shape {arr.shape}"
    )


class Cuboid(Shape):
    """An oriented box.

    Attributes:
        origin: World position of the local frame origin.
        local_to_world: Rotation whose columns are the box axes in world space.
        mins: Local-space minimum corner.
        maxs: Local-space maximum corner.
        material: The material of the box surface.
    """

    def __init__(self, origin, orientation, mins, maxs, material: Material) -> None:
        lo, hi = as_vec3(mins), as_vec3(maxs)
        self.origin = as_vec3(origin)
        self.local_to_world = _orientation_matrix(orientation)
        self.world_to_local = self.local_to_world.T
        self.mins = np.minimum(lo, hi)
        self.maxs = np.maximum(lo, hi)
        self.material = material

    def slab_interval(self, ray: Ray) -> tuple[float, float]:
        """Entry and exit distances of the ray through the box slabs.

        Axes where the local direction is zero yield infinite slab bounds
        (or NaN when the origin sits exactly on the slab plane); NaN values
        are ignored when reducing.

        Returns:
            ``(near, far)``. The ray misses the box when ``near > far``.
        """
        local_origin = self.world_to_local @ (ray.origin - self.origin)
        local_dir = self.world_to_local @ ray.direction
        with np.errstate(divide="ignore", invalid="ignore"):
            a = (self.mins - local_origin) / local_dir
            b = (self.maxs - local_origin) / local_dir
        near = float(np.fmax.reduce(np.fmin(a, b)))
        far = float(np.fmin.reduce(np.fmax(a, b)))
        return near, far

    def intersect(self, ray: Ray) -> Hit | None:
        near, far = self.slab_interval(ray)
        if not (near <= far and far > 0.0):
            return None

        started_inside = near <= 0.0
        distance = far if started_inside else near

        local_origin = self.world_to_local @ (ray.origin - self.origin)
        local_dir = self.world_to_local @ ray.direction
        local_pos = local_origin + distance * local_dir

        face_distances = (np.abs(self.mins - local_pos), np.abs(self.maxs - local_pos))
        best = np.inf
        axis, sign = _FACE_ORDER[0]
        for face_axis, face_sign in _FACE_ORDER:
            d = face_distances[0 if face_sign < 0 else 1][face_axis]
            if d < best:
                best = d
                axis, sign = face_axis, face_sign

        local_normal = np.zeros(3)
        local_normal[axis] = sign
        return Hit(
            world_pos=self.local_to_world @ local_pos + self.origin,
            world_normal=sign * self.local_to_world[:, axis],
            local_pos=local_pos,
            local_normal=local_normal,
            local_to_world=self.local_to_world,
            material=self.material,
            distance=distance,
            started_inside=started_inside,
        )

    def bounds(self) -> Bounds:
        half = 0.5 * (self.maxs - self.mins)
        world_center = self.local_to_world @ (self.mins + half) + self.origin
        world_half = np.abs(self.local_to_world) @ half
        return world_center - world_half, world_center + world_half

    def __repr__(self) -> str:
        return (
            f"Cuboid(origin={self.origin.tolist()}, mins={self.mins.tolist()}, "
            f"maxs={self.maxs.tolist()})"
        )
