"""Infinite plane primitive.

The plane is defined by a normal N, a "right" vector R used to build a 2D
local basis, and a point C on the plane:

    up    = normalize(N x R)
    right = normalize(up x N)

so that (right, up, N) is an orthonormal frame even when R is not exactly
perpendicular to N. The local position of a hit is its (right, up)
coordinates relative to C, which pattern materials such as checkerboards use.

The ray/plane solution is:

    t = (dot(N, C) - dot(N, O)) / dot(N, D)

Rays (nearly) parallel to the plane, and rays starting on the plane itself,
are reported as misses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from src.pathtracer.core.ray import Ray, as_vec3, cross, dot, normalize_or_zero, vec3
from src.pathtracer.geometry.hit import Hit, Shape

if TYPE_CHECKING:
    from src.pathtracer.materials.material import Material

# Tolerance for parallel rays and rays starting on the plane
PLANE_EPSILON = 1e-6

_LOCAL_UP = vec3(0.0, 0.0, 1.0)
_LOCAL_DOWN = vec3(0.0, 0.0, -1.0)


class Plane(Shape):
    """An infinite plane with a two-sided surface.

    Attributes:
        normal: Unit plane normal.
        right: Unit in-plane x axis of the local frame.
        up: Unit in-plane y axis of the local frame.
        center: A point on the plane (origin of the local frame).
        material: The material of the plane surface.
    """

    def __init__(self, normal, right, center, material: Material) -> None:
        n = normalize_or_zero(as_vec3(normal))
        if not n.any():
            raise ValueError("Plane normal must be non-zero")
        up = normalize_or_zero(cross(n, as_vec3(right)))
        if not up.any():
            raise ValueError("Plane right vector must not be parallel to the normal")

        self.normal = n
        self.up = up
        self.right = normalize_or_zero(cross(up, n))
        self.center = as_vec3(center)
        self.material = material
        self._n_dot_c = dot(n, self.center)
        self._frame = np.column_stack((self.right, self.up, self.normal))

    def intersect(self, ray: Ray) -> Hit | None:
        n_dot_dir = dot(self.normal, ray.direction)
        # Signed height of the ray origin above the plane
        side = dot(self.normal, ray.origin) - self._n_dot_c
        if abs(n_dot_dir) <= PLANE_EPSILON or abs(side) <= PLANE_EPSILON:
            return None

        distance = -side / n_dot_dir
        if distance <= 0.0:
            return None

        world_pos = ray.at(distance)
        offset = world_pos - self.center
        facing_front = side >= 0.0
        return Hit(
            world_pos=world_pos,
            world_normal=self.normal if facing_front else -self.normal,
            local_pos=vec3(dot(self.right, offset), dot(self.up, offset), 0.0),
            local_normal=_LOCAL_UP if facing_front else _LOCAL_DOWN,
            local_to_world=self._frame,
            material=self.material,
            distance=distance,
            started_inside=False,
        )

    def bounds(self) -> None:
        return None

    def __repr__(self) -> str:
        n, c = self.normal, self.center
        return (
            f"Plane(normal=({n[0]:g}, {n[1]:g}, {n[2]:g}), "
            f"center=({c[0]:g}, {c[1]:g}, {c[2]:g}))"
        )
