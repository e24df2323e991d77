"""Sphere primitive with projection-based ray-sphere intersection.

Instead of the textbook discriminant ``b^2 - 4ac`` this module projects the
origin-to-center vector onto the ray direction and compares the squared
perpendicular distance against ``radius^2``. This avoids catastrophic
cancellation when the ray origin is far from the sphere.

Given ``to_center = center - origin`` and the unit direction ``d``:

    projected = dot(to_center, d)
    perp_sq   = |to_center - projected * d|^2
    roots     = projected -/+ sqrt(radius^2 - perp_sq)

The roots are distances along ``d``; dividing them by the length of the
ray's own direction turns them into ray parameters, the same unit as
``Ray.at`` and the plane and cuboid hit distances.

Example:
    >>> from src.pathtracer.core.ray import Ray, vec3
    >>> from src.pathtracer.geometry.sphere import Sphere
    >>> from src.pathtracer.materials.lambertian import Lambertian
    >>> sphere = Sphere(vec3(0, 0, -1), 0.5, Lambertian((0.5, 0.5, 0.5)))
    >>> hit = sphere.intersect(Ray(vec3(0, 0, 0), vec3(0, 0, -1)))
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from src.pathtracer.core.ray import (
    IDENTITY3,
    Ray,
    Vec3,
    as_vec3,
    dot,
    normalize_or_zero,
)
from src.pathtracer.geometry.hit import Bounds, Hit, Shape

if TYPE_CHECKING:
    from src.pathtracer.materials.material import Material


class Sphere(Shape):
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere.
        radius: The radius of the sphere (positive).
        material: The material of the sphere surface.
    """

    def __init__(self, center, radius: float, material: Material) -> None:
        if radius <= 0.0:
            raise ValueError(f"Sphere radius must be positive, got {radius}")
        self.center: Vec3 = as_vec3(center)
        self.radius = float(radius)
        self.material = material

    def solve(self, ray: Ray) -> tuple[float, float] | None:
        """Compute both ray parameters where the ray crosses the sphere.

        The direction need not be unit length: the roots are ray parameters,
        so ``ray.at(near)`` lies on the sphere either way.

        Args:
            ray: The ray to test.

        Returns:
            ``(near, far)`` with ``near <= far``, or None if the ray passes
            outside the sphere or has no direction.
        """
        length = math.sqrt(dot(ray.direction, ray.direction))
        if not length > 0.0:
            return None
        direction = ray.direction / length
        to_center = self.center - ray.origin
        projected = dot(to_center, direction)
        perp = to_center - projected * direction
        perp_sq = dot(perp, perp)
        radius_sq = self.radius * self.radius
        if perp_sq >= radius_sq:
            return None
        offset = math.sqrt(radius_sq - perp_sq)
        return (projected - offset) / length, (projected + offset) / length

    def intersect(self, ray: Ray) -> Hit | None:
        roots = self.solve(ray)
        if roots is None:
            return None
        near, far = roots
        # Entirely behind the ray
        if far <= 0.0:
            return None

        started_inside = near < 0.0
        distance = far if started_inside else near
        world_pos = ray.at(distance)
        local_pos = world_pos - self.center
        normal = normalize_or_zero(local_pos)
        return Hit(
            world_pos=world_pos,
            world_normal=normal,
            local_pos=local_pos,
            local_normal=normal,
            local_to_world=IDENTITY3,
            material=self.material,
            distance=distance,
            started_inside=started_inside,
        )

    def bounds(self) -> Bounds:
        return self.center - self.radius, self.center + self.radius

    def __repr__(self) -> str:
        c = self.center
        return f"Sphere(center=({c[0]:g}, {c[1]:g}, {c[2]:g}), radius={self.radius:g})"
