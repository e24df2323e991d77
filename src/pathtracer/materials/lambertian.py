"""Lambertian (ideal diffuse) material implementation.

The scattered direction is the surface normal perturbed by near-maximal
isotropic jitter (``blur_vector(normal, 0.999)``). The jitter is a cube, so
for an axis-aligned normal every direction stays above the surface, while a
tilted normal lets a few percent of directions dip below it. The recursive
radiance is tinted by the albedo.

Path termination is a hard depth cap rather than Russian roulette: once the
trace context refuses another level, the surface contributes zero.

Example:
    >>> from src.pathtracer.materials.lambertian import Lambertian
    >>> grey = Lambertian((0.5, 0.5, 0.5))
    >>> # radiance = grey.shade(scene, ray, hit, ctx)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.pathtracer.core.ray import Ray, Vec3
from src.pathtracer.materials.material import Material, as_color, black

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext
    from src.pathtracer.geometry.hit import Hit
    from src.pathtracer.scene.intersection import Scene

# Jitter applied to the normal for diffuse bounces
DIFFUSE_BLUR = 0.999


def diffuse_bounce(scene: Scene, hit: Hit, ctx: TraceContext) -> Vec3:
    """Trace one diffuse bounce from the hit point.

    The caller must already hold a depth level from ``ctx.try_push()``.
    """
    direction = ctx.blur_vector(hit.world_normal, DIFFUSE_BLUR)
    return scene.get_color(Ray(hit.world_pos, direction), ctx)


class Lambertian(Material):
    """Ideal diffuse material.

    Attributes:
        albedo: Diffuse reflectance (RGB, each component in [0, 1]).
    """

    def __init__(self, albedo) -> None:
        self.albedo = as_color(albedo, "Albedo", max_value=1.0)

    def shade(self, scene: Scene, ray: Ray, hit: Hit, ctx: TraceContext) -> Vec3:
        if not ctx.try_push():
            return black()
        color = self.albedo * diffuse_bounce(scene, hit, ctx)
        ctx.pop()
        return color

    def __repr__(self) -> str:
        return f"Lambertian(albedo={self.albedo.tolist()})"
