"""Emissive (light source) material.

Emitters terminate paths: they never trace secondary rays. The emitted
radiance falls off with the cosine between the view direction and the
surface normal, optionally sharpened by ``focus``:

    L = color * clamp(-dot(incident, normal), EPSILON, 1) ** focus

``focus = 0`` gives a uniform (Lambertian) emitter. The lower clamp keeps
the base strictly positive so fractional or negative exponents stay finite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.pathtracer.core.ray import Ray, Vec3, dot, normalize_or_zero
from src.pathtracer.materials.material import Material, as_color

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext
    from src.pathtracer.geometry.hit import Hit
    from src.pathtracer.scene.intersection import Scene

EMITTER_EPSILON = 1e-6


class Emitter(Material):
    """Light-emitting surface.

    Attributes:
        color: Emitted radiance (RGB, may exceed 1 for HDR).
        focus: Exponent of the cosine falloff.
    """

    def __init__(self, color, focus: float = 0.0) -> None:
        self.color = as_color(color, "Emission color")
        self.focus = float(focus)

    def emitted(self, incident: Vec3, normal: Vec3) -> Vec3:
        """Radiance emitted toward ``-incident`` from a surface with ``normal``."""
        cosine = min(max(-dot(normalize_or_zero(incident), normal), EMITTER_EPSILON), 1.0)
        return self.color * cosine**self.focus

    def shade(self, scene: Scene, ray: Ray, hit: Hit, ctx: TraceContext) -> Vec3:
        return self.emitted(ray.direction, hit.world_normal)

    def __repr__(self) -> str:
        return f"Emitter(color={self.color.tolist()}, focus={self.focus})"
