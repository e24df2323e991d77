"""Diffuse base with a Fresnel-weighted glossy coat.

Each shading call picks one lobe stochastically. The probability of the glossy
lobe follows a Schlick-style term of the incident angle:

    t       = clamp(1 + dot(incident, normal), 0, 1) ** fresnel_power
    fresnel = min_gloss + (max_gloss - min_gloss) * t

so head-on views (t = 0) reflect with probability ``min_gloss`` and grazing
views (t = 1) with probability ``max_gloss``. A scalar draw at or above
``fresnel`` selects the diffuse lobe.

The glossy lobe reflects the incident direction about a jittered normal
(``blur_vector(normal, gloss_size)``). Reflections that point into the
surface contribute zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from src.pathtracer.core.ray import Ray, Vec3, dot, normalize_or_zero, reflect
from src.pathtracer.materials.lambertian import diffuse_bounce
from src.pathtracer.materials.material import Material, as_color, black

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext
    from src.pathtracer.geometry.hit import Hit
    from src.pathtracer.scene.intersection import Scene


def fresnel_weight(
    incident: Vec3,
    normal: Vec3,
    max_gloss: float,
    min_gloss: float,
    fresnel_power: float,
) -> float:
    """Probability of taking the glossy lobe.

    Args:
        incident: Unit incident direction (pointing toward the surface).
        normal: Unit surface normal facing the incident side.
        max_gloss: Gloss probability at grazing incidence.
        min_gloss: Gloss probability at normal incidence.
        fresnel_power: Exponent sharpening the falloff.

    Returns:
        A value between ``min_gloss`` and ``max_gloss``.
    """
    t = min(max(1.0 + dot(incident, normal), 0.0), 1.0) ** fresnel_power
    return min_gloss + (max_gloss - min_gloss) * t


class GlossWrap(Material):
    """Diffuse + glossy material blended by a Fresnel term.

    Attributes:
        gloss_color: Tint of the glossy reflection.
        diffuse_color: Diffuse reflectance.
        gloss_size: Roughness of the glossy lobe (normal jitter, <= 0.999).
        max_gloss: Glossy probability at grazing angles.
        min_gloss: Glossy probability at normal incidence.
        fresnel_power: Exponent of the angular falloff.
    """

    def __init__(
        self,
        gloss_color,
        diffuse_color,
        gloss_size: float = 0.05,
        max_gloss: float = 1.0,
        min_gloss: float = 0.1,
        fresnel_power: float = 5.0,
    ) -> None:
        self.gloss_color = as_color(gloss_color, "Gloss color", max_value=1.0)
        self.diffuse_color = as_color(diffuse_color, "Diffuse color", max_value=1.0)
        for name, value in (("max_gloss", max_gloss), ("min_gloss", min_gloss)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} = {value} is outside [0, 1]")
        if gloss_size < 0.0:
            raise ValueError(f"gloss_size must be non-negative, got {gloss_size}")
        if fresnel_power < 0.0:
            raise ValueError(f"fresnel_power must be non-negative, got {fresnel_power}")
        self.gloss_size = float(gloss_size)
        self.max_gloss = float(max_gloss)
        self.min_gloss = float(min_gloss)
        self.fresnel_power = float(fresnel_power)

    def shade(self, scene: Scene, ray: Ray, hit: Hit, ctx: TraceContext) -> Vec3:
        if not ctx.try_push():
            return black()

        incident = normalize_or_zero(ray.direction)
        normal = hit.world_normal
        fresnel = fresnel_weight(
            incident, normal, self.max_gloss, self.min_gloss, self.fresnel_power
        )

        if ctx.rng1() >= fresnel:
            color = self.diffuse_color * diffuse_bounce(scene, hit, ctx)
        else:
            reflected = normalize_or_zero(
                reflect(incident, ctx.blur_vector(normal, self.gloss_size))
            )
            if dot(reflected, normal) > 0.0:
                color = self.gloss_color * scene.get_color(Ray(hit.world_pos, reflected), ctx)
            else:
                color = black()

        ctx.pop()
        return color

    def __repr__(self) -> str:
        return (
            f"GlossWrap(gloss_color={self.gloss_color.tolist()}, "
            f"diffuse_color={self.diffuse_color.tolist()}, gloss_size={self.gloss_size}, "
            f"max_gloss={self.max_gloss}, min_gloss={self.min_gloss}, "
            f"fresnel_power={self.fresnel_power})"
        )
