"""Anisotropic brushed-metal reflection.

Brushed metal is modelled as concentric circular scratches repeated on a grid
of ``size`` cells. Inside a cell, the offset from the cell center defines a
radial tangent, and the circumferential tangent is perpendicular to it in the
surface plane. A unit-ball sample perturbs the normal along those two
tangents with separate roughness weights:

    n' = normalize(radial * b.x * radial_roughness
                   + circumferential * b.y * circumference_roughness
                   + local_normal * 0.999)

Low circumferential roughness with high radial roughness stretches highlights
along the circles, which is the look of spun or brushed metal. The perturbed
normal is mapped to world space through the hit's local frame, the incident
direction is reflected about it, and reflections that point into the true
geometric surface contribute zero.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from src.pathtracer.core.ray import (
    Ray,
    Vec3,
    cross,
    dot,
    normalize_or_zero,
    point_in_unit_ball,
    reflect,
    vec3,
)
from src.pathtracer.materials.material import Material, as_color, black

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext
    from src.pathtracer.geometry.hit import Hit
    from src.pathtracer.scene.intersection import Scene

# Weight of the unperturbed normal in the combined direction
NORMAL_WEIGHT = 0.999


def _any_tangent(normal: Vec3) -> Vec3:
    helper = vec3(1.0, 0.0, 0.0) if abs(normal[0]) < 0.9 else vec3(0.0, 1.0, 0.0)
    return normalize_or_zero(cross(helper, normal))


def brush_frame(local_pos: Vec3, local_normal: Vec3, size: float) -> tuple[Vec3, Vec3]:
    """Radial and circumferential tangents at a local position.

    Args:
        local_pos: Hit position in the primitive's local frame.
        local_normal: Unit normal in the same frame.
        size: Edge length of one brush cell.

    Returns:
        ``(radial, circumferential)`` unit tangents. At the exact cell center
        the radial direction is undefined and an arbitrary tangent is used.
    """
    cell_offset = np.mod(local_pos / size, 1.0) - 0.5
    radial = normalize_or_zero(cell_offset - dot(cell_offset, local_normal) * local_normal)
    if not radial.any():
        radial = _any_tangent(local_normal)
    circumferential = cross(local_normal, radial)
    return radial, circumferential


class BrushedMetal(Material):
    """Anisotropic metal with circular brushing.

    Attributes:
        size: Edge length of one brush cell in local units.
        radial_roughness: Normal jitter across the scratches.
        circumference_roughness: Normal jitter along the scratches.
        color: Reflectance tint.
    """

    def __init__(
        self,
        size: float,
        radial_roughness: float,
        circumference_roughness: float,
        color,
    ) -> None:
        if size <= 0.0:
            raise ValueError(f"Brush size must be positive, got {size}")
        for name, value in (
            ("radial_roughness", radial_roughness),
            ("circumference_roughness", circumference_roughness),
        ):
            if value < 0.0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        self.size = float(size)
        self.radial_roughness = float(radial_roughness)
        self.circumference_roughness = float(circumference_roughness)
        self.color = as_color(color, "Color", max_value=1.0)

    def perturbed_normal(self, hit: Hit, ctx: TraceContext) -> Vec3:
        """Draw a brushed world-space normal for ``hit``."""
        radial, circumferential = brush_frame(hit.local_pos, hit.local_normal, self.size)
        b = point_in_unit_ball(ctx)
        local = normalize_or_zero(
            radial * (b[0] * self.radial_roughness)
            + circumferential * (b[1] * self.circumference_roughness)
            + hit.local_normal * NORMAL_WEIGHT
        )
        return normalize_or_zero(hit.local_to_world @ local)

    def shade(self, scene: Scene, ray: Ray, hit: Hit, ctx: TraceContext) -> Vec3:
        if not ctx.try_push():
            return black()

        incident = normalize_or_zero(ray.direction)
        reflected = normalize_or_zero(reflect(incident, self.perturbed_normal(hit, ctx)))
        if dot(reflected, hit.world_normal) > 0.0:
            color = self.color * scene.get_color(Ray(hit.world_pos, reflected), ctx)
        else:
            color = black()

        ctx.pop()
        return color

    def __repr__(self) -> str:
        return (
            f"BrushedMetal(size={self.size}, radial_roughness={self.radial_roughness}, "
            f"circumference_roughness={self.circumference_roughness}, "
            f"color={self.color.tolist()})"
        )
