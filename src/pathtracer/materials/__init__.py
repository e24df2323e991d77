"""Materials module for recursive shading models.

Components:
    material: Material base class and colour validation helpers
    lambertian: Ideal diffuse reflection
    gloss_wrap: Fresnel-weighted gloss coat over a diffuse base
    checkerboard: Parity-based selection between two materials
    brushed_metal: Anisotropic reflection with circular brushing
    emitter: Light source with cosine-power falloff

Each material implements ``shade(scene, ray, hit, ctx)`` and may recurse into
``scene.get_color`` for secondary rays, gated by ``ctx.try_push()``.
"""

from .brushed_metal import BrushedMetal, brush_frame
from .checkerboard import Checkerboard
from .emitter import Emitter
from .gloss_wrap import GlossWrap, fresnel_weight
from .lambertian import Lambertian, diffuse_bounce
from .material import Material, as_color, black

__all__ = [
    "Material",
    "as_color",
    "black",
    "Lambertian",
    "diffuse_bounce",
    "GlossWrap",
    "fresnel_weight",
    "Checkerboard",
    "BrushedMetal",
    "brush_frame",
    "Emitter",
]
