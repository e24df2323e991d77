"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    ray: Ray, vector and rotation-frame utilities
    sampling: R-sequence generators and the per-worker TraceContext
    integrator: Render target fields, pixel tracing and parallel image rendering
    progressive: Batched progressive rendering with callbacks
    config: Validated render settings

Light transport is evaluated by direct recursion through Scene.get_color,
bounded by the TraceContext depth counter. Only accumulation into the image
buffer runs as a Taichi kernel.
"""

from .ray import (
    Ray,
    as_vec3,
    axis_angle_matrix,
    cross,
    dot,
    length,
    length_squared,
    normalize,
    normalize_or_zero,
    point_in_unit_ball,
    quat_to_matrix,
    reflect,
    vec3,
)
from .sampling import QuasiRandomSequence, TraceContext, TraceContextError

# Note: integrator, progressive and config are NOT imported here to avoid circular imports.
# Import directly from src.pathtracer.core.integrator or src.pathtracer.core.progressive.

__all__ = [
    "Ray",
    "vec3",
    "as_vec3",
    "length",
    "length_squared",
    "normalize",
    "normalize_or_zero",
    "dot",
    "cross",
    "reflect",
    "point_in_unit_ball",
    "quat_to_matrix",
    "axis_angle_matrix",
    "QuasiRandomSequence",
    "TraceContext",
    "TraceContextError",
]
