"""Scene-level intersection and light-transport entry point.

The Scene holds an ordered, immutable collection of shapes and resolves the
globally nearest valid hit for a ray. It is also the recursion entry point of
the path tracer: ``get_color`` shades the nearest hit with its material, and
materials call back into ``get_color`` for every bounce, gated by the trace
context's depth counter.

Hits are rejected when they are closer than ``SELF_INTERSECTION_EPSILON``
(secondary rays start exactly on the surface they leave) or when the ray
started inside a closed volume, since refraction is not modelled.

Rays that hit nothing receive the scene background, by default an analytic
sky with a sun highlight.

Example:
    >>> import numpy as np
    >>> from src.pathtracer.core.ray import Ray, vec3
    >>> from src.pathtracer.core.sampling import TraceContext
    >>> from src.pathtracer.scene.intersection import Scene
    >>> scene = Scene([sphere, plane])
    >>> ctx = TraceContext(max_depth=10)
    >>> radiance = scene.get_color(Ray(vec3(0, 0, 10), vec3(0, 0, -1)), ctx)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

import numpy as np

from src.pathtracer.core.ray import Ray, Vec3, dot, normalize_or_zero, vec3
from src.pathtracer.geometry.hit import Bounds, Hit, Shape

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext

# Minimum accepted hit distance (rejects self-intersection noise)
SELF_INTERSECTION_EPSILON = 1e-4

# Sky model constants
SKY_AMBIENT = vec3(0.1, 0.2, 0.3)
SUN_DIRECTION = normalize_or_zero(vec3(0.8, 1.2, 1.6))
SUN_COLOR = vec3(200.0, 175.0, 150.0)
SUN_SCALE = 0.04
SUN_SHARPNESS = 10.0

Background = Callable[[Ray], Vec3]


def sky_background(ray: Ray) -> Vec3:
    """Constant ambient sky plus a sharp directional sun highlight."""
    sun = max(0.0, dot(ray.direction, SUN_DIRECTION)) ** SUN_SHARPNESS
    return SKY_AMBIENT + SUN_SCALE * sun * SUN_COLOR


def black_background(ray: Ray) -> Vec3:
    """No environment light, for closed scenes."""
    return np.zeros(3)


class Scene:
    """An immutable, ordered collection of shapes.

    Attributes:
        shapes: The shapes, in insertion order.
        background: Radiance function for rays that escape the scene.
    """

    def __init__(self, shapes: Iterable[Shape], background: Background = sky_background) -> None:
        self.shapes: tuple[Shape, ...] = tuple(shapes)
        self.background = background

    def nearest_hit(self, ray: Ray) -> Hit | None:
        """Find the closest valid hit along ``ray``.

        Ties keep the first shape encountered.

        Returns:
            The nearest hit that is farther than the self-intersection
            epsilon and did not start inside a volume, or None.
        """
        best: Hit | None = None
        for shape in self.shapes:
            hit = shape.intersect(ray)
            if hit is None or hit.started_inside or hit.distance <= SELF_INTERSECTION_EPSILON:
                continue
            if best is None or hit.distance < best.distance:
                best = hit
        return best

    def get_color(self, ray: Ray, ctx: TraceContext) -> Vec3:
        """Estimate the radiance arriving along ``ray``.

        Args:
            ray: The ray to trace (unit direction).
            ctx: The worker's sampling context.

        Returns:
            Linear RGB radiance.
        """
        hit = self.nearest_hit(ray)
        if hit is None:
            return self.background(ray)
        return hit.material.shade(self, ray, hit, ctx)

    def bounds(self) -> Bounds | None:
        """Union of the finite shape bounds, or None if no shape is bounded."""
        lows, highs = [], []
        for shape in self.shapes:
            box = shape.bounds()
            if box is not None:
                lows.append(box[0])
                highs.append(box[1])
        if not lows:
            return None
        return np.min(lows, axis=0), np.max(highs, axis=0)

    def __len__(self) -> int:
        return len(self.shapes)

    def __repr__(self) -> str:
        return f"Scene(shapes={len(self.shapes)})"
