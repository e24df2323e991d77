"""Base material interface.

Every material is a pure function of (scene, incident ray, hit, sampling
context) to outgoing linear radiance. Materials hold no per-render state and
are shared read-only across workers; recursion back into the scene goes
through ``TraceContext.try_push`` / ``pop`` so path depth stays bounded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from src.pathtracer.core.ray import ZERO, Ray, Vec3, as_vec3

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext
    from src.pathtracer.geometry.hit import Hit
    from src.pathtracer.scene.intersection import Scene


def black() -> Vec3:
    """Zero radiance."""
    return ZERO.copy()


def as_color(value, name: str, *, max_value: float | None = None) -> Vec3:
    """Validate and convert an RGB triple.

    Args:
        value: Three numbers.
        name: Parameter name used in error messages.
        max_value: Optional upper bound per component (1.0 for reflectances,
            None for emission which may exceed 1 for HDR).

    Raises:
        ValueError: If a component is negative or above ``max_value``.
    """
    color = as_vec3(value)
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"{name} component {i} = {component} is negative")
        if max_value is not None and component > max_value:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, {max_value}]. "
                "This would violate energy conservation."
            )
    return color


class Material(ABC):
    """Abstract base for surface materials."""

    @abstractmethod
    def shade(self, scene: Scene, ray: Ray, hit: Hit, ctx: TraceContext) -> Vec3:
        """Evaluate radiance leaving the surface back along ``ray``.

        Args:
            scene: The scene, used to trace secondary rays.
            ray: The incident ray that produced ``hit``.
            hit: The intersection being shaded.
            ctx: The worker's sampling context.

        Returns:
            Linear RGB radiance.
        """
