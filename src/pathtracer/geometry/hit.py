"""Hit records and the shape interface.

A ``Hit`` is produced by a successful ray/shape intersection and consumed
immediately by material dispatch; it is never stored. Shapes are immutable
once constructed and are shared read-only between render workers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.pathtracer.core.ray import Mat3, Ray, Vec3

if TYPE_CHECKING:
    from src.pathtracer.materials.material import Material

Bounds = tuple[Vec3, Vec3]


@dataclass(frozen=True)
class Hit:
    """Record of a ray/shape intersection.

    Attributes:
        world_pos: Intersection point in world space.
        world_normal: Unit surface normal in world space.
        local_pos: Intersection point in the primitive's local coordinates,
            used by pattern materials.
        local_normal: Surface normal in local coordinates.
        local_to_world: Orthonormal basis whose columns are the local axes
            in world space.
        material: The material owning the surface's appearance.
        distance: Parametric distance along the ray (finite, > 0).
        started_inside: True when the ray origin was inside a closed volume.
    """

    world_pos: Vec3
    world_normal: Vec3
    local_pos: Vec3
    local_normal: Vec3
    local_to_world: Mat3
    material: Material
    distance: float
    started_inside: bool


class Shape(ABC):
    """Abstract base for intersectable primitives."""

    material: Material

    @abstractmethod
    def intersect(self, ray: Ray) -> Hit | None:
        """Return the nearest valid intersection, or None on a miss."""

    @abstractmethod
    def bounds(self) -> Bounds | None:
        """Axis-aligned world bounds as ``(min, max)``, or None if unbounded."""
