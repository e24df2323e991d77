"""Geometry module for shape primitives.

This module provides geometric primitives and intersection algorithms:

Components:
    hit: Hit record and the Shape base class
    sphere: Sphere primitive with ray-sphere intersection
    plane: Infinite plane with a right-handed local frame
    cuboid: Oriented box intersected with the slab method

Every shape returns the nearest intersection in front of the ray origin as a
Hit, or None for misses and degenerate configurations. Hits carry both world
and local-frame data so materials can evaluate patterns in shape space.
"""

from .cuboid import Cuboid
from .hit import Bounds, Hit, Shape
from .plane import Plane
from .sphere import Sphere

__all__ = [
    "Hit",
    "Shape",
    "Bounds",
    "Sphere",
    "Plane",
    "Cuboid",
]
