"""Checkerboard compositing of two materials.

The checkerboard has no shading of its own. It picks one of two child
materials from the parity of the hit's local cell index and delegates to it:

    cell  = floor(local_pos / size)
    index = (cell.x XOR cell.y XOR cell.z) & 1

Even cells use ``material_a``, odd cells ``material_b``. Because children are
passed in by reference at construction, materials form a DAG.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from src.pathtracer.core.ray import Ray, Vec3
from src.pathtracer.materials.material import Material

if TYPE_CHECKING:
    from src.pathtracer.core.sampling import TraceContext
    from src.pathtracer.geometry.hit import Hit
    from src.pathtracer.scene.intersection import Scene


class Checkerboard(Material):
    """Alternates between two materials on a 3D grid of cubic cells.

    Attributes:
        size: Edge length of one cell in local units.
        material_a: Material of even cells.
        material_b: Material of odd cells.
    """

    def __init__(self, size: float, material_a: Material, material_b: Material) -> None:
        if size <= 0.0:
            raise ValueError(f"Checker size must be positive, got {size}")
        self.size = float(size)
        self.material_a = material_a
        self.material_b = material_b

    def select(self, local_pos: Vec3) -> Material:
        """Material owning the cell that contains ``local_pos``."""
        parity = 0
        for component in local_pos:
            parity ^= math.floor(component / self.size)
        return self.material_b if parity & 1 else self.material_a

    def shade(self, scene: Scene, ray: Ray, hit: Hit, ctx: TraceContext) -> Vec3:
        return self.select(hit.local_pos).shade(scene, ray, hit, ctx)

    def __repr__(self) -> str:
        return f"Checkerboard(size={self.size}, a={self.material_a!r}, b={self.material_b!r})"
