"""Tests for the Checkerboard material."""

import numpy as np
import pytest


@pytest.fixture
def board():
    from src.pathtracer.materials.checkerboard import Checkerboard
    from src.pathtracer.materials.emitter import Emitter

    return Checkerboard(1.0, Emitter((1, 0, 0)), Emitter((0, 1, 0)))


class TestCheckerSelection:
    """Test cell parity."""

    def test_origin_cell_selects_a(self, board):
        from src.pathtracer.core.ray import vec3

        assert board.select(vec3(0.5, 0.5, 0.0)) is board.material_a

    def test_neighbour_cell_selects_b(self, board):
        from src.pathtracer.core.ray import vec3

        assert board.select(vec3(1.5, 0.5, 0.0)) is board.material_b
        assert board.select(vec3(0.5, 1.5, 0.0)) is board.material_b

    def test_diagonal_cell_selects_a(self, board):
        from src.pathtracer.core.ray import vec3

        assert board.select(vec3(1.5, 1.5, 0.0)) is board.material_a

    def test_negative_coordinates_floor_down(self, board):
        from src.pathtracer.core.ray import vec3

        assert board.select(vec3(-0.5, 0.5, 0.0)) is board.material_b
        assert board.select(vec3(-0.5, -0.5, 0.0)) is board.material_a

    def test_cell_size_scales_pattern(self):
        from src.pathtracer.core.ray import vec3
        from src.pathtracer.materials.checkerboard import Checkerboard
        from src.pathtracer.materials.emitter import Emitter

        board = Checkerboard(2.0, Emitter((1, 0, 0)), Emitter((0, 1, 0)))
        assert board.select(vec3(1.5, 0.5, 0.0)) is board.material_a
        assert board.select(vec3(2.5, 0.5, 0.0)) is board.material_b

    def test_non_positive_size_raises(self):
        from src.pathtracer.materials.checkerboard import Checkerboard
        from src.pathtracer.materials.emitter import Emitter

        with pytest.raises(ValueError):
            Checkerboard(0.0, Emitter((1, 0, 0)), Emitter((0, 1, 0)))


class TestCheckerShading:
    """Test that shading delegates to the selected child."""

    def test_shade_delegates_to_cell_material(self, board, ctx):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.scene.intersection import Scene

        scene = Scene([Plane((0, 0, 1), (1, 0, 0), (0, 0, 0), board)])
        red = scene.get_color(Ray(vec3(0.5, 0.5, 1.0), vec3(0, 0, -1)), ctx)
        green = scene.get_color(Ray(vec3(1.5, 0.5, 1.0), vec3(0, 0, -1)), ctx)
        assert np.allclose(red, [1, 0, 0])
        assert np.allclose(green, [0, 1, 0])
