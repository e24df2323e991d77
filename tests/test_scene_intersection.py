"""Tests for the Scene aggregator and background functions."""

import numpy as np
import pytest


@pytest.fixture
def grey():
    from src.pathtracer.materials.lambertian import Lambertian

    return Lambertian((0.5, 0.5, 0.5))


class TestNearestHit:
    """Test resolution of the nearest valid hit."""

    def test_nearest_of_two_spheres(self, grey):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.intersection import Scene

        far = Sphere((0, 0, -10), 1.0, grey)
        near = Sphere((0, 0, -5), 1.0, grey)
        scene = Scene([far, near])
        hit = scene.nearest_hit(Ray(vec3(0, 0, 0), vec3(0, 0, -1)))
        assert hit.distance == pytest.approx(4.0)

    def test_sphere_resting_on_yellow_plane(self, grey):
        """Downward rays see the sphere top at h - 3, or the plane beside it."""
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.lambertian import Lambertian
        from src.pathtracer.scene.intersection import Scene

        yellow = Lambertian((0.8, 0.8, 0.2))
        scene = Scene(
            [
                Plane((0, 0, 1), (1, 0, 0), (0, 0, 0), yellow),
                Sphere((0, 0, 1.5), 1.5, grey),
            ]
        )
        for h in (4.0, 10.0, 25.0):
            hit = scene.nearest_hit(Ray(vec3(0, 0, h), vec3(0, 0, -1)))
            assert hit.material is grey
            assert hit.distance == pytest.approx(h - 3.0)
            assert np.allclose(hit.world_normal, [0, 0, 1])

        beside = scene.nearest_hit(Ray(vec3(2, 2, 10), vec3(0, 0, -1)))
        assert beside.material is yellow
        assert beside.distance == pytest.approx(10.0)
        assert np.allclose(beside.world_normal, [0, 0, 1])

    def test_tie_keeps_first_shape(self):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.emitter import Emitter
        from src.pathtracer.scene.intersection import Scene

        first, second = Emitter((1, 0, 0)), Emitter((0, 1, 0))
        scene = Scene([Sphere((0, 0, -5), 1.0, first), Sphere((0, 0, -5), 1.0, second)])
        hit = scene.nearest_hit(Ray(vec3(0, 0, 0), vec3(0, 0, -1)))
        assert hit.material is first

    def test_hits_from_inside_are_ignored(self, grey):
        """A ray starting inside a sphere sees what lies beyond it."""
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.intersection import Scene

        scene = Scene(
            [
                Sphere((0, 0, 0), 2.0, grey),
                Plane((0, 0, 1), (1, 0, 0), (0, 0, -5), grey),
            ]
        )
        hit = scene.nearest_hit(Ray(vec3(0, 0, 0), vec3(0, 0, -1)))
        assert hit.distance == pytest.approx(5.0)

    def test_hits_closer_than_epsilon_are_ignored(self, grey):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.intersection import SELF_INTERSECTION_EPSILON, Scene

        sphere = Sphere((0, 0, -1), 1.0, grey)
        origin = vec3(0, 0, SELF_INTERSECTION_EPSILON / 10)
        assert Scene([sphere]).nearest_hit(Ray(origin, vec3(0, 0, -1))) is None

    def test_miss_returns_none(self, grey):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.intersection import Scene

        scene = Scene([Sphere((0, 0, -5), 1.0, grey)])
        assert scene.nearest_hit(Ray(vec3(0, 0, 0), vec3(0, 0, 1))) is None


class TestGetColor:
    """Test radiance lookups through the scene."""

    def test_miss_returns_background(self, ctx):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.scene.intersection import Scene

        scene = Scene([], background=lambda ray: vec3(0.25, 0.5, 0.75))
        color = scene.get_color(Ray(vec3(0, 0, 0), vec3(1, 0, 0)), ctx)
        assert np.allclose(color, [0.25, 0.5, 0.75])

    def test_sky_toward_sun(self):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.scene.intersection import SUN_DIRECTION, sky_background

        color = sky_background(Ray(vec3(0, 0, 0), SUN_DIRECTION))
        assert np.allclose(color, [8.1, 7.2, 6.3])

    def test_sky_away_from_sun_is_ambient(self):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.scene.intersection import SKY_AMBIENT, SUN_DIRECTION, sky_background

        color = sky_background(Ray(vec3(0, 0, 0), -SUN_DIRECTION))
        assert np.allclose(color, SKY_AMBIENT)

    def test_black_background(self):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.scene.intersection import black_background

        assert np.array_equal(black_background(Ray(vec3(0, 0, 0), vec3(0, 0, 1))), np.zeros(3))


class TestSceneBounds:
    """Test the union of shape bounds."""

    def test_union_of_spheres(self, grey):
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.intersection import Scene

        scene = Scene(
            [
                Sphere((0, 0, 0), 1.0, grey),
                Sphere((3, 0, 0), 0.5, grey),
                Plane((0, 0, 1), (1, 0, 0), (0, 0, 0), grey),
            ]
        )
        lo, hi = scene.bounds()
        assert np.allclose(lo, [-1, -1, -1])
        assert np.allclose(hi, [3.5, 1, 1])

    def test_unbounded_scene(self, grey):
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.scene.intersection import Scene

        assert Scene([Plane((0, 0, 1), (1, 0, 0), (0, 0, 0), grey)]).bounds() is None
        assert Scene([]).bounds() is None

    def test_len(self, grey):
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.scene.intersection import Scene

        assert len(Scene([Sphere((0, 0, 0), 1.0, grey)] * 3)) == 3
