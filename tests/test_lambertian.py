"""Tests for the Lambertian material."""

import numpy as np
import pytest


class TestLambertianConstruction:
    """Test albedo validation."""

    def test_valid_albedo(self):
        from src.pathtracer.materials.lambertian import Lambertian

        mat = Lambertian((0.2, 0.4, 0.6))
        assert np.allclose(mat.albedo, [0.2, 0.4, 0.6])

    def test_negative_albedo_raises(self):
        from src.pathtracer.materials.lambertian import Lambertian

        with pytest.raises(ValueError, match="negative"):
            Lambertian((-0.1, 0.5, 0.5))

    def test_albedo_above_one_raises(self):
        from src.pathtracer.materials.lambertian import Lambertian

        with pytest.raises(ValueError, match="energy conservation"):
            Lambertian((1.5, 0.5, 0.5))


class TestLambertianShading:
    """Test diffuse shading in a closed, uniformly lit scene."""

    def test_floor_radiance_is_albedo_times_emission(self, lit_box, ctx):
        from src.pathtracer.core.ray import Ray, vec3

        scene = lit_box(albedo=(0.2, 0.4, 0.8), emission=(2.0, 1.0, 0.5))
        for _ in range(16):
            ctx.next_sample()
            color = scene.get_color(Ray(vec3(0.3, -0.2, 1.0), vec3(0, 0, -1)), ctx)
            assert np.allclose(color, [0.4, 0.4, 0.4])

    def test_depth_is_released_after_shading(self, lit_box, ctx):
        from src.pathtracer.core.ray import Ray, vec3

        scene = lit_box()
        scene.get_color(Ray(vec3(0, 0, 1), vec3(0, 0, -1)), ctx)
        assert ctx.current_depth == 0

    def test_zero_depth_returns_black(self, lit_box, rng):
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.core.sampling import TraceContext

        scene = lit_box()
        ctx = TraceContext(max_depth=0, rng=rng)
        color = scene.get_color(Ray(vec3(0, 0, 1), vec3(0, 0, -1)), ctx)
        assert np.array_equal(color, [0.0, 0.0, 0.0])

    def test_diffuse_bounce_above_axis_aligned_surface(self, ctx):
        """With a +Z normal the jitter cube cannot reach below the surface."""
        from src.pathtracer.core.ray import dot, vec3
        from src.pathtracer.materials.lambertian import DIFFUSE_BLUR

        normal = vec3(0, 0, 1)
        for _ in range(200):
            ctx.next_sample()
            assert dot(ctx.blur_vector(normal, DIFFUSE_BLUR), normal) > 0.0

    def test_diffuse_bounce_mostly_above_tilted_surface(self, ctx):
        """A diagonal normal lets the cube corners through, but only rarely."""
        from src.pathtracer.core.ray import dot, normalize_or_zero, vec3
        from src.pathtracer.materials.lambertian import DIFFUSE_BLUR

        normal = normalize_or_zero(vec3(1, 1, 1))
        cosines = []
        for _ in range(400):
            ctx.next_sample()
            cosines.append(dot(ctx.blur_vector(normal, DIFFUSE_BLUR), normal))
        assert np.mean(np.array(cosines) > 0.0) > 0.9


class TestEnergyConservation:
    """A white surface may reflect all incoming light but never more."""

    @pytest.mark.parametrize("emission", [(1.0, 1.0, 1.0), (3.0, 0.5, 0.0)])
    def test_white_floor_never_exceeds_emission(self, lit_box, ctx, emission):
        from src.pathtracer.core.ray import Ray, vec3

        scene = lit_box(albedo=(1.0, 1.0, 1.0), emission=emission)
        for _ in range(32):
            ctx.next_sample()
            color = scene.get_color(Ray(vec3(0.1, 0.7, 1.0), vec3(0, 0, -1)), ctx)
            assert np.all(color <= np.asarray(emission) + 1e-12)
            assert np.allclose(color, emission)

    def test_white_sphere_under_emitter_stays_below_emission(self, rng):
        """Bounces that miss the emitter lose energy; none gain it."""
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.core.sampling import TraceContext
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.geometry.sphere import Sphere
        from src.pathtracer.materials.emitter import Emitter
        from src.pathtracer.materials.lambertian import Lambertian
        from src.pathtracer.scene.intersection import Scene, black_background

        white = Lambertian((1.0, 1.0, 1.0))
        scene = Scene(
            [
                Sphere((0, 0, 0), 1.0, white),
                Plane((0, 0, 1), (1, 0, 0), (0, 0, 3), Emitter((2.0, 2.0, 2.0), focus=0.0)),
            ],
            background=black_background,
        )
        ctx = TraceContext(max_depth=8, rng=rng)
        total = np.zeros(3)
        for _ in range(64):
            color = scene.get_color(Ray(vec3(0.5, 0.0, 2.0), vec3(0, 0, -1)), ctx)
            assert np.all(color <= 2.0 + 1e-12)
            total += color
            ctx.next_sample()
        assert np.all(total / 64 <= 2.0)


class TestDeepPaths:
    """Test paths that bounce until the depth limit."""

    def test_supported_maximum_depth_completes(self, rng):
        """Two facing diffuse planes keep bouncing until every level is used."""
        from src.pathtracer.core.ray import Ray, vec3
        from src.pathtracer.core.sampling import TraceContext, max_supported_depth
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.materials.lambertian import Lambertian
        from src.pathtracer.scene.intersection import Scene, black_background

        grey = Lambertian((0.5, 0.5, 0.5))
        scene = Scene(
            [
                Plane((0, 0, 1), (1, 0, 0), (0, 0, 0), grey),
                Plane((0, 0, 1), (1, 0, 0), (0, 0, 1), grey),
            ],
            background=black_background,
        )
        ctx = TraceContext(max_depth=max_supported_depth(), rng=rng)
        color = scene.get_color(Ray(vec3(0, 0, 0.5), vec3(0, 0, -1)), ctx)
        assert np.array_equal(color, [0.0, 0.0, 0.0])
        assert ctx.current_depth == 0
        assert ctx.pool_sizes()[2] == max_supported_depth()
