"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import numpy as np
import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_render_buffers():
    """Clear the integrator's accumulation buffers around each test."""
    # Import here to ensure Taichi is initialized first
    from src.pathtracer.core.integrator import clear_render_target

    clear_render_target()
    yield
    clear_render_target()


@pytest.fixture
def rng():
    """Deterministic true-random source for trace contexts."""
    return np.random.default_rng(1234)


@pytest.fixture
def ctx(rng):
    """A trace context with a generous depth limit and a seeded source."""
    from src.pathtracer.core.sampling import TraceContext

    return TraceContext(max_depth=10, rng=rng)


@pytest.fixture
def lit_box():
    """Factory for a closed test scene: diffuse floor at z=0, emitter at z=2.

    Every upward ray from the floor hits the emitter, so a floor point
    shaded with albedo ``a`` has radiance exactly ``a * emission``.
    """

    def _build(albedo=(0.5, 0.5, 0.5), emission=(1.0, 1.0, 1.0)):
        from src.pathtracer.geometry.plane import Plane
        from src.pathtracer.materials.emitter import Emitter
        from src.pathtracer.materials.lambertian import Lambertian
        from src.pathtracer.scene.intersection import Scene, black_background

        floor = Plane((0, 0, 1), (1, 0, 0), (0, 0, 0), Lambertian(albedo))
        ceiling = Plane((0, 0, 1), (1, 0, 0), (0, 0, 2), Emitter(emission, focus=0.0))
        return Scene([floor, ceiling], background=black_background)

    return _build
