"""Quasi-Monte Carlo path tracer with a Taichi render target.

This package estimates the radiance reaching a pinhole camera by recursive
path tracing, with support for:
- Low-discrepancy (R-sequence) sampling with per-pixel reseeding
- Material models (Lambertian, gloss wrap, checkerboard, brushed metal, emitter)
- Geometric primitives (spheres, infinite planes, oriented cuboids)
- Progressive rendering with accumulation

Subpackages:
    core: Vector kernel, sampling context, integrator and progressive renderer
    geometry: Shape primitives and intersection algorithms
    materials: Recursive shading models
    scene: Scene aggregation, scene manager and demo scenes
    camera: Pinhole camera with ray generation
    preview: Colour pipeline, preview figures and PNG export
"""

__version__ = "0.1.0"
