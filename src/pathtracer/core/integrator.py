"""Path tracing integrator and render target.

This module drives the recursive light-transport evaluator over an image:
for every pixel it averages ``num_samples`` anti-aliased camera rays, each
shaded through ``Scene.get_color`` with a per-worker TraceContext, and merges
the result into a progressive accumulation buffer.

The render target lives in Taichi fields preallocated to the maximum image
size, so resizing never triggers a kernel recompilation. Rows are traced
concurrently on a thread pool; each row task owns its own TraceContext and
true-random source, and only the main thread writes into the Taichi buffer
through a running-average kernel that scrubs NaN/Inf and negative values.

Only that kernel runs in Taichi. Shading is plain Python over small NumPy
arrays and holds the GIL, so on a standard CPython build the row tasks
interleave rather than run in parallel and a render takes about as long as a
single-threaded one. The pool still keeps every row's state independent,
and rows do run in parallel on a free-threaded interpreter.

Buffers are indexed ``[x, y]`` with ``y = 0`` at the top of the image, the
same convention as the camera's pixel coordinates.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.integrator import (
    ...     render_image, setup_render_target, get_normalized_image_numpy
    ... )
    >>> from src.pathtracer.scene.showcase import create_sphere_on_plane_scene
    >>>
    >>> manager, camera = create_sphere_on_plane_scene()
    >>> setup_render_target(64, 64)
    >>> render_image(manager.build(), camera, num_samples=4)
    >>> image = get_normalized_image_numpy()
"""

import logging
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.pathtracer.camera.pinhole import PinholeCamera
from src.pathtracer.core.ray import Vec3
from src.pathtracer.core.sampling import QuasiRandomSequence, TraceContext
from src.pathtracer.scene.intersection import Scene

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# Factory for the per-task true-random source
RngFactory = Callable[[], np.random.Generator]

# =============================================================================
# Rendering Constants
# =============================================================================

# Default maximum recursion depth (nested bounces)
DEFAULT_MAX_DEPTH = 10

# Seed of the 2D sub-pixel jitter sequence
AA_JITTER_SEED = 0.69

# =============================================================================
# Render Target
# =============================================================================

# Fields are allocated once at the largest size; resizing only changes the
# active region, so kernels compile a single time
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Active region
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running mean of linear radiance, indexed [x, y] with y = 0 at the top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples merged into each pixel's mean
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Set by setup_render_target(); readers refuse to run before it
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Select the active image size and zero the accumulators.

    Raises:
        ValueError: If a dimension is not positive or above 2048.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions {width}x{height} exceed maximum "
            f"{MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT}"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1
    clear_render_target()
    logger.debug("Render target set to %dx%d", width, height)


def clear_render_target() -> None:
    """Zero the colour means and sample counts (the size is kept)."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Active ``(width, height)`` of the render target."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("setup_render_target() must be called before rendering or readback")


def get_image() -> "ti.MatrixField":
    """The colour field itself, at its full preallocated size.

    Only the region given by ``get_image_dimensions()`` is meaningful.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    return _color_buffer


def get_sample_count() -> "ti.ScalarField":
    """The per-pixel sample count field, at its full preallocated size."""
    _check_render_target_initialized()
    return _sample_count


def get_total_samples() -> int:
    """Samples per pixel merged so far.

    ``render_image`` advances every pixel by the same amount, so pixel (0, 0)
    is representative.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


# =============================================================================
# Accumulation Kernel
# =============================================================================


@ti.kernel
def _accumulate_row(y: ti.i32, width: ti.i32, row: ti.types.ndarray(), samples: ti.i32):
    """Merge one row of per-pixel means into the running average.

    Args:
        y: Row index (0 = top).
        width: Number of pixels in the row.
        row: Array of shape (width, 3) holding the mean of ``samples`` samples.
        samples: Number of samples the row means were computed from.
    """
    for x in range(width):
        color = vec3(row[x, 0], row[x, 1], row[x, 2])

        # Non-finite samples contribute zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        # Radiance is non-negative
        color = tm.max(color, vec3(0.0, 0.0, 0.0))

        # Weighted running average: avg += (x - avg) * k / n
        _sample_count[x, y] += samples
        n = _sample_count[x, y]
        weight = ti.cast(samples, ti.f32) / ti.cast(n, ti.f32)
        _color_buffer[x, y] += (color - _color_buffer[x, y]) * weight


# =============================================================================
# Path Tracing Core
# =============================================================================


def trace_pixel(
    scene: Scene,
    camera: PinholeCamera,
    x: int,
    y: int,
    width: int,
    height: int,
    num_samples: int,
    ctx: TraceContext,
    jitter: QuasiRandomSequence,
) -> Vec3:
    """Estimate the radiance through one pixel.

    Each sample offsets the pixel position by a quasi-random jitter in
    [-0.5, 0.5), traces the camera ray through the scene and rewinds the
    context's generator cursors. The pools are reseeded once the pixel is
    done.

    Args:
        scene: The scene to render.
        camera: Camera producing the primary rays.
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples to average (must be positive).
        ctx: The worker's trace context, idle on entry.
        jitter: 2D sequence supplying the sub-pixel offsets.

    Returns:
        The mean linear radiance of the samples.

    Raises:
        ValueError: If num_samples is not positive.
    """
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    total = np.zeros(3)
    for _ in range(num_samples):
        offset = jitter.next() - 0.5
        ray = camera.get_ray(x + offset[0], y + offset[1], width, height)
        total += scene.get_color(ray, ctx)
        ctx.next_sample()
    ctx.next_pixel()
    return total / num_samples


def _trace_row(
    scene: Scene,
    camera: PinholeCamera,
    y: int,
    width: int,
    height: int,
    num_samples: int,
    ctx: TraceContext,
    jitter: QuasiRandomSequence,
) -> npt.NDArray[np.float32]:
    row = np.empty((width, 3), dtype=np.float32)
    for x in range(width):
        row[x] = trace_pixel(scene, camera, x, y, width, height, num_samples, ctx, jitter)
    return row


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image(
    scene: Scene,
    camera: PinholeCamera,
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    workers: int | None = None,
    rng_factory: RngFactory | None = None,
) -> None:
    """Trace ``num_samples`` more samples per pixel and merge them into the target.

    Repeated calls keep refining the same image; the sub-pixel jitter
    sequence continues where the previous call stopped.

    Args:
        scene: The scene to render.
        camera: Camera producing the primary rays.
        num_samples: Samples per pixel to add in this call.
        max_depth: Maximum number of nested bounces per path.
        workers: Thread pool size. None uses the executor default.
        rng_factory: Callable returning the true-random source of one row
            task. Called on the main thread in row order, so a seeded
            factory gives reproducible images. Defaults to OS entropy.

    Raises:
        RuntimeError: If ``setup_render_target`` was never called.
        ValueError: If num_samples is not positive.
    """
    _check_render_target_initialized()
    if num_samples <= 0:
        raise ValueError(f"num_samples must be positive, got {num_samples}")
    if rng_factory is None:
        rng_factory = np.random.default_rng

    width, height = get_image_dimensions()
    already = get_total_samples()
    start = time.perf_counter()

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {}
        for y in range(height):
            ctx = TraceContext(max_depth, rng=rng_factory())
            jitter = QuasiRandomSequence(2, AA_JITTER_SEED)
            jitter.advance(already * width)
            future = executor.submit(
                _trace_row, scene, camera, y, width, height, num_samples, ctx, jitter
            )
            futures[future] = y

        for future in as_completed(futures):
            _accumulate_row(futures[future], width, future.result(), num_samples)

    logger.debug(
        "Rendered %d spp at %dx%d in %.3fs (total %d spp)",
        num_samples,
        width,
        height,
        time.perf_counter() - start,
        already + num_samples,
    )


def render_sample(
    scene: Scene,
    camera: PinholeCamera,
    x: int,
    y: int,
    num_samples: int = 1,
    max_depth: int = DEFAULT_MAX_DEPTH,
    rng: np.random.Generator | None = None,
    width: int | None = None,
    height: int | None = None,
) -> tuple[float, float, float]:
    """Render samples for a single pixel without touching the buffer.

    Runs on the calling thread with a fresh TraceContext; handy for probing
    individual pixels in tests and debugging.

    Args:
        scene: The scene to render.
        camera: Camera producing the primary rays.
        x: Pixel column (0 = left).
        y: Pixel row (0 = top).
        num_samples: Number of samples to average.
        max_depth: Maximum number of nested bounces per path.
        rng: True-random source for the trace context.
        width: Image width. Defaults to the render target width.
        height: Image height. Defaults to the render target height.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        RuntimeError: If no size is given and the render target is not set up.
    """
    if width is None or height is None:
        _check_render_target_initialized()
        target_width, target_height = get_image_dimensions()
        width = target_width if width is None else width
        height = target_height if height is None else height

    ctx = TraceContext(max_depth, rng=rng)
    jitter = QuasiRandomSequence(2, AA_JITTER_SEED)
    color = trace_pixel(scene, camera, x, y, width, height, num_samples, ctx, jitter)
    return (float(color[0]), float(color[1]), float(color[2]))


# =============================================================================
# Image Readback
# =============================================================================


def get_linear_image_numpy() -> npt.NDArray[np.float32]:
    """Accumulated linear radiance, unclamped, so HDR values survive.

    Returns:
        NumPy array of shape (height, width, 3) with dtype float32, row 0 at
        the top of the image.

    Raises:
        RuntimeError: If ``setup_render_target`` was never called.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    # Field layout is [x, y]; images are [row, column]
    active = _color_buffer.to_numpy()[:width, :height]
    image = active.transpose(1, 0, 2)
    return np.ascontiguousarray(image, dtype=np.float32)


def get_normalized_image_numpy() -> npt.NDArray[np.float32]:
    """Accumulated radiance clipped to the displayable range [0, 1].

    Returns:
        A float32 array of shape (height, width, 3).

    Raises:
        RuntimeError: If ``setup_render_target`` was never called.
    """
    return np.clip(get_linear_image_numpy(), 0.0, 1.0)
