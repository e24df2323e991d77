"""Batched progressive rendering on top of the integrator.

A ``ProgressiveRenderer`` binds a scene, a camera and an image size to the
integrator's render target and adds samples in batches. After every batch the
running average in the Taichi buffer is a complete, viewable image, so callers
can report progress, save intermediate results or stop early.

Two equivalent driving styles are offered:

- ``render(num_samples, batch_size, callback)`` calls ``callback(current,
  target)`` after each batch;
- ``render_progressive(num_samples, batch_size)`` yields the same pairs.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.core.progressive import ProgressiveRenderer
    >>> from src.pathtracer.scene.showcase import create_sphere_on_plane_scene
    >>>
    >>> manager, camera = create_sphere_on_plane_scene()
    >>> renderer = ProgressiveRenderer(manager.build(), camera, 128, 128)
    >>> for current, target in renderer.render_progressive(16, batch_size=4):
    ...     renderer.save_image(f"pass_{current:03d}.png")
"""

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from src.pathtracer.camera.pinhole import PinholeCamera
from src.pathtracer.core.integrator import (
    DEFAULT_MAX_DEPTH,
    RngFactory,
    clear_render_target,
    get_image,
    get_linear_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.pathtracer.core.sampling import check_max_depth
from src.pathtracer.preview.color import Gamma, apply_gamma
from src.pathtracer.preview.export import image_to_uint8, save_png_from_array
from src.pathtracer.scene.intersection import Scene

logger = logging.getLogger(__name__)

# (accumulated samples per pixel, samples per pixel when the call completes)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Accumulates samples of one scene/camera pair into the render target.

    The accumulation state lives in the integrator's module-level Taichi
    fields, so only one renderer should be active at a time.

    Attributes:
        scene: The scene being rendered.
        camera: The camera producing primary rays.
        max_depth: Maximum number of nested bounces per path.
        workers: Thread pool size for row rendering (None for default).
        rng_factory: Optional source of per-row random generators.
    """

    def __init__(
        self,
        scene: Scene,
        camera: PinholeCamera,
        width: int,
        height: int,
        max_depth: int = DEFAULT_MAX_DEPTH,
        workers: int | None = None,
        rng_factory: RngFactory | None = None,
    ) -> None:
        """Bind the renderer and reset the render target to ``width x height``.

        Raises:
            ValueError: If the size is not supported or max_depth is out of range.
        """
        self.scene = scene
        self.camera = camera
        self.max_depth = check_max_depth(max_depth)
        self.workers = workers
        self.rng_factory = rng_factory
        self._size = (width, height)
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        return self._size[0]

    @property
    def height(self) -> int:
        return self._size[1]

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated since the last reset."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard the accumulated samples, keeping the image size."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the image size; accumulated samples are discarded."""
        setup_render_target(width, height)
        self._size = (width, height)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add ``num_samples`` samples per pixel in batches.

        Args:
            num_samples: Samples per pixel to add on top of the current ones.
            batch_size: Samples per pixel traced between two callbacks.
            callback: Called as ``callback(current, target)`` after each batch.
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Iterator[tuple[int, int]]:
        """Generator form of ``render``.

        Yields:
            ``(current, target)`` sample counts after each batch. The last
            batch may be smaller than ``batch_size``.

        Raises:
            ValueError: If batch_size is not positive (on first iteration).
        """
        if num_samples <= 0:
            return
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        target = self.sample_count + num_samples
        logger.info(
            "Rendering %d spp at %dx%d (batch %d, max depth %d)",
            num_samples,
            self.width,
            self.height,
            batch_size,
            self.max_depth,
        )
        while self.sample_count < target:
            render_image(
                self.scene,
                self.camera,
                num_samples=min(batch_size, target - self.sample_count),
                max_depth=self.max_depth,
                workers=self.workers,
                rng_factory=self.rng_factory,
            )
            yield self.sample_count, target

    # =========================================================================
    # Output
    # =========================================================================

    def get_image(self) -> Any:
        """The raw Taichi colour field (full preallocated size, ``[x, y]``)."""
        return get_image()

    def get_linear_image_numpy(self) -> npt.NDArray[np.float32]:
        """Unclamped radiance as an (height, width, 3) float32 array."""
        return get_linear_image_numpy()

    def get_image_numpy(self, gamma: Gamma = 1.0) -> npt.NDArray[np.float32]:
        """Radiance clipped to [0, 1] and encoded with ``gamma``."""
        return apply_gamma(np.clip(get_linear_image_numpy(), 0.0, 1.0), gamma)

    def get_image_uint8(self, gamma: Gamma = "srgb") -> npt.NDArray[np.uint8]:
        return image_to_uint8(get_linear_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str | Path, gamma: Gamma = "srgb") -> None:
        """Write the current image to an 8-bit file (sRGB by default)."""
        save_png_from_array(get_linear_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer({self.width}x{self.height}, "
            f"samples={self.sample_count}, max_depth={self.max_depth})"
        )
