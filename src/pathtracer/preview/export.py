"""8-bit conversion and PNG output.

Rendered radiance is quantized after the colour pipeline: each channel of the
display value is scaled by 255 and rounded to the nearest integer. Files are
written with Pillow; the format follows the file extension, PNG being the
one used throughout the project.

Example:
    >>> from src.pathtracer.preview.export import save_png
    >>> save_png(renderer, "renders/showcase.png", tone_map="reinhard")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from src.pathtracer.preview.color import Gamma, ToneMapMethod, process_image_for_display

if TYPE_CHECKING:
    from src.pathtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map: ToneMapMethod = "none",
    gamma: Gamma = "srgb",
    exposure: float = 1.0,
) -> npt.NDArray[np.uint8]:
    """Quantize linear radiance of shape (H, W, 3) to 8-bit display values."""
    display = process_image_for_display(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    return np.rint(display * 255.0).astype(np.uint8)


def save_png_from_array(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: Gamma = "srgb",
    exposure: float = 1.0,
) -> None:
    """Write linear radiance to an 8-bit RGB file.

    Args:
        image: Linear radiance of shape (H, W, 3), row 0 at the top.
        filepath: Destination path; its parent directory must exist.
        tone_map: Tone mapper applied before quantization.
        gamma: Transfer curve ("srgb" or a power-law exponent).
        exposure: Exposure for the exposure tone mapper.
    """
    pixels = image_to_uint8(image, tone_map=tone_map, gamma=gamma, exposure=exposure)
    PILImage.fromarray(pixels).save(filepath)
    height, width = pixels.shape[:2]
    logger.info("Saved %dx%d image to %s", width, height, filepath)


def save_png(
    renderer: ProgressiveRenderer,
    filepath: str | Path,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: Gamma = "srgb",
    exposure: float = 1.0,
) -> None:
    """Write the renderer's accumulated image to a file.

    The unclamped radiance is passed through the tone mapper, so highlights
    brighter than 1 are compressed instead of clipped.
    """
    save_png_from_array(
        renderer.get_linear_image_numpy(),
        filepath,
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )


def compute_rmse(image_a: npt.ArrayLike, image_b: npt.ArrayLike) -> float:
    """Root mean squared difference of two equally shaped images.

    Raises:
        ValueError: If the shapes differ.
    """
    a = np.asarray(image_a, dtype=np.float64)
    b = np.asarray(image_b, dtype=np.float64)
    if a.shape != b.shape:
        raise ValueError(f"Image shapes must match: {a.shape} vs {b.shape}")
    return float(np.sqrt(np.mean(np.square(a - b))))
