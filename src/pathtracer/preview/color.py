"""Colour pipeline from accumulated radiance to display values.

The integrator produces unbounded linear radiance. Before it can be shown or
written to an 8-bit file it goes through three optional stages:

    radiance --tone map--> [0, 1) --transfer curve--> encoded --clip--> [0, 1]

Tone mapping compresses HDR values (Reinhard ``L / (1 + L)`` or exposure
``1 - exp(-L * exposure)``). The transfer curve is either the piecewise sRGB
curve (``gamma="srgb"``) or a plain power law ``c ** (1 / gamma)``.

Example:
    >>> import numpy as np
    >>> from src.pathtracer.preview.color import process_image_for_display
    >>> hdr = np.array([[[0.18, 2.0, 10.0]]], dtype=np.float32)
    >>> ldr = process_image_for_display(hdr, tone_map="reinhard", gamma="srgb")
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Literal, Union

import numpy as np
import numpy.typing as npt

ToneMapMethod = Literal["none", "reinhard", "exposure"]

# A power-law exponent, or "srgb" for the piecewise curve
Gamma = Union[float, Literal["srgb"]]

# Breakpoints between the linear toe and the power segment
SRGB_LINEAR_THRESHOLD = 0.0031308
SRGB_ENCODED_THRESHOLD = 0.04045

FloatImage = npt.NDArray[np.float32]


def _saturate_ends(c: npt.NDArray[np.float64], curve: npt.NDArray[np.float64]) -> FloatImage:
    curve = np.where(c <= 0.0, 0.0, curve)
    curve = np.where(c >= 1.0, 1.0, curve)
    return curve.astype(np.float32)


def linear_to_srgb(values: npt.ArrayLike) -> FloatImage:
    """Encode linear intensities with the sRGB transfer curve.

    Inputs at or below 0 give 0 and inputs at or above 1 give 1, so the
    result is always a valid display value.
    """
    c = np.asarray(values, dtype=np.float64)
    with np.errstate(invalid="ignore"):
        power = 1.055 * np.power(np.clip(c, 0.0, None), 1.0 / 2.4) - 0.055
    return _saturate_ends(c, np.where(c <= SRGB_LINEAR_THRESHOLD, 12.92 * c, power))


def srgb_to_linear(values: npt.ArrayLike) -> FloatImage:
    """Inverse of ``linear_to_srgb`` on [0, 1], saturating outside it."""
    c = np.asarray(values, dtype=np.float64)
    power = np.power((np.clip(c, 0.0, None) + 0.055) / 1.055, 2.4)
    return _saturate_ends(c, np.where(c <= SRGB_ENCODED_THRESHOLD, c / 12.92, power))


def tone_map_reinhard(image: FloatImage) -> FloatImage:
    """Reinhard operator ``L / (1 + L)``; negatives are treated as black."""
    radiance = np.maximum(image, 0.0)
    return (radiance / (1.0 + radiance)).astype(np.float32)


def tone_map_exposure(image: FloatImage, exposure: float = 1.0) -> FloatImage:
    """Film-like response ``1 - exp(-L * exposure)``.

    Args:
        image: Linear radiance, any shape.
        exposure: Sensitivity; larger values brighten mid-tones.
    """
    radiance = np.maximum(image, 0.0)
    return (1.0 - np.exp(-radiance * exposure)).astype(np.float32)


_TONE_MAPPERS: dict[str, Callable[[FloatImage, float], FloatImage]] = {
    "none": lambda image, exposure: image,
    "reinhard": lambda image, exposure: tone_map_reinhard(image),
    "exposure": tone_map_exposure,
}


def apply_gamma(image: FloatImage, gamma: Gamma = 2.2) -> FloatImage:
    """Encode linear values for display.

    Args:
        image: Linear values, expected in [0, 1].
        gamma: ``"srgb"`` for the piecewise curve, or a positive power-law
            exponent. ``1.0`` returns the input unchanged.

    Raises:
        ValueError: For any other string or a non-positive exponent.
    """
    if isinstance(gamma, str):
        if gamma != "srgb":
            raise ValueError(f"Unknown gamma curve: {gamma}")
        return linear_to_srgb(image)
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    if gamma == 1.0:
        return image
    # Negative inputs would produce NaN under a fractional power
    return np.power(np.clip(image, 0.0, 1.0), 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: FloatImage,
    tone_map: ToneMapMethod = "none",
    gamma: Gamma = 2.2,
    exposure: float = 1.0,
) -> FloatImage:
    """Run the full pipeline: tone map, transfer curve, clip to [0, 1].

    The input array is never modified.

    Args:
        image: Linear radiance of shape (H, W, 3).
        tone_map: "none", "reinhard" or "exposure".
        gamma: Transfer curve, see ``apply_gamma``.
        exposure: Only used by the exposure tone mapper.

    Raises:
        ValueError: For an unknown tone mapper or gamma.
    """
    try:
        mapper = _TONE_MAPPERS[tone_map]
    except KeyError:
        raise ValueError(f"Unknown tone mapping method: {tone_map}") from None
    mapped = mapper(np.array(image, dtype=np.float32, copy=True), exposure)
    return np.clip(apply_gamma(mapped, gamma), 0.0, 1.0).astype(np.float32)
