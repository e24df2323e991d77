"""Static Matplotlib figures for inspecting renders.

There is no event loop here: each function draws one figure from the
renderer's current accumulation state (or from two arrays) and hands it to
``plt.show``. Matplotlib is imported lazily so headless rendering never
pulls in a GUI backend.

Example:
    >>> from src.pathtracer.preview.display import show_preview
    >>> renderer.render(16)
    >>> show_preview(renderer, tone_map="reinhard")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

from src.pathtracer.preview.color import Gamma, ToneMapMethod, process_image_for_display
from src.pathtracer.preview.export import compute_rmse

if TYPE_CHECKING:
    from src.pathtracer.core.progressive import ProgressiveRenderer


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: Gamma = "srgb",
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Show the renderer's current image in a single-axes figure.

    Args:
        renderer: Renderer whose accumulated radiance is displayed.
        tone_map: Tone mapper applied before the transfer curve.
        gamma: Transfer curve ("srgb" or a power-law exponent).
        exposure: Exposure for the exposure tone mapper.
        title: Figure title. Defaults to the sample count and tone mapper.
        figsize: Figure size in inches.
        block: Passed to ``plt.show``.
    """
    import matplotlib.pyplot as plt

    pixels = process_image_for_display(
        renderer.get_linear_image_numpy(), tone_map=tone_map, gamma=gamma, exposure=exposure
    )
    if title is None:
        title = f"{renderer.width}x{renderer.height}, {renderer.sample_count} SPP"
        if tone_map != "none":
            title = f"{title}, {tone_map}"

    _, ax = plt.subplots(figsize=figsize)
    ax.imshow(pixels, interpolation="nearest")
    ax.set_title(title)
    ax.set_axis_off()
    plt.tight_layout()
    plt.show(block=block)


def show_comparison(
    image_a: npt.NDArray[np.float32],
    image_b: npt.NDArray[np.float32],
    *,
    labels: tuple[str, str] = ("A", "B"),
    tone_map: ToneMapMethod = "none",
    gamma: Gamma = "srgb",
    diff_scale: float = 10.0,
    figsize: tuple[float, float] = (16, 6),
    block: bool = True,
) -> float:
    """Show two linear images next to their amplified absolute difference.

    Useful for checking convergence (a low-sample render against a reference)
    or the effect of a material parameter.

    Returns:
        RMSE of the two images after the display pipeline.
    """
    import matplotlib.pyplot as plt

    shown_a = process_image_for_display(image_a, tone_map=tone_map, gamma=gamma)
    shown_b = process_image_for_display(image_b, tone_map=tone_map, gamma=gamma)
    rmse = compute_rmse(shown_a, shown_b)
    difference = np.clip(
        np.abs(shown_a.astype(np.float64) - shown_b.astype(np.float64)) * diff_scale, 0.0, 1.0
    )

    panels = (
        (shown_a, labels[0]),
        (shown_b, labels[1]),
        (difference, f"|{labels[0]} - {labels[1]}| x{diff_scale:g}, RMSE {rmse:.6f}"),
    )
    _, axes = plt.subplots(1, len(panels), figsize=figsize)
    for ax, (pixels, label) in zip(axes, panels):
        ax.imshow(pixels, interpolation="nearest")
        ax.set_title(label)
        ax.set_axis_off()
    plt.tight_layout()
    plt.show(block=block)
    return rmse
