"""Preview module for output and visualization.

Components:
    color: Tone mapping, gamma and the sRGB transfer curves
    export: 8-bit quantization and PNG export via Pillow
    display: Static Matplotlib figures of the current render

Example:
    >>> from src.pathtracer.preview import save_png
    >>> renderer.render(64)
    >>> save_png(renderer, "output.png", tone_map="reinhard")
"""

from src.pathtracer.preview.color import (
    Gamma,
    ToneMapMethod,
    apply_gamma,
    linear_to_srgb,
    process_image_for_display,
    srgb_to_linear,
    tone_map_exposure,
    tone_map_reinhard,
)
from src.pathtracer.preview.display import show_comparison, show_preview
from src.pathtracer.preview.export import (
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
)

__all__ = [
    "Gamma",
    "ToneMapMethod",
    "linear_to_srgb",
    "srgb_to_linear",
    "tone_map_reinhard",
    "tone_map_exposure",
    "apply_gamma",
    "process_image_for_display",
    "image_to_uint8",
    "save_png",
    "save_png_from_array",
    "compute_rmse",
    "show_preview",
    "show_comparison",
]
