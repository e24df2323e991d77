"""Camera module for view and ray generation.

Components:
    pinhole: Pinhole (perspective) camera with a look-at frame

Pixel coordinates use image conventions: x to the right, y downward, with
fractional values addressing sub-pixel positions for anti-aliasing.
"""

from .pinhole import PinholeCamera, look_at_basis, pixel_to_dir

__all__ = [
    "PinholeCamera",
    "pixel_to_dir",
    "look_at_basis",
]
