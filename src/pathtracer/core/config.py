"""Render configuration.

``RenderConfig`` collects the settings of one render job (image size, sample
budget, recursion depth, parallelism and output options) and validates them
on construction, so an invalid job fails before any Taichi field is touched.

Example:
    >>> from src.pathtracer.core.config import RenderConfig
    >>> config = RenderConfig.from_dict({"width": 320, "height": 240, "samples": 16})
    >>> config.width, config.samples
    (320, 16)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from typing import Any

from src.pathtracer.core.integrator import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from src.pathtracer.core.sampling import check_max_depth

TONE_MAP_METHODS = ("none", "reinhard", "exposure")


@dataclass(frozen=True)
class RenderConfig:
    """Settings for a render job.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Samples per pixel.
        max_depth: Maximum number of nested bounces per path, at most
            ``max_supported_depth()``.
        workers: Thread pool size, None for the executor default.
        batch_size: Samples per progress update.
        output: Output PNG path.
        tone_map: Tone mapping method ("none", "reinhard", "exposure").
        exposure: Exposure for the exposure tone mapper.
    """

    width: int = 256
    height: int = 256
    samples: int = 64
    max_depth: int = 10
    workers: int | None = None
    batch_size: int = 8
    output: str = "render.png"
    tone_map: str = "none"
    exposure: float = 1.0

    def __post_init__(self) -> None:
        if not 0 < self.width <= MAX_IMAGE_WIDTH:
            raise ValueError(f"width must be in [1, {MAX_IMAGE_WIDTH}], got {self.width}")
        if not 0 < self.height <= MAX_IMAGE_HEIGHT:
            raise ValueError(f"height must be in [1, {MAX_IMAGE_HEIGHT}], got {self.height}")
        if self.samples <= 0:
            raise ValueError(f"samples must be positive, got {self.samples}")
        check_max_depth(self.max_depth)
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive or None, got {self.workers}")
        if self.batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")
        if self.tone_map not in TONE_MAP_METHODS:
            raise ValueError(f"tone_map must be one of {TONE_MAP_METHODS}, got {self.tone_map!r}")
        if self.exposure <= 0.0:
            raise ValueError(f"exposure must be positive, got {self.exposure}")

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, strict: bool = True) -> RenderConfig:
        """Build a config from a mapping.

        Args:
            data: Setting names to values. Missing settings use defaults.
            strict: If True, unknown keys raise; otherwise they are ignored.

        Raises:
            ValueError: On unknown keys (strict mode) or invalid values.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown and strict:
            raise ValueError(f"Unknown render settings: {', '.join(unknown)}")
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides: Any) -> RenderConfig:
        """Copy with the given settings replaced; None values are skipped."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
