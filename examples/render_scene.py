#!/usr/bin/env python3
"""Render a demo scene or a JSON scene file to PNG.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene NAME        Demo scene: sphere or showcase (default: sphere)
    --scene-file PATH   Load the scene (and its camera, if stored) from a JSON file
    --config PATH       JSON file with render settings (RenderConfig keys)
    --width WIDTH       Image width in pixels
    --height HEIGHT     Image height in pixels
    --samples SAMPLES   Number of samples per pixel
    --max-depth DEPTH   Maximum number of nested bounces
    --workers N         Thread pool size
    --batch-size SIZE   Samples per progress update
    --output OUTPUT     Output file path
    --tone-map METHOD   none, reinhard or exposure
    --exposure VALUE    Exposure for the exposure tone mapper
    --seed SEED         Seed the per-row random sources for reproducible output
    --show              Show a preview figure when done
    --verbose / --quiet Logging verbosity

Example:
    python -m examples.render_scene --scene showcase --width 256 --height 256 --samples 32
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

import numpy as np
import taichi as ti

logger = logging.getLogger("render_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--scene",
        choices=("sphere", "showcase"),
        default="sphere",
        help="Demo scene to render (default: sphere)",
    )
    source.add_argument("--scene-file", type=Path, help="JSON scene description")
    parser.add_argument("--config", type=Path, help="JSON file with render settings")
    parser.add_argument("--width", type=int, help="Image width in pixels")
    parser.add_argument("--height", type=int, help="Image height in pixels")
    parser.add_argument("--samples", type=int, help="Number of samples per pixel")
    parser.add_argument("--max-depth", type=int, help="Maximum number of nested bounces")
    parser.add_argument("--workers", type=int, help="Thread pool size")
    parser.add_argument("--batch-size", type=int, help="Samples per progress update")
    parser.add_argument("--output", type=str, help="Output file path")
    parser.add_argument(
        "--tone-map",
        choices=("none", "reinhard", "exposure"),
        help="Tone mapping method",
    )
    parser.add_argument("--exposure", type=float, help="Exposure for the exposure tone mapper")
    parser.add_argument("--seed", type=int, help="Seed for reproducible renders")
    parser.add_argument("--show", action="store_true", help="Show a preview figure when done")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return parser.parse_args(argv)


def configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING if quiet else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def seeded_rng_factory(seed: int):
    """Factory handing out independent generators spawned from one seed."""
    seeds = np.random.SeedSequence(seed)

    def factory() -> np.random.Generator:
        return np.random.default_rng(seeds.spawn(1)[0])

    return factory


def render_scene(args: argparse.Namespace) -> Path:
    """Render the selected scene and save it to file.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.core.config import RenderConfig
    from src.pathtracer.core.progressive import ProgressiveRenderer
    from src.pathtracer.preview.display import show_preview
    from src.pathtracer.preview.export import save_png
    from src.pathtracer.scene.manager import load_scene_file
    from src.pathtracer.scene.showcase import SCENES, default_camera

    settings = {}
    if args.config is not None:
        with args.config.open("r", encoding="utf-8") as f:
            settings = json.load(f)
    config = RenderConfig.from_dict(settings).with_overrides(
        width=args.width,
        height=args.height,
        samples=args.samples,
        max_depth=args.max_depth,
        workers=args.workers,
        batch_size=args.batch_size,
        output=args.output,
        tone_map=args.tone_map,
        exposure=args.exposure,
    )

    if args.scene_file is not None:
        manager = load_scene_file(args.scene_file)
        camera = manager.camera if manager.camera is not None else default_camera()
    else:
        manager, camera = SCENES[args.scene]()
    scene = manager.build()

    rng_factory = seeded_rng_factory(args.seed) if args.seed is not None else None
    renderer = ProgressiveRenderer(
        scene,
        camera,
        config.width,
        config.height,
        max_depth=config.max_depth,
        workers=config.workers,
        rng_factory=rng_factory,
    )

    start_time = time.perf_counter()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.perf_counter() - start_time
        rate = current / elapsed if elapsed > 0 else 0.0
        logger.info("Progress: %d/%d samples (%.1f spp/s)", current, target, rate)

    renderer.render(
        num_samples=config.samples,
        batch_size=config.batch_size,
        callback=progress_callback,
    )

    output_file = Path(config.output)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    save_png(
        renderer,
        output_file,
        tone_map=config.tone_map,
        gamma="srgb",
        exposure=config.exposure,
    )
    logger.info("Total time: %.2fs", time.perf_counter() - start_time)

    if args.show:
        show_preview(renderer, tone_map=config.tone_map, exposure=config.exposure)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.verbose, args.quiet)

    # Shading runs in Python; Taichi only holds the accumulation buffer
    ti.init(arch=ti.cpu)

    try:
        render_scene(args)
        return 0
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
