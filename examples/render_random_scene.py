#!/usr/bin/env python3
"""Render the random sphere field scene.

This script builds the random sphere field (or loads a scene from JSON),
sets up the thin-lens camera, renders with progressive refinement and saves
the result as PPM or PNG.

Usage:
    python -m examples.render_random_scene [options]

Options:
    --width WIDTH       Image width in pixels (default: 300)
    --height HEIGHT     Image height in pixels (default: 200)
    --samples SAMPLES   Number of samples per pixel (default: 10)
    --seed SEED         Seed for scene layout and random streams (default: 42)
    --output OUTPUT     Output file path, .ppm or .png (default: random_scene.ppm)
    --batch-size SIZE   Samples per progress update (default: 1)
    --scene PATH        Load the scene from a JSON file instead of generating it
    --save-scene PATH   Write the scene (and camera) to a JSON file
    --arch {cpu,gpu}    Taichi backend (default: cpu)
    --quiet             Only log warnings and errors
    --verbose           Log debug messages

Example:
    python -m examples.render_random_scene --width 600 --height 400 --samples 50
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_random_scene")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the random sphere field scene.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=300,
        help="Image width in pixels (default: 300)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=200,
        help="Image height in pixels (default: 200)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=10,
        help="Number of samples per pixel (default: 10)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Seed for the scene layout and the random streams (default: 42)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="random_scene.ppm",
        help="Output file path, .ppm or .png (default: random_scene.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=1,
        help="Samples per progress update (default: 1)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="Load the scene from a JSON file instead of generating it",
    )
    parser.add_argument(
        "--save-scene",
        type=str,
        default=None,
        help="Write the scene and camera to a JSON file",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu); gpu needs f64 support, so not Metal",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )
    return parser.parse_args(argv)


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Configure root logging for the command line."""
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


def render_random_scene(
    width: int = 300,
    height: int = 200,
    num_samples: int = 10,
    seed: int = 42,
    output_path: str = "random_scene.ppm",
    batch_size: int = 1,
    scene_path: str | None = None,
    save_scene_path: str | None = None,
) -> Path:
    """Render the random sphere field (or a scene file) and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        num_samples: Number of samples per pixel.
        seed: Seed for the scene layout and the per-pixel random streams.
        output_path: Output file path (.ppm or .png).
        batch_size: Number of samples to render between progress updates.
        scene_path: Optional JSON scene to load instead of generating one.
        save_scene_path: Optional path to write the scene as JSON.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.spheretracer.camera.thin_lens import ThinLensCamera, setup_camera
    from src.spheretracer.core.progressive import ProgressiveRenderer
    from src.spheretracer.scene.manager import SceneManager
    from src.spheretracer.scene.random_spheres import (
        create_default_camera,
        create_random_scene,
    )

    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    aspect_ratio = width / height

    if scene_path is not None:
        logger.info("Loading scene from %s", scene_path)
        data = json.loads(Path(scene_path).read_text(encoding="utf-8"))
        scene = SceneManager()
        scene.from_dict(data)
        if "camera" in data:
            camera = ThinLensCamera(**{**data["camera"], "aspect_ratio": aspect_ratio})
        else:
            camera = create_default_camera(aspect_ratio)
    else:
        logger.info("Creating random scene (seed=%d)", seed)
        scene, camera = create_random_scene(seed=seed, aspect_ratio=aspect_ratio)

    if save_scene_path is not None:
        data = {"camera": dataclasses.asdict(camera), **scene.to_dict()}
        Path(save_scene_path).write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.info("Saved scene to %s", save_scene_path)

    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height, seed=seed)
    logger.info("Rendering %dx%d at %d samples per pixel", width, height, num_samples)

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        logger.info("Progress: %d/%d samples (%.1f spp/s)", current, target, samples_per_sec)

    renderer.render(
        num_samples=num_samples,
        batch_size=batch_size,
        callback=progress_callback,
    )

    output_file = renderer.save_image(output_path)
    logger.info("Saved to %s in %.2fs", output_file.absolute(), time.time() - start_time)
    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    ti.init(arch=ti.gpu if args.arch == "gpu" else ti.cpu)

    try:
        render_random_scene(
            width=args.width,
            height=args.height,
            num_samples=args.samples,
            seed=args.seed,
            output_path=args.output,
            batch_size=args.batch_size,
            scene_path=args.scene,
            save_scene_path=args.save_scene,
        )
        return 0
    except Exception:
        logger.exception("Rendering failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
