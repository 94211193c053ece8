"""Image export utilities for rendered images.

This module turns the linear averages of the render target into 8-bit
display values and writes them to disk.

Display conversion: clip to [0, 1], apply ``value ** (1 / gamma)`` (gamma
2.0 is a square root), then quantize with ``floor(255.99 * value)``.

Supported formats:
    - PPM (plain-text P3, one "r g b" triple per line, rows top to bottom)
    - PNG (8-bit RGB via Pillow)

Example:
    >>> from src.spheretracer.output.export import save_image
    >>> from src.spheretracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(300, 200)
    >>> renderer.render(10)
    >>> save_image(renderer.get_image_numpy(), "output.ppm")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

DEFAULT_GAMMA = 2.0

SUPPORTED_SUFFIXES = (".ppm", ".png")


def _check_rgb(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def to_display_uint8(
    image: npt.NDArray[np.floating],
    gamma: float = DEFAULT_GAMMA,
) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to gamma-corrected 8-bit values.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Display gamma. Must be positive.

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If gamma is not positive or the image is not RGB.
    """
    if gamma <= 0.0:
        raise ValueError(f"gamma must be positive, got {gamma}")
    _check_rgb(image)

    linear = np.clip(image.astype(np.float64), 0.0, 1.0)
    corrected = np.power(linear, 1.0 / gamma)
    return np.floor(255.99 * corrected).astype(np.uint8)


def format_ppm(image_uint8: npt.NDArray[np.uint8]) -> str:
    """Format an 8-bit image as plain-text PPM (P3).

    Args:
        image_uint8: Image of shape (H, W, 3); row 0 is the top row.

    Returns:
        The file contents: header ``P3\\n{w} {h}\\n255\\n`` followed by one
        ``r g b`` line per pixel.
    """
    _check_rgb(image_uint8)
    height, width, _ = image_uint8.shape

    lines = [f"P3\n{width} {height}\n255"]
    for r, g, b in image_uint8.reshape(-1, 3).tolist():
        lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def save_ppm(image_uint8: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image as a plain-text PPM file."""
    Path(filepath).write_text(format_ppm(image_uint8), encoding="ascii")


def save_png(image_uint8: npt.NDArray[np.uint8], filepath: str | Path) -> None:
    """Write an 8-bit image as a PNG file using Pillow."""
    _check_rgb(image_uint8)
    pil_image = PILImage.fromarray(np.ascontiguousarray(image_uint8))
    pil_image.save(filepath)


def save_image(
    image: npt.NDArray[np.floating],
    filepath: str | Path,
    gamma: float = DEFAULT_GAMMA,
) -> Path:
    """Gamma-correct a linear image and save it, choosing the format by suffix.

    Args:
        image: Linear image array of shape (H, W, 3), row 0 at the top.
        filepath: Output path ending in .ppm or .png.
        gamma: Display gamma (default 2.0).

    Returns:
        The path written.

    Raises:
        ValueError: If the suffix is not supported.
    """
    path = Path(filepath)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported image format '{path.suffix}'; expected one of {SUPPORTED_SUFFIXES}"
        )

    image_uint8 = to_display_uint8(image, gamma=gamma)
    if suffix == ".ppm":
        save_ppm(image_uint8, path)
    else:
        save_png(image_uint8, path)

    logger.info("Saved %dx%d image to %s", image_uint8.shape[1], image_uint8.shape[0], path)
    return path


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
