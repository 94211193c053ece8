"""Stateful front end to the integrator for refining an image in batches.

The renderer seeds the per-pixel random streams whenever it (re)starts an
image, so the same seed and sample count always give the same pixels.
Progress is reported per batch, either to a callback or by iterating
render_progressive().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.core.progressive import ProgressiveRenderer
    >>> from src.spheretracer.scene.random_spheres import create_random_scene
    >>> from src.spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=1)
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(300, 200, seed=7)
    >>> renderer.render(10)
    >>> renderer.save_image("random_scene.ppm")
"""

import logging
import time
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from src.spheretracer.core.integrator import (
    clear_render_target,
    get_normalized_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from src.spheretracer.core.sampler import DEFAULT_SEED, seed_streams
from src.spheretracer.output.export import DEFAULT_GAMMA, save_image, to_display_uint8

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Owns the active render target and the stream seed.

    Only one renderer is meaningful at a time: the buffers it writes are the
    integrator's module-level Taichi fields.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        seed: Seed of the per-pixel random streams.
    """

    def __init__(self, width: int, height: int, seed: int = DEFAULT_SEED) -> None:
        """Set up a width x height target and seed the streams.

        Raises:
            ValueError: If a dimension is not positive or above 2048.
        """
        self._width = width
        self._height = height
        self._seed = seed
        setup_render_target(width, height)
        seed_streams(seed)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulator and re-seed the streams.

        A render after reset() reproduces the render after construction.
        """
        clear_render_target()
        seed_streams(self._seed)

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        seed_streams(self._seed)

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add num_samples samples per pixel, reporting after every batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Raises:
            ValueError: If batch_size is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        start_samples = self.sample_count
        target_samples = start_samples + num_samples
        start_time = time.perf_counter()

        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch)
            remaining -= batch
            logger.debug("Rendered %d/%d spp", self.sample_count, target_samples)
            yield (self.sample_count, target_samples)

        logger.info(
            "Rendered %d spp at %dx%d in %.2fs",
            num_samples,
            self._width,
            self._height,
            time.perf_counter() - start_time,
        )

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Get the linear rendered image, shape (height, width, 3), clipped to [0, 1]."""
        return get_normalized_image_numpy()

    def get_image_uint8(self, gamma: float = DEFAULT_GAMMA) -> npt.NDArray[np.uint8]:
        """Get the gamma-corrected 8-bit image, shape (height, width, 3)."""
        return to_display_uint8(self.get_image_numpy(), gamma=gamma)

    def save_image(self, filepath: str | Path, gamma: float = DEFAULT_GAMMA) -> Path:
        """Save the rendered image as PPM or PNG, chosen by file suffix.

        Raises:
            ValueError: If the suffix is not supported.
        """
        return save_image(self.get_image_numpy(), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"seed={self.seed}, samples={self.sample_count})"
        )
