"""Integration tests for end-to-end rendering pipeline.

This module tests the complete rendering pipeline from scene creation through
final image output. It verifies that all components work together correctly
and that the output meets basic quality criteria.

Tests are designed to be fast (low resolution, few samples) while still
exercising the full pipeline.

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pytest

if TYPE_CHECKING:
    import numpy.typing as npt


def _render_random_scene(width: int = 48, height: int = 32, samples: int = 2) -> npt.NDArray:
    from src.spheretracer.camera.thin_lens import setup_camera
    from src.spheretracer.core.progressive import ProgressiveRenderer
    from src.spheretracer.scene.random_spheres import create_random_scene

    _, camera = create_random_scene(seed=1, aspect_ratio=width / height)
    setup_camera(camera)

    renderer = ProgressiveRenderer(width, height, seed=1)
    renderer.render(num_samples=samples)
    assert renderer.sample_count == samples
    return renderer.get_image_numpy()


class TestRandomSceneIntegration:
    """Integration tests for the random sphere field."""

    def test_end_to_end_image_is_valid(self) -> None:
        image = _render_random_scene()

        assert image.shape == (32, 48, 3)
        assert np.isfinite(image).all()
        assert (image >= 0.0).all() and (image <= 1.0).all()
        # Sky at the top, geometry below: the image is not uniform
        assert image.std() > 0.01

    def test_top_row_is_bright_sky(self) -> None:
        """Test the camera looks slightly down, so the top rows see sky."""
        image = _render_random_scene()
        top = image[0]
        assert top[:, 2].mean() > 0.8

    def test_render_is_reproducible(self) -> None:
        first = _render_random_scene().copy()
        second = _render_random_scene()
        np.testing.assert_array_equal(first, second)

    def test_more_samples_reduce_noise(self) -> None:
        """Test a higher sample count moves the image closer to a reference."""
        from src.spheretracer.output.export import compute_rmse

        reference = _render_random_scene(24, 16, samples=32).copy()
        coarse = _render_random_scene(24, 16, samples=1).copy()
        finer = _render_random_scene(24, 16, samples=8).copy()

        assert compute_rmse(finer, reference) < compute_rmse(coarse, reference)


class TestCommandLine:
    """Tests for the render_random_scene example script."""

    def test_parse_args_defaults(self) -> None:
        from examples.render_random_scene import parse_args

        args = parse_args([])
        assert (args.width, args.height, args.samples) == (300, 200, 10)
        assert args.seed == 42
        assert args.output == "random_scene.ppm"
        assert args.scene is None and args.save_scene is None

    def test_quiet_and_verbose_are_exclusive(self) -> None:
        from examples.render_random_scene import parse_args

        with pytest.raises(SystemExit):
            parse_args(["--quiet", "--verbose"])

    @pytest.mark.parametrize("suffix", [".ppm", ".png"])
    def test_render_writes_image(self, tmp_path: Path, suffix: str) -> None:
        from PIL import Image

        from examples.render_random_scene import render_random_scene

        output = render_random_scene(
            width=30,
            height=20,
            num_samples=1,
            seed=3,
            output_path=str(tmp_path / f"scene{suffix}"),
        )

        assert output.exists()
        with Image.open(output) as image:
            assert image.size == (30, 20)

    def test_save_and_load_scene(self, tmp_path: Path) -> None:
        from examples.render_random_scene import render_random_scene

        scene_file = tmp_path / "scene.json"
        first = render_random_scene(
            width=24,
            height=16,
            num_samples=1,
            seed=9,
            output_path=str(tmp_path / "first.ppm"),
            save_scene_path=str(scene_file),
        )

        data = json.loads(scene_file.read_text())
        assert set(data) == {"camera", "materials", "spheres"}
        assert data["camera"]["vfov"] == 20.0

        # Same scene, camera and seed reproduce the same pixels
        second = render_random_scene(
            width=24,
            height=16,
            num_samples=1,
            seed=9,
            output_path=str(tmp_path / "second.ppm"),
            scene_path=str(scene_file),
        )
        assert second.read_text() == first.read_text()

    def test_invalid_dimensions(self, tmp_path: Path) -> None:
        from examples.render_random_scene import render_random_scene

        with pytest.raises(ValueError):
            render_random_scene(width=0, height=10, output_path=str(tmp_path / "x.ppm"))
