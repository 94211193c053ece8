"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Reset scene, materials, render target and random streams around each test."""
    # Import here so Taichi is initialized before any field is declared
    from src.spheretracer.core.integrator import release_render_target
    from src.spheretracer.core.sampler import DEFAULT_SEED, clear_fixed_random, seed_streams
    from src.spheretracer.materials.dielectric import clear_dielectric_materials
    from src.spheretracer.materials.lambertian import clear_lambertian_materials
    from src.spheretracer.materials.metal import clear_metal_materials
    from src.spheretracer.scene.intersection import clear_scene
    from src.spheretracer.scene.manager import reset_material_table

    def _clear_all():
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        reset_material_table()
        release_render_target()
        clear_fixed_random()
        seed_streams(DEFAULT_SEED)

    _clear_all()

    yield

    _clear_all()
