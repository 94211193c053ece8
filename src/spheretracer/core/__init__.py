"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure, vector utilities, reflection/refraction helpers
    sampler: Per-pixel random streams with deterministic seeding
    integrator: Radiance evaluation, render target and rendering kernels
    progressive: Batch/progressive rendering wrapper around the integrator

The integrator evaluates the path-tracing estimator with a hard bounce limit
(50) and a sky-gradient background. Every pixel draws from its own random
stream so kernels can run pixels in parallel.

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    MAX_REJECTION_ATTEMPTS,
    Ray,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    random_in_unit_disk,
    random_in_unit_sphere,
    ray_at,
    reflect,
    refract,
    schlick,
    unit_vector,
    vec3,
)
from .sampler import (
    DEFAULT_SEED,
    MAX_STREAMS,
    RAY_STREAM,
    clear_fixed_random,
    draw_uniform,
    get_seed,
    is_fixed_random,
    pixel_stream,
    seed_streams,
    set_fixed_random,
    uniform,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import directly from src.spheretracer.core.integrator or
# src.spheretracer.core.progressive when needed.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick",
    "random_in_unit_sphere",
    "random_in_unit_disk",
    "MAX_REJECTION_ATTEMPTS",
    "DEFAULT_SEED",
    "MAX_STREAMS",
    "RAY_STREAM",
    "uniform",
    "pixel_stream",
    "seed_streams",
    "get_seed",
    "set_fixed_random",
    "clear_fixed_random",
    "is_fixed_random",
    "draw_uniform",
]
