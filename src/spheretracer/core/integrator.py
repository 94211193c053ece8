"""Path tracing integrator for Monte Carlo light transport.

This module evaluates the radiance carried along a camera path and
accumulates per-pixel estimates into a render target.

The estimator is the classic recursive one, unrolled into a loop:

    radiance(ray, depth) =
        background(ray)                                  on a miss
        attenuation * radiance(scattered, depth + 1)     on a hit, depth < 50
        black                                            otherwise

The throughput (product of attenuations) is multiplied in path order and
the path stops at the first miss, absorption, or at the 51st hit. There is
no Russian roulette: the depth cap is a hard termination bound.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Sky gradient background for escaped rays
    - One random stream per pixel so kernels can run pixels in parallel
    - Progressive sample accumulation for convergence

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.core.integrator import render_image, setup_render_target
    >>> from src.spheretracer.scene.random_spheres import create_random_scene
    >>> from src.spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=1)
    >>> setup_camera(camera)
    >>> setup_render_target(300, 200)
    >>> render_image(num_samples=10)
"""

import logging

import numpy as np
import taichi as ti
import taichi.math as tm

from src.spheretracer.camera.thin_lens import get_ray_jittered
from src.spheretracer.core.ray import unit_vector
from src.spheretracer.core.sampler import RAY_STREAM, pixel_stream
from src.spheretracer.materials.dielectric import (
    get_dielectric_ior,
    scatter_dielectric,
)
from src.spheretracer.materials.lambertian import (
    get_lambertian_albedo,
    scatter_lambertian,
)
from src.spheretracer.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from src.spheretracer.scene.intersection import intersect_scene
from src.spheretracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Hits at this depth return black without scattering
MAX_DEPTH = 50

# Query interval for every ray; T_MIN suppresses self-intersection (acne)
T_MIN = 0.001
T_MAX = tm.inf

# Background gradient endpoints
WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Running average of the samples of each pixel
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Make a width x height region of the preallocated buffers active and zero it.

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _sample_count.fill(0)


def release_render_target() -> None:
    """Clear the buffers and mark the render target as not set up."""
    clear_render_target()
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the material's type.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The outward unit normal at the hit point.
        stream: The random stream of the current pixel.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material ID absorbs the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(albedo, normal, stream)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Vertical white-to-sky-blue gradient seen by escaped rays."""
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * WHITE + t * SKY_BLUE


@ti.func
def radiance(ray_origin: vec3, ray_direction: vec3, stream: ti.i32):
    """Estimate the radiance arriving along a ray.

    Args:
        ray_origin: The ray origin.
        ray_direction: The ray direction (need not be normalized).
        stream: The random stream for material draws.

    Returns:
        A tuple (color, depth) where depth is the number of scatter events
        on the path.
    """
    origin = ray_origin
    direction = ray_direction

    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    depth = 0

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(MAX_DEPTH + 1):
        if active == 1:
            hit_record = intersect_scene(origin, direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background_color(direction)
                active = 0
            elif depth >= MAX_DEPTH:
                # Depth cap: black, without consuming scatter draws
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id, direction, hit_record.normal, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = hit_record.point
                    direction = scattered_direction
                    depth += 1

    return color, depth


@ti.func
def trace_path(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
) -> vec3:
    """Trace one jittered camera path through a pixel on the pixel's stream.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        The estimated radiance (RGB) for this path sample.
    """
    stream = pixel_stream(pixel_i, pixel_j)
    ray = get_ray_jittered(pixel_i, pixel_j, width, height, stream)
    color, _ = radiance(ray.origin, ray.direction, stream)
    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32):
    """Render one sample per pixel and fold it into the running average."""
    for i, j in ti.ndrange(width, height):
        color = trace_path(i, j, width, height)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _sample_count[i, j] += 1
        n = _sample_count[i, j]

        # Running average: avg_n = avg_{n-1} + (x_n - avg_{n-1}) / n
        _color_buffer[i, j] += (color - _color_buffer[i, j]) / ti.cast(n, ti.f32)


@ti.kernel
def _render_single_pixel(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> vec3:
    return trace_path(pixel_i, pixel_j, width, height)


# Result slots for single-ray tracing from Python
_trace_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_trace_depth = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_single_ray(
    ox: ti.f32,
    oy: ti.f32,
    oz: ti.f32,
    dx: ti.f32,
    dy: ti.f32,
    dz: ti.f32,
):
    color, depth = radiance(vec3(ox, oy, oz), vec3(dx, dy, dz), RAY_STREAM)
    _trace_color[None] = color
    _trace_depth[None] = depth


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
) -> tuple[tuple[float, float, float], int]:
    """Evaluate the radiance along one ray against the current scene.

    Material draws come from RAY_STREAM, which no pixel owns, so calls
    between render_image() batches leave the image's samples unchanged.

    Args:
        origin: Ray origin as (x, y, z).
        direction: Ray direction as (x, y, z); must not be zero.

    Returns:
        A tuple (color, depth): the RGB radiance and the number of scatter
        events on the path.

    Raises:
        ValueError: If the direction is the zero vector.
    """
    if direction[0] == 0.0 and direction[1] == 0.0 and direction[2] == 0.0:
        raise ValueError("Ray direction must not be the zero vector")

    _trace_single_ray(
        origin[0], origin[1], origin[2], direction[0], direction[1], direction[2]
    )
    color = _trace_color[None]
    return (float(color[0]), float(color[1]), float(color[2])), int(_trace_depth[None])


def render_sample(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Trace one path through pixel (i, j) and return its RGB without storing it.

    The pixel's stream advances exactly as it would in render_image(), so
    interleaving the two changes later samples.

    Raises:
        RuntimeError: If no render target is active.
        ValueError: If the pixel lies outside the render target.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) is outside {width}x{height}")

    color = _render_single_pixel(pixel_i, pixel_j, width, height)
    return (float(color[0]), float(color[1]), float(color[2]))


def render_image(num_samples: int = 1) -> None:
    """Add num_samples paths per pixel to the running averages.

    Repeated calls keep refining the same image until the target is
    cleared or set up again.

    Raises:
        RuntimeError: If no render target is active.
        ValueError: If num_samples is negative.
    """
    _check_render_target_initialized()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")

    width, height = get_image_dimensions()
    logger.debug("Rendering %d spp at %dx%d", num_samples, width, height)

    for _ in range(num_samples):
        _render_one_spp(width, height)


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    return int(_sample_count[0, 0])


def get_normalized_image_numpy() -> np.ndarray:
    """Linear pixel averages clipped to [0, 1], float32 of shape (height, width, 3).

    Row 0 of the result is the top of the image; gamma is applied at export.

    Raises:
        RuntimeError: If no render target is active.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    averages = _color_buffer.to_numpy()[:width, :height]

    # Buffer is indexed [i, j] with j = 0 at the bottom
    rows = np.flipud(averages.swapaxes(0, 1))
    return np.clip(rows, 0.0, 1.0).astype(np.float32)
