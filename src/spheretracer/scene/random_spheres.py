"""Random sphere field scene configuration.

This module builds the classic "final render" scene: a huge diffuse ground
sphere, a jittered grid of small spheres with randomly chosen materials, and
three large signature spheres (glass, diffuse brown, polished metal) in the
middle, viewed through a thin-lens camera with a small aperture.

The layout is reproducible: all draws come from one
``numpy.random.Generator`` seeded by the caller, consumed in grid order.
Per grid cell the draws are: material choice, center x jitter, center z
jitter, then the material parameters (only if the sphere is placed).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.scene.random_spheres import create_random_scene
    >>> from src.spheretracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = create_random_scene(seed=7, aspect_ratio=3.0 / 2.0)
    >>> setup_camera(camera)
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

from src.spheretracer.camera.thin_lens import ThinLensCamera
from src.spheretracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)


@dataclass
class RandomSceneParams:
    """Parameters for the random sphere field.

    Attributes:
        grid_extent: Grid cells span [-grid_extent, grid_extent) on x and z.
        small_radius: Radius of the grid spheres.
        diffuse_probability: Share of grid spheres that are diffuse.
        metal_probability: Share of grid spheres that are metal. The rest
            are glass.
        metal_fuzz: Fuzz of every grid metal sphere.
        glass_ior: Index of refraction of every glass sphere.
        clearance: Grid spheres closer than this to (4, small_radius, 0)
            are skipped to keep the metal signature sphere unobstructed.
    """

    grid_extent: int = 11
    small_radius: float = 0.2
    diffuse_probability: float = 0.8
    metal_probability: float = 0.15
    metal_fuzz: float = 0.1
    glass_ior: float = 1.5
    clearance: float = 0.9

    def __post_init__(self) -> None:
        if self.grid_extent < 0:
            raise ValueError(f"grid_extent must be non-negative, got {self.grid_extent}")
        if self.small_radius <= 0.0:
            raise ValueError(f"small_radius must be positive, got {self.small_radius}")
        if self.diffuse_probability < 0.0 or self.metal_probability < 0.0:
            raise ValueError("Material probabilities must be non-negative")
        if self.diffuse_probability + self.metal_probability > 1.0:
            raise ValueError("diffuse_probability + metal_probability must not exceed 1")


# =============================================================================
# Scene Constants
# =============================================================================

GROUND_CENTER = (0.0, -1000.0, 0.0)
GROUND_RADIUS = 1000.0
GROUND_ALBEDO = (0.5, 0.5, 0.5)

SIGNATURE_RADIUS = 1.0
GLASS_SPHERE_CENTER = (0.0, 1.0, 0.0)
DIFFUSE_SPHERE_CENTER = (-4.0, 1.0, 0.0)
DIFFUSE_SPHERE_ALBEDO = (0.4, 0.2, 0.1)
METAL_SPHERE_CENTER = (4.0, 1.0, 0.0)
METAL_SPHERE_ALBEDO = (0.7, 0.6, 0.5)
METAL_SPHERE_FUZZ = 0.0

# Camera
LOOKFROM = (13.0, 2.0, 3.0)
LOOKAT = (0.0, 0.0, 0.0)
VUP = (0.0, 1.0, 0.0)
VFOV = 20.0
APERTURE = 0.1
FOCUS_DIST = 10.0


def create_default_camera(aspect_ratio: float = 3.0 / 2.0) -> ThinLensCamera:
    """Create the camera framing the random sphere field."""
    return ThinLensCamera(
        lookfrom=LOOKFROM,
        lookat=LOOKAT,
        vup=VUP,
        vfov=VFOV,
        aspect_ratio=aspect_ratio,
        aperture=APERTURE,
        focus_dist=FOCUS_DIST,
    )


def create_random_scene(
    seed: int | None = None,
    params: RandomSceneParams | None = None,
    aspect_ratio: float = 3.0 / 2.0,
) -> tuple[SceneManager, ThinLensCamera]:
    """Create the random sphere field scene.

    The returned SceneManager owns the module-level scene storage, so any
    previously built scene is cleared.

    Args:
        seed: Seed for the layout generator. None draws fresh entropy.
        params: Optional RandomSceneParams. If None, uses the defaults.
        aspect_ratio: Width / height of the image the camera renders.

    Returns:
        A tuple of (SceneManager, ThinLensCamera).

    Example:
        >>> scene, camera = create_random_scene(seed=1)
        >>> scene.get_sphere_count() <= 1 + 22 * 22 + 3
        True
    """
    if params is None:
        params = RandomSceneParams()

    rng = np.random.default_rng(seed)
    scene = SceneManager()

    # =========================================================================
    # Ground
    # =========================================================================

    ground_mat = scene.add_lambertian_material(albedo=GROUND_ALBEDO)
    scene.add_sphere(center=GROUND_CENTER, radius=GROUND_RADIUS, material_id=ground_mat)

    # =========================================================================
    # Small spheres (jittered grid)
    # =========================================================================

    glass_mat = scene.add_dielectric_material(ior=params.glass_ior)
    metal_cutoff = params.diffuse_probability + params.metal_probability
    keep_clear = np.array([4.0, params.small_radius, 0.0])
    skipped = 0

    for a in range(-params.grid_extent, params.grid_extent):
        for b in range(-params.grid_extent, params.grid_extent):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), params.small_radius, b + 0.9 * rng.random())

            if math.dist(center, keep_clear) <= params.clearance:
                skipped += 1
                continue

            if choose_mat < params.diffuse_probability:
                albedo = tuple(float(rng.random() * rng.random()) for _ in range(3))
                scene.add_lambertian_sphere(center, params.small_radius, albedo)
            elif choose_mat < metal_cutoff:
                albedo = tuple(float(0.5 * (1.0 + rng.random())) for _ in range(3))
                scene.add_metal_sphere(center, params.small_radius, albedo, params.metal_fuzz)
            else:
                scene.add_sphere(center, params.small_radius, glass_mat)

    # =========================================================================
    # Signature spheres
    # =========================================================================

    scene.add_sphere(GLASS_SPHERE_CENTER, SIGNATURE_RADIUS, glass_mat)
    scene.add_lambertian_sphere(DIFFUSE_SPHERE_CENTER, SIGNATURE_RADIUS, DIFFUSE_SPHERE_ALBEDO)
    scene.add_metal_sphere(
        METAL_SPHERE_CENTER, SIGNATURE_RADIUS, METAL_SPHERE_ALBEDO, METAL_SPHERE_FUZZ
    )

    logger.info(
        "Built random scene: %d spheres, %d materials (%d grid cells skipped)",
        scene.get_sphere_count(),
        scene.get_material_count(),
        skipped,
    )

    return scene, create_default_camera(aspect_ratio)
