"""Dielectric (glass/water) material implementation.

Dielectrics never absorb: every hit produces either a reflected or a
refracted ray and the attenuation is always white.

Key physics:
    - Entering vs. exiting is decided by the sign of dot(d, n), where n is
      the outward normal reported by the geometry
    - Snell's law for refraction; refraction fails (total internal
      reflection) when 1 - eta^2 * (1 - cos^2) <= 0
    - Schlick's approximation for the reflect probability, forced to 1 on
      total internal reflection

One uniform draw per hit chooses between the reflected and refracted ray.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, stream
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from src.spheretracer.core.ray import (
    dot,
    length,
    reflect,
    refract,
    schlick,
)
from src.spheretracer.core.sampler import uniform

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def _interface_geometry(ior: ti.f32, incident_direction: vec3, normal: vec3):
    """Orient the interface relative to the incident ray.

    Returns:
        A tuple (outward_normal, ni_over_nt, cosine). outward_normal faces
        the side the ray arrives from.
    """
    outward_normal = normal
    ni_over_nt = 1.0 / ior
    cosine = -dot(incident_direction, normal) / length(incident_direction)

    if dot(incident_direction, normal) > 0.0:
        # Exiting the medium
        outward_normal = -normal
        ni_over_nt = ior
        cosine = ior * dot(incident_direction, normal) / length(incident_direction)

    return outward_normal, ni_over_nt, cosine


@ti.func
def fresnel_reflectance(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.f32:
    """Probability that a dielectric hit reflects instead of refracting.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The outward unit normal at the hit point.

    Returns:
        The Schlick reflectance when refraction is possible, otherwise 1.
    """
    outward_normal, ni_over_nt, cosine = _interface_geometry(ior, incident_direction, normal)
    did_refract, _ = refract(incident_direction, outward_normal, ni_over_nt)

    reflect_probability = 1.0
    if did_refract == 1:
        reflect_probability = schlick(cosine, ior)
    return reflect_probability


@ti.func
def total_internal_reflection(ior: ti.f32, incident_direction: vec3, normal: vec3) -> ti.i32:
    """Return 1 if refraction is impossible for this incidence, 0 otherwise."""
    outward_normal, ni_over_nt, _ = _interface_geometry(ior, incident_direction, normal)
    did_refract, _ = refract(incident_direction, outward_normal, ni_over_nt)
    return 1 - did_refract


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    stream: ti.i32,
):
    """Compute the scattered ray direction for a dielectric surface.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any non-zero length).
        normal: The outward unit normal at the hit point.
        stream: The random stream used for the reflect/refract choice.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The reflected or refracted direction.
        - attenuation: Always white (1, 1, 1).
        - did_scatter: Always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    reflected = reflect(incident_direction, normal)

    outward_normal, ni_over_nt, cosine = _interface_geometry(ior, incident_direction, normal)
    did_refract, refracted = refract(incident_direction, outward_normal, ni_over_nt)

    reflect_probability = 1.0
    if did_refract == 1:
        reflect_probability = schlick(cosine, ior)

    scattered_direction = refracted
    if uniform(stream) < reflect_probability:
        scattered_direction = reflected

    did_scatter = 1
    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

# Storage for dielectric material properties
dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass).
            Must be >= 1.0.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If IOR is less than 1.0.
    """
    if ior < 1.0:
        raise ValueError(
            f"Index of refraction = {ior} is less than 1.0. "
            "IOR must be >= 1.0 for physically meaningful materials."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by registry index."""
    return dielectric_iors[material_idx]
