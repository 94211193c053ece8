"""Materials module for surface scattering models.

This module implements the three material variants of the tracer:

Components:
    lambertian: Diffuse reflection (normal + random point in unit sphere)
    metal: Specular reflection with fuzz perturbation
    dielectric: Glass-like refraction with Schlick-weighted reflection

Each material provides a Taichi ``scatter_*`` function with the common
contract ``(scattered_direction, attenuation, did_scatter)``; did_scatter = 0
means the ray was absorbed. Material parameters live in per-type registries
and the scene manager maps a unified material ID onto (type, index), which
is how many spheres can share one material.
"""

# Dielectric (glass/water) material
from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    total_internal_reflection,
)

# Lambertian (diffuse) material
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
)

# Metal (specular reflective) material
from .metal import (
    add_metal_material,
    clamp_fuzz,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "clamp_fuzz",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "fresnel_reflectance",
    "total_internal_reflection",
]
