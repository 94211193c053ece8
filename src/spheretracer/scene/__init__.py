"""Scene module for scene management and hit records.

Components:
    intersection: Sphere storage and nearest-hit scene queries
    manager: Unified scene manager coordinating spheres and materials
    random_spheres: Factory for the random sphere field scene

Scene data is organized for efficient kernel access:
    - Structure-of-Arrays layout for sphere data
    - A material_id per sphere, resolved to (type, index) on demand
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
    material_count,
    material_slots,
    material_tags,
)
from .random_spheres import (
    RandomSceneParams,
    create_default_camera,
    create_random_scene,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_tags",
    "material_slots",
    "material_count",
    # Random sphere field
    "RandomSceneParams",
    "create_random_scene",
    "create_default_camera",
]
