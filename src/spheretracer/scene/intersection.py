"""Sphere storage and nearest-hit queries over the whole scene.

Spheres live in Structure-of-Arrays Taichi fields (center, radius,
material_id) and are tested by a linear scan in insertion order. Each hit
found becomes the new upper bound of the query interval, so a farther
sphere can never replace a nearer one and on an exact tie the sphere added
first is kept.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.scene.intersection import add_sphere, clear_scene, vec3
    >>> clear_scene()
    >>> add_sphere(vec3(0, 0, -1), 0.5, material_id=0)
    >>> # In a kernel: rec = intersect_scene(origin, direction, 0.001, tm.inf)
"""

import taichi as ti
import taichi.math as tm

from src.spheretracer.geometry.sphere import HitRecord, Sphere, hit_sphere

vec3 = tm.vec3


@ti.dataclass
class SceneHitRecord:
    """A sphere HitRecord plus the material of the sphere that was hit.

    ``material_id`` is -1 and the other fields are zero when ``hit`` is 0.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    material_id: ti.i32


MAX_SPHERES = 1024

sphere_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SPHERES)
sphere_radii = ti.field(dtype=ti.f32, shape=MAX_SPHERES)
sphere_material_ids = ti.field(dtype=ti.i32, shape=MAX_SPHERES)
num_spheres = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Forget every sphere; slots are reused by later add_sphere calls."""
    num_spheres[None] = 0


def add_sphere(center: vec3, radius: float, material_id: int = 0) -> int:
    """Append a sphere and return its index in traversal order.

    The material_id is stored as given; SceneManager.add_sphere is the
    entry point that checks it refers to a registered material.

    Raises:
        ValueError: If radius is not positive.
        RuntimeError: If MAX_SPHERES spheres are already stored.
    """
    if radius <= 0.0:
        raise ValueError(f"Sphere radius must be positive, got {radius}")

    slot = num_spheres[None]
    if slot >= MAX_SPHERES:
        raise RuntimeError(f"Maximum number of spheres ({MAX_SPHERES}) exceeded")

    sphere_centers[slot] = center
    sphere_radii[slot] = radius
    sphere_material_ids[slot] = material_id
    num_spheres[None] = slot + 1
    return slot


def get_sphere_count() -> int:
    return int(num_spheres[None])


@ti.func
def _with_material(rec: HitRecord, material_id: ti.i32) -> SceneHitRecord:
    return SceneHitRecord(
        hit=rec.hit,
        t=rec.t,
        point=rec.point,
        normal=rec.normal,
        material_id=material_id,
    )


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> SceneHitRecord:
    """Nearest sphere hit with t strictly inside (t_min, t_max).

    Args:
        ray_origin: Ray origin.
        ray_direction: Ray direction; need not be normalized.
        t_min: Exclusive lower bound, used to skip self-intersections.
        t_max: Exclusive upper bound (tm.inf for an unbounded ray).

    Returns:
        The record of the nearest hit, or a miss record (hit 0,
        material_id -1).
    """
    closest = SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material_id=-1,
    )
    closest_t = t_max

    for i in range(num_spheres[None]):
        sphere = Sphere(center=sphere_centers[i], radius=sphere_radii[i])
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            closest = _with_material(rec, sphere_material_ids[i])

    return closest
