"""Sphere primitive with analytic ray-sphere intersection.

The intersection solves ``|O + tD - C|^2 = r^2`` as a quadratic in ``t``
using the half-b formulation:

    a = D . D
    b = (O - C) . D
    c = (O - C) . (O - C) - r^2
    discriminant = b^2 - a*c

The quadratic is evaluated in f64 and the root returned as f32.

A non-positive discriminant is a miss (tangent rays included). Otherwise the
nearer root is tried first and the farther root only if the nearer one lies
outside the open interval (t_min, t_max).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.spheretracer.geometry.sphere import Sphere, HitRecord, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    A record is built fresh for every query and read once by the caller.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection, strictly inside the query
            interval. Only valid if hit == 1.
        point: The world-space intersection point. Only valid if hit == 1.
        normal: The outward unit normal ``(point - center) / radius``. It
            points away from the center whether the ray arrives from outside
            or inside. Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be
            normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound of valid ray parameters.
        t_max: Exclusive upper bound of valid ray parameters.

    Returns:
        A HitRecord for the nearest root inside (t_min, t_max). Check the hit
        field to determine if an intersection occurred.
    """
    # f64: for a large sphere |oc|^2 and r^2 are both ~r^2 and cancel in c,
    # which in f32 leaves an error large enough to re-hit the surface just
    # past t_min.
    oc = ti.cast(ray_origin, ti.f64) - ti.cast(sphere.center, ti.f64)
    direction = ti.cast(ray_direction, ti.f64)
    radius = ti.cast(sphere.radius, ti.f64)
    a = tm.dot(direction, direction)
    b = tm.dot(oc, direction)
    c = tm.dot(oc, oc) - radius * radius
    discriminant = b * b - a * c

    # Initialize result fields (Taichi requires outer-scope declaration)
    did_hit = 0
    hit_t = 0.0
    hit_point = vec3(0.0, 0.0, 0.0)
    hit_normal = vec3(0.0, 0.0, 0.0)

    if discriminant > 0.0:
        sqrt_d = ti.sqrt(discriminant)

        root = (-b - sqrt_d) / a
        valid = (root < t_max) and (root > t_min)

        if not valid:
            root = (-b + sqrt_d) / a
            valid = (root < t_max) and (root > t_min)

        if valid:
            did_hit = 1
            hit_t = ti.cast(root, ti.f32)
            hit_point = ray_origin + hit_t * ray_direction
            # Dividing by the radius makes the normal unit length
            hit_normal = (hit_point - sphere.center) / sphere.radius

    return HitRecord(
        hit=did_hit,
        t=hit_t,
        point=hit_point,
        normal=hit_normal,
    )


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius inside a Taichi kernel."""
    return Sphere(center=center, radius=radius)
