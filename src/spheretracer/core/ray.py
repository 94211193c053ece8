"""Ray data structure and vector utilities for the sphere path tracer.

This module provides the Ray dataclass together with the vector operations
used on the hot path of the tracer. Arithmetic (add, subtract, component-wise
multiply, scalar multiply/divide) comes directly from ``taichi.math.vec3``;
the genuine vector operations (dot, cross, length, unit vector) are wrapped
here so geometry, materials and the camera share one vocabulary.

Vectors double as RGB colors. Nothing here clamps colors; that is left to the
output stage.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

from src.spheretracer.core.sampler import uniform

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Upper bound on rejection-sampling attempts. A correct uniform source accepts
# within two to four attempts on average.
MAX_REJECTION_ATTEMPTS = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length; callers that need a unit direction normalize it.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Any real value is accepted.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a Taichi kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Euclidean length of a vector."""
    return ti.sqrt(v.x * v.x + v.y * v.y + v.z * v.z)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Squared length of a vector (no square root)."""
    return v.x * v.x + v.y * v.y + v.z * v.z


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    The result is undefined (NaN components) for a zero-length vector; callers
    must never pass one.

    Args:
        v: The input vector.

    Returns:
        v / length(v).
    """
    return v / length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes ``d - 2 * dot(d, n) * n``. For a unit normal the result satisfies
    ``dot(reflect(d, n), n) == -dot(d, n)``.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be unit length).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * dot(incident, normal) * normal


@ti.func
def refract(incident: vec3, normal: vec3, ni_over_nt: ti.f32):
    """Refract an incident vector through a surface using Snell's law.

    The incident direction is normalized first. Refraction fails (total
    internal reflection) when ``1 - ni_over_nt^2 * (1 - cos^2) <= 0``.

    Args:
        incident: The incoming direction vector (any non-zero length).
        normal: The unit normal on the side the ray arrives from.
        ni_over_nt: Ratio of refractive indices (incident / transmitted).

    Returns:
        A tuple (did_refract, refracted) where did_refract is 1 if refraction
        is geometrically possible and refracted is the transmitted direction.
        When did_refract is 0, refracted is the zero vector.
    """
    uv = unit_vector(incident)
    dt = dot(uv, normal)
    discriminant = 1.0 - ni_over_nt * ni_over_nt * (1.0 - dt * dt)

    did_refract = 0
    refracted = vec3(0.0, 0.0, 0.0)
    if discriminant > 0.0:
        did_refract = 1
        refracted = ni_over_nt * (uv - normal * dt) - normal * ti.sqrt(discriminant)
    return did_refract, refracted


@ti.func
def schlick(cosine: ti.f32, refractive_index: ti.f32) -> ti.f32:
    """Fresnel reflectance via Schlick's approximation.

    Args:
        cosine: Cosine of the incidence angle.
        refractive_index: Refractive index of the material.

    Returns:
        ``R0 + (1 - R0) * (1 - cosine)^5`` with ``R0 = ((1 - n) / (1 + n))^2``.
    """
    r0 = (1.0 - refractive_index) / (1.0 + refractive_index)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point strictly inside the unit sphere.

    Draws points uniformly in [-1, 1]^3 from the given stream until one has
    squared length below 1. Each attempt consumes three draws (x, y, z).

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point with length < 1, or the zero vector if no attempt was
        accepted within MAX_REJECTION_ATTEMPTS.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            x = 2.0 * uniform(stream) - 1.0
            y = 2.0 * uniform(stream) - 1.0
            z = 2.0 * uniform(stream) - 1.0
            candidate = vec3(x, y, z)
            if length_squared(candidate) < 1.0:
                p = candidate
                found = 1
    return p


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for thin-lens depth of field. Each attempt consumes two draws.

    Args:
        stream: The random stream to draw from.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1, or the disk center if no
        attempt was accepted within MAX_REJECTION_ATTEMPTS.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = 0
    for _ in range(MAX_REJECTION_ATTEMPTS):
        if found == 0:
            x = 2.0 * uniform(stream) - 1.0
            y = 2.0 * uniform(stream) - 1.0
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = 1
    return p
