"""Unit tests for the ray module.

Tests cover:
- Ray dataclass and ray_at function
- Vector utility functions (dot, cross, unit_vector, length)
- Reflection, refraction and Schlick reflectance
- Rejection samplers, including the attempt cap
"""

import taichi as ti


class TestRayBasics:
    """Tests for Ray dataclass and basic operations."""

    def test_ray_at_origin(self):
        """Test ray_at returns origin when t=0."""
        from src.spheretracer.core.ray import Ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = Ray(origin=vec3(1.0, 2.0, 3.0), direction=vec3(0.0, 0.0, -1.0))
            result[None] = ray_at(ray, 0.0)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 2.0) < 1e-6
        assert abs(r[2] - 3.0) < 1e-6

    def test_ray_at_unnormalized_direction(self):
        """Test ray_at scales the direction as given, without normalizing."""
        from src.spheretracer.core.ray import make_ray, ray_at, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(1.0, 0.0, 0.0), vec3(0.0, 2.0, 0.0))
            result[None] = ray_at(ray, 1.5)

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 3.0) < 1e-6
        assert abs(r[2]) < 1e-6


class TestVectorUtilities:
    """Tests for vector math helpers."""

    def test_length_and_length_squared(self):
        from src.spheretracer.core.ray import length, length_squared, vec3

        results = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            v = vec3(3.0, 4.0, 12.0)
            results[0] = length(v)
            results[1] = length_squared(v)

        test_kernel()
        assert abs(results[0] - 13.0) < 1e-5
        assert abs(results[1] - 169.0) < 1e-4

    def test_unit_vector(self):
        from src.spheretracer.core.ray import unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = unit_vector(vec3(0.0, 3.0, 4.0))

        test_kernel()
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.8) < 1e-6

    def test_dot_and_cross(self):
        from src.spheretracer.core.ray import cross, dot, vec3

        dot_result = ti.field(dtype=ti.f32, shape=())
        cross_result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            dot_result[None] = dot(vec3(1.0, 2.0, 3.0), vec3(4.0, -5.0, 6.0))
            cross_result[None] = cross(vec3(1.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert abs(dot_result[None] - 12.0) < 1e-6
        c = cross_result[None]
        assert abs(c[0]) < 1e-6
        assert abs(c[1]) < 1e-6
        assert abs(c[2] - 1.0) < 1e-6


class TestReflectRefract:
    """Tests for reflection, refraction and Schlick."""

    def test_reflect_formula(self):
        """Test reflect(d, n) = d - 2(d.n)n for a 45 degree incidence."""
        from src.spheretracer.core.ray import reflect, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = reflect(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        r = result[None]
        assert abs(r[0] - 1.0) < 1e-6
        assert abs(r[1] - 1.0) < 1e-6
        assert abs(r[2]) < 1e-6

    def test_reflect_flips_normal_component(self):
        """Test dot(reflect(d, n), n) == -dot(d, n) for a unit normal."""
        from src.spheretracer.core.ray import dot, reflect, unit_vector, vec3

        results = ti.field(dtype=ti.f32, shape=(8, 2))

        @ti.kernel
        def test_kernel():
            for k in range(8):
                fk = ti.cast(k, ti.f32)
                d = vec3(0.3 * fk - 1.0, -0.7 + 0.2 * fk, 0.5)
                n = unit_vector(vec3(0.2, 1.0, 0.1 * fk))
                results[k, 0] = dot(reflect(d, n), n)
                results[k, 1] = -dot(d, n)

        test_kernel()
        for k in range(8):
            assert abs(results[k, 0] - results[k, 1]) < 1e-5

    def test_refract_straight_through(self):
        """Test normal incidence refracts without bending."""
        from src.spheretracer.core.ray import refract, vec3

        did = ti.field(dtype=ti.i32, shape=())
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            d, r = refract(vec3(0.0, 0.0, -2.0), vec3(0.0, 0.0, 1.0), 1.0 / 1.5)
            did[None] = d
            result[None] = r

        test_kernel()
        assert did[None] == 1
        r = result[None]
        assert abs(r[0]) < 1e-6
        assert abs(r[1]) < 1e-6
        assert abs(r[2] + 1.0) < 1e-6

    def test_refract_snell(self):
        """Test refraction obeys Snell's law (sin_t = eta * sin_i)."""
        import math

        from src.spheretracer.core.ray import refract, unit_vector, vec3

        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            # 45 degree incidence entering glass
            _, r = refract(vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1.0 / 1.5)
            result[None] = unit_vector(r)

        test_kernel()
        r = result[None]
        sin_t = math.sqrt(r[0] ** 2 + r[2] ** 2)
        assert abs(sin_t - math.sin(math.radians(45.0)) / 1.5) < 1e-5
        assert r[1] < 0.0

    def test_refract_total_internal_reflection(self):
        """Test refraction fails past the critical angle."""
        from src.spheretracer.core.ray import refract, vec3

        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            # Grazing ray leaving glass: eta = 1.5
            d, _ = refract(vec3(1.0, -0.1, 0.0), vec3(0.0, 1.0, 0.0), 1.5)
            did[None] = d

        test_kernel()
        assert did[None] == 0

    def test_schlick_limits(self):
        """Test R0 at normal incidence and 1 at grazing incidence."""
        from src.spheretracer.core.ray import schlick

        results = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            results[0] = schlick(1.0, 1.5)
            results[1] = schlick(0.0, 1.5)

        test_kernel()
        assert abs(results[0] - 0.04) < 1e-6
        assert abs(results[1] - 1.0) < 1e-6


class TestRandomSampling:
    """Tests for rejection samplers."""

    def test_random_in_unit_sphere_bounds(self):
        from src.spheretracer.core.ray import length_squared, random_in_unit_sphere

        n = 1000
        results = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                results[k] = length_squared(random_in_unit_sphere(k))

        test_kernel()
        values = results.to_numpy()
        assert (values < 1.0).all()
        # Not degenerate
        assert values.max() > 0.5

    def test_random_in_unit_disk_bounds(self):
        from src.spheretracer.core.ray import random_in_unit_disk

        n = 1000
        results = ti.field(dtype=ti.math.vec3, shape=n)

        @ti.kernel
        def test_kernel():
            for k in range(n):
                results[k] = random_in_unit_disk(k)

        test_kernel()
        points = results.to_numpy()
        assert (points[:, 2] == 0.0).all()
        assert ((points[:, 0] ** 2 + points[:, 1] ** 2) < 1.0).all()

    def test_rejection_cap_returns_center(self):
        """Test a source that never accepts yields the zero vector instead of looping."""
        from src.spheretracer.core.ray import random_in_unit_disk, random_in_unit_sphere
        from src.spheretracer.core.sampler import set_fixed_random

        # Every coordinate is -1, so no candidate is ever inside
        set_fixed_random(0.0)

        sphere_result = ti.field(dtype=ti.math.vec3, shape=())
        disk_result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            sphere_result[None] = random_in_unit_sphere(0)
            disk_result[None] = random_in_unit_disk(0)

        test_kernel()
        for v in (sphere_result[None], disk_result[None]):
            assert abs(v[0]) < 1e-7
            assert abs(v[1]) < 1e-7
            assert abs(v[2]) < 1e-7

    def test_fixed_source_accepted_point(self):
        from src.spheretracer.core.ray import random_in_unit_sphere
        from src.spheretracer.core.sampler import set_fixed_random

        set_fixed_random(0.75)
        result = ti.field(dtype=ti.math.vec3, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = random_in_unit_sphere(3)

        test_kernel()
        r = result[None]
        for c in range(3):
            assert abs(r[c] - 0.5) < 1e-6
