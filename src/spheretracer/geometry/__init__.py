"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with analytic ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) that report the
nearest root strictly inside a query interval (t_min, t_max). Scene-level
traversal lives in ``src.spheretracer.scene.intersection``; there is no
acceleration structure, every query scans the primitives linearly.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_sphere",
]
