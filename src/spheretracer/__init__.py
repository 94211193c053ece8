"""Taichi-based Monte Carlo path tracer for sphere scenes.

This package renders scenes of spheres with diffuse, metal and glass
materials through a thin-lens camera, with support for:
- Recursive path tracing with a hard 50-bounce limit and a sky gradient
- Per-pixel random streams for reproducible, parallel rendering
- Progressive rendering with accumulation
- PPM and PNG output

Subpackages:
    core: Rays, vector utilities, random streams, integrator and rendering loop
    geometry: Sphere primitive and its intersection routine
    materials: Lambertian, metal and dielectric scattering models
    scene: Sphere storage, material registry and the random scene factory
    camera: Thin-lens camera with ray generation
    output: Gamma correction and image writers
"""

__version__ = "0.1.0"
