"""Taichi-based offline path tracer.

This package renders scenes of spheres with physically motivated materials by
Monte Carlo path tracing, with support for:
- Bounding volume hierarchy acceleration for ray/scene queries
- Lambertian, metal, dielectric, checkered and Perlin-noise materials
- Motion blur through constant-velocity objects
- Thin-lens camera with depth of field
- Reproducible, cancellable multi-sample accumulation

Subpackages:
    core: Vector utilities, random streams, configuration, integrator and driver
    geometry: Bounding boxes, shape primitives and motion wrapper
    materials: Scattering models and the unified material registry
    scene: Scene-object arena, BVH, hit-check dispatch and scene builder
    camera: Thin-lens camera ray generation
    output: Gamma correction and image export

Taichi must be initialized with ``pathtracer.core.config.init_taichi`` before
any module owning Taichi fields is imported.
"""

__version__ = "0.1.0"
