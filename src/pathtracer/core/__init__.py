"""Core rendering module.

This module contains the fundamental building blocks for ray tracing:

Components:
    ray: Ray data structure and deterministic vector utilities
    rng: Per-pixel random streams and Monte Carlo sampling
    config: Taichi initialization, render options and constants
    cancellation: Cooperative stop signal polled between samples
    integrator: Path tracing kernel and multi-sample reduction
    progressive: Batched, resumable rendering driver

The core module handles the rendering equation integration, tracing one path
per pixel per sample and summing samples before a single normalization.

All compute-intensive operations use Taichi kernels.
"""

from .cancellation import ContinueFlag, ShouldContinue
from .config import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    T_MAX,
    T_MIN,
    RenderConfig,
    init_taichi,
    is_initialized,
)
from .ray import (
    Ray,
    length_squared,
    make_ray,
    ray_at,
    reflect,
    refract,
    schlick_fresnel,
    unit,
    vec3,
)

# Note: rng, integrator and progressive are NOT imported here because they
# declare Taichi fields, which requires init_taichi() to have run first.
#
# For rendering, use:
#   from pathtracer.core.integrator import render

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length_squared",
    "unit",
    "reflect",
    "refract",
    "schlick_fresnel",
    "ContinueFlag",
    "ShouldContinue",
    "RenderConfig",
    "init_taichi",
    "is_initialized",
    "T_MIN",
    "T_MAX",
    "MAX_IMAGE_WIDTH",
    "MAX_IMAGE_HEIGHT",
]
