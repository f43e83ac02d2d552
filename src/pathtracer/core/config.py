"""Runtime initialization and render configuration.

This module owns the process-wide Taichi initialization and the small set of
options the renderer recognizes. It declares no Taichi fields, so it is safe
to import before ``ti.init`` has run.

Example:
    >>> from pathtracer.core.config import RenderConfig, init_taichi
    >>> init_taichi()  # CPU backend, 64-bit floats
    >>> config = RenderConfig(samples_per_pixel=16, max_depth=8,
    ...                       image_width=320, image_height=180)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import taichi as ti

logger = logging.getLogger(__name__)

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min and t_max for secondary ray intersection
T_MIN = 1e-3
T_MAX = 1e30

# Sky gradient endpoints (horizon and zenith)
SKY_HORIZON_COLOR = (1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = (0.5, 0.7, 1.0)

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 1024
MAX_IMAGE_HEIGHT = 1024
MAX_PIXELS = MAX_IMAGE_WIDTH * MAX_IMAGE_HEIGHT

_initialized = False


def init_taichi(arch: Any = None, *, seed: int = 0, debug: bool = False) -> None:
    """Initialize the Taichi runtime for rendering.

    All kernels compute in 64-bit floating point, so the runtime is started
    with ``default_fp=ti.f64``. This must be called once, before importing
    modules that declare Taichi fields (integrator, scene, materials, camera).

    Args:
        arch: Taichi backend (e.g. ``ti.cpu``). Defaults to ``ti.cpu``.
        seed: Seed for Taichi's internal generator. The renderer seeds its own
            per-pixel streams, so this only affects ``ti.random`` users.
        debug: Enable Taichi's debug mode (bounds checks in kernels).
    """
    global _initialized

    if arch is None:
        arch = ti.cpu
    ti.init(arch=arch, default_fp=ti.f64, random_seed=seed, debug=debug)
    _initialized = True
    logger.debug("Taichi initialized (arch=%s, default_fp=f64)", arch)


def is_initialized() -> bool:
    """Check whether ``init_taichi`` has been called in this process."""
    return _initialized


@dataclass(frozen=True)
class RenderConfig:
    """Options recognized by a render invocation.

    Attributes:
        samples_per_pixel: Number of independent samples averaged per pixel.
        max_depth: Maximum number of scattering events along one path.
        image_width: Output width in pixels.
        image_height: Output height in pixels.
        seed: Seed from which every per-pixel random stream is derived.
            Two renders with the same seed and scene are bit-identical.
    """

    samples_per_pixel: int
    max_depth: int
    image_width: int
    image_height: int
    seed: int = 0

    def __post_init__(self) -> None:
        for name in ("samples_per_pixel", "max_depth", "image_width", "image_height"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed maximum "
                f"supported ({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height of the output image."""
        return self.image_width / self.image_height

    @property
    def pixel_count(self) -> int:
        """Total number of pixels in the output image."""
        return self.image_width * self.image_height
