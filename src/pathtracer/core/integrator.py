"""Path tracing integrator with multi-sample reduction and cancellation.

This module implements the rendering kernel and the driver that turns a
built scene into an image.

Per pixel and per sample the integrator:
    1. picks jittered viewport coordinates
       ``s = (i + xi) / (width - 1)``, ``t = (j + xi) / (height - 1)``
    2. asks the camera for a ray and an instant in the exposure window
    3. runs at most ``max_depth`` hit-checks, multiplying a running color
       (starting white) by each attenuation. A miss multiplies by the sky
       gradient and ends the path; an absorption multiplies by black and ends
       it. Running out of depth keeps the color reached so far.

Driver semantics:
    - One parallel kernel launch renders one sample for every pixel.
    - Each pixel's random stream is seeded from (seed, sample, pixel), so a
      render is bit-reproducible for a fixed seed.
    - Samples are summed into the pixel buffer and divided once, by the
      number of samples that actually ran.
    - ``should_continue`` is polled before every launch. Once it returns
      False no further samples start and the partial image is returned.

Example:
    >>> from pathtracer.core.config import RenderConfig
    >>> from pathtracer.core.integrator import render
    >>> scene.build(camera)
    >>> result = render(RenderConfig(samples_per_pixel=16, max_depth=8,
    ...                              image_width=320, image_height=180))
    >>> result.pixels.shape
    (57600, 3)
"""

import logging
import time as _time
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray, get_time, is_camera_initialized
from pathtracer.core.cancellation import ShouldContinue
from pathtracer.core.config import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    MAX_PIXELS,
    SKY_HORIZON_COLOR,
    SKY_ZENITH_COLOR,
    T_MAX,
    T_MIN,
    RenderConfig,
)
from pathtracer.core.ray import unit
from pathtracer.core.rng import random_float, seed_stream
from pathtracer.scene.renderable import HitCheck, hit_check

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3


# =============================================================================
# Render Result
# =============================================================================


@dataclass(frozen=True)
class RenderResult:
    """Normalized image produced by a render.

    Attributes:
        pixels: (height * width, 3) float64 array of linear colors,
            row-major from the top image row to the bottom.
        width: Image width in pixels.
        height: Image height in pixels.
        samples: Number of samples per pixel that completed.
    """

    pixels: npt.NDArray[np.float64]
    width: int
    height: int
    samples: int

    @property
    def is_empty(self) -> bool:
        """True when no sample completed; pixels are then all zero."""
        return self.samples == 0

    def as_image(self) -> npt.NDArray[np.float64]:
        """Pixels reshaped to (height, width, 3), top row first."""
        return self.pixels.reshape(self.height, self.width, 3)


# =============================================================================
# Render Target (Pixel Sum Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel color sums, row-major with the top row first
_pixel_sum = ti.Vector.field(3, dtype=ti.f64, shape=MAX_PIXELS)

# Samples summed into _pixel_sum so far
_samples_done = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT pixels to avoid
    Taichi kernel recompilation.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the pixel sums and the sample count."""
    _pixel_sum.fill(0.0)
    _samples_done[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_initialized() -> None:
    if not is_camera_initialized():
        raise RuntimeError("Camera not set up. Build the scene before rendering.")


def get_total_samples() -> int:
    """Get the number of samples per pixel summed so far.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_samples_done[None])


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ambient(direction: vec3) -> vec3:
    """Sky color seen along a direction.

    Blends from the horizon color to the zenith color by the height of the
    unit direction, ``(unit(direction).y + 1) / 2``.
    """
    t = 0.5 * (unit(direction).y + 1.0)
    horizon = vec3(SKY_HORIZON_COLOR[0], SKY_HORIZON_COLOR[1], SKY_HORIZON_COLOR[2])
    zenith = vec3(SKY_ZENITH_COLOR[0], SKY_ZENITH_COLOR[1], SKY_ZENITH_COLOR[2])
    return (1.0 - t) * horizon + t * zenith


@ti.func
def trace_ray(
    rng: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    time: ti.f64,
    max_depth: ti.i32,
) -> vec3:
    """Trace one path and return the color it carries back.

    Args:
        rng: The random stream of the calling task.
        ray_origin: Origin of the camera ray.
        ray_direction: Direction of the camera ray.
        time: The instant the path samples.
        max_depth: Maximum number of hit-checks.

    Returns:
        The path's color estimate.
    """
    color = vec3(1.0, 1.0, 1.0)
    origin = ray_origin
    direction = ray_direction

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            result = hit_check(rng, origin, direction, T_MIN, T_MAX, time)

            if result.outcome == int(HitCheck.MISS):
                color *= ambient(direction)
                active = 0
            elif result.outcome == int(HitCheck.ABSORBED):
                color *= vec3(0.0, 0.0, 0.0)
                active = 0
            else:
                color *= result.attenuation
                origin = result.origin
                direction = result.direction

    return color


@ti.func
def render_pixel_sample(
    rng: ti.i32,
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Render one sample for one pixel.

    Args:
        rng: The random stream of the calling task, already seeded.
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum number of hit-checks.

    Returns:
        The color estimate for this sample.
    """
    # One-pixel dimensions divide by 1 instead of 0
    s = (ti.cast(pixel_i, ti.f64) + random_float(rng)) / ti.cast(ti.max(width - 1, 1), ti.f64)
    t = (ti.cast(pixel_j, ti.f64) + random_float(rng)) / ti.cast(ti.max(height - 1, 1), ti.f64)

    ray = get_ray(rng, s, t)
    time = get_time(rng)
    return trace_ray(rng, ray.origin, ray.direction, time, max_depth)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    sample_index: ti.u32,
):
    """Render one sample per pixel and add it to the pixel sums."""
    for i, j in ti.ndrange(width, height):
        # Output rows run top to bottom; j counts from the bottom
        pixel = (height - 1 - j) * width + i
        seed_stream(pixel, seed, sample_index, ti.cast(pixel, ti.u32))
        _pixel_sum[pixel] += render_pixel_sample(pixel, i, j, width, height, max_depth)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
    seed: ti.u32,
    sample_index: ti.u32,
) -> vec3:
    """Render a single sample for a specific pixel without accumulating."""
    pixel = (height - 1 - pixel_j) * width + pixel_i
    seed_stream(pixel, seed, sample_index, ti.cast(pixel, ti.u32))
    return render_pixel_sample(pixel, pixel_i, pixel_j, width, height, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_sample(
    pixel_i: int,
    pixel_j: int,
    *,
    max_depth: int = 50,
    seed: int = 0,
    sample_index: int = 0,
) -> tuple[float, float, float]:
    """Render one sample of one pixel, for testing and debugging.

    The pixel sees exactly the random stream it would see during a full
    render with the same seed and sample index. For production rendering,
    use render() which processes all pixels in parallel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        max_depth: Maximum number of hit-checks.
        seed: Render seed.
        sample_index: Which sample pass to reproduce.

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If render target or camera has not been set up.
        ValueError: If the pixel lies outside the image.
    """
    _check_render_target_initialized()
    _check_camera_initialized()

    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise ValueError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} image")

    color = _render_single_pixel(
        pixel_i,
        pixel_j,
        width,
        height,
        max_depth,
        seed & 0xFFFFFFFF,
        sample_index & 0xFFFFFFFF,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_samples(
    num_samples: int,
    *,
    max_depth: int,
    seed: int = 0,
    should_continue: ShouldContinue | None = None,
) -> int:
    """Add up to ``num_samples`` samples per pixel to the pixel sums.

    Samples continue the running sample index, so calling this repeatedly
    draws fresh samples rather than repeating earlier ones.

    Args:
        num_samples: Number of samples to attempt.
        max_depth: Maximum number of hit-checks per path.
        seed: Render seed.
        should_continue: Polled before each sample; False stops early.

    Returns:
        The number of samples that ran.

    Raises:
        RuntimeError: If render target or camera has not been set up.
    """
    _check_render_target_initialized()
    _check_camera_initialized()

    width, height = get_image_dimensions()
    completed = 0

    for _ in range(num_samples):
        if should_continue is not None and not should_continue():
            break
        sample_index = int(_samples_done[None])
        _render_one_spp(width, height, max_depth, seed & 0xFFFFFFFF, sample_index & 0xFFFFFFFF)
        _samples_done[None] = sample_index + 1
        completed += 1

    return completed


def get_result() -> RenderResult:
    """Normalize the pixel sums into a RenderResult.

    Divides by the number of completed samples. With zero samples the
    pixels stay zero and a warning is logged instead.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    samples = int(_samples_done[None])
    sums = _pixel_sum.to_numpy()[: width * height].astype(np.float64)

    if samples == 0:
        logger.warning("No samples completed; returning an empty %dx%d image", width, height)
        pixels = np.zeros_like(sums)
    else:
        pixels = sums / samples

    return RenderResult(pixels=pixels, width=width, height=height, samples=samples)


def render(config: RenderConfig, should_continue: ShouldContinue | None = None) -> RenderResult:
    """Render the built scene.

    The scene must have been built (``SceneManager.build``) so that the
    BVH and camera are configured.

    Args:
        config: Image size, sample count, depth limit and seed.
        should_continue: Optional cancellation signal, polled before each
            sample. Returning False stops the render after the samples
            already started.

    Returns:
        The normalized RenderResult. ``is_empty`` is True if cancellation
        happened before the first sample.

    Raises:
        RuntimeError: If the camera has not been set up.
    """
    setup_render_target(config.image_width, config.image_height)

    logger.info(
        "Rendering %dx%d at %d spp (max depth %d, seed %d)",
        config.image_width,
        config.image_height,
        config.samples_per_pixel,
        config.max_depth,
        config.seed,
    )
    start = _time.perf_counter()
    completed = render_samples(
        config.samples_per_pixel,
        max_depth=config.max_depth,
        seed=config.seed,
        should_continue=should_continue,
    )
    elapsed = _time.perf_counter() - start

    if completed < config.samples_per_pixel:
        logger.info(
            "Render cancelled after %d of %d samples", completed, config.samples_per_pixel
        )
    logger.info("Rendered %d samples in %.2fs", completed, elapsed)

    return get_result()
