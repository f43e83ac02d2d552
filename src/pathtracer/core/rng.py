"""Per-task random streams and Monte Carlo sampling utilities.

Every parallel task (one pixel of one sample) owns a private PCG32 generator
stored in its own slot of a Taichi field. A slot is seeded from the tuple
(render seed, sample index, pixel index) through a cascaded Wang hash, so the
random sequence a pixel sees depends only on those three numbers and never on
how the Taichi runtime schedules threads. This is what makes two renders with
the same seed bit-identical.

The stream handle passed around kernels (``rng``) is simply the slot index.

Example:
    >>> from pathtracer.core.rng import random_float, seed_rng
    >>> seed_rng(seed=7, count=1)
    >>> # Within a Taichi kernel:
    >>> # x = random_float(0)  # uniform in [0, 1)
"""

import taichi as ti
import taichi.math as tm

from pathtracer.core.config import MAX_PIXELS
from pathtracer.core.ray import vec3

# One generator slot per pixel of the largest supported image
MAX_STREAMS = MAX_PIXELS

# PCG32 state for every stream
_rng_state = ti.field(dtype=ti.u32, shape=MAX_STREAMS)

# 2^-32, maps a 32-bit word onto [0, 1)
_U32_TO_UNIT = 1.0 / 4294967296.0


# =============================================================================
# Hashing and Seeding
# =============================================================================


@ti.func
def wang_hash(key: ti.u32) -> ti.u32:
    """Thomas Wang's 32-bit integer hash, used to decorrelate stream seeds."""
    k = (key ^ ti.u32(61)) ^ (key >> ti.u32(16))
    k = k * ti.u32(9)
    k = k ^ (k >> ti.u32(4))
    k = k * ti.u32(0x27D4EB2D)
    k = k ^ (k >> ti.u32(15))
    return k


@ti.func
def seed_stream(rng: ti.i32, seed: ti.u32, sample_index: ti.u32, pixel_index: ti.u32):
    """Seed one stream from a (seed, sample, pixel) triple.

    Args:
        rng: The stream slot to seed.
        seed: The render-wide seed.
        sample_index: Index of the sample pass this task belongs to.
        pixel_index: Linear index of the pixel this task renders.
    """
    _rng_state[rng] = wang_hash(pixel_index ^ wang_hash(sample_index ^ wang_hash(seed)))


@ti.func
def next_u32(rng: ti.i32) -> ti.u32:
    """Advance a stream and return its next 32-bit output (PCG-RXS-M-XS)."""
    state = _rng_state[rng] * ti.u32(747796405) + ti.u32(2891336453)
    _rng_state[rng] = state
    word = ((state >> ((state >> ti.u32(28)) + ti.u32(4))) ^ state) * ti.u32(277803737)
    return (word >> ti.u32(22)) ^ word


@ti.kernel
def _seed_streams_kernel(seed: ti.u32, sample_index: ti.u32, count: ti.i32):
    for i in range(count):
        seed_stream(i, seed, sample_index, ti.cast(i, ti.u32))


def seed_rng(seed: int, sample_index: int = 0, count: int = 1) -> None:
    """Seed the first ``count`` streams from Python.

    Stream ``i`` is seeded as if it rendered pixel ``i`` of sample
    ``sample_index``. Mainly useful for tests and standalone kernels; the
    integrator seeds its streams inside the render kernel.

    Args:
        seed: Render-wide seed (reduced modulo 2^32).
        sample_index: Sample pass index (reduced modulo 2^32).
        count: Number of streams to seed, at most ``MAX_STREAMS``.

    Raises:
        ValueError: If count is not in [1, MAX_STREAMS].
    """
    if count < 1 or count > MAX_STREAMS:
        raise ValueError(f"Stream count {count} outside [1, {MAX_STREAMS}]")
    _seed_streams_kernel(seed & 0xFFFFFFFF, sample_index & 0xFFFFFFFF, count)


# =============================================================================
# Uniform Sampling
# =============================================================================


@ti.func
def random_float(rng: ti.i32) -> ti.f64:
    """Draw a uniform float in [0, 1) from a stream."""
    return ti.cast(next_u32(rng), ti.f64) * _U32_TO_UNIT


@ti.func
def random_range(rng: ti.i32, low: ti.f64, high: ti.f64) -> ti.f64:
    """Draw a uniform float in [low, high) from a stream."""
    return low + (high - low) * random_float(rng)


@ti.func
def random_vec3(rng: ti.i32, low: ti.f64, high: ti.f64) -> vec3:
    """Draw a vector with each component uniform in [low, high)."""
    x = random_range(rng, low, high)
    y = random_range(rng, low, high)
    z = random_range(rng, low, high)
    return vec3(x, y, z)


# =============================================================================
# Geometric Sampling for Monte Carlo
# =============================================================================


@ti.func
def random_in_unit_sphere(rng: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Uses rejection sampling to generate uniformly distributed points
    within the unit sphere.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Rejection sampling loop
    for _ in range(100):  # Max iterations to avoid infinite loops
        if not found:
            p = random_vec3(rng, -1.0, 1.0)
            if tm.dot(p, p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector(rng: ti.i32) -> vec3:
    """Generate a random unit vector uniformly distributed on the sphere.

    Rejection-free: the azimuth is uniform in [0, 2*pi) and z uniform in
    [-1, 1), which is uniform on the sphere by Archimedes' hat-box theorem.
    """
    a = random_range(rng, 0.0, 2.0 * tm.pi)
    z = random_range(rng, -1.0, 1.0)
    r = tm.sqrt(1.0 - z * z)
    return vec3(r * tm.cos(a), r * tm.sin(a), z)


@ti.func
def random_in_unit_disk(rng: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for the thin-lens aperture offset.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(100):
        if not found:
            x = random_range(rng, -1.0, 1.0)
            y = random_range(rng, -1.0, 1.0)
            if x * x + y * y < 1.0:
                p = vec3(x, y, 0.0)
                found = True
    return p
