"""Perlin-noise marble texture.

Each Perlin material owns a set of lattice tables generated once from a seed:

    - three independent shuffles of 0..255, one per axis
    - 256 random unit gradient vectors

``perlin_noise`` is classic gradient noise: the eight lattice corners around
a point are looked up by XOR-ing the three permuted axis indices, their
gradients are dotted with the offset to the point, and the results are
blended with Hermite smoothing ``3t^2 - 2t^3``. ``perlin_turbulence`` sums
octaves of noise with doubling frequency and halving weight and takes the
absolute value.

The surface color is a grey marble pattern

    albedo = 0.5 * (1 + sin(scale * p.z + 10 * turbulence(p, 7)))

and the material scatters like a Lambertian surface of that albedo.

Tables are generated with numpy on the Python side and uploaded into Taichi
fields; they are never modified afterwards.
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.materials.lambertian import scatter_lambertian

vec3 = tm.vec3

# Number of lattice entries per table
POINT_COUNT = 256

# Octaves summed for the marble pattern
TURBULENCE_DEPTH = 7

# Maximum number of Perlin materials in the scene
MAX_PERLIN_MATERIALS = 64

perlin_perm_x = ti.field(dtype=ti.i32, shape=(MAX_PERLIN_MATERIALS, POINT_COUNT))
perlin_perm_y = ti.field(dtype=ti.i32, shape=(MAX_PERLIN_MATERIALS, POINT_COUNT))
perlin_perm_z = ti.field(dtype=ti.i32, shape=(MAX_PERLIN_MATERIALS, POINT_COUNT))
perlin_gradients = ti.Vector.field(
    3, dtype=ti.f64, shape=(MAX_PERLIN_MATERIALS, POINT_COUNT)
)
perlin_scales = ti.field(dtype=ti.f64, shape=MAX_PERLIN_MATERIALS)
num_perlin_materials = ti.field(dtype=ti.i32, shape=())


@dataclass(frozen=True)
class PerlinTables:
    """Lattice tables of one Perlin material.

    Attributes:
        perm_x: Permutation of 0..255 for the x axis.
        perm_y: Permutation of 0..255 for the y axis.
        perm_z: Permutation of 0..255 for the z axis.
        gradients: (256, 3) array of unit gradient vectors.
    """

    perm_x: npt.NDArray[np.int32]
    perm_y: npt.NDArray[np.int32]
    perm_z: npt.NDArray[np.int32]
    gradients: npt.NDArray[np.float64]


def build_perlin_tables(seed: int) -> PerlinTables:
    """Generate the lattice tables for a seed.

    The same seed always yields the same tables.

    Args:
        seed: Non-negative seed for numpy's default generator.

    Returns:
        The generated PerlinTables.
    """
    rng = np.random.default_rng(seed)
    perm_x = rng.permutation(POINT_COUNT).astype(np.int32)
    perm_y = rng.permutation(POINT_COUNT).astype(np.int32)
    perm_z = rng.permutation(POINT_COUNT).astype(np.int32)
    gradients = rng.uniform(-1.0, 1.0, size=(POINT_COUNT, 3))
    gradients /= np.linalg.norm(gradients, axis=1, keepdims=True)
    for table in (perm_x, perm_y, perm_z, gradients):
        table.setflags(write=False)
    return PerlinTables(perm_x=perm_x, perm_y=perm_y, perm_z=perm_z, gradients=gradients)


@ti.kernel
def _upload_perlin_tables(
    idx: ti.i32,
    perm_x: ti.types.ndarray(),
    perm_y: ti.types.ndarray(),
    perm_z: ti.types.ndarray(),
    gradients: ti.types.ndarray(),
):
    for n in range(POINT_COUNT):
        perlin_perm_x[idx, n] = perm_x[n]
        perlin_perm_y[idx, n] = perm_y[n]
        perlin_perm_z[idx, n] = perm_z[n]
        perlin_gradients[idx, n] = vec3(gradients[n, 0], gradients[n, 1], gradients[n, 2])


def clear_perlin_materials() -> None:
    """Clear all Perlin materials."""
    num_perlin_materials[None] = 0


def add_perlin_material(seed: int = 0, scale: float = 4.0) -> int:
    """Add a Perlin marble material to the registry.

    Args:
        seed: Seed for the lattice tables.
        scale: Frequency of the marble bands along z.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If seed is negative.
    """
    if seed < 0:
        raise ValueError(f"Perlin seed must be non-negative, got {seed}")

    idx = num_perlin_materials[None]
    if idx >= MAX_PERLIN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Perlin materials ({MAX_PERLIN_MATERIALS}) exceeded"
        )

    tables = build_perlin_tables(seed)
    # Taichi wants writable, contiguous arrays
    _upload_perlin_tables(
        idx,
        np.array(tables.perm_x),
        np.array(tables.perm_y),
        np.array(tables.perm_z),
        np.array(tables.gradients),
    )
    perlin_scales[idx] = scale
    num_perlin_materials[None] = idx + 1
    return idx


def get_perlin_material_count() -> int:
    """Get the number of Perlin materials in the registry."""
    return int(num_perlin_materials[None])


@ti.func
def perlin_noise(material_idx: ti.i32, p: vec3) -> ti.f64:
    """Evaluate gradient noise at a point.

    Args:
        material_idx: The index of the Perlin material in the registry.
        p: The sample point.

    Returns:
        The noise value, roughly in [-1, 1]. Zero on lattice points.
    """
    fx = tm.floor(p.x)
    fy = tm.floor(p.y)
    fz = tm.floor(p.z)
    u = p.x - fx
    v = p.y - fy
    w = p.z - fz
    i = ti.cast(fx, ti.i32)
    j = ti.cast(fy, ti.i32)
    k = ti.cast(fz, ti.i32)

    # Hermite smoothing
    uu = u * u * (3.0 - 2.0 * u)
    vv = v * v * (3.0 - 2.0 * v)
    ww = w * w * (3.0 - 2.0 * w)

    accum = 0.0
    for di in ti.static(range(2)):
        for dj in ti.static(range(2)):
            for dk in ti.static(range(2)):
                slot = (
                    perlin_perm_x[material_idx, (i + di) & 255]
                    ^ perlin_perm_y[material_idx, (j + dj) & 255]
                    ^ perlin_perm_z[material_idx, (k + dk) & 255]
                )
                gradient = perlin_gradients[material_idx, slot]
                weight = vec3(u - di, v - dj, w - dk)
                accum += (
                    (di * uu + (1 - di) * (1.0 - uu))
                    * (dj * vv + (1 - dj) * (1.0 - vv))
                    * (dk * ww + (1 - dk) * (1.0 - ww))
                    * tm.dot(gradient, weight)
                )
    return accum


@ti.func
def perlin_turbulence(material_idx: ti.i32, p: vec3, depth: ti.i32) -> ti.f64:
    """Sum ``depth`` octaves of noise and take the absolute value."""
    accum = 0.0
    temp_p = p
    weight = 1.0
    for _ in range(depth):
        accum += weight * perlin_noise(material_idx, temp_p)
        weight *= 0.5
        temp_p *= 2.0
    return ti.abs(accum)


@ti.func
def perlin_albedo(material_idx: ti.i32, point: vec3) -> vec3:
    """Grey marble color at a point."""
    scale = perlin_scales[material_idx]
    grey = 0.5 * (
        1.0
        + tm.sin(
            scale * point.z + 10.0 * perlin_turbulence(material_idx, point, TURBULENCE_DEPTH)
        )
    )
    return vec3(grey, grey, grey)


@ti.func
def scatter_perlin_by_id(rng: ti.i32, material_idx: ti.i32, point: vec3, normal: vec3):
    """Scatter off a registered Perlin material.

    Args:
        rng: The random stream of the calling task.
        material_idx: The index of the material in the registry.
        point: The hit point in world space.
        normal: The surface normal at the hit point (unit length).

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    return scatter_lambertian(rng, perlin_albedo(material_idx, point), normal)
