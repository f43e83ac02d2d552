"""Unified material registry and scatter dispatch.

Every material variant keeps its parameters in its own registry (see the
sibling modules). This module assigns a single material id space across all
variants and maps each id to ``(MaterialType, type_local_index)`` so kernels
can dispatch to the right scatter routine with one lookup.

Dispatch order: a checkered material is first resolved to its even or odd
inner material at the hit point, then the resulting base material scatters.
Inner materials are never checkered themselves, so one resolution step is
always enough.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.materials.checkered import select_checkered_material
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.materials.perlin import scatter_perlin_by_id

vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    CHECKERED = 3
    PERLIN = 4


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_registry() -> None:
    """Forget every unified material id."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign a unified id to a material already stored in its registry.

    Args:
        material_type: The variant the material belongs to.
        type_index: Its index in that variant's registry.

    Returns:
        The new unified material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


def get_material_type_python(material_id: int) -> MaterialType:
    """Look up a material's type from Python.

    Raises:
        ValueError: If material_id is not registered.
    """
    if not 0 <= material_id < num_materials[None]:
        raise ValueError(f"Invalid material_id: {material_id}")
    return MaterialType(int(material_types[material_id]))


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@ti.func
def resolve_material(material_id: ti.i32, point: vec3) -> ti.i32:
    """Resolve a checkered material to the base material used at a point.

    Non-checkered ids are returned unchanged.
    """
    resolved = material_id
    if get_material_type(material_id) == int(MaterialType.CHECKERED):
        resolved = select_checkered_material(get_material_type_index(material_id), point)
    return resolved


@ti.func
def scatter_material(
    rng: ti.i32,
    material_id: ti.i32,
    incident_direction: vec3,
    hit_point: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        rng: The random stream of the calling task.
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        hit_point: The intersection point on the surface.
        normal: The surface normal (unit length, facing toward the ray).
        front_face: 1 if hit front face, 0 if back face.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction.
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed. Unknown ids absorb.
    """
    base_id = resolve_material(material_id, hit_point)
    mat_type = get_material_type(base_id)
    type_index = get_material_type_index(base_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            rng, type_index, normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            rng, type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            rng, type_index, incident_direction, normal, front_face
        )

    elif mat_type == int(MaterialType.PERLIN):
        scattered_direction, attenuation, did_scatter = scatter_perlin_by_id(
            rng, type_index, hit_point, normal
        )

    return scattered_direction, attenuation, did_scatter
