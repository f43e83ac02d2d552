"""Spatial checkerboard texture over two inner materials.

A checkered material does not scatter by itself. At each hit point it picks
one of two inner materials by the sign of

    sin(f * x) * sin(f * y) * sin(f * z)

with a fixed frequency ``f``: negative selects the odd material, anything
else the even one. The pattern is a 3-D checkerboard in world space, not a
UV mapping, so it looks the same on any primitive.

Inner materials are stored as unified material ids and resolved by the
dispatcher in ``pathtracer.materials.material``. They may not themselves be
checkered.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Spatial frequency of the checker pattern
CHECKER_FREQUENCY = 10.0

# Maximum number of checkered materials in the scene
MAX_CHECKERED_MATERIALS = 256

# Unified material ids of the two inner materials
checkered_even_ids = ti.field(dtype=ti.i32, shape=MAX_CHECKERED_MATERIALS)
checkered_odd_ids = ti.field(dtype=ti.i32, shape=MAX_CHECKERED_MATERIALS)
num_checkered_materials = ti.field(dtype=ti.i32, shape=())


def clear_checkered_materials() -> None:
    """Clear all checkered materials."""
    num_checkered_materials[None] = 0


def add_checkered_material(even_material_id: int, odd_material_id: int) -> int:
    """Add a checkered material to the registry.

    Args:
        even_material_id: Unified id of the material used where the sine
            product is non-negative.
        odd_material_id: Unified id of the material used where it is negative.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If either inner id is negative.
    """
    if even_material_id < 0 or odd_material_id < 0:
        raise ValueError(
            f"Invalid inner material ids: even={even_material_id}, odd={odd_material_id}"
        )

    idx = num_checkered_materials[None]
    if idx >= MAX_CHECKERED_MATERIALS:
        raise RuntimeError(
            f"Maximum number of checkered materials ({MAX_CHECKERED_MATERIALS}) exceeded"
        )

    checkered_even_ids[idx] = even_material_id
    checkered_odd_ids[idx] = odd_material_id
    num_checkered_materials[None] = idx + 1
    return idx


def get_checkered_material_count() -> int:
    """Get the number of checkered materials in the registry."""
    return int(num_checkered_materials[None])


@ti.func
def checker_sines(point: vec3) -> ti.f64:
    """Evaluate the checker pattern's sine product at a point."""
    return (
        tm.sin(CHECKER_FREQUENCY * point.x)
        * tm.sin(CHECKER_FREQUENCY * point.y)
        * tm.sin(CHECKER_FREQUENCY * point.z)
    )


@ti.func
def select_checkered_material(material_idx: ti.i32, point: vec3) -> ti.i32:
    """Resolve a checkered material to its inner material at a point.

    Args:
        material_idx: The index of the checkered material in the registry.
        point: The hit point in world space.

    Returns:
        The unified material id of the selected inner material.
    """
    result = checkered_even_ids[material_idx]
    if checker_sines(point) < 0.0:
        result = checkered_odd_ids[material_idx]
    return result
