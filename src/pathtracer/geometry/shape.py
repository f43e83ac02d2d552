"""Shape-type tag and dispatch over primitive kinds.

Scene objects record which kind of primitive they hold so traversal can
dispatch to the right intersection routine. Spheres are the only kind today;
a new primitive adds a tag, an intersection branch and a bounding-box branch
here and nowhere else.
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.aabb import Aabb, Vec3Tuple
from pathtracer.geometry.sphere import (
    Intersection,
    Sphere,
    intersect_sphere,
    miss,
    sphere_bounding_box,
)

vec3 = tm.vec3


class ShapeType(IntEnum):
    """Enumeration of supported primitive kinds."""

    SPHERE = 0


@ti.func
def intersect_shape(
    shape_type: ti.i32,
    center: vec3,
    radius: ti.f64,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
) -> Intersection:
    """Intersect a ray with a primitive of the given kind.

    Args:
        shape_type: A ShapeType value.
        center: Primitive center.
        radius: Primitive radius.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        The Intersection, or a miss for unknown kinds.
    """
    result = miss()
    if shape_type == int(ShapeType.SPHERE):
        result = intersect_sphere(
            ray_origin, ray_direction, Sphere(center=center, radius=radius), t_min, t_max
        )
    return result


def shape_bounding_box(shape_type: ShapeType, center: Vec3Tuple, radius: float) -> Aabb:
    """Compute the rest-frame bounding box of a primitive.

    Raises:
        ValueError: If shape_type is not a known ShapeType.
    """
    if shape_type == ShapeType.SPHERE:
        return sphere_bounding_box(center, radius)
    raise ValueError(f"Unknown shape type: {shape_type!r}")
