"""Constant-velocity motion wrapper for motion blur.

An object moving with velocity ``v`` sits at ``rest_position + v * time`` at
instant ``time``. Rather than moving the geometry, the ray is moved into the
object's rest frame, intersected there, and the hit point is moved back out.
Normals and ``t`` are unaffected by a pure translation.

The bounding box of a moving object covers every instant of the exposure
window, so the BVH never needs to know the sample time.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.aabb import Aabb, Vec3Tuple
from pathtracer.geometry.shape import intersect_shape
from pathtracer.geometry.sphere import Intersection

vec3 = tm.vec3


@ti.func
def intersect_moving(
    shape_type: ti.i32,
    center: vec3,
    radius: ti.f64,
    velocity: vec3,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
    time: ti.f64,
) -> Intersection:
    """Intersect a ray with a primitive translating at constant velocity.

    Args:
        shape_type: A ShapeType value for the wrapped primitive.
        center: Primitive center at time 0.
        radius: Primitive radius.
        velocity: Displacement per unit time. Zero means static.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.
        time: The instant the ray samples.

    Returns:
        The Intersection in world space.
    """
    offset = velocity * time
    rec = intersect_shape(
        shape_type, center, radius, ray_origin - offset, ray_direction, t_min, t_max
    )
    if rec.hit == 1:
        rec.point = rec.point + offset
    return rec


def moving_bounding_box(box: Aabb, velocity: Vec3Tuple, exposure_time: float) -> Aabb:
    """Bound an object over the whole exposure window [0, exposure_time].

    Args:
        box: The object's bounding box at rest (time 0).
        velocity: Displacement per unit time.
        exposure_time: Length of the shutter interval.

    Returns:
        The union of the rest box and the box at the end of the exposure.
    """
    end = box.shifted(tuple(v * exposure_time for v in velocity))
    return Aabb.surrounding(box, end)
