"""Geometry module for shape primitives and bounding volumes.

This module provides geometric primitives and intersection algorithms:

Components:
    aabb: Axis-Aligned Bounding Box with the slab test
    sphere: Sphere primitive with ray-sphere intersection
    shape: Shape-type tag and dispatch over primitives
    moving: Constant-velocity motion wrapper for motion blur

Intersection routines are Taichi functions (@ti.func); bounding boxes are
plain Python values used while building the BVH. None of these modules
declare Taichi fields, so they can be imported before ``init_taichi``.

Ray-object intersection follows the pattern:
    rec = intersect_shape(shape_type, center, radius, ray_origin, ray_direction, t_min, t_max)
"""

from .aabb import Aabb, Vec3Tuple, hit_aabb
from .moving import intersect_moving, moving_bounding_box
from .shape import ShapeType, intersect_shape, shape_bounding_box
from .sphere import Intersection, Sphere, intersect_sphere, make_sphere, miss, sphere_bounding_box

__all__ = [
    "Aabb",
    "Vec3Tuple",
    "hit_aabb",
    "Sphere",
    "Intersection",
    "intersect_sphere",
    "make_sphere",
    "miss",
    "sphere_bounding_box",
    "ShapeType",
    "intersect_shape",
    "shape_bounding_box",
    "intersect_moving",
    "moving_bounding_box",
]
