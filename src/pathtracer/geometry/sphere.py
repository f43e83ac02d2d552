"""Sphere primitive with ray-sphere intersection.

This module provides a Sphere dataclass and the intersection routine used by
every scene traversal. The quadratic is solved in its half-b form; the nearer
root is tried first and the farther root only when the nearer one falls
outside the open interval (t_min, t_max).

Normal convention: the returned normal always opposes the incoming ray. The
``front_face`` flag records whether that is the outward normal (ray arriving
from outside) or its negation (ray leaving the inside). Dielectrics rely on
this flag to pick the refraction ratio.

Example:
    >>> import taichi as ti
    >>> from pathtracer.geometry.sphere import Sphere, intersect_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use intersect_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.aabb import Aabb, Vec3Tuple

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    radius: ti.f64


@ti.dataclass
class Intersection:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
            Only valid if hit == 1.
        point: The 3D point where the ray intersected the surface.
            Only valid if hit == 1.
        normal: The unit surface normal at the intersection point, oriented
            against the incoming ray. Only valid if hit == 1.
        front_face: Whether the ray hit the front face (1) or back face (0).
            Front face means the ray hit from outside the surface.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def miss() -> Intersection:
    """Create an Intersection indicating no hit."""
    return Intersection(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )


@ti.func
def intersect_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f64,
    t_max: ti.f64,
) -> Intersection:
    """Test for ray-sphere intersection.

    The ray-sphere intersection is found by solving:
        |ray_origin + t * ray_direction - center|^2 = radius^2

    Expanding and rearranging gives the quadratic equation:
        a*t^2 + 2*h*t + c = 0

    where:
        a = dot(direction, direction)
        h = dot(direction, oc)  (half of traditional b)
        c = dot(oc, oc) - radius^2
        oc = origin - center

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on t (avoids self-intersection).
        t_max: Exclusive upper bound on t (closest hit found so far).

    Returns:
        An Intersection. Check the hit field to determine if intersection
        occurred.
    """
    # Vector from sphere center to ray origin
    oc = ray_origin - sphere.center

    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(oc, ray_direction)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    result = miss()

    if discriminant >= 0.0:
        sqrt_d = tm.sqrt(discriminant)

        # Nearer root first
        t = (-h - sqrt_d) / a
        valid = t_min < t < t_max
        if not valid:
            t = (-h + sqrt_d) / a
            valid = t_min < t < t_max

        if valid:
            point = ray_origin + t * ray_direction
            outward_normal = (point - sphere.center) / sphere.radius
            front_face = 1 if tm.dot(outward_normal, ray_direction) < 0.0 else 0
            normal = outward_normal
            if front_face == 0:
                normal = -outward_normal
            result = Intersection(
                hit=1,
                t=t,
                point=point,
                normal=normal,
                front_face=front_face,
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f64) -> Sphere:
    """Create a sphere from center and radius inside a kernel."""
    return Sphere(center=center, radius=radius)


def sphere_bounding_box(center: Vec3Tuple, radius: float) -> Aabb:
    """Compute the axis-aligned box enclosing a sphere.

    A negative radius is treated by magnitude so the box stays valid.
    """
    r = abs(radius)
    return Aabb(
        (center[0] - r, center[1] - r, center[2] - r),
        (center[0] + r, center[1] + r, center[2] + r),
    )
