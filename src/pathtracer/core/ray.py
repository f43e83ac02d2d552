"""Ray data structure and vector utilities.

This module provides the fundamental Ray dataclass and the deterministic
vector helpers (reflection, refraction, Fresnel) used by the materials. All
operations are Taichi functions for use inside kernels. Randomized sampling
helpers live in ``pathtracer.core.rng`` because they need a random stream.

Example:
    >>> import taichi as ti
    >>> from pathtracer.core.config import init_taichi
    >>> init_taichi()
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors; f64 once the runtime runs with default_fp=ti.f64
vec3 = tm.vec3


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            normalized; callers use the same parametrization throughout.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f64) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length_squared(v: vec3) -> ti.f64:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def unit(v: vec3) -> vec3:
    """Scale a vector to unit length.

    Zero-length input yields NaN components; degenerate geometry is not
    guarded against.
    """
    return v / tm.sqrt(tm.dot(v, v))


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (unit length).

    Returns:
        The reflected direction vector, I - 2(I . N)N.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, etai_over_etat: ti.f64) -> vec3:
    """Refract a unit incident vector through a surface.

    Splits the refracted ray into components parallel and perpendicular to
    the surface. The caller checks for total internal reflection beforehand.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal (unit length, facing the incident ray).
        etai_over_etat: Ratio of refractive indices, incident over transmitted.

    Returns:
        The refracted direction vector.
    """
    cos_theta = tm.dot(-unit_incident, normal)
    r_out_perp = etai_over_etat * (unit_incident + cos_theta * normal)
    r_out_parallel = -tm.sqrt(1.0 - tm.dot(r_out_perp, r_out_perp)) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: ti.f64, ref_idx: ti.f64) -> ti.f64:
    """Compute Fresnel reflectance using Schlick's approximation.

    An index-matched interface (ratio exactly 1) has no boundary to reflect
    from, so its reflectance is zero at every angle.

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate probability of reflection.
    """
    reflectance = 0.0
    if ref_idx != 1.0:
        r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
        r0 = r0 * r0
        reflectance = r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)
    return reflectance

