"""Hit-check: scene intersection and material scattering in one call.

The integrator only ever asks one question of the scene: what happens to this
ray? ``hit_check`` answers with one of three outcomes:

    MISS       the ray leaves the scene
    ABSORBED   the ray hit a surface that absorbed it
    REFLECTED  the ray hit a surface and continues as a new ray, carrying
               an attenuation color

Whether the scene is searched through the BVH or by a flat scan over all
objects is chosen when the scene is built.
"""

from enum import IntEnum

import taichi as ti

from pathtracer.core.ray import vec3
from pathtracer.materials.material import scatter_material
from pathtracer.scene.bvh import intersect_bvh
from pathtracer.scene.objects import (
    SceneHitRecord,
    intersect_objects_linear,
    make_miss_record,
)


class HitCheck(IntEnum):
    """Outcome of a hit-check."""

    MISS = 0
    ABSORBED = 1
    REFLECTED = 2


@ti.dataclass
class HitCheckResult:
    """Result of a hit-check.

    Attributes:
        outcome: A HitCheck value.
        attenuation: Color multiplier. Only valid if outcome is REFLECTED.
        origin: Origin of the scattered ray (the hit point).
            Only valid if outcome is REFLECTED.
        direction: Direction of the scattered ray.
            Only valid if outcome is REFLECTED.
    """

    outcome: ti.i32
    attenuation: vec3
    origin: vec3
    direction: vec3


# 1 to search through the BVH, 0 to scan all objects
_use_bvh = ti.field(dtype=ti.i32, shape=())


def set_traversal(use_bvh: bool) -> None:
    """Choose how hit-checks search the scene."""
    _use_bvh[None] = 1 if use_bvh else 0


def uses_bvh() -> bool:
    """Check whether hit-checks search through the BVH."""
    return bool(_use_bvh[None])


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
    time: ti.f64,
) -> SceneHitRecord:
    """Closest hit using the traversal selected at build time."""
    rec = make_miss_record()
    if _use_bvh[None] == 1:
        rec = intersect_bvh(ray_origin, ray_direction, t_min, t_max, time)
    else:
        rec = intersect_objects_linear(ray_origin, ray_direction, t_min, t_max, time)
    return rec


@ti.func
def hit_check(
    rng: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
    time: ti.f64,
) -> HitCheckResult:
    """Intersect a ray with the scene and scatter it off what it hits.

    Args:
        rng: The random stream of the calling task.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.
        time: The instant the ray samples.

    Returns:
        A HitCheckResult with outcome MISS, ABSORBED or REFLECTED.
    """
    result = HitCheckResult(
        outcome=int(HitCheck.MISS),
        attenuation=vec3(0.0, 0.0, 0.0),
        origin=vec3(0.0, 0.0, 0.0),
        direction=vec3(0.0, 0.0, 0.0),
    )

    rec = intersect_scene(ray_origin, ray_direction, t_min, t_max, time)
    if rec.hit == 1:
        direction, attenuation, did_scatter = scatter_material(
            rng, rec.material_id, ray_direction, rec.point, rec.normal, rec.front_face
        )
        if did_scatter == 1:
            result.outcome = int(HitCheck.REFLECTED)
            result.attenuation = attenuation
            result.origin = rec.point
            result.direction = direction
        else:
            result.outcome = int(HitCheck.ABSORBED)

    return result
