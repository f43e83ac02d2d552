"""Scene-object arena and flat intersection.

Every renderable object is a record of a primitive, a material id and a
constant velocity. Records live in one contiguous set of Taichi fields
(Structure of Arrays) and are referred to by index everywhere else: the BVH
stores these indices in its leaves.

``intersect_objects_linear`` tests every object in order and is both the
renderer's non-accelerated path and the reference the BVH is checked against.

Example:
    >>> from pathtracer.scene.objects import SceneObject, add_object, clear_objects
    >>> clear_objects()
    >>> add_object(SceneObject(center=(0.0, 0.0, -1.0), radius=0.5, material_id=0))
    0
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.aabb import Aabb, Vec3Tuple
from pathtracer.geometry.moving import intersect_moving, moving_bounding_box
from pathtracer.geometry.shape import ShapeType, shape_bounding_box

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3


@dataclass(frozen=True)
class SceneObject:
    """A primitive with a material and a constant velocity.

    Attributes:
        center: Center of the primitive at time 0.
        radius: Radius of the primitive.
        material_id: Unified material id.
        velocity: Displacement per unit time; zero means static.
        shape_type: Kind of primitive.
    """

    center: Vec3Tuple
    radius: float
    material_id: int
    velocity: Vec3Tuple = (0.0, 0.0, 0.0)
    shape_type: ShapeType = ShapeType.SPHERE

    @property
    def is_moving(self) -> bool:
        return any(v != 0.0 for v in self.velocity)

    def bounding_box(self, exposure_time: float) -> Aabb:
        """Box containing the object at every instant of [0, exposure_time]."""
        rest = shape_bounding_box(self.shape_type, self.center, self.radius)
        if not self.is_moving:
            return rest
        return moving_bounding_box(rest, self.velocity, exposure_time)


@ti.dataclass
class SceneHitRecord:
    """Record of a ray-scene intersection with material information.

    Attributes:
        hit: Whether the ray intersected any object (1 if hit, 0 if miss).
        t: The parameter value along the ray where intersection occurred.
        point: The 3D point where the ray intersected the surface.
        normal: The unit surface normal, facing the incoming ray.
        front_face: Whether the ray hit the front face (1) or back face (0).
        material_id: The material ID of the hit object. -1 on a miss.
        object_index: Arena index of the hit object. -1 on a miss.
    """

    hit: ti.i32
    t: ti.f64
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32
    object_index: ti.i32


# Maximum number of objects supported in the scene
MAX_OBJECTS = 4096

# Object storage: Structure of Arrays layout
object_shape_types = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
object_centers = ti.Vector.field(3, dtype=ti.f64, shape=MAX_OBJECTS)
object_radii = ti.field(dtype=ti.f64, shape=MAX_OBJECTS)
object_velocities = ti.Vector.field(3, dtype=ti.f64, shape=MAX_OBJECTS)
object_material_ids = ti.field(dtype=ti.i32, shape=MAX_OBJECTS)
num_objects = ti.field(dtype=ti.i32, shape=())


def clear_objects() -> None:
    """Remove all objects from the arena.

    Resets the object count to zero. Field data is overwritten as new objects
    are added.
    """
    num_objects[None] = 0


def add_object(obj: SceneObject) -> int:
    """Append an object to the arena.

    Args:
        obj: The object to store.

    Returns:
        The arena index of the added object.

    Raises:
        RuntimeError: If the maximum number of objects is exceeded.
    """
    idx = num_objects[None]
    if idx >= MAX_OBJECTS:
        raise RuntimeError(f"Maximum number of objects ({MAX_OBJECTS}) exceeded")
    object_shape_types[idx] = int(obj.shape_type)
    object_centers[idx] = vec3(obj.center[0], obj.center[1], obj.center[2])
    object_radii[idx] = obj.radius
    object_velocities[idx] = vec3(obj.velocity[0], obj.velocity[1], obj.velocity[2])
    object_material_ids[idx] = obj.material_id
    num_objects[None] = idx + 1
    return idx


def get_object_count() -> int:
    """Get the number of objects in the arena."""
    return int(num_objects[None])


@ti.func
def make_miss_record() -> SceneHitRecord:
    """Create a SceneHitRecord indicating no intersection."""
    return SceneHitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
        object_index=-1,
    )


@ti.func
def intersect_object(
    idx: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
    time: ti.f64,
) -> SceneHitRecord:
    """Intersect a ray with one arena object at a given instant.

    Args:
        idx: Arena index of the object.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.
        time: The instant the ray samples.

    Returns:
        A SceneHitRecord; check hit to see whether the object was struck.
    """
    rec = intersect_moving(
        object_shape_types[idx],
        object_centers[idx],
        object_radii[idx],
        object_velocities[idx],
        ray_origin,
        ray_direction,
        t_min,
        t_max,
        time,
    )
    result = make_miss_record()
    if rec.hit == 1:
        result = SceneHitRecord(
            hit=1,
            t=rec.t,
            point=rec.point,
            normal=rec.normal,
            front_face=rec.front_face,
            material_id=object_material_ids[idx],
            object_index=idx,
        )
    return result


@ti.func
def intersect_objects_linear(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
    time: ti.f64,
) -> SceneHitRecord:
    """Test a ray against every object and keep the closest hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.
        time: The instant the ray samples.

    Returns:
        The closest SceneHitRecord, or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()

    for i in range(num_objects[None]):
        rec = intersect_object(i, ray_origin, ray_direction, t_min, closest_t, time)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result
