"""Axis-aligned bounding boxes.

Boxes are built and combined on the Python side while the BVH is constructed,
then their corners are uploaded into Taichi fields. ``hit_aabb`` is the kernel
twin of ``Aabb.hit`` and follows exactly the same slab rules, so a box that
prunes a ray on one side prunes it on the other.

Slab test conventions:
    - A zero direction component has reciprocal +inf or -inf (sign of zero).
    - A slab value of 0 * inf is NaN; NaN never narrows the running interval.
    - The interval is rejected once ``t_max <= t_min``.

Example:
    >>> box = Aabb((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
    >>> box.hit((0.5, 0.5, -1.0), (0.0, 0.0, 1.0), 0.0, math.inf)
    True
"""

import math
from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


@dataclass(frozen=True)
class Aabb:
    """An axis-aligned box given by its minimum and maximum corners.

    Attributes:
        min: Componentwise minimum corner (x, y, z).
        max: Componentwise maximum corner (x, y, z).

    Raises:
        ValueError: If any axis has min > max, or a coordinate is NaN.
    """

    min: Vec3Tuple
    max: Vec3Tuple

    def __post_init__(self) -> None:
        lo = tuple(float(c) for c in self.min)
        hi = tuple(float(c) for c in self.max)
        if len(lo) != 3 or len(hi) != 3:
            raise ValueError(f"Aabb corners must have 3 components, got {self.min}, {self.max}")
        for axis in range(3):
            # Written so that NaN also fails
            if not lo[axis] <= hi[axis]:
                raise ValueError(
                    f"Aabb min {lo} exceeds max {hi} on axis {axis}"
                )
        object.__setattr__(self, "min", lo)
        object.__setattr__(self, "max", hi)

    @staticmethod
    def surrounding(a: "Aabb", b: "Aabb") -> "Aabb":
        """Return the tightest box containing both a and b."""
        return Aabb(
            tuple(min(a.min[i], b.min[i]) for i in range(3)),
            tuple(max(a.max[i], b.max[i]) for i in range(3)),
        )

    def shifted(self, offset: Vec3Tuple) -> "Aabb":
        """Return this box translated by offset."""
        return Aabb(
            tuple(self.min[i] + offset[i] for i in range(3)),
            tuple(self.max[i] + offset[i] for i in range(3)),
        )

    def hit(
        self,
        origin: Vec3Tuple,
        direction: Vec3Tuple,
        t_min: float,
        t_max: float,
    ) -> bool:
        """Slab test of a ray against the box over (t_min, t_max).

        Args:
            origin: Ray origin.
            direction: Ray direction; zero components are allowed.
            t_min: Lower bound of the parametric interval.
            t_max: Upper bound of the parametric interval.

        Returns:
            True if some part of the interval lies inside the box.
        """
        for axis in range(3):
            d = direction[axis]
            inv_d = 1.0 / d if d != 0.0 else math.copysign(math.inf, d)
            t0 = (self.min[axis] - origin[axis]) * inv_d
            t1 = (self.max[axis] - origin[axis]) * inv_d
            if inv_d < 0.0:
                t0, t1 = t1, t0
            if t0 > t_min:
                t_min = t0
            if t1 < t_max:
                t_max = t1
            if t_max <= t_min:
                return False
        return True

    def cmp_min_axis(self, axis: int, other: "Aabb") -> int:
        """Order two boxes by their minimum coordinate on one axis.

        Returns:
            -1, 0 or 1 as this box's minimum is below, equal to or above
            other's.

        Raises:
            ValueError: If either coordinate is NaN.
        """
        a = self.min[axis]
        b = other.min[axis]
        if math.isnan(a) or math.isnan(b):
            raise ValueError(f"Cannot order NaN box coordinates on axis {axis}")
        return (a > b) - (a < b)

    def contains(self, other: "Aabb") -> bool:
        """Check whether other lies entirely within this box."""
        return all(
            self.min[i] <= other.min[i] and other.max[i] <= self.max[i] for i in range(3)
        )


@ti.func
def hit_aabb(
    box_min: vec3,
    box_max: vec3,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
) -> ti.i32:
    """Slab test of a ray against a box inside a kernel.

    Same semantics as ``Aabb.hit``. Once the interval empties it can only
    stay empty, so the test runs all three axes and checks at the end.

    Returns:
        1 if the ray overlaps the box within (t_min, t_max), 0 otherwise.
    """
    lo = t_min
    hi = t_max
    for axis in ti.static(range(3)):
        inv_d = 1.0 / ray_direction[axis]
        t0 = (box_min[axis] - ray_origin[axis]) * inv_d
        t1 = (box_max[axis] - ray_origin[axis]) * inv_d
        t_near = ti.select(inv_d < 0.0, t1, t0)
        t_far = ti.select(inv_d < 0.0, t0, t1)
        lo = ti.select(t_near > lo, t_near, lo)
        hi = ti.select(t_far < hi, t_far, hi)
    return 1 if hi > lo else 0
