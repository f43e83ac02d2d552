"""Bounding volume hierarchy over the scene-object arena.

The hierarchy is built once in Python from the objects' bounding boxes, then
flattened into Taichi fields for traversal inside kernels.

Construction:
    - An empty object list gives no tree; the scene then always misses.
    - A single object is returned as a bare leaf, with no node around it.
    - Otherwise the split axis cycles through x, y, z with the list size
      (``(n - 1).bit_length() % 3``, the trailing zeros of the next power of
      two), the list is stably sorted by box minimum on that axis, and it is
      dealt alternately into two halves: the second, fourth, ... entries go
      left and the first, third, ... go right. Each half is built
      recursively and the node caches the union of its children's boxes.

Flattened layout:
    Internal nodes are stored in preorder. A child reference ``>= 0`` is a
    node index; a reference ``< 0`` is a leaf holding object ``-(ref + 1)``.

Traversal keeps an explicit stack and the closest hit so far. Nodes whose box
the ray misses within the current closest distance are skipped. The right
child is visited first, so among hits at exactly equal distance the right one
wins, as in the recursive definition "left only if strictly closer".

Example:
    >>> from pathtracer.scene.bvh import build_bvh, upload_bvh
    >>> root = build_bvh(objects, exposure_time=1.0)
    >>> upload_bvh(root)
    >>> # Use intersect_bvh within a Taichi kernel
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Union

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.geometry.aabb import Aabb, hit_aabb
from pathtracer.scene.objects import (
    MAX_OBJECTS,
    SceneHitRecord,
    SceneObject,
    intersect_object,
    make_miss_record,
)

logger = logging.getLogger(__name__)

vec3 = tm.vec3


# =============================================================================
# Python-side Tree
# =============================================================================


@dataclass(frozen=True)
class BvhLeaf:
    """A leaf referring to one arena object.

    Attributes:
        index: Arena index of the object.
        bounding_box: The object's box over the exposure window.
    """

    index: int
    bounding_box: Aabb

    def depth(self) -> int:
        return 0

    def leaf_indices(self) -> list[int]:
        return [self.index]


@dataclass(frozen=True)
class BvhNode:
    """An internal node with two children and their cached union box.

    Attributes:
        bounding_box: Union of both children's boxes.
        left: Left subtree.
        right: Right subtree.
    """

    bounding_box: Aabb
    left: "BvhTree"
    right: "BvhTree"

    def depth(self) -> int:
        """Number of internal nodes on the longest root-to-leaf path."""
        return 1 + max(self.left.depth(), self.right.depth())

    def leaf_indices(self) -> list[int]:
        """Object indices in left-to-right leaf order."""
        return self.left.leaf_indices() + self.right.leaf_indices()


BvhTree = Union[BvhNode, BvhLeaf]


def split_axis(count: int) -> int:
    """Split axis for a list of ``count`` boxes.

    Equals ``trailing_zeros(next_power_of_two(count)) % 3``.
    """
    return (count - 1).bit_length() % 3


def _build(items: list[BvhLeaf]) -> BvhTree:
    if not items:
        raise ValueError("Cannot build a BVH node from an empty list")
    if len(items) == 1:
        return items[0]

    axis = split_axis(len(items))
    ordered = sorted(
        items,
        key=cmp_to_key(lambda a, b: a.bounding_box.cmp_min_axis(axis, b.bounding_box)),
    )
    left = _build(ordered[1::2])
    right = _build(ordered[0::2])
    return BvhNode(
        bounding_box=Aabb.surrounding(left.bounding_box, right.bounding_box),
        left=left,
        right=right,
    )


def build_bvh(objects: Sequence[SceneObject], exposure_time: float) -> BvhTree | None:
    """Build a hierarchy over a list of scene objects.

    Leaves refer to positions in ``objects``, which must match the arena
    order. Building twice from the same list yields identical trees.

    Args:
        objects: The objects, in arena order.
        exposure_time: Shutter interval used to bound moving objects.

    Returns:
        The root (a BvhNode, or a BvhLeaf for one object), or None if
        objects is empty.
    """
    if not objects:
        return None
    leaves = [
        BvhLeaf(index=i, bounding_box=obj.bounding_box(exposure_time))
        for i, obj in enumerate(objects)
    ]
    root = _build(leaves)
    logger.debug("Built BVH over %d objects (depth %d)", len(objects), root.depth())
    return root


# =============================================================================
# Flattened Tree (Taichi fields)
# =============================================================================

# A binary tree with n leaves has n - 1 internal nodes
MAX_BVH_NODES = MAX_OBJECTS - 1

# Traversal stack depth; a tree of depth d needs at most d + 1 slots
BVH_STACK_SIZE = 64

BVH_EMPTY = 0
BVH_READY = 1

node_box_min = ti.Vector.field(3, dtype=ti.f64, shape=MAX_BVH_NODES)
node_box_max = ti.Vector.field(3, dtype=ti.f64, shape=MAX_BVH_NODES)
node_left = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
node_right = ti.field(dtype=ti.i32, shape=MAX_BVH_NODES)
_bvh_root = ti.field(dtype=ti.i32, shape=())
_bvh_state = ti.field(dtype=ti.i32, shape=())
_bvh_node_count = ti.field(dtype=ti.i32, shape=())


def leaf_ref(index: int) -> int:
    """Encode an object index as a child reference."""
    return -(index + 1)


def clear_bvh() -> None:
    """Drop the uploaded hierarchy; traversal then always misses."""
    _bvh_state[None] = BVH_EMPTY
    _bvh_root[None] = 0
    _bvh_node_count[None] = 0


def upload_bvh(root: BvhTree | None) -> int:
    """Flatten a tree into the traversal fields.

    Args:
        root: The tree from build_bvh, or None for an empty scene.

    Returns:
        The number of internal nodes uploaded.

    Raises:
        RuntimeError: If the tree has more nodes than the fields hold, or
            is too deep for the traversal stack.
    """
    if root is None:
        clear_bvh()
        return 0

    depth = root.depth()
    if depth + 1 > BVH_STACK_SIZE:
        raise RuntimeError(
            f"BVH depth {depth} exceeds the traversal stack ({BVH_STACK_SIZE} slots)"
        )

    box_min = np.zeros((MAX_BVH_NODES, 3), dtype=np.float64)
    box_max = np.zeros((MAX_BVH_NODES, 3), dtype=np.float64)
    left = np.zeros(MAX_BVH_NODES, dtype=np.int32)
    right = np.zeros(MAX_BVH_NODES, dtype=np.int32)
    count = 0

    def flatten(tree: BvhTree) -> int:
        nonlocal count
        if isinstance(tree, BvhLeaf):
            return leaf_ref(tree.index)
        if count >= MAX_BVH_NODES:
            raise RuntimeError(f"Maximum number of BVH nodes ({MAX_BVH_NODES}) exceeded")
        idx = count
        count += 1
        box_min[idx] = tree.bounding_box.min
        box_max[idx] = tree.bounding_box.max
        left[idx] = flatten(tree.left)
        right[idx] = flatten(tree.right)
        return idx

    root_ref = flatten(root)

    node_box_min.from_numpy(box_min)
    node_box_max.from_numpy(box_max)
    node_left.from_numpy(left)
    node_right.from_numpy(right)
    _bvh_root[None] = root_ref
    _bvh_node_count[None] = count
    _bvh_state[None] = BVH_READY
    return count


def get_bvh_node_count() -> int:
    """Get the number of internal nodes currently uploaded."""
    return int(_bvh_node_count[None])


@ti.func
def intersect_bvh(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f64,
    t_max: ti.f64,
    time: ti.f64,
) -> SceneHitRecord:
    """Find the closest object hit through the uploaded hierarchy.

    Node boxes already bound the whole exposure window, so ``time`` is only
    used at the leaves.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.
        time: The instant the ray samples.

    Returns:
        The closest SceneHitRecord, or a miss record.
    """
    result = make_miss_record()
    closest_t = t_max

    if _bvh_state[None] == BVH_READY:
        stack = ti.Vector([0 for _ in range(BVH_STACK_SIZE)], dt=ti.i32)
        stack[0] = _bvh_root[None]
        stack_ptr = 1

        while stack_ptr > 0:
            stack_ptr -= 1
            ref = stack[stack_ptr]

            if ref < 0:
                rec = intersect_object(
                    -ref - 1, ray_origin, ray_direction, t_min, closest_t, time
                )
                if rec.hit == 1:
                    closest_t = rec.t
                    result = rec
            elif hit_aabb(
                node_box_min[ref], node_box_max[ref], ray_origin, ray_direction, t_min, closest_t
            ) == 1:
                # Pushed last, popped first: the right subtree is searched first
                stack[stack_ptr] = node_left[ref]
                stack[stack_ptr + 1] = node_right[ref]
                stack_ptr += 2

    return result
