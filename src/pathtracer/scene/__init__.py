"""Scene module for scene storage, acceleration and hit-checks.

This module handles scene representation and ray-scene queries:

Components:
    objects: Arena of scene objects in Structure-of-Arrays Taichi fields
    bvh: Bounding volume hierarchy built in Python and flattened for traversal
    renderable: Hit-check combining intersection with material scattering
    manager: Unified scene manager coordinating objects, materials and camera

Scene data is written only while building and read-only while rendering.
"""

from .bvh import (
    MAX_BVH_NODES,
    BvhLeaf,
    BvhNode,
    BvhTree,
    build_bvh,
    clear_bvh,
    get_bvh_node_count,
    intersect_bvh,
    upload_bvh,
)
from .manager import MaterialInfo, Scene, SceneManager
from .objects import (
    MAX_OBJECTS,
    SceneHitRecord,
    SceneObject,
    add_object,
    clear_objects,
    get_object_count,
    intersect_objects_linear,
)
from .renderable import HitCheck, HitCheckResult, hit_check, intersect_scene, set_traversal

__all__ = [
    # Objects
    "SceneObject",
    "SceneHitRecord",
    "MAX_OBJECTS",
    "add_object",
    "clear_objects",
    "get_object_count",
    "intersect_objects_linear",
    # BVH
    "BvhLeaf",
    "BvhNode",
    "BvhTree",
    "MAX_BVH_NODES",
    "build_bvh",
    "upload_bvh",
    "clear_bvh",
    "get_bvh_node_count",
    "intersect_bvh",
    # Hit-check
    "HitCheck",
    "HitCheckResult",
    "hit_check",
    "intersect_scene",
    "set_traversal",
    # Manager
    "SceneManager",
    "Scene",
    "MaterialInfo",
]
