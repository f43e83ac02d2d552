"""Unified scene manager for coordinating objects, materials and the camera.

This module provides a high-level scene building API. It registers materials
in their type-specific registries under one unified material id space, stores
spheres (optionally moving) in the object arena, and on ``build()`` constructs
the BVH, uploads it and configures the camera.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- The ordered list of scene objects the BVH leaves refer to

Example:
    >>> from pathtracer.scene.manager import SceneManager
    >>> from pathtracer.camera.thin_lens import CameraParams
    >>> scene = SceneManager()
    >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    >>> scene.add_sphere(center=(0, -1000, 0), radius=1000, material_id=ground)
    >>> built = scene.build(CameraParams(vfov=20.0, aspect_ratio=1.5, lookfrom=(13, 2, 3)))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pathtracer.camera.thin_lens import CameraParams, reset_camera, setup_camera
from pathtracer.materials.checkered import add_checkered_material, clear_checkered_materials
from pathtracer.materials.dielectric import add_dielectric_material, clear_dielectric_materials
from pathtracer.materials.lambertian import add_lambertian_material, clear_lambertian_materials
from pathtracer.materials.material import (
    MaterialType,
    clear_material_registry,
    get_material_count,
    register_material,
)
from pathtracer.materials.metal import add_metal_material, clear_metal_materials
from pathtracer.materials.perlin import add_perlin_material, clear_perlin_materials
from pathtracer.scene.bvh import BvhTree, build_bvh, clear_bvh, upload_bvh
from pathtracer.scene.objects import (
    SceneObject,
    add_object,
    clear_objects,
    get_object_count,
)
from pathtracer.scene.renderable import set_traversal

logger = logging.getLogger(__name__)

Vec3Tuple = tuple[float, float, float]


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass(frozen=True)
class Scene:
    """The built, read-only state a render reads.

    Attributes:
        objects: Scene objects in arena order.
        materials: Registered materials in id order.
        bvh: Root of the hierarchy, or None for an empty scene.
        camera: The configured camera.
        use_bvh: Whether hit-checks search through the BVH.
    """

    objects: tuple[SceneObject, ...]
    materials: tuple[MaterialInfo, ...]
    bvh: BvhTree | None
    camera: CameraParams
    use_bvh: bool

    @property
    def object_count(self) -> int:
        return len(self.objects)


class SceneManager:
    """Unified scene manager coordinating objects and materials.

    Creating a SceneManager (or calling ``clear()``) resets every
    Taichi-side registry, so only one scene is live at a time.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        objects: List of SceneObject in the order they were added.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(refractive_index=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass, velocity=(0, 0.5, 0))
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.objects: list[SceneObject] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_objects()
        clear_bvh()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_checkered_materials()
        clear_perlin_materials()
        clear_material_registry()
        reset_camera()
        self.materials.clear()
        self.objects.clear()

    def clear(self) -> None:
        """Clear the entire scene (objects, materials and hierarchy)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(
        self, material_type: MaterialType, type_index: int, params: dict[str, Any]
    ) -> int:
        material_id = register_material(material_type, type_index)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(self, albedo: Vec3Tuple) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register(MaterialType.LAMBERTIAN, type_index, {"albedo": albedo})

    def add_metal_material(self, albedo: Vec3Tuple, fuzz: float = 0.0) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The reflection perturbation radius in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register(MaterialType.METAL, type_index, {"albedo": albedo, "fuzz": fuzz})

    def add_dielectric_material(self, refractive_index: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            refractive_index: Index of refraction. Default is 1.5 (glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the index is not positive.
        """
        type_index = add_dielectric_material(refractive_index)
        return self._register(
            MaterialType.DIELECTRIC, type_index, {"refractive_index": refractive_index}
        )

    def add_checkered_material(self, even_material_id: int, odd_material_id: int) -> int:
        """Add a 3-D checkerboard alternating between two existing materials.

        Inner materials must not be checkered themselves. Kernels resolve a
        checkered material in one lookup, so nested checkerboards are
        refused here rather than supported.

        Args:
            even_material_id: Material used where the checker sine product
                is non-negative.
            odd_material_id: Material used where it is negative.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If an inner id is unknown or is itself checkered.
        """
        for inner in (even_material_id, odd_material_id):
            info = self.get_material_info(inner)
            if info is None:
                raise ValueError(f"Invalid material_id: {inner}")
            if info.material_type == MaterialType.CHECKERED:
                raise ValueError(
                    f"Material {inner} is checkered; checkered materials cannot be nested"
                )

        type_index = add_checkered_material(even_material_id, odd_material_id)
        return self._register(
            MaterialType.CHECKERED,
            type_index,
            {"even": even_material_id, "odd": odd_material_id},
        )

    def add_perlin_material(self, seed: int = 0, scale: float = 4.0) -> int:
        """Add a Perlin-noise marble material to the scene.

        Args:
            seed: Seed for the noise lattice tables.
            scale: Frequency of the marble bands along z.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If seed is negative.
        """
        type_index = add_perlin_material(seed, scale)
        return self._register(MaterialType.PERLIN, type_index, {"seed": seed, "scale": scale})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        Returns:
            The MaterialType, or None for invalid material IDs.
        """
        info = self.get_material_info(material_id)
        return None if info is None else info.material_type

    # =========================================================================
    # Object Management
    # =========================================================================

    def add_sphere(
        self,
        center: Vec3Tuple,
        radius: float,
        material_id: int,
        velocity: Vec3Tuple | None = None,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere at time 0, as (x, y, z).
            radius: The radius of the sphere (should be positive).
            material_id: The unified material ID to assign to the sphere.
            velocity: Optional constant velocity for motion blur.

        Returns:
            The arena index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of objects is exceeded.
            ValueError: If material_id is invalid.
        """
        if self.get_material_info(material_id) is None:
            raise ValueError(f"Invalid material_id: {material_id}")

        obj = SceneObject(
            center=(float(center[0]), float(center[1]), float(center[2])),
            radius=float(radius),
            material_id=material_id,
            velocity=(0.0, 0.0, 0.0)
            if velocity is None
            else (float(velocity[0]), float(velocity[1]), float(velocity[2])),
        )
        index = add_object(obj)
        self.objects.append(obj)
        return index

    def get_object_count(self) -> int:
        """Get the number of objects in the scene."""
        return get_object_count()

    # =========================================================================
    # Build
    # =========================================================================

    def build(self, camera: CameraParams, *, use_bvh: bool = True) -> Scene:
        """Freeze the scene for rendering.

        Builds and uploads the BVH over the current objects (bounded over the
        camera's exposure window), selects the traversal and configures the
        camera. The returned Scene is a snapshot; adding objects afterwards
        requires another build.

        Args:
            camera: Camera parameters for the render.
            use_bvh: Search the scene through the BVH (True) or by scanning
                every object (False).

        Returns:
            The built Scene.
        """
        bvh = build_bvh(self.objects, camera.exposure_time)
        node_count = upload_bvh(bvh)
        set_traversal(use_bvh)
        setup_camera(camera)

        logger.info(
            "Built scene: %d objects, %d materials, %d BVH nodes (traversal=%s)",
            len(self.objects),
            len(self.materials),
            node_count,
            "bvh" if use_bvh else "linear",
        )
        return Scene(
            objects=tuple(self.objects),
            materials=tuple(self.materials),
            bvh=bvh,
            camera=camera,
            use_bvh=use_bvh,
        )

    def __repr__(self) -> str:
        return f"SceneManager(objects={len(self.objects)}, materials={len(self.materials)})"
