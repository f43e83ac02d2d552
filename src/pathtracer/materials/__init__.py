"""Materials module for surface scattering models.

This module implements the material models that decide how a ray leaves a
surface:

Components:
    lambertian: Ideal diffuse reflection
    metal: Mirror reflection perturbed by a fuzz sphere
    dielectric: Glass-like refraction with Schlick reflectance
    checkered: 3-D checkerboard choosing between two other materials
    perlin: Marble texture from Perlin turbulence, scattered diffusely
    material: Unified material ids and scatter dispatch

Each material answers one question for a hit: the scattered direction, the
attenuation color, and whether the ray scattered at all.

Every module here declares Taichi fields; call
``pathtracer.core.config.init_taichi`` before importing this package.
"""

from .checkered import (
    CHECKER_FREQUENCY,
    add_checkered_material,
    clear_checkered_materials,
    get_checkered_material_count,
    select_checkered_material,
)
from .dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
    fresnel_reflectance,
    get_dielectric_ior,
    get_dielectric_material_count,
    scatter_dielectric,
    scatter_dielectric_by_id,
    will_reflect,
)
from .lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
    get_lambertian_albedo,
    get_lambertian_material_count,
    scatter_lambertian,
    scatter_lambertian_by_id,
)
from .material import (
    MAX_MATERIALS,
    MaterialType,
    clear_material_registry,
    get_material_count,
    get_material_type,
    get_material_type_index,
    get_material_type_python,
    register_material,
    resolve_material,
    scatter_material,
)
from .metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_albedo,
    get_metal_fuzz,
    get_metal_material_count,
    scatter_metal,
    scatter_metal_by_id,
)
from .perlin import (
    PerlinTables,
    add_perlin_material,
    build_perlin_tables,
    clear_perlin_materials,
    get_perlin_material_count,
    perlin_albedo,
    perlin_noise,
    perlin_turbulence,
    scatter_perlin_by_id,
)

__all__ = [
    # Lambertian
    "scatter_lambertian",
    "scatter_lambertian_by_id",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "get_lambertian_material_count",
    "get_lambertian_albedo",
    # Metal
    "scatter_metal",
    "scatter_metal_by_id",
    "add_metal_material",
    "clear_metal_materials",
    "get_metal_material_count",
    "get_metal_albedo",
    "get_metal_fuzz",
    # Dielectric
    "scatter_dielectric",
    "scatter_dielectric_by_id",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_material_count",
    "get_dielectric_ior",
    "fresnel_reflectance",
    "will_reflect",
    # Checkered
    "CHECKER_FREQUENCY",
    "add_checkered_material",
    "clear_checkered_materials",
    "get_checkered_material_count",
    "select_checkered_material",
    # Perlin
    "PerlinTables",
    "build_perlin_tables",
    "add_perlin_material",
    "clear_perlin_materials",
    "get_perlin_material_count",
    "perlin_noise",
    "perlin_turbulence",
    "perlin_albedo",
    "scatter_perlin_by_id",
    # Registry
    "MaterialType",
    "MAX_MATERIALS",
    "register_material",
    "clear_material_registry",
    "get_material_count",
    "get_material_type",
    "get_material_type_index",
    "get_material_type_python",
    "resolve_material",
    "scatter_material",
]
