"""Pytest configuration for pathtracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    from pathtracer.core.config import init_taichi

    init_taichi(ti.cpu, seed=42)
    yield
    # Note: We don't call ti.reset() here as it can cause issues
    # with subsequent tests if any cleanup happens after


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data before and after each test.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized before fields are declared
    from pathtracer.camera.thin_lens import reset_camera
    from pathtracer.core.integrator import clear_render_target
    from pathtracer.materials.checkered import clear_checkered_materials
    from pathtracer.materials.dielectric import clear_dielectric_materials
    from pathtracer.materials.lambertian import clear_lambertian_materials
    from pathtracer.materials.material import clear_material_registry
    from pathtracer.materials.metal import clear_metal_materials
    from pathtracer.materials.perlin import clear_perlin_materials
    from pathtracer.scene.bvh import clear_bvh
    from pathtracer.scene.objects import clear_objects
    from pathtracer.scene.renderable import set_traversal

    def _clear_all():
        clear_objects()
        clear_bvh()
        set_traversal(False)
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_checkered_materials()
        clear_perlin_materials()
        clear_material_registry()
        reset_camera()
        clear_render_target()

    _clear_all()

    yield

    _clear_all()


@pytest.fixture
def sphere_scene():
    """A small scene of three spheres on a large ground sphere.

    Returns a factory so tests can pick camera and traversal options.
    """

    def _build(use_bvh: bool = True, exposure_time: float = 0.0):
        from pathtracer.camera.thin_lens import CameraParams
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        ground = scene.add_lambertian_material((0.5, 0.5, 0.5))
        red = scene.add_lambertian_material((0.7, 0.3, 0.3))
        gold = scene.add_metal_material((0.8, 0.6, 0.2), fuzz=0.3)
        glass = scene.add_dielectric_material(1.5)

        scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
        scene.add_sphere((0.0, 0.0, -1.0), 0.5, red, velocity=(0.0, 0.2, 0.0))
        scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)
        scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)

        camera = CameraParams(
            vfov=90.0,
            aspect_ratio=1.0,
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, -1.0),
            exposure_time=exposure_time,
        )
        return scene, scene.build(camera, use_bvh=use_bvh)

    return _build
