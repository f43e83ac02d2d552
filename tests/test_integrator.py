"""Tests for the path tracing integrator.

This module tests the core path tracing functionality including:
- Render target setup and management
- First-bounce albedo and depth exhaustion
- Sky gradient on misses and black on absorption
- Bit-reproducibility for a fixed seed
- Cancellation before and during a render

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest


def _diffuse_scene(albedo=(0.6, 0.4, 0.2), inside=False):
    """Build a scene whose single diffuse sphere fills the whole frame."""
    from pathtracer.camera.thin_lens import CameraParams
    from pathtracer.scene.manager import SceneManager

    scene = SceneManager()
    material = scene.add_lambertian_material(albedo)
    if inside:
        # Camera at the center of the sphere: every path keeps bouncing
        scene.add_sphere((0.0, 0.0, 0.0), 10.0, material)
    else:
        scene.add_sphere((0.0, 0.0, -100.0), 90.0, material)
    scene.build(
        CameraParams(
            vfov=30.0,
            aspect_ratio=1.0,
            lookfrom=(0.0, 0.0, 0.0),
            lookat=(0.0, 0.0, -1.0),
        )
    )
    return scene


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_sets_dimensions(self):
        """Test that setup_render_target records the active size."""
        from pathtracer.core.integrator import (
            get_image_dimensions,
            get_total_samples,
            setup_render_target,
        )

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)
        assert get_total_samples() == 0

    @pytest.mark.parametrize("size", [(0, 10), (10, -1), (4096, 10)])
    def test_invalid_dimensions(self, size):
        """Test that bad dimensions raise ValueError."""
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(*size)

    def test_render_without_camera(self):
        """Test that rendering before building a scene raises RuntimeError."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        with pytest.raises(RuntimeError, match="Camera"):
            render(RenderConfig(samples_per_pixel=1, max_depth=1, image_width=4, image_height=4))


class TestPathTracing:
    """End-to-end checks of the trace loop."""

    def test_single_bounce_returns_albedo(self):
        """Test that max_depth 1 gives exactly the albedo on every pixel."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        _diffuse_scene(albedo=(0.6, 0.4, 0.2))
        result = render(
            RenderConfig(samples_per_pixel=1, max_depth=1, image_width=8, image_height=6)
        )

        assert result.samples == 1
        assert not result.is_empty
        assert result.pixels.shape == (48, 3)
        assert result.pixels.dtype == np.float64
        assert np.allclose(result.pixels, [0.6, 0.4, 0.2], atol=1e-12)

    def test_depth_exhaustion_keeps_color(self):
        """Test that paths still bouncing at max_depth keep their attenuation."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        _diffuse_scene(albedo=(0.5, 0.5, 0.5), inside=True)
        result = render(
            RenderConfig(samples_per_pixel=2, max_depth=3, image_width=4, image_height=4)
        )
        assert np.allclose(result.pixels, 0.125, atol=1e-12)

    def test_empty_scene_shows_sky(self):
        """Test the sky gradient: white at the horizon, blue overhead."""
        from pathtracer.camera.thin_lens import CameraParams
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render
        from pathtracer.scene.manager import SceneManager

        SceneManager().build(CameraParams(vfov=90.0, aspect_ratio=1.0))
        result = render(
            RenderConfig(samples_per_pixel=4, max_depth=5, image_width=5, image_height=5)
        )
        image = result.as_image()

        assert np.allclose(image[..., 2], 1.0)
        assert np.all(image[..., 0] >= 0.5)
        assert np.all(image[..., 0] <= 1.0)
        # Top row looks higher into the sky than the bottom row
        assert image[0, 2, 0] < image[-1, 2, 0]

    def test_absorbing_surface_is_black(self):
        """Test that absorbed paths contribute black."""
        from pathtracer.camera.thin_lens import CameraParams, setup_camera
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render
        from pathtracer.scene.bvh import build_bvh, upload_bvh
        from pathtracer.scene.objects import SceneObject, add_object
        from pathtracer.scene.renderable import set_traversal

        # No material is registered, so the sphere absorbs every ray
        obj = SceneObject(center=(0.0, 0.0, -100.0), radius=90.0, material_id=0)
        add_object(obj)
        upload_bvh(build_bvh([obj], 0.0))
        set_traversal(True)
        setup_camera(CameraParams(vfov=30.0, aspect_ratio=1.0))

        result = render(
            RenderConfig(samples_per_pixel=2, max_depth=4, image_width=4, image_height=4)
        )
        assert np.all(result.pixels == 0.0)
        assert not result.is_empty

    def test_bvh_and_linear_traversal_agree(self, sphere_scene):
        """Test that both traversals render the same image."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        config = RenderConfig(
            samples_per_pixel=2, max_depth=6, image_width=12, image_height=12, seed=3
        )
        sphere_scene(use_bvh=True, exposure_time=1.0)
        with_bvh = render(config)
        sphere_scene(use_bvh=False, exposure_time=1.0)
        linear = render(config)

        assert np.allclose(with_bvh.pixels, linear.pixels, atol=1e-9)


class TestReproducibility:
    """Tests for deterministic per-pixel seeding."""

    def test_same_seed_bit_identical(self, sphere_scene):
        """Test that two renders with one seed are bit-identical."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        sphere_scene(exposure_time=0.5)
        config = RenderConfig(
            samples_per_pixel=3, max_depth=8, image_width=16, image_height=9, seed=17
        )
        first = render(config)
        second = render(config)
        assert np.array_equal(first.pixels, second.pixels)

    def test_different_seed_differs(self, sphere_scene):
        """Test that changing the seed changes the noise."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        sphere_scene()
        base = {"samples_per_pixel": 2, "max_depth": 8, "image_width": 16, "image_height": 9}
        a = render(RenderConfig(**base, seed=1))
        b = render(RenderConfig(**base, seed=2))
        assert not np.array_equal(a.pixels, b.pixels)

    def test_render_sample_matches_full_render(self, sphere_scene):
        """Test that the single-pixel entry point sees the same stream."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render, render_sample

        sphere_scene()
        width, height = 6, 4
        result = render(
            RenderConfig(
                samples_per_pixel=1, max_depth=8, image_width=width, image_height=height, seed=5
            )
        )
        image = result.as_image()

        for i, j in [(0, 0), (3, 2), (5, 3)]:
            color = render_sample(i, j, max_depth=8, seed=5)
            assert np.allclose(color, image[height - 1 - j, i], atol=1e-12)

    def test_render_sample_out_of_range(self, sphere_scene):
        """Test that render_sample rejects pixels outside the image."""
        from pathtracer.core.integrator import render_sample, setup_render_target

        sphere_scene()
        setup_render_target(4, 4)
        with pytest.raises(ValueError):
            render_sample(4, 0)


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancelled_before_first_sample(self, sphere_scene, caplog):
        """Test that an immediate stop yields an all-zero empty result."""
        from pathtracer.core.cancellation import ContinueFlag
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        sphere_scene()
        flag = ContinueFlag()
        flag.stop()

        with caplog.at_level("WARNING", logger="pathtracer.core.integrator"):
            result = render(
                RenderConfig(samples_per_pixel=8, max_depth=4, image_width=8, image_height=8),
                should_continue=flag,
            )

        assert result.is_empty
        assert result.samples == 0
        assert np.all(result.pixels == 0.0)
        assert not np.any(np.isnan(result.pixels))
        assert "No samples completed" in caplog.text

    def test_cancelled_midway(self, sphere_scene):
        """Test that stopping after k polls keeps exactly k samples."""
        from pathtracer.core.config import RenderConfig
        from pathtracer.core.integrator import render

        sphere_scene()
        polls = []

        def should_continue():
            polls.append(None)
            return len(polls) <= 3

        config = RenderConfig(samples_per_pixel=10, max_depth=4, image_width=8, image_height=8)
        partial = render(config, should_continue=should_continue)
        assert partial.samples == 3
        assert len(polls) == 4

        # The partial average equals a full render of the first three samples
        full = render(
            RenderConfig(samples_per_pixel=3, max_depth=4, image_width=8, image_height=8)
        )
        assert np.array_equal(partial.pixels, full.pixels)
