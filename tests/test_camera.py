"""Unit tests for the thin-lens camera.

Tests cover:
- Parameter validation
- Orthonormal basis and viewport construction
- Ray generation through the image center and corners
- Depth of field: lens offsets and focus-plane convergence
- Shutter time sampling
"""

import math

import numpy as np
import pytest
import taichi as ti


def _basic_camera(**overrides):
    from pathtracer.camera.thin_lens import CameraParams

    params = {
        "vfov": 90.0,
        "aspect_ratio": 2.0,
        "lookfrom": (0.0, 0.0, 0.0),
        "lookat": (0.0, 0.0, -1.0),
    }
    params.update(overrides)
    return CameraParams(**params)


class TestCameraParams:
    """Tests for camera parameter validation."""

    @pytest.mark.parametrize(
        "overrides",
        [
            {"vfov": 0.0},
            {"vfov": 180.0},
            {"aspect_ratio": 0.0},
            {"focus_distance": 0.0},
            {"aperture": -0.1},
            {"exposure_time": -1.0},
            {"lookat": (0.0, 0.0, 0.0)},
        ],
    )
    def test_invalid_parameters(self, overrides):
        """Test that out-of-range parameters raise ValueError."""
        with pytest.raises(ValueError):
            _basic_camera(**overrides)

    def test_parallel_vup_rejected(self):
        """Test that an up vector along the view direction is rejected."""
        from pathtracer.camera.thin_lens import setup_camera

        with pytest.raises(ValueError, match="parallel"):
            setup_camera(_basic_camera(vup=(0.0, 0.0, 1.0)))

    def test_lens_radius(self):
        """Test that the lens radius is half the aperture."""
        assert _basic_camera(aperture=0.5).lens_radius == 0.25


class TestCameraSetup:
    """Tests for basis and viewport computation."""

    def test_basis_vectors(self):
        """Test the orthonormal basis for a camera looking down -z."""
        from pathtracer.camera.thin_lens import get_camera_info, is_camera_initialized, setup_camera

        assert not is_camera_initialized()
        setup_camera(_basic_camera())
        assert is_camera_initialized()

        info = get_camera_info()
        assert np.allclose(info["u"], (1.0, 0.0, 0.0))
        assert np.allclose(info["v"], (0.0, 1.0, 0.0))
        assert np.allclose(info["w"], (0.0, 0.0, 1.0))

    def test_viewport_from_fov(self):
        """Test viewport spans for vfov 90 and aspect 2 at focus distance 1."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_basic_camera())
        info = get_camera_info()
        assert np.allclose(info["horizontal"], (4.0, 0.0, 0.0))
        assert np.allclose(info["vertical"], (0.0, 2.0, 0.0))
        assert np.allclose(info["lower_left"], (-2.0, -1.0, -1.0))

    def test_viewport_scales_with_focus_distance(self):
        """Test that the viewport sits on the focus plane."""
        from pathtracer.camera.thin_lens import get_camera_info, setup_camera

        setup_camera(_basic_camera(focus_distance=3.0, aperture=0.2, exposure_time=0.5))
        info = get_camera_info()
        assert np.allclose(info["horizontal"], (12.0, 0.0, 0.0))
        assert np.allclose(info["lower_left"], (-6.0, -3.0, -3.0))
        assert info["lens_radius"] == pytest.approx(0.1)
        assert info["exposure_time"] == pytest.approx(0.5)


class TestRayGeneration:
    """Tests for get_ray and get_time inside kernels."""

    def _rays(self, camera, coords, count=1):
        from pathtracer.camera.thin_lens import get_ray, setup_camera
        from pathtracer.core.rng import seed_rng

        setup_camera(camera)
        origins = ti.Vector.field(3, dtype=ti.f64, shape=(len(coords), count))
        directions = ti.Vector.field(3, dtype=ti.f64, shape=(len(coords), count))

        @ti.kernel
        def test_kernel():
            for k in ti.static(range(len(coords))):
                for i in range(count):
                    ray = get_ray(i, coords[k][0], coords[k][1])
                    origins[k, i] = ray.origin
                    directions[k, i] = ray.direction

        seed_rng(0, count=count)
        test_kernel()
        return origins.to_numpy(), directions.to_numpy()

    def test_pinhole_center_and_corners(self):
        """Test rays through the center and corners of a pinhole camera."""
        origins, directions = self._rays(
            _basic_camera(), [(0.5, 0.5), (0.0, 0.0), (1.0, 1.0)]
        )
        assert np.allclose(origins, 0.0)
        assert np.allclose(directions[0, 0], (0.0, 0.0, -1.0))
        assert np.allclose(directions[1, 0], (-2.0, -1.0, -1.0))
        assert np.allclose(directions[2, 0], (2.0, 1.0, -1.0))

    def test_lens_rays_converge_on_focus_plane(self):
        """Test that all lens samples pass through the same focus-plane point."""
        camera = _basic_camera(aperture=0.5, focus_distance=4.0)
        origins, directions = self._rays(camera, [(0.3, 0.7)], count=128)

        targets = origins[0] + directions[0]
        assert np.allclose(targets, targets[0], atol=1e-12)
        # Origins spread over the lens disk in the camera's u-v plane
        offsets = origins[0]
        assert np.all(np.linalg.norm(offsets, axis=1) < 0.25)
        assert np.allclose(offsets[:, 2], 0.0)
        assert np.std(offsets[:, 0]) > 0.01

    def test_time_in_exposure_window(self):
        """Test that sampled instants lie in [0, exposure_time)."""
        from pathtracer.camera.thin_lens import get_time, setup_camera
        from pathtracer.core.rng import seed_rng

        setup_camera(_basic_camera(exposure_time=0.25))
        count = 256
        times = ti.field(dtype=ti.f64, shape=count)

        @ti.kernel
        def test_kernel():
            for i in range(count):
                times[i] = get_time(i)

        seed_rng(4, count=count)
        test_kernel()
        values = times.to_numpy()
        assert values.min() >= 0.0
        assert values.max() < 0.25
        assert values.max() > 0.2

    def test_zero_exposure_is_instant(self):
        """Test that a zero shutter always samples time 0."""
        from pathtracer.camera.thin_lens import get_time, setup_camera
        from pathtracer.core.rng import seed_rng

        setup_camera(_basic_camera())
        result = ti.field(dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_time(0)

        seed_rng(0)
        test_kernel()
        assert result[None] == 0.0

    def test_camera_origin(self):
        """Test reading the lens center inside a kernel."""
        from pathtracer.camera.thin_lens import get_camera_origin, setup_camera

        setup_camera(_basic_camera(lookfrom=(1.0, 2.0, 3.0), lookat=(1.0, 2.0, 0.0)))
        result = ti.Vector.field(3, dtype=ti.f64, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = get_camera_origin()

        test_kernel()
        assert np.allclose(result[None].to_numpy(), (1.0, 2.0, 3.0))
        assert math.isclose(result[None][2], 3.0)
