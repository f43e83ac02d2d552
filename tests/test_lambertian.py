"""Unit tests for the Lambertian material module.

Tests cover:
- Scatter direction lies on the unit sphere around the normal
- Attenuation equals albedo and the ray is never absorbed
- Material registry operations
"""

import numpy as np
import pytest
import taichi as ti

NUM_STREAMS = 512


class TestLambertianScatter:
    """Tests for Lambertian scattering."""

    def test_scatter_never_absorbs(self):
        """Test that every sample scatters with attenuation equal to albedo."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.lambertian import scatter_lambertian

        directions = ti.Vector.field(3, dtype=ti.f64, shape=NUM_STREAMS)
        attenuations = ti.Vector.field(3, dtype=ti.f64, shape=NUM_STREAMS)
        scattered = ti.field(dtype=ti.i32, shape=NUM_STREAMS)

        @ti.kernel
        def test_kernel():
            for i in range(NUM_STREAMS):
                albedo = ti.math.vec3(0.7, 0.3, 0.1)
                normal = ti.math.vec3(0.0, 1.0, 0.0)
                d, att, did = scatter_lambertian(i, albedo, normal)
                directions[i] = d
                attenuations[i] = att
                scattered[i] = did

        seed_rng(1, count=NUM_STREAMS)
        test_kernel()

        assert np.all(scattered.to_numpy() == 1)
        assert np.allclose(attenuations.to_numpy(), [0.7, 0.3, 0.1])

        # normal + unit vector: offset from the normal has length 1
        dirs = directions.to_numpy()
        offsets = dirs - np.array([0.0, 1.0, 0.0])
        assert np.allclose(np.linalg.norm(offsets, axis=1), 1.0, atol=1e-12)
        # Never below the surface
        assert np.all(dirs[:, 1] >= 0.0)

    def test_scatter_by_id(self):
        """Test scattering through the registry."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            scatter_lambertian_by_id,
        )

        idx = add_lambertian_material((0.2, 0.4, 0.6))
        attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            _, att, s = scatter_lambertian_by_id(0, idx, ti.math.vec3(0.0, 0.0, 1.0))
            attenuation[None] = att
            did[None] = s

        seed_rng(2)
        test_kernel()
        a = attenuation[None]
        assert did[None] == 1
        assert abs(a[0] - 0.2) < 1e-12
        assert abs(a[1] - 0.4) < 1e-12
        assert abs(a[2] - 0.6) < 1e-12


class TestLambertianRegistry:
    """Tests for Lambertian material registry."""

    def test_add_and_count(self):
        """Test that materials get consecutive indices."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_material_count,
        )

        assert add_lambertian_material((0.1, 0.1, 0.1)) == 0
        assert add_lambertian_material((0.9, 0.9, 0.9)) == 1
        assert get_lambertian_material_count() == 2

    def test_clear(self):
        """Test clearing the registry."""
        from pathtracer.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )

        add_lambertian_material((0.5, 0.5, 0.5))
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    @pytest.mark.parametrize("albedo", [(1.5, 0.5, 0.5), (0.5, -0.1, 0.5)])
    def test_invalid_albedo(self, albedo):
        """Test that albedo outside [0, 1] is rejected."""
        from pathtracer.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError):
            add_lambertian_material(albedo)
