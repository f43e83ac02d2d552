"""Unit tests for the Perlin marble material.

Tests cover:
- Deterministic lattice tables
- Noise vanishing on lattice points
- Turbulence and albedo ranges
- Diffuse scattering with the marble albedo
"""

import numpy as np
import pytest
import taichi as ti


class TestPerlinTables:
    """Tests for lattice table generation."""

    def test_same_seed_same_tables(self):
        """Test that tables depend only on the seed."""
        from pathtracer.materials.perlin import build_perlin_tables

        a = build_perlin_tables(3)
        b = build_perlin_tables(3)
        c = build_perlin_tables(4)
        assert np.array_equal(a.perm_x, b.perm_x)
        assert np.array_equal(a.gradients, b.gradients)
        assert not np.array_equal(a.perm_x, c.perm_x)

    def test_tables_are_permutations_and_unit_gradients(self):
        """Test table shapes and contents."""
        from pathtracer.materials.perlin import POINT_COUNT, build_perlin_tables

        tables = build_perlin_tables(0)
        for perm in (tables.perm_x, tables.perm_y, tables.perm_z):
            assert sorted(perm.tolist()) == list(range(POINT_COUNT))
        assert tables.gradients.shape == (POINT_COUNT, 3)
        assert np.allclose(np.linalg.norm(tables.gradients, axis=1), 1.0)

    def test_tables_read_only(self):
        """Test that generated tables cannot be modified."""
        from pathtracer.materials.perlin import build_perlin_tables

        tables = build_perlin_tables(0)
        with pytest.raises(ValueError):
            tables.perm_x[0] = 1

    def test_negative_seed_rejected(self):
        """Test that negative seeds are rejected."""
        from pathtracer.materials.perlin import add_perlin_material

        with pytest.raises(ValueError):
            add_perlin_material(seed=-1)


class TestPerlinNoise:
    """Tests for noise evaluation inside kernels."""

    def test_zero_on_lattice_points(self):
        """Test that gradient noise vanishes at integer coordinates."""
        from pathtracer.materials.perlin import add_perlin_material, perlin_noise

        idx = add_perlin_material(seed=7)
        result = ti.field(dtype=ti.f64, shape=3)

        @ti.kernel
        def test_kernel():
            result[0] = perlin_noise(idx, ti.math.vec3(0.0, 0.0, 0.0))
            result[1] = perlin_noise(idx, ti.math.vec3(3.0, -2.0, 5.0))
            result[2] = perlin_noise(idx, ti.math.vec3(-300.0, 17.0, 256.0))

        test_kernel()
        for k in range(3):
            assert abs(result[k]) < 1e-12

    def test_noise_is_smooth(self):
        """Test that nearby points give nearby noise values."""
        from pathtracer.materials.perlin import add_perlin_material, perlin_noise

        idx = add_perlin_material(seed=7)
        result = ti.field(dtype=ti.f64, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = perlin_noise(idx, ti.math.vec3(0.31, 1.72, -0.45))
            result[1] = perlin_noise(idx, ti.math.vec3(0.3101, 1.72, -0.45))

        test_kernel()
        assert abs(result[0] - result[1]) < 1e-3

    def test_albedo_is_grey_in_unit_range(self):
        """Test marble albedo on a grid of points."""
        from pathtracer.materials.perlin import (
            add_perlin_material,
            perlin_albedo,
            perlin_turbulence,
        )

        idx = add_perlin_material(seed=2, scale=4.0)
        n = 64
        albedos = ti.Vector.field(3, dtype=ti.f64, shape=n)
        turbulence = ti.field(dtype=ti.f64, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                p = ti.math.vec3(0.37 * i, -0.11 * i, 0.23 * i)
                albedos[i] = perlin_albedo(idx, p)
                turbulence[i] = perlin_turbulence(idx, p, 7)

        test_kernel()
        a = albedos.to_numpy()
        assert np.all(a >= 0.0)
        assert np.all(a <= 1.0)
        assert np.allclose(a[:, 0], a[:, 1])
        assert np.allclose(a[:, 1], a[:, 2])
        assert np.all(turbulence.to_numpy() >= 0.0)

    def test_scatter_uses_albedo(self):
        """Test that Perlin scattering is diffuse with the marble albedo."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.perlin import (
            add_perlin_material,
            perlin_albedo,
            scatter_perlin_by_id,
        )

        idx = add_perlin_material(seed=2)
        expected = ti.Vector.field(3, dtype=ti.f64, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            p = ti.math.vec3(0.4, 0.2, -1.3)
            expected[None] = perlin_albedo(idx, p)
            _, att, s = scatter_perlin_by_id(0, idx, p, ti.math.vec3(0.0, 1.0, 0.0))
            attenuation[None] = att
            did[None] = s

        seed_rng(0)
        test_kernel()
        assert did[None] == 1
        for k in range(3):
            assert abs(attenuation[None][k] - expected[None][k]) < 1e-12
