"""Unit tests for the metal material module.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzzy reflection staying within the fuzz sphere
- Absorption of rays scattered below the surface
- Material registry operations
"""

import math

import numpy as np
import pytest
import taichi as ti

NUM_STREAMS = 512


class TestMetalScatter:
    """Tests for metal scattering."""

    def test_mirror_law(self):
        """Test that fuzz 0 reflects with angle in equal to angle out."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f64, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f64, shape=())
        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, att, s = scatter_metal(
                0,
                ti.math.vec3(0.8, 0.6, 0.2),
                0.0,
                ti.math.vec3(2.0, -2.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            direction[None] = d
            attenuation[None] = att
            did[None] = s

        seed_rng(0)
        test_kernel()
        d = direction[None]
        inv_sqrt2 = 1.0 / math.sqrt(2.0)
        assert did[None] == 1
        assert abs(d[0] - inv_sqrt2) < 1e-12
        assert abs(d[1] - inv_sqrt2) < 1e-12
        assert abs(d[2]) < 1e-12
        a = attenuation[None]
        assert abs(a[0] - 0.8) < 1e-12
        assert abs(a[1] - 0.6) < 1e-12
        assert abs(a[2] - 0.2) < 1e-12

    def test_fuzz_stays_in_sphere(self):
        """Test that fuzzy reflections lie within fuzz of the mirror direction."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.metal import scatter_metal

        fuzz = 0.3
        directions = ti.Vector.field(3, dtype=ti.f64, shape=NUM_STREAMS)

        @ti.kernel
        def test_kernel():
            for i in range(NUM_STREAMS):
                d, _, _ = scatter_metal(
                    i,
                    ti.math.vec3(1.0, 1.0, 1.0),
                    fuzz,
                    ti.math.vec3(0.0, -1.0, 0.0),
                    ti.math.vec3(0.0, 1.0, 0.0),
                )
                directions[i] = d

        seed_rng(3, count=NUM_STREAMS)
        test_kernel()
        offsets = directions.to_numpy() - np.array([0.0, 1.0, 0.0])
        assert np.all(np.linalg.norm(offsets, axis=1) < fuzz)

    def test_grazing_reflection_absorbed(self):
        """Test that a reflection along the surface is absorbed."""
        from pathtracer.core.rng import seed_rng
        from pathtracer.materials.metal import scatter_metal

        did = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            _, _, s = scatter_metal(
                0,
                ti.math.vec3(1.0, 1.0, 1.0),
                0.0,
                ti.math.vec3(1.0, 0.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            did[None] = s

        seed_rng(0)
        test_kernel()
        assert did[None] == 0


class TestMetalRegistry:
    """Tests for metal material registry."""

    def test_add_and_read_back(self):
        """Test storing albedo and fuzz."""
        from pathtracer.materials.metal import (
            add_metal_material,
            get_metal_material_count,
            metal_albedos,
            metal_fuzzes,
        )

        idx = add_metal_material((0.9, 0.8, 0.7), fuzz=0.25)
        assert idx == 0
        assert get_metal_material_count() == 1
        assert abs(metal_fuzzes[idx] - 0.25) < 1e-12
        assert abs(metal_albedos[idx][0] - 0.9) < 1e-12

    @pytest.mark.parametrize("fuzz", [-0.1, 1.5])
    def test_invalid_fuzz(self, fuzz):
        """Test that fuzz outside [0, 1] is rejected."""
        from pathtracer.materials.metal import add_metal_material

        with pytest.raises(ValueError):
            add_metal_material((0.5, 0.5, 0.5), fuzz=fuzz)
