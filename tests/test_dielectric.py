"""Unit tests for the dielectric material module.

Tests cover:
- Refraction ratio selection by face
- Total internal reflection detection
- Scatter direction (refraction, reflection) and white attenuation
- Registry validation
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestRefractionRatio:
    """Tests for refraction_ratio_for."""

    def test_front_and_back_face(self):
        from src.lightpath.materials.dielectric import refraction_ratio_for

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel():
            result[0] = refraction_ratio_for(1.5, 1)
            result[1] = refraction_ratio_for(1.5, 0)

        test_kernel()
        assert result[0] == pytest.approx(1.0 / 1.5)
        assert result[1] == pytest.approx(1.5)


class TestTotalInternalReflection:
    """Tests for cannot_refract."""

    def test_normal_incidence_never_reflects_totally(self):
        """Test a ray along the normal can always refract, from either side."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.dielectric import cannot_refract

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            incident = vec3(0.0, -1.0, 0.0)
            result[0] = cannot_refract(1.5, incident, normal, 1)
            result[1] = cannot_refract(2.4, incident, normal, 0)

        test_kernel()
        assert result[0] == 0
        assert result[1] == 0

    def test_steep_exit_reflects(self):
        """Test leaving glass beyond the critical angle is total reflection."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.dielectric import cannot_refract

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            # 60 degrees from the normal; critical angle for 1.5 is about 41.8
            steep = vec3(ti.sqrt(3.0), -1.0, 0.0)
            result[0] = cannot_refract(1.5, steep, normal, 0)
            # Entering the glass at the same angle is fine
            result[1] = cannot_refract(1.5, steep, normal, 1)

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0


class TestScatterDielectric:
    """Tests for scatter_dielectric."""

    def test_attenuation_is_white(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.dielectric import scatter_dielectric

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation = scatter_dielectric(
                1.5, vec3(0.3, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1
            )
            result[None] = attenuation

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([1.0, 1.0, 1.0])

    def test_total_internal_reflection_always_reflects(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.dielectric import scatter_dielectric

        n = 200
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d, _ = scatter_dielectric(1.5, vec3(ti.sqrt(3.0), -1.0, 0.0), vec3(0.0, 1.0, 0.0), 0)
                directions[i] = d

        test_kernel()
        d = directions.to_numpy()
        expected = np.array([math.sqrt(3.0) / 2.0, 0.5, 0.0])
        assert np.allclose(d, expected, atol=1e-5)

    def test_normal_incidence_mostly_transmits(self):
        """Test Schlick reflectance at normal incidence is about 4 percent."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.dielectric import scatter_dielectric

        n = 20000
        transmitted = ti.field(dtype=ti.i32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d, _ = scatter_dielectric(1.5, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1)
                transmitted[i] = ti.select(d.y < 0.0, 1, 0)

        test_kernel()
        fraction = float(np.mean(transmitted.to_numpy()))
        assert fraction == pytest.approx(0.96, abs=0.01)

    def test_refracted_direction_obeys_snell(self):
        """Test sin(theta_t) = sin(theta_i) / ior for transmitted rays."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.dielectric import scatter_dielectric

        n = 200
        directions = ti.Vector.field(3, dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d, _ = scatter_dielectric(1.5, vec3(1.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0), 1)
                directions[i] = d.normalized()

        test_kernel()
        d = directions.to_numpy()
        refracted = d[d[:, 1] < 0.0]
        assert len(refracted) > 0
        expected_sin = math.sin(math.pi / 4.0) / 1.5
        assert np.allclose(refracted[:, 0], expected_sin, atol=1e-4)


class TestMaterialRegistry:
    """Tests for the dielectric material registry."""

    def test_add_and_get_ior(self):
        from src.lightpath.materials.dielectric import add_dielectric_material, get_dielectric_ior

        mat_idx = add_dielectric_material(1.33)
        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(idx: ti.i32):
            result[None] = get_dielectric_ior(idx)

        test_kernel(mat_idx)
        assert result[None] == pytest.approx(1.33)

    def test_default_ior_is_glass(self):
        from src.lightpath.materials.dielectric import add_dielectric_material, dielectric_iors

        mat_idx = add_dielectric_material()
        assert dielectric_iors[mat_idx] == pytest.approx(1.5)

    @pytest.mark.parametrize("ior", [0.9, 0.0, -1.5, float("nan")])
    def test_ior_below_one_raises(self, ior):
        from src.lightpath.materials.dielectric import add_dielectric_material

        with pytest.raises(ValueError, match="Index of refraction"):
            add_dielectric_material(ior)

    def test_material_count(self):
        from src.lightpath.materials.dielectric import (
            add_dielectric_material,
            clear_dielectric_materials,
            get_dielectric_material_count,
        )

        add_dielectric_material(1.5)
        add_dielectric_material(2.4)
        assert get_dielectric_material_count() == 2
        clear_dielectric_materials()
        assert get_dielectric_material_count() == 0
