"""Unit tests for the metal material module.

Tests cover:
- Perfect mirror reflection (fuzz = 0)
- Fuzzy reflection and absorption below the surface
- Attenuation
- Registry validation and fuzz clamping
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestPerfectReflection:
    """Tests for fuzz = 0 reflection."""

    def test_normal_incidence(self):
        """Test a ray straight down reflects straight up."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, _, s = scatter_metal(
                vec3(0.9, 0.9, 0.9), 0.0, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            direction[None] = d
            scattered[None] = s

        test_kernel()
        assert scattered[None] == 1
        assert direction[None].to_numpy() == pytest.approx([0.0, 1.0, 0.0], abs=1e-6)

    def test_45_degrees(self):
        """Test the mirror direction of an unnormalized 45 degree ray."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d, _, _ = scatter_metal(
                vec3(0.9, 0.9, 0.9), 0.0, vec3(2.0, -2.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            direction[None] = d

        test_kernel()
        h = 1.0 / math.sqrt(2.0)
        assert direction[None].to_numpy() == pytest.approx([h, h, 0.0], abs=1e-6)

    def test_attenuation_equals_albedo(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.metal import scatter_metal

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation, _ = scatter_metal(
                vec3(0.8, 0.6, 0.2), 0.3, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0)
            )
            result[None] = attenuation

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([0.8, 0.6, 0.2])


class TestFuzzyReflection:
    """Tests for fuzz > 0."""

    def test_fuzz_bounds_deviation(self):
        """Test scattered directions stay within fuzz of the mirror direction."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.metal import scatter_metal

        n = 1000
        offsets = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            for i in range(n):
                d, _, _ = scatter_metal(
                    vec3(1.0, 1.0, 1.0), 0.3, vec3(0.0, -1.0, 0.0), vec3(0.0, 1.0, 0.0)
                )
                offsets[i] = (d - vec3(0.0, 1.0, 0.0)).norm()

        test_kernel()
        o = offsets.to_numpy()
        assert o.max() <= 0.3 + 1e-5
        assert o.max() > 0.0

    def test_grazing_fuzzy_ray_can_be_absorbed(self):
        """Test a grazing ray with full fuzz is absorbed some of the time."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.metal import scatter_metal

        n = 2000
        scattered = ti.field(dtype=ti.i32, shape=n)
        cosines = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(n):
                d, _, s = scatter_metal(vec3(1.0, 1.0, 1.0), 1.0, vec3(1.0, -0.05, 0.0), normal)
                scattered[i] = s
                cosines[i] = ti.math.dot(d, normal)

        test_kernel()
        s = scattered.to_numpy()
        c = cosines.to_numpy()
        assert 0 < s.sum() < n
        # Absorbed exactly when the direction does not leave the surface
        assert np.array_equal(s == 1, c > 0.0)


class TestMaterialRegistry:
    """Tests for the metal material registry."""

    def test_add_and_get_material(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_fuzz,
        )
        from src.lightpath.materials.textures import add_solid_texture

        texture = add_solid_texture((0.9, 0.8, 0.7))
        mat_idx = add_metal_material(texture, fuzz=0.25)
        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(idx: ti.i32):
            albedo[None] = get_metal_albedo(idx, 0.0, 0.0, vec3(0.0, 0.0, 0.0))
            fuzz[None] = get_metal_fuzz(idx)

        test_kernel(mat_idx)
        assert albedo[None].to_numpy() == pytest.approx([0.9, 0.8, 0.7])
        assert fuzz[None] == pytest.approx(0.25)

    def test_fuzz_above_one_is_clamped(self):
        from src.lightpath.materials.metal import add_metal_material, metal_fuzzes
        from src.lightpath.materials.textures import add_solid_texture

        texture = add_solid_texture((0.5, 0.5, 0.5))
        mat_idx = add_metal_material(texture, fuzz=3.0)
        assert metal_fuzzes[mat_idx] == pytest.approx(1.0)

    def test_negative_fuzz_raises(self):
        from src.lightpath.materials.metal import add_metal_material
        from src.lightpath.materials.textures import add_solid_texture

        texture = add_solid_texture((0.5, 0.5, 0.5))
        with pytest.raises(ValueError, match="Fuzz"):
            add_metal_material(texture, fuzz=-0.1)

    def test_material_count(self):
        from src.lightpath.materials.metal import (
            add_metal_material,
            clear_metal_materials,
            get_metal_material_count,
        )
        from src.lightpath.materials.textures import add_solid_texture

        texture = add_solid_texture((0.5, 0.5, 0.5))
        add_metal_material(texture)
        add_metal_material(texture, fuzz=0.5)
        assert get_metal_material_count() == 2
        clear_metal_materials()
        assert get_metal_material_count() == 0

    def test_metal_is_specular(self):
        """Test the unified scatter() gives metals no sampling density."""
        from src.lightpath.core.pdf import PDF_NONE
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.hittable import HitRecord
        from src.lightpath.materials.material import scatter, scatter_pdf
        from src.lightpath.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_metal_material(albedo=(0.9, 0.9, 0.9), fuzz=0.0)

        pdf_kind = ti.field(dtype=ti.i32, shape=())
        density = ti.field(dtype=ti.f32, shape=())
        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(material_id: ti.i32):
            ray = make_ray(vec3(-1.0, 1.0, 0.0), vec3(1.0, -1.0, 0.0), 0.0)
            rec = HitRecord(
                hit=1,
                t=1.0,
                point=vec3(0.0, 0.0, 0.0),
                normal=vec3(0.0, 1.0, 0.0),
                front_face=1,
                u=0.0,
                v=0.0,
                material_id=material_id,
            )
            srec = scatter(ray, rec)
            pdf_kind[None] = srec.pdf.kind
            direction[None] = srec.direction
            density[None] = scatter_pdf(ray, rec, srec.direction)

        test_kernel(mat)
        h = 1.0 / math.sqrt(2.0)
        assert pdf_kind[None] == PDF_NONE
        assert density[None] == 0.0
        assert direction[None].to_numpy() == pytest.approx([h, h, 0.0], abs=1e-6)
