"""Unit tests for the Lambertian material module.

Tests cover:
- Scatter function (direction in the hemisphere, attenuation)
- Scattering density cos(theta) / pi and its normalisation
- Material registry operations
"""

import math

import numpy as np
import pytest
import taichi as ti


class TestScatterLambertian:
    """Tests for scatter_lambertian."""

    def test_scatter_direction_in_hemisphere(self):
        """Test every scattered direction lies on the normal's side."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.lambertian import scatter_lambertian

        n = 1000
        cosines = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 0.0, 1.0)
            for i in range(n):
                direction, _ = scatter_lambertian(vec3(0.5, 0.5, 0.5), normal)
                cosines[i] = ti.math.dot(direction.normalized(), normal)

        test_kernel()
        assert cosines.to_numpy().min() >= -1e-5

    def test_scatter_attenuation_equals_albedo(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.lambertian import scatter_lambertian

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation = scatter_lambertian(vec3(0.8, 0.3, 0.1), vec3(0.0, 1.0, 0.0))
            result[None] = attenuation

        test_kernel()
        assert result[None].to_numpy() == pytest.approx([0.8, 0.3, 0.1])

    def test_scatter_is_cosine_weighted(self):
        """Test E[cos(theta)] = 2/3 for cosine-weighted sampling."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.lambertian import scatter_lambertian

        n = 20000
        cosines = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for i in range(n):
                direction, _ = scatter_lambertian(vec3(1.0, 1.0, 1.0), normal)
                cosines[i] = ti.math.dot(direction.normalized(), normal)

        test_kernel()
        assert float(np.mean(cosines.to_numpy())) == pytest.approx(2.0 / 3.0, abs=0.01)


class TestLambertianScatterPdf:
    """Tests for lambertian_scatter_pdf."""

    def test_pdf_along_normal(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.lambertian import lambertian_scatter_pdf

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = lambertian_scatter_pdf(vec3(0.0, 0.0, 1.0), vec3(0.0, 0.0, 3.0))

        test_kernel()
        assert result[None] == pytest.approx(1.0 / math.pi, rel=1e-5)

    def test_pdf_below_surface_is_zero(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.lambertian import lambertian_scatter_pdf

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            result[None] = lambertian_scatter_pdf(vec3(0.0, 0.0, 1.0), vec3(0.3, 0.0, -1.0))

        test_kernel()
        assert result[None] == 0.0

    def test_pdf_integrates_to_one(self):
        """Test the density integrates to 1 over the hemisphere.

        Uniform directions over the sphere estimate the integral as
        mean(pdf) * 4 pi.
        """
        from src.lightpath.core.ray import random_unit_vector, vec3
        from src.lightpath.materials.lambertian import lambertian_scatter_pdf

        n = 100000
        total = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            normal = vec3(0.0, 1.0, 0.0)
            for _ in range(n):
                total[None] += lambertian_scatter_pdf(normal, random_unit_vector())

        test_kernel()
        assert total[None] / n * 4.0 * math.pi == pytest.approx(1.0, abs=0.02)


class TestMaterialRegistry:
    """Tests for the Lambertian material registry."""

    def test_add_and_get_material(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.materials.lambertian import (
            add_lambertian_material,
            get_lambertian_albedo,
        )
        from src.lightpath.materials.textures import add_solid_texture

        texture = add_solid_texture((0.2, 0.4, 0.6))
        mat_idx = add_lambertian_material(texture)
        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(idx: ti.i32):
            result[None] = get_lambertian_albedo(idx, 0.0, 0.0, vec3(0.0, 0.0, 0.0))

        test_kernel(mat_idx)
        assert mat_idx == 0
        assert result[None].to_numpy() == pytest.approx([0.2, 0.4, 0.6])

    def test_material_count(self):
        from src.lightpath.materials.lambertian import (
            add_lambertian_material,
            clear_lambertian_materials,
            get_lambertian_material_count,
        )
        from src.lightpath.materials.textures import add_solid_texture

        texture = add_solid_texture((0.5, 0.5, 0.5))
        assert get_lambertian_material_count() == 0
        add_lambertian_material(texture)
        add_lambertian_material(texture)
        assert get_lambertian_material_count() == 2
        clear_lambertian_materials()
        assert get_lambertian_material_count() == 0

    def test_invalid_texture_raises(self):
        from src.lightpath.materials.lambertian import add_lambertian_material

        with pytest.raises(ValueError, match="texture_id"):
            add_lambertian_material(3)

    def test_scatter_through_material_id(self):
        """Test the unified scatter() uses the registered albedo and a cosine pdf."""
        from src.lightpath.core.pdf import PDF_COSINE
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.hittable import HitRecord
        from src.lightpath.materials.material import scatter
        from src.lightpath.scene.manager import SceneManager

        scene = SceneManager()
        mat = scene.add_lambertian_material(albedo=(0.7, 0.6, 0.5))

        did_scatter = ti.field(dtype=ti.i32, shape=())
        pdf_kind = ti.field(dtype=ti.i32, shape=())
        attenuation = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(material_id: ti.i32):
            ray = make_ray(vec3(0.0, 1.0, 0.0), vec3(0.0, -1.0, 0.0), 0.0)
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
            did_scatter[None] = srec.did_scatter
            pdf_kind[None] = srec.pdf.kind
            attenuation[None] = srec.attenuation

        test_kernel(mat)
        assert did_scatter[None] == 1
        assert pdf_kind[None] == PDF_COSINE
        assert attenuation[None].to_numpy() == pytest.approx([0.7, 0.6, 0.5])
