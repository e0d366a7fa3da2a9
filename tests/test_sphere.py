"""Unit tests for the sphere primitive.

Tests cover:
- Ray-sphere intersection (hit, miss, tangent, inside, interval bounds)
- Normal orientation and front_face
- Spherical texture coordinates
- Moving spheres
- Direction density and sampling toward a sphere
"""

import math

import pytest
import taichi as ti


def _hit_fields():
    hit = ti.field(dtype=ti.i32, shape=())
    t = ti.field(dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front = ti.field(dtype=ti.i32, shape=())
    return hit, t, normal, front


class TestSphereIntersection:
    """Tests for hit_sphere."""

    def test_ray_hits_sphere_front(self):
        """Test a ray toward the sphere hits its near side."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, t, normal, front = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, -5.0), 1.0), 0.001, 1e10)
            hit[None] = rec.hit
            t[None] = rec.t
            normal[None] = rec.normal
            front[None] = rec.front_face

        test_kernel()
        assert hit[None] == 1
        assert t[None] == pytest.approx(4.0, abs=1e-5)
        assert normal[None][2] == pytest.approx(1.0, abs=1e-5)
        assert front[None] == 1

    def test_negative_discriminant_misses(self):
        """Test a ray passing beside the sphere misses."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, _, _, _ = _hit_fields()
        material = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 2.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, -5.0), 1.0), 0.001, 1e10)
            hit[None] = rec.hit
            material[None] = rec.material_id

        test_kernel()
        assert hit[None] == 0
        assert material[None] == -1

    def test_tangent_ray_single_hit(self):
        """Test a ray grazing the sphere hits exactly once at the tangent point."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, t, normal, _ = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 1.0, -5.0), vec3(0.0, 0.0, 1.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 0.0), 1.0), 0.001, 1e10)
            hit[None] = rec.hit
            t[None] = rec.t
            normal[None] = rec.normal

        test_kernel()
        assert hit[None] == 1
        assert t[None] == pytest.approx(5.0, abs=1e-4)
        assert normal[None][1] == pytest.approx(1.0, abs=1e-4)

    def test_ray_from_inside_hits_back_face(self):
        """Test a ray starting inside hits the far side with front_face == 0."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, t, normal, front = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(1.0, 0.0, 0.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, 0.0), 2.0), 0.001, 1e10)
            hit[None] = rec.hit
            t[None] = rec.t
            normal[None] = rec.normal
            front[None] = rec.front_face

        test_kernel()
        assert hit[None] == 1
        assert t[None] == pytest.approx(2.0, abs=1e-5)
        assert front[None] == 0
        # Normal faces against the ray
        assert normal[None][0] == pytest.approx(-1.0, abs=1e-5)

    def test_sphere_behind_ray_misses(self):
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, _, _, _ = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, 1.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, -5.0), 1.0), 0.001, 1e10)
            hit[None] = rec.hit

        test_kernel()
        assert hit[None] == 0

    def test_t_max_excludes_far_hits(self):
        """Test hits at or beyond t_max are rejected."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, _, _, _ = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, -5.0), 1.0), 0.001, 3.0)
            hit[None] = rec.hit

        test_kernel()
        assert hit[None] == 0

    def test_t_min_selects_far_root(self):
        """Test the far root is used when the near one is below t_min."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, t, _, front = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, -5.0), 1.0), 4.5, 1e10)
            hit[None] = rec.hit
            t[None] = rec.t
            front[None] = rec.front_face

        test_kernel()
        assert hit[None] == 1
        assert t[None] == pytest.approx(6.0, abs=1e-5)
        assert front[None] == 0

    def test_unnormalized_direction(self):
        """Test t scales with the direction length."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import hit_sphere, make_sphere

        hit, t, _, _ = _hit_fields()

        @ti.kernel
        def test_kernel():
            ray = make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -2.0), 0.0)
            rec = hit_sphere(ray, make_sphere(vec3(0.0, 0.0, -5.0), 1.0), 0.001, 1e10)
            hit[None] = rec.hit
            t[None] = rec.t

        test_kernel()
        assert hit[None] == 1
        assert t[None] == pytest.approx(2.0, abs=1e-5)


class TestSphereUV:
    """Tests for spherical texture coordinates."""

    @pytest.mark.parametrize(
        "point, expected",
        [
            ((1.0, 0.0, 0.0), (0.5, 0.5)),
            ((0.0, 1.0, 0.0), (0.5, 1.0)),
            ((0.0, -1.0, 0.0), (0.5, 0.0)),
            ((0.0, 0.0, 1.0), (0.25, 0.5)),
            ((0.0, 0.0, -1.0), (0.75, 0.5)),
        ],
    )
    def test_uv_at_axis_points(self, point, expected):
        from src.lightpath.core.ray import vec3
        from src.lightpath.geometry.sphere import get_sphere_uv

        result = ti.field(dtype=ti.f32, shape=2)

        @ti.kernel
        def test_kernel(x: ti.f32, y: ti.f32, z: ti.f32):
            u, v = get_sphere_uv(vec3(x, y, z))
            result[0] = u
            result[1] = v

        test_kernel(*point)
        assert result[0] == pytest.approx(expected[0], abs=1e-5)
        assert result[1] == pytest.approx(expected[1], abs=1e-5)


class TestMovingSphere:
    """Tests for spheres with a velocity."""

    def test_center_moves_with_ray_time(self):
        """Test the same ray hits at time 0 but misses at time 1."""
        from src.lightpath.core.ray import make_ray, vec3
        from src.lightpath.geometry.sphere import Sphere, hit_sphere

        result = ti.field(dtype=ti.i32, shape=2)

        @ti.kernel
        def test_kernel():
            sphere = Sphere(
                center=vec3(0.0, 0.0, -5.0),
                velocity=vec3(0.0, 3.0, 0.0),
                radius=1.0,
            )
            result[0] = hit_sphere(
                make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 0.0), sphere, 0.001, 1e10
            ).hit
            result[1] = hit_sphere(
                make_ray(vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0), 1.0), sphere, 0.001, 1e10
            ).hit

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0

    def test_sphere_center_at(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.geometry.sphere import Sphere, sphere_center_at

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = Sphere(center=vec3(1.0, 0.0, 0.0), velocity=vec3(0.0, 2.0, 0.0), radius=1.0)
            result[None] = sphere_center_at(sphere, 0.5)

        test_kernel()
        assert result[None][0] == pytest.approx(1.0)
        assert result[None][1] == pytest.approx(1.0)


class TestSphereDensity:
    """Tests for sphere_density and sphere_sample."""

    def test_density_zero_on_miss(self):
        from src.lightpath.core.ray import vec3
        from src.lightpath.geometry.sphere import make_sphere, sphere_density

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(0.0, 0.0, -5.0), 1.0)
            result[None] = sphere_density(sphere, vec3(0.0, 0.0, 0.0), vec3(0.0, 1.0, 0.0))

        test_kernel()
        assert result[None] == 0.0

    def test_density_is_inverse_cone_solid_angle(self):
        """Test density equals 1 / (2 pi (1 - cos_theta_max)) on a hit."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.geometry.sphere import make_sphere, sphere_density

        result = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(0.0, 0.0, -5.0), 1.0)
            result[None] = sphere_density(sphere, vec3(0.0, 0.0, 0.0), vec3(0.0, 0.0, -1.0))

        test_kernel()
        cos_theta_max = math.sqrt(1.0 - 1.0 / 25.0)
        expected = 1.0 / (2.0 * math.pi * (1.0 - cos_theta_max))
        assert result[None] == pytest.approx(expected, rel=1e-3)

    def test_samples_hit_the_sphere(self):
        """Test every sampled direction hits the sphere with positive density."""
        from src.lightpath.core.ray import vec3
        from src.lightpath.geometry.sphere import make_sphere, sphere_density, sphere_sample

        n = 500
        densities = ti.field(dtype=ti.f32, shape=n)

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(3.0, 1.0, -4.0), 1.5)
            origin = vec3(0.0, 0.0, 0.0)
            for i in range(n):
                direction = sphere_sample(sphere, origin)
                densities[i] = sphere_density(sphere, origin, direction)

        test_kernel()
        d = densities.to_numpy()
        # Directions on the cone boundary may graze; nearly all must hit
        assert (d > 0.0).mean() > 0.99
