"""Unit tests for intervals and axis-aligned bounding boxes.

Tests cover:
- Interval queries (size, contains, surrounds, clamp, expand, union)
- AABB construction, padding and corners
- Host and kernel slab tests
"""

import math

import pytest
import taichi as ti


class TestInterval:
    """Tests for Interval."""

    def test_default_interval_is_empty(self):
        from src.lightpath.core.aabb import Interval

        interval = Interval()
        assert interval.size() < 0.0
        assert not interval.contains(0.0)

    def test_contains_vs_surrounds(self):
        """Test contains is closed and surrounds is open."""
        from src.lightpath.core.aabb import Interval

        interval = Interval(0.0, 1.0)
        assert interval.contains(1.0)
        assert not interval.surrounds(1.0)
        assert interval.surrounds(0.5)

    def test_clamp(self):
        from src.lightpath.core.aabb import Interval

        interval = Interval(-1.0, 2.0)
        assert interval.clamp(5.0) == 2.0
        assert interval.clamp(-3.0) == -1.0
        assert interval.clamp(0.5) == 0.5

    def test_expand_pads_each_side_by_half(self):
        from src.lightpath.core.aabb import Interval

        expanded = Interval(0.0, 1.0).expand(0.5)
        assert expanded.min == pytest.approx(-0.25)
        assert expanded.max == pytest.approx(1.25)

    def test_union(self):
        from src.lightpath.core.aabb import Interval

        merged = Interval.union(Interval(0.0, 1.0), Interval(3.0, 4.0))
        assert merged == Interval(0.0, 4.0)

    def test_universe_contains_everything(self):
        from src.lightpath.core.aabb import Interval

        assert Interval.UNIVERSE.contains(1e30)
        assert Interval.UNIVERSE.size() == math.inf


class TestAABB:
    """Tests for AABB construction and queries."""

    def test_from_points_any_order(self):
        from src.lightpath.core.aabb import AABB, Interval

        box = AABB.from_points((1.0, 5.0, -2.0), (0.0, 2.0, 3.0))
        assert box.x == Interval(0.0, 1.0)
        assert box.y == Interval(2.0, 5.0)
        assert box.z == Interval(-2.0, 3.0)

    def test_surrounding(self):
        from src.lightpath.core.aabb import AABB, Interval

        a = AABB.from_points((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        b = AABB.from_points((2.0, -1.0, 0.5), (3.0, 0.5, 0.7))
        box = AABB.surrounding(a, b)
        assert box.x == Interval(0.0, 3.0)
        assert box.y == Interval(-1.0, 1.0)
        assert box.z == Interval(0.0, 1.0)

    def test_surrounding_with_empty_box(self):
        from src.lightpath.core.aabb import AABB

        a = AABB.from_points((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        assert AABB.surrounding(AABB(), a) == a

    def test_axis_interval(self):
        from src.lightpath.core.aabb import AABB

        box = AABB.from_points((0.0, 1.0, 2.0), (3.0, 4.0, 5.0))
        assert box.axis_interval(0) is box.x
        assert box.axis_interval(1) is box.y
        assert box.axis_interval(2) is box.z

    def test_pad_only_thin_axes(self):
        """Test a flat box gets MIN_BOX_THICKNESS along its thin axis only."""
        from src.lightpath.core.aabb import AABB, MIN_BOX_THICKNESS

        box = AABB.from_points((0.0, 2.0, 0.0), (1.0, 2.0, 1.0)).pad()
        assert box.y.size() == pytest.approx(MIN_BOX_THICKNESS)
        assert box.x.size() == pytest.approx(1.0)
        assert box.z.size() == pytest.approx(1.0)

    def test_corners(self):
        from src.lightpath.core.aabb import AABB

        corners = AABB.from_points((0.0, 0.0, 0.0), (1.0, 2.0, 3.0)).corners()
        assert len(corners) == 8
        assert (0.0, 0.0, 0.0) in corners
        assert (1.0, 2.0, 3.0) in corners

    def test_host_hit_and_miss(self):
        from src.lightpath.core.aabb import AABB, Interval

        box = AABB.from_points((0.0, 0.0, 0.0), (1.0, 1.0, 1.0))
        ray_t = Interval(0.0, 100.0)
        assert box.hit((0.5, 0.5, -1.0), (0.0, 0.0, 1.0), ray_t)
        assert not box.hit((2.0, 0.5, -1.0), (0.0, 0.0, 1.0), ray_t)
        # Box lies behind the ray
        assert not box.hit((0.5, 0.5, 2.0), (0.0, 0.0, 1.0), ray_t)


class TestKernelSlabTest:
    """Tests for hit_aabb inside a kernel."""

    def test_hit_aabb(self):
        from src.lightpath.core.aabb import hit_aabb
        from src.lightpath.core.ray import vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            lo = vec3(0.0, 0.0, 0.0)
            hi = vec3(1.0, 1.0, 1.0)
            result[0] = hit_aabb(lo, hi, vec3(0.5, 0.5, -1.0), vec3(0.0, 0.0, 1.0), 0.0, 100.0)
            result[1] = hit_aabb(lo, hi, vec3(2.0, 0.5, -1.0), vec3(0.0, 0.0, 1.0), 0.0, 100.0)
            # Negative direction, approaching from +z
            result[2] = hit_aabb(lo, hi, vec3(0.3, 0.3, 5.0), vec3(0.1, 0.1, -1.0), 0.0, 100.0)

        test_kernel()
        assert result[0] == 1
        assert result[1] == 0
        assert result[2] == 1

    def test_zero_direction_on_slab_plane(self):
        """Test a ray parallel to a face and lying in its plane still overlaps."""
        from src.lightpath.core.aabb import hit_aabb
        from src.lightpath.core.ray import vec3

        result = ti.field(dtype=ti.i32, shape=3)

        @ti.kernel
        def test_kernel():
            lo = vec3(0.0, 0.0, 0.0)
            hi = vec3(1.0, 1.0, 1.0)
            result[0] = hit_aabb(lo, hi, vec3(0.0, 0.5, -1.0), vec3(0.0, 0.0, 1.0), 0.0, 100.0)
            result[1] = hit_aabb(lo, hi, vec3(1.0, 1.0, -1.0), vec3(0.0, 0.0, 1.0), 0.0, 100.0)
            result[2] = hit_aabb(lo, hi, vec3(-0.1, 0.5, -1.0), vec3(0.0, 0.0, 1.0), 0.0, 100.0)

        test_kernel()
        assert result[0] == 1
        assert result[1] == 1
        assert result[2] == 0
