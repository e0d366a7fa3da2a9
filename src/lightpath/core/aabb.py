"""Scalar intervals and axis-aligned bounding boxes.

Intervals describe a closed range [min, max] and are used for bounding-box
axes and for clipping ray parameters. An AABB is three per-axis intervals.

Bounding boxes are computed on the host while a scene is assembled (every
primitive info reports one, see ``src.lightpath.scene.objects``). The slab
test is available both on the host (``AABB.hit``) and inside kernels
(``hit_aabb``). Scene traversal is a linear scan and does not use boxes for
pruning.

Example:
    >>> box = AABB.from_points((0.0, 0.0, 0.0), (1.0, 2.0, 3.0))
    >>> box.y.size()
    2.0
    >>> box.hit((0.5, 0.5, -1.0), (0.0, 0.0, 1.0), Interval(0.0, 10.0))
    True
"""

import math
from dataclasses import dataclass
from typing import ClassVar

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Minimum thickness of a bounding box along any axis
MIN_BOX_THICKNESS = 1e-4


@dataclass(frozen=True)
class Interval:
    """A closed scalar interval [min, max].

    An interval with min > max is empty.

    Attributes:
        min: Lower bound.
        max: Upper bound.
    """

    min: float = math.inf
    max: float = -math.inf

    EMPTY: ClassVar["Interval"]
    UNIVERSE: ClassVar["Interval"]

    @classmethod
    def union(cls, a: "Interval", b: "Interval") -> "Interval":
        """Return the tightest interval enclosing both a and b."""
        return cls(min(a.min, b.min), max(a.max, b.max))

    def size(self) -> float:
        """Return max - min (negative for empty intervals)."""
        return self.max - self.min

    def contains(self, x: float) -> bool:
        """Return True if min <= x <= max."""
        return self.min <= x <= self.max

    def surrounds(self, x: float) -> bool:
        """Return True if min < x < max."""
        return self.min < x < self.max

    def clamp(self, x: float) -> float:
        """Clamp x into [min, max]."""
        return min(max(x, self.min), self.max)

    def expand(self, delta: float) -> "Interval":
        """Return the interval padded by delta/2 on each side."""
        padding = delta / 2.0
        return Interval(self.min - padding, self.max + padding)


Interval.EMPTY = Interval(math.inf, -math.inf)
Interval.UNIVERSE = Interval(-math.inf, math.inf)


@dataclass(frozen=True)
class AABB:
    """Axis-aligned bounding box made of three per-axis intervals.

    Attributes:
        x: Extent along the x axis.
        y: Extent along the y axis.
        z: Extent along the z axis.
    """

    x: Interval = Interval.EMPTY
    y: Interval = Interval.EMPTY
    z: Interval = Interval.EMPTY

    @classmethod
    def from_points(
        cls,
        a: tuple[float, float, float],
        b: tuple[float, float, float],
    ) -> "AABB":
        """Build the box spanned by two corner points given in any order."""
        return cls(
            Interval(min(a[0], b[0]), max(a[0], b[0])),
            Interval(min(a[1], b[1]), max(a[1], b[1])),
            Interval(min(a[2], b[2]), max(a[2], b[2])),
        )

    @classmethod
    def surrounding(cls, box0: "AABB", box1: "AABB") -> "AABB":
        """Build the box enclosing two boxes."""
        return cls(
            Interval.union(box0.x, box1.x),
            Interval.union(box0.y, box1.y),
            Interval.union(box0.z, box1.z),
        )

    def axis_interval(self, n: int) -> Interval:
        """Return the interval of axis n (0=x, 1=y, 2=z)."""
        if n == 1:
            return self.y
        if n == 2:
            return self.z
        return self.x

    def pad(self, delta: float = MIN_BOX_THICKNESS) -> "AABB":
        """Return a copy in which no axis is thinner than delta.

        Planar primitives such as quads have a zero-width box along their
        normal; padding keeps the slab test well defined.
        """
        axes = [
            axis if axis.size() >= delta else axis.expand(delta)
            for axis in (self.x, self.y, self.z)
        ]
        return AABB(*axes)

    def corners(self) -> list[tuple[float, float, float]]:
        """Return the eight corner points of the box."""
        return [
            (x, y, z)
            for x in (self.x.min, self.x.max)
            for y in (self.y.min, self.y.max)
            for z in (self.z.min, self.z.max)
        ]

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        ray_t: Interval,
    ) -> bool:
        """Slab test: does the ray overlap the box within ray_t?"""
        t_min = ray_t.min
        t_max = ray_t.max
        for axis in range(3):
            ax = self.axis_interval(axis)
            d = direction[axis]
            if d == 0.0:
                if not ax.contains(origin[axis]):
                    return False
                continue
            inv_d = 1.0 / d
            t0 = (ax.min - origin[axis]) * inv_d
            t1 = (ax.max - origin[axis]) * inv_d
            if t0 > t1:
                t0, t1 = t1, t0
            t_min = max(t0, t_min)
            t_max = min(t1, t_max)
            if t_max <= t_min:
                return False
        return True


@ti.func
def hit_aabb(
    box_min: vec3,
    box_max: vec3,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> ti.i32:
    """Slab test inside a kernel.

    Args:
        box_min: Minimum corner of the box.
        box_max: Maximum corner of the box.
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Lower bound of the ray parameter.
        t_max: Upper bound of the ray parameter.

    Returns:
        1 if the ray overlaps the box within (t_min, t_max), 0 otherwise.
    """
    t_lo = t_min
    t_hi = t_max
    hit = 1

    # No early return in Taichi functions; test all three axes
    for axis in ti.static(range(3)):
        d = ray_direction[axis]
        if d == 0.0:
            # Parallel to the slab: overlap only if the origin lies inside it
            if ray_origin[axis] < box_min[axis] or ray_origin[axis] > box_max[axis]:
                hit = 0
        else:
            inv_d = 1.0 / d
            t0 = (box_min[axis] - ray_origin[axis]) * inv_d
            t1 = (box_max[axis] - ray_origin[axis]) * inv_d
            t_lo = tm.max(tm.min(t0, t1), t_lo)
            t_hi = tm.min(tm.max(t0, t1), t_hi)
            if t_hi <= t_lo:
                hit = 0

    return hit
