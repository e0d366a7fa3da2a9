"""Quad primitive with ray-quad intersection and area sampling.

This module provides a Quad dataclass, its intersection function, and the
direction-sampling pair (density / sample) that lets a quad act as an
area light for importance sampling.

A quad is defined by:
- Q: A corner point of the quad
- u: Edge vector from Q to adjacent corner
- v: Edge vector from Q to other adjacent corner

The quad spans the parallelogram from Q to Q+u+v. The normal is computed as
normalize(cross(u, v)), pointing in the direction determined by the right-hand
rule.

Ray-quad intersection uses the parametric plane test:
1. Find where ray intersects the plane containing the quad
2. Check if the intersection point lies within the quad bounds

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.geometry.quad import Quad, hit_quad
    >>> # Floor quad at y=0, spanning x=[0,1] and z=[0,1]
    >>> quad = Quad(
    ...     Q=ti.math.vec3(0, 0, 0),
    ...     u=ti.math.vec3(1, 0, 0),
    ...     v=ti.math.vec3(0, 0, 1)
    ... )
    >>> # Use hit_quad within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import Ray, ray_at

from .hittable import T_MAX, HitRecord, face_normal, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Rays this close to parallel with the quad plane are treated as misses
PARALLEL_EPSILON = 1e-8

# Lower ray bound used when testing whether a sampled direction sees the quad
DENSITY_T_MIN = 0.001


@ti.dataclass
class Quad:
    """A quad (parallelogram) defined by a corner point and two edge vectors.

    The quad represents the parallelogram with vertices at:
        Q, Q+u, Q+v, Q+u+v

    Attributes:
        Q: The corner point of the quad (vec3).
        u: Edge vector from Q to adjacent corner (vec3).
        v: Edge vector from Q to other adjacent corner (vec3).
    """

    Q: vec3
    u: vec3
    v: vec3


@ti.func
def _compute_quad_frame(quad: Quad):
    """Compute the quad's plane normal and the helper for planar coordinates.

    The intersection point P can be expressed as:
        P = Q + alpha * u + beta * v

    With n = u x v and w = n / dot(n, n):
        alpha = dot(w, (P - Q) x v)
        beta = dot(w, u x (P - Q))

    Args:
        quad: The quad to compute frame for.

    Returns:
        Tuple of (normal, d, w) where:
        - normal: Unit normal vector of the quad plane
        - d: Plane constant (distance from origin along normal)
        - w: Helper vector for computing alpha and beta
    """
    n = tm.cross(quad.u, quad.v)
    n_dot_n = tm.dot(n, n)

    normal = vec3(0.0, 0.0, 0.0)
    w = vec3(0.0, 0.0, 0.0)
    # Degenerate quads (u parallel to v) keep a zero frame and never hit
    if n_dot_n > 1e-20:
        normal = n / ti.sqrt(n_dot_n)
        w = n / n_dot_n

    d = tm.dot(normal, quad.Q)
    return normal, d, w


@ti.func
def hit_quad(ray: Ray, quad: Quad, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-quad intersection.

    Uses parametric plane intersection followed by bounds checking:
    1. Compute where ray hits the plane containing the quad
    2. Express hit point in quad's local coordinates (alpha, beta)
    3. Check if 0 <= alpha <= 1 and 0 <= beta <= 1

    The ray-plane intersection is found by solving:
        t = (D - dot(normal, ray_origin)) / dot(normal, ray_direction)

    Args:
        ray: The ray to test.
        quad: The quad to test intersection against.
        t_min: Exclusive lower bound of a valid hit.
        t_max: Exclusive upper bound of a valid hit.

    Returns:
        A HitRecord whose (u, v) are the planar coordinates (alpha, beta).
        The material_id field is left at -1 for the caller.
    """
    normal, d, w = _compute_quad_frame(quad)
    denom = tm.dot(normal, ray.direction)

    rec = make_miss_record()

    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = (d - tm.dot(normal, ray.origin)) / denom

        if t > t_min and t < t_max:
            point = ray_at(ray, t)
            p = point - quad.Q
            alpha = tm.dot(w, tm.cross(p, quad.v))
            beta = tm.dot(w, tm.cross(quad.u, p))

            if alpha >= 0.0 and alpha <= 1.0 and beta >= 0.0 and beta <= 1.0:
                front_face, hit_normal = face_normal(ray.direction, normal)
                rec.hit = 1
                rec.t = t
                rec.point = point
                rec.normal = hit_normal
                rec.front_face = front_face
                rec.u = alpha
                rec.v = beta

    return rec


@ti.func
def quad_area(quad: Quad) -> ti.f32:
    """Compute the area of a quad.

    The area is the magnitude of the cross product of the edge vectors.

    Args:
        quad: The quad to compute area for.

    Returns:
        The area of the quad.
    """
    return tm.length(tm.cross(quad.u, quad.v))


@ti.func
def quad_density(quad: Quad, origin: vec3, direction: vec3) -> ti.f32:
    """Solid-angle density of sampling `direction` from `origin` with quad_sample().

    Converts the uniform area density 1/area into a solid-angle density:
        distance^2 / (cos_theta * area)

    Args:
        quad: The quad.
        origin: Point the direction is sampled from.
        direction: Candidate direction (need not be normalized).

    Returns:
        The density, or 0 if the ray from origin misses the quad.
    """
    density = 0.0
    probe = Ray(origin=origin, direction=direction, time=0.0)
    rec = hit_quad(probe, quad, DENSITY_T_MIN, T_MAX)
    if rec.hit == 1:
        len_sq = tm.dot(direction, direction)
        distance_squared = rec.t * rec.t * len_sq
        cosine = ti.abs(tm.dot(direction, rec.normal)) / ti.sqrt(len_sq)
        density = distance_squared / (cosine * quad_area(quad))
    return density


@ti.func
def quad_sample(quad: Quad, origin: vec3) -> vec3:
    """Sample a direction from `origin` toward a uniform point on the quad.

    Returns:
        The (unnormalized) vector from origin to the sampled point.
    """
    r1 = ti.random(ti.f32)
    r2 = ti.random(ti.f32)
    return quad.Q + r1 * quad.u + r2 * quad.v - origin


@ti.func
def make_quad(q: vec3, u: vec3, v: vec3) -> Quad:
    """Create a quad from corner point and edge vectors inside a kernel."""
    return Quad(Q=q, u=u, v=v)


def box_sides(a, b):
    """Return the six quads of the axis-aligned box spanned by two corners.

    Every face normal points out of the box.

    Args:
        a: One corner (x, y, z).
        b: The opposite corner (x, y, z), in any order relative to a.

    Returns:
        A list of six (Q, u, v) tuples of 3-tuples: front, right, back, left,
        top, bottom.
    """
    min_x, max_x = min(a[0], b[0]), max(a[0], b[0])
    min_y, max_y = min(a[1], b[1]), max(a[1], b[1])
    min_z, max_z = min(a[2], b[2]), max(a[2], b[2])

    dx = (max_x - min_x, 0.0, 0.0)
    dy = (0.0, max_y - min_y, 0.0)
    dz = (0.0, 0.0, max_z - min_z)
    neg_dx = (-dx[0], 0.0, 0.0)
    neg_dz = (0.0, 0.0, -dz[2])

    return [
        ((min_x, min_y, max_z), dx, dy),  # front
        ((max_x, min_y, max_z), neg_dz, dy),  # right
        ((max_x, min_y, min_z), neg_dx, dy),  # back
        ((min_x, min_y, min_z), dz, dy),  # left
        ((min_x, max_y, max_z), dx, neg_dz),  # top
        ((min_x, min_y, min_z), dx, dz),  # bottom
    ]
