"""Sphere primitive with robust ray-sphere intersection and cone sampling.

This module provides a Sphere dataclass, the intersection function using the
robust quadratic formula from Ray Tracing Gems, and the direction-sampling
pair (density / sample) that lets a sphere act as an importance-sampling
target for light sampling.

A sphere's center moves linearly with ray time:
    center(time) = center + time * velocity
A static sphere simply has zero velocity. Rays carry a time in [0, 1), so
averaging many samples produces motion blur.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), velocity=ti.math.vec3(0), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import (
    Ray,
    build_onb_from_normal,
    local_to_world,
    random_to_sphere,
    ray_at,
)

from .hittable import T_MAX, HitRecord, face_normal, make_miss_record

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Lower ray bound used when testing whether a sampled direction sees the sphere
DENSITY_T_MIN = 0.001


@ti.dataclass
class Sphere:
    """A sphere defined by center point, velocity and radius.

    Attributes:
        center: The center point of the sphere at time 0 (vec3).
        velocity: Displacement of the center between time 0 and time 1.
        radius: The radius of the sphere (positive float).
    """

    center: vec3
    velocity: vec3
    radius: ti.f32


@ti.func
def sphere_center_at(sphere: Sphere, time: ti.f32) -> vec3:
    """Return the center of a (possibly moving) sphere at the given time."""
    return sphere.center + time * sphere.velocity


@ti.func
def get_sphere_uv(p: vec3):
    """Compute spherical texture coordinates from a unit outward normal.

    u is the angle around the Y axis from X = -1, v the angle from Y = -1,
    both normalized to [0, 1].

    Args:
        p: A point on the unit sphere centered at the origin.

    Returns:
        Tuple (u, v).
    """
    theta = ti.acos(tm.clamp(-p.y, -1.0, 1.0))
    phi = ti.atan2(-p.z, p.x) + tm.pi
    return phi / (2.0 * tm.pi), theta / tm.pi


@ti.func
def _solve_quadratic_robust(h: ti.f32, a: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve quadratic equation using robust formula from Ray Tracing Gems.

    Solves a*t^2 + 2*h*t + c = 0 using a numerically stable method.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient.
        c: Constant term.
        sqrt_d: Square root of discriminant (h^2 - a*c).

    Returns:
        Tuple of (t0, t1) where t0 <= t1.
    """
    # Robust quadratic formula: use sign of h to avoid catastrophic cancellation
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0

    if ti.abs(q) < 1e-10:
        # Fall back to standard formula for edge cases
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    # Ensure t0 <= t1
    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test for ray-sphere intersection using robust quadratic formula.

    The ray-sphere intersection is found by solving:
        |origin + t * direction - center(time)|^2 = radius^2

    which gives a*t^2 + 2*h*t + c = 0 with
        a = dot(direction, direction)
        h = dot(direction, oc)
        c = dot(oc, oc) - radius^2
        oc = origin - center(time)

    A negative discriminant is a miss. Otherwise the smaller root is taken if
    it lies strictly inside (t_min, t_max), else the larger one.

    Args:
        ray: The ray to test (its time selects the sphere center).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound of a valid hit.
        t_max: Exclusive upper bound of a valid hit.

    Returns:
        A HitRecord. The material_id field is left at -1 for the caller.
    """
    center = sphere_center_at(sphere, ray.time)
    oc = ray.origin - center

    a = tm.dot(ray.direction, ray.direction)
    h = tm.dot(ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    # Discriminant (half-b form: h^2 - ac instead of b^2 - 4ac)
    discriminant = h * h - a * c

    rec = make_miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        # Find the nearest root strictly inside (t_min, t_max)
        t = t0
        valid = t > t_min and t < t_max
        if not valid:
            t = t1
            valid = t > t_min and t < t_max

        if valid:
            point = ray_at(ray, t)
            outward_normal = (point - center) / sphere.radius
            front_face, normal = face_normal(ray.direction, outward_normal)
            u, v = get_sphere_uv(outward_normal)

            rec.hit = 1
            rec.t = t
            rec.point = point
            rec.normal = normal
            rec.front_face = front_face
            rec.u = u
            rec.v = v

    return rec


@ti.func
def sphere_density(sphere: Sphere, origin: vec3, direction: vec3) -> ti.f32:
    """Density of sampling `direction` from `origin` with sphere_sample().

    The sampling distribution is uniform over the solid angle of the cone
    subtended by the sphere, so the density is 1 / solid_angle inside the
    cone and 0 for directions that miss the sphere.

    Args:
        sphere: The sphere (evaluated at time 0).
        origin: Point the direction is sampled from.
        direction: Candidate direction (need not be normalized).

    Returns:
        1 / (2 * pi * (1 - cos_theta_max)), or 0 if the ray misses.
    """
    density = 0.0
    probe = Ray(origin=origin, direction=direction, time=0.0)
    rec = hit_sphere(probe, sphere, DENSITY_T_MIN, T_MAX)
    if rec.hit == 1:
        to_center = sphere_center_at(sphere, 0.0) - origin
        distance_squared = tm.dot(to_center, to_center)
        cos_theta_max = ti.sqrt(
            tm.max(0.0, 1.0 - sphere.radius * sphere.radius / distance_squared)
        )
        solid_angle = 2.0 * tm.pi * (1.0 - cos_theta_max)
        density = 1.0 / solid_angle
    return density


@ti.func
def sphere_sample(sphere: Sphere, origin: vec3) -> vec3:
    """Sample a direction from `origin` uniformly within the sphere's cone.

    Args:
        sphere: The sphere (evaluated at time 0).
        origin: Point to sample from; must lie outside the sphere.

    Returns:
        A unit world-space direction toward the sphere.
    """
    direction = sphere_center_at(sphere, 0.0) - origin
    distance_squared = tm.dot(direction, direction)
    tangent, bitangent, w = build_onb_from_normal(direction)
    local_dir = random_to_sphere(sphere.radius, distance_squared)
    return local_to_world(local_dir, tangent, bitangent, w)


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a static sphere from center and radius inside a kernel."""
    return Sphere(center=center, velocity=vec3(0.0, 0.0, 0.0), radius=radius)
