"""Constant-density participating medium (smoke, fog).

A medium fills the volume enclosed by a boundary group of spheres and quads.
A ray travelling through the medium scatters after an exponentially
distributed distance:

    hit_distance = -(1 / density) * ln(xi)

If that distance is longer than the path length inside the boundary the ray
passes through untouched.

The boundary intersections themselves are found by the scene (see
``src.lightpath.scene.intersection``); this module turns the entry and exit
records into the medium's own hit.
"""

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import Ray, ray_at

from .hittable import HitRecord, make_miss_record

vec3 = tm.vec3

# Offset past the entry point when searching for the exit point
EXIT_EPSILON = 1e-4


@ti.func
def hit_medium(
    ray: Ray,
    entry_rec: HitRecord,
    exit_rec: HitRecord,
    neg_inv_density: ti.f32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Sample a scattering event inside a medium.

    Args:
        ray: The incoming ray.
        entry_rec: Boundary hit over (-inf, inf).
        exit_rec: Boundary hit over (entry_rec.t + EXIT_EPSILON, inf).
        neg_inv_density: -1 / density of the medium.
        t_min: Exclusive lower bound of a valid hit.
        t_max: Exclusive upper bound of a valid hit.

    Returns:
        A HitRecord with an arbitrary normal (1, 0, 0), front_face 1 and
        u = v = 0, or a miss record.
    """
    rec = make_miss_record()

    if entry_rec.hit == 1 and exit_rec.hit == 1:
        t1 = tm.max(entry_rec.t, t_min)
        t2 = tm.min(exit_rec.t, t_max)

        if t1 < t2:
            t1 = tm.max(t1, 0.0)
            ray_length = tm.length(ray.direction)
            distance_inside = (t2 - t1) * ray_length
            # 1 - random keeps the log argument in (0, 1]
            hit_distance = neg_inv_density * ti.log(1.0 - ti.random(ti.f32))

            if hit_distance <= distance_inside:
                t = t1 + hit_distance / ray_length
                rec.hit = 1
                rec.t = t
                rec.point = ray_at(ray, t)
                rec.normal = vec3(1.0, 0.0, 0.0)
                rec.front_face = 1
                rec.u = 0.0
                rec.v = 0.0

    return rec
