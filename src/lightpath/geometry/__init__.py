"""Geometry module for shape primitives.

Components:
    hittable: Hit records and shared intersection constants
    sphere: (Moving) sphere intersection, density and sampling
    quad: Parallelogram intersection, density and sampling
    transform: Translation and Y-rotation of instances
    medium: Constant-density medium distance sampling

All intersection routines are Taichi functions (@ti.func).
"""

from .hittable import SHAPE_QUAD, SHAPE_SPHERE, T_MAX, T_MIN, HitRecord, make_miss_record
from .quad import Quad, box_sides, hit_quad, make_quad, quad_area, quad_density, quad_sample
from .sphere import Sphere, hit_sphere, make_sphere, sphere_density, sphere_sample
from .transform import MAX_TRANSFORMS, Transform, rotate_y_params

__all__ = [
    "HitRecord",
    "make_miss_record",
    "T_MIN",
    "T_MAX",
    "SHAPE_SPHERE",
    "SHAPE_QUAD",
    "Sphere",
    "hit_sphere",
    "make_sphere",
    "sphere_density",
    "sphere_sample",
    "Quad",
    "hit_quad",
    "make_quad",
    "quad_area",
    "quad_density",
    "quad_sample",
    "box_sides",
    "Transform",
    "MAX_TRANSFORMS",
    "rotate_y_params",
]
