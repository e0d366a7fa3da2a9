"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random directions
    aabb: Intervals and axis-aligned bounding boxes
    pdf: Sampling densities (cosine, uniform sphere, toward a group, mixture)
    integrator: Path tracing estimator and rendering kernels

All compute-intensive operations use Taichi kernels.
"""

from .ray import (
    Ray,
    build_onb_from_normal,
    length,
    length_squared,
    local_to_world,
    make_ray,
    near_zero,
    random_cosine_direction,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_to_sphere,
    random_unit_vector,
    ray_at,
    reflect,
    refract,
    sample_cosine_hemisphere,
    schlick_fresnel,
    unit_vector,
    vec3,
)

# Note: pdf and integrator are NOT imported here to avoid circular imports.
# Import them directly from src.lightpath.core.pdf / src.lightpath.core.integrator.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "unit_vector",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "random_cosine_direction",
    "random_to_sphere",
    "build_onb_from_normal",
    "local_to_world",
    "sample_cosine_hemisphere",
]
