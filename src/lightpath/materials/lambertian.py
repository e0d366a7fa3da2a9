"""Lambertian (ideal diffuse) material implementation.

This module implements the Lambertian BRDF, which models ideal diffuse reflection
where incident light is scattered uniformly in all directions weighted by the
cosine of the angle from the surface normal.

The Lambertian BRDF is:
    f_r(wi, wo) = albedo / pi

The scattering density used by the integrator is:
    scatter_pdf(wi) = cos(theta) / pi

where theta is the angle between the scattered direction and the surface normal.
Because the material also samples cosine-weighted directions, the BRDF,
the cosine term and the sampling density cancel and the attenuation is the
albedo itself.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation = scatter_lambertian(albedo, normal)
"""

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import (
    near_zero,
    sample_cosine_hemisphere,
    unit_vector,
)

from .textures import get_color, is_valid_texture

# Type alias for 3D vectors
vec3 = tm.vec3


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Sample a scattered ray direction for Lambertian material.

    Uses cosine-weighted hemisphere sampling around the normal.

    Args:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
        normal: The surface normal at the hit point (should be normalized).

    Returns:
        A tuple of (scattered_direction, attenuation) where attenuation
        equals the albedo.
    """
    scattered_direction, _pdf = sample_cosine_hemisphere(normal)

    # Handle degenerate case where sampled direction is near zero
    if near_zero(scattered_direction):
        scattered_direction = normal

    return scattered_direction, albedo


@ti.func
def lambertian_scatter_pdf(normal: vec3, scattered_direction: vec3) -> ti.f32:
    """Density of a scattered direction for the Lambertian lobe.

    Args:
        normal: The surface normal (should be normalized).
        scattered_direction: The scattered direction (any length).

    Returns:
        max(0, cos(theta) / pi).
    """
    cos_theta = tm.dot(normal, unit_vector(scattered_direction))
    return tm.max(0.0, cos_theta / tm.pi)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of Lambertian materials in the scene
MAX_LAMBERTIAN_MATERIALS = 256

# Storage for Lambertian material properties (albedo texture ids)
lambertian_textures = ti.field(dtype=ti.i32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def clear_lambertian_materials() -> None:
    """Clear all Lambertian materials.

    Resets the material count to zero. Existing data in the field will be
    overwritten when new materials are added.
    """
    num_lambertian_materials[None] = 0


def add_lambertian_material(texture_id: int) -> int:
    """Add a Lambertian material to the material registry.

    Args:
        texture_id: Texture providing the albedo.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If texture_id does not refer to an existing texture.
    """
    if not is_valid_texture(texture_id):
        raise ValueError(f"Invalid texture_id: {texture_id}")

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_textures[idx] = texture_id
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of Lambertian materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32, u: ti.f32, v: ti.f32, point: vec3) -> vec3:
    """Get the albedo for a Lambertian material by index at a surface point.

    Args:
        material_idx: The index of the material in the registry.
        u: Surface texture coordinate.
        v: Surface texture coordinate.
        point: World-space point being shaded.

    Returns:
        The albedo color (RGB) for the material.
    """
    return get_color(lambertian_textures[material_idx], u, v, point)
