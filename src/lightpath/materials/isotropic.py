"""Isotropic phase function for participating media.

An isotropic medium scatters uniformly over the whole sphere of directions,
so its scattering density is the constant 1 / (4 pi).
"""

import math

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import random_unit_vector

from .textures import get_color, is_valid_texture

vec3 = tm.vec3

# Density of a direction drawn uniformly over the unit sphere
UNIFORM_SPHERE_PDF = 1.0 / (4.0 * math.pi)

# Maximum number of isotropic materials in the scene
MAX_ISOTROPIC_MATERIALS = 256

isotropic_textures = ti.field(dtype=ti.i32, shape=MAX_ISOTROPIC_MATERIALS)
num_isotropic_materials = ti.field(dtype=ti.i32, shape=())


@ti.func
def scatter_isotropic(albedo: vec3):
    """Scatter uniformly over the sphere.

    Returns:
        A tuple of (scattered_direction, attenuation).
    """
    return random_unit_vector(), albedo


@ti.func
def isotropic_scatter_pdf() -> ti.f32:
    """Scattering density of an isotropic medium: 1 / (4 pi)."""
    return UNIFORM_SPHERE_PDF


def clear_isotropic_materials() -> None:
    """Clear all isotropic materials."""
    num_isotropic_materials[None] = 0


def add_isotropic_material(texture_id: int) -> int:
    """Add an isotropic material to the material registry.

    Args:
        texture_id: Texture providing the medium albedo.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If texture_id does not refer to an existing texture.
    """
    if not is_valid_texture(texture_id):
        raise ValueError(f"Invalid texture_id: {texture_id}")

    idx = num_isotropic_materials[None]
    if idx >= MAX_ISOTROPIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of isotropic materials ({MAX_ISOTROPIC_MATERIALS}) exceeded"
        )

    isotropic_textures[idx] = texture_id
    num_isotropic_materials[None] = idx + 1
    return idx


def get_isotropic_material_count() -> int:
    """Get the number of isotropic materials in the registry."""
    return int(num_isotropic_materials[None])


@ti.func
def get_isotropic_albedo(material_idx: ti.i32, u: ti.f32, v: ti.f32, point: vec3) -> vec3:
    """Get the albedo for an isotropic material by index at a point."""
    return get_color(isotropic_textures[material_idx], u, v, point)
