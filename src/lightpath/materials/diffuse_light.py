"""Diffuse area light material.

A diffuse light never scatters. It emits its texture colour from front faces
only; rays hitting the back of a light see black.
"""

import taichi as ti
import taichi.math as tm

from .textures import get_color, is_valid_texture

vec3 = tm.vec3

# Maximum number of diffuse light materials in the scene
MAX_DIFFUSE_LIGHT_MATERIALS = 256

diffuse_light_textures = ti.field(dtype=ti.i32, shape=MAX_DIFFUSE_LIGHT_MATERIALS)
num_diffuse_light_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_light_materials() -> None:
    """Clear all diffuse light materials."""
    num_diffuse_light_materials[None] = 0


def add_diffuse_light_material(texture_id: int) -> int:
    """Add a diffuse light material to the material registry.

    Args:
        texture_id: Texture providing the emitted radiance.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If texture_id does not refer to an existing texture.
    """
    if not is_valid_texture(texture_id):
        raise ValueError(f"Invalid texture_id: {texture_id}")

    idx = num_diffuse_light_materials[None]
    if idx >= MAX_DIFFUSE_LIGHT_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse light materials ({MAX_DIFFUSE_LIGHT_MATERIALS}) exceeded"
        )

    diffuse_light_textures[idx] = texture_id
    num_diffuse_light_materials[None] = idx + 1
    return idx


def get_diffuse_light_material_count() -> int:
    """Get the number of diffuse light materials in the registry."""
    return int(num_diffuse_light_materials[None])


@ti.func
def emitted_diffuse_light(
    material_idx: ti.i32,
    front_face: ti.i32,
    u: ti.f32,
    v: ti.f32,
    point: vec3,
) -> vec3:
    """Radiance emitted by a diffuse light at a surface point.

    Args:
        material_idx: The index of the material in the registry.
        front_face: 1 if the ray hit the outside of the surface.
        u: Surface texture coordinate.
        v: Surface texture coordinate.
        point: World-space point being shaded.

    Returns:
        The texture colour on front faces, black otherwise.
    """
    result = vec3(0.0, 0.0, 0.0)
    if front_face == 1:
        result = get_color(diffuse_light_textures[material_idx], u, v, point)
    return result
