"""Texture table: solid colours and 3D checker patterns.

Every texture answers get_color(texture_id, u, v, point) -> Color. Materials
reference textures by id for their albedo or emission.

The checker texture is a solid (3D) pattern: the parity of
floor(x / scale) + floor(y / scale) + floor(z / scale) selects the even or
the odd colour, so it does not depend on the surface (u, v).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.materials.textures import (
    ...     add_solid_texture, add_checker_texture
    ... )
    >>> red = add_solid_texture((0.65, 0.05, 0.05))
    >>> floor = add_checker_texture(0.32, (0.2, 0.3, 0.1), (0.9, 0.9, 0.9))
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors
vec3 = tm.vec3

# Texture kind tags
TEXTURE_SOLID = 0
TEXTURE_CHECKER = 1

# Maximum number of textures in the scene
MAX_TEXTURES = 1024

# Storage for texture properties
# texture_color_a is the solid colour, or the even colour of a checker
texture_kinds = ti.field(dtype=ti.i32, shape=MAX_TEXTURES)
texture_color_a = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_color_b = ti.Vector.field(3, dtype=ti.f32, shape=MAX_TEXTURES)
texture_inv_scales = ti.field(dtype=ti.f32, shape=MAX_TEXTURES)
num_textures = ti.field(dtype=ti.i32, shape=())


def clear_textures() -> None:
    """Clear all textures.

    Resets the texture count to zero. Existing data in the fields will be
    overwritten when new textures are added.
    """
    num_textures[None] = 0


def _validate_color(name: str, color: tuple[float, float, float]) -> None:
    """Raise ValueError unless color is three finite non-negative components."""
    if len(color) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(color)}")
    for i, component in enumerate(color):
        if not component >= 0.0 or component == float("inf"):
            raise ValueError(f"{name} component {i} = {component} must be finite and >= 0")


def _next_texture_index() -> int:
    idx = num_textures[None]
    if idx >= MAX_TEXTURES:
        raise RuntimeError(f"Maximum number of textures ({MAX_TEXTURES}) exceeded")
    return idx


def add_solid_texture(color: tuple[float, float, float]) -> int:
    """Add a constant-colour texture.

    Args:
        color: The colour as (R, G, B). Components may exceed 1 (emission).

    Returns:
        The texture id.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
        ValueError: If any component is negative or not finite.
    """
    _validate_color("Texture color", color)
    idx = _next_texture_index()

    texture_kinds[idx] = TEXTURE_SOLID
    texture_color_a[idx] = vec3(color[0], color[1], color[2])
    texture_color_b[idx] = vec3(color[0], color[1], color[2])
    texture_inv_scales[idx] = 1.0
    num_textures[None] = idx + 1
    return idx


def add_checker_texture(
    scale: float,
    even: tuple[float, float, float],
    odd: tuple[float, float, float],
) -> int:
    """Add a 3D checker texture.

    Args:
        scale: Edge length of one checker cell. Must be positive.
        even: Colour of cells whose integer coordinates sum to an even number.
        odd: Colour of the remaining cells.

    Returns:
        The texture id.

    Raises:
        RuntimeError: If the maximum number of textures is exceeded.
        ValueError: If scale is not positive or a colour is invalid.
    """
    if not scale > 0.0:
        raise ValueError(f"Checker scale = {scale} must be > 0")
    _validate_color("Checker even color", even)
    _validate_color("Checker odd color", odd)
    idx = _next_texture_index()

    texture_kinds[idx] = TEXTURE_CHECKER
    texture_color_a[idx] = vec3(even[0], even[1], even[2])
    texture_color_b[idx] = vec3(odd[0], odd[1], odd[2])
    texture_inv_scales[idx] = 1.0 / scale
    num_textures[None] = idx + 1
    return idx


def get_texture_count() -> int:
    """Get the number of textures in the table."""
    return int(num_textures[None])


def is_valid_texture(texture_id: int) -> bool:
    """Return True if texture_id refers to an existing texture."""
    return 0 <= texture_id < num_textures[None]


@ti.func
def checker_is_even(inv_scale: ti.f32, point: vec3) -> ti.i32:
    """Return 1 if point lies in an even checker cell."""
    cell = ti.floor(inv_scale * point, ti.i32)
    return (cell.x + cell.y + cell.z) % 2 == 0


@ti.func
def get_color(texture_id: ti.i32, u: ti.f32, v: ti.f32, point: vec3) -> vec3:
    """Look up the colour of a texture at a surface point.

    Args:
        texture_id: Id returned by add_solid_texture / add_checker_texture.
        u: Surface texture coordinate.
        v: Surface texture coordinate.
        point: World-space point being shaded.

    Returns:
        The RGB colour.
    """
    color = texture_color_a[texture_id]
    if texture_kinds[texture_id] == TEXTURE_CHECKER:
        if checker_is_even(texture_inv_scales[texture_id], point) == 0:
            color = texture_color_b[texture_id]
    return color
