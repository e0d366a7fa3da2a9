"""Instance transforms: translation and rotation about the Y axis.

A primitive may carry a short stack of transforms, stored innermost first.
Intersection happens in object space: the ray is mapped into object space by
applying each inverse transform from the outermost to the innermost, the
primitive is tested there, and the hit point and normal are mapped back by
applying each transform from the innermost to the outermost.

Rotation sine and cosine are computed once on the host (see rotate_y_params)
and stored with the transform, never recomputed per ray.

Example:
    >>> sin_theta, cos_theta = rotate_y_params(15.0)
    >>> # In a kernel:
    >>> # xf = Transform(kind=XFORM_ROTATE_Y, offset=vec3(0), sin_theta=s, cos_theta=c)
    >>> # local_origin = point_to_object(xf, ray.origin)
"""

import math

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Maximum number of stacked transforms per primitive
MAX_TRANSFORMS = 4

# Transform kind tags
XFORM_NONE = 0
XFORM_TRANSLATE = 1
XFORM_ROTATE_Y = 2


@ti.dataclass
class Transform:
    """A single translate or rotate-Y transform.

    Attributes:
        kind: One of XFORM_NONE, XFORM_TRANSLATE, XFORM_ROTATE_Y.
        offset: Translation offset (translate only).
        sin_theta: Sine of the rotation angle (rotate only).
        cos_theta: Cosine of the rotation angle (rotate only).
    """

    kind: ti.i32
    offset: vec3
    sin_theta: ti.f32
    cos_theta: ti.f32


def rotate_y_params(angle_degrees: float) -> tuple[float, float]:
    """Return (sin, cos) of a rotation angle given in degrees."""
    radians = math.radians(angle_degrees)
    return math.sin(radians), math.cos(radians)


@ti.func
def _rotate_to_object(xf: Transform, v: vec3) -> vec3:
    """Apply the inverse Y rotation to a vector."""
    return vec3(
        xf.cos_theta * v.x - xf.sin_theta * v.z,
        v.y,
        xf.sin_theta * v.x + xf.cos_theta * v.z,
    )


@ti.func
def _rotate_to_world(xf: Transform, v: vec3) -> vec3:
    """Apply the forward Y rotation to a vector."""
    return vec3(
        xf.cos_theta * v.x + xf.sin_theta * v.z,
        v.y,
        -xf.sin_theta * v.x + xf.cos_theta * v.z,
    )


@ti.func
def point_to_object(xf: Transform, p: vec3) -> vec3:
    """Map a point from the transform's outer space into its inner space."""
    result = p
    if xf.kind == XFORM_TRANSLATE:
        result = p - xf.offset
    elif xf.kind == XFORM_ROTATE_Y:
        result = _rotate_to_object(xf, p)
    return result


@ti.func
def direction_to_object(xf: Transform, d: vec3) -> vec3:
    """Map a direction into inner space. Translation leaves directions unchanged."""
    result = d
    if xf.kind == XFORM_ROTATE_Y:
        result = _rotate_to_object(xf, d)
    return result


@ti.func
def point_to_world(xf: Transform, p: vec3) -> vec3:
    """Map a point from the transform's inner space to its outer space."""
    result = p
    if xf.kind == XFORM_TRANSLATE:
        result = p + xf.offset
    elif xf.kind == XFORM_ROTATE_Y:
        result = _rotate_to_world(xf, p)
    return result


@ti.func
def direction_to_world(xf: Transform, d: vec3) -> vec3:
    """Map a direction or normal to outer space.

    Rotations are orthonormal, so normals transform like directions.
    """
    result = d
    if xf.kind == XFORM_ROTATE_Y:
        result = _rotate_to_world(xf, d)
    return result
