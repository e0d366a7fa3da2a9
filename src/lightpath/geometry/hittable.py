"""Hit record shared by every intersectable primitive.

A HitRecord is the outcome of a ray/primitive intersection. A miss is a
normal result (``hit == 0``), never an error.

Primitive kinds are a closed set, identified by the integer tags below and
dispatched in ``src.lightpath.scene.intersection``.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3

# Ray parameter bounds used for scene queries
T_MIN = 0.001
T_MAX = 1e10

# Primitive kind tags
SHAPE_SPHERE = 0
SHAPE_QUAD = 1


@ti.dataclass
class HitRecord:
    """Record of a ray/primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: Ray parameter of the intersection, strictly inside the queried
            interval. Only valid if hit == 1.
        point: World-space intersection point.
        normal: Unit surface normal, always facing against the incoming ray.
        front_face: 1 if the ray hit the outside of the surface (the outward
            normal opposes the ray), 0 otherwise.
        u: Surface texture coordinate.
        v: Surface texture coordinate.
        material_id: Unified material id of the hit primitive, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    u: ti.f32
    v: ti.f32
    material_id: ti.i32


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        u=0.0,
        v=0.0,
        material_id=-1,
    )


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        A tuple (front_face, normal) where front_face is 1 when the ray hits
        the outside of the surface and normal opposes the ray.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) > 0.0:
        # Ray is inside the surface, hitting the back face
        front_face = 0
        normal = -outward_normal
    return front_face, normal
