"""Scene-level primitive storage, intersection and light sampling.

This module stores every primitive of the scene in Taichi fields and answers
the two kinds of scene queries the integrator needs:

- intersect_world(ray, t_min, t_max): closest hit over the world group,
  spheres and quads first, then constant-density media.
- group_density(g, origin, direction) / group_sample(g, origin): the
  direction-sampling pair over a group, used to importance sample lights.

Primitives belong to groups:

- group 0 (WORLD_GROUP) is everything a ray can hit,
- group 1 (LIGHT_GROUP) is the set of primitives sampled as lights,
- groups >= 2 are medium boundaries.

The same shape may appear in several groups (a ceiling light is both in the
world and in the light set); each appearance is a separate shape record.
Shapes carry an optional stack of translate / rotate-Y transforms.

Uploads happen on the host through the stage_* functions and are published
by set_counts(), called from SceneManager.commit(). Kernels only read these
fields.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> # ... add materials and objects ...
    >>> scene.commit()
    >>> # Use intersect_world within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import Ray
from src.lightpath.geometry.hittable import (
    SHAPE_QUAD,
    SHAPE_SPHERE,
    HitRecord,
    make_miss_record,
)
from src.lightpath.geometry.medium import EXIT_EPSILON, hit_medium
from src.lightpath.geometry.quad import Quad, hit_quad, quad_density, quad_sample
from src.lightpath.geometry.sphere import Sphere, hit_sphere, sphere_density, sphere_sample
from src.lightpath.geometry.transform import (
    MAX_TRANSFORMS,
    XFORM_NONE,
    Transform,
    direction_to_object,
    direction_to_world,
    point_to_object,
    point_to_world,
)

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Reserved groups
WORLD_GROUP = 0
LIGHT_GROUP = 1
FIRST_BOUNDARY_GROUP = 2

# Unbounded ray interval used for medium boundary queries
INF = float("inf")

# Capacity of the scene storage
MAX_SHAPES = 2048
MAX_MEDIA = 64
MAX_GROUPS = FIRST_BOUNDARY_GROUP + MAX_MEDIA

# Shape storage: Structure of Arrays layout
# shape_p0 holds a sphere's center at time 0 or a quad's corner Q,
# shape_p1 a sphere's velocity or a quad's edge u, shape_p2 a quad's edge v.
shape_kinds = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_groups = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_p0 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_p1 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_p2 = ti.Vector.field(3, dtype=ti.f32, shape=MAX_SHAPES)
shape_radii = ti.field(dtype=ti.f32, shape=MAX_SHAPES)
shape_material_ids = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
shape_num_transforms = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
# Transform stack per shape, innermost first
xform_kinds = ti.field(dtype=ti.i32, shape=(MAX_SHAPES, MAX_TRANSFORMS))
xform_offsets = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_SHAPES, MAX_TRANSFORMS))
xform_sines = ti.field(dtype=ti.f32, shape=(MAX_SHAPES, MAX_TRANSFORMS))
xform_cosines = ti.field(dtype=ti.f32, shape=(MAX_SHAPES, MAX_TRANSFORMS))
num_shapes = ti.field(dtype=ti.i32, shape=())

# Group membership: shapes sorted by group, group_start[g] .. + group_count[g]
group_members = ti.field(dtype=ti.i32, shape=MAX_SHAPES)
group_start = ti.field(dtype=ti.i32, shape=MAX_GROUPS)
group_count = ti.field(dtype=ti.i32, shape=MAX_GROUPS)

# Medium storage: every medium lives in the world group
medium_boundary_groups = ti.field(dtype=ti.i32, shape=MAX_MEDIA)
medium_neg_inv_densities = ti.field(dtype=ti.f32, shape=MAX_MEDIA)
medium_material_ids = ti.field(dtype=ti.i32, shape=MAX_MEDIA)
num_media = ti.field(dtype=ti.i32, shape=())

# Set by commit, cleared whenever the scene is cleared
_scene_committed = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive and group counts to zero. The actual field data is
    not cleared but will be overwritten when new primitives are staged.
    """
    num_shapes[None] = 0
    num_media[None] = 0
    group_start.fill(0)
    group_count.fill(0)
    _scene_committed[None] = 0


def stage_shape(
    index: int,
    kind: int,
    group: int,
    p0: tuple[float, float, float],
    p1: tuple[float, float, float],
    p2: tuple[float, float, float],
    radius: float,
    material_id: int,
    transforms: list[tuple[int, tuple[float, float, float], float, float]],
) -> None:
    """Write one shape record.

    Args:
        index: Slot in the shape storage.
        kind: SHAPE_SPHERE or SHAPE_QUAD.
        group: Group the shape belongs to.
        p0: Sphere center at time 0, or quad corner.
        p1: Sphere velocity, or quad edge u.
        p2: Unused for spheres, quad edge v.
        radius: Sphere radius (0 for quads).
        material_id: Unified material id.
        transforms: Innermost-first list of (kind, offset, sin, cos).

    Raises:
        RuntimeError: If the storage capacity is exceeded.
        ValueError: If more than MAX_TRANSFORMS transforms are given.
    """
    if index >= MAX_SHAPES:
        raise RuntimeError(f"Maximum number of shapes ({MAX_SHAPES}) exceeded")
    if len(transforms) > MAX_TRANSFORMS:
        raise ValueError(
            f"A primitive carries {len(transforms)} transforms, "
            f"at most {MAX_TRANSFORMS} are supported"
        )

    shape_kinds[index] = kind
    shape_groups[index] = group
    shape_p0[index] = vec3(p0[0], p0[1], p0[2])
    shape_p1[index] = vec3(p1[0], p1[1], p1[2])
    shape_p2[index] = vec3(p2[0], p2[1], p2[2])
    shape_radii[index] = radius
    shape_material_ids[index] = material_id
    shape_num_transforms[index] = len(transforms)
    for k in range(MAX_TRANSFORMS):
        if k < len(transforms):
            kind_k, offset, sin_theta, cos_theta = transforms[k]
        else:
            kind_k, offset, sin_theta, cos_theta = XFORM_NONE, (0.0, 0.0, 0.0), 0.0, 1.0
        xform_kinds[index, k] = kind_k
        xform_offsets[index, k] = vec3(offset[0], offset[1], offset[2])
        xform_sines[index, k] = sin_theta
        xform_cosines[index, k] = cos_theta


def stage_medium(index: int, boundary_group: int, density: float, material_id: int) -> None:
    """Write one constant-density medium record.

    Raises:
        RuntimeError: If the storage capacity is exceeded.
    """
    if index >= MAX_MEDIA:
        raise RuntimeError(f"Maximum number of media ({MAX_MEDIA}) exceeded")
    medium_boundary_groups[index] = boundary_group
    medium_neg_inv_densities[index] = -1.0 / density
    medium_material_ids[index] = material_id


def stage_groups(members_by_group: dict[int, list[int]]) -> None:
    """Write group membership tables.

    Args:
        members_by_group: Shape indices of every non-empty group.

    Raises:
        RuntimeError: If a group id is outside the storage capacity.
    """
    group_start.fill(0)
    group_count.fill(0)
    offset = 0
    for group in sorted(members_by_group):
        if group < 0 or group >= MAX_GROUPS:
            raise RuntimeError(f"Maximum number of groups ({MAX_GROUPS}) exceeded")
        members = members_by_group[group]
        group_start[group] = offset
        group_count[group] = len(members)
        for shape_index in members:
            group_members[offset] = shape_index
            offset += 1


def set_counts(shape_count: int, medium_count: int) -> None:
    """Publish the number of staged shapes and media and mark the scene committed."""
    num_shapes[None] = shape_count
    num_media[None] = medium_count
    _scene_committed[None] = 1


def invalidate_scene() -> None:
    """Mark the published scene as stale until the next commit."""
    _scene_committed[None] = 0


def is_scene_committed() -> bool:
    """Return True once the staged scene has been published by set_counts()."""
    return bool(_scene_committed[None])


def get_shape_count() -> int:
    """Get the number of shape records in the scene."""
    return int(num_shapes[None])


def get_medium_count() -> int:
    """Get the number of media in the scene."""
    return int(num_media[None])


def get_group_size(group: int) -> int:
    """Get the number of shapes in a group."""
    return int(group_count[group])


# =============================================================================
# Per-shape queries (object space via the transform stack)
# =============================================================================


@ti.func
def _transform_at(i: ti.i32, k: ti.i32) -> Transform:
    return Transform(
        kind=xform_kinds[i, k],
        offset=xform_offsets[i, k],
        sin_theta=xform_sines[i, k],
        cos_theta=xform_cosines[i, k],
    )


@ti.func
def _to_object_space(i: ti.i32, p: vec3, d: vec3):
    """Map a world-space point and direction into shape i's object space.

    Inverse transforms are applied from the outermost to the innermost.
    """
    local_p = p
    local_d = d
    n = shape_num_transforms[i]
    for j in range(n):
        k = n - 1 - j
        xf = _transform_at(i, k)
        local_p = point_to_object(xf, local_p)
        local_d = direction_to_object(xf, local_d)
    return local_p, local_d


@ti.func
def _point_to_world(i: ti.i32, p: vec3) -> vec3:
    result = p
    for k in range(shape_num_transforms[i]):
        result = point_to_world(_transform_at(i, k), result)
    return result


@ti.func
def _direction_to_world(i: ti.i32, d: vec3) -> vec3:
    result = d
    for k in range(shape_num_transforms[i]):
        result = direction_to_world(_transform_at(i, k), result)
    return result


@ti.func
def _make_sphere(i: ti.i32) -> Sphere:
    return Sphere(center=shape_p0[i], velocity=shape_p1[i], radius=shape_radii[i])


@ti.func
def _make_quad(i: ti.i32) -> Quad:
    return Quad(Q=shape_p0[i], u=shape_p1[i], v=shape_p2[i])


@ti.func
def hit_shape(i: ti.i32, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Intersect shape i, honouring its transform stack.

    Transforms preserve the ray parameter, so t is the same in world and
    object space.
    """
    local_origin, local_direction = _to_object_space(i, ray.origin, ray.direction)
    local_ray = Ray(origin=local_origin, direction=local_direction, time=ray.time)

    rec = make_miss_record()
    if shape_kinds[i] == SHAPE_SPHERE:
        rec = hit_sphere(local_ray, _make_sphere(i), t_min, t_max)
    else:
        rec = hit_quad(local_ray, _make_quad(i), t_min, t_max)

    if rec.hit == 1:
        rec.point = _point_to_world(i, rec.point)
        rec.normal = _direction_to_world(i, rec.normal)
        rec.material_id = shape_material_ids[i]
    return rec


@ti.func
def shape_density(i: ti.i32, origin: vec3, direction: vec3) -> ti.f32:
    """Density of sampling direction from origin toward shape i."""
    local_origin, local_direction = _to_object_space(i, origin, direction)
    density = 0.0
    if shape_kinds[i] == SHAPE_SPHERE:
        density = sphere_density(_make_sphere(i), local_origin, local_direction)
    elif shape_kinds[i] == SHAPE_QUAD:
        density = quad_density(_make_quad(i), local_origin, local_direction)
    return density


@ti.func
def shape_sample(i: ti.i32, origin: vec3) -> vec3:
    """Sample a world-space direction from origin toward shape i."""
    local_origin, _unused = _to_object_space(i, origin, vec3(0.0, 0.0, 1.0))
    local_direction = vec3(0.0, 0.0, 1.0)
    if shape_kinds[i] == SHAPE_SPHERE:
        local_direction = sphere_sample(_make_sphere(i), local_origin)
    elif shape_kinds[i] == SHAPE_QUAD:
        local_direction = quad_sample(_make_quad(i), local_origin)
    return _direction_to_world(i, local_direction)


# =============================================================================
# Group queries
# =============================================================================


@ti.func
def intersect_group(group: ti.i32, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Closest hit among the shapes of one group (linear scan).

    Args:
        group: Group id.
        ray: The ray to test.
        t_min: Exclusive lower bound of a valid hit.
        t_max: Exclusive upper bound of a valid hit.

    Returns:
        The closest HitRecord, or a miss record.
    """
    closest_t = t_max
    result = make_miss_record()

    start = group_start[group]
    for j in range(group_count[group]):
        rec = hit_shape(group_members[start + j], ray, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


@ti.func
def hit_medium_by_index(m: ti.i32, ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Sample a scattering event inside medium m."""
    boundary = medium_boundary_groups[m]
    entry_rec = intersect_group(boundary, ray, -INF, INF)
    exit_rec = make_miss_record()
    if entry_rec.hit == 1:
        exit_rec = intersect_group(boundary, ray, entry_rec.t + EXIT_EPSILON, INF)

    rec = hit_medium(ray, entry_rec, exit_rec, medium_neg_inv_densities[m], t_min, t_max)
    if rec.hit == 1:
        rec.material_id = medium_material_ids[m]
    return rec


@ti.func
def intersect_world(ray: Ray, t_min: ti.f32, t_max: ti.f32) -> HitRecord:
    """Test ray against everything in the world.

    Scans the world's shapes, then its media, shrinking the upper bound to
    the closest hit found so far.

    Args:
        ray: The ray to test.
        t_min: Exclusive lower bound of a valid hit.
        t_max: Exclusive upper bound of a valid hit.

    Returns:
        A HitRecord containing the closest intersection, or a miss record.
    """
    result = intersect_group(WORLD_GROUP, ray, t_min, t_max)
    closest_t = t_max
    if result.hit == 1:
        closest_t = result.t

    for m in range(num_media[None]):
        rec = hit_medium_by_index(m, ray, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


@ti.func
def group_density(group: ti.i32, origin: vec3, direction: vec3) -> ti.f32:
    """Mean density of the group's members for a direction.

    Returns 0 for an empty group.
    """
    total = 0.0
    count = group_count[group]
    start = group_start[group]
    for j in range(count):
        total += shape_density(group_members[start + j], origin, direction)
    result = 0.0
    if count > 0:
        result = total / count
    return result


@ti.func
def group_sample(group: ti.i32, origin: vec3) -> vec3:
    """Sample a direction toward a uniformly chosen member of the group.

    The group must not be empty.
    """
    count = group_count[group]
    pick = ti.min(ti.cast(ti.random(ti.f32) * count, ti.i32), count - 1)
    return shape_sample(group_members[group_start[group] + pick], origin)
