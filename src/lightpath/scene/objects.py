"""Host-side primitive descriptions used to assemble a scene.

Each info is an immutable description of one primitive: its geometry, its
material id and its stack of instance transforms (innermost first). The
SceneManager collects infos and uploads them to the kernel-side storage in
``src.lightpath.scene.intersection`` on commit.

Transforms are applied functionally:

    >>> box = make_box((0, 0, 0), (165, 330, 165), white)
    >>> box = rotate_y(box, 15.0)
    >>> box = translate(box, (265, 0, 295))

translate() and rotate_y() accept a single info or a list of infos (such as
the six sides returned by make_box) and return the same shape. Transforming
a constant medium transforms its boundary.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Union

from src.lightpath.core.aabb import AABB, Interval
from src.lightpath.geometry.quad import box_sides
from src.lightpath.geometry.transform import (
    MAX_TRANSFORMS,
    XFORM_ROTATE_Y,
    XFORM_TRANSLATE,
    rotate_y_params,
)

Vec3 = tuple[float, float, float]
# (kind, offset, sin_theta, cos_theta)
TransformRecord = tuple[int, Vec3, float, float]


def _as_vec3(values) -> Vec3:
    if len(values) != 3:
        raise ValueError(f"Expected 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _transform_box(box: AABB, transforms: tuple[TransformRecord, ...]) -> AABB:
    """Map an object-space box to the enclosing world-space box."""
    for kind, offset, sin_theta, cos_theta in transforms:
        if kind == XFORM_TRANSLATE:
            box = AABB(
                Interval(box.x.min + offset[0], box.x.max + offset[0]),
                Interval(box.y.min + offset[1], box.y.max + offset[1]),
                Interval(box.z.min + offset[2], box.z.max + offset[2]),
            )
        elif kind == XFORM_ROTATE_Y:
            xs, ys, zs = [], [], []
            for x, y, z in box.corners():
                xs.append(cos_theta * x + sin_theta * z)
                ys.append(y)
                zs.append(-sin_theta * x + cos_theta * z)
            box = AABB(
                Interval(min(xs), max(xs)),
                Interval(min(ys), max(ys)),
                Interval(min(zs), max(zs)),
            )
    return box


@dataclass(frozen=True)
class SphereInfo:
    """A (possibly moving) sphere.

    Attributes:
        center: Center at time 0.
        radius: Radius, must be positive.
        material_id: Unified material id.
        velocity: Displacement of the center between time 0 and time 1.
        transforms: Instance transforms, innermost first.
    """

    center: Vec3
    radius: float
    material_id: int
    velocity: Vec3 = (0.0, 0.0, 0.0)
    transforms: tuple[TransformRecord, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "center", _as_vec3(self.center))
        object.__setattr__(self, "velocity", _as_vec3(self.velocity))
        if not self.radius > 0.0:
            raise ValueError(f"Sphere radius = {self.radius} must be > 0")

    @property
    def is_moving(self) -> bool:
        return any(component != 0.0 for component in self.velocity)

    def bounding_box(self) -> AABB:
        r = self.radius
        c0 = self.center
        c1 = tuple(c + v for c, v in zip(self.center, self.velocity))
        box0 = AABB.from_points((c0[0] - r, c0[1] - r, c0[2] - r), (c0[0] + r, c0[1] + r, c0[2] + r))
        box1 = AABB.from_points((c1[0] - r, c1[1] - r, c1[2] - r), (c1[0] + r, c1[1] + r, c1[2] + r))
        return _transform_box(AABB.surrounding(box0, box1), self.transforms)


@dataclass(frozen=True)
class QuadInfo:
    """A parallelogram Q, Q+u, Q+v, Q+u+v.

    Attributes:
        corner: The corner point Q.
        edge_u: First edge vector.
        edge_v: Second edge vector.
        material_id: Unified material id.
        transforms: Instance transforms, innermost first.
    """

    corner: Vec3
    edge_u: Vec3
    edge_v: Vec3
    material_id: int
    transforms: tuple[TransformRecord, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "corner", _as_vec3(self.corner))
        object.__setattr__(self, "edge_u", _as_vec3(self.edge_u))
        object.__setattr__(self, "edge_v", _as_vec3(self.edge_v))
        if self.area() <= 0.0:
            raise ValueError(
                f"Degenerate quad: edges {self.edge_u} and {self.edge_v} are parallel or zero"
            )

    def area(self) -> float:
        u, v = self.edge_u, self.edge_v
        n = (
            u[1] * v[2] - u[2] * v[1],
            u[2] * v[0] - u[0] * v[2],
            u[0] * v[1] - u[1] * v[0],
        )
        return math.sqrt(n[0] * n[0] + n[1] * n[1] + n[2] * n[2])

    def bounding_box(self) -> AABB:
        q, u, v = self.corner, self.edge_u, self.edge_v
        quu = tuple(q[i] + u[i] for i in range(3))
        qvv = tuple(q[i] + v[i] for i in range(3))
        quv = tuple(q[i] + u[i] + v[i] for i in range(3))
        box = AABB.surrounding(AABB.from_points(q, quv), AABB.from_points(quu, qvv))
        return _transform_box(box.pad(), self.transforms)


@dataclass(frozen=True)
class ConstantMediumInfo:
    """A constant-density medium filling a closed boundary.

    Attributes:
        boundary: Spheres and quads enclosing the medium.
        density: Scattering density, must be positive.
        material_id: Phase function material (normally Isotropic).
    """

    boundary: tuple[Union[SphereInfo, QuadInfo], ...]
    density: float
    material_id: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "boundary", tuple(self.boundary))
        if not self.boundary:
            raise ValueError("A constant medium needs a non-empty boundary")
        for part in self.boundary:
            if not isinstance(part, (SphereInfo, QuadInfo)):
                raise ValueError(
                    f"Medium boundaries may only contain spheres and quads, got {type(part).__name__}"
                )
        if not self.density > 0.0:
            raise ValueError(f"Medium density = {self.density} must be > 0")

    def bounding_box(self) -> AABB:
        box = AABB()
        for part in self.boundary:
            box = AABB.surrounding(box, part.bounding_box())
        return box


Primitive = Union[SphereInfo, QuadInfo, ConstantMediumInfo]


def _with_transform(obj, record: TransformRecord):
    if isinstance(obj, (list, tuple)):
        return [_with_transform(item, record) for item in obj]
    if isinstance(obj, ConstantMediumInfo):
        return replace(obj, boundary=tuple(_with_transform(part, record) for part in obj.boundary))
    if len(obj.transforms) >= MAX_TRANSFORMS:
        raise ValueError(
            f"A primitive carries {len(obj.transforms)} transforms, "
            f"at most {MAX_TRANSFORMS} are supported"
        )
    return replace(obj, transforms=obj.transforms + (record,))


def translate(obj, offset: Vec3):
    """Return obj moved by offset.

    Args:
        obj: A primitive info or a list of them.
        offset: Translation (x, y, z).

    Raises:
        ValueError: If a primitive would exceed MAX_TRANSFORMS transforms.
    """
    return _with_transform(obj, (XFORM_TRANSLATE, _as_vec3(offset), 0.0, 1.0))


def rotate_y(obj, angle_degrees: float):
    """Return obj rotated about the Y axis by angle_degrees.

    Args:
        obj: A primitive info or a list of them.
        angle_degrees: Rotation angle in degrees.

    Raises:
        ValueError: If a primitive would exceed MAX_TRANSFORMS transforms.
    """
    sin_theta, cos_theta = rotate_y_params(angle_degrees)
    return _with_transform(obj, (XFORM_ROTATE_Y, (0.0, 0.0, 0.0), sin_theta, cos_theta))


def make_box(a: Vec3, b: Vec3, material_id: int) -> list[QuadInfo]:
    """Return the six quads of the axis-aligned box spanned by corners a and b."""
    return [QuadInfo(q, u, v, material_id) for q, u, v in box_sides(a, b)]


def bounding_box(objects) -> AABB:
    """Union of the bounding boxes of a list of primitive infos."""
    box = AABB()
    for obj in objects:
        box = AABB.surrounding(box, obj.bounding_box())
    return box
