"""Probability density functions over directions for importance sampling.

A Pdf is a small tag record. Its kind selects the distribution:

- PDF_NONE: no distribution (specular scattering, follow the ray as is)
- PDF_COSINE: cosine-weighted hemisphere around `axis`
- PDF_SPHERE: uniform over the unit sphere
- PDF_HITTABLE: toward the members of a scene group, seen from `origin`

pdf_value() and pdf_generate() must agree: directions drawn by
pdf_generate(p) are distributed with density pdf_value(p, d).

The integrator combines light sampling with material sampling through a
fixed 50/50 mixture (mixture_value / mixture_generate).

Example:
    >>> # Inside a Taichi kernel:
    >>> # light = make_hittable_pdf(hit_point, LIGHT_GROUP)
    >>> # surface = make_cosine_pdf(normal)
    >>> # d = mixture_generate(light, surface)
    >>> # density = mixture_value(light, surface, d)
"""

import math

import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import (
    build_onb_from_normal,
    local_to_world,
    random_cosine_direction,
    random_unit_vector,
    unit_vector,
)
from src.lightpath.scene.intersection import group_density, group_sample

vec3 = tm.vec3

# Pdf kind tags
PDF_NONE = 0
PDF_COSINE = 1
PDF_SPHERE = 2
PDF_HITTABLE = 3

UNIFORM_SPHERE_DENSITY = 1.0 / (4.0 * math.pi)


@ti.dataclass
class Pdf:
    """Tagged direction distribution.

    Attributes:
        kind: One of PDF_NONE, PDF_COSINE, PDF_SPHERE, PDF_HITTABLE.
        axis: Hemisphere axis for PDF_COSINE (need not be unit length).
        origin: Sampling origin for PDF_HITTABLE.
        group: Scene group for PDF_HITTABLE.
    """

    kind: ti.i32
    axis: vec3
    origin: vec3
    group: ti.i32


@ti.func
def make_none_pdf() -> Pdf:
    return Pdf(kind=PDF_NONE, axis=vec3(0.0, 0.0, 1.0), origin=vec3(0.0, 0.0, 0.0), group=-1)


@ti.func
def make_cosine_pdf(axis: vec3) -> Pdf:
    return Pdf(kind=PDF_COSINE, axis=axis, origin=vec3(0.0, 0.0, 0.0), group=-1)


@ti.func
def make_sphere_pdf() -> Pdf:
    return Pdf(kind=PDF_SPHERE, axis=vec3(0.0, 0.0, 1.0), origin=vec3(0.0, 0.0, 0.0), group=-1)


@ti.func
def make_hittable_pdf(origin: vec3, group: ti.i32) -> Pdf:
    return Pdf(kind=PDF_HITTABLE, axis=vec3(0.0, 0.0, 1.0), origin=origin, group=group)


@ti.func
def pdf_value(pdf: Pdf, direction: vec3) -> ti.f32:
    """Evaluate the density of a direction.

    Args:
        pdf: The distribution.
        direction: Direction to evaluate (any length).

    Returns:
        The density, 0 for PDF_NONE.
    """
    value = 0.0
    if pdf.kind == PDF_COSINE:
        w = unit_vector(pdf.axis)
        value = tm.max(0.0, tm.dot(unit_vector(direction), w) / tm.pi)
    elif pdf.kind == PDF_SPHERE:
        value = UNIFORM_SPHERE_DENSITY
    elif pdf.kind == PDF_HITTABLE:
        value = group_density(pdf.group, pdf.origin, direction)
    return value


@ti.func
def pdf_generate(pdf: Pdf) -> vec3:
    """Draw a direction from the distribution.

    Returns:
        A world-space direction. Hittable directions are not normalized.
    """
    direction = vec3(0.0, 0.0, 1.0)
    if pdf.kind == PDF_COSINE:
        tangent, bitangent, w = build_onb_from_normal(pdf.axis)
        direction = local_to_world(random_cosine_direction(), tangent, bitangent, w)
    elif pdf.kind == PDF_SPHERE:
        direction = random_unit_vector()
    elif pdf.kind == PDF_HITTABLE:
        direction = group_sample(pdf.group, pdf.origin)
    return direction


@ti.func
def mixture_value(p: Pdf, q: Pdf, direction: vec3) -> ti.f32:
    """Density of the equal-weight mixture of p and q: 0.5 p(d) + 0.5 q(d)."""
    return 0.5 * pdf_value(p, direction) + 0.5 * pdf_value(q, direction)


@ti.func
def mixture_generate(p: Pdf, q: Pdf) -> vec3:
    """Draw from p with probability 0.5, otherwise from q."""
    direction = vec3(0.0, 0.0, 0.0)
    if ti.random(ti.f32) < 0.5:
        direction = pdf_generate(p)
    else:
        direction = pdf_generate(q)
    return direction
