"""Unified material ids and material dispatch.

Every material kind keeps its own registry (lambertian.py, metal.py, ...).
This module maps a unified material id onto (material type, index in that
type's registry) and dispatches the three material operations:

- scatter(ray, rec) -> ScatterRecord
- emitted(ray, rec) -> Color
- scatter_pdf(ray, rec, direction) -> float

Example:
    >>> # Inside a Taichi kernel, after intersect_world():
    >>> # srec = scatter(ray, rec)
    >>> # if srec.did_scatter == 1: ...
"""

from enum import IntEnum

import taichi as ti
import taichi.math as tm

from src.lightpath.core.pdf import Pdf, make_cosine_pdf, make_none_pdf, make_sphere_pdf
from src.lightpath.core.ray import Ray
from src.lightpath.geometry.hittable import HitRecord

from .dielectric import get_dielectric_ior, scatter_dielectric
from .diffuse_light import emitted_diffuse_light
from .isotropic import get_isotropic_albedo, isotropic_scatter_pdf, scatter_isotropic
from .lambertian import get_lambertian_albedo, lambertian_scatter_pdf, scatter_lambertian
from .metal import get_metal_albedo, get_metal_fuzz, scatter_metal

# Type alias for 3D vectors
vec3 = tm.vec3


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2
    DIFFUSE_LIGHT = 3
    ISOTROPIC = 4
    EMPTY = 5


# Maximum number of materials across all types
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def clear_material_tracking() -> None:
    """Clear the unified material id table."""
    num_materials[None] = 0


def register_material(material_type: MaterialType, type_index: int) -> int:
    """Assign the next unified material id.

    Args:
        material_type: Kind of the material.
        type_index: Index in the kind's registry (0 for EMPTY).

    Returns:
        The unified material id.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
    """
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def get_material_count() -> int:
    """Get the number of registered materials."""
    return int(num_materials[None])


def is_valid_material(material_id: int) -> bool:
    """Return True if material_id refers to a registered material."""
    return 0 <= material_id < num_materials[None]


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType enum), or -1 for
        invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.dataclass
class ScatterRecord:
    """Outcome of a material interaction.

    Attributes:
        did_scatter: 1 if the ray continues, 0 if it was absorbed.
        attenuation: Colour multiplier applied to the continuing path.
        direction: Scattered direction. Followed as is when pdf.kind is
            PDF_NONE (specular); otherwise the integrator samples its own
            direction and this is only the material's own proposal.
        pdf: Sampling distribution of the material, PDF_NONE for specular.
    """

    did_scatter: ti.i32
    attenuation: vec3
    direction: vec3
    pdf: Pdf


@ti.func
def scatter(ray: Ray, rec: HitRecord) -> ScatterRecord:
    """Scatter an incoming ray at a hit.

    Args:
        ray: Incoming ray.
        rec: Hit record with a valid material_id.

    Returns:
        A ScatterRecord; did_scatter == 0 means the path ends here.
    """
    material_type = get_material_type(rec.material_id)
    index = material_type_indices[rec.material_id]

    srec = ScatterRecord(
        did_scatter=0,
        attenuation=vec3(0.0, 0.0, 0.0),
        direction=vec3(0.0, 0.0, 0.0),
        pdf=make_none_pdf(),
    )

    if material_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(index, rec.u, rec.v, rec.point)
        direction, attenuation = scatter_lambertian(albedo, rec.normal)
        srec.did_scatter = 1
        srec.attenuation = attenuation
        srec.direction = direction
        srec.pdf = make_cosine_pdf(rec.normal)
    elif material_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(index, rec.u, rec.v, rec.point)
        direction, attenuation, did_scatter = scatter_metal(
            albedo, get_metal_fuzz(index), ray.direction, rec.normal
        )
        srec.did_scatter = did_scatter
        srec.attenuation = attenuation
        srec.direction = direction
    elif material_type == int(MaterialType.DIELECTRIC):
        direction, attenuation = scatter_dielectric(
            get_dielectric_ior(index), ray.direction, rec.normal, rec.front_face
        )
        srec.did_scatter = 1
        srec.attenuation = attenuation
        srec.direction = direction
    elif material_type == int(MaterialType.ISOTROPIC):
        albedo = get_isotropic_albedo(index, rec.u, rec.v, rec.point)
        direction, attenuation = scatter_isotropic(albedo)
        srec.did_scatter = 1
        srec.attenuation = attenuation
        srec.direction = direction
        srec.pdf = make_sphere_pdf()

    return srec


@ti.func
def emitted(ray: Ray, rec: HitRecord) -> vec3:
    """Radiance emitted at a hit; zero for everything but diffuse lights."""
    result = vec3(0.0, 0.0, 0.0)
    if get_material_type(rec.material_id) == int(MaterialType.DIFFUSE_LIGHT):
        result = emitted_diffuse_light(
            material_type_indices[rec.material_id], rec.front_face, rec.u, rec.v, rec.point
        )
    return result


@ti.func
def scatter_pdf(ray: Ray, rec: HitRecord, direction: vec3) -> ti.f32:
    """Material's scattering density for an outgoing direction."""
    material_type = get_material_type(rec.material_id)
    result = 0.0
    if material_type == int(MaterialType.LAMBERTIAN):
        result = lambertian_scatter_pdf(rec.normal, direction)
    elif material_type == int(MaterialType.ISOTROPIC):
        result = isotropic_scatter_pdf()
    return result
