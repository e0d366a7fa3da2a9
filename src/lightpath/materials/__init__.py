"""Materials module: textures and material models.

Components:
    textures: Solid and checker textures
    lambertian: Ideal diffuse reflection
    metal: Specular reflection with optional fuzz
    dielectric: Glass-like refraction with Schlick reflectance
    diffuse_light: Emissive surfaces
    isotropic: Uniform phase function for media
    material: Unified material ids and dispatch

Each material kind keeps its own registry of Taichi fields. The dispatch
module (material) depends on core.pdf and is NOT imported here to avoid
circular imports; import it from src.lightpath.materials.material.
"""

from .dielectric import add_dielectric_material, clear_dielectric_materials, get_dielectric_ior
from .diffuse_light import add_diffuse_light_material, clear_diffuse_light_materials
from .isotropic import add_isotropic_material, clear_isotropic_materials
from .lambertian import add_lambertian_material, clear_lambertian_materials
from .metal import add_metal_material, clear_metal_materials
from .textures import add_checker_texture, add_solid_texture, clear_textures, get_color

__all__ = [
    "add_solid_texture",
    "add_checker_texture",
    "clear_textures",
    "get_color",
    "add_lambertian_material",
    "clear_lambertian_materials",
    "add_metal_material",
    "clear_metal_materials",
    "add_dielectric_material",
    "clear_dielectric_materials",
    "get_dielectric_ior",
    "add_diffuse_light_material",
    "clear_diffuse_light_materials",
    "add_isotropic_material",
    "clear_isotropic_materials",
]
