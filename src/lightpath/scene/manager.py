"""Unified scene manager for coordinating primitives, materials and lights.

This module provides a high-level scene management API that coordinates
texture and material registries with primitive storage. It keeps:

- A unified material_id space across all material types
- The world: every primitive a ray can hit
- The light set: primitives importance sampled as lights
- Constant-density media, whose boundaries get their own groups

Primitives are collected on the host as immutable infos (see
``src.lightpath.scene.objects``) and uploaded to the kernel-side storage by
commit(). commit() must run before rendering; adding objects afterwards
requires another commit().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> lamp = scene.add_diffuse_light_material(emit=(4.0, 4.0, 4.0))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=red)
    >>> light = scene.add_quad((-1, 2, -2), (2, 0, 0), (0, 0, 2), lamp)
    >>> scene.add_light(light)
    >>> scene.commit()
"""

import logging
from dataclasses import dataclass
from typing import Any

from src.lightpath.core.aabb import AABB
from src.lightpath.geometry.hittable import SHAPE_QUAD, SHAPE_SPHERE
from src.lightpath.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from src.lightpath.materials.diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
)
from src.lightpath.materials.isotropic import (
    add_isotropic_material,
    clear_isotropic_materials,
)
from src.lightpath.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from src.lightpath.materials.material import (
    MaterialType,
    clear_material_tracking,
    get_material_count,
    is_valid_material,
    register_material,
)
from src.lightpath.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from src.lightpath.materials.textures import (
    add_checker_texture,
    add_solid_texture,
    clear_textures,
    is_valid_texture,
)
from src.lightpath.scene.intersection import (
    FIRST_BOUNDARY_GROUP,
    LIGHT_GROUP,
    MAX_MEDIA,
    WORLD_GROUP,
    clear_scene,
    invalidate_scene,
    set_counts,
    stage_groups,
    stage_medium,
    stage_shape,
)
from src.lightpath.scene.objects import (
    ConstantMediumInfo,
    QuadInfo,
    SphereInfo,
    bounding_box,
    make_box,
)

logger = logging.getLogger(__name__)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


def _validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Raise ValueError unless every albedo component is in [0, 1]."""
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if not 0.0 <= component <= 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


class SceneManager:
    """Unified scene manager coordinating primitives, materials and lights.

    Only one scene exists at a time: creating a SceneManager or calling
    clear() resets every registry.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        world: Primitive infos a ray can hit.
        lights: Primitive infos sampled as lights.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_sphere((-1, 0, -1), 0.5, glass)
        >>> scene.commit()
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.world: list[SphereInfo | QuadInfo | ConstantMediumInfo] = []
        self.lights: list[SphereInfo | QuadInfo] = []
        self._committed = False
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_textures()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        clear_diffuse_light_materials()
        clear_isotropic_materials()
        clear_material_tracking()
        self.materials.clear()
        self.world.clear()
        self.lights.clear()
        self._committed = False

    def clear(self) -> None:
        """Clear the entire scene (primitives, materials and textures)."""
        self._clear_all()

    def _invalidate(self) -> None:
        self._committed = False
        invalidate_scene()

    @property
    def committed(self) -> bool:
        """True if the current contents have been uploaded by commit()."""
        return self._committed

    # =========================================================================
    # Texture Management
    # =========================================================================

    def add_solid_texture(self, color: tuple[float, float, float]) -> int:
        """Add a constant-colour texture and return its id."""
        return add_solid_texture(color)

    def add_checker_texture(
        self,
        scale: float,
        even: tuple[float, float, float],
        odd: tuple[float, float, float],
    ) -> int:
        """Add a 3D checker texture and return its id."""
        return add_checker_texture(scale, even, odd)

    def _resolve_texture(
        self,
        color: tuple[float, float, float] | None,
        texture_id: int | None,
        name: str,
    ) -> int:
        if (color is None) == (texture_id is None):
            raise ValueError(f"Pass exactly one of {name} or texture_id")
        if texture_id is not None:
            if not is_valid_texture(texture_id):
                raise ValueError(f"Invalid texture_id: {texture_id}")
            return texture_id
        return add_solid_texture(color)

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register(self, material_type: MaterialType, type_index: int, params: dict[str, Any]) -> int:
        material_id = register_material(material_type, type_index)
        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float] | None = None,
        texture_id: int | None = None,
    ) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.
                Each component must be in [0, 1] for energy conservation.
            texture_id: Existing texture to use instead of a solid albedo.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1], or the
                texture id is unknown.
        """
        if albedo is not None:
            _validate_albedo(albedo)
        texture = self._resolve_texture(albedo, texture_id, "albedo")
        type_index = add_lambertian_material(texture)
        return self._register(
            MaterialType.LAMBERTIAN, type_index, {"albedo": albedo, "texture_id": texture}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float] | None = None,
        fuzz: float = 0.0,
        texture_id: int | None = None,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple, each in [0, 1].
            fuzz: Reflection fuzziness. Must be >= 0; values above 1 are
                clamped to 1.
            texture_id: Existing texture to use instead of a solid albedo.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1] or fuzz is
                negative.
        """
        if albedo is not None:
            _validate_albedo(albedo)
        if not fuzz >= 0.0:
            raise ValueError(f"Fuzz = {fuzz} must be >= 0")
        texture = self._resolve_texture(albedo, texture_id, "albedo")
        type_index = add_metal_material(texture, fuzz)
        return self._register(
            MaterialType.METAL,
            type_index,
            {"albedo": albedo, "fuzz": min(fuzz, 1.0), "texture_id": texture},
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).
                Common values: Air=1.0, Water=1.33, Glass=1.5, Diamond=2.4

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        type_index = add_dielectric_material(ior)
        return self._register(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def add_diffuse_light_material(
        self,
        emit: tuple[float, float, float] | None = None,
        texture_id: int | None = None,
    ) -> int:
        """Add an emissive material to the scene.

        Args:
            emit: Emitted radiance as (R, G, B). Components may exceed 1.
            texture_id: Existing texture to use instead of a solid colour.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If a component is negative or the texture id is
                unknown.
        """
        texture = self._resolve_texture(emit, texture_id, "emit")
        type_index = add_diffuse_light_material(texture)
        return self._register(
            MaterialType.DIFFUSE_LIGHT, type_index, {"emit": emit, "texture_id": texture}
        )

    def add_isotropic_material(
        self,
        albedo: tuple[float, float, float] | None = None,
        texture_id: int | None = None,
    ) -> int:
        """Add an isotropic phase-function material (for media).

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        if albedo is not None:
            _validate_albedo(albedo)
        texture = self._resolve_texture(albedo, texture_id, "albedo")
        type_index = add_isotropic_material(texture)
        return self._register(
            MaterialType.ISOTROPIC, type_index, {"albedo": albedo, "texture_id": texture}
        )

    def add_empty_material(self) -> int:
        """Add a material that neither scatters nor emits."""
        return self._register(MaterialType.EMPTY, 0, {})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return get_material_count()

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.
        """
        info = self.get_material_info(material_id)
        return info.material_type if info is not None else None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def _check_material(self, obj) -> None:
        if isinstance(obj, ConstantMediumInfo):
            for part in obj.boundary:
                self._check_material(part)
        if not is_valid_material(obj.material_id):
            raise ValueError(f"Invalid material_id: {obj.material_id}")

    def add(self, obj):
        """Add a primitive info (or a list of them) to the world.

        Args:
            obj: SphereInfo, QuadInfo, ConstantMediumInfo or a list of them.

        Returns:
            obj, unchanged.

        Raises:
            ValueError: If a material id is invalid.
        """
        items = obj if isinstance(obj, (list, tuple)) else [obj]
        for item in items:
            self._check_material(item)
        self.world.extend(items)
        self._invalidate()
        return obj

    def add_light(self, obj):
        """Add a primitive info (or a list of them) to the light set.

        Lights are sampled directly by the integrator. A light is normally
        also added to the world so that rays can hit it.

        Returns:
            obj, unchanged.

        Raises:
            ValueError: If obj contains a medium or an invalid material id.
        """
        items = obj if isinstance(obj, (list, tuple)) else [obj]
        for item in items:
            if isinstance(item, ConstantMediumInfo):
                raise ValueError("Constant media cannot be used as lights")
            self._check_material(item)
        self.lights.extend(items)
        self._invalidate()
        return obj

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
        velocity: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> SphereInfo:
        """Add a sphere to the world.

        Args:
            center: The center point of the sphere at time 0 as (x, y, z).
            radius: The radius of the sphere (must be positive).
            material_id: The unified material ID to assign to the sphere.
            velocity: Center displacement between time 0 and time 1, for
                motion blur.

        Returns:
            The added SphereInfo.

        Raises:
            ValueError: If radius or material_id is invalid.
        """
        return self.add(SphereInfo(center, radius, material_id, velocity=velocity))

    def add_quad(
        self,
        corner: tuple[float, float, float],
        edge_u: tuple[float, float, float],
        edge_v: tuple[float, float, float],
        material_id: int,
    ) -> QuadInfo:
        """Add a quad (parallelogram) to the world.

        The quad represents a parallelogram with vertices at:
        corner, corner+edge_u, corner+edge_v, corner+edge_u+edge_v

        Returns:
            The added QuadInfo.

        Raises:
            ValueError: If the quad is degenerate or material_id is invalid.
        """
        return self.add(QuadInfo(corner, edge_u, edge_v, material_id))

    def add_box(
        self,
        a: tuple[float, float, float],
        b: tuple[float, float, float],
        material_id: int,
    ) -> list[QuadInfo]:
        """Add the six sides of an axis-aligned box to the world."""
        return self.add(make_box(a, b, material_id))

    def add_constant_medium(
        self,
        boundary,
        density: float,
        albedo: tuple[float, float, float] | None = None,
        texture_id: int | None = None,
    ) -> ConstantMediumInfo:
        """Add a constant-density medium with an isotropic phase function.

        Args:
            boundary: Sphere/quad infos (or one info) enclosing the medium.
                They are not added to the world themselves.
            density: Scattering density (must be positive).
            albedo: Medium colour as (R, G, B) in [0, 1].
            texture_id: Existing texture to use instead of a solid albedo.

        Returns:
            The added ConstantMediumInfo.

        Raises:
            ValueError: If density or the boundary is invalid.
        """
        parts = boundary if isinstance(boundary, (list, tuple)) else [boundary]
        medium_material = self.add_isotropic_material(albedo=albedo, texture_id=texture_id)
        return self.add(ConstantMediumInfo(tuple(parts), density, medium_material))

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self) -> None:
        """Upload the world, the light set and medium boundaries.

        This is the barrier between scene assembly and rendering: every
        field the kernels read is written here.

        Raises:
            RuntimeError: If a storage capacity is exceeded.
        """
        members: dict[int, list[int]] = {}
        shape_count = 0
        medium_count = 0

        def stage(info, group: int) -> None:
            nonlocal shape_count
            if isinstance(info, SphereInfo):
                stage_shape(
                    shape_count,
                    SHAPE_SPHERE,
                    group,
                    info.center,
                    info.velocity,
                    (0.0, 0.0, 0.0),
                    info.radius,
                    info.material_id,
                    list(info.transforms),
                )
            else:
                stage_shape(
                    shape_count,
                    SHAPE_QUAD,
                    group,
                    info.corner,
                    info.edge_u,
                    info.edge_v,
                    0.0,
                    info.material_id,
                    list(info.transforms),
                )
            members.setdefault(group, []).append(shape_count)
            shape_count += 1

        for obj in self.world:
            if isinstance(obj, ConstantMediumInfo):
                if medium_count >= MAX_MEDIA:
                    raise RuntimeError(f"Maximum number of media ({MAX_MEDIA}) exceeded")
                boundary_group = FIRST_BOUNDARY_GROUP + medium_count
                for part in obj.boundary:
                    stage(part, boundary_group)
                stage_medium(medium_count, boundary_group, obj.density, obj.material_id)
                medium_count += 1
            else:
                stage(obj, WORLD_GROUP)

        for obj in self.lights:
            stage(obj, LIGHT_GROUP)

        stage_groups(members)
        set_counts(shape_count, medium_count)
        self._committed = True

        logger.debug(
            "Committed scene: %d world shapes, %d lights, %d media, %d shape records",
            len(members.get(WORLD_GROUP, [])),
            len(members.get(LIGHT_GROUP, [])),
            medium_count,
            shape_count,
        )

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def bounding_box(self) -> AABB:
        """Bounding box of everything in the world."""
        return bounding_box(self.world)

    def get_primitive_count(self) -> int:
        """Get the number of primitives in the world (media count once)."""
        return len(self.world)

    def get_light_count(self) -> int:
        """Get the number of primitives in the light set."""
        return len(self.lights)
