"""Cornell box scene configuration.

This module provides factory functions for the classic Cornell box scene, a
standard test scene used in computer graphics for evaluating global
illumination algorithms.

The Cornell box consists of:
- 5 walls forming an open box (left, right, back, floor, ceiling)
- Left wall: green diffuse
- Right wall: red diffuse
- Back, floor, ceiling: white diffuse
- Area light on the ceiling (emissive quad, also in the light set)
- A tall box rotated by 15 degrees and a short box rotated by -18 degrees

The box spans 0 to 555 in each dimension, with the camera positioned outside
looking in through the open front along +Z. Seen from the camera, +X points
left.

The smoke variant replaces the two boxes with constant-density media (a dark
and a light one) and uses a larger, dimmer light.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=1)
    >>> from src.lightpath.core.integrator import render
    >>> from src.lightpath.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, camera = create_cornell_box_scene()
    >>> image = render(camera)
"""

from dataclasses import dataclass

from src.lightpath.camera.thin_lens import Camera
from src.lightpath.scene.manager import SceneManager
from src.lightpath.scene.objects import QuadInfo, make_box, rotate_y, translate

# =============================================================================
# Cornell Box Parameters
# =============================================================================


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    All parameters have defaults matching the classic Cornell box
    configuration.

    Attributes:
        light_intensity: Scale applied to light_color to get the emitted
            radiance. Default is 15.0.
        light_color: RGB color of the light (each component in [0, 1]).
        left_wall_color: RGB albedo of the left wall (green).
        right_wall_color: RGB albedo of the right wall (red).
        back_wall_color: RGB albedo of the back wall, floor and ceiling.
        image_width: Output width in pixels (the image is square).
        samples_per_pixel: Samples per pixel, a perfect square.
        max_depth: Maximum number of bounces.

    Example:
        >>> custom = CornellBoxParams(
        ...     light_intensity=20.0,
        ...     light_color=(1.0, 0.9, 0.8),  # Warm light
        ...     left_wall_color=(0.2, 0.2, 0.8),  # Blue wall
        ... )
    """

    light_intensity: float = 15.0
    light_color: tuple[float, float, float] = (1.0, 1.0, 1.0)
    left_wall_color: tuple[float, float, float] = (0.12, 0.45, 0.15)
    right_wall_color: tuple[float, float, float] = (0.65, 0.05, 0.05)
    back_wall_color: tuple[float, float, float] = (0.73, 0.73, 0.73)
    image_width: int = 600
    samples_per_pixel: int = 100
    max_depth: int = 50

    def __post_init__(self) -> None:
        if not self.light_intensity >= 0.0:
            raise ValueError(f"light_intensity = {self.light_intensity} must be >= 0")


# =============================================================================
# Cornell Box Constants
# =============================================================================

BOX_SIZE = 555.0

# Ceiling light of the standard scene: corner and edges (normal points down)
LIGHT_CORNER = (343.0, 554.0, 332.0)
LIGHT_EDGE_U = (-130.0, 0.0, 0.0)
LIGHT_EDGE_V = (0.0, 0.0, -105.0)

# Ceiling light of the smoke scene
SMOKE_LIGHT_CORNER = (113.0, 554.0, 127.0)
SMOKE_LIGHT_EDGE_U = (330.0, 0.0, 0.0)
SMOKE_LIGHT_EDGE_V = (0.0, 0.0, 305.0)
SMOKE_LIGHT_INTENSITY = 7.0

# Medium settings of the smoke scene
SMOKE_DENSITY = 0.01
DARK_SMOKE_ALBEDO = (0.0, 0.0, 0.0)
LIGHT_SMOKE_ALBEDO = (1.0, 1.0, 1.0)


# =============================================================================
# Cornell Box Factory
# =============================================================================


def _light_radiance(params: CornellBoxParams, intensity: float) -> tuple[float, float, float]:
    return tuple(c * intensity for c in params.light_color)


def _add_walls(scene: SceneManager, params: CornellBoxParams) -> int:
    """Add the five walls; return the white material id."""
    green = scene.add_lambertian_material(albedo=params.left_wall_color)
    red = scene.add_lambertian_material(albedo=params.right_wall_color)
    white = scene.add_lambertian_material(albedo=params.back_wall_color)

    s = BOX_SIZE
    scene.add_quad((s, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), green)
    scene.add_quad((0.0, 0.0, 0.0), (0.0, s, 0.0), (0.0, 0.0, s), red)
    scene.add_quad((0.0, 0.0, 0.0), (s, 0.0, 0.0), (0.0, 0.0, s), white)  # floor
    scene.add_quad((s, s, s), (-s, 0.0, 0.0), (0.0, 0.0, -s), white)  # ceiling
    scene.add_quad((0.0, 0.0, s), (s, 0.0, 0.0), (0.0, s, 0.0), white)  # back
    return white


def _add_light(scene: SceneManager, corner, edge_u, edge_v, radiance) -> QuadInfo:
    lamp = scene.add_diffuse_light_material(emit=radiance)
    light = scene.add_quad(corner, edge_u, edge_v, lamp)
    scene.add_light(light)
    return light


def _make_blocks(material_id: int) -> tuple[list[QuadInfo], list[QuadInfo]]:
    """The tall and the short block, rotated and placed on the floor."""
    tall = make_box((0.0, 0.0, 0.0), (165.0, 330.0, 165.0), material_id)
    tall = translate(rotate_y(tall, 15.0), (265.0, 0.0, 295.0))

    short = make_box((0.0, 0.0, 0.0), (165.0, 165.0, 165.0), material_id)
    short = translate(rotate_y(short, -18.0), (130.0, 0.0, 65.0))
    return tall, short


def make_cornell_camera(params: CornellBoxParams) -> Camera:
    """The standard Cornell box view: from z = -800 toward the back wall."""
    return Camera(
        lookfrom=(278.0, 278.0, -800.0),
        lookat=(278.0, 278.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=40.0,
        aspect_ratio=1.0,
        aperture=0.0,
        focus_dist=10.0,
        image_width=params.image_width,
        samples_per_pixel=params.samples_per_pixel,
        max_depth=params.max_depth,
        background=(0.0, 0.0, 0.0),
    )


def create_cornell_box_scene(
    params: CornellBoxParams | None = None,
) -> tuple[SceneManager, Camera]:
    """Create and commit the standard Cornell box scene.

    Args:
        params: Optional CornellBoxParams for customizing light, wall colors
            and render settings. If None, uses default CornellBoxParams().

    Returns:
        A tuple of (SceneManager, Camera). The scene is already committed.

    Example:
        >>> scene, camera = create_cornell_box_scene()
        >>> scene.get_primitive_count()
        18
        >>> scene.get_light_count()
        1
    """
    if params is None:
        params = CornellBoxParams()

    scene = SceneManager()
    white = _add_walls(scene, params)
    _add_light(
        scene,
        LIGHT_CORNER,
        LIGHT_EDGE_U,
        LIGHT_EDGE_V,
        _light_radiance(params, params.light_intensity),
    )

    tall, short = _make_blocks(white)
    scene.add(tall)
    scene.add(short)

    scene.commit()
    return scene, make_cornell_camera(params)


def create_cornell_smoke_scene(
    params: CornellBoxParams | None = None,
) -> tuple[SceneManager, Camera]:
    """Create and commit the Cornell box with the two blocks made of smoke.

    The tall block is dark smoke and the short block light smoke, both with
    density SMOKE_DENSITY. The light is larger and dimmer than in the
    standard scene; params.light_intensity is ignored.

    Returns:
        A tuple of (SceneManager, Camera). The scene is already committed.
    """
    if params is None:
        params = CornellBoxParams()

    scene = SceneManager()
    white = _add_walls(scene, params)
    _add_light(
        scene,
        SMOKE_LIGHT_CORNER,
        SMOKE_LIGHT_EDGE_U,
        SMOKE_LIGHT_EDGE_V,
        _light_radiance(params, SMOKE_LIGHT_INTENSITY),
    )

    tall, short = _make_blocks(white)
    scene.add_constant_medium(tall, SMOKE_DENSITY, albedo=DARK_SMOKE_ALBEDO)
    scene.add_constant_medium(short, SMOKE_DENSITY, albedo=LIGHT_SMOKE_ALBEDO)

    scene.commit()
    return scene, make_cornell_camera(params)
