"""Thin-lens camera model for primary ray generation.

This module implements a thin-lens perspective camera that generates primary
rays for rendering. The camera supports:
- Look-at positioning (lookfrom, lookat, vup)
- Vertical field of view in degrees
- Arbitrary aspect ratios
- Defocus blur (aperture and focus distance)
- Motion blur (every ray carries a random time in [0, 1))
- Stratified sub-pixel sampling on a sqrt(spp) x sqrt(spp) grid

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport lies at focus_dist in front of the camera, so points at that
distance are in perfect focus. With aperture 0 the camera is a pinhole.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.lightpath.camera.thin_lens import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     lookfrom=(0.0, 0.0, 3.0),
    ...     lookat=(0.0, 0.0, 0.0),
    ...     vfov=60.0,
    ...     aspect_ratio=16.0 / 9.0,
    ...     image_width=400,
    ...     samples_per_pixel=16,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0, 0, 0, 0)  # Top-left pixel, first stratum
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from src.lightpath.core.ray import Ray, make_ray, random_in_unit_disk, vec3

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for a thin-lens camera and its render settings.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter. 0 gives a pinhole camera.
        focus_dist: Distance from the camera to the plane in perfect focus.
        image_width: Output width in pixels. The height is derived from the
            aspect ratio and is at least 1.
        samples_per_pixel: Samples per pixel. Must be a perfect square so the
            pixel can be split into a sqrt(spp) x sqrt(spp) stratum grid.
        max_depth: Maximum number of ray bounces. 0 renders black.
        background: Radiance of rays that escape the scene.

    Raises:
        ValueError: If any setting is out of range.
    """

    lookfrom: tuple[float, float, float] = (278.0, 278.0, -800.0)
    lookat: tuple[float, float, float] = (278.0, 278.0, 0.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 40.0
    aspect_ratio: float = 1.0
    aperture: float = 0.0
    focus_dist: float = 10.0
    image_width: int = 600
    samples_per_pixel: int = 100
    max_depth: int = 50
    background: tuple[float, float, float] = (0.0, 0.0, 0.0)

    def __post_init__(self) -> None:
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov = {self.vfov} must be in (0, 180) degrees")
        if not self.aspect_ratio > 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be > 0")
        if not self.aperture >= 0.0:
            raise ValueError(f"aperture = {self.aperture} must be >= 0")
        if not self.focus_dist > 0.0:
            raise ValueError(f"focus_dist = {self.focus_dist} must be > 0")
        if self.image_width < 1:
            raise ValueError(f"image_width = {self.image_width} must be >= 1")
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be >= 1")
        if math.isqrt(self.samples_per_pixel) ** 2 != self.samples_per_pixel:
            raise ValueError(
                f"samples_per_pixel = {self.samples_per_pixel} must be a perfect square"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth = {self.max_depth} must be >= 0")
        for i, component in enumerate(self.background):
            if not component >= 0.0:
                raise ValueError(f"Background component {i} = {component} must be >= 0")

        view = np.subtract(self.lookfrom, self.lookat)
        if np.linalg.norm(view) == 0.0:
            raise ValueError("lookfrom and lookat must be different points")
        if np.linalg.norm(np.cross(self.vup, view)) == 0.0:
            raise ValueError(f"vup = {self.vup} must not be parallel to the view direction")

    @property
    def image_height(self) -> int:
        """Output height in pixels, derived from width and aspect ratio."""
        return max(1, int(self.image_width / self.aspect_ratio))

    @property
    def sqrt_spp(self) -> int:
        """Side length of the per-pixel stratum grid."""
        return math.isqrt(self.samples_per_pixel)


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

# Camera origin (position)
_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Viewport vectors for ray computation (viewport at focus_dist)
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full width
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())  # Full height
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())  # Lower-left of viewport

# Lens and sampling state
_lens_radius = ti.field(dtype=ti.f32, shape=())
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())
_sqrt_spp = ti.field(dtype=ti.i32, shape=())
_camera_ready = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: Camera) -> None:
    """Initialize camera state from configuration.

    Computes the camera's orthonormal basis (u, v, w) and viewport geometry
    from the provided camera parameters. This must be called before rendering.

    Args:
        camera: Camera configuration with position, orientation, lens and
            sampling settings.
    """
    theta = math.radians(camera.vfov)
    h = math.tan(theta / 2.0)

    # Viewport dimensions at unit distance
    viewport_height = 2.0 * h
    viewport_width = camera.aspect_ratio * viewport_height

    lookfrom = np.array(camera.lookfrom, dtype=np.float64)
    lookat = np.array(camera.lookat, dtype=np.float64)
    vup = np.array(camera.vup, dtype=np.float64)

    # w points from lookat toward lookfrom (backward)
    w = lookfrom - lookat
    w = w / np.linalg.norm(w)

    # u points right (perpendicular to w and vup)
    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    # v points up in the camera's frame
    v = np.cross(w, u)

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()

    horizontal = camera.focus_dist * viewport_width * u
    vertical = camera.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - camera.focus_dist * w

    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()

    _lens_radius[None] = camera.aperture / 2.0
    _image_width[None] = camera.image_width
    _image_height[None] = camera.image_height
    _sqrt_spp[None] = camera.sqrt_spp
    _camera_ready[None] = 1


def reset_camera() -> None:
    """Mark the camera as not configured."""
    _camera_ready[None] = 0


def is_camera_ready() -> bool:
    """Return True once setup_camera() has been called."""
    return bool(_camera_ready[None])


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray_st(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized viewport coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The origin is jittered over the lens disk and the time is uniform in
    [0, 1).
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    return make_ray(origin, target - origin, ti.random(ti.f32))


@ti.func
def get_ray(pixel_i: ti.i32, pixel_j: ti.i32, s_i: ti.i32, s_j: ti.i32) -> Ray:
    """Generate a stratified ray for one sub-pixel stratum.

    The pixel is split into a sqrt(spp) x sqrt(spp) grid; the sample is
    jittered uniformly inside stratum (s_i, s_j).

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = top).
        s_i: Stratum column in [0, sqrt(spp)).
        s_j: Stratum row in [0, sqrt(spp)).

    Returns:
        A primary Ray.
    """
    inv_sqrt_spp = 1.0 / ti.cast(_sqrt_spp[None], ti.f32)
    width = ti.cast(_image_width[None], ti.f32)
    height = ti.cast(_image_height[None], ti.f32)

    s = (ti.cast(pixel_i, ti.f32) + (ti.cast(s_i, ti.f32) + ti.random(ti.f32)) * inv_sqrt_spp) / width
    t = 1.0 - (
        (ti.cast(pixel_j, ti.f32) + (ti.cast(s_j, ti.f32) + ti.random(ti.f32)) * inv_sqrt_spp)
        / height
    )
    return get_ray_st(s, t)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns a dictionary with camera vectors that can be inspected
    from Python. Useful for verifying camera setup.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left.
    """
    fields = {
        "origin": _camera_origin,
        "u": _camera_u,
        "v": _camera_v,
        "w": _camera_w,
        "horizontal": _viewport_horizontal,
        "vertical": _viewport_vertical,
        "lower_left": _lower_left_corner,
    }
    info = {}
    for name, field in fields.items():
        vec = field[None]
        info[name] = (float(vec[0]), float(vec[1]), float(vec[2]))
    return info
