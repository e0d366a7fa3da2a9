"""Path tracing integrator for Monte Carlo light transport.

This module implements the radiance estimator and the rendering kernels.

The estimator for a ray with remaining depth d is:

    ray_color(ray, 0) = 0
    ray_color(ray, d) = background                              on a miss
                      = emitted                                 if absorbed
                      = emitted + attenuation * ray_color(r', d - 1)
                                                                specular
                      = emitted + attenuation * scatter_pdf(r') *
                        ray_color(r', d - 1) / p(r')            otherwise

where r' is drawn from p, the equal-weight mixture of the light set's
density and the material's own density (or the material density alone when
the scene has no lights). Taichi functions cannot recurse, so trace_path
evaluates the same sum iteratively by carrying the running product of
attenuation weights (throughput) and the accumulated emission.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric, DiffuseLight,
      Isotropic, Empty)
    - Light importance sampling via a 50/50 mixture density
    - Stratified sub-pixel sampling, defocus blur and motion blur
    - Non-finite samples are zeroed per sample and counted

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, random_seed=7)
    >>> from src.lightpath.core.integrator import render
    >>> from src.lightpath.scene.cornell_box import create_cornell_box_scene
    >>>
    >>> scene, camera = create_cornell_box_scene()
    >>> image = render(camera)  # (height, width, 3) float32, row 0 on top
"""

import logging
import time

import numpy as np
import taichi as ti
import taichi.math as tm

from src.lightpath.camera.thin_lens import Camera, get_ray, is_camera_ready, setup_camera
from src.lightpath.core.pdf import (
    PDF_NONE,
    make_hittable_pdf,
    mixture_generate,
    mixture_value,
    pdf_generate,
    pdf_value,
)
from src.lightpath.core.ray import Ray, make_ray
from src.lightpath.geometry.hittable import T_MAX, T_MIN
from src.lightpath.materials.material import emitted, scatter, scatter_pdf
from src.lightpath.scene.intersection import (
    LIGHT_GROUP,
    group_count,
    intersect_world,
    is_scene_committed,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Render Settings
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Default number of image rows rendered per kernel launch
DEFAULT_BATCH_ROWS = 32

_max_depth = ti.field(dtype=ti.i32, shape=())
_background = ti.Vector.field(3, dtype=ti.f32, shape=())

# Settings of the camera passed to the last render() call
_active_camera: Camera | None = None

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Averaged radiance per pixel, indexed [row, column] with row 0 on top
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

# Number of non-finite samples neutralised during the current render
_nonfinite_count = ti.field(dtype=ti.i32, shape=())


def configure_render(camera: Camera) -> None:
    """Upload camera and render settings.

    Args:
        camera: Validated camera configuration.

    Raises:
        ValueError: If the image is larger than MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.
    """
    width, height = camera.image_width, camera.image_height
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    setup_camera(camera)
    _max_depth[None] = camera.max_depth
    _background[None] = list(camera.background)


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def trace_path(ray: Ray, max_depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        ray: The ray to trace.
        max_depth: Number of ray/scene interactions allowed. A path that is
            still alive after max_depth interactions contributes nothing more.

    Returns:
        The estimated radiance (RGB).
    """
    current = ray
    radiance = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Active flag for path continuation (Taichi doesn't support break in ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_world(current, T_MIN, T_MAX)

            if rec.hit == 0:
                radiance += throughput * _background[None]
                active = 0
            else:
                radiance += throughput * emitted(current, rec)
                srec = scatter(current, rec)

                if srec.did_scatter == 0:
                    active = 0
                elif srec.pdf.kind == PDF_NONE:
                    # Specular: follow the material's own direction
                    throughput *= srec.attenuation
                    current = make_ray(rec.point, srec.direction, current.time)
                else:
                    direction = vec3(0.0, 0.0, 0.0)
                    density = 0.0
                    if group_count[LIGHT_GROUP] > 0:
                        light = make_hittable_pdf(rec.point, LIGHT_GROUP)
                        direction = mixture_generate(light, srec.pdf)
                        density = mixture_value(light, srec.pdf, direction)
                    else:
                        direction = pdf_generate(srec.pdf)
                        density = pdf_value(srec.pdf, direction)

                    weight = scatter_pdf(current, rec, direction) / density
                    throughput *= srec.attenuation * weight
                    current = make_ray(rec.point, direction, current.time)

    return radiance


@ti.func
def _is_finite(color: vec3) -> ti.i32:
    finite = 1
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            finite = 0
    return finite


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(row_start: ti.i32, row_end: ti.i32, width: ti.i32, sqrt_spp: ti.i32):
    """Render every pixel of rows [row_start, row_end).

    Each pixel averages one sample per stratum of its sqrt_spp x sqrt_spp
    grid. Non-finite samples count as zero.
    """
    for j, i in ti.ndrange((row_start, row_end), (0, width)):
        total = vec3(0.0, 0.0, 0.0)
        for s_j in range(sqrt_spp):
            for s_i in range(sqrt_spp):
                ray = get_ray(i, j, s_i, s_j)
                color = trace_path(ray, _max_depth[None])
                if _is_finite(color) == 1:
                    total += color
                else:
                    ti.atomic_add(_nonfinite_count[None], 1)

        _color_buffer[j, i] = total / ti.cast(sqrt_spp * sqrt_spp, ti.f32)


@ti.kernel
def _ray_color_kernel(origin: vec3, direction: vec3, ray_time: ti.f32, depth: ti.i32) -> vec3:
    return trace_path(make_ray(origin, direction, ray_time), depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def ray_color(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    ray_time: float = 0.0,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray (one sample).

    Uses the committed scene and the background of the last configured
    camera.

    Args:
        origin: Ray origin.
        direction: Ray direction.
        depth: Remaining bounce budget. 0 returns black.
        ray_time: Time at which the ray samples moving geometry.

    Returns:
        Tuple of (R, G, B) radiance values.

    Raises:
        RuntimeError: If the scene has not been committed.
    """
    if not is_scene_committed():
        raise RuntimeError("Scene not committed. Call SceneManager.commit() first.")

    color = _ray_color_kernel(vec3(*origin), vec3(*direction), ray_time, depth)
    return (float(color[0]), float(color[1]), float(color[2]))


def render(camera: Camera | None = None, batch_rows: int = DEFAULT_BATCH_ROWS) -> np.ndarray:
    """Render the committed scene.

    Rows are rendered in sequential batches so progress can be reported;
    pixels inside a batch run in parallel.

    Args:
        camera: Camera to render with. If None, the last configured camera
            is reused.
        batch_rows: Number of rows per kernel launch.

    Returns:
        Linear RGB image as a float32 array of shape (height, width, 3),
        row 0 at the top.

    Raises:
        RuntimeError: If the scene has not been committed or no camera has
            been configured.
        ValueError: If the image is too large or batch_rows < 1.
    """
    global _active_camera

    if batch_rows < 1:
        raise ValueError(f"batch_rows = {batch_rows} must be >= 1")
    if camera is not None:
        configure_render(camera)
        _active_camera = camera
    if not is_scene_committed():
        raise RuntimeError("Scene not committed. Call SceneManager.commit() first.")
    if not is_camera_ready() or _active_camera is None:
        raise RuntimeError("Camera not set up. Pass a Camera to render().")

    settings = _active_camera
    width, height = settings.image_width, settings.image_height
    logger.info(
        "Rendering %dx%d, %d spp, max depth %d",
        width,
        height,
        settings.samples_per_pixel,
        settings.max_depth,
    )

    start = time.perf_counter()
    _nonfinite_count[None] = 0
    for row_start in range(0, height, batch_rows):
        row_end = min(row_start + batch_rows, height)
        _render_rows(row_start, row_end, width, settings.sqrt_spp)
        logger.debug("Rendered rows %d-%d of %d", row_start, row_end - 1, height)
    ti.sync()

    nonfinite = int(_nonfinite_count[None])
    if nonfinite > 0:
        logger.warning("Neutralised %d non-finite samples", nonfinite)
    logger.info("Render finished in %.2fs", time.perf_counter() - start)

    image = _color_buffer.to_numpy()[:height, :width, :]
    return image.astype(np.float32)


def get_nonfinite_count() -> int:
    """Number of non-finite samples zeroed during the last render."""
    return int(_nonfinite_count[None])

