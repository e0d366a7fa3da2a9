"""Camera module for view and ray generation.

Components:
    thin_lens: Thin-lens camera with defocus blur, motion blur and
        stratified sub-pixel sampling

Ray generation uses normalized viewport coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    Camera,
    get_camera_info,
    get_ray,
    get_ray_st,
    is_camera_ready,
    reset_camera,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "reset_camera",
    "is_camera_ready",
    "get_ray",
    "get_ray_st",
    "get_camera_info",
]
