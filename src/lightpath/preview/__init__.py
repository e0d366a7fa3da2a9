"""Preview module for image output.

Components:
    export: Pixel encoding, PNG (Pillow) and plain-text PPM export

Example:
    >>> from src.lightpath.preview import save_image
    >>> save_image(image, "cornell.png")
"""

from src.lightpath.preview.export import (
    format_ppm,
    image_to_uint8,
    save_image,
    save_png,
    save_ppm,
)

__all__ = [
    "image_to_uint8",
    "format_ppm",
    "save_png",
    "save_ppm",
    "save_image",
]
