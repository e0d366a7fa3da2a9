"""Image export utilities for rendered images.

This module converts the linear radiance arrays returned by render() into
8-bit pixels and saves them to files.

Pixel encoding, per channel:
    1. NaN is replaced by 0
    2. gamma 2 (square root)
    3. clamp to [0, 0.999]
    4. quantise with int(256 * c)

Supported formats:
    - PNG (8-bit RGB via Pillow)
    - PPM (plain-text P3)

Both formats write row 0 (the top of the image) first.

Example:
    >>> from src.lightpath.core.integrator import render
    >>> from src.lightpath.preview.export import save_image
    >>>
    >>> image = render(camera)
    >>> save_image(image, "output.png")
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

# Upper clamp before quantisation, so int(256 * c) stays below 256
MAX_INTENSITY = 0.999


def _check_shape(image: np.ndarray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def image_to_uint8(image: npt.NDArray[np.float32]) -> npt.NDArray[np.uint8]:
    """Convert a linear float image to 8-bit pixels.

    Args:
        image: Linear RGB image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.

    Raises:
        ValueError: If the array does not have shape (H, W, 3).
    """
    image = np.asarray(image, dtype=np.float64)
    _check_shape(image)

    linear = np.nan_to_num(image, nan=0.0, posinf=MAX_INTENSITY, neginf=0.0)
    encoded = np.sqrt(np.maximum(linear, 0.0))
    encoded = np.clip(encoded, 0.0, MAX_INTENSITY)
    return (256.0 * encoded).astype(np.uint8)


def save_png(image: npt.NDArray[np.float32], filepath: str | Path) -> None:
    """Save a linear image as an 8-bit PNG file.

    Args:
        image: Linear RGB image array of shape (H, W, 3).
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath, format="PNG")
    logger.info("Saved PNG to %s", filepath)


def format_ppm(image: npt.NDArray[np.float32]) -> str:
    """Encode a linear image as plain-text PPM (P3).

    Returns:
        The PPM text: header, then one "r g b" line per pixel, rows top to
        bottom.
    """
    pixels = image_to_uint8(image)
    height, width, _ = pixels.shape
    lines = ["P3", f"{width} {height}", "255"]
    for row in pixels:
        for r, g, b in row:
            lines.append(f"{r} {g} {b}")
    return "\n".join(lines) + "\n"


def save_ppm(image: npt.NDArray[np.float32], filepath: str | Path) -> None:
    """Save a linear image as a plain-text PPM (P3) file."""
    Path(filepath).write_text(format_ppm(image), encoding="ascii")
    logger.info("Saved PPM to %s", filepath)


def save_image(image: npt.NDArray[np.float32], filepath: str | Path) -> None:
    """Save a linear image, choosing the format from the file extension.

    Args:
        image: Linear RGB image array of shape (H, W, 3).
        filepath: Output path ending in .png or .ppm.

    Raises:
        ValueError: If the extension is not supported.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".png":
        save_png(image, filepath)
    elif suffix == ".ppm":
        save_ppm(image, filepath)
    else:
        raise ValueError(f"Unsupported image format '{suffix}', use .png or .ppm")
