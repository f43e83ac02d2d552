"""Image export utilities for rendered images.

This module turns the linear colors of a RenderResult into an 8-bit image
file. Colors are gamma corrected with a square root (gamma 2), clamped to
[0, 0.999] and scaled by 256, so each channel lands in 0..255.

Supported formats:
    - Anything Pillow can write, chosen from the file extension
    - Unknown extensions fall back to PNG next to the requested path

Example:
    >>> from pathtracer.output.export import save_image
    >>> result = render(config)
    >>> save_image(result, "spheres.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

if TYPE_CHECKING:
    from pathtracer.core.integrator import RenderResult

logger = logging.getLogger(__name__)


def gamma_correct(image: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Apply gamma-2 correction (square root) to linear colors.

    Negative and NaN values map to 0.
    """
    linear = np.nan_to_num(np.asarray(image, dtype=np.float64), nan=0.0)
    return np.sqrt(np.maximum(linear, 0.0))


def to_uint8(image: npt.NDArray[np.float64]) -> npt.NDArray[np.uint8]:
    """Convert linear colors to gamma-corrected 8-bit values.

    Each channel becomes ``int(256 * clamp(sqrt(c), 0, 0.999))``.

    Args:
        image: Array of linear colors, any shape ending in 3.

    Returns:
        Array of the same shape with dtype uint8.
    """
    corrected = np.clip(gamma_correct(image), 0.0, 0.999)
    return (256.0 * corrected).astype(np.uint8)


def _is_writable_extension(path: Path) -> bool:
    extensions = PILImage.registered_extensions()
    return extensions.get(path.suffix.lower()) in PILImage.SAVE


def save_image(result: RenderResult, filepath: str | Path) -> Path:
    """Save a render result as an 8-bit image file.

    The format follows the file extension. If Pillow cannot write that
    extension, the image is saved with a ``.png`` extension instead and a
    warning is logged.

    Args:
        result: The rendered image.
        filepath: Output file path.

    Returns:
        The path actually written.
    """
    path = Path(filepath)
    if not _is_writable_extension(path):
        fallback = path.with_suffix(".png")
        logger.warning("Cannot write %r images; saving to %s instead", path.suffix, fallback)
        path = fallback

    path.parent.mkdir(parents=True, exist_ok=True)
    image_uint8 = to_uint8(result.as_image())

    # Save using Pillow
    pil_image = PILImage.fromarray(image_uint8)
    pil_image.save(path)

    logger.info("Saved %dx%d image to %s", result.width, result.height, path)
    return path
