"""Image output for rendered results.

Components:
    export: Gamma correction, 8-bit quantization and image file writing
"""

from .export import gamma_correct, save_image, to_uint8

__all__ = [
    "gamma_correct",
    "to_uint8",
    "save_image",
]
