"""Camera module for view and ray generation.

Components:
    thin_lens: Thin-lens camera with depth of field and shutter time

Camera responsibilities:
    - Transform (s, t) image coordinates to world-space rays
    - Jitter ray origins over the lens aperture
    - Sample the instant each ray sees within the exposure window
    - Support look-at positioning with up vector

Ray generation uses normalized device coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image

Importing this package declares Taichi fields; call
``pathtracer.core.config.init_taichi`` first.
"""

from .thin_lens import (
    CameraParams,
    get_camera_info,
    get_camera_origin,
    get_ray,
    get_time,
    is_camera_initialized,
    reset_camera,
    setup_camera,
)

__all__ = [
    "CameraParams",
    "setup_camera",
    "get_ray",
    "get_time",
    "get_camera_origin",
    "get_camera_info",
    "is_camera_initialized",
    "reset_camera",
]
