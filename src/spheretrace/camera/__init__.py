"""Camera module for view and ray generation.

This module provides the camera model that generates primary rays:

Components:
    pinhole: Simple pinhole (perspective) camera model

Ray generation uses normalized device coordinates:
    u in [0, 1]: left to right across image
    v in [0, 1]: bottom to top across image

Primary rays are generated inside the render kernel, one per pixel,
through the pixel center.
"""

from .pinhole import (
    PinholeCamera,
    get_camera_info,
    get_camera_origin,
    get_pixel_ray,
    get_ray,
    setup_camera,
)

__all__ = [
    "PinholeCamera",
    "setup_camera",
    "get_ray",
    "get_pixel_ray",
    "get_camera_origin",
    "get_camera_info",
]
