"""Camera module for view description and ray generation.

Components:
    pinhole: Look-at pinhole camera with vertical field of view

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across the image
    t in [0, 1]: bottom to top across the image
"""

from .pinhole import Camera

__all__ = ["Camera"]
