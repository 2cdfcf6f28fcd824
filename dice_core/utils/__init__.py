"""Utility functions for dice_core."""

from .image_io import load_images, read_image, validate_image_format, write_image
from .colormaps import apply_colormap, get_colormap

__all__ = [
    "load_images",
    "read_image",
    "validate_image_format",
    "write_image",
    "apply_colormap",
    "get_colormap",
]
