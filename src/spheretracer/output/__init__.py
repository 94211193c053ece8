"""Output module for writing rendered images.

Components:
    export: Gamma correction, 8-bit quantization, PPM and PNG writers
"""

from .export import (
    DEFAULT_GAMMA,
    SUPPORTED_SUFFIXES,
    compute_rmse,
    format_ppm,
    save_image,
    save_png,
    save_ppm,
    to_display_uint8,
)

__all__ = [
    "DEFAULT_GAMMA",
    "SUPPORTED_SUFFIXES",
    "to_display_uint8",
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_image",
    "compute_rmse",
]
