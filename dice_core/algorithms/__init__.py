"""Numerical kernels for dice_core."""

from .interpolation import compute_bcoef, interpolate, padded_bcoef

__all__ = [
    "compute_bcoef",
    "interpolate",
    "padded_bcoef",
]
