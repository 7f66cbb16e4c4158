"""Spectral transform, color and metric helpers."""

from precorrect.utils.color import BT709_WEIGHTS, ColorTransform
from precorrect.utils.metrics import compute_luminance_mse
from precorrect.utils.spectral import forward_2d, inverse_2d

__all__ = [
    "BT709_WEIGHTS",
    "ColorTransform",
    "compute_luminance_mse",
    "forward_2d",
    "inverse_2d",
]
