"""Image stage: luminance-domain blur and pre-correction."""

from precorrect.processing.image import (
    apply_convolution_kernel,
    as_image,
    blur,
    pre_correct,
    simulate_retina,
)

__all__ = [
    "apply_convolution_kernel",
    "as_image",
    "blur",
    "pre_correct",
    "simulate_retina",
]
