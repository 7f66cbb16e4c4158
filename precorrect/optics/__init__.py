"""Optical stage: prescription, PSF and deconvolution filter."""

from precorrect.optics.deconvolution import DEFAULT_EPSILON, build_deconvolution_filter
from precorrect.optics.prescription import (
    WavefrontCoefficients,
    adjusted_sphere,
    compute_wavefront_coefficients,
    wavefront,
)
from precorrect.optics.psf import (
    build_psf,
    build_pupil_function,
    generate_psf,
    psf_to_image,
)

__all__ = [
    "DEFAULT_EPSILON",
    "WavefrontCoefficients",
    "adjusted_sphere",
    "build_deconvolution_filter",
    "build_psf",
    "build_pupil_function",
    "compute_wavefront_coefficients",
    "generate_psf",
    "psf_to_image",
    "wavefront",
]
