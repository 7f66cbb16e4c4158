"""
Diffraction point spread function of an aberrated eye.

The pupil is modelled as a pure-phase circular aperture inscribed in the
grid. Its forward transform gives the coherent response whose squared
magnitude, normalized to unit energy, is the PSF. The PSF keeps the
transform layout (origin at index [0, 0]) so it convolves without shifting
the image; use :func:`psf_to_image` for a centered view.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from precorrect.core.config import Prescription
from precorrect.core.errors import InvalidInputError
from precorrect.optics.prescription import (
    WavefrontCoefficients,
    compute_wavefront_coefficients,
    wavefront,
)
from precorrect.utils.spectral import forward_2d

logger = logging.getLogger(__name__)

# Nanometers to millimeters, the unit of the wavefront.
NM_TO_MM = 1e-6


def build_pupil_function(
    coeffs: WavefrontCoefficients,
    size: int,
    wavelength_nm: float,
    strength: float = 1.0,
) -> np.ndarray:
    """
    Generalized pupil function P(x, y) exp(-i 2π W(x, y) / λ).

    Parameters
    ----------
    coeffs : WavefrontCoefficients
        Zernike coefficients of the eye.
    size : int
        Grid side length.
    wavelength_nm : float
        Wavelength in nanometers (e.g. 550 for green).
    strength : float
        Scale applied to the wavefront.
    """

    if coeffs is None:
        raise InvalidInputError("Wavefront coefficients are None")
    if size <= 0:
        raise InvalidInputError(f"Size must be positive, got {size}")
    if wavelength_nm <= 0:
        raise InvalidInputError(f"Wavelength must be positive, got {wavelength_nm}")

    lam = wavelength_nm * NM_TO_MM
    half = (size - 1) * 0.5

    idx = np.arange(size, dtype=np.float64)
    # A single cell is the pupil center.
    norm = (idx - half) / half if half > 0 else np.zeros(size)
    ny, nx = np.meshgrid(norm, norm, indexing="ij")

    inside = nx * nx + ny * ny <= 1.0
    w = wavefront(coeffs, nx, ny, strength)
    phase = -2.0 * np.pi * w / lam

    pupil = np.zeros((size, size), dtype=np.complex128)
    pupil[inside] = np.cos(phase[inside]) + 1j * np.sin(phase[inside])

    return pupil


def build_psf(pupil: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Energy-normalized PSF |F{P}|^2 / sum |F{P}|^2.

    The returned array is read-only.
    """

    spectrum = forward_2d(pupil, workers=workers)

    raw = np.maximum(spectrum.real**2 + spectrum.imag**2, 0.0)

    total = float(np.sum(raw))
    if not np.isfinite(total) or total <= 0.0:
        logger.debug("Degenerate PSF energy (%s); skipping normalization", total)
        total = 1.0

    psf = raw / total
    psf.flags.writeable = False
    return psf


def generate_psf(
    prescription: Prescription,
    size: int,
    wavelength_nm: float,
    strength: float = 1.0,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    PSF of an eye: prescription -> Zernike -> pupil -> transform -> |.|^2.
    """

    if prescription is None:
        raise InvalidInputError("Prescription is None")

    coeffs = compute_wavefront_coefficients(prescription)
    logger.debug(
        "Zernike coefficients: c(2,-2)=%0.4e c(2,0)=%0.4e c(2,+2)=%0.4e",
        coeffs.astig_oblique,
        coeffs.defocus,
        coeffs.astig_vertical,
    )

    pupil = build_pupil_function(coeffs, size, wavelength_nm, strength)
    return build_psf(pupil, workers=workers)


def psf_to_image(psf: np.ndarray) -> np.ndarray:
    """
    Display view of a PSF: origin moved to the grid center, peak scaled to 1.
    """

    centered = np.fft.fftshift(np.asarray(psf, dtype=np.float64))
    peak = float(np.max(centered)) if centered.size else 0.0
    if peak <= 0.0:
        return np.zeros_like(centered)
    return centered / peak
