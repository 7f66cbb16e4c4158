"""
Regularized inverse (Wiener-style) filter for a known PSF.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from precorrect.core.errors import InvalidInputError
from precorrect.utils.spectral import forward_2d

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = 1e-3


def build_deconvolution_filter(
    psf: np.ndarray,
    epsilon: float = DEFAULT_EPSILON,
    workers: Optional[int] = None,
) -> np.ndarray:
    """
    Frequency-domain filter M = conj(H) / (|H|^2 + epsilon), H = F{psf}.

    Parameters
    ----------
    psf : np.ndarray
        Energy-normalized PSF in transform layout, shape (N, N).
    epsilon : float
        Regularization; larger values suppress noise at the cost of
        sharpness. 1e-4 to 1e-2 is the useful range.
    workers : int, optional
        Passed to the spectral transform.

    Returns
    -------
    np.ndarray
        Read-only complex filter, shape (N, N).
    """

    if psf is None:
        raise InvalidInputError("PSF is None")
    if not (math.isfinite(epsilon) and epsilon > 0):
        raise InvalidInputError(f"Epsilon must be positive, got {epsilon}")

    h = forward_2d(np.asarray(psf, dtype=np.float64), workers=workers)

    magnitude = np.abs(h)
    logger.debug(
        "Deconvolution filter: |H| min=%0.4e, max=%0.4e",
        float(np.min(magnitude)),
        float(np.max(magnitude)),
    )

    mag2 = h.real**2 + h.imag**2
    denom = mag2 + epsilon
    denom = np.where(denom <= 0.0, epsilon, denom)

    m_filter = np.conj(h) / denom
    m_filter.flags.writeable = False
    return m_filter
