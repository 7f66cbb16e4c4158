"""
Separable 2-D discrete Fourier transform on square grids.

Normalization follows the Matlab convention: the forward transform is
unscaled and the inverse divides by N along each axis, so that
``inverse_2d(forward_2d(x)) == x`` up to rounding. PSF energy and the
deconvolution denominator downstream are expressed in this convention.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import scipy.fft

from precorrect.core.errors import InvalidInputError

_NORM = "backward"


def _as_square_grid(grid: np.ndarray) -> np.ndarray:
    if grid is None:
        raise InvalidInputError("Grid is None")

    data = np.asarray(grid)
    if data.ndim != 2 or data.shape[0] != data.shape[1] or data.shape[0] == 0:
        raise InvalidInputError(f"Expected a non-empty square N×N grid, got shape {data.shape}")

    return data.astype(np.complex128, copy=True)


def forward_2d(grid: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Unscaled forward transform of an N×N grid.

    Parameters
    ----------
    grid : np.ndarray
        Square real or complex grid. Not modified.
    workers : int, optional
        Passed to :mod:`scipy.fft`; parallelizes the independent 1-D
        transforms within the row pass and then within the column pass.
    """

    data = _as_square_grid(grid)

    # Rows first; every column transform needs all rows finished.
    data = scipy.fft.fft(data, axis=1, norm=_NORM, workers=workers, overwrite_x=True)
    data = scipy.fft.fft(data, axis=0, norm=_NORM, workers=workers, overwrite_x=True)

    return data


def inverse_2d(grid: np.ndarray, workers: Optional[int] = None) -> np.ndarray:
    """
    Inverse transform of an N×N spectrum, scaled by 1/N per axis.
    """

    data = _as_square_grid(grid)

    data = scipy.fft.ifft(data, axis=1, norm=_NORM, workers=workers, overwrite_x=True)
    data = scipy.fft.ifft(data, axis=0, norm=_NORM, workers=workers, overwrite_x=True)

    return data
