"""
Frequency-domain blur and pre-correction of color images.

Filtering runs on BT.709 luminance only; color is rebuilt by scaling the
original RGB channels with the ratio of new to old luminance, which keeps
hue and avoids channel-dependent ringing.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from precorrect.core.config import LuminanceMapping
from precorrect.core.errors import InvalidInputError
from precorrect.utils.color import ColorTransform
from precorrect.utils.spectral import forward_2d, inverse_2d

logger = logging.getLogger(__name__)

# Luminance ranges below this are treated as flat when remapping.
FLAT_RANGE = 1e-8

_COLOR = ColorTransform()


def as_image(image: np.ndarray) -> np.ndarray:
    """
    Validate an RGB(A) image and return a float64 copy in [0, 1].

    Integer images are scaled by their dtype maximum.
    """

    if image is None:
        raise InvalidInputError("Image is None")

    img = np.asarray(image)
    if img.size == 0:
        raise InvalidInputError("Image is empty")
    if img.ndim != 3 or img.shape[2] not in (3, 4):
        raise InvalidInputError(f"Expected H×W×3 or H×W×4 image, got shape {img.shape}")

    if np.issubdtype(img.dtype, np.integer):
        img = img.astype(np.float64) / float(np.iinfo(img.dtype).max)
    else:
        img = img.astype(np.float64, copy=True)

    if not np.isfinite(img).all():
        raise InvalidInputError("Image contains NaN or Inf values")

    return img


def _check_size(size: int) -> int:
    if size is None or int(size) != size or size <= 0:
        raise InvalidInputError(f"Size must be a positive integer, got {size}")
    return int(size)


def _fit_image(img: np.ndarray, size: int, caller: str) -> np.ndarray:
    height, width = img.shape[:2]
    if height == size and width == size:
        return img

    logger.warning("%s: image is %dx%d, size=%d. This may cause artifacts.", caller, width, height, size)

    fitted = img[:size, :size]
    pad_h = size - fitted.shape[0]
    pad_w = size - fitted.shape[1]
    if pad_h or pad_w:
        fitted = np.pad(fitted, ((0, pad_h), (0, pad_w), (0, 0)), mode="edge")
    return fitted


def _fit_kernel(kernel: np.ndarray, size: int, caller: str, name: str) -> np.ndarray:
    if kernel is None:
        raise InvalidInputError(f"{caller}: {name} is None")

    grid = np.asarray(kernel)
    if grid.ndim != 2 or grid.size == 0:
        raise InvalidInputError(f"{caller}: {name} must be a non-empty 2-D grid, got shape {grid.shape}")

    if grid.shape == (size, size):
        return grid

    logger.warning(
        "%s: %s is %dx%d, size=%d. This may cause artifacts.",
        caller,
        name,
        grid.shape[1],
        grid.shape[0],
        size,
    )

    fitted = grid[:size, :size]
    pad_h = size - fitted.shape[0]
    pad_w = size - fitted.shape[1]
    if pad_h or pad_w:
        fitted = np.pad(fitted, ((0, pad_h), (0, pad_w)), mode="constant")
    return fitted


def _map_luminance(luminance: np.ndarray, mapping: LuminanceMapping, caller: str) -> np.ndarray:
    min_val = float(np.min(luminance))
    max_val = float(np.max(luminance))
    logger.debug("%s: filtered luminance min=%0.4f, max=%0.4f", caller, min_val, max_val)

    if mapping == LuminanceMapping.CLAMP:
        return np.clip(luminance, 0.0, 1.0)

    if mapping == LuminanceMapping.REMAP:
        value_range = max_val - min_val
        if value_range <= FLAT_RANGE:
            logger.warning("%s: filtered luminance is nearly constant; output may look flat.", caller)
            value_range = 1.0
        return np.clip((luminance - min_val) / value_range, 0.0, 1.0)

    raise InvalidInputError(f"Unknown luminance mapping: {mapping}")


def apply_convolution_kernel(
    image: np.ndarray,
    kernel: np.ndarray,
    size: int,
    mapping: LuminanceMapping = LuminanceMapping.CLAMP,
    workers: Optional[int] = None,
    caller: str = "apply_convolution_kernel",
) -> np.ndarray:
    """
    Multiply the luminance spectrum of ``image`` by a frequency-domain kernel.

    Parameters
    ----------
    image : np.ndarray
        RGB(A) image in [0, 1], shape (size, size, 3|4). Not modified.
    kernel : np.ndarray
        Complex kernel in transform layout, shape (size, size): the
        transfer function of a PSF or a deconvolution filter.
    size : int
        Working side length. Mismatched inputs are cropped or padded to it
        with a warning.
    mapping : LuminanceMapping
        How the filtered luminance is brought back into [0, 1].
    workers : int, optional
        Passed to the spectral transform.

    Returns
    -------
    np.ndarray
        New image of shape (size, size, channels).
    """

    size = _check_size(size)
    img = _fit_image(as_image(image), size, caller)
    kernel_grid = _fit_kernel(kernel, size, caller, "kernel")

    luminance = _COLOR.rgb_to_luminance(img)

    spectrum = forward_2d(luminance, workers=workers)
    filtered = inverse_2d(spectrum * kernel_grid, workers=workers).real

    new_luminance = _map_luminance(filtered, mapping, caller)

    return _COLOR.reconstruct_color(img, luminance, new_luminance)


def blur(
    image: np.ndarray,
    psf: np.ndarray,
    size: int,
    mapping: LuminanceMapping = LuminanceMapping.CLAMP,
    workers: Optional[int] = None,
) -> np.ndarray:
    """Simulate viewing ``image`` through an eye with the given PSF."""

    size = _check_size(size)
    psf_grid = _fit_kernel(psf, size, "blur", "psf")
    transfer = forward_2d(np.asarray(psf_grid, dtype=np.float64), workers=workers)

    return apply_convolution_kernel(image, transfer, size, mapping, workers, caller="blur")


def pre_correct(
    image: np.ndarray,
    deconvolution_filter: np.ndarray,
    size: int,
    mapping: LuminanceMapping = LuminanceMapping.CLAMP,
    workers: Optional[int] = None,
) -> np.ndarray:
    """Pre-distort ``image`` so the eye's blur brings it back toward the original."""

    return apply_convolution_kernel(
        image, deconvolution_filter, size, mapping, workers, caller="pre_correct"
    )


def simulate_retina(
    pre_corrected: np.ndarray,
    psf: np.ndarray,
    size: int,
    mapping: LuminanceMapping = LuminanceMapping.CLAMP,
    workers: Optional[int] = None,
) -> np.ndarray:
    """Retinal image of a pre-corrected display image: the PSF blur of it."""

    return blur(pre_corrected, psf, size, mapping, workers)
