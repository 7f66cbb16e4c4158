"""
Luminance extraction and luminance-preserving color reconstruction.
"""

from __future__ import annotations

import numpy as np

# ITU-R BT.709 luma weights
BT709_WEIGHTS = np.array([0.2126, 0.7152, 0.0722])

# Floor for the original luminance when rescaling near-black pixels.
MIN_LUMINANCE = 1e-4


class ColorTransform:
    """Luminance-domain color utilities."""

    def __init__(self, weights: np.ndarray = BT709_WEIGHTS, min_luminance: float = MIN_LUMINANCE) -> None:
        self.weights = np.asarray(weights, dtype=np.float64)
        self.min_luminance = min_luminance

    def rgb_to_luminance(self, rgb: np.ndarray) -> np.ndarray:
        """
        Compute luminance from RGB(A).

        Parameters
        ----------
        rgb : np.ndarray
            RGB or RGBA image, shape (H, W, 3|4). Alpha is ignored.
        """

        return (
            self.weights[0] * rgb[:, :, 0]
            + self.weights[1] * rgb[:, :, 1]
            + self.weights[2] * rgb[:, :, 2]
        )

    def reconstruct_color(
        self,
        rgb: np.ndarray,
        luminance_orig: np.ndarray,
        luminance_new: np.ndarray,
    ) -> np.ndarray:
        """
        Impose a new luminance on an image while keeping its chromaticity.

        Each RGB channel is scaled by ``luminance_new / luminance_orig`` and
        clamped to [0, 1]; alpha, when present, is copied unchanged.

        Parameters
        ----------
        rgb : np.ndarray
            Original RGB(A) image, shape (H, W, 3|4)
        luminance_orig : np.ndarray
            Luminance of ``rgb``, shape (H, W)
        luminance_new : np.ndarray
            Target luminance, shape (H, W)
        """

        denom = np.maximum(luminance_orig, self.min_luminance)
        factor = luminance_new / denom

        result = rgb.copy()
        result[:, :, :3] = np.clip(rgb[:, :, :3] * factor[:, :, np.newaxis], 0.0, 1.0)
        return result
