"""
Image comparison metrics.
"""

from __future__ import annotations

import logging

import numpy as np

from precorrect.utils.color import ColorTransform

logger = logging.getLogger(__name__)

_COLOR = ColorTransform()


def compute_luminance_mse(image_a: np.ndarray, image_b: np.ndarray) -> float:
    """
    Mean squared difference of BT.709 luminance between two images.

    Returns ``nan`` (with a warning) when the spatial shapes differ.
    """

    if image_a is None or image_b is None:
        return float("nan")

    if image_a.shape[:2] != image_b.shape[:2]:
        logger.warning(
            "Cannot compare images of shape %s and %s", image_a.shape[:2], image_b.shape[:2]
        )
        return float("nan")

    diff = _COLOR.rgb_to_luminance(image_a) - _COLOR.rgb_to_luminance(image_b)
    return float(np.mean(diff**2))
