"""
Basic usage examples for precorrect.
"""

from __future__ import annotations

import logging

import numpy as np

from precorrect import (
    AberrationConfig,
    CorrectionPipeline,
    InMemoryPSFCatalog,
    PipelineConfig,
    Prescription,
    correct_image,
)


def _test_pattern(size: int) -> np.ndarray:
    """Checkerboard with a colored square."""

    yy, xx = np.mgrid[0:size, 0:size]
    checker = ((yy // 8 + xx // 8) % 2).astype(float)
    img = np.repeat((0.2 + 0.6 * checker)[:, :, np.newaxis], 3, axis=2)
    img[size // 4 : size // 2, size // 4 : size // 2] = (0.8, 0.3, 0.2)
    return img


def example_single_eye() -> np.ndarray:
    """Pre-correct an image for one myopic, astigmatic eye."""

    img = _test_pattern(128)
    prescription = Prescription(sphere=-2.0, cylinder=-0.75, axis=20.0)
    corrected = correct_image(img, prescription)
    print(f"Single eye output range: [{corrected.min():0.3f}, {corrected.max():0.3f}]")
    return corrected


def example_stereo() -> None:
    """Run both eyes concurrently and compare retinal errors."""

    img = _test_pattern(128)
    aberrations = AberrationConfig()
    aberrations.set_right_eye(-2.0, -0.75, 20.0)
    aberrations.set_left_eye(-1.5, -1.25, 160.0)

    pipeline = CorrectionPipeline(
        PipelineConfig(kernel_size=128, epsilon=1e-3),
        catalog=InMemoryPSFCatalog(),
    )
    result = pipeline.process(img, aberrations)

    for eye_result in (result.od, result.os):
        print(
            f"{eye_result.eye.name}: MSE blurred={eye_result.mse_blurred:0.2e}, "
            f"MSE retinal={eye_result.mse_retinal:0.2e}"
        )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    print("Running precorrect basic examples...")
    example_single_eye()
    example_stereo()
