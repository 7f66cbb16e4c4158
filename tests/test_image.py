"""
Tests for luminance-domain blur and pre-correction.
"""

from __future__ import annotations

import logging

import numpy as np
import pytest
from scipy.ndimage import gaussian_filter

from precorrect import InvalidInputError, LuminanceMapping, Prescription
from precorrect.optics import build_deconvolution_filter, generate_psf
from precorrect.processing import apply_convolution_kernel, as_image, blur, pre_correct
from precorrect.utils import ColorTransform, compute_luminance_mse


def _delta_psf(size: int) -> np.ndarray:
    psf = np.zeros((size, size))
    psf[0, 0] = 1.0
    return psf


def _natural_gray(size: int, seed: int = 0) -> np.ndarray:
    """Smooth texture with hard edges, scaled to [0.15, 0.85], as gray RGB."""

    rng = np.random.default_rng(seed)
    texture = gaussian_filter(rng.random((size, size)), sigma=2.0)
    texture = (texture - texture.min()) / (texture.max() - texture.min())
    texture[size // 4 : size // 2, size // 4 : 3 * size // 4] += 0.8
    texture[3 * size // 5 :, : size // 3] -= 0.5
    texture = (texture - texture.min()) / (texture.max() - texture.min())
    gray = 0.15 + 0.7 * texture
    return np.repeat(gray[:, :, np.newaxis], 3, axis=2)


def test_bt709_luminance() -> None:
    color = ColorTransform()
    rgb = np.zeros((1, 3, 3))
    rgb[0, 0, 0] = 1.0
    rgb[0, 1, 1] = 1.0
    rgb[0, 2, 2] = 1.0
    np.testing.assert_allclose(color.rgb_to_luminance(rgb), [[0.2126, 0.7152, 0.0722]])


def test_uniform_color_is_preserved() -> None:
    size = 32
    image = np.empty((size, size, 3))
    image[:] = (0.6, 0.4, 0.2)

    psf = generate_psf(Prescription(sphere=-2.0, cylinder=-1.0, axis=45.0), size, 550.0, 5e-5)
    m_filter = build_deconvolution_filter(psf, 1e-3)

    blurred = blur(image, psf, size)
    corrected = pre_correct(image, m_filter, size)

    np.testing.assert_allclose(blurred, image, atol=1e-9)
    # DC gain of the filter is 1 / (1 + epsilon)
    np.testing.assert_allclose(corrected, image, atol=2e-3)
    assert np.ptp(corrected[:, :, 0]) < 1e-9


def test_delta_psf_blur_is_identity() -> None:
    rng = np.random.default_rng(3)
    image = 0.1 + 0.8 * rng.random((16, 16, 3))
    np.testing.assert_allclose(blur(image, _delta_psf(16), 16), image, atol=1e-9)


def test_input_image_is_not_modified() -> None:
    image = _natural_gray(16)
    original = image.copy()
    psf = generate_psf(Prescription(sphere=-1.0), 16, 550.0, 1e-4)
    blur(image, psf, 16)
    pre_correct(image, build_deconvolution_filter(psf), 16)
    np.testing.assert_array_equal(image, original)


def test_outputs_are_in_unit_range() -> None:
    rng = np.random.default_rng(4)
    image = rng.random((32, 32, 3))
    psf = generate_psf(Prescription(sphere=-3.0, cylinder=-1.0, axis=10.0), 32, 550.0, 1e-4)
    corrected = pre_correct(image, build_deconvolution_filter(psf, 1e-4), 32)
    assert corrected.min() >= 0.0
    assert corrected.max() <= 1.0


def test_pre_correction_reduces_blur_error() -> None:
    size = 64
    image = _natural_gray(size)
    psf = generate_psf(Prescription(sphere=-2.0, cylinder=-1.0, axis=30.0), size, 550.0, 5e-5)
    m_filter = build_deconvolution_filter(psf, 1e-3)

    blurred = blur(image, psf, size)
    restored = pre_correct(blurred, m_filter, size)

    baseline = compute_luminance_mse(image, blurred)
    corrected = compute_luminance_mse(image, restored)
    assert baseline > 0.0
    assert corrected < baseline


def test_alpha_channel_is_carried_through() -> None:
    image = np.full((8, 8, 4), 0.5)
    image[:, :, 3] = 0.25
    result = blur(image, _delta_psf(8), 8)
    assert result.shape == (8, 8, 4)
    np.testing.assert_allclose(result[:, :, 3], 0.25)


def test_integer_images_are_scaled() -> None:
    image = np.full((4, 4, 3), 255, dtype=np.uint8)
    np.testing.assert_allclose(as_image(image), 1.0)


def test_remap_stretches_luminance() -> None:
    ramp = np.linspace(0.2, 0.6, 16)
    gray = np.tile(ramp, (16, 1))
    image = np.repeat(gray[:, :, np.newaxis], 3, axis=2)

    result = blur(image, _delta_psf(16), 16, mapping=LuminanceMapping.REMAP)

    expected = (gray - 0.2) / 0.4
    np.testing.assert_allclose(result[:, :, 1], expected, atol=1e-9)


def test_remap_of_flat_image_warns(caplog: pytest.LogCaptureFixture) -> None:
    image = np.full((8, 8, 3), 0.5)
    with caplog.at_level(logging.WARNING):
        result = blur(image, _delta_psf(8), 8, mapping=LuminanceMapping.REMAP)
    assert np.isfinite(result).all()
    assert "nearly constant" in caplog.text


def test_larger_image_is_cropped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    image = _natural_gray(20)
    with caplog.at_level(logging.WARNING):
        result = blur(image, _delta_psf(16), 16)
    assert result.shape == (16, 16, 3)
    np.testing.assert_allclose(result, image[:16, :16], atol=1e-9)
    assert "may cause artifacts" in caplog.text


def test_smaller_image_is_padded_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    image = _natural_gray(12)
    with caplog.at_level(logging.WARNING):
        result = blur(image, _delta_psf(16), 16)
    assert result.shape == (16, 16, 3)
    assert np.isfinite(result).all()
    assert "may cause artifacts" in caplog.text


def test_mismatched_kernel_is_fitted_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    image = _natural_gray(16)
    psf = generate_psf(Prescription(sphere=-1.0), 24, 550.0, 1e-4)
    with caplog.at_level(logging.WARNING):
        result = pre_correct(image, build_deconvolution_filter(psf), 16)
    assert result.shape == (16, 16, 3)
    assert np.isfinite(result).all()
    assert "kernel" in caplog.text


def test_invalid_inputs_raise() -> None:
    kernel = np.ones((8, 8))
    with pytest.raises(InvalidInputError):
        apply_convolution_kernel(None, kernel, 8)
    with pytest.raises(InvalidInputError):
        apply_convolution_kernel(np.zeros((0, 0, 3)), kernel, 8)
    with pytest.raises(InvalidInputError):
        apply_convolution_kernel(np.zeros((8, 8)), kernel, 8)
    with pytest.raises(InvalidInputError):
        apply_convolution_kernel(np.zeros((8, 8, 3)), kernel, 0)
    with pytest.raises(InvalidInputError):
        apply_convolution_kernel(np.zeros((8, 8, 3)), None, 8)


def test_whole_number_float_size_is_accepted(caplog: pytest.LogCaptureFixture) -> None:
    image = _natural_gray(20)
    with caplog.at_level(logging.WARNING):
        result = blur(image, _delta_psf(16), 16.0)
    assert result.shape == (16, 16, 3)
    np.testing.assert_allclose(result, image[:16, :16], atol=1e-9)
    assert "may cause artifacts" in caplog.text

    with pytest.raises(InvalidInputError):
        blur(image, _delta_psf(16), 16.5)
