"""
Per-eye vision correction pipeline.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import numpy as np

from precorrect.core.catalog import PSFCatalog
from precorrect.core.config import AberrationConfig, Eye, PipelineConfig, Prescription
from precorrect.core.errors import InvalidInputError
from precorrect.optics.deconvolution import build_deconvolution_filter
from precorrect.optics.prescription import (
    WavefrontCoefficients,
    adjusted_sphere,
    compute_wavefront_coefficients,
)
from precorrect.optics.psf import build_psf, build_pupil_function, psf_to_image
from precorrect.processing.image import as_image, blur, pre_correct, simulate_retina
from precorrect.utils.metrics import compute_luminance_mse

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class EyePipelineResult:
    """Everything computed for one eye."""

    eye: Eye
    prescription: Prescription
    adjusted_sphere: float
    coefficients: WavefrontCoefficients
    psf: np.ndarray
    deconvolution_filter: np.ndarray
    blurred: np.ndarray  # original seen through the eye
    pre_corrected: np.ndarray  # what the display shows
    retinal: Optional[np.ndarray]  # pre-corrected seen through the eye
    mse_blurred: float
    mse_retinal: float


@dataclass(frozen=True, eq=False)
class StereoPipelineResult:
    """Independent results for the right (OD) and left (OS) eye."""

    od: EyePipelineResult
    os: EyePipelineResult

    def for_eye(self, eye: Eye) -> EyePipelineResult:
        return self.od if eye == Eye.OD else self.os


class CorrectionPipeline:
    """
    Prescription-driven blur simulation and pre-correction.

    Pipeline stages (per eye):
        1. Prescription -> Zernike coefficients
        2. Pupil function -> PSF (optionally memoized in a catalog)
        3. PSF -> deconvolution filter
        4. Blur of the original (uncorrected retinal image)
        5. Pre-correction of the original (display image)
        6. Blur of the pre-corrected image (corrected retinal image)
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        catalog: Optional[PSFCatalog] = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.config.validate()
        self.catalog = catalog

        logger.info("Initializing correction pipeline")
        logger.info("  Kernel: %d px @ %0.1f nm", self.config.kernel_size, self.config.wavelength_nm)
        logger.info("  Epsilon: %0.1e, strength: %0.2e", self.config.epsilon, self.config.blur_strength)
        logger.info("  Luminance mapping: %s", self.config.luminance_mapping.value)

    def process(
        self,
        image: np.ndarray,
        aberrations: Optional[AberrationConfig],
    ) -> StereoPipelineResult:
        """
        Run both eyes on the same source image.

        The two chains share no mutable state; with ``parallel_eyes`` they run
        concurrently and this call returns once both are done.
        """

        if aberrations is None:
            raise InvalidInputError("Aberration config is None")
        aberrations.validate()

        img = as_image(image)

        if self.config.parallel_eyes:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="precorrect-eye") as pool:
                futures = {
                    eye: pool.submit(self.process_eye, img, aberrations.prescription_for(eye), eye)
                    for eye in Eye
                }
                results = {eye: future.result() for eye, future in futures.items()}
        else:
            results = {
                eye: self.process_eye(img, aberrations.prescription_for(eye), eye) for eye in Eye
            }

        return StereoPipelineResult(od=results[Eye.OD], os=results[Eye.OS])

    def process_eye(
        self,
        image: np.ndarray,
        prescription: Optional[Prescription],
        eye: Eye = Eye.OD,
    ) -> EyePipelineResult:
        """Run the full chain for one eye."""

        if prescription is None:
            raise InvalidInputError(f"Missing prescription for {eye.name}")

        img = as_image(image)

        logger.info("Processing %s: image shape=%s, prescription=%s", eye.name, img.shape, prescription)

        sd = adjusted_sphere(prescription.sphere, prescription.viewing_distance)
        coeffs = self._stage_coefficients(prescription)
        psf = self._stage_psf(prescription, coeffs)
        m_filter = self._stage_filter(psf)
        blurred = self._stage_blur(img, psf)
        pre_corrected = self._stage_pre_correct(img, m_filter)
        retinal = self._stage_retina(pre_corrected, psf) if self.config.compute_retinal else None

        # NaN when the source is not size×size.
        mse_blurred = compute_luminance_mse(img, blurred)
        mse_retinal = compute_luminance_mse(img, retinal) if retinal is not None else float("nan")

        logger.info(
            "%s complete. MSE(original, blurred)=%0.4e, MSE(original, retinal)=%0.4e",
            eye.name,
            mse_blurred,
            mse_retinal,
        )

        return EyePipelineResult(
            eye=eye,
            prescription=prescription,
            adjusted_sphere=sd,
            coefficients=coeffs,
            psf=psf,
            deconvolution_filter=m_filter,
            blurred=blurred,
            pre_corrected=pre_corrected,
            retinal=retinal,
            mse_blurred=mse_blurred,
            mse_retinal=mse_retinal,
        )

    # ------------------------------------------------------------------
    # Individual pipeline stages
    # ------------------------------------------------------------------

    def _stage_coefficients(self, prescription: Prescription) -> WavefrontCoefficients:
        logger.debug("Stage 1: Zernike coefficients")

        return compute_wavefront_coefficients(prescription)

    def _stage_psf(self, prescription: Prescription, coeffs: WavefrontCoefficients) -> np.ndarray:
        logger.debug("Stage 2: point spread function")

        size = self.config.kernel_size
        wavelength_nm = self.config.wavelength_nm
        strength = self.config.blur_strength

        if self.catalog is not None:
            entry = self.catalog.lookup(prescription)
            if entry is not None and entry.matches(size, wavelength_nm, strength):
                logger.debug("PSF catalog hit for %s", prescription)
                return entry.psf
            if entry is not None:
                logger.debug(
                    "Catalog PSF (shape %s, %s nm, strength %s) does not match "
                    "%dx%d @ %0.1f nm, strength %0.2e; recomputing",
                    np.shape(entry.psf),
                    entry.wavelength_nm,
                    entry.blur_strength,
                    size,
                    size,
                    wavelength_nm,
                    strength,
                )

        pupil = build_pupil_function(coeffs, size, wavelength_nm, strength)
        psf = build_psf(pupil, workers=self.config.fft_workers)

        if self.catalog is not None:
            self.catalog.upsert(
                prescription,
                psf,
                psf_to_image(psf),
                wavelength_nm=wavelength_nm,
                blur_strength=strength,
            )

        return psf

    def _stage_filter(self, psf: np.ndarray) -> np.ndarray:
        logger.debug("Stage 3: deconvolution filter")

        return build_deconvolution_filter(psf, self.config.epsilon, workers=self.config.fft_workers)

    def _stage_blur(self, img: np.ndarray, psf: np.ndarray) -> np.ndarray:
        logger.debug("Stage 4: blur (no correction)")

        return blur(
            img,
            psf,
            self.config.kernel_size,
            self.config.luminance_mapping,
            self.config.fft_workers,
        )

    def _stage_pre_correct(self, img: np.ndarray, m_filter: np.ndarray) -> np.ndarray:
        logger.debug("Stage 5: pre-correction")

        return pre_correct(
            img,
            m_filter,
            self.config.kernel_size,
            self.config.luminance_mapping,
            self.config.fft_workers,
        )

    def _stage_retina(self, pre_corrected: np.ndarray, psf: np.ndarray) -> np.ndarray:
        logger.debug("Stage 6: retinal simulation")

        return simulate_retina(
            pre_corrected,
            psf,
            self.config.kernel_size,
            self.config.luminance_mapping,
            self.config.fft_workers,
        )


def correct_image(
    image: np.ndarray,
    prescription: Prescription,
    kernel_size: Optional[int] = None,
    epsilon: float = 1e-3,
    blur_strength: float = 2.5e-5,
) -> np.ndarray:
    """
    Convenience wrapper returning the pre-corrected image for one eye.

    ``kernel_size`` defaults to the image side length.
    """

    img = as_image(image)
    config = PipelineConfig(
        kernel_size=kernel_size or img.shape[0],
        epsilon=epsilon,
        blur_strength=blur_strength,
        compute_retinal=False,
    )

    pipeline = CorrectionPipeline(config)
    return pipeline.process_eye(img, prescription).pre_corrected
