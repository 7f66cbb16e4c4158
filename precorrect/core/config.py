"""
Configuration primitives for precorrect.

Defines the eye prescription value type, enums for eye selection and
luminance reconstruction, and dataclasses collecting per-eye prescriptions
and pipeline parameters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Optional

from precorrect.core.errors import InvalidInputError

DEFAULT_VIEWING_DISTANCE = 1.25  # m, Quest 3 virtual screen (~1.2-1.3 m)
DEFAULT_PUPIL_RADIUS = 2.5  # mm, ~2-3 mm indoors

# Prescriptions closer than this in every field are the same prescription.
PRESCRIPTION_TOLERANCE = 1e-6


class Eye(Enum):
    """Ophthalmic eye designation."""

    OD = "od"  # right eye
    OS = "os"  # left eye


class LuminanceMapping(Enum):
    """How filtered luminance is brought back into the displayable range."""

    CLAMP = "clamp"  # clamp raw luminance to [0, 1]
    REMAP = "remap"  # stretch [min, max] of the whole image to [0, 1]


@dataclass(frozen=True, eq=False)
class Prescription:
    """
    Refractive prescription of one eye plus its viewing geometry.

    Parameters
    ----------
    sphere : float
        Spherical error in diopters (negative for myopia).
    cylinder : float
        Cylindrical error in diopters.
    axis : float
        Cylinder axis in degrees, 0-180.
    pupil_radius : float
        Pupil radius in millimeters.
    viewing_distance : float
        Distance to the (virtual) display in meters.

    Equality is tolerant of floating-point jitter so that a prescription can
    key a PSF catalog.
    """

    sphere: float = 0.0
    cylinder: float = 0.0
    axis: float = 0.0
    pupil_radius: float = DEFAULT_PUPIL_RADIUS
    viewing_distance: float = DEFAULT_VIEWING_DISTANCE

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or not math.isfinite(value):
                raise InvalidInputError(f"Prescription {f.name} must be finite, got {value}")
            object.__setattr__(self, f.name, float(value))

        if self.pupil_radius <= 0:
            raise InvalidInputError(f"Pupil radius must be positive, got {self.pupil_radius}")
        if self.viewing_distance <= 0:
            raise InvalidInputError(
                f"Viewing distance must be positive, got {self.viewing_distance}"
            )
        if not (0.0 <= self.axis <= 180.0):
            raise InvalidInputError(f"Axis {self.axis} out of range [0, 180]")

    @classmethod
    def emmetropic(cls) -> "Prescription":
        """Prescription of an eye without refractive error."""

        return cls()

    def as_tuple(self) -> tuple[float, float, float, float, float]:
        return (
            self.sphere,
            self.cylinder,
            self.axis,
            self.pupil_radius,
            self.viewing_distance,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Prescription):
            return NotImplemented
        return all(
            math.isclose(
                a,
                b,
                rel_tol=PRESCRIPTION_TOLERANCE,
                abs_tol=PRESCRIPTION_TOLERANCE,
            )
            for a, b in zip(self.as_tuple(), other.as_tuple())
        )

    def __hash__(self) -> int:
        # Tolerant equality is not transitive, so no field-derived hash can
        # agree with it. Every prescription shares one bucket; lookups fall
        # back to __eq__.
        return hash(Prescription)


@dataclass
class AberrationConfig:
    """Prescriptions for both eyes."""

    od: Prescription = field(default_factory=Prescription)
    os: Prescription = field(default_factory=Prescription)

    def set_right_eye(
        self,
        sphere: float,
        cylinder: float,
        axis: float,
        pupil_radius: float = DEFAULT_PUPIL_RADIUS,
        viewing_distance: float = DEFAULT_VIEWING_DISTANCE,
    ) -> None:
        self.od = Prescription(sphere, cylinder, axis, pupil_radius, viewing_distance)

    def set_left_eye(
        self,
        sphere: float,
        cylinder: float,
        axis: float,
        pupil_radius: float = DEFAULT_PUPIL_RADIUS,
        viewing_distance: float = DEFAULT_VIEWING_DISTANCE,
    ) -> None:
        self.os = Prescription(sphere, cylinder, axis, pupil_radius, viewing_distance)

    def set_both_eyes(self, od: Prescription, os: Prescription) -> None:
        self.od = od
        self.os = os

    def prescription_for(self, eye: Eye) -> Prescription:
        return self.od if eye == Eye.OD else self.os

    def validate(self) -> None:
        """Validate that both eyes carry a prescription."""

        for eye in Eye:
            if not isinstance(self.prescription_for(eye), Prescription):
                raise InvalidInputError(f"Missing prescription for {eye.name}")


@dataclass
class PipelineConfig:
    """
    Complete configuration for the correction pipeline.

    Defaults reproduce the reference validation setup: a 512x512 kernel at
    550 nm with a wavefront strength that visually matches published
    pre-correction results.
    """

    # Optics
    kernel_size: int = 512  # PSF / image side length
    wavelength_nm: float = 550.0  # green
    blur_strength: float = 2.5e-5  # wavefront scale

    # Deconvolution
    epsilon: float = 1e-3  # Wiener regularization
    luminance_mapping: LuminanceMapping = LuminanceMapping.CLAMP

    # Execution
    parallel_eyes: bool = True  # run OD and OS concurrently
    fft_workers: Optional[int] = None  # scipy.fft workers; None = scipy default
    compute_retinal: bool = True  # also simulate the retinal image

    def validate(self) -> None:
        """Validate configuration parameters."""

        if not isinstance(self.kernel_size, int) or self.kernel_size <= 0:
            raise InvalidInputError(f"Kernel size must be a positive integer, got {self.kernel_size}")

        if not (0 < self.wavelength_nm < 2000):
            raise InvalidInputError(f"Wavelength {self.wavelength_nm} nm out of range (0, 2000)")

        if not (math.isfinite(self.epsilon) and self.epsilon > 0):
            raise InvalidInputError(f"Epsilon must be positive, got {self.epsilon}")

        if not (math.isfinite(self.blur_strength) and self.blur_strength >= 0):
            raise InvalidInputError(f"Blur strength must be non-negative, got {self.blur_strength}")

        if not isinstance(self.luminance_mapping, LuminanceMapping):
            raise InvalidInputError(f"Unknown luminance mapping: {self.luminance_mapping}")

        if self.fft_workers is not None and self.fft_workers == 0:
            raise InvalidInputError("fft_workers must be non-zero")
