"""
Prescription to wavefront conversion.

Maps an eye prescription to the three low-order Zernike coefficients
(oblique astigmatism Z(2,-2), defocus Z(2,0), vertical astigmatism Z(2,+2))
and evaluates the resulting wavefront over the normalized pupil.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Union

import numpy as np

from precorrect.core.config import Prescription
from precorrect.core.errors import InvalidInputError

ArrayLike = Union[float, np.ndarray]

# Near point of 0.125 m expressed in diopters.
NEAR_POINT_DIOPTERS = 8.0

SQRT3 = math.sqrt(3.0)
SQRT6 = math.sqrt(6.0)


@dataclass(frozen=True)
class WavefrontCoefficients:
    """Low-order Zernike coefficients (mm of optical path over the pupil)."""

    astig_oblique: float = 0.0  # c(2,-2)
    defocus: float = 0.0  # c(2,0)
    astig_vertical: float = 0.0  # c(2,+2)


def adjusted_sphere(sm: float, d: float) -> float:
    """
    Effective sphere S(d) at viewing distance ``d`` for measured sphere ``sm``.

    Models residual accommodation:

        S(d) = Sm + 1/d          if 1/d < |Sm|
        S(d) = Sm - (8 - 1/d)    if (8 - 1/d) < |Sm|
        S(d) = 0                 otherwise

    Parameters
    ----------
    sm : float
        Measured sphere in diopters (negative for myopia).
    d : float
        Viewing distance in meters.
    """

    if d <= 0:
        raise InvalidInputError(f"Viewing distance must be positive, got {d}")

    inv_d = 1.0 / d
    abs_sm = abs(sm)

    if inv_d < abs_sm:
        return sm + inv_d

    term = NEAR_POINT_DIOPTERS - inv_d
    if term < abs_sm:
        return sm - term

    return 0.0


def compute_wavefront_coefficients(prescription: Prescription) -> WavefrontCoefficients:
    """
    Zernike coefficients for a prescription.

        c(2,-2) = R^2 C sin(2A) / (4 sqrt 6)
        c(2,0)  = -R^2 (S + C/2) / (4 sqrt 3)
        c(2,+2) = R^2 C cos(2A) / (4 sqrt 6)

    with S the distance-adjusted sphere, C the cylinder, A the axis in
    radians and R the pupil radius in millimeters.
    """

    if prescription is None:
        raise InvalidInputError("Prescription is None")

    axis = math.radians(prescription.axis)
    sphere = adjusted_sphere(prescription.sphere, prescription.viewing_distance)
    cylinder = prescription.cylinder
    r2 = prescription.pupil_radius**2

    return WavefrontCoefficients(
        astig_oblique=r2 * cylinder * math.sin(2.0 * axis) / (4.0 * SQRT6),
        defocus=-r2 * (sphere + cylinder * 0.5) / (4.0 * SQRT3),
        astig_vertical=r2 * cylinder * math.cos(2.0 * axis) / (4.0 * SQRT6),
    )


def wavefront(
    coeffs: WavefrontCoefficients,
    x: ArrayLike,
    y: ArrayLike,
    strength: float = 1.0,
) -> ArrayLike:
    """
    Wavefront W(x, y) at normalized pupil coordinates in [-1, 1].

    Accepts scalars or broadcastable arrays. Points outside the unit pupil
    evaluate to zero.
    """

    x_arr = np.asarray(x, dtype=np.float64)
    y_arr = np.asarray(y, dtype=np.float64)
    r2 = x_arr * x_arr + y_arr * y_arr

    z_oblique = 2.0 * SQRT6 * x_arr * y_arr
    z_defocus = SQRT3 * (2.0 * r2 - 1.0)
    z_vertical = SQRT6 * (x_arr * x_arr - y_arr * y_arr)

    w = strength * (
        coeffs.astig_oblique * z_oblique
        + coeffs.defocus * z_defocus
        + coeffs.astig_vertical * z_vertical
    )
    w = np.where(r2 > 1.0, 0.0, w)

    if w.ndim == 0:
        return float(w)
    return w
