"""
Tests for configuration primitives.
"""

from __future__ import annotations

import pytest

from precorrect import (
    AberrationConfig,
    Eye,
    InvalidInputError,
    LuminanceMapping,
    PipelineConfig,
    Prescription,
)
from precorrect.core.config import DEFAULT_PUPIL_RADIUS, DEFAULT_VIEWING_DISTANCE


def test_default_prescription_is_emmetropic() -> None:
    p = Prescription.emmetropic()
    assert p.sphere == 0.0
    assert p.cylinder == 0.0
    assert p.pupil_radius == DEFAULT_PUPIL_RADIUS
    assert p.viewing_distance == DEFAULT_VIEWING_DISTANCE


def test_prescription_is_immutable() -> None:
    p = Prescription(sphere=-1.0)
    with pytest.raises(AttributeError):
        p.sphere = 0.0  # type: ignore[misc]


def test_prescription_equality_tolerates_jitter() -> None:
    a = Prescription(-2.0, -0.75, 90.0, 2.5, 1.25)
    b = Prescription(-2.0 + 9e-7, -0.75 - 9e-7, 90.0 + 9e-7, 2.5 + 9e-7, 1.25 - 9e-7)
    assert a == b
    assert hash(a) == hash(b)


def test_prescription_inequality() -> None:
    a = Prescription(sphere=-2.0)
    assert a != Prescription(sphere=-2.001)
    assert a != Prescription(sphere=-2.0, axis=1.0)
    assert a != "not a prescription"


def test_prescription_as_dict_key() -> None:
    table = {Prescription(sphere=-1.5, cylinder=-0.5, axis=10.0): "od"}
    assert table[Prescription(sphere=-1.5 + 1e-7, cylinder=-0.5, axis=10.0)] == "od"


@pytest.mark.parametrize(
    "first, second",
    [
        (5e-5, 4.95e-5),
        (-2.00005, -2.000049),
        (0.12345, 0.1234495),
    ],
)
def test_prescription_hash_agrees_with_equality_at_rounding_edge(first, second) -> None:
    a = Prescription(sphere=first)
    b = Prescription(sphere=second)

    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1
    assert {a: "od"}.get(b) == "od"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pupil_radius": 0.0},
        {"viewing_distance": -1.0},
        {"axis": 181.0},
        {"axis": -1.0},
        {"sphere": float("nan")},
        {"cylinder": float("inf")},
    ],
)
def test_invalid_prescription_raises(kwargs) -> None:
    with pytest.raises(InvalidInputError):
        Prescription(**kwargs)


def test_aberration_config_setters() -> None:
    config = AberrationConfig()
    config.set_right_eye(-2.0, -0.5, 90.0)
    config.set_left_eye(-1.0, 0.0, 0.0, pupil_radius=3.0, viewing_distance=2.0)

    assert config.prescription_for(Eye.OD) == Prescription(-2.0, -0.5, 90.0)
    assert config.prescription_for(Eye.OS).pupil_radius == 3.0

    od, os = Prescription(sphere=-4.0), Prescription(sphere=-3.0)
    config.set_both_eyes(od, os)
    assert config.od is od
    assert config.os is os
    config.validate()


def test_aberration_config_missing_eye_raises() -> None:
    config = AberrationConfig()
    config.os = None  # type: ignore[assignment]
    with pytest.raises(InvalidInputError):
        config.validate()


def test_valid_pipeline_config() -> None:
    config = PipelineConfig(kernel_size=256, epsilon=1e-4, luminance_mapping=LuminanceMapping.REMAP)
    config.validate()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"kernel_size": 0},
        {"kernel_size": -8},
        {"wavelength_nm": 0.0},
        {"epsilon": 0.0},
        {"blur_strength": -1.0},
        {"luminance_mapping": "clamp"},
        {"fft_workers": 0},
    ],
)
def test_invalid_pipeline_config(kwargs) -> None:
    config = PipelineConfig(**kwargs)
    with pytest.raises(InvalidInputError):
        config.validate()


def test_invalid_input_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        PipelineConfig(epsilon=-1.0).validate()
