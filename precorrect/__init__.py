"""Prescription-driven vision correction for near-eye displays.

Simulates how an eye's refractive error (sphere, cylinder, axis, pupil size,
viewing distance) blurs a displayed image and computes a regularized inverse
filter that pre-corrects images so the retinal image approaches the original.
"""

from precorrect.core.catalog import CatalogEntry, InMemoryPSFCatalog, PSFCatalog
from precorrect.core.config import (
    AberrationConfig,
    Eye,
    LuminanceMapping,
    PipelineConfig,
    Prescription,
)
from precorrect.core.errors import InvalidInputError
from precorrect.core.pipeline import (
    CorrectionPipeline,
    EyePipelineResult,
    StereoPipelineResult,
    correct_image,
)

__all__ = [
    "AberrationConfig",
    "CatalogEntry",
    "CorrectionPipeline",
    "Eye",
    "EyePipelineResult",
    "InMemoryPSFCatalog",
    "InvalidInputError",
    "LuminanceMapping",
    "PSFCatalog",
    "PipelineConfig",
    "Prescription",
    "StereoPipelineResult",
    "correct_image",
]

__version__ = "0.1.0"
