"""Configuration, catalog contract and per-eye pipeline."""

from precorrect.core.catalog import CatalogEntry, InMemoryPSFCatalog, PSFCatalog
from precorrect.core.config import (
    DEFAULT_PUPIL_RADIUS,
    DEFAULT_VIEWING_DISTANCE,
    AberrationConfig,
    Eye,
    LuminanceMapping,
    PipelineConfig,
    Prescription,
)
from precorrect.core.errors import InvalidInputError

__all__ = [
    "AberrationConfig",
    "CatalogEntry",
    "DEFAULT_PUPIL_RADIUS",
    "DEFAULT_VIEWING_DISTANCE",
    "Eye",
    "InMemoryPSFCatalog",
    "InvalidInputError",
    "LuminanceMapping",
    "PSFCatalog",
    "PipelineConfig",
    "Prescription",
]
