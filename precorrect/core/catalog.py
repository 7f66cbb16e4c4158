"""
PSF catalog contract.

The catalog memoizes PSFs (and a display asset derived from each) per
prescription. Storage policy belongs to the host application; the pipeline
only needs :class:`PSFCatalog`'s lookup/upsert pair.

A PSF also depends on the grid size, wavelength and blur strength it was
built with, so entries carry those parameters and the pipeline treats an
entry built with different ones as a miss.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, runtime_checkable

import numpy as np

from precorrect.core.config import Prescription

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CatalogEntry:
    """A stored PSF, the asset derived from it and the optics it was built with."""

    prescription: Prescription
    psf: np.ndarray
    asset: Any = None
    wavelength_nm: Optional[float] = None
    blur_strength: Optional[float] = None

    def matches(self, size: int, wavelength_nm: float, blur_strength: float) -> bool:
        """True if the stored PSF was built for this grid size and optics."""

        if np.shape(self.psf) != (size, size):
            return False
        if self.wavelength_nm is None or self.blur_strength is None:
            return False
        return math.isclose(self.wavelength_nm, wavelength_nm) and math.isclose(
            self.blur_strength, blur_strength
        )


@runtime_checkable
class PSFCatalog(Protocol):
    """Lookup/insert contract keyed by approximate prescription equality."""

    def lookup(self, prescription: Prescription) -> Optional[CatalogEntry]:
        ...

    def upsert(
        self,
        prescription: Prescription,
        psf: np.ndarray,
        asset: Any = None,
        wavelength_nm: Optional[float] = None,
        blur_strength: Optional[float] = None,
    ) -> None:
        ...


class InMemoryPSFCatalog:
    """
    List-backed catalog.

    Entries are matched with ``Prescription.__eq__`` so that jitter below the
    prescription tolerance hits the same entry. Upserting replaces any entry
    with an equal prescription.
    """

    def __init__(self) -> None:
        self._entries: List[CatalogEntry] = []
        self._lock = threading.Lock()

    def lookup(self, prescription: Prescription) -> Optional[CatalogEntry]:
        with self._lock:
            for entry in self._entries:
                if entry.prescription == prescription:
                    return entry
        return None

    def upsert(
        self,
        prescription: Prescription,
        psf: np.ndarray,
        asset: Any = None,
        wavelength_nm: Optional[float] = None,
        blur_strength: Optional[float] = None,
    ) -> None:
        entry = CatalogEntry(prescription, psf, asset, wavelength_nm, blur_strength)
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.prescription != prescription]
            if len(self._entries) != before:
                logger.debug("Replacing catalog entry for %s", prescription)
            self._entries.append(entry)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, prescription: object) -> bool:
        return isinstance(prescription, Prescription) and self.lookup(prescription) is not None
