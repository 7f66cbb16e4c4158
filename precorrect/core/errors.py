"""
Exception types raised at the public call boundaries.
"""

from __future__ import annotations


class InvalidInputError(ValueError):
    """Structurally invalid input: missing image or prescription, bad sizes."""
