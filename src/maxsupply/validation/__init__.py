"""Validation and sanity checks for max supply projections."""

from .sanity_checks import SanityChecker, ValidationWarning, validate_projection

__all__ = [
    "SanityChecker",
    "ValidationWarning",
    "validate_projection"
]
