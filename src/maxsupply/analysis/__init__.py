"""Analysis tools for max supply projections."""

from .dilution import DilutionImpact, DilutionReport, simulate_dilution

__all__ = [
    "DilutionImpact",
    "DilutionReport",
    "simulate_dilution",
]
