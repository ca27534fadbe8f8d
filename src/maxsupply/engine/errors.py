"""Error taxonomy for the projection engine.

All errors are fatal: they are raised where the problem is detected and
propagate to the caller unmodified. No partial projection is ever returned.
"""


class ProjectionError(ValueError):
    """Base class for projection failures."""


class InputIntegrityError(ProjectionError):
    """Malformed position, duplicate id, negative amount or schedule gap."""


class HorizonError(ProjectionError):
    """Target day before the anchor day, or horizon above the iteration cap."""


class ArithmeticOverflowError(ProjectionError):
    """An intermediate amount left the representable uint256 range."""
