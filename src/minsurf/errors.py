"""Exception hierarchy for surface construction and relaxation.

Structure:
- InvalidConfigurationError: bad options, surfaced immediately
- InvalidSelectionError: unknown surface code
- NumericalInstabilityError: non-finite coordinates or special-function values
- SeriesConvergenceError: a theta series did not terminate
- TopologyError: mesh invariants broken after building
"""


class MinimalSurfaceError(Exception):
    """Base class for all minsurf errors."""


class InvalidConfigurationError(MinimalSurfaceError, ValueError):
    """Option combination or mesh size that the requested surface cannot use."""


class InvalidSelectionError(InvalidConfigurationError):
    """Surface selection code outside the catalogue."""


class NumericalInstabilityError(MinimalSurfaceError, ArithmeticError):
    """A coordinate or special-function value is NaN or infinite."""


class SeriesConvergenceError(NumericalInstabilityError):
    """A series did not reach its termination tolerance within the term budget."""


class TopologyError(MinimalSurfaceError, RuntimeError):
    """Dangling, unused or inconsistent vertex references in a built mesh."""
