"""
Exceptions raised by the decay source pipeline.

"No decay data" for a nuclide is not an exception: providers return None
and the nuclide is simply left out of the spectrum.

License: MIT
"""

from __future__ import annotations


class DecaySourceError(Exception):
    """Base class for all pipeline errors."""


class ParseError(DecaySourceError, ValueError):
    """A step-selection expression could not be parsed."""

    def __init__(self, token: str, expression: str = ""):
        self.token = token
        self.expression = expression or token
        super().__init__(
            f"Invalid step selection '{self.expression}' (bad token '{token}'). "
            "Use integers ('0 1 2'), a range (0-2), or 'all'."
        )


class DataUnavailable(DecaySourceError, RuntimeError):
    """The decay data source could not answer (network failure, timeout)."""


class NormalizationError(DecaySourceError, ValueError):
    """Renormalized probabilities do not sum to 1 within tolerance."""
