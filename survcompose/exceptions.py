"""Exceptions raised by the distribution compositor.

All errors are subclasses of ``ValueError`` so callers that already guard
against bad input with ``except ValueError`` keep working.
"""


class CompositionError(ValueError):
    """Base class for failed composition preconditions."""


class MissingRiskScore(CompositionError):
    """Raised when a prediction carries neither a linear predictor nor a ranking score."""


class InvalidBaselineDistribution(CompositionError):
    """Raised when the baseline does not describe a valid discrete survival distribution."""


class IdentityMismatch(CompositionError):
    """Raised when row identifiers or ground truth differ between inputs."""


class UnsupportedForm(CompositionError):
    """Raised for a model form other than 'aft', 'ph' or 'po'."""
