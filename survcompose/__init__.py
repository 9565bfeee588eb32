"""survcompose: Survival distributions composed from risk scores.

This package provides tools for:
- Discrete step-function survival distributions
- Per-row survival prediction containers
- Composing a baseline survival curve with linear predictors or ranking
  scores under accelerated failure time, proportional hazards or
  proportional odds forms
- Plotting composed survival curves
"""

__version__ = "0.1.0"

from .distributions import DiscreteDistribution, VectorDistribution
from .prediction import PredictionBundle
from .compositor import Form, DistrCompositor, compose
from .exceptions import (
    CompositionError,
    MissingRiskScore,
    InvalidBaselineDistribution,
    IdentityMismatch,
    UnsupportedForm
)
from .utils import plot_survival_curves

__all__ = [
    'DiscreteDistribution',
    'VectorDistribution',
    'PredictionBundle',
    'Form',
    'DistrCompositor',
    'compose',
    'CompositionError',
    'MissingRiskScore',
    'InvalidBaselineDistribution',
    'IdentityMismatch',
    'UnsupportedForm',
    'plot_survival_curves'
]
