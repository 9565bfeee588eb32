"""Distribution composition from a baseline survival curve and risk scores.

Given a baseline discrete survival distribution S0 and one risk score lp per
individual, this module predicts a full survival distribution per individual
under one of three linear model forms:

- aft (accelerated failure time): S(t) = S0(t / exp(lp))
- ph (proportional hazards):      S(t) = S0(t) ^ exp(lp)
- po (proportional odds):         S(t) = S0(t) / (exp(-lp) + (1 - exp(-lp)) * S0(t))

When a prediction has no linear predictor its ranking score is used in its
place. This assumes the ranking score lives on the linear predictor scale,
which may be a strong and unreasonable assumption for many models.

Only discrete baselines are supported, e.g. a Kaplan-Meier or Nelson-Aalen
estimate; every composed distribution shares the baseline's support.
"""

import logging
from enum import Enum
from typing import Union

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator

from .distributions import DiscreteDistribution, VectorDistribution
from .exceptions import (
    IdentityMismatch,
    InvalidBaselineDistribution,
    MissingRiskScore,
    UnsupportedForm,
)
from .prediction import PredictionBundle

logger = logging.getLogger(__name__)


class Form(str, Enum):
    """Linear model forms relating an individual's survival to the baseline."""

    AFT = 'aft'
    PH = 'ph'
    PO = 'po'

    @classmethod
    def parse(cls, form: Union[str, 'Form']) -> 'Form':
        """Convert a form name to a Form.

        Raises:
            UnsupportedForm: If form is not 'aft', 'ph' or 'po'.
        """
        try:
            return cls(form)
        except ValueError:
            raise UnsupportedForm(
                f"Unsupported form: {form!r}. Must be one of {[f.value for f in cls]}") from None


def _ph_cdf(baseline: DiscreteDistribution, lp: np.ndarray) -> np.ndarray:
    surv = baseline.survival(baseline.support)
    return 1.0 - surv[np.newaxis, :] ** np.exp(lp)[:, np.newaxis]


def _aft_cdf(baseline: DiscreteDistribution, lp: np.ndarray) -> np.ndarray:
    # Step lookup of the baseline CDF at rescaled, generally off-grid, times
    scaled = baseline.support[np.newaxis, :] / np.exp(lp)[:, np.newaxis]
    return baseline.cdf(scaled)


def _po_cdf(baseline: DiscreteDistribution, lp: np.ndarray) -> np.ndarray:
    surv = baseline.survival(baseline.support)[np.newaxis, :]
    inv_odds = np.exp(-lp)[:, np.newaxis]
    return 1.0 - surv / (inv_odds + (1.0 - inv_odds) * surv)


_FORMULAS = {
    Form.AFT: _aft_cdf,
    Form.PH: _ph_cdf,
    Form.PO: _po_cdf,
}


def _check_config(form: Union[str, Form], overwrite: bool) -> Form:
    if not isinstance(overwrite, (bool, np.bool_)):
        raise ValueError("overwrite must be a boolean")
    return Form.parse(form)


def _identical(a, b) -> bool:
    """Same values, order and dtype; missing values compare equal."""
    if a is None or b is None:
        return a is None and b is None
    return pd.DataFrame(np.asarray(a)).equals(pd.DataFrame(np.asarray(b)))


def _resolve_baseline(base: Union[DiscreteDistribution, PredictionBundle]) -> DiscreteDistribution:
    if isinstance(base, PredictionBundle):
        if base.distribution is None or len(base.distribution) == 0:
            raise InvalidBaselineDistribution("Baseline prediction carries no distribution")
        # Baseline estimators predict the same curve for every row
        baseline = base.distribution[0]
    elif isinstance(base, DiscreteDistribution):
        baseline = base
    else:
        raise InvalidBaselineDistribution(
            f"Cannot read a baseline distribution from {type(base).__name__}")
    return baseline.validate()


def _resolve_risk_score(pred: PredictionBundle) -> np.ndarray:
    if pred.lp is not None:
        lp = pred.lp
    elif pred.crank is not None:
        logger.warning("No linear predictor available, using crank as lp")
        lp = pred.crank
    else:
        raise MissingRiskScore("Prediction must supply a linear predictor (lp) or ranking score (crank)")
    if np.isnan(lp).any():
        raise MissingRiskScore("Risk scores contain missing values")
    return lp


def compose(base: Union[DiscreteDistribution, PredictionBundle],
            pred: PredictionBundle,
            form: Union[str, Form] = 'aft',
            overwrite: bool = False) -> PredictionBundle:
    """Compose a survival distribution per row from a baseline and risk scores.

    Args:
        base: Baseline survival distribution, either directly or as a
            prediction whose distribution holds the baseline curve. In the
            latter case its row identifiers and truth must match pred.
        pred: Prediction supplying lp and/or crank per row.
        form: Model form, one of 'aft', 'ph' or 'po'. Defaults to 'aft'.
        overwrite: If False and pred already has a distribution, pred is
            returned unchanged. If True the distribution is recomputed and
            replaced. Defaults to False.

    Returns:
        PredictionBundle: New prediction with the same row identifiers and
        truth, the composed distribution, crank (pred's crank, else the risk
        score used) and lp (pred's lp, else None).

    Raises:
        UnsupportedForm: If form is not recognised.
        ValueError: If overwrite is not a boolean.
        MissingRiskScore: If pred has neither lp nor crank, or they contain NaN.
        InvalidBaselineDistribution: If base does not hold a valid distribution.
        IdentityMismatch: If row identifiers or truth differ between base and pred.
    """
    form = _check_config(form, overwrite)

    if pred.distribution is not None and not overwrite:
        logger.debug("Prediction already has a distribution, skipping composition")
        return pred

    lp = _resolve_risk_score(pred)
    baseline = _resolve_baseline(base)

    if isinstance(base, PredictionBundle):
        if not _identical(base.row_ids, pred.row_ids):
            raise IdentityMismatch("Row identifiers of base and pred differ")
        if not _identical(base.truth, pred.truth):
            raise IdentityMismatch("Truth of base and pred differs")

    logger.debug("Composing %s distributions for %d rows over %d time points",
                 form.value, len(lp), len(baseline.support))
    cdf = _FORMULAS[form](baseline, lp)

    return PredictionBundle(
        row_ids=pred.row_ids,
        truth=pred.truth,
        crank=pred.crank if pred.crank is not None else lp,
        lp=pred.lp,
        distribution=VectorDistribution(baseline.support, cdf),
    )


class DistrCompositor(BaseEstimator):
    """Estimator wrapper around :func:`compose`.

    Composition learns nothing, so ``fit`` only checks the parameters and
    ``predict`` does the work.

    Attributes:
        form (str): Model form, 'aft', 'ph' or 'po'.
        overwrite (bool): Whether to replace an existing distribution.
    """

    def __init__(self, form: str = 'aft', overwrite: bool = False):
        self.form = form
        self.overwrite = overwrite

    def fit(self, base=None, pred=None) -> 'DistrCompositor':
        """Validate parameters. Inputs are accepted and ignored.

        Returns:
            DistrCompositor: self.
        """
        _check_config(self.form, self.overwrite)
        self.is_fitted_ = True
        return self

    def predict(self, base: Union[DiscreteDistribution, PredictionBundle],
                pred: PredictionBundle) -> PredictionBundle:
        """Compose distributions for pred. See :func:`compose`."""
        return compose(base, pred, form=self.form, overwrite=self.overwrite)
