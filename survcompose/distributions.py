"""Discrete survival distributions for composed predictions.

This module provides the step-function distributions the compositor reads and
produces:
- DiscreteDistribution: A single right-continuous step function over an ordered
  support, used both for the baseline and for one individual's prediction
- VectorDistribution: N distributions sharing one immutable support array

Distributions are stored through their cumulative distribution function on the
support. Between support points the CDF is constant and below the first support
point it is zero. The mass on the support need not sum to one; any remainder
lies beyond the last support point.
"""

import numpy as np
import pandas as pd
from typing import Optional, Union

from .exceptions import InvalidBaselineDistribution

ArrayLike = Union[float, np.ndarray, list]

_QUANTILE_TOL = 1e-12


class _StepFunction:
    """Queries shared by single and vector step-function distributions.

    Subclasses set ``support`` (shape (m,)) and ``_cdf`` (shape (..., m)). Each
    query returns an array of shape ``_cdf.shape[:-1] + np.shape(x)``.
    """

    support: np.ndarray
    _cdf: np.ndarray

    def _finalize(self, out: np.ndarray):
        return out

    def _lookup(self, values: np.ndarray, x: ArrayLike) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        idx = np.searchsorted(self.support, x, side='right') - 1
        out = np.where(idx >= 0, values[..., np.clip(idx, 0, None)], 0.0)
        return np.where(np.isnan(x), np.nan, out)

    def _at_support(self, values: np.ndarray, x: ArrayLike) -> np.ndarray:
        x = np.asarray(x, dtype=float)
        m = len(self.support)
        pos = np.minimum(np.searchsorted(self.support, x, side='left'), m - 1)
        hit = self.support[pos] == x
        out = np.where(hit, values[..., pos], 0.0)
        return np.where(np.isnan(x), np.nan, out)

    @property
    def mass(self) -> np.ndarray:
        """Probability mass at each support point."""
        return np.diff(self._cdf, prepend=0.0, axis=-1)

    def cdf(self, x: ArrayLike):
        """Evaluate the cumulative distribution function.

        Args:
            x: Time or array of times.

        Returns:
            F(x), the CDF at the largest support point not exceeding x, or 0 when
            x lies below the support.
        """
        return self._finalize(self._lookup(self._cdf, x))

    def survival(self, x: ArrayLike):
        """Evaluate the survival function S(x) = 1 - F(x)."""
        return self._finalize(1.0 - self._lookup(self._cdf, x))

    def pdf(self, x: ArrayLike):
        """Probability mass at x; zero away from the support."""
        return self._finalize(self._at_support(self.mass, x))

    def hazard(self, x: ArrayLike):
        """Discrete hazard at x.

        The hazard at support point t_i is mass(t_i) / S(t_{i-1}), with
        S(t_0) = 1. Points off the support have zero hazard.
        """
        at_risk = 1.0 - np.concatenate(
            [np.zeros(self._cdf.shape[:-1] + (1,)), self._cdf[..., :-1]], axis=-1)
        with np.errstate(divide='ignore', invalid='ignore'):
            hazards = self.mass / at_risk
        return self._finalize(self._at_support(hazards, x))

    def cumulative_hazard(self, x: ArrayLike):
        """Cumulative hazard -log S(x); infinite where survival reaches zero."""
        with np.errstate(divide='ignore'):
            return self._finalize(-np.log(1.0 - self._lookup(self._cdf, x)))

    def quantile(self, p: ArrayLike):
        """Evaluate the quantile function.

        Args:
            p: Probability or array of probabilities in [0, 1].

        Returns:
            The smallest support point whose CDF is at least p. Where p exceeds
            the mass placed on the support the quantile is ``np.inf``.

        Raises:
            ValueError: If any p lies outside [0, 1].
        """
        p = np.asarray(p, dtype=float)
        if np.any((p < 0) | (p > 1)) or np.isnan(p).any():
            raise ValueError("Probabilities must lie in [0, 1]")
        m = len(self.support)
        # Count of CDF values below p, i.e. a left searchsorted on each row.
        # CDF values are stored as 1 - S, so equality is checked with a tolerance.
        idx = np.sum(self._cdf[..., :, np.newaxis] < p.ravel() - _QUANTILE_TOL, axis=-2)
        out = np.where(idx < m, self.support[np.minimum(idx, m - 1)], np.inf)
        return self._finalize(out.reshape(out.shape[:-1] + p.shape))

    def median(self):
        """Median survival time, ``quantile(0.5)``."""
        return self.quantile(0.5)

    def restricted_mean(self, tau: Optional[float] = None):
        """Restricted mean survival time.

        Args:
            tau: Upper integration limit. Defaults to the last support point.

        Returns:
            Area under the survival step function on [0, tau].

        Raises:
            ValueError: If tau is negative.
        """
        if tau is None:
            tau = float(self.support[-1])
        if tau < 0:
            raise ValueError("tau must be non-negative")
        knots = np.concatenate(([0.0], self.support[(self.support > 0) & (self.support < tau)], [tau]))
        widths = np.diff(knots)
        surv = 1.0 - self._lookup(self._cdf, knots[:-1])
        return self._finalize(np.sum(surv * widths, axis=-1))


class DiscreteDistribution(_StepFunction):
    """A discrete survival distribution over an ordered support.

    Attributes:
        support (np.ndarray): Strictly increasing time points t_1 < ... < t_m.
    """

    def __init__(self, support: ArrayLike, cdf: ArrayLike):
        """Initialize the distribution from CDF values on the support.

        Args:
            support: Time points of shape (m,).
            cdf: CDF values F(t_i) of shape (m,).

        Raises:
            ValueError: If support is not one-dimensional or the lengths differ.
        """
        support = np.asarray(support, dtype=float)
        cdf = np.asarray(cdf, dtype=float)
        if support.ndim != 1:
            raise ValueError("support must be one-dimensional")
        if cdf.shape != support.shape:
            raise ValueError("support and cdf must have the same length")
        self.support = support
        self._cdf = cdf

    @classmethod
    def from_cdf(cls, times: ArrayLike, cdf: ArrayLike) -> 'DiscreteDistribution':
        return cls(times, cdf)

    @classmethod
    def from_survival(cls, times: ArrayLike, survival: ArrayLike) -> 'DiscreteDistribution':
        """Build a distribution from survival probabilities S(t_i)."""
        return cls(times, 1.0 - np.asarray(survival, dtype=float))

    @classmethod
    def from_fitter(cls, fitter) -> 'DiscreteDistribution':
        """Adapt a fitted lifelines univariate estimator.

        Args:
            fitter: A fitted ``KaplanMeierFitter`` (read through its
                ``survival_function_``) or ``NelsonAalenFitter`` (read through its
                ``cumulative_hazard_``, with S = exp(-H)).

        Returns:
            DiscreteDistribution: Distribution over the fitter's timeline.

        Raises:
            InvalidBaselineDistribution: If the fitter exposes neither estimate,
                e.g. because it has not been fitted.
        """
        if hasattr(fitter, 'survival_function_'):
            frame = fitter.survival_function_
            survival = frame.iloc[:, 0].to_numpy(dtype=float)
        elif hasattr(fitter, 'cumulative_hazard_'):
            frame = fitter.cumulative_hazard_
            survival = np.exp(-frame.iloc[:, 0].to_numpy(dtype=float))
        else:
            raise InvalidBaselineDistribution(
                f"{type(fitter).__name__} exposes no fitted survival or cumulative hazard estimate")
        return cls.from_survival(frame.index.to_numpy(dtype=float), survival)

    def _finalize(self, out: np.ndarray):
        return float(out) if np.ndim(out) == 0 else out

    def validate(self) -> 'DiscreteDistribution':
        """Check that this describes a valid survival distribution.

        Returns:
            DiscreteDistribution: self, so the call can be chained.

        Raises:
            InvalidBaselineDistribution: If the support is empty, non-finite,
                negative or not strictly increasing, or if survival values fall
                outside [0, 1] or increase over time.
        """
        if self.support.size == 0:
            raise InvalidBaselineDistribution("Baseline support is empty")
        if not np.all(np.isfinite(self.support)):
            raise InvalidBaselineDistribution("Baseline support contains non-finite times")
        if (self.support < 0).any():
            raise InvalidBaselineDistribution("Baseline support times must be non-negative")
        if (np.diff(self.support) <= 0).any():
            raise InvalidBaselineDistribution("Baseline support must be strictly increasing")
        surv = 1.0 - self._cdf
        if np.isnan(surv).any() or (surv < 0).any() or (surv > 1).any():
            raise InvalidBaselineDistribution("Baseline survival probabilities must lie in [0, 1]")
        if (np.diff(surv) > 0).any():
            raise InvalidBaselineDistribution("Baseline survival probabilities must be non-increasing")
        return self

    def __len__(self) -> int:
        return len(self.support)

    def __repr__(self) -> str:
        return f"DiscreteDistribution(n_support={len(self.support)})"


class VectorDistribution(_StepFunction):
    """N discrete distributions over one shared support.

    The support is stored once, read-only, and every element returned by
    indexing refers to that same array. Only the CDF rows differ.

    Attributes:
        support (np.ndarray): Shared time points of shape (m,).
    """

    def __init__(self, support: ArrayLike, cdf: ArrayLike):
        """Initialize from a CDF matrix.

        Args:
            support: Time points of shape (m,).
            cdf: CDF values of shape (n_samples, m).

        Raises:
            ValueError: If the shapes are inconsistent.
        """
        support = np.array(support, dtype=float)
        cdf = np.array(cdf, dtype=float)
        if support.ndim != 1:
            raise ValueError("support must be one-dimensional")
        if cdf.ndim != 2 or cdf.shape[1] != support.shape[0]:
            raise ValueError("cdf must have shape (n_samples, len(support))")
        support.setflags(write=False)
        cdf.setflags(write=False)
        self.support = support
        self._cdf = cdf

    def __len__(self) -> int:
        return self._cdf.shape[0]

    def __getitem__(self, i):
        if isinstance(i, slice):
            out = VectorDistribution.__new__(VectorDistribution)
            out.support = self.support
            out._cdf = self._cdf[i]
            return out
        return DiscreteDistribution(self.support, self._cdf[i])

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __repr__(self) -> str:
        return f"VectorDistribution(n_samples={len(self)}, n_support={len(self.support)})"

    def to_frame(self, index: Optional[ArrayLike] = None) -> pd.DataFrame:
        """Survival probabilities as a DataFrame.

        Args:
            index: Row labels, e.g. the row identifiers of a prediction.
                Defaults to a range index.

        Returns:
            pd.DataFrame: One row per individual, one column per support time.
        """
        return pd.DataFrame(1.0 - self._cdf, index=index, columns=self.support)
