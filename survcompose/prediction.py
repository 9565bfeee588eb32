"""Survival prediction container.

A PredictionBundle holds everything a survival model predicts for a set of
rows: a ranking score, an optional linear predictor and an optional
distribution per row, together with the row identifiers and ground truth the
predictions were made for.
"""

import numpy as np
from typing import Optional, Tuple, Union
from lifelines.utils import concordance_index

from .distributions import VectorDistribution

_FIELDS = ('row_ids', 'truth', 'crank', 'lp', 'distribution')


def _frozen(values, dtype=None) -> np.ndarray:
    """Read-only copy, so a bundle never changes after construction."""
    values = np.array(values, dtype=dtype)
    values.setflags(write=False)
    return values


class PredictionBundle:
    """Per-row survival predictions.

    Per-row arrays are copied on construction and stored read-only.

    Attributes:
        row_ids (np.ndarray): Row identifiers of shape (n_samples,).
        truth (Optional[np.ndarray]): Observed (time, event) pairs of shape
            (n_samples, 2), or any per-row labels.
        crank (Optional[np.ndarray]): Ranking score, higher means higher risk.
        lp (Optional[np.ndarray]): Linear predictor.
        distribution (Optional[VectorDistribution]): Predicted distribution
            per row.
    """

    def __init__(self,
                 row_ids: Optional[Union[np.ndarray, list]] = None,
                 truth: Optional[np.ndarray] = None,
                 crank: Optional[Union[np.ndarray, list]] = None,
                 lp: Optional[Union[np.ndarray, list]] = None,
                 distribution: Optional[VectorDistribution] = None):
        """Initialize the bundle.

        Args:
            row_ids: Row identifiers. Defaults to 0..n_samples-1, with
                n_samples taken from the first other field supplied.
            truth: Ground-truth labels, one entry per row.
            crank: Ranking scores, one per row.
            lp: Linear predictor, one per row.
            distribution: Predicted distributions, one per row.

        Raises:
            ValueError: If no field is supplied, a score is not one-dimensional,
                or the fields disagree on the number of rows. A zero-length
                score on a non-empty bundle is such a disagreement.
            TypeError: If distribution is not a VectorDistribution.
        """
        if distribution is not None and not isinstance(distribution, VectorDistribution):
            raise TypeError("distribution must be a VectorDistribution")

        crank = self._as_score(crank, 'crank')
        lp = self._as_score(lp, 'lp')
        if truth is not None:
            truth = _frozen(truth)

        fields = {'truth': truth, 'crank': crank, 'lp': lp, 'distribution': distribution}
        if row_ids is None:
            supplied = [len(v) for v in fields.values() if v is not None]
            if not supplied:
                raise ValueError("Cannot infer the number of rows from an empty prediction")
            row_ids = np.arange(supplied[0])
        row_ids = _frozen(row_ids)
        if row_ids.ndim != 1:
            raise ValueError("row_ids must be one-dimensional")

        n_samples = len(row_ids)
        for name, value in fields.items():
            if value is not None and len(value) != n_samples:
                raise ValueError(
                    f"Length of {name} ({len(value)}) does not match number of rows ({n_samples})")

        self.row_ids = row_ids
        self.truth = truth
        self.crank = crank
        self.lp = lp
        self.distribution = distribution

    @staticmethod
    def _as_score(values, name: str) -> Optional[np.ndarray]:
        if values is None:
            return None
        values = _frozen(values, dtype=float)
        if values.ndim != 1:
            raise ValueError(f"{name} must be one-dimensional")
        return values

    def __len__(self) -> int:
        return len(self.row_ids)

    def __repr__(self) -> str:
        return f"PredictionBundle(n_samples={len(self)}, predict_types={self.predict_types})"

    @property
    def predict_types(self) -> Tuple[str, ...]:
        """Names of the prediction types present, from 'crank', 'distr' and 'lp'."""
        present = {'crank': self.crank, 'distr': self.distribution, 'lp': self.lp}
        return tuple(name for name, value in present.items() if value is not None)

    def replace(self, **changes) -> 'PredictionBundle':
        """Return a new bundle with some fields swapped.

        Args:
            **changes: New values for any of row_ids, truth, crank, lp and
                distribution. Pass None to drop a field.

        Returns:
            PredictionBundle: The new bundle. This bundle is left unchanged.

        Raises:
            TypeError: If an unknown field is named.
        """
        unknown = set(changes) - set(_FIELDS)
        if unknown:
            raise TypeError(f"Unknown prediction fields: {sorted(unknown)}")
        values = {name: getattr(self, name) for name in _FIELDS}
        values.update(changes)
        return PredictionBundle(**values)

    def concordance(self) -> float:
        """Harrell's concordance index of the ranking score against the truth.

        Returns:
            float: C-index between 0 and 1.

        Raises:
            ValueError: If crank is absent or truth is not (time, event) pairs.
        """
        if self.crank is None:
            raise ValueError("Concordance requires a ranking score")
        if self.truth is None or self.truth.ndim != 2 or self.truth.shape[1] != 2:
            raise ValueError("Concordance requires truth as (time, event) pairs")
        # lifelines expects higher scores for longer survival
        return concordance_index(np.array(self.truth[:, 0]), -self.crank, np.array(self.truth[:, 1]))
