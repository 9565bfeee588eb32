"""Tests for the PredictionBundle container."""

import numpy as np
import pytest

from survcompose.distributions import DiscreteDistribution, VectorDistribution
from survcompose.prediction import PredictionBundle


@pytest.fixture
def sample_truth():
    times = np.array([1.0, 2.0, 3.0, 4.0])
    events = np.array([1, 1, 0, 1])
    return np.column_stack((times, events))


def test_default_row_ids():
    pred = PredictionBundle(crank=[0.3, 0.1, 0.2])
    np.testing.assert_array_equal(pred.row_ids, [0, 1, 2])
    assert len(pred) == 3
    assert pred.predict_types == ('crank',)


def test_predict_types():
    dist = VectorDistribution([1.0, 2.0], [[0.1, 0.5], [0.2, 0.6]])
    pred = PredictionBundle(row_ids=[10, 11], crank=[1.0, 2.0], lp=[1.0, 2.0], distribution=dist)
    assert pred.predict_types == ('crank', 'distr', 'lp')


def test_length_mismatch():
    with pytest.raises(ValueError):
        PredictionBundle(row_ids=[1, 2, 3], crank=[0.1, 0.2])
    with pytest.raises(ValueError):
        PredictionBundle(crank=[0.1, 0.2], lp=[0.1, 0.2, 0.3])


def test_empty_score_rejected():
    """A zero-length score on a non-empty bundle is not treated as absent."""
    with pytest.raises(ValueError):
        PredictionBundle(row_ids=[1, 2], crank=[0.1, 0.2], lp=[])


def test_no_fields():
    with pytest.raises(ValueError):
        PredictionBundle()


def test_invalid_types():
    with pytest.raises(ValueError):
        PredictionBundle(crank=[[0.1, 0.2]])
    with pytest.raises(TypeError):
        PredictionBundle(crank=[0.1], distribution=DiscreteDistribution([1.0], [0.5]))


def test_replace_leaves_original_unchanged(sample_truth):
    pred = PredictionBundle(truth=sample_truth, crank=[0.4, 0.3, 0.2, 0.1])
    new = pred.replace(lp=[1.0, 2.0, 3.0, 4.0])

    assert new is not pred
    assert pred.lp is None
    np.testing.assert_array_equal(new.lp, [1.0, 2.0, 3.0, 4.0])
    np.testing.assert_array_equal(new.crank, pred.crank)
    np.testing.assert_array_equal(new.truth, pred.truth)

    with pytest.raises(TypeError):
        pred.replace(score=[1.0])


def test_concordance(sample_truth):
    # Higher crank, earlier event
    pred = PredictionBundle(truth=sample_truth, crank=[4.0, 3.0, 2.0, 1.0])
    assert pred.concordance() == pytest.approx(1.0)

    reversed_pred = pred.replace(crank=[1.0, 2.0, 3.0, 4.0])
    assert reversed_pred.concordance() == pytest.approx(0.0)


def test_concordance_requirements(sample_truth):
    with pytest.raises(ValueError):
        PredictionBundle(truth=sample_truth, lp=[1.0, 2.0, 3.0, 4.0]).concordance()
    with pytest.raises(ValueError):
        PredictionBundle(crank=[1.0, 2.0]).concordance()


def test_fields_copied_and_read_only(sample_truth):
    """Writing to the caller's arrays does not change a built bundle."""
    lp = np.array([0.1, 0.2, 0.3, 0.4])
    row_ids = np.array([5, 6, 7, 8])
    pred = PredictionBundle(row_ids=row_ids, truth=sample_truth, lp=lp)

    lp[0] = 99.0
    row_ids[0] = 0
    sample_truth[0, 0] = 50.0

    assert pred.lp[0] == 0.1
    assert pred.row_ids[0] == 5
    assert pred.truth[0, 0] == 1.0
    assert lp.flags.writeable
    for values in (pred.row_ids, pred.truth, pred.lp):
        assert not values.flags.writeable
    with pytest.raises(ValueError):
        pred.lp[0] = 1.0
