"""Tests for plotting utilities."""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from survcompose import DiscreteDistribution, PredictionBundle, compose
from survcompose.utils import plot_survival_curves


@pytest.fixture
def composed():
    baseline = DiscreteDistribution.from_survival([1.0, 2.0, 3.0], [0.9, 0.6, 0.2])
    pred = PredictionBundle(lp=np.array([-0.5, 0.0, 0.5]))
    return compose(baseline, pred, form='ph')


def test_plot_vector_distribution(composed, tmp_path):
    save_path = tmp_path / 'curves.png'
    plot_survival_curves(composed.distribution, labels=['low', 'mid', 'high'],
                         save_path=str(save_path))
    assert save_path.exists()


def test_plot_single_distribution(composed, tmp_path):
    save_path = tmp_path / 'single.png'
    plot_survival_curves(composed.distribution[0], save_path=str(save_path))
    assert save_path.exists()


def test_plot_label_mismatch(composed):
    with pytest.raises(ValueError):
        plot_survival_curves(composed.distribution, labels=['only one'])
