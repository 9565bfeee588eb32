"""Plotting helpers for composed survival distributions."""

import numpy as np
import matplotlib.pyplot as plt
from typing import List, Optional, Union

from .distributions import DiscreteDistribution, VectorDistribution


def plot_survival_curves(distribution: Union[DiscreteDistribution, VectorDistribution],
                         labels: Optional[List[str]] = None,
                         save_path: Optional[str] = None,
                         title: str = 'Survival Curves') -> None:
    """Plot survival step functions.

    Each curve starts at S = 1 at time 0 and steps down at the support points.

    Args:
        distribution: A single distribution or one distribution per row.
        labels: Labels for the curves. Defaults to 'Curve i'.
        save_path: Path to save the plot. If None, the plot is displayed.
        title: Plot title. Defaults to 'Survival Curves'.

    Raises:
        ValueError: If the number of labels does not match the number of curves.
    """
    if isinstance(distribution, DiscreteDistribution):
        curves = [distribution]
    else:
        curves = list(distribution)
    if labels is not None and len(labels) != len(curves):
        raise ValueError("Number of labels must match number of curves")

    times = np.concatenate(([0.0], distribution.support))

    plt.figure(figsize=(10, 6))
    for i, curve in enumerate(curves):
        label = labels[i] if labels else f'Curve {i}'
        plt.step(times, curve.survival(times), where='post', label=label)

    plt.xlabel('Time')
    plt.ylabel('Survival Probability')
    plt.title(title)
    if labels or len(curves) > 1:
        plt.legend()
    plt.grid(True)

    if save_path:
        plt.savefig(save_path)
    else:
        plt.show()
    plt.close()
