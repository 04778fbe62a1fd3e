"""LISA cluster labels under three centering conventions.

All three functions take ``(x, lag, significance, cutoff)`` and return an
object array of :class:`ClusterLabel`. A unit whose significance exceeds
``cutoff`` (or is NaN) is ``Not-Significant``. A deviation of exactly zero
counts as "High".
"""

import numpy as np

from .errors import ShapeMismatchError
from .models import ClusterLabel

_QUADRANTS = {
    (True, True): ClusterLabel.HIGH_HIGH,
    (False, True): ClusterLabel.LOW_HIGH,
    (False, False): ClusterLabel.LOW_LOW,
    (True, False): ClusterLabel.HIGH_LOW,
}


def _prepare(x, lag, significance):
    x = np.asarray(x, dtype=float)
    lag = np.asarray(lag, dtype=float)
    significance = np.asarray(significance, dtype=float)
    if not (x.shape == lag.shape == significance.shape):
        raise ShapeMismatchError(
            f"shapes differ: x {x.shape}, lag {lag.shape}, "
            f"significance {significance.shape}")
    return x, lag, significance


def _label(high_x, high_lag, significance, cutoff):
    labels = np.empty(high_x.shape[0], dtype=object)
    for i, key in enumerate(zip(high_x, high_lag)):
        labels[i] = _QUADRANTS[(bool(key[0]), bool(key[1]))]
    not_significant = ~(significance <= cutoff)  # NaN included
    labels[not_significant] = ClusterLabel.NOT_SIGNIFICANT
    return labels


def mean_labels(x, lag, significance, cutoff=0.05):
    """Quadrants of ``x - mean(x)`` and the lag of those deviations.

    ``lag`` must be ``sum_j w_ij (x_j - mean(x))``; it is compared with 0
    as given, without re-centering.
    """
    x, lag, significance = _prepare(x, lag, significance)
    return _label(x - x.mean() >= 0, lag >= 0, significance, cutoff)


def median_labels(x, lag, significance, cutoff=0.05):
    """Quadrants of ``x`` and ``lag``, each centered at its own median."""
    x, lag, significance = _prepare(x, lag, significance)
    return _label(x - np.median(x) >= 0, lag - np.median(lag) >= 0,
                  significance, cutoff)


def pysal_labels(x, lag, significance, cutoff=0.05):
    """Quadrants as reported by PySAL-style GIS output.

    ``x`` is centered at its mean and the plain lag ``sum_j w_ij x_j`` at
    the mean of the lag vector itself.
    """
    x, lag, significance = _prepare(x, lag, significance)
    return _label(x - x.mean() >= 0, lag - lag.mean() >= 0,
                  significance, cutoff)


def classify(x, lag, lag_deviation, significance, cutoff=0.05):
    """Labels under all three conventions.

    Parameters
    ----------
    x : (n,) array
    lag : (n,) array
        Spatial lag of ``x``.
    lag_deviation : (n,) array
        Spatial lag of ``x - mean(x)``.
    significance : (n,) array
    cutoff : float

    Returns
    -------
    dict with keys 'mean', 'median', 'pysal'.
    """
    return {
        "mean": mean_labels(x, lag_deviation, significance, cutoff),
        "median": median_labels(x, lag, significance, cutoff),
        "pysal": pysal_labels(x, lag, significance, cutoff),
    }
