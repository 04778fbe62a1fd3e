"""Local Moran statistic and its moments under total randomization.

References
----------
Anselin, L. (1995). Local Indicators of Spatial Association—LISA.
Geographical Analysis, 27(2), 93-115.
"""

from collections import namedtuple

import numpy as np
from scipy import stats

from .models import Alternative

GlobalMoments = namedtuple("GlobalMoments", ["n", "mean", "z", "m2", "m4", "b2"])


def global_moments(x):
    """Moments of the full sample, shared by every unit.

    Parameters
    ----------
    x : (n,) array without missing values.

    Returns
    -------
    GlobalMoments
        ``z`` are the deviations from the mean, ``m2 = sum(z**2)/n``,
        ``m4 = sum(z**4)/n`` and ``b2 = m4 / m2**2`` the sample kurtosis.
    """
    n = x.shape[0]
    mean = x.mean()
    z = x - mean
    m2 = (z * z).sum() / n
    m4 = (z ** 4).sum() / n
    b2 = m4 / m2 ** 2 if m2 > 0 else np.nan
    return GlobalMoments(n, mean, z, m2, m4, b2)


def lag_deviations(z, nb, wt):
    """``sum_j w_ij z_j`` for every unit; 0 for isolates."""
    lz = np.zeros(z.shape[0])
    for i in range(z.shape[0]):
        idx = nb.index(i)
        if idx.size:
            lz[i] = wt.weights(i) @ z[idx]
    return lz


def local_statistic(moments, lz):
    """``I_i = (z_i / m2) * sum_j w_ij z_j``."""
    return (moments.z / moments.m2) * lz


def randomization_moments(moments, wt, cardinalities):
    """Analytic expectation and variance of I_i under total randomization.

    Parameters
    ----------
    moments : GlobalMoments
    wt : WeightScheme
    cardinalities : (n,) int array
        Isolates (0 neighbors) get NaN for both moments.

    Returns
    -------
    eii, var_ii : (n,) arrays
    """
    n = moments.n
    b2 = moments.b2
    wi = wt.row_sums()
    wi2 = wt.squared_row_sums()
    n1 = n - 1

    eii = -wi / n1
    var_ii = wi2 * (n - b2) / n1
    var_ii += (wi ** 2 - wi2) * (2 * b2 - n) / (n1 * (n - 2))
    var_ii -= (wi / n1) ** 2

    isolated = cardinalities == 0
    eii[isolated] = np.nan
    var_ii[isolated] = np.nan
    return eii, var_ii


def standardize(ii, eii, var_ii):
    """``(I_i - E[I_i]) / sqrt(Var[I_i])``; NaN where the variance is undefined."""
    with np.errstate(invalid="ignore", divide="ignore"):
        return (ii - eii) / np.sqrt(var_ii)


def normal_pvalue(z, alternative=Alternative.TWO_SIDED):
    """Normal-tail p-value of standardized scores; NaN propagates."""
    if alternative == Alternative.GREATER:
        return stats.norm.sf(z)
    if alternative == Alternative.LESS:
        return stats.norm.cdf(z)
    return 2.0 * stats.norm.sf(np.abs(z))
