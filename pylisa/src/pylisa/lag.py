"""Spatial lag of a value vector and lag-based imputation of missing values."""

import numpy as np

from .errors import (
    InvalidConfigurationError, MissingValueError, NoNeighborsError,
    ShapeMismatchError,
)
from .spatial import check_alignment

REDUCERS = ("mean", "median", "sum", "min", "max")


def as_values(x):
    """Copy ``x`` into a 1-D float array; None becomes NaN."""
    values = np.array(x, dtype=float)
    if values.ndim != 1:
        raise ShapeMismatchError(
            f"values must be one-dimensional, got shape {values.shape}")
    return values


def neighbor_values(x, nb):
    """Gather the values of each unit's neighbors.

    Parameters
    ----------
    x : array-like of shape (n,)
    nb : NeighborGraph

    Returns
    -------
    list of n arrays
        Entry ``i`` holds ``x[nb.neighbors(i)]`` in neighbor order.
    """
    x = as_values(x)
    check_alignment(x, nb)
    return [x[nb.index(i)] for i in range(nb.n_units)]


def spatial_lag(x, nb, wt=None, reducer="mean", na_okay=False,
                allow_zero=None, reducer_kwargs=None):
    """Aggregate the neighbor values of every unit.

    Parameters
    ----------
    x : array-like of shape (n,)
        Values, NaN (or None) marks a missing value.
    nb : NeighborGraph
    wt : WeightScheme or None
        Edge weights. None gives every neighbor weight 1.
    reducer : str or callable
        ``"mean"`` (weighted mean), ``"median"`` (weighted median),
        ``"sum"`` (``sum_j w_ij x_j``, the classical lag), ``"min"`` or
        ``"max"``. A callable receives the neighbor values only, followed by
        ``reducer_kwargs``.
    na_okay : bool
        If False, a missing neighbor value is an error. If True, missing
        neighbor values are dropped; a unit whose neighbors are all missing
        gets NaN.
    allow_zero : bool or None
        If True, units without neighbors get 0. Otherwise they raise.
    reducer_kwargs : dict or None
        Extra keyword arguments for a callable reducer, e.g.
        ``{"proportiontocut": 0.1}`` for ``scipy.stats.trim_mean``.

    Returns
    -------
    lag : np.ndarray of shape (n,)

    Raises
    ------
    NoNeighborsError, MissingValueError, ShapeMismatchError,
    InvalidConfigurationError
    """
    x = as_values(x)
    return _lag(x, nb, wt, reducer, na_okay, allow_zero, range(len(x)),
                reducer_kwargs)


def impute_missing(x, nb, wt=None, reducer="mean", na_okay=False,
                   allow_zero=None, reducer_kwargs=None):
    """Fill missing entries of ``x`` with the spatial lag of their neighbors.

    Observed entries are returned untouched. Only the lags of the missing
    units are computed, so the ``na_okay`` and ``allow_zero`` policies apply
    to those units alone. Parameters are as in :func:`spatial_lag`.

    Returns
    -------
    filled : np.ndarray of shape (n,)
        Copy of ``x`` with NaN entries replaced. An entry stays NaN when
        all of its neighbors are missing and ``na_okay`` is True.
    """
    x = as_values(x)
    missing = np.flatnonzero(np.isnan(x))
    filled = x.copy()
    if missing.size == 0:
        check_alignment(x, nb, wt)
        _resolve_reducer(reducer, reducer_kwargs)
        return filled
    lag = _lag(x, nb, wt, reducer, na_okay, allow_zero, missing,
               reducer_kwargs)
    filled[missing] = lag[missing]
    return filled


def _lag(x, nb, wt, reducer, na_okay, allow_zero, units,
         reducer_kwargs=None):
    """Compute the lag of ``units``; other entries of the result are NaN."""
    check_alignment(x, nb, wt)
    fun = _resolve_reducer(reducer, reducer_kwargs)

    isolates = [i for i in units if not nb.neighbors(i)]
    if isolates and not allow_zero:
        raise NoNeighborsError(
            "units without neighbors; pass allow_zero=True to assign 0",
            isolates)
    if not na_okay:
        gaps = [i for i in units
                if np.isnan(x[nb.index(i)]).any()]
        if gaps:
            raise MissingValueError(
                "missing values among neighbors; pass na_okay=True to "
                "skip them", gaps)

    lag = np.full(len(x), np.nan)
    for i in units:
        idx = nb.index(i)
        if idx.size == 0:
            lag[i] = 0.0
            continue
        values = x[idx]
        weights = wt.weights(i) if wt is not None else None
        observed = ~np.isnan(values)
        if not observed.any():
            continue
        if not observed.all():
            values = values[observed]
            if weights is not None:
                weights = weights[observed]
        lag[i] = fun(values, weights)
    return lag


def _resolve_reducer(reducer, reducer_kwargs=None):
    """Map a reducer name or callable to ``f(values, weights)``."""
    kwargs = dict(reducer_kwargs or {})
    if callable(reducer):
        return lambda values, weights: float(reducer(values, **kwargs))
    if kwargs:
        raise InvalidConfigurationError(
            f"reducer_kwargs only apply to a callable reducer, got {reducer!r}")
    try:
        return _NAMED[reducer]
    except (KeyError, TypeError):
        raise InvalidConfigurationError(
            f"unknown reducer {reducer!r}; expected one of {REDUCERS} "
            "or a callable") from None


def _mean(values, weights):
    if weights is None:
        return values.mean()
    total = weights.sum()
    if total == 0:
        return np.nan
    return (weights * values).sum() / total


def _sum(values, weights):
    if weights is None:
        return values.sum()
    return (weights * values).sum()


def _median(values, weights):
    if weights is None:
        return np.median(values)
    idx = np.argsort(values, kind="stable")
    vals_sorted = values[idx]
    w_sorted = weights[idx]
    cumw = np.cumsum(w_sorted)
    if cumw[-1] <= 0:
        return np.nan
    half = cumw[-1] / 2.0
    median_idx = min(np.searchsorted(cumw, half), len(vals_sorted) - 1)
    # Exactly half the weight on each side: average the two middle values
    if np.isclose(cumw[median_idx], half) and median_idx + 1 < len(vals_sorted):
        return 0.5 * (vals_sorted[median_idx] + vals_sorted[median_idx + 1])
    return vals_sorted[median_idx]


_NAMED = {
    "mean": _mean,
    "median": _median,
    "sum": _sum,
    "min": lambda values, weights: values.min(),
    "max": lambda values, weights: values.max(),
}
