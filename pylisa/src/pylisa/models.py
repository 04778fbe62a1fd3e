"""Option enums and result containers for local Moran analyses."""

from collections import namedtuple
from enum import Enum

import numpy as np

from .errors import InvalidConfigurationError


class Alternative(Enum):
    TWO_SIDED = "two.sided"
    GREATER = "greater"
    LESS = "less"


class Significance(Enum):
    """Which p-value drives the cluster labels."""
    SIM = "p_ii_sim"
    FOLDED = "p_folded_sim"
    ANALYTIC = "p_ii"


class ClusterLabel(str, Enum):
    HIGH_HIGH = "High-High"
    LOW_HIGH = "Low-High"
    LOW_LOW = "Low-Low"
    HIGH_LOW = "High-Low"
    NOT_SIGNIFICANT = "Not-Significant"

    def __str__(self):
        return self.value


def parse_option(enum_cls, value):
    """Convert a string (or member) to ``enum_cls``, raising a config error."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        choices = [m.value for m in enum_cls]
        raise InvalidConfigurationError(
            f"invalid {enum_cls.__name__.lower()} {value!r}; "
            f"expected one of {choices}") from None


COLUMNS = (
    "ii", "eii", "var_ii", "z_ii", "p_ii",
    "p_ii_sim", "p_folded_sim", "skewness", "kurtosis",
    "mean", "median", "pysal",
)

LocalMoranRecord = namedtuple("LocalMoranRecord", COLUMNS)


class LocalMoranResult:
    """Per-unit local Moran columns, held as read-only numpy arrays.

    Attributes
    ----------
    ii, eii, var_ii, z_ii, p_ii : (n,) float arrays
        Statistic, analytic expectation and variance under randomization,
        standardized score and its normal p-value.
    p_ii_sim, p_folded_sim : (n,) float arrays
        Permutation p-values (directional rank and folded rank).
    skewness, kurtosis : (n,) float arrays
        Shape of each unit's permutation reference distribution
        (kurtosis is excess kurtosis).
    mean, median, pysal : (n,) object arrays of ClusterLabel
    lag : (n,) float array
        Weighted spatial lag of the values.
    simulations : (n, R) float array or None
        Raw permutation values, if they were kept.
    n_simulations : int
    seed : int
        Entropy that reproduces the permutation draws.
    """

    def __init__(self, columns, lag, simulations=None, n_simulations=0,
                 seed=None, alternative=Alternative.TWO_SIDED):
        for name in COLUMNS:
            arr = np.asarray(columns[name])
            arr.setflags(write=False)
            setattr(self, name, arr)
        lag = np.asarray(lag, dtype=float)
        lag.setflags(write=False)
        self.lag = lag
        if simulations is not None:
            simulations.setflags(write=False)
        self.simulations = simulations
        self.n_simulations = n_simulations
        self.seed = seed
        self.alternative = alternative

    def __len__(self):
        return len(self.ii)

    def __getitem__(self, i):
        return LocalMoranRecord(*(getattr(self, name)[i] for name in COLUMNS))

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def records(self):
        """All units as a list of :class:`LocalMoranRecord`."""
        return list(self)

    def as_dict(self):
        """Column name -> array, in output order."""
        return {name: getattr(self, name) for name in COLUMNS}

    def __repr__(self):
        return (f"LocalMoranResult(n_units={len(self)}, "
                f"n_simulations={self.n_simulations})")
