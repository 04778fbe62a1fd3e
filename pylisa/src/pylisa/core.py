"""Local Moran's I: statistic, analytic and permutation inference, clusters."""

import numpy as np

from .clusters import classify
from .errors import (
    InvalidConfigurationError, MissingValueError, NoNeighborsError,
)
from .lag import as_values, spatial_lag
from .models import Alternative, LocalMoranResult, Significance, parse_option
from .moments import (
    global_moments, lag_deviations, local_statistic, normal_pvalue,
    randomization_moments, standardize,
)
from .permutation import (
    check_n_simulations, check_parallel, conditional_permutation,
    resolve_seed,
)
from .spatial import WeightScheme, check_alignment


class LocalMoran:
    """Local Moran's I with conditional permutation inference.

    Parameters
    ----------
    n_simulations : int
        Number of conditional permutations per unit (>= 1).
    alternative : str
        'two.sided', 'greater' or 'less'. Applies to ``p_ii`` and
        ``p_ii_sim``.
    significance : str
        p-value used for the cluster labels: 'p_ii_sim', 'p_folded_sim'
        or 'p_ii'.
    cutoff : float
        Units with a p-value above ``cutoff`` are labelled Not-Significant.
    allow_zero : bool or None
        If True, units without neighbors get ``ii = 0`` and missing
        moments and p-values. Otherwise they raise NoNeighborsError.
    random_state : int or None
        Seed of the permutation streams.
    n_jobs : int
        Worker threads for the permutations (-1: all CPUs).
    chunk_size : int or None
        Units per permutation task.
    keep_simulations : bool
        Keep the (n, n_simulations) matrix of permuted statistics.
    verbose : int
        Verbosity level.
    """

    def __init__(self, n_simulations=499, alternative="two.sided",
                 significance="p_ii_sim", cutoff=0.05, allow_zero=None,
                 random_state=None, n_jobs=1, chunk_size=None,
                 keep_simulations=False, verbose=0):
        self.n_simulations = n_simulations
        self.alternative = alternative
        self.significance = significance
        self.cutoff = cutoff
        self.allow_zero = allow_zero
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.chunk_size = chunk_size
        self.keep_simulations = keep_simulations
        self.verbose = verbose

    def fit(self, x, nb, wt=None):
        """Compute the local statistics of ``x``.

        Parameters
        ----------
        x : array-like of shape (n,)
            Values without missing entries (see :func:`impute_missing`).
        nb : NeighborGraph
        wt : WeightScheme or None
            Row-standardized weights are built from ``nb`` if None.

        Returns
        -------
        self
        """
        n_sim = check_n_simulations(self.n_simulations)
        alternative = parse_option(Alternative, self.alternative)
        significance = parse_option(Significance, self.significance)
        if not 0.0 <= self.cutoff <= 1.0:
            raise InvalidConfigurationError(
                f"cutoff must lie in [0, 1], got {self.cutoff}")
        n_jobs, chunk_size = check_parallel(self.n_jobs, self.chunk_size)
        seed = resolve_seed(self.random_state)

        x = as_values(x)
        check_alignment(x, nb, wt)
        n = x.shape[0]
        missing = np.flatnonzero(np.isnan(x))
        if missing.size:
            raise MissingValueError(
                "local Moran's I needs complete values; impute them first",
                missing)
        if n < 3:
            raise InvalidConfigurationError(
                f"local Moran's I needs at least 3 units, got {n}")
        isolates = nb.isolates()
        if isolates and not self.allow_zero:
            raise NoNeighborsError(
                "units without neighbors; pass allow_zero=True to keep them",
                isolates)
        if wt is None:
            wt = WeightScheme.row_standardized(nb)

        moments = global_moments(x)
        if moments.m2 == 0:
            raise InvalidConfigurationError(
                "values are constant; local Moran's I is undefined")

        if self.verbose:
            print(f"Local Moran: {n} units, {len(isolates)} isolates, "
                  f"{n_sim} permutations, seed={seed}")

        card = nb.cardinalities()
        isolated = card == 0
        lz = lag_deviations(moments.z, nb, wt)
        ii = local_statistic(moments, lz)
        ii[isolated] = 0.0

        eii, var_ii = randomization_moments(moments, wt, card)
        z_ii = standardize(ii, eii, var_ii)
        p_ii = normal_pvalue(z_ii, alternative)

        sim = conditional_permutation(
            moments, nb, wt, ii, n_sim, seed,
            alternative=alternative, n_jobs=n_jobs, chunk_size=chunk_size,
            keep_simulations=self.keep_simulations, verbose=self.verbose,
        )

        columns = {
            "ii": ii, "eii": eii, "var_ii": var_ii, "z_ii": z_ii, "p_ii": p_ii,
            "p_ii_sim": sim["p_ii_sim"], "p_folded_sim": sim["p_folded_sim"],
            "skewness": sim["skewness"], "kurtosis": sim["kurtosis"],
        }
        lag = spatial_lag(x, nb, wt, reducer="sum", allow_zero=True)
        columns.update(classify(x, lag, lz, columns[significance.value],
                                self.cutoff))

        if self.verbose:
            n_sig = int(np.sum(columns[significance.value] <= self.cutoff))
            print(f"  {n_sig} units with {significance.value} <= {self.cutoff}")

        self.result_ = LocalMoranResult(
            columns, lag, simulations=sim["simulations"],
            n_simulations=n_sim, seed=seed, alternative=alternative,
        )
        self.seed_ = seed
        return self

    def fit_transform(self, x, nb, wt=None):
        """Fit and return the :class:`LocalMoranResult`."""
        return self.fit(x, nb, wt).result_


def local_moran(x, nb, wt=None, simulations=499, seed=None, **kwargs):
    """Local Moran's I of ``x`` on the graph ``nb``.

    Parameters
    ----------
    x : array-like of shape (n,)
    nb : NeighborGraph
    wt : WeightScheme or None
        Row-standardized weights if None.
    simulations : int
        Number of conditional permutations.
    seed : int or None
    **kwargs
        Other :class:`LocalMoran` options (``alternative``, ``allow_zero``,
        ``cutoff``, ``significance``, ``n_jobs``, ...).

    Returns
    -------
    LocalMoranResult
    """
    model = LocalMoran(n_simulations=simulations, random_state=seed, **kwargs)
    return model.fit_transform(x, nb, wt)
