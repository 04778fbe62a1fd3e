"""Conditional permutation inference for local Moran's I.

Unit ``i`` keeps its own value; its ``k`` neighbor slots are refilled with
``k`` values drawn without replacement from the other ``n - 1`` units, in
draw order, and the statistic is recomputed with ``i``'s own weights.

Every unit draws from its own random stream,
``SeedSequence(entropy=seed, spawn_key=(i,))``, so a draw is a pure
function of ``(seed, unit, draw)`` and results do not depend on how units
are scheduled.
"""

import os
from concurrent.futures import ThreadPoolExecutor

import numpy as np
from scipy import stats

from .errors import InvalidConfigurationError
from .models import Alternative


def check_n_simulations(n_simulations):
    """Validate the number of permutations, before any work starts."""
    if isinstance(n_simulations, bool) or not isinstance(
            n_simulations, (int, np.integer)):
        raise InvalidConfigurationError(
            f"number of simulations must be an integer, got {n_simulations!r}")
    if n_simulations < 1:
        raise InvalidConfigurationError(
            f"number of simulations must be >= 1, got {n_simulations}")
    return int(n_simulations)


def check_parallel(n_jobs, chunk_size):
    """Validate worker settings; -1 jobs means one per CPU."""
    if n_jobs == -1:
        n_jobs = os.cpu_count() or 1
    if not isinstance(n_jobs, (int, np.integer)) or n_jobs < 1:
        raise InvalidConfigurationError(
            f"n_jobs must be >= 1 or -1, got {n_jobs!r}")
    if chunk_size is not None and (
            not isinstance(chunk_size, (int, np.integer)) or chunk_size < 1):
        raise InvalidConfigurationError(
            f"chunk_size must be a positive integer, got {chunk_size!r}")
    return int(n_jobs), chunk_size


def resolve_seed(seed):
    """Return integer entropy for the per-unit streams.

    None draws fresh entropy once, so the call can be reproduced later
    from the returned value.
    """
    if seed is None:
        return np.random.SeedSequence().entropy
    if isinstance(seed, np.random.SeedSequence):
        return seed.entropy
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)) \
            or seed < 0:
        raise InvalidConfigurationError(
            f"seed must be a non-negative integer or None, got {seed!r}")
    return int(seed)


def unit_rng(seed, i):
    """Random generator owned by unit ``i``."""
    return np.random.default_rng(
        np.random.SeedSequence(entropy=seed, spawn_key=(int(i),)))


def draw_samples(rng, n_others, k, n_draws):
    """Draw ``n_draws`` ordered samples of ``k`` distinct indices.

    Each row is a uniformly random ordered subset of ``range(n_others)``,
    drawn row by row from ``rng`` without replacement.

    Returns
    -------
    samples : (n_draws, k) int array
    """
    samples = np.empty((n_draws, k), dtype=np.intp)
    for row in samples:
        row[:] = rng.choice(n_others, size=k, replace=False)
    return samples


def simulate_unit(i, moments, nb, wt, n_simulations, seed):
    """Reference distribution of I_i under conditional permutation.

    Parameters
    ----------
    i : int
    moments : GlobalMoments
    nb : NeighborGraph
    wt : WeightScheme
    n_simulations : int
    seed : int

    Returns
    -------
    sims : (n_simulations,) array, or None for an isolate.
    """
    idx = nb.index(i)
    k = idx.size
    if k == 0:
        return None
    z = moments.z
    others = np.delete(z, i)
    samples = draw_samples(unit_rng(seed, i), others.shape[0], k,
                           n_simulations)
    return (z[i] / moments.m2) * (others[samples] @ wt.weights(i))


def rank_pvalue(sims, observed, alternative=Alternative.TWO_SIDED):
    """Pseudo p-value from the rank of ``observed`` among ``sims``.

    Ties count against significance. Two-sided values double the smaller
    tail and are capped at 1.
    """
    R = sims.shape[0]
    n_ge = np.count_nonzero(sims >= observed)
    n_le = np.count_nonzero(sims <= observed)
    if alternative == Alternative.GREATER:
        return (n_ge + 1.0) / (R + 1.0)
    if alternative == Alternative.LESS:
        return (n_le + 1.0) / (R + 1.0)
    return min(1.0, 2.0 * (min(n_ge, n_le) + 1.0) / (R + 1.0))


def folded_pvalue(sims, observed):
    """Pseudo p-value after folding the reference distribution at its median."""
    R = sims.shape[0]
    center = np.median(sims)
    extreme = np.count_nonzero(np.abs(sims - center) >= abs(observed - center))
    return (extreme + 1.0) / (R + 1.0)


def _shape(sims):
    if np.ptp(sims) == 0:
        return np.nan, np.nan
    return stats.skew(sims), stats.kurtosis(sims)


def _run_chunk(units, moments, nb, wt, ii, n_simulations, seed, alternative,
               keep_simulations):
    rows = []
    for i in units:
        sims = simulate_unit(i, moments, nb, wt, n_simulations, seed)
        if sims is None:
            rows.append((i, np.nan, np.nan, np.nan, np.nan, None))
            continue
        skewness, kurtosis = _shape(sims)
        rows.append((
            i,
            rank_pvalue(sims, ii[i], alternative),
            folded_pvalue(sims, ii[i]),
            skewness,
            kurtosis,
            sims if keep_simulations else None,
        ))
    return rows


def conditional_permutation(moments, nb, wt, ii, n_simulations, seed,
                            alternative=Alternative.TWO_SIDED, n_jobs=1,
                            chunk_size=None, keep_simulations=False,
                            verbose=0):
    """Permutation p-values for every unit.

    Parameters
    ----------
    moments : GlobalMoments
    nb : NeighborGraph
    wt : WeightScheme
    ii : (n,) array
        Observed local statistics.
    n_simulations : int
    seed : int
        Entropy from :func:`resolve_seed`.
    alternative : Alternative
    n_jobs : int
        Worker threads. -1 uses every CPU.
    chunk_size : int or None
        Units per task. Defaults to an even split over ``4 * n_jobs`` tasks.
    keep_simulations : bool
        Return the (n, R) matrix of simulated values (NaN rows for isolates).
    verbose : int

    Returns
    -------
    dict with keys 'p_ii_sim', 'p_folded_sim', 'skewness', 'kurtosis',
    'simulations'.
    """
    n = ii.shape[0]
    n_jobs, chunk_size = check_parallel(n_jobs, chunk_size)
    if chunk_size is None:
        chunk_size = max(1, -(-n // (4 * n_jobs)))

    chunks = [range(start, min(start + chunk_size, n))
              for start in range(0, n, chunk_size)]
    args = (moments, nb, wt, ii, n_simulations, seed, alternative,
            keep_simulations)

    if n_jobs == 1:
        results = []
        for chunk in chunks:
            results.append(_run_chunk(chunk, *args))
            if verbose >= 2:
                print(f"  units {chunk.start}-{chunk.stop - 1}: "
                      f"{n_simulations} permutations")
    else:
        with ThreadPoolExecutor(max_workers=n_jobs) as pool:
            results = list(pool.map(lambda chunk: _run_chunk(chunk, *args),
                                    chunks))

    p_sim = np.full(n, np.nan)
    p_folded = np.full(n, np.nan)
    skewness = np.full(n, np.nan)
    kurtosis = np.full(n, np.nan)
    simulations = np.full((n, n_simulations), np.nan) if keep_simulations else None
    for rows in results:
        for i, p, pf, sk, ku, sims in rows:
            p_sim[i] = p
            p_folded[i] = pf
            skewness[i] = sk
            kurtosis[i] = ku
            if sims is not None:
                simulations[i] = sims

    return {
        "p_ii_sim": p_sim,
        "p_folded_sim": p_folded,
        "skewness": skewness,
        "kurtosis": kurtosis,
        "simulations": simulations,
    }
