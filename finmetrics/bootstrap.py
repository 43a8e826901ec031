"""
Bootstrap Inference

Residual bootstrap and circular block bootstrap for the sampling
distribution of OLS coefficients.

Each replication rebuilds a synthetic sample  y~ = X b_hat + u~  from
resampled residuals u~ and re-estimates  b~ = OLS(y~, X). The Monte Carlo
standard deviation of the b~ is the bootstrap standard error.

Randomness comes only from the ``numpy.random.Generator`` passed in; the
engine never seeds. Draws are consumed in a fixed order (T index draws
per replication for the residual bootstrap, one start draw per block for
the block bootstrap), so a recorded seed reproduces a run exactly.
"""

import logging

import numpy as np

from . import config
from .exceptions import DimensionMismatchError, InvalidLagOrBlockSizeError
from .utils import as_matrix, check_rows, ols_fit

LOGGER = logging.getLogger(__name__)


def draw_blocks(n_obs, block_size, rng):
    """
    Row indices for one circular block-bootstrap sample.

    ceil(T / L) block starts are drawn uniformly from 0..T-1. Each block
    covers start, start+1, ..., start+L-1, with indices past the end
    wrapping around to the beginning of the sample. The concatenated
    blocks are truncated to exactly T indices.

    Parameters
    ----------
    n_obs : int
        Sample size T.
    block_size : int
        Block length L >= 1.
    rng : numpy.random.Generator

    Returns
    -------
    ndarray of int, shape (T,)
        Values in 0..T-1.
    """
    if block_size < 1:
        raise InvalidLagOrBlockSizeError(f"block size must be >= 1, got {block_size}")
    n_blocks = -(-n_obs // block_size)
    starts = rng.integers(0, n_obs, size=n_blocks)
    idx = (starts[:, None] + np.arange(block_size)[None, :]) % n_obs
    return idx.ravel()[:n_obs]


def _column(a, name):
    a = np.asarray(a, dtype=float)
    if a.ndim == 2 and a.shape[1] == 1:
        a = a[:, 0]
    if a.ndim != 1:
        raise DimensionMismatchError(f"{name} must be a single column, got shape {a.shape}")
    return a


def _check_inputs(y, X, beta, residuals, n_sim, rng):
    if rng is None:
        raise TypeError("pass a generator, e.g. rng=numpy.random.default_rng(seed)")
    X = as_matrix(X)
    y = _column(y, "y")
    u = _column(residuals, "residuals")
    beta = _column(beta, "beta")
    check_rows(X.shape[1], beta, names=["beta"])
    check_rows(X.shape[0], y, u, names=["y", "residuals"])
    if n_sim < 1:
        raise ValueError(f"n_sim must be >= 1, got {n_sim}")
    fitted = X @ beta
    return X, u, fitted


def _resample(X, u, fitted, n_sim, draw):
    n = X.shape[0]
    draws = np.empty((n_sim, X.shape[1]))
    for s in range(n_sim):
        idx = draw(n)
        b_sim, _, _, _ = ols_fit(X, fitted + u[idx])
        draws[s] = b_sim
    LOGGER.debug("completed %d bootstrap replications (T=%d)", n_sim, n)
    return draws


def bootstrap(y, X, beta, residuals, n_sim=config.N_SIM, rng=None):
    """
    Residual bootstrap with independent draws.

    Parameters
    ----------
    y : ndarray, shape (n,) or (n, 1)
        Outcome vector (only checked for alignment).
    X : ndarray, shape (n, k)
        Design matrix.
    beta : ndarray, shape (k,) or (k, 1)
        Full-sample OLS estimate.
    residuals : ndarray, shape (n,) or (n, 1)
        Full-sample OLS residuals.
    n_sim : int
        Number of replications.
    rng : numpy.random.Generator
        Source of the index draws.

    Returns
    -------
    ndarray, shape (n_sim, k)
        Simulated coefficient vectors, one per row.
    """
    X, u, fitted = _check_inputs(y, X, beta, residuals, n_sim, rng)
    return _resample(X, u, fitted, n_sim, lambda n: rng.integers(0, n, size=n))


def block_bootstrap(y, X, beta, residuals, block_size=config.BLOCK_SIZE,
                    n_sim=config.N_SIM, rng=None):
    """
    Residual bootstrap with circular blocks of ``block_size`` rows.

    Keeps short-range serial dependence of the residuals inside each
    block. Arguments as for ``bootstrap``.

    Returns
    -------
    ndarray, shape (n_sim, k)
    """
    if block_size < 1:
        raise InvalidLagOrBlockSizeError(f"block size must be >= 1, got {block_size}")
    X, u, fitted = _check_inputs(y, X, beta, residuals, n_sim, rng)
    return _resample(X, u, fitted, n_sim,
                     lambda n: draw_blocks(n, block_size, rng))


def summarize(draws, level=config.CI_LEVEL):
    """
    Summary of a bootstrap distribution.

    Parameters
    ----------
    draws : ndarray, shape (n_sim, k)
    level : float
        Coverage of the percentile interval.

    Returns
    -------
    dict with keys:
        mean         : mean of the bootstrap distribution
        se           : bootstrap standard error (std across replications)
        ci_lo, ci_hi : percentile interval
    """
    draws = np.asarray(draws, dtype=float)
    tail = 100 * (1 - level) / 2
    ci_lo, ci_hi = np.percentile(draws, [tail, 100 - tail], axis=0)
    return dict(
        mean=draws.mean(axis=0),
        se=draws.std(axis=0),
        ci_lo=ci_lo,
        ci_hi=ci_hi,
    )


def bootstrap_ols(X, y, n_sim=config.N_SIM, rng=None, block_size=None):
    """
    Fit OLS and bootstrap its coefficients.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix (with constant).
    y : ndarray, shape (n,)
        Outcome.
    n_sim : int
        Number of replications.
    rng : numpy.random.Generator
    block_size : int or None
        None for the independent residual bootstrap, otherwise the block
        length of the circular block bootstrap.

    Returns
    -------
    dict with keys:
        beta_hat       : point estimates from the full sample
        analytic_se    : homoskedastic OLS SEs for comparison
        boot_estimates : array (n_sim, k) of bootstrapped coefficients
        mean, se       : bootstrap mean and standard error
        ci_lo, ci_hi   : percentile interval
    """
    b_full, se_full, e, _ = ols_fit(X, y)
    if block_size is None:
        boots = bootstrap(y, X, b_full, e, n_sim=n_sim, rng=rng)
    else:
        boots = block_bootstrap(y, X, b_full, e, block_size=block_size,
                                n_sim=n_sim, rng=rng)
    out = dict(beta_hat=b_full, analytic_se=se_full, boot_estimates=boots)
    out.update(summarize(boots))
    return out
