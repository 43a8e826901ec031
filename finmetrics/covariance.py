"""
Coefficient covariance estimators for OLS

Three interchangeable estimators of Var(beta_hat), selected by a single
``CovKind`` tag:

  IID         s2 (X'X)^{-1}                                 (Gauss-Markov)
  WHITE       (X'X)^{-1} [sum_t u_t^2 x_t x_t'] (X'X)^{-1}   (Huber-White)
  NEWEY_WEST  (X'X)^{-1} S_NW (X'X)^{-1}, Bartlett weights   (HAC)

plus standard errors, a Wald test of joint linear restrictions and the
Breusch-Pagan test for heteroskedasticity.
"""

import logging
from enum import Enum

import numpy as np
from scipy import stats

from .exceptions import (
    DimensionMismatchError,
    InsufficientObservationsError,
    InvalidLagOrBlockSizeError,
    SingularMatrixError,
)
from .utils import as_matrix, check_rows, inv_xtx, ols_fit

LOGGER = logging.getLogger(__name__)


class CovKind(str, Enum):
    IID = "iid"
    WHITE = "white"
    NEWEY_WEST = "newey_west"


def _prepare(residuals, X):
    X = as_matrix(X)
    u = np.asarray(residuals, dtype=float)
    if u.ndim == 2 and u.shape[1] == 1:
        u = u[:, 0]
    if u.ndim != 1:
        raise DimensionMismatchError("residuals must be a single column")
    check_rows(X.shape[0], u, names=["residuals"])
    return u, X


def _symmetrize(V):
    return 0.5 * (V + V.T)


def _sandwich(X, meat):
    bread = inv_xtx(X)
    return _symmetrize(bread @ meat @ bread)


def iid_cov(residuals, X):
    """
    Traditional covariance  s2 (X'X)^{-1},  s2 = u'u / (T - K).

    Assumes homoskedastic, serially uncorrelated errors.
    """
    u, X = _prepare(residuals, X)
    n, k = X.shape
    if n <= k:
        raise InsufficientObservationsError(f"need T > K (T={n}, K={k})")
    s2 = (u @ u) / (n - k)
    return _symmetrize(s2 * inv_xtx(X))


def white_cov(residuals, X):
    """
    White (1980) heteroskedasticity-consistent covariance.

    V_W = (X'X)^{-1} * [sum_t u_t^2 x_t x_t'] * (X'X)^{-1}

    The moment contributions x_t u_t are *not* centred on their mean.
    No small-sample (HC1) scaling is applied.

    Parameters
    ----------
    residuals : ndarray, shape (n,)
        OLS residuals.
    X : ndarray, shape (n, k)
        Design matrix.

    Returns
    -------
    ndarray, shape (k, k)
    """
    u, X = _prepare(residuals, X)
    g = X * u[:, None]
    return _sandwich(X, g.T @ g)


def default_lags(n_obs):
    """Automatic Newey-West lag length  floor(4 (T/100)^(2/9))."""
    return int(np.floor(4 * (n_obs / 100.0) ** (2.0 / 9.0)))


def newey_west_cov(residuals, X, lags=None):
    """
    Newey-West (1987) heteroskedasticity and autocorrelation consistent
    covariance with a Bartlett kernel.

    With g_t = x_t u_t centred on its sample mean,

        Lambda_0 = sum_t g_t g_t'
        Lambda_s = sum_{t=s+1}^{T} g_t g_{t-s}'
        S        = Lambda_0 + sum_{s=1}^{m} (1 - s/(m+1)) (Lambda_s + Lambda_s')

    and V_NW = (X'X)^{-1} S (X'X)^{-1}.

    Parameters
    ----------
    residuals : ndarray, shape (n,)
        OLS residuals.
    X : ndarray, shape (n, k)
        Design matrix.
    lags : int or None
        Lag truncation m. Clamped to T - 1. None uses ``default_lags(T)``.

    Returns
    -------
    ndarray, shape (k, k)

    Raises
    ------
    InsufficientObservationsError
        If T <= 1.
    InvalidLagOrBlockSizeError
        If lags is negative.
    """
    u, X = _prepare(residuals, X)
    n = X.shape[0]
    if n <= 1:
        raise InsufficientObservationsError(f"Newey-West needs T > 1 (T={n})")
    if lags is None:
        lags = default_lags(n)
    if lags < 0:
        raise InvalidLagOrBlockSizeError(f"lag count must be >= 0, got {lags}")
    m = min(int(lags), n - 1)
    if m < lags:
        LOGGER.debug("Newey-West lags clamped from %s to %d (T=%d)", lags, m, n)

    g = X * u[:, None]
    g = g - g.mean(axis=0)
    S = g.T @ g
    for s in range(1, m + 1):
        lam = g[s:].T @ g[:-s]
        S += (1.0 - s / (m + 1.0)) * (lam + lam.T)
    return _sandwich(X, S)


def covariance(kind, residuals, X, lags=None):
    """
    Coefficient covariance matrix of the requested kind.

    Parameters
    ----------
    kind : CovKind or {"iid", "white", "newey_west"}
    residuals : ndarray, shape (n,)
    X : ndarray, shape (n, k)
    lags : int or None
        Only used by NEWEY_WEST.

    Returns
    -------
    ndarray, shape (k, k)
    """
    kind = CovKind(kind)
    if kind is CovKind.IID:
        return iid_cov(residuals, X)
    if kind is CovKind.WHITE:
        return white_cov(residuals, X)
    return newey_west_cov(residuals, X, lags=lags)


def standard_errors(cov):
    """Square roots of the diagonal of the (symmetrised) covariance matrix."""
    cov = np.asarray(cov, dtype=float)
    return np.sqrt(np.diag(_symmetrize(cov)))


def wald_test(beta, cov, R=None, r=None):
    """
    Wald test of the joint linear hypothesis  R beta = r.

    W = (R b - r)' [R V R']^{-1} (R b - r)  ~  chi2(q)

    Parameters
    ----------
    beta : ndarray, shape (k,)
    cov : ndarray, shape (k, k)
        Any of the covariance estimators above.
    R : ndarray, shape (q, k), optional
        Restriction matrix (default: identity, all coefficients zero).
    r : ndarray, shape (q,), optional
        Restricted values (default: zeros).

    Returns
    -------
    dict with keys:
        stat    : Wald statistic
        df      : number of restrictions q
        p_value : chi2(q) p-value
        reject  : bool, True if p < 0.05
    """
    beta = np.asarray(beta, dtype=float)
    cov = np.asarray(cov, dtype=float)
    k = beta.shape[0]
    R = np.eye(k) if R is None else np.atleast_2d(np.asarray(R, dtype=float))
    q = R.shape[0]
    r = np.zeros(q) if r is None else np.asarray(r, dtype=float).ravel()
    if R.shape[1] != k or cov.shape != (k, k) or r.shape[0] != q:
        raise DimensionMismatchError(
            f"R {R.shape}, r {r.shape} and cov {cov.shape} do not match k={k}"
        )

    d = R @ beta - r
    middle = R @ cov @ R.T
    if np.linalg.matrix_rank(middle) < q:
        raise SingularMatrixError("R V R' is not invertible")
    stat = float(d @ np.linalg.solve(middle, d))
    p_value = stats.chi2.sf(stat, q)
    return dict(stat=stat, df=q, p_value=p_value, reject=p_value < 0.05)


def breusch_pagan_test(X, residuals):
    """
    Breusch-Pagan test for heteroskedasticity.

    Regresses squared OLS residuals on X. Under H0 (homoskedasticity),
    the F-statistic for the slope(s) should be insignificant.
    X must contain a constant in its first column.

    Returns
    -------
    dict with keys:
        F_stat  : F-statistic
        p_value : p-value (from F distribution)
        reject  : bool, True if p < 0.05
    """
    X = as_matrix(X)
    n, k = X.shape
    esq = np.asarray(residuals, dtype=float) ** 2
    _, _, e_aux, _ = ols_fit(X, esq)
    r2 = 1.0 - (e_aux @ e_aux) / ((esq - esq.mean()) @ (esq - esq.mean()))
    F_stat = (r2 / (k - 1)) / ((1.0 - r2) / (n - k))
    p_value = stats.f.sf(F_stat, k - 1, n - k)
    return dict(F_stat=F_stat, p_value=p_value, reject=p_value < 0.05)
