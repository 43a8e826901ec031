"""
OLS -- Ordinary Least Squares

Implements the OLS estimator from scratch: coefficients, residuals,
fitted values, R^2 and the traditional (Gauss-Markov) covariance matrix.
The robust covariance estimators live in ``covariance``.
"""

import numpy as np

from .utils import as_matrix, ols_solve


def estimate(X, y):
    """
    OLS estimation: beta_hat = (X'X)^{-1} X'y.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix (include a constant column for intercept).
    y : ndarray, shape (n,) or (n, m)
        Outcome vector, or m outcome columns.

    Returns
    -------
    dict with keys:
        beta      : coefficient vector (k,) or matrix (k, m)
        se        : standard errors (homoskedastic)
        residuals : OLS residuals
        s2        : estimated error variance e'e / (n - k)
        fitted    : fitted values X @ beta
        r2        : R^2, one per outcome column
        cov       : traditional covariance s2 * (X'X)^{-1}, shape (k, k),
                    or (m, k, k) for m outcome columns

    Raises
    ------
    SingularMatrixError
        If X does not have full column rank.
    InsufficientObservationsError
        If n <= k.
    DimensionMismatchError
        If X and y have different numbers of rows.
    """
    X = as_matrix(X)
    y = np.asarray(y, dtype=float)
    b, se, e, s2, XtX_inv = ols_solve(X, y)
    cov = np.multiply.outer(s2, XtX_inv)
    return dict(
        beta=b,
        se=se,
        residuals=e,
        s2=s2,
        fitted=X @ b,
        r2=r_squared(y, e),
        cov=cov,
    )


def r_squared(y, residuals):
    """
    R^2 = 1 - SSR / SST, with SST taken around the mean of y.

    Returns 0.0 for a column of y with zero variation.
    """
    y = np.asarray(y, dtype=float)
    ssr = (residuals ** 2).sum(axis=0)
    sst = ((y - y.mean(axis=0)) ** 2).sum(axis=0)
    safe_sst = np.where(sst > 0, sst, 1.0)
    r2 = np.where(sst > 0, 1.0 - ssr / safe_sst, 0.0)
    return float(r2) if r2.ndim == 0 else r2


def t_stats(beta, se):
    """Coefficient t-statistics beta / se."""
    return np.asarray(beta) / np.asarray(se)
