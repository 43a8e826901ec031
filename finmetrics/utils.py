"""
Shared utility functions used across all estimator modules.
"""

import numpy as np

from .exceptions import (
    DimensionMismatchError,
    InsufficientObservationsError,
    SingularMatrixError,
)


def as_matrix(X):
    """
    Return X as a float 2-d array (a 1-d input becomes a single column).
    """
    X = np.asarray(X, dtype=float)
    if X.ndim == 1:
        X = X[:, None]
    if X.ndim != 2:
        raise DimensionMismatchError(f"Expected a 1-d or 2-d array, got ndim={X.ndim}")
    return X


def check_rows(n, *arrays, names=None):
    """
    Raise DimensionMismatchError unless every array has n rows.
    """
    names = names or [f"argument {i}" for i in range(len(arrays))]
    for name, a in zip(names, arrays):
        if np.shape(a)[0] != n:
            raise DimensionMismatchError(
                f"{name} has {np.shape(a)[0]} rows, expected {n}"
            )


def inv_xtx(X):
    """
    (X'X)^{-1} for a design matrix of full column rank.

    Raises
    ------
    SingularMatrixError
        If X is rank deficient. No regularisation is attempted.
    """
    k = X.shape[1]
    rank = np.linalg.matrix_rank(X)
    if rank < k:
        raise SingularMatrixError(
            f"Regressor matrix has rank {rank} but {k} columns (exact collinearity)"
        )
    try:
        return np.linalg.inv(X.T @ X)
    except np.linalg.LinAlgError as e:
        raise SingularMatrixError(str(e)) from e


def ols_solve(X, y):
    """
    OLS estimation via the normal equations.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Design matrix (should include a constant column if an intercept is desired).
    y : ndarray, shape (n,) or (n, m)
        Outcome vector, or m outcome columns sharing the same regressors.

    Returns
    -------
    b : ndarray, shape (k,) or (k, m)
        Coefficient estimates  beta_hat = (X'X)^{-1} X'y.
    se : ndarray, shape (k,) or (k, m)
        Homoskedastic standard errors.
    e : ndarray, shape (n,) or (n, m)
        Residuals  y - X @ b.
    s2 : float or ndarray, shape (m,)
        Estimated error variance  e'e / (n - k).
    XtX_inv : ndarray, shape (k, k)
        (X'X)^{-1}, computed once and shared with the caller.
    """
    X = as_matrix(X)
    y = np.asarray(y, dtype=float)
    n, k = X.shape
    check_rows(n, y, names=["y"])
    if n <= k:
        raise InsufficientObservationsError(
            f"OLS needs more observations than regressors (n={n}, k={k})"
        )
    XtX_inv = inv_xtx(X)
    b = XtX_inv @ (X.T @ y)
    e = y - X @ b
    s2 = (e ** 2).sum(axis=0) / (n - k)
    if y.ndim == 1:
        se = np.sqrt(np.diag(s2 * XtX_inv))
    else:
        se = np.sqrt(np.outer(np.diag(XtX_inv), s2))
    return b, se, e, s2, XtX_inv


def ols_fit(X, y):
    """
    ``ols_solve`` without the (X'X)^{-1} factor: returns b, se, e, s2.
    """
    b, se, e, s2, _ = ols_solve(X, y)
    return b, se, e, s2


def add_const(x):
    """
    Prepend a column of ones (intercept) to the design matrix.

    Parameters
    ----------
    x : ndarray
        1-d array or 2-d matrix of regressors.

    Returns
    -------
    X : ndarray, shape (n, k+1)
        Design matrix with leading ones column.
    """
    x = np.asarray(x, dtype=float)
    x = np.atleast_2d(x).T if x.ndim == 1 else x
    return np.column_stack([np.ones(x.shape[0]), x])


def constant_columns(Z):
    """Indices of the columns of Z that are identically one."""
    Z = as_matrix(Z)
    return [j for j in range(Z.shape[1]) if np.all(Z[:, j] == 1.0)]


def make_rng(seed=None):
    """
    Build the random generator for one experiment.

    Estimators never seed; the caller records ``seed`` alongside the
    results so the run can be reproduced draw for draw.
    """
    return np.random.default_rng(seed)
