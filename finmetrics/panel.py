"""
Panel Data -- transformations and linear panel estimators

Row-ordered observation matrices Z (typically the stacked columns
[y, X]) are paired with an aligned group key. Every transformation
partitions the rows by group with pandas ``groupby`` and maps each
partition independently:

  within_transform    subtract the group mean            (fixed effects)
  between_transform   one row of group means per group   (between)
  first_difference    row[t] - row[t-1] inside a group   (first differences)
  quasi_demean        subtract theta * group mean        (random effects GLS)

The estimators at the bottom feed the transformed data to the common
OLS core. Each group's rows are assumed to be consecutive, equally
spaced periods with no gaps; the caller guarantees this.
"""

import logging

import numpy as np
import pandas as pd
from scipy import stats

from .covariance import standard_errors
from .exceptions import (
    DimensionMismatchError,
    InsufficientObservationsError,
    SingularMatrixError,
)
from .ols import r_squared
from .utils import as_matrix, check_rows, constant_columns, inv_xtx, ols_solve

LOGGER = logging.getLogger(__name__)


def _frame(Z, groups):
    Z = as_matrix(Z)
    groups = np.asarray(groups)
    if groups.ndim != 1 or groups.shape[0] != Z.shape[0]:
        raise DimensionMismatchError(
            f"group key has {groups.shape[0] if groups.ndim else 0} entries, "
            f"data has {Z.shape[0]} rows"
        )
    return Z, pd.DataFrame(Z), groups


def group_means(Z, groups):
    """
    Row-aligned group means: row i holds the mean of its group's rows.
    """
    _, df, groups = _frame(Z, groups)
    return df.groupby(groups, sort=False).transform("mean").to_numpy()


def within_transform(Z, groups):
    """
    Demean every column within each group (the fixed-effects transform).

    Parameters
    ----------
    Z : ndarray, shape (n, p)
        Stacked panel data, e.g. np.column_stack([y, X]).
    groups : ndarray, shape (n,)
        Unit identifiers for each row.

    Returns
    -------
    ndarray, shape (n, p)
        Z minus its group means; each group's rows sum to zero.
        A constant column becomes exactly zero.
    """
    Z = as_matrix(Z)
    return Z - group_means(Z, groups)


def between_transform(Z, groups):
    """
    Collapse each group to its column means (the between transform).

    Groups are returned in order of first appearance. A constant column
    stays equal to one.

    Returns
    -------
    ndarray, shape (N, p)
    """
    _, df, groups = _frame(Z, groups)
    return df.groupby(groups, sort=False).mean().to_numpy()


def first_difference(Z, groups, const_col=None):
    """
    First differences within each group.

    Each group's first row has no prior period; its difference is NaN and
    the row is dropped from the output, as is any other row with a NaN
    difference. Differencing turns a constant into zero, so the constant
    column(s) are set back to one afterwards.

    Parameters
    ----------
    Z : ndarray, shape (n, p)
    groups : ndarray, shape (n,)
    const_col : int, list of int or None
        Constant column index(es) to restore. None detects the columns
        of Z that are identically one.

    Returns
    -------
    ndarray, shape (n - dropped, p)
    """
    Z, df, groups = _frame(Z, groups)
    if const_col is None:
        const_col = constant_columns(Z)
    const_col = list(np.atleast_1d(const_col).astype(int))

    diffs = df.groupby(groups, sort=False).diff()
    keep = diffs.notna().all(axis=1).to_numpy()
    out = diffs.to_numpy()[keep]
    if const_col:
        out[:, const_col] = 1.0
    LOGGER.debug("first differences: dropped %d of %d rows", (~keep).sum(), len(keep))
    return out


def quasi_demean(Z, groups, theta):
    """
    Partial demeaning for random-effects GLS:  row - theta * group mean.

    The constant column becomes 1 - theta.

    Parameters
    ----------
    Z : ndarray, shape (n, p)
    groups : ndarray, shape (n,)
    theta : float in [0, 1]
        0 gives pooled OLS data, 1 gives the within transform.
    """
    if not 0.0 <= theta <= 1.0:
        raise ValueError(f"theta must lie in [0, 1], got {theta}")
    Z = as_matrix(Z)
    return Z - theta * group_means(Z, groups)


def _stack(y, X, groups):
    X = as_matrix(X)
    y = np.asarray(y, dtype=float)
    check_rows(X.shape[0], y, np.asarray(groups), names=["y", "groups"])
    return y, X, np.column_stack([y, X])


def _fit(Xt, yt, sigma2=None):
    b, _, e, s2, XtX_inv = ols_solve(Xt, yt)
    if sigma2 is not None:
        s2 = sigma2
    cov = s2 * XtX_inv
    cov = 0.5 * (cov + cov.T)
    return dict(
        beta=b,
        se=standard_errors(cov),
        cov=cov,
        residuals=e,
        r2=r_squared(yt, e),
    )


def pooled_ols(y, X):
    """
    Pooled OLS on the stacked panel, ignoring the group structure.

    Returns
    -------
    dict with keys: beta, se, cov, residuals, r2
    """
    X = as_matrix(X)
    return _fit(X, np.asarray(y, dtype=float))


def fixed_effects(y, X, groups):
    """
    Fixed-effects (within) estimation.

    Constant columns of X are annihilated by demeaning and dropped.
    The Gauss-Markov covariance on demeaned data divides SSR by NT - K,
    ignoring the N estimated group means, so it is rescaled by
    (NT - K) / (NT - N - K), K counting the retained regressors.

    Parameters
    ----------
    y : ndarray, shape (n,)
    X : ndarray, shape (n, k)
    groups : ndarray, shape (n,)
        Unit identifiers.

    Returns
    -------
    dict with keys:
        beta       : fixed-effects coefficients on the retained columns
        se         : dof-corrected homoskedastic SEs
        se_cluster : clustered SEs (Arellano 1987)
        cov        : dof-corrected covariance
        residuals  : within-estimator residuals
        r2         : within R^2
        kept_cols  : indices of X columns that were estimated
        n_groups   : number of groups N
        sigma2_e   : SSR / (NT - N - K)
    """
    y, X, Z = _stack(y, X, groups)
    W = within_transform(Z, groups)
    const = constant_columns(X)
    kept = [j for j in range(X.shape[1]) if j not in const]
    yw, Xw = W[:, 0], W[:, 1:][:, kept]

    fit = _fit(Xw, yw)
    n, k = Xw.shape
    N = len(pd.unique(np.asarray(groups)))
    dof = n - N - k
    if dof <= 0:
        raise InsufficientObservationsError(
            f"fixed effects needs NT > N + K (NT={n}, N={N}, K={k})"
        )
    cov = fit["cov"] * ((n - k) / dof)
    e = fit["residuals"]
    fit.update(
        cov=cov,
        se=standard_errors(cov),
        se_cluster=standard_errors(clustered_cov(e, Xw, groups)),
        kept_cols=kept,
        n_groups=N,
        sigma2_e=(e @ e) / dof,
    )
    return fit


def clustered_cov(residuals, X, groups):
    """
    Arellano (1987) cluster-robust covariance.

    V_cluster = (X'X)^{-1} * B * (X'X)^{-1}
    where B = sum_g (X_g' e_g)(X_g' e_g)' with finite-sample correction
    G/(G-1) * (N-1)/(N-K).
    """
    X = as_matrix(X)
    e = np.asarray(residuals, dtype=float)
    check_rows(X.shape[0], e, np.asarray(groups), names=["residuals", "groups"])
    N, K = X.shape
    scores = pd.DataFrame(X * e[:, None]).groupby(np.asarray(groups), sort=False).sum()
    S = scores.to_numpy()
    G = S.shape[0]
    if G < 2:
        raise InsufficientObservationsError("clustered covariance needs at least 2 groups")
    bread = inv_xtx(X)
    dof_corr = (G / (G - 1)) * ((N - 1) / (N - K))
    V = bread @ (S.T @ S) @ bread * dof_corr
    return 0.5 * (V + V.T)


def between(y, X, groups):
    """
    Between estimation: OLS on the group means.

    Returns
    -------
    dict with keys: beta, se, cov, residuals (one per group), r2, n_groups
    """
    _, _, Z = _stack(y, X, groups)
    B = between_transform(Z, groups)
    fit = _fit(B[:, 1:], B[:, 0])
    fit["n_groups"] = B.shape[0]
    return fit


def first_difference_ols(y, X, groups):
    """
    First-difference estimation.

    The constant column of X (if any) is restored to one after
    differencing, so its coefficient estimates the mean per-period drift.

    Returns
    -------
    dict with keys: beta, se, cov, residuals, r2, n_obs
    """
    _, X, Z = _stack(y, X, groups)
    const = [1 + j for j in constant_columns(X)]
    D = first_difference(Z, groups, const_col=const)
    fit = _fit(D[:, 1:], D[:, 0])
    fit["n_obs"] = D.shape[0]
    return fit


def variance_components(y, X, groups):
    """
    Method-of-moments variance components for random-effects GLS.

        s2_e  = SSR_FE / (NT - N - K_slopes)
        s2_u  = max(0, SSR_BE / (N - K) - s2_e / T)
        theta = 1 - sqrt(s2_e) / sqrt(T * s2_u + s2_e)

    K counts all columns of X (including the constant), K_slopes the
    non-constant ones, and T = NT / N is the average number of periods.
    s2_u can be negative in finite samples and is clamped at zero.

    Returns
    -------
    dict with keys: sigma2_e, sigma2_u, theta, n_groups, t_bar
    """
    y, X, _ = _stack(y, X, groups)
    fe = fixed_effects(y, X, groups)
    be = between(y, X, groups)

    N = fe["n_groups"]
    K = X.shape[1]
    if N <= K:
        raise InsufficientObservationsError(f"between regression needs N > K (N={N}, K={K})")
    t_bar = X.shape[0] / N
    s2_e = fe["sigma2_e"]
    e_be = be["residuals"]
    s2_u = (e_be @ e_be) / (N - K) - s2_e / t_bar
    if s2_u < 0:
        LOGGER.warning("random-effects variance component %.4g < 0, clamped to zero", s2_u)
        s2_u = 0.0
    theta = 1.0 - np.sqrt(s2_e) / np.sqrt(t_bar * s2_u + s2_e)
    LOGGER.debug("variance components: s2_e=%.4g s2_u=%.4g theta=%.4f", s2_e, s2_u, theta)
    return dict(sigma2_e=s2_e, sigma2_u=s2_u, theta=theta, n_groups=N, t_bar=t_bar)


def random_effects(y, X, groups):
    """
    Random-effects feasible GLS.

    Estimates theta from the fixed-effects and between regressions, then
    runs OLS on the quasi-demeaned data (constant included). The GLS
    covariance is s2_e * (Q'Q)^{-1}, Q the quasi-demeaned regressors;
    the OLS residual variance of the transformed regression is not used.

    Returns
    -------
    dict with keys: beta, se, cov, residuals, r2, theta, sigma2_e, sigma2_u
    """
    y, X, Z = _stack(y, X, groups)
    vc = variance_components(y, X, groups)
    Q = quasi_demean(Z, groups, vc["theta"])
    fit = _fit(Q[:, 1:], Q[:, 0], sigma2=vc["sigma2_e"])
    fit.update(
        theta=vc["theta"],
        sigma2_e=vc["sigma2_e"],
        sigma2_u=vc["sigma2_u"],
    )
    return fit


def hausman_test(fe, re):
    """
    Hausman test of random against fixed effects.

    H = (b_FE - b_RE)' [V_FE - V_RE]^{-1} (b_FE - b_RE)  ~  chi2(k)

    over the slope coefficients both estimators share.

    Parameters
    ----------
    fe : dict
        Result of ``fixed_effects``.
    re : dict
        Result of ``random_effects`` on the same data.

    Returns
    -------
    dict with keys: stat, df, p_value, reject

    Raises
    ------
    SingularMatrixError
        If V_FE - V_RE is not positive definite.
    """
    kept = fe["kept_cols"]
    d = fe["beta"] - re["beta"][kept]
    V = fe["cov"] - re["cov"][np.ix_(kept, kept)]
    k = len(kept)
    V = 0.5 * (V + V.T)
    min_eig = np.linalg.eigvalsh(V).min()
    if min_eig <= 0:
        raise SingularMatrixError(
            f"V_FE - V_RE is not positive definite (smallest eigenvalue {min_eig:.3g})"
        )
    stat = float(d @ np.linalg.solve(V, d))
    p_value = stats.chi2.sf(stat, k)
    return dict(stat=stat, df=k, p_value=p_value, reject=p_value < 0.05)
