"""
Lagged-return portfolio sorts.

Each period t the assets are ranked on their period t-lookback returns:
  - Lo basket: the ``basket_size`` lowest past returns, equal weight
  - Hi basket: the ``basket_size`` highest past returns, equal weight
and both baskets earn the period-t asset returns. Weights are fixed
before the return is realised, so there is no look-ahead.

Ties are broken by a stable ascending sort: among equal signals, the
asset with the lower column index ranks lower.
"""

import numpy as np
import pandas as pd

from . import config
from .exceptions import InsufficientObservationsError
from .utils import as_matrix


def sort_portfolios(returns, lookback=config.LOOKBACK, basket_size=config.BASKET_SIZE):
    """
    Form Hi / Lo baskets from lagged returns and compute their returns.

    Parameters
    ----------
    returns : ndarray or DataFrame, shape (T, n)
        Asset returns, dates by assets.
    lookback : int
        Ranking offset; the weights for period t use the returns of t - lookback.
    basket_size : int
        Number of assets in each basket.

    Returns
    -------
    dict with keys:
        hi, lo     : length-T basket returns, NaN for t < lookback
        w_hi, w_lo : T x n weight matrices, NaN rows for t < lookback
    Series / DataFrames indexed like ``returns`` when it is a DataFrame.
    """
    R = as_matrix(returns)
    T, n = R.shape
    if lookback < 1:
        raise ValueError(f"lookback must be >= 1, got {lookback}")
    if not 1 <= basket_size <= n:
        raise ValueError(f"basket_size must lie in [1, {n}], got {basket_size}")

    hi = np.full(T, np.nan)
    lo = np.full(T, np.nan)
    w_hi = np.full((T, n), np.nan)
    w_lo = np.full((T, n), np.nan)

    for t in range(lookback, T):
        signal = R[t - lookback]
        if not np.all(np.isfinite(signal)):
            raise ValueError(f"non-finite ranking return in period {t - lookback}")
        ranked = np.argsort(signal, kind="stable")
        losers, winners = ranked[:basket_size], ranked[-basket_size:]

        w_lo[t] = 0.0
        w_lo[t, losers] = 1.0 / basket_size
        w_hi[t] = 0.0
        w_hi[t, winners] = 1.0 / basket_size
        lo[t] = R[t, losers].mean()
        hi[t] = R[t, winners].mean()

    if isinstance(returns, pd.DataFrame):
        idx, cols = returns.index, returns.columns
        return dict(
            hi=pd.Series(hi, index=idx, name="Hi"),
            lo=pd.Series(lo, index=idx, name="Lo"),
            w_hi=pd.DataFrame(w_hi, index=idx, columns=cols),
            w_lo=pd.DataFrame(w_lo, index=idx, columns=cols),
        )
    return dict(hi=hi, lo=lo, w_hi=w_hi, w_lo=w_lo)


def performance_stats(returns, rf=None, periods_per_year=config.PERIODS_PER_YEAR):
    """
    Annualised mean, volatility and Sharpe ratio of excess returns.

    mean = P * mean(r - rf),  std = sqrt(P) * std(r - rf),  sharpe = mean / std

    Parameters
    ----------
    returns : array-like
        Periodic returns; NaN periods are ignored.
    rf : float or array-like, optional
        Risk-free rate per period.
    periods_per_year : int
        Annualisation factor P.

    Returns
    -------
    dict with keys: mean, std, sharpe, n_obs
    """
    r = np.asarray(returns, dtype=float)
    if rf is not None:
        r = r - np.asarray(rf, dtype=float)
    r = r[np.isfinite(r)]
    if r.size < 2:
        raise InsufficientObservationsError("need at least 2 finite returns")

    mean = r.mean() * periods_per_year
    std = r.std(ddof=1) * np.sqrt(periods_per_year)
    sharpe = mean / std if std > 0 else np.nan
    return dict(mean=mean, std=std, sharpe=sharpe, n_obs=int(r.size))


def performance_table(series_by_name, rf=None, periods_per_year=config.PERIODS_PER_YEAR):
    """
    Stack ``performance_stats`` for several return series into one table,
    e.g. {"Hi": hi, "Lo": lo, "Market": mkt}.

    Returns
    -------
    DataFrame indexed by series name with columns mean, std, sharpe, n_obs
    """
    rows = {name: performance_stats(r, rf=rf, periods_per_year=periods_per_year)
            for name, r in series_by_name.items()}
    return pd.DataFrame.from_dict(rows, orient="index")[["mean", "std", "sharpe", "n_obs"]]
