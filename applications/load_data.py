"""
CSV loaders for the application scripts.

The estimators in ``finmetrics`` consume plain arrays; these helpers turn
the CSV layouts used by the applications into those arrays:

  returns file : one date column plus one column per asset (wide format)
  panel file   : one row per (id, period) with outcome and regressor columns
"""

from pathlib import Path

import numpy as np
import pandas as pd


def load_returns_csv(csv_path, date_col="date", drop_cols=()):
    """
    Load a wide returns file (dates x assets).

    Parameters
    ----------
    csv_path : str or Path
    date_col : str
        Column holding the dates; parsed and used as the index.
    drop_cols : iterable of str
        Non-asset columns (e.g. risk-free rate, market) to split off.

    Returns
    -------
    returns : DataFrame, dates x assets, sorted by date
    extra   : DataFrame of the dropped columns, same index
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Returns file not found: {csv_path}")
    df = pd.read_csv(csv_path)
    if date_col not in df.columns:
        raise ValueError(f"Column '{date_col}' not in {csv_path} (have {list(df.columns)})")
    df[date_col] = pd.to_datetime(df[date_col])
    df = df.set_index(date_col).sort_index()

    drop_cols = [c for c in drop_cols if c in df.columns]
    extra = df[drop_cols]
    returns = df.drop(columns=drop_cols).apply(pd.to_numeric, errors="coerce")
    return returns, extra


def load_panel_csv(csv_path, id_col, time_col, y_col, x_cols):
    """
    Load a long panel file and return aligned arrays.

    Rows are ordered by (id, time) so each unit's periods are consecutive.

    Returns
    -------
    dict with keys: y, X (without constant), ids, times, x_names
    """
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Panel file not found: {csv_path}")
    df = pd.read_csv(csv_path)
    missing = [c for c in [id_col, time_col, y_col, *x_cols] if c not in df.columns]
    if missing:
        raise ValueError(f"Columns {missing} not in {csv_path}")
    df = df.dropna(subset=[y_col, *x_cols])
    df = df.sort_values([id_col, time_col], kind="stable")
    return dict(
        y=df[y_col].to_numpy(dtype=float),
        X=df[list(x_cols)].to_numpy(dtype=float),
        ids=df[id_col].to_numpy(),
        times=df[time_col].to_numpy(),
        x_names=list(x_cols),
    )


def simulate_returns(n_periods=1500, n_assets=30, reversal=-0.05, seed=42):
    """
    Simulate daily returns with a one-factor structure and mild
    short-term reversal in the idiosyncratic part.

    Returns
    -------
    dict with keys: returns (DataFrame), market (Series), rf (Series)
    """
    rng = np.random.default_rng(seed)
    dates = pd.bdate_range("2010-01-04", periods=n_periods)
    market = 0.0003 + 0.01 * rng.standard_normal(n_periods)
    betas = rng.uniform(0.6, 1.4, n_assets)
    idio = np.empty((n_periods, n_assets))
    idio[0] = 0.015 * rng.standard_normal(n_assets)
    for t in range(1, n_periods):
        idio[t] = reversal * idio[t - 1] + 0.015 * rng.standard_normal(n_assets)
    R = market[:, None] * betas[None, :] + idio
    cols = [f"A{j:02d}" for j in range(n_assets)]
    return dict(
        returns=pd.DataFrame(R, index=dates, columns=cols),
        market=pd.Series(market, index=dates, name="Market"),
        rf=pd.Series(0.02 / 252, index=dates, name="rf"),
    )
