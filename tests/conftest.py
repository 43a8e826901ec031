import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure():
    """Make ``finmetrics`` importable from a plain checkout."""
    repo_root = str(Path(__file__).resolve().parents[1])
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def ts_data(rng):
    """Regression with a constant and two regressors, homoskedastic errors."""
    n = 200
    X = np.column_stack([np.ones(n), rng.standard_normal(n), rng.uniform(-1, 1, n)])
    beta = np.array([1.0, 0.5, -2.0])
    y = X @ beta + rng.standard_normal(n)
    return dict(X=X, y=y, beta=beta)


def make_panel(rng, n_units=300, n_periods=5, beta=0.8, corr=0.6, trend=0.0):
    """y_it = 1 + trend*t + beta*x_it + a_i + e_it, Corr(x_it, a_i) != 0."""
    ids = np.repeat(np.arange(n_units), n_periods)
    t = np.tile(np.arange(n_periods), n_units).astype(float)
    a = np.repeat(rng.standard_normal(n_units), n_periods)
    x = corr * a + rng.standard_normal(n_units * n_periods)
    y = 1.0 + trend * t + beta * x + a + 0.5 * rng.standard_normal(n_units * n_periods)
    X = np.column_stack([np.ones_like(x), x])
    return dict(y=y, X=X, ids=ids, beta=beta)


@pytest.fixture
def panel_data(rng):
    return make_panel(rng)
