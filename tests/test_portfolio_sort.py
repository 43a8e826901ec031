import numpy as np
import pandas as pd
import pytest

from finmetrics import portfolio_sort as ps
from finmetrics.exceptions import InsufficientObservationsError


@pytest.fixture
def small_returns():
    return np.array([
        [1.0, 2.0, 3.0, 4.0],
        [0.1, 0.2, 0.3, 0.5],
        [0.4, 0.3, 0.2, 0.1],
    ])


def test_three_period_four_asset_example(small_returns):
    R = small_returns
    res = ps.sort_portfolios(R, lookback=1, basket_size=2)
    assert np.allclose(res["w_hi"][1], [0.0, 0.0, 0.5, 0.5])
    assert np.allclose(res["w_lo"][1], [0.5, 0.5, 0.0, 0.0])
    assert res["hi"][1] == pytest.approx(0.5 * R[1, 2] + 0.5 * R[1, 3])
    assert res["lo"][1] == pytest.approx(0.5 * R[1, 0] + 0.5 * R[1, 1])
    # period-3 baskets come from period-2 ranks (same order here)
    assert res["hi"][2] == pytest.approx(0.15)
    assert res["lo"][2] == pytest.approx(0.35)


def test_first_period_undefined(small_returns):
    res = ps.sort_portfolios(small_returns, basket_size=2)
    assert res["hi"].shape == (3,)
    assert np.isnan(res["hi"][0]) and np.isnan(res["lo"][0])
    assert np.isnan(res["w_hi"][0]).all()


def test_weights_equal_the_dot_product(rng):
    R = rng.standard_normal((30, 12))
    res = ps.sort_portfolios(R, basket_size=5)
    for t in range(1, 30):
        assert res["w_hi"][t].sum() == pytest.approx(1.0)
        assert np.count_nonzero(res["w_lo"][t]) == 5
        assert res["hi"][t] == pytest.approx(res["w_hi"][t] @ R[t])
        assert res["lo"][t] == pytest.approx(res["w_lo"][t] @ R[t])


def test_no_look_ahead(rng):
    R = rng.standard_normal((10, 8))
    before = ps.sort_portfolios(R, basket_size=3)
    R2 = R.copy()
    R2[-1] = R2[-1][::-1] * 10
    after = ps.sort_portfolios(R2, basket_size=3)
    # row 0 is NaN before any ranking is possible
    assert np.array_equal(before["w_hi"], after["w_hi"], equal_nan=True)
    assert np.array_equal(before["w_lo"], after["w_lo"], equal_nan=True)
    assert np.array_equal(before["hi"][:-1], after["hi"][:-1], equal_nan=True)


def test_ties_keep_asset_order():
    R = np.zeros((2, 4))
    res = ps.sort_portfolios(R, basket_size=1)
    assert np.allclose(res["w_lo"][1], [1.0, 0.0, 0.0, 0.0])
    assert np.allclose(res["w_hi"][1], [0.0, 0.0, 0.0, 1.0])


def test_longer_lookback(rng):
    R = rng.standard_normal((6, 5))
    res = ps.sort_portfolios(R, lookback=2, basket_size=2)
    assert np.isnan(res["hi"][:2]).all()
    winners = np.argsort(R[1], kind="stable")[-2:]
    assert res["hi"][3] == pytest.approx(R[3, winners].mean())


def test_dataframe_in_series_out(small_returns):
    idx = pd.date_range("2024-01-01", periods=3)
    df = pd.DataFrame(small_returns, index=idx, columns=list("ABCD"))
    res = ps.sort_portfolios(df, basket_size=2)
    assert isinstance(res["hi"], pd.Series)
    assert res["hi"].index.equals(idx)
    assert res["w_hi"].loc[idx[1], "D"] == pytest.approx(0.5)


def test_invalid_arguments(small_returns):
    with pytest.raises(ValueError, match="basket_size"):
        ps.sort_portfolios(small_returns, basket_size=5)
    with pytest.raises(ValueError, match="lookback"):
        ps.sort_portfolios(small_returns, lookback=0, basket_size=2)
    bad = small_returns.copy()
    bad[0, 1] = np.nan
    with pytest.raises(ValueError, match="non-finite"):
        ps.sort_portfolios(bad, basket_size=2)


def test_performance_stats_annualisation():
    r = np.array([np.nan, 0.01, 0.03, 0.02, 0.00])
    stats = ps.performance_stats(r, rf=0.005, periods_per_year=252)
    excess = np.array([0.005, 0.025, 0.015, -0.005])
    assert stats["n_obs"] == 4
    assert stats["mean"] == pytest.approx(excess.mean() * 252)
    assert stats["std"] == pytest.approx(excess.std(ddof=1) * np.sqrt(252))
    assert stats["sharpe"] == pytest.approx(stats["mean"] / stats["std"])


def test_performance_stats_needs_two_returns():
    with pytest.raises(InsufficientObservationsError):
        ps.performance_stats(np.array([np.nan, 0.01]))


def test_performance_table(rng):
    R = 0.01 * rng.standard_normal((100, 10))
    res = ps.sort_portfolios(R, basket_size=3)
    table = ps.performance_table(
        {"Hi": res["hi"], "Lo": res["lo"], "Market": R.mean(axis=1)}, rf=0.0001
    )
    assert list(table.index) == ["Hi", "Lo", "Market"]
    assert list(table.columns) == ["mean", "std", "sharpe", "n_obs"]
    assert table.loc["Hi", "n_obs"] == 99
    assert table.loc["Market", "n_obs"] == 100
