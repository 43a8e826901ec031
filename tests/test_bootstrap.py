import numpy as np
import pytest

from finmetrics import bootstrap as bs
from finmetrics import ols
from finmetrics.exceptions import (
    DimensionMismatchError,
    InvalidLagOrBlockSizeError,
    SingularMatrixError,
)
from finmetrics.utils import ols_fit


class FixedStarts:
    """Stand-in generator returning preset block starts."""

    def __init__(self, starts):
        self.starts = np.asarray(starts)

    def integers(self, low, high, size):
        assert size == len(self.starts)
        assert np.all((self.starts >= low) & (self.starts < high))
        return self.starts


@pytest.fixture
def fit(ts_data):
    X, y = ts_data["X"], ts_data["y"]
    b, _, e, _ = ols_fit(X, y)
    return X, y, b, e


# ---------------------------------------------------------------------
# Block index construction
# ---------------------------------------------------------------------

def test_draw_blocks_length_and_range(rng):
    for _ in range(200):
        idx = bs.draw_blocks(25, 5, rng)
        assert idx.shape == (25,)
        assert idx.min() >= 0 and idx.max() <= 24


def test_draw_blocks_wraps_around():
    idx = bs.draw_blocks(25, 5, FixedStarts([23, 0, 5, 10, 15]))
    assert list(idx[:5]) == [23, 24, 0, 1, 2]
    assert list(idx[5:10]) == [0, 1, 2, 3, 4]


def test_draw_blocks_truncates_tail_to_sample_size():
    # 3 blocks of 3 give 9 indices for T = 7
    idx = bs.draw_blocks(7, 3, FixedStarts([0, 3, 6]))
    assert list(idx) == [0, 1, 2, 3, 4, 5, 6]


def test_draw_blocks_block_size_one_is_iid_draw():
    a = bs.draw_blocks(30, 1, np.random.default_rng(5))
    b = np.random.default_rng(5).integers(0, 30, size=30)
    assert np.array_equal(a, b)


def test_invalid_block_size(fit, rng):
    X, y, b, e = fit
    with pytest.raises(InvalidLagOrBlockSizeError):
        bs.draw_blocks(10, 0, rng)
    with pytest.raises(InvalidLagOrBlockSizeError):
        bs.block_bootstrap(y, X, b, e, block_size=-2, n_sim=5, rng=rng)


# ---------------------------------------------------------------------
# Resampling
# ---------------------------------------------------------------------

def test_bootstrap_shape_and_reproducibility(fit):
    X, y, b, e = fit
    d1 = bs.bootstrap(y, X, b, e, n_sim=50, rng=np.random.default_rng(1))
    d2 = bs.bootstrap(y, X, b, e, n_sim=50, rng=np.random.default_rng(1))
    d3 = bs.bootstrap(y, X, b, e, n_sim=50, rng=np.random.default_rng(2))
    assert d1.shape == (50, 3)
    assert np.array_equal(d1, d2)
    assert not np.array_equal(d1, d3)


def test_bootstrap_draw_order(fit):
    X, y, b, e = fit
    draws = bs.bootstrap(y, X, b, e, n_sim=2, rng=np.random.default_rng(9))
    replay = np.random.default_rng(9)
    for s in range(2):
        idx = replay.integers(0, len(y), size=len(y))
        expected, _, _, _ = ols_fit(X, X @ b + e[idx])
        assert np.allclose(draws[s], expected)


def test_block_size_one_reproduces_independent_bootstrap(fit):
    X, y, b, e = fit
    iid = bs.bootstrap(y, X, b, e, n_sim=100, rng=np.random.default_rng(4))
    blk = bs.block_bootstrap(y, X, b, e, block_size=1, n_sim=100, rng=np.random.default_rng(4))
    assert np.array_equal(iid, blk)


def test_bootstrap_se_close_to_analytic(fit):
    X, y, b, e = fit
    draws = bs.bootstrap(y, X, b, e, n_sim=2000, rng=np.random.default_rng(11))
    summary = bs.summarize(draws)
    _, se, _, _ = ols_fit(X, y)
    assert np.allclose(summary["mean"], b, atol=0.02)
    assert np.allclose(summary["se"], se, rtol=0.15)


def test_block_bootstrap_widens_se_under_autocorrelation():
    rng = np.random.default_rng(21)
    n = 400
    x = np.empty(n)
    u = np.empty(n)
    x[0], u[0] = rng.standard_normal(2)
    for t in range(1, n):
        x[t] = 0.9 * x[t - 1] + rng.standard_normal()
        u[t] = 0.9 * u[t - 1] + rng.standard_normal()
    X = np.column_stack([np.ones(n), x])
    y = X @ [1.0, 0.5] + u
    b, _, e, _ = ols_fit(X, y)

    iid = bs.summarize(bs.bootstrap(y, X, b, e, n_sim=500, rng=np.random.default_rng(1)))
    blk = bs.summarize(bs.block_bootstrap(y, X, b, e, block_size=20, n_sim=500,
                                          rng=np.random.default_rng(1)))
    assert blk["se"][1] > 1.2 * iid["se"][1]


def test_bootstrap_aborts_on_singular_design(rng):
    x = rng.standard_normal(20)
    X = np.column_stack([np.ones(20), x, x])
    with pytest.raises(SingularMatrixError):
        bs.bootstrap(x, X, np.zeros(3), rng.standard_normal(20), n_sim=10, rng=rng)


def test_bootstrap_input_validation(fit, rng):
    X, y, b, e = fit
    with pytest.raises(DimensionMismatchError):
        bs.bootstrap(y, X, b, e[:-1], n_sim=5, rng=rng)
    with pytest.raises(ValueError, match="n_sim"):
        bs.bootstrap(y, X, b, e, n_sim=0, rng=rng)
    with pytest.raises(TypeError):
        bs.bootstrap(y, X, b, e, n_sim=5)


def test_bootstrap_ols_summary(ts_data):
    res = bs.bootstrap_ols(ts_data["X"], ts_data["y"], n_sim=200,
                           rng=np.random.default_rng(3), block_size=4)
    assert res["boot_estimates"].shape == (200, 3)
    assert np.all(res["ci_lo"] < res["beta_hat"])
    assert np.all(res["beta_hat"] < res["ci_hi"])
    assert res["analytic_se"].shape == (3,)


def test_summarize_known_draws():
    draws = np.array([[1.0, 10.0], [3.0, 10.0]])
    s = bs.summarize(draws)
    assert np.allclose(s["mean"], [2.0, 10.0])
    assert np.allclose(s["se"], [1.0, 0.0])


def test_bootstrap_accepts_single_outcome_column(fit):
    X, y, _, _ = fit
    res = ols.estimate(X, y[:, None])
    assert res["beta"].shape == (3, 1)
    d_col = bs.bootstrap(y[:, None], X, res["beta"], res["residuals"],
                         n_sim=20, rng=np.random.default_rng(1))
    d_vec = bs.bootstrap(y, X, res["beta"][:, 0], res["residuals"][:, 0],
                         n_sim=20, rng=np.random.default_rng(1))
    assert d_col.shape == (20, 3)
    assert np.allclose(d_col, d_vec)
    blk = bs.block_bootstrap(y, X, res["beta"], res["residuals"], block_size=3,
                             n_sim=5, rng=np.random.default_rng(1))
    assert blk.shape == (5, 3)


def test_bootstrap_rejects_several_outcome_columns(fit, rng):
    X, y, b, e = fit
    Y = np.column_stack([y, 2 * y])
    with pytest.raises(DimensionMismatchError, match="single column"):
        bs.bootstrap(Y, X, b, e, n_sim=5, rng=rng)
    with pytest.raises(DimensionMismatchError, match="beta"):
        bs.bootstrap(y, X, b[:2], e, n_sim=5, rng=rng)
