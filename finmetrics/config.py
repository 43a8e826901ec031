"""
Package configuration -- edit this file to change the default settings.

The values below are used as keyword defaults throughout ``finmetrics``
and by the scripts under ``applications/``.
"""

# ── Covariance ────────────────────────────────────────────────────────────────
NW_LAGS = None          # Newey-West lag count; None -> floor(4 * (T/100)^(2/9))

# ── Resampling ────────────────────────────────────────────────────────────────
N_SIM      = 1000       # bootstrap replications
BLOCK_SIZE = 5          # rows per block in the block bootstrap
SEED       = 42         # seed recorded with every experiment
CI_LEVEL   = 0.95       # percentile interval coverage

# ── Portfolio sort ────────────────────────────────────────────────────────────
BASKET_SIZE      = 5    # assets in each of the Hi / Lo baskets
LOOKBACK         = 1    # ranking period offset (t - LOOKBACK)
PERIODS_PER_YEAR = 252  # annualization factor for daily data
