"""
Lagged-Return Portfolio Sort
============================

Each day, buy the basket of assets with the highest previous-day return
(Hi) and the basket with the lowest (Lo), equally weighted, and compare
their Sharpe ratios with a passive benchmark.

Usage:
    python analysis.py                       # simulated returns
    python analysis.py --csv returns.csv     # wide file: date, rf, market, assets...
"""

import argparse
import logging
import sys
from pathlib import Path

import pandas as pd

THIS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = THIS_DIR.parents[1]
sys.path.insert(0, str(PROJECT_ROOT))
sys.path.insert(0, str(THIS_DIR.parent))

from finmetrics import config
from finmetrics import portfolio_sort as m_sort

from load_data import load_returns_csv, simulate_returns


def parse_args():
    p = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    p.add_argument("--csv", help="wide returns file (dates x assets)")
    p.add_argument("--rf-col", default="rf")
    p.add_argument("--market-col", default="market")
    p.add_argument("--basket-size", type=int, default=config.BASKET_SIZE)
    p.add_argument("--lookback", type=int, default=config.LOOKBACK)
    p.add_argument("--periods-per-year", type=int, default=config.PERIODS_PER_YEAR)
    p.add_argument("--seed", type=int, default=config.SEED)
    p.add_argument("--verbose", action="store_true")
    return p.parse_args()


def get_data(args):
    if args.csv:
        returns, extra = load_returns_csv(args.csv, drop_cols=[args.rf_col, args.market_col])
        rf = extra[args.rf_col] if args.rf_col in extra else None
        if args.market_col in extra:
            market = extra[args.market_col]
        else:
            market = returns.mean(axis=1).rename("EqualWeight")
        return returns, market, rf
    print("[data] no --csv given, using simulated returns")
    sim = simulate_returns(seed=args.seed)
    return sim["returns"], sim["market"], sim["rf"]


def main():
    args = parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    print("=" * 60)
    print("Lagged-Return Portfolio Sort")
    print("=" * 60)

    returns, market, rf = get_data(args)
    print(f"\n{returns.shape[0]} periods x {returns.shape[1]} assets, "
          f"basket size {args.basket_size}, lookback {args.lookback}")

    res = m_sort.sort_portfolios(returns, lookback=args.lookback,
                                 basket_size=args.basket_size)
    series = {
        "Hi": res["hi"],
        "Lo": res["lo"],
        "Lo - Hi": res["lo"] - res["hi"],
        str(market.name): market,
    }
    # the long-short spread is self-financing: no risk-free deduction
    table = m_sort.performance_table(
        {k: v for k, v in series.items() if k != "Lo - Hi"},
        rf=rf, periods_per_year=args.periods_per_year,
    )
    spread = m_sort.performance_stats(series["Lo - Hi"],
                                      periods_per_year=args.periods_per_year)
    table.loc["Lo - Hi"] = pd.Series(spread)

    with pd.option_context("display.float_format", "{:.4f}".format):
        print("\nAnnualized performance (excess of risk-free):")
        print(table)

    turnover = res["w_hi"].diff().abs().sum(axis=1).mean()
    print(f"\nAverage daily turnover of the Hi basket: {turnover:.3f}")


if __name__ == "__main__":
    main()
