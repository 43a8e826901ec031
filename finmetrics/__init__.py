"""
finmetrics -- from-scratch econometrics for financial time series and panels.

Each sub-module implements one method family using only numpy / scipy /
pandas, with no black-box econometrics packages:

  ols             OLS coefficients, residuals, fitted values, R^2
  covariance      iid, White and Newey-West coefficient covariances
  panel           within / between / first-difference / GLS transforms
                  and the corresponding panel estimators
  bootstrap       residual and circular block bootstrap
  portfolio_sort  lagged-return Hi / Lo portfolio sorts
"""

from .utils import ols_fit, add_const, make_rng
from .exceptions import (
    EstimationError,
    SingularMatrixError,
    InsufficientObservationsError,
    DimensionMismatchError,
    InvalidLagOrBlockSizeError,
)
from .covariance import CovKind
from . import config
from . import ols
from . import covariance
from . import panel
from . import bootstrap
from . import portfolio_sort

__version__ = "0.1.0"
