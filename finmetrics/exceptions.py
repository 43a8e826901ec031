"""
Exception classes raised by the estimators.

All errors derive from ``EstimationError`` (itself a ``ValueError``) so
callers can catch the whole family with one clause.
"""

import numpy as np


class EstimationError(ValueError):
    """Base class for estimation failures."""


class SingularMatrixError(EstimationError, np.linalg.LinAlgError):
    """
    A matrix that must be inverted is singular.

    Raised when the regressor matrix is not of full column rank, or when
    the covariance matrix of a joint hypothesis cannot be inverted.
    """


class InsufficientObservationsError(EstimationError):
    """Too few rows for the requested estimator (e.g. T < K)."""


class DimensionMismatchError(EstimationError):
    """Row counts (or key / weight lengths) of paired inputs disagree."""


class InvalidLagOrBlockSizeError(EstimationError):
    """Negative lag count or non-positive block size."""
