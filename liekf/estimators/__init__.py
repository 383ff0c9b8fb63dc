"""
State estimation on Lie-group states.

This module provides the numerical differentiation engine used to linearize
models in the state tangent space, and the Extended Kalman Filter that
consumes linearized measurement models.

Available components:
    - Numerical differentiation (forward / central differences)
    - Lie-group Extended Kalman Filter
"""

from liekf.estimators.numerical_diff import (
    CallableFunctor,
    DiffMethod,
    DimensionMismatch,
    Functor,
    NumericalDiff,
    NumericalDiffOptions,
)
from liekf.estimators.base import StateEstimator
from liekf.estimators.extended_kalman_filter import LieExtendedKalmanFilter

__all__ = [
    # Numerical differentiation
    "Functor",
    "CallableFunctor",
    "DiffMethod",
    "DimensionMismatch",
    "NumericalDiff",
    "NumericalDiffOptions",
    # Filters
    "StateEstimator",
    "LieExtendedKalmanFilter",
]
