"""
Linearized measurement models for Lie-group state estimation.

Provides:
- LinearizedMeasurementModel: interface consumed by the Lie-group EKF
  (h, H, V, measurement covariance and the update_jacobians hook)
- RetractedMeasurement: function object evaluating h(x ⊕ δ) for the
  numerical differentiation engine
- LiePositionMeasurementModel: sensor observing the pose coordinates,
  linearized numerically in the state tangent space

Usage contract: ``update_jacobians(x)`` must be called before ``H`` is read,
and ``H`` is only valid for that exact state. Nothing tracks staleness; reading
``H`` after the state has changed without re-linearizing is a caller error.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

import numpy as np

from liekf.estimators.numerical_diff import (
    DimensionMismatch,
    Functor,
    NumericalDiff,
    NumericalDiffOptions,
)
from liekf.lie.se3 import state_retract
from liekf.lie.types import (
    MEASUREMENT_DIM,
    STATE_TANGENT_DIM,
    VELOCITY_DIM,
    LieMeasurement,
    LieState,
)

logger = logging.getLogger(__name__)


class LinearizedMeasurementModel(ABC):
    """
    Measurement model z = h(x) + V v with a state-dependent Jacobian.

    Attributes:
        state_dim: Dimension of the state tangent space (columns of H).
        measurement_dim: Dimension of the measurement (rows of H).
        H: Jacobian ∂h/∂x in tangent coordinates, shape (m, n). Refreshed by
           update_jacobians().
        V: Noise coupling ∂h/∂v, shape (m, m). Identity unless a subclass
           sets it.
        covariance: Measurement noise covariance R, shape (m, m).
    """

    def __init__(
        self,
        state_dim: int,
        measurement_dim: int,
        covariance: Optional[np.ndarray] = None,
    ):
        self.state_dim = state_dim
        self.measurement_dim = measurement_dim
        self.H = np.zeros((measurement_dim, state_dim))
        self.V = np.eye(measurement_dim)
        self.covariance = np.eye(measurement_dim)
        if covariance is not None:
            self.set_covariance(covariance)

    def set_covariance(self, covariance: np.ndarray) -> None:
        """
        Set the measurement noise covariance R.

        Raises:
            ValueError: If R is not a symmetric positive definite (m, m) matrix.
        """
        covariance = np.asarray(covariance, dtype=np.float64)
        m = self.measurement_dim
        if covariance.shape != (m, m):
            raise ValueError(f"Covariance must be ({m}, {m}), got {covariance.shape}")
        if not np.allclose(covariance, covariance.T):
            raise ValueError("Covariance must be symmetric")
        try:
            np.linalg.cholesky(covariance)
        except np.linalg.LinAlgError:
            raise ValueError("Covariance must be positive definite") from None
        self.covariance = covariance.copy()

    @abstractmethod
    def h(self, state: LieState) -> LieMeasurement:
        """Predicted measurement for the given state."""

    @abstractmethod
    def update_jacobians(self, state: LieState) -> None:
        """Re-linearize the measurement function around the given state."""


class RetractedMeasurement(Functor):
    """
    Function object δ -> h((x ⊕ δ) with zero velocity).

    Holds only the measurement function and the base state; the
    differentiation engine calls it with tangent perturbations and never sees
    the model.

    Args:
        measurement_fn: Measurement function h(state) -> z.
        base_state: Linearization point x. Not modified.
        n_inputs: Tangent dimension of the state.
        n_values: Measurement dimension.
    """

    def __init__(
        self,
        measurement_fn: Callable[[LieState], np.ndarray],
        base_state: LieState,
        n_inputs: int = STATE_TANGENT_DIM,
        n_values: int = MEASUREMENT_DIM,
    ):
        self.measurement_fn = measurement_fn
        self.base_state = base_state
        self.n_inputs = n_inputs
        self.n_values = n_values

    def inputs(self) -> int:
        return self.n_inputs

    def values(self) -> int:
        return self.n_values

    def __call__(self, delta: np.ndarray) -> np.ndarray:
        perturbed = state_retract(self.base_state, delta)
        return self.measurement_fn(perturbed.with_velocity(np.zeros(VELOCITY_DIM)))


class LiePositionMeasurementModel(LinearizedMeasurementModel):
    """
    Pose measurement of a rigid body observed through two known landmarks.

    The sensor reports the body pose reduced to its coordinate vector
    z = [tx, ty, tz, rx, ry, rz] (e.g. from relative observations of two
    beacons with known positions). The velocity is not observed.

    The Jacobian is obtained numerically: the measurement function is
    evaluated at x ⊕ δ for tangent perturbations δ, so H is expressed in the
    same tangent coordinates the filter uses for its covariance. At the
    identity rotation the pose block of H is the 6x6 identity; at other
    orientations it is blockdiag(R, J_r⁻¹(φ)). The velocity block is zero.

    The noise coupling V is the identity and is set once: noise enters each
    measurement component additively and independently of the state.

    Example:
        >>> model = LiePositionMeasurementModel()
        >>> x = LieState.identity()
        >>> model.h(x)
        array([0., 0., 0., 0., 0., 0.])
        >>> model.update_jacobians(x)
        >>> model.H.shape
        (6, 12)
    """

    def __init__(
        self,
        diff_options: Optional[NumericalDiffOptions] = None,
        covariance: Optional[np.ndarray] = None,
    ):
        """
        Initialize position measurement model.

        Args:
            diff_options: Finite-difference configuration. Defaults to forward
                differences with relative step sqrt(ε).
            covariance: Measurement noise covariance R (6x6). Defaults to I.

        Raises:
            DimensionMismatch: If the function object's declared dimensions do
                not match the shape of H, or h returns a vector of another
                length.
        """
        super().__init__(STATE_TANGENT_DIM, MEASUREMENT_DIM, covariance)
        self.diff_options = diff_options if diff_options is not None else NumericalDiffOptions()

        # Static noise Jacobian
        self.V = np.eye(MEASUREMENT_DIM)

        functor = self.retracted(LieState.identity())
        declared = (functor.values(), functor.inputs())
        if declared != self.H.shape:
            raise DimensionMismatch("measurement function object", self.H.shape, declared)
        z0 = np.asarray(functor(np.zeros(functor.inputs())))
        if z0.shape != (functor.values(),):
            raise DimensionMismatch("measurement function value", (functor.values(),), z0.shape)

    def retracted(self, state: LieState) -> RetractedMeasurement:
        """Function object δ -> h(state ⊕ δ) with the model's declared dimensions."""
        return RetractedMeasurement(self.h, state, self.state_dim, self.measurement_dim)

    def h(self, state: LieState) -> LieMeasurement:
        """
        Measurement function: pose coordinates of the state.

        Args:
            state: Current state estimate.

        Returns:
            Predicted measurement [tx, ty, tz, rx, ry, rz], newly allocated.
        """
        if not isinstance(state, LieState):
            raise TypeError(f"state must be a LieState, got {type(state)}")
        return state.pose_coordinates()

    def update_jacobians(self, state: LieState) -> None:
        """
        Recompute H = ∂h/∂x at the given state.

        The derivative is taken with respect to a tangent perturbation δ of
        the state, through the retraction x ⊕ δ. Step sizes are scaled by the
        magnitude of the state's coordinates. The body-frame ρ steps all use
        the translation norm, since R ρ spreads each of them over every world
        axis.

        Preconditions: H is only valid for this state (see module notes), and
        the rotation angle must stay away from π. The rotation vector wraps
        there, so h is discontinuous and J_r⁻¹ is singular.

        Args:
            state: Linearization point. Not modified.
        """
        delta0 = np.zeros(self.state_dim)
        functor = self.retracted(state)
        coords = state.pose_coordinates()
        typical_x = np.abs(np.concatenate([coords, state.velocity]))
        typical_x[:3] = np.linalg.norm(coords[:3])

        self.H = NumericalDiff(functor, self.diff_options).df(delta0, typical_x=typical_x)
        logger.debug("Measurement Jacobian updated: H %s", self.H.shape)
