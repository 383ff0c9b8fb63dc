"""
Extended Kalman Filter on a Lie-group state.

The filter keeps its estimate as a LieState (SE(3) pose + body twist) and its
covariance in the 12-dimensional tangent space at the estimate. Corrections
are applied through the retraction x ⊕ δ instead of vector addition.

Implements:
    - Prediction
      x̂_k^- = f(x̂_{k-1}, u_k)
      P_k^- = F_{k-1} P_{k-1} F_{k-1}^T + Q
    - Update against a LinearizedMeasurementModel
      H_k, V_k from model.update_jacobians(x̂_k^-)
      S = H P H^T + V R V^T,  K = P H^T S^{-1}
      x̂_k = x̂_k^- ⊕ K (z - h(x̂_k^-))
"""

from typing import Callable, Optional, Tuple

import numpy as np

from liekf.estimators.base import StateEstimator
from liekf.lie.se3 import state_retract
from liekf.lie.types import STATE_TANGENT_DIM, LieState


class LieExtendedKalmanFilter(StateEstimator):
    """
    Extended Kalman Filter for a LieState.

    Attributes:
        motion_model: Object with f(x, u, dt) -> LieState and
            F(x, u, dt) -> (12, 12) tangent-space Jacobian
        Q: Process noise covariance function Q(dt) -> (12×12)
        state: Current state estimate x̂_k (LieState)
        covariance: Current tangent-space covariance P_k (12×12)
        innovation_func: Optional innovation ν = f(z, z_pred)

    Example:
        >>> from liekf.models import ConstantVelocityLieModel, LiePositionMeasurementModel
        >>> motion = ConstantVelocityLieModel()
        >>> ekf = LieExtendedKalmanFilter(
        ...     motion, lambda dt: motion.Q(dt, 0.01, 0.01),
        ...     LieState.identity(), np.eye(12))
        >>> ekf.predict(dt=0.1)
        >>> ekf.update(LiePositionMeasurementModel(), np.zeros(6))
    """

    def __init__(
        self,
        motion_model,
        Q: Callable[[float], np.ndarray],
        x0: LieState,
        P0: np.ndarray,
        innovation_func: Optional[Callable[[np.ndarray, np.ndarray], np.ndarray]] = None,
    ):
        """
        Initialize Lie-group Extended Kalman Filter.

        Args:
            motion_model: Process model providing f(x, u, dt) and F(x, u, dt).
            Q: Process noise covariance function Q(dt) -> (12×12).
            x0: Initial state estimate.
            P0: Initial tangent-space covariance (12×12).
            innovation_func: Optional function to compute innovation ν = f(z, z_pred).
                Default is simple subtraction (z - z_pred).

        Raises:
            TypeError: If x0 is not a LieState.
            ValueError: If P0 has the wrong shape.
        """
        super().__init__(STATE_TANGENT_DIM)

        if not isinstance(x0, LieState):
            raise TypeError(f"x0 must be a LieState, got {type(x0)}")

        self.motion_model = motion_model
        self.Q = Q
        self.innovation_func = innovation_func

        self.state = x0.copy()
        self.covariance = np.asarray(P0, dtype=float).copy()

        if self.covariance.shape != (self.state_dim, self.state_dim):
            raise ValueError(
                f"P0 shape {self.covariance.shape} inconsistent with state_dim {self.state_dim}"
            )

    def predict(self, u: Optional[np.ndarray] = None, dt: float = 1.0) -> None:
        """
        Perform prediction step (time update).

        F is evaluated at the pre-prediction state x̂_{k-1}.

        Args:
            u: Optional control input vector. Passed through to the motion model.
            dt: Time step for integration.
        """
        x_pre = self.state

        F = self.motion_model.F(x_pre, u, dt)
        self.state = self.motion_model.f(x_pre, u, dt)

        self.covariance = F @ self.covariance @ F.T + self.Q(dt)

    def update(self, model, z: np.ndarray) -> None:
        """
        Perform measurement update (correction step).

        Calls model.update_jacobians() at the predicted state before reading
        model.H, so the Jacobian always belongs to the current estimate.

        Args:
            model: LinearizedMeasurementModel that produced z.
            z: Measurement vector (m,).

        Raises:
            ValueError: If z does not match the model's measurement dimension.
        """
        z = self._check_measurement(model, z)
        innovation, S, H, V, R = self._linearize(model, z)

        # Kalman gain: K = P H^T S^{-1}
        K = self.covariance @ H.T @ np.linalg.inv(S)

        # State update through the retraction: x̂_k = x̂_k^- ⊕ K ν
        self.state = state_retract(self.state, K @ innovation)

        # Covariance update (Joseph form for numerical stability)
        I_KH = np.eye(self.state_dim) - K @ H
        self.covariance = I_KH @ self.covariance @ I_KH.T + K @ V @ R @ V.T @ K.T

    def get_innovation(self, model, z: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute innovation (measurement residual) and its covariance.

        Args:
            model: LinearizedMeasurementModel that produced z.
            z: Measurement vector (m,).

        Returns:
            Tuple of (innovation, innovation_covariance).
        """
        z = self._check_measurement(model, z)
        innovation, S, _, _, _ = self._linearize(model, z)
        return innovation, S

    def _linearize(self, model, z: np.ndarray):
        model.update_jacobians(self.state)
        z_pred = model.h(self.state)
        H, V, R = model.H, model.V, model.covariance

        if self.innovation_func is not None:
            innovation = self.innovation_func(z, z_pred)
        else:
            innovation = z - z_pred

        S = H @ self.covariance @ H.T + V @ R @ V.T
        return innovation, S, H, V, R

    @staticmethod
    def _check_measurement(model, z: np.ndarray) -> np.ndarray:
        z = np.asarray(z, dtype=float)
        if z.shape != (model.measurement_dim,):
            raise ValueError(
                f"Measurement must have shape ({model.measurement_dim},), got {z.shape}"
            )
        return z
