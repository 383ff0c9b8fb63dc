"""
Process models for Lie-group state estimation.

Provides a constant-velocity model on SE(3). The transition Jacobian is
estimated with the same finite-difference engine as the measurement Jacobian,
by differentiating δ -> f(x ⊕ δ) ⊖ f(x) in the state tangent space.
"""

from typing import Optional

import numpy as np

from liekf.estimators.numerical_diff import (
    CallableFunctor,
    NumericalDiff,
    NumericalDiffOptions,
)
from liekf.lie.se3 import se3_compose, se3_exp, state_local, state_retract
from liekf.lie.types import POSE_DIM, STATE_TANGENT_DIM, LieState, Pose3


class ConstantVelocityLieModel:
    """
    Constant body-twist motion model on SE(3).

    State: x = (T, v) with pose T and body twist v = [v_lin, ω]
    Dynamics: T_{k+1} = T_k · Exp(v_k dt),  v_{k+1} = v_k

    Example:
        >>> model = ConstantVelocityLieModel()
        >>> x = LieState.from_coordinates(np.zeros(6), np.array([1.0, 0, 0, 0, 0, 0]))
        >>> model.f(x, dt=0.5).pose_coordinates()[:3]
        array([0.5, 0. , 0. ])
    """

    def __init__(self, diff_options: Optional[NumericalDiffOptions] = None):
        self.diff_options = diff_options if diff_options is not None else NumericalDiffOptions()

    @staticmethod
    def f(x: LieState, u: Optional[np.ndarray] = None, dt: float = 1.0) -> LieState:
        """
        Process model: x_{k+1} = f(x_k, dt).

        Args:
            x: Current state
            u: Control input (unused)
            dt: Time step in seconds

        Returns:
            Propagated state
        """
        pose = Pose3.from_matrix(se3_compose(x.pose, se3_exp(x.velocity * dt)))
        return LieState(pose=pose, velocity=x.velocity.copy())

    def F(self, x: LieState, u: Optional[np.ndarray] = None, dt: float = 1.0) -> np.ndarray:
        """
        State transition Jacobian in tangent coordinates, shape (12, 12).

        Estimated numerically at x (the pre-prediction state).
        """
        x_next = self.f(x, u, dt)

        def propagated_local(delta: np.ndarray) -> np.ndarray:
            return state_local(self.f(state_retract(x, delta), u, dt), x_next)

        functor = CallableFunctor(propagated_local, STATE_TANGENT_DIM, STATE_TANGENT_DIM)
        return NumericalDiff(functor, self.diff_options).df(np.zeros(STATE_TANGENT_DIM))

    @staticmethod
    def Q(dt: float, q_linear: float = 1.0, q_angular: float = 1.0) -> np.ndarray:
        """
        Process noise covariance (continuous white noise acceleration).

        Each pose axis i is paired with velocity axis 6 + i:
            [[dt³/3, dt²/2], [dt²/2, dt]] * q

        Args:
            dt: Time step in seconds
            q_linear: Linear acceleration noise intensity (translation axes)
            q_angular: Angular acceleration noise intensity (rotation axes)

        Returns:
            12x12 process noise covariance matrix
        """
        Q = np.zeros((STATE_TANGENT_DIM, STATE_TANGENT_DIM))
        for i in range(POSE_DIM):
            q = q_linear if i < 3 else q_angular
            j = POSE_DIM + i
            Q[i, i] = q * dt**3 / 3
            Q[i, j] = Q[j, i] = q * dt**2 / 2
            Q[j, j] = q * dt
        return Q
