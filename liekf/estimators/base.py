"""
Base classes for Lie-group state estimators.

This module defines the abstract interface shared by filters whose state is a
LieState. Covariances are expressed in the 12-dimensional state tangent space.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from liekf.lie.types import LieState


class StateEstimator(ABC):
    """Abstract base class for state estimators on a Lie-group state."""

    def __init__(self, state_dim: int):
        """
        Initialize state estimator.

        Args:
            state_dim: Dimension of the state tangent space.
        """
        self.state_dim = state_dim
        self.state: Optional[LieState] = None
        self.covariance: Optional[np.ndarray] = None

    @abstractmethod
    def predict(self, u: Optional[np.ndarray] = None, dt: float = 1.0) -> None:
        """
        Perform prediction step (time update).

        Args:
            u: Optional control input vector.
            dt: Time step in seconds.
        """
        pass

    @abstractmethod
    def update(self, model, z: np.ndarray) -> None:
        """
        Perform measurement update (correction step).

        Args:
            model: Linearized measurement model producing z.
            z: Measurement vector.
        """
        pass

    def get_state(self) -> Tuple[LieState, np.ndarray]:
        """
        Get current state estimate and covariance.

        Returns:
            Tuple of (state, covariance_matrix), both copies.
        """
        if self.state is None or self.covariance is None:
            raise RuntimeError("Estimator not initialized. Call predict() first.")
        return self.state.copy(), self.covariance.copy()
