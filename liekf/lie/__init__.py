"""
Lie-group types and SE(3) operations.

This module provides the pose/state value types and the manifold primitives
(exponential and logarithm maps, composition, retraction) used by the
measurement model and the filter.
"""

from .types import (
    MEASUREMENT_DIM,
    POSE_DIM,
    STATE_TANGENT_DIM,
    VELOCITY_DIM,
    LieMeasurement,
    LieState,
    Pose3,
)
from .se3 import (
    se3_compose,
    se3_exp,
    se3_inverse,
    se3_local,
    se3_log,
    se3_retract,
    so3_exp,
    so3_hat,
    so3_left_jacobian,
    so3_left_jacobian_inverse,
    so3_log,
    so3_right_jacobian_inverse,
    state_local,
    state_retract,
)

__all__ = [
    # Types
    "Pose3",
    "LieState",
    "LieMeasurement",
    "POSE_DIM",
    "VELOCITY_DIM",
    "STATE_TANGENT_DIM",
    "MEASUREMENT_DIM",
    # SO(3)
    "so3_hat",
    "so3_exp",
    "so3_log",
    "so3_left_jacobian",
    "so3_left_jacobian_inverse",
    "so3_right_jacobian_inverse",
    # SE(3)
    "se3_exp",
    "se3_log",
    "se3_compose",
    "se3_inverse",
    "se3_retract",
    "se3_local",
    # Full state
    "state_retract",
    "state_local",
]
