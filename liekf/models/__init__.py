"""
Motion and measurement models for Lie-group state estimation.

This module provides the linearized measurement models consumed by the
Lie-group EKF and the process model used for its prediction step.
"""

from .motion_models import ConstantVelocityLieModel

from .measurement_models import (
    LinearizedMeasurementModel,
    LiePositionMeasurementModel,
    RetractedMeasurement,
)

__all__ = [
    # Motion models
    'ConstantVelocityLieModel',

    # Measurement models
    'LinearizedMeasurementModel',
    'LiePositionMeasurementModel',
    'RetractedMeasurement',
]
