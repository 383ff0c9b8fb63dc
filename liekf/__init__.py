"""Manifold-aware measurement linearization for Lie-group state estimation.

This package contains the reusable components of the Lie-group EKF:
- lie: SE(3) pose/state types and group operations (exp, log, retraction)
- estimators: numerical differentiation engine and the Lie-group EKF
- models: linearized measurement models and process models
"""

__version__ = "0.1.0"
