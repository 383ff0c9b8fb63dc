"""SE(3) operations for Lie-group state estimation.

This module implements the group operations of SE(3), the group of rigid
transformations in 3D (rotation + translation), and the retraction used to
perturb a LieState in its tangent space. Numerical Jacobians of functions of
the state are taken through ``state_retract``, never by adding increments to
pose coordinates.

Key functions:
    - so3_exp / so3_log: rotation vector <-> rotation matrix
    - se3_exp / se3_log: tangent vector [ρ, φ] <-> pose
    - se3_compose / se3_inverse: group multiplication and inverse
    - se3_retract / se3_local: x ⊕ δ = x · Exp(δ) and a ⊖ b = Log(b⁻¹ · a)
    - state_retract / state_local: the same operations on a full LieState

SE(3) representation: functions accept Pose3 instances or 4x4 homogeneous
matrices and return 4x4 homogeneous matrices unless stated otherwise.
Tangent vectors are ordered [ρ (translation), φ (rotation)].
"""

from typing import Union

import numpy as np
from scipy.spatial.transform import Rotation

from .types import POSE_DIM, STATE_TANGENT_DIM, LieState, Pose3


# Below this rotation angle the closed forms are replaced by Taylor series
_SMALL_ANGLE = 1e-6


def _as_matrix(p: Union[np.ndarray, Pose3], name: str) -> np.ndarray:
    if isinstance(p, Pose3):
        return p.to_matrix()
    p = np.asarray(p, dtype=np.float64)
    if p.shape != (4, 4):
        raise ValueError(f"{name} must have shape (4, 4), got {p.shape}")
    return p


def _check_vector(v: np.ndarray, dim: int, name: str) -> np.ndarray:
    v = np.asarray(v, dtype=np.float64)
    if v.shape != (dim,):
        raise ValueError(f"{name} must have shape ({dim},), got {v.shape}")
    return v


def so3_hat(phi: np.ndarray) -> np.ndarray:
    """
    Skew-symmetric matrix of a 3-vector, so that so3_hat(a) @ b == cross(a, b).

    Args:
        phi: Vector of shape (3,).

    Returns:
        Skew-symmetric matrix of shape (3, 3).

    Examples:
        >>> a, b = np.array([1.0, 0, 0]), np.array([0, 1.0, 0])
        >>> np.allclose(so3_hat(a) @ b, np.cross(a, b))
        True
    """
    x, y, z = _check_vector(phi, 3, "phi")
    return np.array(
        [[0.0, -z, y], [z, 0.0, -x], [-y, x, 0.0]],
        dtype=np.float64,
    )


def so3_exp(phi: np.ndarray) -> np.ndarray:
    """
    Exponential map of SO(3): rotation vector -> rotation matrix.

    Args:
        phi: Rotation vector (axis * angle) of shape (3,), radians.

    Returns:
        Rotation matrix of shape (3, 3).
    """
    phi = _check_vector(phi, 3, "phi")
    return Rotation.from_rotvec(phi).as_matrix()


def so3_log(R: np.ndarray) -> np.ndarray:
    """
    Logarithm map of SO(3): rotation matrix -> rotation vector.

    Args:
        R: Rotation matrix of shape (3, 3).

    Returns:
        Rotation vector of shape (3,) with angle in [0, π].
    """
    R = np.asarray(R, dtype=np.float64)
    if R.shape != (3, 3):
        raise ValueError(f"R must have shape (3, 3), got {R.shape}")
    return Rotation.from_matrix(R).as_rotvec()


def so3_left_jacobian(phi: np.ndarray) -> np.ndarray:
    """
    Left Jacobian of SO(3).

        J_l(φ) = I + (1 - cos θ)/θ² Φ + (θ - sin θ)/θ³ Φ²,   Φ = [φ]×, θ = |φ|

    J_l maps a translational tangent component to the translation of
    Exp([ρ, φ]): t = J_l(φ) ρ.

    Args:
        phi: Rotation vector of shape (3,).

    Returns:
        Matrix of shape (3, 3).
    """
    Phi = so3_hat(phi)
    theta = np.linalg.norm(phi)
    if theta < _SMALL_ANGLE:
        return np.eye(3) + 0.5 * Phi + Phi @ Phi / 6.0
    a = (1.0 - np.cos(theta)) / theta**2
    b = (theta - np.sin(theta)) / theta**3
    return np.eye(3) + a * Phi + b * Phi @ Phi


def so3_right_jacobian_inverse(phi: np.ndarray) -> np.ndarray:
    """
    Inverse of the right Jacobian of SO(3).

        J_r⁻¹(φ) = I + ½Φ + (1/θ² - (1 + cos θ)/(2θ sin θ)) Φ²

    This is the derivative of Log(Exp(φ) · Exp(δ)) with respect to δ at
    δ = 0, i.e. the analytic rotation block of the pose-coordinate Jacobian.
    Singular at θ = π.

    Args:
        phi: Rotation vector of shape (3,).

    Returns:
        Matrix of shape (3, 3).
    """
    Phi = so3_hat(phi)
    theta = np.linalg.norm(phi)
    if theta < _SMALL_ANGLE:
        return np.eye(3) + 0.5 * Phi + Phi @ Phi / 12.0
    c = 1.0 / theta**2 - (1.0 + np.cos(theta)) / (2.0 * theta * np.sin(theta))
    return np.eye(3) + 0.5 * Phi + c * Phi @ Phi


def so3_left_jacobian_inverse(phi: np.ndarray) -> np.ndarray:
    """Inverse of the left Jacobian of SO(3): J_l⁻¹(φ) = J_r⁻¹(-φ)."""
    return so3_right_jacobian_inverse(-_check_vector(phi, 3, "phi"))


def se3_exp(xi: np.ndarray) -> np.ndarray:
    """
    Exponential map of SE(3): tangent vector [ρ, φ] -> pose.

    Args:
        xi: Tangent vector of shape (6,), [ρx, ρy, ρz, φx, φy, φz].

    Returns:
        Homogeneous matrix of shape (4, 4).

    Examples:
        >>> np.allclose(se3_exp(np.zeros(6)), np.eye(4))
        True
    """
    xi = _check_vector(xi, POSE_DIM, "xi")
    rho, phi = xi[:3], xi[3:]
    T = np.eye(4)
    T[:3, :3] = so3_exp(phi)
    T[:3, 3] = so3_left_jacobian(phi) @ rho
    return T


def se3_log(p: Union[np.ndarray, Pose3]) -> np.ndarray:
    """
    Logarithm map of SE(3): pose -> tangent vector [ρ, φ].

    Args:
        p: Pose3 or homogeneous matrix of shape (4, 4).

    Returns:
        Tangent vector of shape (6,).
    """
    T = _as_matrix(p, "p")
    phi = so3_log(T[:3, :3])
    rho = so3_left_jacobian_inverse(phi) @ T[:3, 3]
    return np.concatenate([rho, phi])


def se3_compose(
    p1: Union[np.ndarray, Pose3], p2: Union[np.ndarray, Pose3]
) -> np.ndarray:
    """
    Compose two SE(3) poses: p_result = p1 · p2.

        R = R1 R2
        t = R1 t2 + t1

    Args:
        p1: First pose.
        p2: Second pose.

    Returns:
        Composed pose as homogeneous matrix of shape (4, 4).
    """
    T1 = _as_matrix(p1, "p1")
    T2 = _as_matrix(p2, "p2")
    T = np.eye(4)
    T[:3, :3] = T1[:3, :3] @ T2[:3, :3]
    T[:3, 3] = T1[:3, :3] @ T2[:3, 3] + T1[:3, 3]
    return T


def se3_inverse(p: Union[np.ndarray, Pose3]) -> np.ndarray:
    """
    Compute the inverse of an SE(3) pose: p⁻¹ = (Rᵀ, -Rᵀ t).

    The inverse is computed directly, not via matrix inversion.
    """
    T = _as_matrix(p, "p")
    R_T = T[:3, :3].T
    T_inv = np.eye(4)
    T_inv[:3, :3] = R_T
    T_inv[:3, 3] = -R_T @ T[:3, 3]
    return T_inv


def se3_retract(p: Union[np.ndarray, Pose3], delta: np.ndarray) -> Pose3:
    """
    Retraction on SE(3): p ⊕ δ = p · Exp(δ) (right perturbation).

    Args:
        p: Base pose.
        delta: Tangent perturbation [ρ, φ] of shape (6,).

    Returns:
        Perturbed pose as Pose3. With delta = 0 the result equals p.
    """
    return Pose3.from_matrix(se3_compose(p, se3_exp(delta)))


def se3_local(
    p: Union[np.ndarray, Pose3], base: Union[np.ndarray, Pose3]
) -> np.ndarray:
    """
    Local coordinates of p around base: p ⊖ base = Log(base⁻¹ · p).

    Inverse of se3_retract near zero: se3_local(se3_retract(b, δ), b) ≈ δ.

    Returns:
        Tangent vector of shape (6,).
    """
    return se3_log(se3_compose(se3_inverse(base), p))


def state_retract(state: LieState, delta: np.ndarray) -> LieState:
    """
    Retraction on the full state: x ⊕ δ.

    The pose block δ[:6] is applied through se3_retract; the velocity block
    δ[6:] is added directly (the velocity space is flat).

    Args:
        state: Base state. Not modified.
        delta: State tangent vector of shape (12,).

    Returns:
        New LieState.

    Raises:
        ValueError: If delta does not have shape (12,).
    """
    delta = _check_vector(delta, STATE_TANGENT_DIM, "delta")
    pose = se3_retract(state.pose, delta[:POSE_DIM])
    return LieState(pose=pose, velocity=state.velocity + delta[POSE_DIM:])


def state_local(state: LieState, base: LieState) -> np.ndarray:
    """
    Local coordinates of a state around a base state: x ⊖ base.

    Returns:
        State tangent vector of shape (12,).
    """
    pose_delta = se3_local(state.pose, base.pose)
    return np.concatenate([pose_delta, state.velocity - base.velocity])
