"""Unit tests for liekf.lie.se3 module.

Tests SE(3)/SO(3) group operations and the state retraction used to
linearize models in the tangent space.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from liekf.lie import (
    LieState,
    Pose3,
    se3_compose,
    se3_exp,
    se3_inverse,
    se3_local,
    se3_log,
    se3_retract,
    so3_exp,
    so3_hat,
    so3_left_jacobian,
    so3_log,
    so3_right_jacobian_inverse,
    state_local,
    state_retract,
)


class TestSO3:
    """Test suite for SO(3) helpers."""

    def test_hat_is_cross_product(self):
        """Test that hat(a) @ b equals a × b."""
        a = np.array([0.3, -1.2, 2.0])
        b = np.array([-0.7, 0.4, 1.5])
        assert_allclose(so3_hat(a) @ b, np.cross(a, b), atol=1e-12)

    def test_hat_is_skew_symmetric(self):
        """Test that hat(a)^T = -hat(a)."""
        Phi = so3_hat(np.array([1.0, 2.0, 3.0]))
        assert_allclose(Phi.T, -Phi)

    def test_exp_of_zero_is_identity(self):
        """Test Exp(0) = I exactly."""
        assert_array_equal(so3_exp(np.zeros(3)), np.eye(3))

    def test_exp_log_inverse(self):
        """Test Log(Exp(φ)) = φ for |φ| < π."""
        phi = np.array([0.4, -0.9, 1.1])
        assert_allclose(so3_log(so3_exp(phi)), phi, atol=1e-12)

    def test_exp_quarter_turn_about_z(self):
        """Test 90° rotation about z maps x-axis to y-axis."""
        R = so3_exp(np.array([0.0, 0.0, np.pi / 2]))
        assert_allclose(R @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_left_jacobian_continuous_at_small_angle_threshold(self):
        """Test the Taylor branch joins the closed form smoothly."""
        axis = np.array([1.0, 2.0, -2.0]) / 3.0
        below = so3_left_jacobian(0.999e-6 * axis)
        above = so3_left_jacobian(1.001e-6 * axis)
        assert_allclose(below, above, atol=1e-9)

    def test_right_jacobian_inverse_matches_log_derivative(self):
        """Test J_r⁻¹(φ) = ∂ Log(Exp(φ) Exp(δ)) / ∂δ at δ = 0."""
        phi = np.array([0.5, -0.3, 0.8])
        R = so3_exp(phi)
        eps = 1e-6
        J = np.zeros((3, 3))
        for i in range(3):
            d = np.zeros(3)
            d[i] = eps
            J[:, i] = (so3_log(R @ so3_exp(d)) - so3_log(R @ so3_exp(-d))) / (2 * eps)
        assert_allclose(so3_right_jacobian_inverse(phi), J, atol=1e-7)

    def test_hat_rejects_wrong_shape(self):
        """Test that non-3-vectors raise ValueError."""
        with pytest.raises(ValueError, match="shape"):
            so3_hat(np.zeros(4))


class TestSE3ExpLog:
    """Test suite for SE(3) exponential and logarithm maps."""

    def test_exp_of_zero_is_identity(self):
        """Test Exp(0) = I."""
        assert_array_equal(se3_exp(np.zeros(6)), np.eye(4))

    def test_exp_pure_translation(self):
        """Test that a tangent vector without rotation is a pure translation."""
        T = se3_exp(np.array([1.0, 2.0, 3.0, 0.0, 0.0, 0.0]))
        assert_allclose(T[:3, :3], np.eye(3))
        assert_allclose(T[:3, 3], [1.0, 2.0, 3.0])

    def test_log_inverts_exp(self):
        """Test Log(Exp(ξ)) = ξ."""
        xi = np.array([1.0, -2.0, 0.5, 0.3, -0.2, 0.4])
        assert_allclose(se3_log(se3_exp(xi)), xi, atol=1e-10)

    def test_exp_rotation_couples_translation(self):
        """Test that translation of Exp(ξ) is J_l(φ) ρ, not ρ."""
        xi = np.array([1.0, 0.0, 0.0, 0.0, 0.0, np.pi / 2])
        T = se3_exp(xi)
        assert not np.allclose(T[:3, 3], xi[:3])
        assert_allclose(T[:3, 3], so3_left_jacobian(xi[3:]) @ xi[:3])

    def test_exp_rejects_wrong_shape(self):
        """Test that tangent vectors of wrong length raise ValueError."""
        with pytest.raises(ValueError, match="shape"):
            se3_exp(np.zeros(3))


class TestSE3Group:
    """Test suite for composition and inverse."""

    def test_compose_with_inverse_is_identity(self):
        """Test p · p⁻¹ = identity."""
        p = Pose3.from_coordinates(np.array([1.0, -2.0, 3.0, 0.2, 0.4, -0.1]))
        assert_allclose(se3_compose(p, se3_inverse(p)), np.eye(4), atol=1e-12)
        assert_allclose(se3_compose(se3_inverse(p), p), np.eye(4), atol=1e-12)

    def test_compose_identity(self):
        """Test identity composition returns the same pose."""
        p = Pose3.from_coordinates(np.array([1.0, 2.0, 3.0, 0.0, 0.0, 0.5]))
        assert_allclose(se3_compose(Pose3.identity(), p), p.to_matrix())

    def test_compose_rotates_second_translation(self):
        """Test that the second translation is expressed in the first frame."""
        p1 = Pose3.from_coordinates(np.array([0.0, 0.0, 0.0, 0.0, 0.0, np.pi / 2]))
        p2 = Pose3.from_coordinates(np.array([1.0, 0.0, 0.0, 0.0, 0.0, 0.0]))
        T = se3_compose(p1, p2)
        assert_allclose(T[:3, 3], [0.0, 1.0, 0.0], atol=1e-12)

    def test_compose_accepts_matrices(self):
        """Test that 4x4 arrays and Pose3 instances are interchangeable."""
        p = Pose3.from_coordinates(np.array([1.0, 2.0, 3.0, 0.1, 0.2, 0.3]))
        assert_allclose(se3_compose(p.to_matrix(), p.to_matrix()), se3_compose(p, p))

    def test_compose_rejects_wrong_shape(self):
        """Test that non-4x4 arrays raise ValueError."""
        with pytest.raises(ValueError, match="shape"):
            se3_compose(np.eye(3), np.eye(4))


class TestRetraction:
    """Test suite for pose and state retraction."""

    def setup_method(self):
        self.state = LieState.from_coordinates(
            np.array([4.0, -3.0, 1.0, 0.0, 0.0, np.pi / 2]),
            velocity=np.array([0.1, 0.2, 0.3, 0.01, 0.02, 0.03]),
        )

    def test_retract_at_zero_is_exact(self):
        """Test x ⊕ 0 = x exactly."""
        x = state_retract(self.state, np.zeros(12))
        assert_array_equal(x.pose.rotation, self.state.pose.rotation)
        assert_array_equal(x.pose.translation, self.state.pose.translation)
        assert_array_equal(x.velocity, self.state.velocity)

    def test_retract_does_not_modify_base(self):
        """Test the base state is left untouched."""
        before = self.state.copy()
        state_retract(self.state, np.full(12, 0.1))
        assert_array_equal(self.state.pose.translation, before.pose.translation)
        assert_array_equal(self.state.velocity, before.velocity)

    def test_translation_perturbation_is_body_frame(self):
        """Test ρ is applied in the body frame (rotated by R)."""
        delta = np.zeros(12)
        delta[0] = 0.1
        x = state_retract(self.state, delta)
        assert_allclose(x.pose.translation, [4.0, -2.9, 1.0], atol=1e-12)

    def test_retraction_differs_from_coordinate_addition(self):
        """Test x ⊕ δ is not the naive sum of pose coordinates and δ."""
        delta = np.zeros(12)
        delta[0] = 0.1
        retracted = state_retract(self.state, delta).pose_coordinates()
        naive = self.state.pose_coordinates() + delta[:6]
        assert not np.allclose(retracted, naive)

    def test_velocity_is_additive(self):
        """Test the velocity block is perturbed by plain addition."""
        delta = np.zeros(12)
        delta[6:] = np.arange(6) * 0.5
        x = state_retract(self.state, delta)
        assert_allclose(x.velocity, self.state.velocity + delta[6:])

    def test_local_inverts_retract(self):
        """Test (x ⊕ δ) ⊖ x = δ near zero."""
        delta = np.array([0.02, -0.01, 0.03, 0.01, -0.02, 0.015,
                          0.1, 0.0, -0.1, 0.0, 0.05, 0.0])
        assert_allclose(state_local(state_retract(self.state, delta), self.state),
                        delta, atol=1e-10)

    def test_pose_local_inverts_pose_retract(self):
        """Test se3_local undoes se3_retract."""
        delta = np.array([0.3, -0.2, 0.1, 0.05, 0.1, -0.2])
        p = se3_retract(self.state.pose, delta)
        assert_allclose(se3_local(p, self.state.pose), delta, atol=1e-10)

    def test_retract_rejects_wrong_shape(self):
        """Test that a tangent vector of wrong length raises ValueError."""
        with pytest.raises(ValueError, match="shape"):
            state_retract(self.state, np.zeros(6))
