"""Unit tests for liekf.lie.types (Pose3, LieState)."""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from liekf.lie import (
    MEASUREMENT_DIM,
    POSE_DIM,
    STATE_TANGENT_DIM,
    VELOCITY_DIM,
    LieState,
    Pose3,
)


class TestDimensions:
    """Test the dimension constants are consistent."""

    def test_tangent_dimension(self):
        """Test the state tangent space is pose plus velocity."""
        assert POSE_DIM == 6
        assert VELOCITY_DIM == 6
        assert STATE_TANGENT_DIM == 12
        assert MEASUREMENT_DIM == 6


class TestPose3:
    """Test suite for Pose3."""

    def test_identity_coordinates_are_zero(self):
        """Test identity pose has zero coordinates."""
        assert_array_equal(Pose3.identity().coordinates(), np.zeros(6))

    def test_coordinates_of_known_pose(self):
        """Test translation and rotation vector are recovered."""
        coords = np.array([1.0, -2.0, 3.0, 0.0, 0.0, np.pi / 2])
        p = Pose3.from_coordinates(coords)
        assert_allclose(p.coordinates(), coords, atol=1e-12)
        assert_allclose(p.rotation @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)

    def test_matrix_conversion(self):
        """Test 4x4 homogeneous matrix layout."""
        p = Pose3.from_coordinates(np.array([1.0, 2.0, 3.0, 0.1, 0.2, 0.3]))
        T = p.to_matrix()
        assert T.shape == (4, 4)
        assert_array_equal(T[3, :], [0.0, 0.0, 0.0, 1.0])
        assert_allclose(Pose3.from_matrix(T).coordinates(), p.coordinates(), atol=1e-12)

    def test_rejects_non_orthonormal_rotation(self):
        """Test that a scaled matrix is not accepted as rotation."""
        with pytest.raises(ValueError, match="orthonormal"):
            Pose3(rotation=2.0 * np.eye(3), translation=np.zeros(3))

    def test_rejects_reflection(self):
        """Test that det(R) = -1 is rejected."""
        with pytest.raises(ValueError, match="determinant"):
            Pose3(rotation=np.diag([1.0, 1.0, -1.0]), translation=np.zeros(3))

    def test_rejects_wrong_translation_shape(self):
        """Test translation shape validation."""
        with pytest.raises(ValueError, match="translation"):
            Pose3(rotation=np.eye(3), translation=np.zeros(2))

    def test_rejects_non_finite_translation(self):
        """Test that NaN translation is rejected."""
        with pytest.raises(ValueError, match="finite"):
            Pose3(rotation=np.eye(3), translation=np.array([0.0, np.nan, 0.0]))

    def test_from_coordinates_rejects_wrong_shape(self):
        """Test coordinate vector shape validation."""
        with pytest.raises(ValueError, match="shape"):
            Pose3.from_coordinates(np.zeros(3))

    def test_copy_is_independent(self):
        """Test that copies do not share arrays."""
        p = Pose3.identity()
        q = p.copy()
        q.translation[0] = 5.0
        assert p.translation[0] == 0.0


class TestLieState:
    """Test suite for LieState."""

    def test_identity(self):
        """Test identity state: zero pose coordinates and zero velocity."""
        x = LieState.identity()
        assert_array_equal(x.pose_coordinates(), np.zeros(6))
        assert_array_equal(x.velocity, np.zeros(6))

    def test_from_coordinates_defaults_velocity_to_zero(self):
        """Test omitted velocity is zero."""
        x = LieState.from_coordinates(np.array([1.0, 2.0, 3.0, 0.0, 0.0, 0.0]))
        assert_array_equal(x.velocity, np.zeros(6))

    def test_pose_coordinates_are_fresh(self):
        """Test that mutating the returned coordinates leaves the state alone."""
        x = LieState.from_coordinates(np.array([1.0, 2.0, 3.0, 0.0, 0.0, 0.0]))
        coords = x.pose_coordinates()
        coords[:] = 0.0
        assert_allclose(x.pose_coordinates()[:3], [1.0, 2.0, 3.0])

    def test_with_velocity_returns_new_state(self):
        """Test with_velocity does not mutate the original."""
        x = LieState.from_coordinates(np.zeros(6), velocity=np.ones(6))
        y = x.with_velocity(np.zeros(6))
        assert_array_equal(x.velocity, np.ones(6))
        assert_array_equal(y.velocity, np.zeros(6))
        assert_array_equal(y.pose.rotation, x.pose.rotation)

    def test_rejects_wrong_velocity_shape(self):
        """Test velocity shape validation."""
        with pytest.raises(ValueError, match="velocity"):
            LieState(pose=Pose3.identity(), velocity=np.zeros(3))

    def test_rejects_non_pose(self):
        """Test that pose must be a Pose3."""
        with pytest.raises(TypeError, match="Pose3"):
            LieState(pose=np.eye(4), velocity=np.zeros(6))

    def test_rejects_non_finite_velocity(self):
        """Test that infinite velocity is rejected."""
        with pytest.raises(ValueError, match="finite"):
            LieState(pose=Pose3.identity(), velocity=np.array([np.inf, 0, 0, 0, 0, 0]))
