"""Type definitions and data structures for Lie-group state estimation.

This module defines the value types shared by the measurement model, the
numerical differentiation engine and the filter.

Key types:
    - Pose3: SE(3) pose (rotation matrix + translation)
    - LieState: filter state, an SE(3) pose plus a flat body twist
    - LieMeasurement: type alias for the flat measurement vector

Coordinate conventions:
    - Pose coordinates (6,): [tx, ty, tz, rx, ry, rz], translation followed
      by the rotation vector (axis * angle, angle in [0, π]).
    - State tangent vector (12,): [ρ (3), φ (3), δv (6)], the SE(3) tangent
      (translational part first) followed by the velocity increment.
    - Velocity (6,): [vx, vy, vz, wx, wy, wz] body-frame twist.
"""

from dataclasses import dataclass

import numpy as np
from scipy.spatial.transform import Rotation


POSE_DIM = 6
VELOCITY_DIM = 6
STATE_TANGENT_DIM = POSE_DIM + VELOCITY_DIM
MEASUREMENT_DIM = 6

# Type alias: predicted/observed measurement, shape (MEASUREMENT_DIM,)
LieMeasurement = np.ndarray


@dataclass
class Pose3:
    """
    SE(3) pose representation.

    Represents a rigid transformation in space: a rotation matrix R (3x3,
    orthonormal, det = +1) and a translation t (3,). The pose maps body-frame
    points to the world frame: p_world = R @ p_body + t.

    Attributes:
        rotation: Rotation matrix of shape (3, 3).
        translation: Translation vector of shape (3,) in meters.

    Examples:
        >>> p = Pose3.identity()
        >>> p.coordinates()
        array([0., 0., 0., 0., 0., 0.])
        >>>
        >>> # 1 m along x, rotated 90° about z
        >>> p = Pose3.from_coordinates(np.array([1.0, 0, 0, 0, 0, np.pi / 2]))
        >>> np.allclose(p.to_matrix()[:3, 3], [1, 0, 0])
        True
    """

    rotation: np.ndarray
    translation: np.ndarray

    def __post_init__(self) -> None:
        """Validate and normalize pose values after initialization."""
        self.rotation = np.array(self.rotation, dtype=np.float64)
        self.translation = np.array(self.translation, dtype=np.float64)

        if self.rotation.shape != (3, 3):
            raise ValueError(f"rotation must have shape (3, 3), got {self.rotation.shape}")
        if self.translation.shape != (3,):
            raise ValueError(
                f"translation must have shape (3,), got {self.translation.shape}"
            )
        if not np.all(np.isfinite(self.rotation)):
            raise ValueError("rotation must be finite")
        if not np.all(np.isfinite(self.translation)):
            raise ValueError("translation must be finite")
        if not np.allclose(self.rotation.T @ self.rotation, np.eye(3), atol=1e-6):
            raise ValueError("rotation must be orthonormal")
        if np.linalg.det(self.rotation) < 0:
            raise ValueError("rotation must have determinant +1")

    def to_matrix(self) -> np.ndarray:
        """
        Convert pose to a 4x4 homogeneous transformation matrix.

        Returns:
            Array of shape (4, 4).
        """
        T = np.eye(4)
        T[:3, :3] = self.rotation
        T[:3, 3] = self.translation
        return T

    @classmethod
    def from_matrix(cls, T: np.ndarray) -> "Pose3":
        """
        Create Pose3 from a 4x4 homogeneous transformation matrix.

        Raises:
            ValueError: If T does not have shape (4, 4).
        """
        T = np.asarray(T, dtype=np.float64)
        if T.shape != (4, 4):
            raise ValueError(f"T must have shape (4, 4), got {T.shape}")
        return cls(rotation=T[:3, :3], translation=T[:3, 3])

    def coordinates(self) -> np.ndarray:
        """
        Flat coordinate vector of the pose: [tx, ty, tz, rx, ry, rz].

        Returns:
            Newly allocated array of shape (6,).
        """
        rotvec = Rotation.from_matrix(self.rotation).as_rotvec()
        return np.concatenate([self.translation, rotvec])

    @classmethod
    def from_coordinates(cls, coords: np.ndarray) -> "Pose3":
        """
        Create Pose3 from coordinates [tx, ty, tz, rx, ry, rz].

        Raises:
            ValueError: If coords does not have shape (6,).
        """
        coords = np.asarray(coords, dtype=np.float64)
        if coords.shape != (POSE_DIM,):
            raise ValueError(f"coords must have shape ({POSE_DIM},), got {coords.shape}")
        rotation = Rotation.from_rotvec(coords[3:]).as_matrix()
        return cls(rotation=rotation, translation=coords[:3])

    @classmethod
    def identity(cls) -> "Pose3":
        """Create identity pose (origin with zero rotation)."""
        return cls(rotation=np.eye(3), translation=np.zeros(3))

    def copy(self) -> "Pose3":
        return Pose3(rotation=self.rotation.copy(), translation=self.translation.copy())


@dataclass
class LieState:
    """
    Filter state: SE(3) pose plus body-frame velocity.

    The pose lives on the manifold and must only be perturbed through
    ``liekf.lie.se3.state_retract``; the velocity is a flat vector and is
    perturbed additively. The state tangent space has dimension
    STATE_TANGENT_DIM (12).

    Attributes:
        pose: SE(3) pose.
        velocity: Body twist [vx, vy, vz, wx, wy, wz], shape (6,).

    Examples:
        >>> x = LieState.identity()
        >>> x.pose_coordinates()
        array([0., 0., 0., 0., 0., 0.])
        >>> x.velocity.shape
        (6,)
    """

    pose: Pose3
    velocity: np.ndarray

    def __post_init__(self) -> None:
        """Validate state values after initialization."""
        if not isinstance(self.pose, Pose3):
            raise TypeError(f"pose must be a Pose3, got {type(self.pose)}")
        self.velocity = np.array(self.velocity, dtype=np.float64)
        if self.velocity.shape != (VELOCITY_DIM,):
            raise ValueError(
                f"velocity must have shape ({VELOCITY_DIM},), got {self.velocity.shape}"
            )
        if not np.all(np.isfinite(self.velocity)):
            raise ValueError("velocity must be finite")

    @classmethod
    def identity(cls) -> "LieState":
        """State at the identity pose with zero velocity."""
        return cls(pose=Pose3.identity(), velocity=np.zeros(VELOCITY_DIM))

    @classmethod
    def from_coordinates(cls, pose_coords: np.ndarray, velocity=None) -> "LieState":
        """
        Create a state from pose coordinates and an optional velocity.

        Args:
            pose_coords: Pose coordinates [tx, ty, tz, rx, ry, rz].
            velocity: Body twist (6,). Defaults to zero.
        """
        if velocity is None:
            velocity = np.zeros(VELOCITY_DIM)
        return cls(pose=Pose3.from_coordinates(pose_coords), velocity=velocity)

    def pose_coordinates(self) -> np.ndarray:
        """Pose coordinate vector, shape (6,). Newly allocated on each call."""
        return self.pose.coordinates()

    def with_velocity(self, velocity: np.ndarray) -> "LieState":
        """Return a copy of this state with the velocity replaced."""
        return LieState(pose=self.pose.copy(), velocity=velocity)

    def copy(self) -> "LieState":
        return LieState(pose=self.pose.copy(), velocity=self.velocity.copy())
