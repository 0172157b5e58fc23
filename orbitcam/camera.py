"""
Pose sinks: where the controller delivers camera poses.

A pose sink is the renderer-facing end of the controller. It receives a
position followed by a look-at call, once per accepted update, and is
never read back by the controller.

The Camera class here is a self-contained sink that keeps the resulting
extrinsics (position and camera-to-world rotation) so callers without a
renderer can still consume the pose.
"""

import numpy as np
from typing import Optional, Protocol
from numpy.typing import NDArray

from . import coordinates
from .coordinates import VectorLike


class PoseSink(Protocol):
    def set_position(self, x: float, y: float, z: float) -> None:
        ...

    def look_at(self, target: NDArray[np.float64], up: NDArray[np.float64]) -> None:
        ...


class Camera:
    """
    Camera extrinsics updated through the pose-sink interface.

    Extrinsics define the camera's pose in world coordinates:
    - position: 3D point in world space
    - rotation: 3x3 camera-to-world matrix; columns are the camera's
      right, up and backward (-forward) axes

    Camera looks down its local -Z axis (OpenGL convention).
    """

    def __init__(
        self,
        position: Optional[VectorLike] = None,
        rotation: Optional[NDArray[np.float64]] = None
    ):
        """
        Initialize a Camera.

        Args:
            position: Camera position in world coords, shape (3,)
                     If None, defaults to origin [0, 0, 0]
            rotation: Camera-to-world rotation matrix, shape (3, 3)
                     If None, defaults to identity (camera aligned with world axes)
        """
        if position is None:
            self.position = coordinates.vec3([0.0, 0.0, 0.0])
        else:
            self.position = coordinates.vec3(position)

        if rotation is None:
            self.rotation = np.eye(3, dtype=np.float64)
        else:
            self.rotation = np.array(rotation, dtype=np.float64)

    def set_position(self, x: float, y: float, z: float) -> None:
        """Move the camera without changing its orientation."""
        self.position = coordinates.vec3([x, y, z])

    def look_at(
        self,
        target: VectorLike,
        up: Optional[VectorLike] = None
    ) -> None:
        """
        Orient camera to look at target point.

        Updates the camera's rotation matrix so it looks at the target.
        Position remains unchanged.

        Args:
            target: 3D point to look at in world coords
            up: Up direction hint in world coords
                Default: [0, 1, 0] (Y-up)
        """
        c2w_matrix = coordinates.look_at_matrix(self.position, target, up)
        self.rotation = np.array(c2w_matrix[:3, :3])

    def get_c2w(self) -> NDArray[np.float64]:
        """
        Get camera-to-world transformation matrix.

        Returns:
            4x4 matrix that transforms points from camera space to world space
        """
        c2w = np.eye(4, dtype=np.float64)
        c2w[:3, :3] = self.rotation
        c2w[:3, 3] = self.position
        return c2w

    def get_w2c(self) -> NDArray[np.float64]:
        """
        Get world-to-camera transformation matrix.

        Returns:
            4x4 matrix, the inverse of get_c2w()
        """
        R_w2c = self.rotation.T
        t_w2c = -R_w2c @ self.position

        w2c = np.eye(4, dtype=np.float64)
        w2c[:3, :3] = R_w2c
        w2c[:3, 3] = t_w2c
        return w2c

    def get_forward_vector(self) -> NDArray[np.float64]:
        """Camera's viewing direction in world coordinates (unit length)."""
        return -self.rotation[:, 2]

    def get_up_vector(self) -> NDArray[np.float64]:
        """Camera's up direction in world coordinates (unit length)."""
        return self.rotation[:, 1]

    def get_right_vector(self) -> NDArray[np.float64]:
        """Camera's right direction in world coordinates (unit length)."""
        return self.rotation[:, 0]

    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Camera(pos={self.position.tolist()})"
