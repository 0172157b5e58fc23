"""
Pose calculation for the orbit camera.

compute_pose() maps orbit coordinates to a camera position and an
orientation basis. The up vector is derived from the current yaw instead
of a fixed world up, so the camera does not flip or jitter when pitch
passes through ±90°.
"""

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from . import coordinates
from .state import OrbitState


class PoseError(ValueError):
    """Raised when orbit coordinates cannot produce a finite pose."""


@dataclass(frozen=True)
class Pose:
    """
    Camera pose derived from an OrbitState.

    Attributes:
        position: Camera position in world coords
        target: Look-at point (the orbit target)
        up: Unit up vector passed to the renderer's look-at call
        right: Unit right vector of the camera after the look-at
        forward: Vector from camera to target (length = distance)
    """
    position: NDArray[np.float64]
    target: NDArray[np.float64]
    up: NDArray[np.float64]
    right: NDArray[np.float64]
    forward: NDArray[np.float64]


def compute_pose(state: OrbitState) -> Pose:
    """
    Compute the camera pose for the given orbit state.

    Steps:
        1. position = target + distance * orbit_direction(pitch, yaw)
        2. axis = (cos(yaw), 0, -sin(yaw)), independent of pitch
        3. forward = target - position
        4. up = normalize(cross(forward, axis))

    The cross product in step 4 is taken on the unit view direction, which
    is always perpendicular to the yaw axis. The result is therefore well
    defined even if distance has collapsed toward zero.

    Args:
        state: Orbit state to evaluate

    Returns:
        Pose with position, target, up, right and forward vectors

    Raises:
        PoseError: If the state holds non-finite values
    """
    values = (state.distance, state.pitch, state.yaw)
    if not (np.all(np.isfinite(values)) and np.all(np.isfinite(state.target))):
        raise PoseError(f"non-finite orbit state: {state!r}")

    direction = coordinates.orbit_direction(state.pitch, state.yaw)
    position = coordinates.vec3(state.target + state.distance * direction)
    forward = coordinates.vec3(state.target - position)

    axis = coordinates.yaw_axis(state.yaw)
    up = coordinates.normalize(coordinates.cross(-direction, axis))

    # Same right vector a look_at(target, up) call produces for this pose
    right = coordinates.normalize(coordinates.cross(-direction, up))

    return Pose(
        position=position,
        target=state.target,
        up=up,
        right=right,
        forward=forward
    )
