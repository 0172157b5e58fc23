"""
Coordinate system definitions and vector helpers.

This module defines the world coordinate system used by the orbit controller
and the small set of pure vector functions the pose math is built from.

World Coordinate System:
    +X: Right
    +Y: Up
    +Z: Out of screen (toward viewer)
    Camera: Located in world space, looks down -Z axis in its local frame

Every function here returns a new read-only float64 array. Vectors are
values: nothing in the package mutates a vector after it is created.
"""

import numpy as np
from typing import Optional, Sequence, Tuple, Union
from numpy.typing import NDArray


VectorLike = Union[Sequence[float], NDArray[np.float64]]

# Below this length a vector is treated as zero
EPSILON = 1e-12


def vec3(values: VectorLike) -> NDArray[np.float64]:
    """
    Build an immutable 3-vector.

    Args:
        values: Any sequence of three numbers

    Returns:
        Read-only float64 array, shape (3,)

    Raises:
        ValueError: If values does not hold exactly three finite numbers
    """
    arr = np.array(values, dtype=np.float64).reshape(-1)
    if arr.shape != (3,):
        raise ValueError(f"expected 3 components, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise ValueError(f"vector components must be finite, got {arr.tolist()}")
    arr.flags.writeable = False
    return arr


def _frozen(arr: NDArray[np.float64]) -> NDArray[np.float64]:
    arr = np.asarray(arr, dtype=np.float64)
    arr.flags.writeable = False
    return arr


class WorldCoordinates:
    """
    Documentation of the world coordinate system.

    Orbit angles are measured relative to these axes:
    - yaw 0° puts the camera on +Z of the target, yaw 90° on +X
    - pitch 0° is level with the target, pitch +90° is straight above it
    """

    UP_AXIS = _frozen(np.array([0.0, 1.0, 0.0]))
    FORWARD_AXIS = _frozen(np.array([0.0, 0.0, -1.0]))  # Camera looks down -Z
    RIGHT_AXIS = _frozen(np.array([1.0, 0.0, 0.0]))


def normalize(v: VectorLike) -> NDArray[np.float64]:
    """
    Scale a vector to unit length.

    Raises:
        ValueError: If the vector has (near) zero length
    """
    arr = np.asarray(v, dtype=np.float64)
    length = float(np.linalg.norm(arr))
    if not np.isfinite(length) or length < EPSILON:
        raise ValueError(f"cannot normalize degenerate vector {arr.tolist()}")
    return _frozen(arr / length)


def cross(a: VectorLike, b: VectorLike) -> NDArray[np.float64]:
    """Cross product of two 3-vectors as a new read-only array."""
    return _frozen(np.cross(np.asarray(a, dtype=np.float64),
                            np.asarray(b, dtype=np.float64)))


def yaw_axis(yaw_deg: float) -> NDArray[np.float64]:
    """
    Horizontal axis perpendicular to the orbit direction for a given yaw.

    Depends on yaw only, so it stays unit length at every pitch,
    including straight above or below the target.

    Args:
        yaw_deg: Yaw angle in degrees

    Returns:
        (cos(yaw), 0, -sin(yaw))
    """
    yaw_rad = np.radians(yaw_deg)
    return _frozen(np.array([np.cos(yaw_rad), 0.0, -np.sin(yaw_rad)]))


def look_at_matrix(
    eye: VectorLike,
    target: VectorLike,
    up: Optional[VectorLike] = None
) -> NDArray[np.float64]:
    """
    Construct camera-to-world matrix for camera at 'eye' looking at 'target'.

    Args:
        eye: Camera position in world coords, shape (3,)
        target: Point camera looks at in world coords, shape (3,)
        up: Up direction hint in world coords, shape (3,)
            Default: [0, 1, 0] (Y-up)

    Returns:
        4x4 camera-to-world transform matrix
        - Upper-left 3x3: rotation (c2w)
        - Upper-right 3x1: translation (camera position)
        - Bottom row: [0, 0, 0, 1]

    Raises:
        ValueError: If eye and target coincide or up is parallel to the
                    view direction

    Note:
        Camera local axes:
        - forward = (target - eye) normalized
        - right = cross(forward, up) normalized
        - actual_up = cross(right, forward)

        In camera local frame, camera looks down -Z (so forward maps to -Z).
    """
    if up is None:
        up = WorldCoordinates.UP_AXIS

    eye = np.asarray(eye, dtype=np.float64)
    forward = normalize(np.asarray(target, dtype=np.float64) - eye)
    right = normalize(np.cross(forward, np.asarray(up, dtype=np.float64)))
    actual_up = np.cross(right, forward)

    c2w = np.eye(4, dtype=np.float64)
    c2w[:3, :3] = np.column_stack([right, actual_up, -forward])
    c2w[:3, 3] = eye
    return _frozen(c2w)


def cartesian_to_spherical(
    offset: VectorLike
) -> Tuple[float, float, float]:
    """
    Convert an offset from the target to orbit coordinates (Y-up).

    Inverse of spherical_to_cartesian().

    Args:
        offset: Cartesian offset [x, y, z] of the camera from its target

    Returns:
        Tuple of (distance, pitch_deg, yaw_deg) where:
            distance: Length of the offset
            pitch_deg: Angle above the XZ plane (degrees)
            yaw_deg: Angle in the XZ plane from +Z toward +X (degrees)

        A zero offset returns (0.0, 0.0, 0.0).
    """
    x, y, z = (float(c) for c in np.asarray(offset, dtype=np.float64))
    distance = float(np.sqrt(x * x + y * y + z * z))
    if distance < EPSILON:
        return 0.0, 0.0, 0.0
    pitch_deg = float(np.degrees(np.arcsin(np.clip(y / distance, -1.0, 1.0))))
    yaw_deg = float(np.degrees(np.arctan2(x, z)))
    return distance, pitch_deg, yaw_deg


def orbit_direction(pitch_deg: float, yaw_deg: float) -> NDArray[np.float64]:
    """
    Unit vector from the target toward the camera.

    Args:
        pitch_deg: Elevation above the XZ plane in degrees
        yaw_deg: Rotation in the XZ plane from +Z toward +X in degrees

    Returns:
        (sin(yaw)cos(pitch), sin(pitch), cos(yaw)cos(pitch))

    Note:
        Yaw 0° = +Z, yaw 90° = +X, yaw 180° = -Z.
        Pitch +90° = straight above the target, -90° = straight below.
    """
    pitch_rad = np.radians(pitch_deg)
    yaw_rad = np.radians(yaw_deg)
    return _frozen(np.array([
        np.sin(yaw_rad) * np.cos(pitch_rad),
        np.sin(pitch_rad),
        np.cos(yaw_rad) * np.cos(pitch_rad),
    ]))


def spherical_to_cartesian(
    distance: float,
    pitch_deg: float,
    yaw_deg: float
) -> NDArray[np.float64]:
    """
    Convert orbit coordinates to a Cartesian offset from the target.

    Args:
        distance: Distance from the target
        pitch_deg: Elevation in degrees
        yaw_deg: Yaw in degrees

    Returns:
        Offset [x, y, z] of the camera from the target
    """
    return _frozen(distance * orbit_direction(pitch_deg, yaw_deg))
