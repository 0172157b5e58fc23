"""
Orbit state: the spherical-coordinate description of the camera.

The controller owns exactly one OrbitState and is the only thing that
writes to it. Limits and speeds are frozen at construction; the four
orbit fields (target, distance, pitch, yaw) change with every accepted
gesture.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from .coordinates import VectorLike, vec3

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PitchClamp:
    """
    Optional pitch bounds.

    Either disabled (pitch is free, the default) or enabled with finite
    minimum and maximum in degrees. Use PitchClamp.from_bounds() to build
    one from possibly-missing configuration values.
    """
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    def __post_init__(self):
        if (self.minimum is None) != (self.maximum is None):
            raise ValueError(
                "PitchClamp needs both bounds or neither; "
                "use PitchClamp.from_bounds() for partial configuration"
            )
        if self.minimum is not None:
            if not (math.isfinite(self.minimum) and math.isfinite(self.maximum)):
                raise ValueError("pitch bounds must be finite")
            if self.minimum > self.maximum:
                raise ValueError(
                    f"min_pitch ({self.minimum}) must not exceed max_pitch ({self.maximum})"
                )

    @classmethod
    def from_bounds(
        cls,
        minimum: Optional[float],
        maximum: Optional[float]
    ) -> "PitchClamp":
        """
        Build a clamp from configured bounds.

        The clamp is enabled only when both bounds are given and finite.
        A one-sided bound is ignored (with a warning), which keeps the
        behaviour of the viewer this controller was built for.
        """
        def usable(value):
            return value is not None and math.isfinite(value)

        if usable(minimum) and usable(maximum):
            return cls(float(minimum), float(maximum))
        if usable(minimum) or usable(maximum):
            logger.warning(
                "Only one pitch bound configured (min=%s, max=%s); pitch stays unclamped",
                minimum, maximum
            )
        return cls()

    @property
    def enabled(self) -> bool:
        return self.minimum is not None

    def apply(self, pitch: float) -> float:
        """Clamp pitch (degrees) when enabled, otherwise return it unchanged."""
        if not self.enabled:
            return pitch
        return max(self.minimum, min(self.maximum, pitch))


@dataclass(frozen=True)
class OrbitLimits:
    """Distance range and pitch clamp."""
    min_distance: float = 1.0
    max_distance: float = 100.0
    pitch: PitchClamp = field(default_factory=PitchClamp)

    def __post_init__(self):
        if not (math.isfinite(self.min_distance) and math.isfinite(self.max_distance)):
            raise ValueError("distance limits must be finite")
        if self.min_distance <= 0:
            raise ValueError(f"min_distance must be positive, got {self.min_distance}")
        if self.min_distance > self.max_distance:
            raise ValueError(
                f"min_distance ({self.min_distance}) must not exceed "
                f"max_distance ({self.max_distance})"
            )

    def clamp_distance(self, distance: float) -> float:
        return max(self.min_distance, min(self.max_distance, distance))


@dataclass(frozen=True)
class OrbitSpeeds:
    """Gesture sensitivities."""
    rotation_speed: float = 0.3   # degrees per pixel
    pan_speed: float = 0.002      # fraction of distance per pixel
    zoom_speed: float = 0.002     # fraction of distance per wheel unit

    def __post_init__(self):
        for name in ("rotation_speed", "pan_speed", "zoom_speed"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be positive and finite, got {value}")


@dataclass(frozen=True)
class OrbitSnapshot:
    """The four orbit fields captured at one moment."""
    target: NDArray[np.float64]
    distance: float
    pitch: float
    yaw: float


class OrbitState:
    """
    Mutable orbit fields plus the immutable limits and speeds.

    Invariant: limits.min_distance <= distance <= limits.max_distance.
    Pitch is kept inside the pitch clamp when it is enabled; yaw is never
    wrapped explicitly.
    """

    def __init__(
        self,
        target: VectorLike,
        distance: float,
        pitch: float,
        yaw: float,
        limits: Optional[OrbitLimits] = None,
        speeds: Optional[OrbitSpeeds] = None
    ):
        self.limits = limits if limits is not None else OrbitLimits()
        self.speeds = speeds if speeds is not None else OrbitSpeeds()

        self.target = vec3(target)
        self.distance = self.limits.clamp_distance(_finite(distance, "distance"))
        self.pitch = self.limits.pitch.apply(_finite(pitch, "pitch"))
        self.yaw = _finite(yaw, "yaw")

        self.initial_state = self.snapshot()

    def snapshot(self) -> OrbitSnapshot:
        return OrbitSnapshot(
            target=self.target,
            distance=self.distance,
            pitch=self.pitch,
            yaw=self.yaw
        )

    def restore(self, snapshot: OrbitSnapshot) -> None:
        self.target = snapshot.target
        self.distance = snapshot.distance
        self.pitch = snapshot.pitch
        self.yaw = snapshot.yaw

    def set_distance(self, distance: float) -> None:
        clamped = self.limits.clamp_distance(_finite(distance, "distance"))
        if clamped != distance:
            logger.debug("Distance %.4f clamped to %.4f", distance, clamped)
        self.distance = clamped

    def set_pitch(self, pitch: float) -> None:
        self.pitch = self.limits.pitch.apply(_finite(pitch, "pitch"))

    def set_yaw(self, yaw: float) -> None:
        self.yaw = _finite(yaw, "yaw")

    def set_target(self, target: VectorLike) -> None:
        self.target = vec3(target)

    # Gesture updates

    def rotate(self, dx: float, dy: float) -> None:
        """
        Dragging right turns yaw up, dragging up (negative dy) raises pitch.

        Raises:
            ValueError: If the result is not finite; the state is left unchanged
        """
        yaw = _finite(self.yaw + dx * self.speeds.rotation_speed, "yaw")
        pitch = _finite(self.pitch - dy * self.speeds.rotation_speed, "pitch")
        self.yaw = yaw
        self.pitch = self.limits.pitch.apply(pitch)

    def pan(
        self,
        dx: float,
        dy: float,
        right: NDArray[np.float64],
        up: NDArray[np.float64]
    ) -> None:
        """
        Slide the target in the camera plane.

        Scaling by distance keeps the on-screen pan speed the same at any
        zoom level.
        """
        scale = self.speeds.pan_speed * self.distance
        self.target = vec3(self.target + right * (-dx * scale) + up * (dy * scale))

    def zoom(self, amount: float) -> None:
        """Multiplicative zoom; positive amount moves the camera away."""
        self.set_distance(self.distance + amount * self.speeds.zoom_speed * self.distance)

    def __repr__(self) -> str:
        return (
            f"OrbitState(target={self.target.tolist()}, distance={self.distance:.3f}, "
            f"pitch={self.pitch:.2f}, yaw={self.yaw:.2f})"
        )


def _finite(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite, got {value}")
    return value
