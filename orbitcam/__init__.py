"""
orbitcam - Orbit camera controller for interactive 3D viewers.

This package turns pointer, wheel and multi-touch input into a stable
camera pose around a target point:
- Gesture normalization (drag, shift-drag, wheel, one-finger drag, pinch)
- Spherical orbit state with distance and optional pitch limits
- Gimbal-lock-safe look-at poses delivered to any renderer pose sink

Example usage:
    from orbitcam import Camera, EventSurface, OrbitCameraController

    camera = Camera()
    surface = EventSurface()
    controller = OrbitCameraController(camera, position=(0, 0, 5))
    controller.set_angles(-14, 45)
    controller.setup_mouse_events(surface)
    controller.setup_touch_events(surface)
    ...
    controller.close()
"""

__version__ = "0.1.0"

from .camera import Camera, PoseSink
from .config import Config, OrbitConfig, ViewConfig
from .controller import OrbitCameraController
from .coordinates import cartesian_to_spherical, spherical_to_cartesian
from .events import (
    Contact,
    ContextMenuEvent,
    EventSurface,
    PointerEvent,
    TouchEvent,
    WheelEvent,
)
from .gestures import GestureMode, InputNormalizer
from .pose import Pose, PoseError, compute_pose
from .renderer import PyrenderCameraSink
from .replay import replay
from .state import OrbitLimits, OrbitSpeeds, OrbitState, PitchClamp

__all__ = [
    "Camera",
    "Config",
    "Contact",
    "ContextMenuEvent",
    "EventSurface",
    "GestureMode",
    "InputNormalizer",
    "OrbitCameraController",
    "OrbitConfig",
    "OrbitLimits",
    "OrbitSpeeds",
    "OrbitState",
    "PitchClamp",
    "PointerEvent",
    "Pose",
    "PoseError",
    "PoseSink",
    "PyrenderCameraSink",
    "TouchEvent",
    "ViewConfig",
    "WheelEvent",
    "cartesian_to_spherical",
    "compute_pose",
    "replay",
    "spherical_to_cartesian",
]
