"""
Orbit camera controller.

OrbitCameraController ties the pieces together:

    input event -> InputNormalizer (mode + delta)
                -> OrbitState mutation
                -> compute_pose()
                -> pose sink (set_position + look_at)

Every event is handled synchronously and completely before the next one.
The controller owns its listener registrations and removes all of them
in close(), after which further events are ignored.
"""

import logging
from typing import Callable, List, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from . import coordinates
from .camera import PoseSink
from .config import OrbitConfig
from .coordinates import VectorLike
from .events import (
    CONTEXT_MENU,
    POINTER_DOWN,
    POINTER_MOVE,
    POINTER_UP,
    TOUCH_END,
    TOUCH_MOVE,
    TOUCH_START,
    WHEEL,
    ContextMenuEvent,
    InputSurface,
    PointerEvent,
    TouchEvent,
    WheelEvent,
)
from .gestures import (
    GestureDelta,
    GestureMode,
    InputNormalizer,
    PanDelta,
    RotateDelta,
    ZoomDelta,
)
from .pose import Pose, compute_pose
from .state import OrbitSnapshot, OrbitState

logger = logging.getLogger(__name__)


class OrbitCameraController:
    """
    Orbit a camera around a target from pointer, wheel and touch input.

    The initial orbit is derived from the offset between the camera
    position and the target. Pitch and yaw are in degrees.

    Example:
        camera = Camera()
        surface = EventSurface()
        with OrbitCameraController(camera, (0, 0, 5), (0, 0, 0)) as controller:
            controller.set_angles(-14, 45)
            controller.setup_mouse_events(surface)
            controller.setup_touch_events(surface)
            surface.dispatch("wheel", WheelEvent(delta_y=120))
    """

    def __init__(
        self,
        sink: PoseSink,
        position: VectorLike,
        target: VectorLike = (0.0, 0.0, 0.0),
        config: Optional[OrbitConfig] = None
    ):
        """
        Initialize the controller and apply the first pose.

        Args:
            sink: Renderer-side pose sink
            position: Initial camera position in world coords
            target: Orbit target in world coords
            config: Speeds and limits (defaults if None)

        Raises:
            ValueError: If position or target are not finite 3-vectors
        """
        self.config = config if config is not None else OrbitConfig()
        self._sink = sink

        target = coordinates.vec3(target)
        offset = coordinates.vec3(position) - target
        distance, pitch, yaw = coordinates.cartesian_to_spherical(offset)

        limits = self.config.limits()
        clamped = limits.clamp_distance(distance)
        if clamped != distance:
            logger.warning(
                "Initial camera distance %.4f outside [%.4f, %.4f]; using %.4f",
                distance, limits.min_distance, limits.max_distance, clamped
            )

        self._state = OrbitState(
            target=target,
            distance=clamped,
            pitch=pitch,
            yaw=yaw,
            limits=limits,
            speeds=self.config.speeds()
        )
        self._input = InputNormalizer()
        self._disposers: List[Callable[[], None]] = []
        self._attached: List[Tuple[InputSurface, str]] = []
        self._closed = False

        self._pose = self._apply_pose()

    # Read-only views of the state

    @property
    def target(self) -> NDArray[np.float64]:
        return self._state.target

    @property
    def distance(self) -> float:
        return self._state.distance

    @property
    def pitch(self) -> float:
        return self._state.pitch

    @property
    def yaw(self) -> float:
        return self._state.yaw

    @property
    def pose(self) -> Pose:
        return self._pose

    @property
    def mode(self) -> GestureMode:
        return self._input.mode

    @property
    def initial_state(self) -> OrbitSnapshot:
        return self._state.initial_state

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> OrbitSnapshot:
        return self._state.snapshot()

    # Programmatic control

    def set_target(self, target: VectorLike) -> None:
        self._state.set_target(target)
        self._apply_pose()

    def set_distance(self, distance: float) -> None:
        """Set the camera distance, clamped to the configured range."""
        self._state.set_distance(distance)
        self._apply_pose()

    def set_angles(self, pitch: float, yaw: float) -> None:
        """Set pitch and yaw in degrees. Pitch obeys the pitch clamp."""
        self._state.set_pitch(pitch)
        self._state.set_yaw(yaw)
        self._apply_pose()

    def reset(
        self,
        target: Optional[VectorLike] = None,
        distance: Optional[float] = None,
        pitch: Optional[float] = None,
        yaw: Optional[float] = None
    ) -> None:
        """
        Override the given orbit fields and leave the rest unchanged.

        Distance and pitch go through the same clamps as the setters.
        """
        if target is not None:
            self._state.set_target(target)
        if distance is not None:
            self._state.set_distance(distance)
        if pitch is not None:
            self._state.set_pitch(pitch)
        if yaw is not None:
            self._state.set_yaw(yaw)
        self._apply_pose()

    def save_initial_state(self) -> None:
        """Remember the current orbit for reset_to_initial()."""
        self._state.initial_state = self._state.snapshot()

    def reset_to_initial(self) -> None:
        """Restore the orbit saved at construction or by save_initial_state()."""
        self._state.restore(self._state.initial_state)
        self._apply_pose()

    # Event wiring

    def setup_mouse_events(self, surface: InputSurface) -> None:
        """Attach pointer, wheel and context-menu handlers to a surface."""
        self._listen(surface, POINTER_DOWN, self.on_pointer_down)
        self._listen(surface, POINTER_MOVE, self.on_pointer_move)
        self._listen(surface, POINTER_UP, self.on_pointer_up)
        self._listen(surface, WHEEL, self.on_wheel)
        self._listen(surface, CONTEXT_MENU, self.on_context_menu)

    def setup_touch_events(self, surface: InputSurface) -> None:
        """Attach touch handlers to a surface."""
        self._listen(surface, TOUCH_START, self.on_touch_start)
        self._listen(surface, TOUCH_MOVE, self.on_touch_move)
        self._listen(surface, TOUCH_END, self.on_touch_end)

    def _listen(self, surface: InputSurface, event_type: str, handler) -> None:
        if self._closed:
            raise RuntimeError("cannot attach events to a closed controller")
        if any(s is surface and t == event_type for s, t in self._attached):
            logger.warning("Already listening for %s on %r; skipping", event_type, surface)
            return
        self._disposers.append(surface.add_listener(event_type, handler))
        self._attached.append((surface, event_type))

    def close(self) -> None:
        """Remove every listener registration. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        disposers, self._disposers = self._disposers, []
        self._attached = []
        for dispose in disposers:
            dispose()
        self._input.reset()
        logger.debug("Controller closed, %d listener(s) removed", len(disposers))

    def __enter__(self) -> "OrbitCameraController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Event handlers

    def on_pointer_down(self, event: PointerEvent) -> None:
        if self._accepting(event):
            self._input.on_pointer_down(event)

    def on_pointer_move(self, event: PointerEvent) -> None:
        if self._accepting(event):
            self._apply_delta(self._input.on_pointer_move(event))

    def on_pointer_up(self, event: PointerEvent) -> None:
        if self._accepting(event):
            self._input.on_pointer_up(event)

    def on_wheel(self, event: WheelEvent) -> None:
        if self._accepting(event):
            self._apply_delta(self._input.on_wheel(event))

    def on_context_menu(self, event: ContextMenuEvent) -> None:
        if self._accepting(event):
            event.prevent_default()

    def on_touch_start(self, event: TouchEvent) -> None:
        if self._accepting(event):
            self._input.on_touch_start(event)

    def on_touch_move(self, event: TouchEvent) -> None:
        if self._accepting(event):
            self._apply_delta(self._input.on_touch_move(event))

    def on_touch_end(self, event: TouchEvent) -> None:
        if self._accepting(event):
            self._input.on_touch_end(event)

    def _accepting(self, event) -> bool:
        if self._closed:
            logger.debug("Ignoring %s after close", type(event).__name__)
            return False
        return True

    def _apply_delta(self, delta: Optional[GestureDelta]) -> None:
        if delta is None:
            return
        if isinstance(delta, RotateDelta):
            self._state.rotate(delta.dx, delta.dy)
        elif isinstance(delta, PanDelta):
            self._state.pan(delta.dx, delta.dy, self._pose.right, self._pose.up)
        elif isinstance(delta, ZoomDelta):
            self._state.zoom(delta.amount)
        self._apply_pose()

    def _apply_pose(self) -> Pose:
        pose = compute_pose(self._state)
        self._pose = pose
        x, y, z = (float(c) for c in pose.position)
        self._sink.set_position(x, y, z)
        self._sink.look_at(pose.target, pose.up)
        return pose

    def __repr__(self) -> str:
        return f"OrbitCameraController({self._state!r}, mode={self.mode.value})"
