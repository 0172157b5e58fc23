"""
Input normalization and the interaction state machine.

InputNormalizer turns pointer, wheel and touch events into at most one
gesture delta each. It owns the InteractionState and is the only place
where gesture mode transitions happen:

    IDLE ──pointerdown──────────> ROTATING / PANNING (modifier held)
    IDLE ──touchstart (1)───────> ROTATING
    IDLE ──touchstart (2)───────> PINCH_ZOOMING
    any  ──pointerup/touchend──> IDLE

Wheel events never change the mode.
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import Optional, Union

from .events import PointerEvent, TouchEvent, WheelEvent

logger = logging.getLogger(__name__)

# Pinch separations change far less than wheel deltas per event
PINCH_ZOOM_FACTOR = 2.0


class GestureMode(enum.Enum):
    IDLE = "idle"
    ROTATING = "rotating"
    PANNING = "panning"
    PINCH_ZOOMING = "pinch_zooming"


@dataclass(frozen=True)
class RotateDelta:
    dx: float
    dy: float


@dataclass(frozen=True)
class PanDelta:
    dx: float
    dy: float


@dataclass(frozen=True)
class ZoomDelta:
    """Zoom amount in wheel units; positive moves the camera away."""
    amount: float


GestureDelta = Union[RotateDelta, PanDelta, ZoomDelta]


@dataclass
class InteractionState:
    """Per-gesture scratch state, cleared when the gesture ends."""
    mode: GestureMode = GestureMode.IDLE
    last_x: float = 0.0
    last_y: float = 0.0
    pinch_separation: Optional[float] = None

    def start(self, mode: GestureMode, x: float = 0.0, y: float = 0.0) -> None:
        self.mode = mode
        self.last_x = x
        self.last_y = y

    def clear(self) -> None:
        self.mode = GestureMode.IDLE
        self.pinch_separation = None


class InputNormalizer:
    """
    Convert native events into gesture deltas.

    Every on_* method returns the delta the event produced, or None when
    the event only changed (or did not affect) the interaction state.
    Events that do not fit the current mode are ignored, never raised.
    """

    def __init__(self):
        self.state = InteractionState()

    @property
    def mode(self) -> GestureMode:
        return self.state.mode

    # Pointer

    def on_pointer_down(self, event: PointerEvent) -> None:
        if not _finite(event.x, event.y):
            logger.debug("Ignoring pointerdown at non-finite (%s, %s)", event.x, event.y)
            return None
        mode = GestureMode.PANNING if event.modifier else GestureMode.ROTATING
        self.state.start(mode, event.x, event.y)
        logger.debug("Pointer down at (%.1f, %.1f): %s", event.x, event.y, mode.value)
        return None

    def on_pointer_move(self, event: PointerEvent) -> Optional[GestureDelta]:
        if self.state.mode not in (GestureMode.ROTATING, GestureMode.PANNING):
            return None

        dx = event.x - self.state.last_x
        dy = event.y - self.state.last_y
        if not _finite(dx, dy):
            logger.debug("Ignoring pointermove at non-finite (%s, %s)", event.x, event.y)
            return None
        self.state.last_x = event.x
        self.state.last_y = event.y

        if self.state.mode is GestureMode.PANNING:
            return PanDelta(dx, dy)
        return RotateDelta(dx, dy)

    def on_pointer_up(self, event: Optional[PointerEvent] = None) -> None:
        self.state.clear()
        return None

    # Wheel

    def on_wheel(self, event: WheelEvent) -> Optional[ZoomDelta]:
        event.prevent_default()
        if not _finite(event.delta_y):
            logger.debug("Ignoring wheel with delta_y=%s", event.delta_y)
            return None
        return ZoomDelta(event.delta_y)

    # Touch

    def on_touch_start(self, event: TouchEvent) -> None:
        event.prevent_default()
        count = len(event.contacts)
        if not _finite(*(v for c in event.contacts for v in (c.x, c.y))):
            logger.debug("Ignoring touchstart with non-finite contacts")
            return None

        if count == 1:
            contact = event.contacts[0]
            self.state.start(GestureMode.ROTATING, contact.x, contact.y)
        elif count == 2:
            self.state.start(GestureMode.PINCH_ZOOMING)
            self.state.pinch_separation = event.separation()
        else:
            logger.debug("Ignoring touchstart with %d contacts", count)
            return None

        logger.debug("Touch start with %d contact(s): %s", count, self.state.mode.value)
        return None

    def on_touch_move(self, event: TouchEvent) -> Optional[GestureDelta]:
        event.prevent_default()
        count = len(event.contacts)

        if count == 1 and self.state.mode is GestureMode.ROTATING:
            contact = event.contacts[0]
            dx = contact.x - self.state.last_x
            dy = contact.y - self.state.last_y
            if not _finite(dx, dy):
                logger.debug("Ignoring touchmove at non-finite (%s, %s)", contact.x, contact.y)
                return None
            self.state.last_x = contact.x
            self.state.last_y = contact.y
            return RotateDelta(dx, dy)

        if count == 2 and self.state.mode is GestureMode.PINCH_ZOOMING:
            separation = event.separation()
            if not _finite(separation):
                logger.debug("Ignoring pinch with non-finite separation")
                return None
            change = self.state.pinch_separation - separation
            self.state.pinch_separation = separation
            # Fingers moving apart (negative change) zoom in
            return ZoomDelta(change * PINCH_ZOOM_FACTOR)

        logger.debug(
            "Ignoring touchmove with %d contacts in %s", count, self.state.mode.value
        )
        return None

    def on_touch_end(self, event: Optional[TouchEvent] = None) -> None:
        if event is not None:
            event.prevent_default()
        self.state.clear()
        return None

    def reset(self) -> None:
        self.state = InteractionState()


def _finite(*values: float) -> bool:
    return all(math.isfinite(v) for v in values)
