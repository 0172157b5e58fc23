"""
Input events and the surface that delivers them.

An input surface is anything with add_listener(event_type, handler) that
returns a disposer. EventSurface is the in-process implementation: GUI
bindings (or the replay tool) translate native events into the event
types below and call EventSurface.dispatch().
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

POINTER_DOWN = "pointerdown"
POINTER_MOVE = "pointermove"
POINTER_UP = "pointerup"
WHEEL = "wheel"
CONTEXT_MENU = "contextmenu"
TOUCH_START = "touchstart"
TOUCH_MOVE = "touchmove"
TOUCH_END = "touchend"

MOUSE_EVENT_TYPES = (POINTER_DOWN, POINTER_MOVE, POINTER_UP, WHEEL, CONTEXT_MENU)
TOUCH_EVENT_TYPES = (TOUCH_START, TOUCH_MOVE, TOUCH_END)
EVENT_TYPES = MOUSE_EVENT_TYPES + TOUCH_EVENT_TYPES


@dataclass
class InputEvent:
    """Base event. Handlers call prevent_default() to claim the gesture."""
    default_prevented: bool = field(default=False, init=False)

    def prevent_default(self) -> None:
        self.default_prevented = True


@dataclass
class PointerEvent(InputEvent):
    """Mouse/pointer press, move or release in surface pixels."""
    x: float = 0.0
    y: float = 0.0
    modifier: bool = False  # pan modifier (e.g. shift) held


@dataclass
class WheelEvent(InputEvent):
    delta_y: float = 0.0


@dataclass
class ContextMenuEvent(InputEvent):
    pass


@dataclass(frozen=True)
class Contact:
    """One active touch point."""
    x: float
    y: float


@dataclass
class TouchEvent(InputEvent):
    """Touch event carrying every contact still on the surface."""
    contacts: Tuple[Contact, ...] = ()

    def __post_init__(self):
        self.contacts = tuple(
            c if isinstance(c, Contact) else Contact(*c) for c in self.contacts
        )

    def separation(self) -> float:
        """Distance between the first two contacts in pixels."""
        a, b = self.contacts[0], self.contacts[1]
        return math.hypot(a.x - b.x, a.y - b.y)


Handler = Callable[[InputEvent], None]
Disposer = Callable[[], None]


class InputSurface(Protocol):
    def add_listener(self, event_type: str, handler: Handler) -> Disposer:
        ...


class Registration:
    """
    Disposer for one listener registration.

    Calling it removes the listener; later calls do nothing.
    """

    def __init__(self, surface: "EventSurface", event_type: str, handler: Handler):
        self._surface = surface
        self.event_type = event_type
        self.handler = handler
        self.active = True

    def __call__(self) -> None:
        if not self.active:
            return
        self.active = False
        self._surface._remove(self.event_type, self.handler)

    def __repr__(self) -> str:
        state = "active" if self.active else "disposed"
        return f"Registration({self.event_type!r}, {state})"


class EventSurface:
    """
    Synchronous event dispatcher.

    dispatch() calls every listener for the event type in registration
    order and returns once all of them have finished.
    """

    def __init__(self, name: str = "surface"):
        self.name = name
        self._listeners: Dict[str, List[Handler]] = {}

    def add_listener(self, event_type: str, handler: Handler) -> Registration:
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type!r}")
        self._listeners.setdefault(event_type, []).append(handler)
        return Registration(self, event_type, handler)

    def _remove(self, event_type: str, handler: Handler) -> None:
        handlers = self._listeners.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return sum(len(handlers) for handlers in self._listeners.values())

    def dispatch(self, event_type: str, event: InputEvent) -> InputEvent:
        """
        Deliver an event to its listeners.

        Returns:
            The same event, so callers can inspect default_prevented
        """
        handlers = list(self._listeners.get(event_type, []))
        if not handlers:
            logger.debug("%s: no listeners for %s", self.name, event_type)
        for handler in handlers:
            handler(event)
        return event

    def __repr__(self) -> str:
        return f"EventSurface({self.name!r}, listeners={self.listener_count()})"
