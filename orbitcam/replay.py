"""
Replay recorded input through an orbit controller.

An event script is a YAML (or JSON) document holding a list of records,
either at the top level or under an "events" key:

    events:
      - {type: pointerdown, x: 100, y: 100}
      - {type: pointermove, x: 140, y: 90}
      - {type: pointerup}
      - {type: wheel, delta_y: -120}
      - {type: touchstart, contacts: [[0, 0], [50, 0]]}
      - {type: touchmove, contacts: [{x: 0, y: 0}, {x: 150, y: 0}]}
      - {type: touchend}

Pointer records accept "modifier: true" for the pan modifier. Touch
contacts are either {x, y} mappings or [x, y] pairs.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray

from . import events as ev
from .camera import Camera
from .config import Config
from .controller import OrbitCameraController

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoseRecord:
    """One pose delivered to the sink."""
    index: int              # event index, -1 for poses applied during setup
    event_type: str
    position: Tuple[float, float, float]
    up: Tuple[float, float, float]
    target: Tuple[float, float, float]
    distance: float
    pitch: float
    yaw: float
    c2w: Tuple[Tuple[float, ...], ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'event_type': self.event_type,
            'position': list(self.position),
            'up': list(self.up),
            'target': list(self.target),
            'distance': self.distance,
            'pitch': self.pitch,
            'yaw': self.yaw,
            'c2w': [list(row) for row in self.c2w],
        }


class RecordingCamera(Camera):
    """Camera sink that counts look-at calls so each pose can be attributed."""

    def __init__(self):
        super().__init__()
        self.updates = 0

    def look_at(self, target, up=None) -> None:
        super().look_at(target, up)
        self.updates += 1


def parse_event(record: Dict[str, Any], index: int) -> Tuple[str, ev.InputEvent]:
    """
    Build an input event from one script record.

    Raises:
        ValueError: If the record has an unknown type or bad fields
    """
    if not isinstance(record, dict) or 'type' not in record:
        raise ValueError(f"Event {index}: expected a mapping with a 'type' key, got {record!r}")

    event_type = record['type']
    try:
        if event_type in (ev.POINTER_DOWN, ev.POINTER_MOVE, ev.POINTER_UP):
            return event_type, ev.PointerEvent(
                x=float(record.get('x', 0.0)),
                y=float(record.get('y', 0.0)),
                modifier=bool(record.get('modifier', False))
            )
        if event_type == ev.WHEEL:
            return event_type, ev.WheelEvent(delta_y=float(record.get('delta_y', 0.0)))
        if event_type == ev.CONTEXT_MENU:
            return event_type, ev.ContextMenuEvent()
        if event_type in ev.TOUCH_EVENT_TYPES:
            contacts = [_parse_contact(c) for c in record.get('contacts', [])]
            return event_type, ev.TouchEvent(contacts=tuple(contacts))
    except KeyError as e:
        raise ValueError(f"Event {index} ({event_type}): missing field {e}")
    except (TypeError, ValueError) as e:
        raise ValueError(f"Event {index} ({event_type}): {e}")

    raise ValueError(f"Event {index}: unknown event type {event_type!r}")


def _parse_contact(contact: Any) -> ev.Contact:
    """Accept a contact as {x: .., y: ..} or as an [x, y] pair."""
    if isinstance(contact, dict):
        return ev.Contact(float(contact['x']), float(contact['y']))
    x, y = contact
    return ev.Contact(float(x), float(y))


def load_event_script(filepath: str) -> List[Dict[str, Any]]:
    """
    Load event records from a YAML or JSON file.

    Returns:
        List of raw event records
    """
    try:
        import yaml
    except ImportError:
        raise ImportError(
            "PyYAML is required for event scripts. "
            "Install with: pip install pyyaml"
        )

    with open(filepath, 'r') as f:
        data = yaml.safe_load(f)

    if isinstance(data, dict):
        data = data.get('events', [])
    if data is None:
        return []
    if not isinstance(data, list):
        raise ValueError(f"{filepath}: event script must be a list of events")
    return data


def _record(index: int, event_type: str, controller: OrbitCameraController,
            camera: Camera) -> PoseRecord:
    pose = controller.pose
    c2w: NDArray[np.float64] = camera.get_c2w()
    return PoseRecord(
        index=index,
        event_type=event_type,
        position=tuple(float(c) for c in pose.position),
        up=tuple(float(c) for c in pose.up),
        target=tuple(float(c) for c in pose.target),
        distance=controller.distance,
        pitch=controller.pitch,
        yaw=controller.yaw,
        c2w=tuple(tuple(float(v) for v in row) for row in c2w),
    )


def build_controller(
    config: Config,
    sink: Optional[Camera] = None
) -> Tuple[OrbitCameraController, Camera]:
    """
    Create a controller placed according to config.view.

    Returns:
        (controller, sink) tuple
    """
    camera = sink if sink is not None else RecordingCamera()
    controller = OrbitCameraController(
        camera,
        position=config.view.position,
        target=config.view.target,
        config=config.orbit
    )
    if config.view.distance is not None:
        controller.set_distance(config.view.distance)
    if config.view.pitch is not None or config.view.yaw is not None:
        pitch = config.view.pitch if config.view.pitch is not None else controller.pitch
        yaw = config.view.yaw if config.view.yaw is not None else controller.yaw
        controller.set_angles(pitch, yaw)
    controller.save_initial_state()
    return controller, camera


def replay(
    records: Sequence[Dict[str, Any]],
    config: Optional[Config] = None
) -> List[PoseRecord]:
    """
    Feed event records through a fresh controller and collect the poses.

    The first entry is the starting pose (index -1). After that there is
    one entry per pose update the events caused; events that only change
    the gesture mode produce no entry.

    Args:
        records: Raw event records (see module docstring)
        config: Controller configuration (defaults if None)

    Returns:
        List of PoseRecord

    Raises:
        ValueError: If a record cannot be parsed
    """
    config = config if config is not None else Config()
    parsed = [parse_event(record, i) for i, record in enumerate(records)]

    camera = RecordingCamera()
    controller, _ = build_controller(config, camera)
    surface = ev.EventSurface(name="replay")

    poses = [_record(-1, "initial", controller, camera)]
    with controller:
        controller.setup_mouse_events(surface)
        controller.setup_touch_events(surface)

        for index, (event_type, event) in enumerate(parsed):
            before = camera.updates
            surface.dispatch(event_type, event)
            if camera.updates > before:
                poses.append(_record(index, event_type, controller, camera))

    logger.debug("Replayed %d events, recorded %d poses", len(parsed), len(poses))
    return poses
