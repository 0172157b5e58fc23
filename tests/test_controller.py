"""
Tests for the orbit camera controller.

Covers construction, programmatic control, gesture handling through an
event surface, and teardown.
"""

import logging

import numpy as np
import pytest

from orbitcam import events as ev
from orbitcam.config import OrbitConfig
from orbitcam.controller import OrbitCameraController
from orbitcam.gestures import GestureMode


class RecordingSink:
    """Pose sink that records every call."""

    def __init__(self):
        self.calls = []

    def set_position(self, x, y, z):
        self.calls.append(("set_position", (x, y, z)))

    def look_at(self, target, up):
        self.calls.append(("look_at", (np.array(target), np.array(up))))

    @property
    def updates(self):
        return sum(1 for name, _ in self.calls if name == "look_at")


def make_controller(position=(0, 0, 5), target=(0, 0, 0), **config):
    sink = RecordingSink()
    surface = ev.EventSurface()
    controller = OrbitCameraController(sink, position, target, OrbitConfig(**config))
    controller.setup_mouse_events(surface)
    controller.setup_touch_events(surface)
    return controller, sink, surface


def drag(surface, start, end, modifier=False):
    surface.dispatch(ev.POINTER_DOWN, ev.PointerEvent(x=start[0], y=start[1], modifier=modifier))
    surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=end[0], y=end[1], modifier=modifier))
    surface.dispatch(ev.POINTER_UP, ev.PointerEvent(x=end[0], y=end[1], modifier=modifier))


def pinch(surface, separations):
    surface.dispatch(ev.TOUCH_START, ev.TouchEvent(contacts=[(0, 0), (separations[0], 0)]))
    for separation in separations[1:]:
        surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(0, 0), (separation, 0)]))
    surface.dispatch(ev.TOUCH_END, ev.TouchEvent())


class TestConstruction:
    """Test deriving the orbit from the initial camera position."""

    def test_camera_on_plus_z(self):
        controller, sink, _ = make_controller(position=(0, 0, 5))

        assert np.isclose(controller.distance, 5.0)
        assert np.isclose(controller.pitch, 0.0)
        assert np.isclose(controller.yaw, 0.0)

    def test_pose_applied_once_on_construction(self):
        controller, sink, _ = make_controller()

        assert [name for name, _ in sink.calls] == ["set_position", "look_at"]
        assert np.allclose(sink.calls[0][1], [0, 0, 5])
        assert np.allclose(sink.calls[1][1][0], [0, 0, 0])

    def test_offset_target(self):
        controller, _, _ = make_controller(position=(4, 3, 1), target=(1, 3, 1))

        assert np.isclose(controller.distance, 3.0)
        assert np.isclose(controller.pitch, 0.0)
        assert np.isclose(controller.yaw, 90.0)
        assert np.allclose(controller.pose.position, [4, 3, 1])

    def test_camera_above_target_has_positive_pitch(self):
        controller, _, _ = make_controller(position=(0, 5, 5))
        assert np.isclose(controller.pitch, 45.0)
        assert np.allclose(controller.pose.position, [0, 5, 5])

    def test_distance_outside_limits_is_clamped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="orbitcam.controller"):
            controller, _, _ = make_controller(position=(0, 0, 500))

        assert controller.distance == 100.0
        assert "outside" in caplog.text

    def test_camera_on_target_stays_finite(self):
        controller, _, _ = make_controller(position=(0, 0, 0))

        assert controller.distance == 1.0
        assert np.all(np.isfinite(controller.pose.position))
        assert np.isclose(np.linalg.norm(controller.pose.up), 1.0)

    @pytest.mark.parametrize("config", [
        {"min_distance": 0.0},
        {"min_distance": -1.0},
        {"min_distance": 10.0, "max_distance": 5.0},
    ])
    def test_invalid_distance_config_fails_immediately(self, config):
        with pytest.raises(ValueError):
            make_controller(**config)


class TestProgrammaticControl:
    """Test setters, reset and initial-state snapshot."""

    def test_set_angles_matches_formula(self):
        controller, sink, _ = make_controller()
        controller.set_angles(-14, 45)

        p, y = np.radians(-14.0), np.radians(45.0)
        expected = 5.0 * np.array([np.sin(y) * np.cos(p), np.sin(p), np.cos(y) * np.cos(p)])
        assert np.allclose(controller.pose.position, expected)
        assert np.allclose(sink.calls[-2][1], expected)

    @pytest.mark.parametrize("requested", [-5.0, 0.0, 0.5, 1.0, 42.0, 100.0, 1e9])
    def test_set_distance_stays_in_range(self, requested):
        controller, _, _ = make_controller()
        controller.set_distance(requested)
        assert 1.0 <= controller.distance <= 100.0

    def test_set_distance_rejects_nan(self):
        controller, _, _ = make_controller()
        with pytest.raises(ValueError):
            controller.set_distance(float("nan"))

    def test_set_target_moves_camera_with_it(self):
        controller, _, _ = make_controller()
        controller.set_target((1, 2, 3))

        assert np.allclose(controller.target, [1, 2, 3])
        assert np.allclose(controller.pose.position, [1, 2, 8])

    def test_set_angles_clamps_pitch_when_both_bounds_set(self):
        controller, _, _ = make_controller(min_pitch=-30.0, max_pitch=30.0)
        controller.set_angles(80.0, 10.0)
        assert controller.pitch == 30.0
        assert controller.yaw == 10.0

    def test_set_angles_ignores_one_sided_bound(self):
        controller, _, _ = make_controller(max_pitch=30.0)
        controller.set_angles(80.0, 0.0)
        assert controller.pitch == 80.0

    def test_reset_overrides_only_given_fields(self):
        controller, _, _ = make_controller()
        controller.set_angles(10.0, 20.0)

        controller.reset(distance=12.0)

        assert controller.distance == 12.0
        assert controller.pitch == 10.0
        assert controller.yaw == 20.0
        assert np.allclose(controller.target, [0, 0, 0])

    def test_reset_clamps_distance(self):
        controller, _, _ = make_controller()
        controller.reset(distance=0.0)
        assert controller.distance == 1.0

    def test_reset_to_construction_state(self):
        controller, _, surface = make_controller()
        drag(surface, (0, 0), (40, 25))

        controller.reset_to_initial()

        assert np.isclose(controller.distance, 5.0)
        assert np.isclose(controller.pitch, 0.0)
        assert np.isclose(controller.yaw, 0.0)

    def test_save_then_reset_to_initial_is_exact(self):
        controller, _, surface = make_controller()
        controller.set_angles(-14, 45)
        controller.set_target((0.3, -0.7, 1.1))
        controller.save_initial_state()
        before = controller.snapshot()

        drag(surface, (0, 0), (33, -17))
        drag(surface, (5, 5), (61, 12), modifier=True)
        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=140.0))
        pinch(surface, [50, 90, 130])

        controller.reset_to_initial()
        after = controller.snapshot()

        assert np.array_equal(after.target, before.target)
        assert after.distance == before.distance
        assert after.pitch == before.pitch
        assert after.yaw == before.yaw


class TestMouseGestures:
    """Test drag rotate, modifier pan and wheel zoom."""

    def test_drag_rotates(self):
        controller, _, surface = make_controller()
        drag(surface, (100, 100), (110, 80))

        assert np.isclose(controller.yaw, 3.0)
        # Dragging up tilts the view up
        assert np.isclose(controller.pitch, 6.0)

    def test_pan_changes_only_target(self):
        controller, _, surface = make_controller()
        controller.set_angles(-14, 45)
        before = controller.snapshot()

        drag(surface, (0, 0), (20, 10), modifier=True)

        assert controller.distance == before.distance
        assert controller.pitch == before.pitch
        assert controller.yaw == before.yaw
        assert not np.allclose(controller.target, before.target)

    def test_pan_scales_with_distance(self):
        near, _, near_surface = make_controller(position=(0, 0, 2))
        far, _, far_surface = make_controller(position=(0, 0, 20))

        drag(near_surface, (0, 0), (10, 0), modifier=True)
        drag(far_surface, (0, 0), (10, 0), modifier=True)

        near_shift = np.linalg.norm(near.target)
        far_shift = np.linalg.norm(far.target)
        assert np.isclose(far_shift, 10.0 * near_shift)

    def test_pan_moves_in_camera_plane(self):
        """The target moves perpendicular to the view direction."""
        controller, _, surface = make_controller()
        controller.set_angles(30, 60)
        forward = controller.pose.forward.copy()

        drag(surface, (0, 0), (15, -7), modifier=True)

        assert abs(np.dot(np.array(controller.target), forward)) < 1e-9

    def test_wheel_positive_zooms_out(self):
        controller, _, surface = make_controller()
        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=100.0))
        # 5 + 100 * 0.002 * 5
        assert np.isclose(controller.distance, 6.0)

    def test_wheel_negative_zooms_in(self):
        controller, _, surface = make_controller()
        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=-100.0))
        assert controller.distance < 5.0

    def test_repeated_wheel_clamps_without_overshoot(self):
        controller, sink, surface = make_controller()
        for _ in range(200):
            surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=100.0))
            assert controller.distance <= 100.0
            position = sink.calls[-2][1]
            assert np.linalg.norm(position) <= 100.0 + 1e-9

        assert controller.distance == 100.0

    def test_repeated_wheel_in_clamps_at_min(self):
        controller, _, surface = make_controller()
        for _ in range(200):
            surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=-300.0))
        assert controller.distance == 1.0

    def test_wheel_and_context_menu_default_prevented(self):
        _, _, surface = make_controller()

        wheel = surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=1.0))
        menu = surface.dispatch(ev.CONTEXT_MENU, ev.ContextMenuEvent())

        assert wheel.default_prevented
        assert menu.default_prevented

    def test_pitch_clamp_during_drag(self):
        controller, _, surface = make_controller(min_pitch=-45.0, max_pitch=45.0)
        drag(surface, (0, 500), (0, 0))
        assert controller.pitch == 45.0

    def test_drag_over_the_pole_does_not_flip(self):
        """Up stays continuous while pitch passes +90° in small steps."""
        controller, sink, surface = make_controller()
        controller.set_angles(85.0, 30.0)

        surface.dispatch(ev.POINTER_DOWN, ev.PointerEvent(x=0, y=0))
        previous = controller.pose.up
        for step in range(1, 41):
            surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=0, y=-step))
            up = controller.pose.up
            assert np.dot(up, previous) > 0.99
            assert np.isclose(np.linalg.norm(up), 1.0)
            previous = up

        assert controller.pitch > 90.0

    def test_sink_called_once_per_update(self):
        controller, sink, surface = make_controller()
        assert sink.updates == 1

        surface.dispatch(ev.POINTER_DOWN, ev.PointerEvent(x=0, y=0))
        assert sink.updates == 1

        surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=5, y=0))
        surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=9, y=2))
        assert sink.updates == 3

        surface.dispatch(ev.POINTER_UP, ev.PointerEvent(x=9, y=2))
        surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=20, y=20))
        assert sink.updates == 3

        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=10.0))
        assert sink.updates == 4

        set_positions = sum(1 for name, _ in sink.calls if name == "set_position")
        assert set_positions == sink.updates


class TestTouchGestures:
    """Test one-finger rotate and pinch zoom."""

    def test_single_finger_rotates(self):
        controller, _, surface = make_controller()
        surface.dispatch(ev.TOUCH_START, ev.TouchEvent(contacts=[(50, 50)]))
        surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(60, 50)]))

        assert np.isclose(controller.yaw, 3.0)
        assert controller.mode is GestureMode.ROTATING

    def test_pinch_out_zooms_in(self):
        controller, _, surface = make_controller()
        before = controller.distance

        pinch(surface, [50, 100, 150])

        assert controller.distance < before

    def test_pinch_in_zooms_out(self):
        controller, _, surface = make_controller()
        before = controller.distance

        pinch(surface, [150, 100, 50])

        assert controller.distance > before

    def test_pinch_distance_strictly_monotonic(self):
        controller, _, surface = make_controller(position=(0, 0, 50))
        surface.dispatch(ev.TOUCH_START, ev.TouchEvent(contacts=[(0, 0), (50, 0)]))

        distances = [controller.distance]
        for separation in range(60, 151, 10):
            surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(0, 0), (separation, 0)]))
            distances.append(controller.distance)

        assert all(b < a for a, b in zip(distances, distances[1:]))

    def test_pinch_uses_double_wheel_rate(self):
        wheel_ctrl, _, wheel_surface = make_controller()
        pinch_ctrl, _, pinch_surface = make_controller()

        wheel_surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=-50.0))
        pinch(pinch_surface, [50, 75])

        assert np.isclose(wheel_ctrl.distance, pinch_ctrl.distance)

    def test_touch_events_default_prevented(self):
        _, _, surface = make_controller()
        start = surface.dispatch(ev.TOUCH_START, ev.TouchEvent(contacts=[(0, 0)]))
        move = surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(1, 0)]))
        end = surface.dispatch(ev.TOUCH_END, ev.TouchEvent())

        assert start.default_prevented and move.default_prevented and end.default_prevented

    def test_spurious_touch_move_ignored(self):
        controller, sink, surface = make_controller()
        before = controller.snapshot()
        updates = sink.updates

        surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent())
        surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(1, 1), (2, 2)]))

        assert sink.updates == updates
        assert controller.distance == before.distance
        assert controller.mode is GestureMode.IDLE

    def test_touch_end_returns_to_idle(self):
        controller, _, surface = make_controller()
        surface.dispatch(ev.TOUCH_START, ev.TouchEvent(contacts=[(0, 0), (10, 0)]))
        assert controller.mode is GestureMode.PINCH_ZOOMING

        surface.dispatch(ev.TOUCH_END, ev.TouchEvent())
        assert controller.mode is GestureMode.IDLE


class TestTeardown:
    """Test that closing the controller detaches it from the surface."""

    def test_close_removes_all_listeners(self):
        controller, _, surface = make_controller()
        assert surface.listener_count() == 8

        controller.close()

        assert surface.listener_count() == 0
        assert controller.closed

    def test_events_after_close_do_nothing(self):
        controller, sink, surface = make_controller()
        controller.close()
        updates = sink.updates

        drag(surface, (0, 0), (50, 50))
        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=100.0))

        assert sink.updates == updates
        assert controller.distance == 5.0

    def test_direct_handler_call_after_close_ignored(self):
        controller, sink, _ = make_controller()
        controller.close()

        controller.on_wheel(ev.WheelEvent(delta_y=100.0))

        assert controller.distance == 5.0

    def test_close_is_idempotent(self):
        controller, _, surface = make_controller()
        controller.close()
        controller.close()
        assert surface.listener_count() == 0

    def test_context_manager_closes(self):
        sink = RecordingSink()
        surface = ev.EventSurface()
        with OrbitCameraController(sink, (0, 0, 5)) as controller:
            controller.setup_mouse_events(surface)
            assert surface.listener_count() == 5

        assert surface.listener_count() == 0

    def test_setup_after_close_rejected(self):
        controller, _, _ = make_controller()
        controller.close()
        with pytest.raises(RuntimeError):
            controller.setup_mouse_events(ev.EventSurface())

    def test_close_resets_gesture_mode(self):
        controller, _, surface = make_controller()
        surface.dispatch(ev.POINTER_DOWN, ev.PointerEvent(x=0, y=0))
        controller.close()
        assert controller.mode is GestureMode.IDLE


class TestNonFiniteInput:
    """Test that NaN/inf coordinates never reach the orbit state."""

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), float("-inf")])
    def test_bad_pointer_move_then_wheel_keeps_pose_finite(self, bad):
        controller, sink, surface = make_controller()
        surface.dispatch(ev.POINTER_DOWN, ev.PointerEvent(x=0, y=0))
        updates = sink.updates

        surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=bad, y=0))
        assert sink.updates == updates
        assert controller.yaw == 0.0

        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=10.0))
        assert np.all(np.isfinite(controller.pose.position))
        assert np.all(np.isfinite(controller.pose.up))
        assert np.isclose(controller.distance, 5.1)

    def test_drag_continues_after_bad_sample(self):
        controller, _, surface = make_controller()
        surface.dispatch(ev.POINTER_DOWN, ev.PointerEvent(x=0, y=0))
        surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=float("nan"), y=0))
        surface.dispatch(ev.POINTER_MOVE, ev.PointerEvent(x=10, y=0))

        assert np.isclose(controller.yaw, 3.0)

    def test_bad_touch_and_wheel_ignored(self):
        controller, sink, surface = make_controller()
        updates = sink.updates

        surface.dispatch(ev.WHEEL, ev.WheelEvent(delta_y=float("nan")))
        surface.dispatch(ev.TOUCH_START, ev.TouchEvent(contacts=[(0, 0), (50, 0)]))
        surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(0, 0), (float("inf"), 0)]))
        surface.dispatch(ev.TOUCH_MOVE, ev.TouchEvent(contacts=[(0, 0), (100, 0)]))

        assert sink.updates == updates + 1
        assert np.all(np.isfinite(controller.pose.position))
        assert controller.distance < 5.0


class TestDuplicateSetup:
    """Test attaching the same surface more than once."""

    def test_second_setup_is_skipped(self, caplog):
        controller, _, surface = make_controller()

        with caplog.at_level(logging.WARNING, logger="orbitcam.controller"):
            controller.setup_mouse_events(surface)
            controller.setup_touch_events(surface)

        assert surface.listener_count() == 8
        assert "Already listening" in caplog.text

    def test_drag_applied_once_after_repeated_setup(self):
        controller, _, surface = make_controller()
        controller.setup_mouse_events(surface)

        drag(surface, (0, 0), (10, 0))

        assert np.isclose(controller.yaw, 3.0)

    def test_second_surface_is_attached(self):
        controller, _, surface = make_controller()
        other = ev.EventSurface(name="other")

        controller.setup_mouse_events(other)

        assert other.listener_count() == 5
        controller.close()
        assert other.listener_count() == 0
        assert surface.listener_count() == 0
