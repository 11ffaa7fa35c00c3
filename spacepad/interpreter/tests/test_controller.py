import pytest

from spacepad.core.config import DEFAULT_PRESET
from spacepad.core.types import (
    ActionType, ClientIdentity, GestureType, MotionSample, Orientation, OrientationSample,
    PointerEvent, PointerPhase, Role, Status, WheelEvent,
)
from spacepad.interpreter.controller import ROLE_HANDLERS, ControllerEngine


def engine(role, motion=False):
    e = ControllerEngine(ClientIdentity(f"{role.value}-1", role, "Vega", 1000), DEFAULT_PRESET)
    if motion:
        e.set_motion_status(0, Status.GRANTED)
    return e


def ptr(t, phase, x, y, pid=1):
    return PointerEvent(t, pid, phase, x, y)


def swipe(e, dx, dy):
    e.process_pointer(ptr(0, PointerPhase.DOWN, 100, 100))
    return e.process_pointer(ptr(50, PointerPhase.UP, 100 + dx, 100 + dy))


def shake(e, accel, t=0):
    return e.process_motion(MotionSample(t_ms=t, accel=accel))


def test_every_role_has_handlers():
    assert set(ROLE_HANDLERS) == set(Role)


def test_navigator_drag_pans():
    e = engine(Role.NAVIGATOR)
    e.process_pointer(ptr(0, PointerPhase.DOWN, 0, 0))
    out = e.process_pointer(ptr(10, PointerPhase.MOVE, 8, -16))
    assert len(out) == 1
    a = out[0]
    assert a.type == ActionType.PAN
    assert (a.pan.dx, a.pan.dy, a.pan.source) == (1.0, -2.0, "pointer")


def test_navigator_tiny_drag_not_sent():
    e = engine(Role.NAVIGATOR)
    e.process_pointer(ptr(0, PointerPhase.DOWN, 0, 0))
    assert e.process_pointer(ptr(10, PointerPhase.MOVE, 0.004, 0)) == []


def test_navigator_release_sends_no_step_and_tap_is_silent():
    e = engine(Role.NAVIGATOR)
    assert swipe(e, 0, -60) == []
    assert swipe(e, -60, 0) == []
    assert swipe(e, 2, 2) == []


def test_navigator_drag_pans_once():
    e = engine(Role.NAVIGATOR)
    sent = e.process_pointer(ptr(0, PointerPhase.DOWN, 100, 100))
    sent += e.process_pointer(ptr(10, PointerPhase.MOVE, 200, 100))
    sent += e.process_pointer(ptr(20, PointerPhase.UP, 200, 100))
    assert [(a.type, a.pan.dx, a.pan.source) for a in sent] == [(ActionType.PAN, 12.5, "pointer")]


def test_navigator_shake_up_down_zoom():
    e = engine(Role.NAVIGATOR, motion=True)
    a = shake(e, (0.0, 0.0, 20.0))[0]
    assert a.type == ActionType.ZOOM and a.zoom.delta == pytest.approx(0.2)
    a = shake(e, (0.0, 0.0, -20.0), t=600)[0]
    assert a.zoom.delta == pytest.approx(-0.2)
    a = shake(e, (20.0, 0.0, 0.0), t=1200)[0]
    assert (a.pan.dx, a.pan.dy, a.pan.source) == (5.0, 0.0, "shake")


def test_navigator_wheel_zooms():
    e = engine(Role.NAVIGATOR)
    out = e.process_wheel(WheelEvent(0, 100.0, pinch_modifier=True))
    assert out[0].zoom.delta == pytest.approx(1.6)


def test_selector_selects_everything_and_never_pans_or_zooms():
    e = engine(Role.SELECTOR, motion=True)
    a = swipe(e, 1, 1)[0]
    assert a.type == ActionType.SELECT and a.select.action == GestureType.TAP
    assert swipe(e, 60, 0)[0].select.action == GestureType.EAST
    assert shake(e, (0.0, 0.0, -20.0))[0].select.action == GestureType.DOWN
    assert e.process_wheel(WheelEvent(0, 100.0)) == []

    e.process_pointer(ptr(0, PointerPhase.DOWN, 0, 0))
    assert e.process_pointer(ptr(10, PointerPhase.MOVE, 80, 0)) == []


def test_inspector_ignores_up_down():
    e = engine(Role.INSPECTOR, motion=True)
    assert shake(e, (0.0, 0.0, 20.0)) == []
    assert shake(e, (0.0, -20.0, 0.0), t=600)[0].select.action == GestureType.SOUTH
    assert swipe(e, 0, 0)[0].select.action == GestureType.TAP


def test_host_emits_nothing():
    e = engine(Role.HOST, motion=True)
    assert swipe(e, 60, 0) == []
    assert shake(e, (20.0, 0.0, 0.0)) == []
    assert e.process_wheel(WheelEvent(0, 100.0)) == []


def test_motion_recorded_even_when_not_granted():
    e = engine(Role.NAVIGATOR)
    assert shake(e, (0.0, 20.0, 0.0)) == []
    assert e.readout.magnitude == pytest.approx(20.0)
    assert e.diagnostics()["sensors"]["magnitude"] == pytest.approx(20.0)


def test_classifier_errors_become_status(monkeypatch):
    e = engine(Role.NAVIGATOR)

    def boom(ev):
        raise RuntimeError("bad sample")

    monkeypatch.setattr(e.gestures, "process_pointer", boom)
    assert e.process_pointer(ptr(0, PointerPhase.DOWN, 0, 0)) == []
    assert e.status.input == Status.ERROR
    assert "bad sample" in e.status.last_error


def test_tilt_pans_relative_to_neutral():
    e = engine(Role.NAVIGATOR, motion=True)
    assert e.process_orientation(OrientationSample(0, Orientation(0.0, 0.0, 0.0))) == []
    e.enable_tilt(10)
    out = e.process_orientation(OrientationSample(20, Orientation(0.0, 10.0, -20.0)))
    a = out[0]
    assert a.pan.source == "tilt"
    assert a.pan.dx == pytest.approx(-1.0)
    assert a.pan.dy == pytest.approx(0.5)

    final = e.disable_tilt(30)
    assert (final[0].pan.dx, final[0].pan.dy) == (0.0, 0.0)


def test_tilt_reenable_uses_latest_orientation():
    e = engine(Role.SELECTOR, motion=True)
    first = Orientation(0.0, 5.0, 5.0)
    second = Orientation(0.0, -30.0, 12.0)
    e.process_orientation(OrientationSample(0, first))
    e.enable_tilt(0)
    e.disable_tilt(10)
    e.process_orientation(OrientationSample(20, second))
    e.enable_tilt(20)
    assert e.tilt.neutral == second


def test_tilt_needs_role_and_capability():
    e = engine(Role.INSPECTOR, motion=True)
    e.enable_tilt(0)
    assert not e.tilt.transmitting

    e = engine(Role.NAVIGATOR)
    e.enable_tilt(0)
    assert not e.tilt.transmitting


def test_losing_motion_stops_tilt_and_shake():
    e = engine(Role.NAVIGATOR, motion=True)
    e.process_orientation(OrientationSample(0, Orientation(0.0, 0.0, 0.0)))
    e.enable_tilt(0)
    shake(e, (6.0, 0.0, 0.0), t=5)

    out = e.set_motion_status(10, Status.DENIED, "permission denied")
    assert len(out) == 1 and out[0].pan.source == "tilt"
    assert not e.tilt.transmitting
    assert e.status.motion == Status.DENIED
    assert e.status.orientation == Status.DENIED
    assert shake(e, (20.0, 0.0, 0.0), t=20) == []


def test_confirm_acts_as_tap():
    assert engine(Role.SELECTOR).confirm(0)[0].select.action == GestureType.TAP
    assert engine(Role.NAVIGATOR).confirm(0) == []
