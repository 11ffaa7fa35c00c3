import pytest

from spacepad.core.config import DEFAULT_PRESET, GestureTuning, UserSensitivity
from spacepad.core.types import GestureType, PointerEvent, PointerPhase, WheelEvent
from spacepad.interpreter.gesture import GestureClassifier, classify_release, pinch_zoom_delta


def down(t, pid, x, y):
    return PointerEvent(t, pid, PointerPhase.DOWN, x, y)


def move(t, pid, x, y):
    return PointerEvent(t, pid, PointerPhase.MOVE, x, y)


def up(t, pid, x, y):
    return PointerEvent(t, pid, PointerPhase.UP, x, y)


def classifier():
    return GestureClassifier(DEFAULT_PRESET.gesture, DEFAULT_PRESET.sensitivity)


@pytest.mark.parametrize("end", [(0, 0), (12, 16), (-20, 0), (0, 20), (14, -14)])
def test_release_inside_radius_is_tap(end):
    assert classify_release((0, 0), end, 20) == GestureType.TAP


@pytest.mark.parametrize("end,expected", [
    ((30, 0), GestureType.EAST),
    ((-30, 5), GestureType.WEST),
    ((4, 30), GestureType.SOUTH),
    ((-4, -30), GestureType.NORTH),
    ((100, -99), GestureType.EAST),
])
def test_release_outside_radius_uses_dominant_axis(end, expected):
    assert classify_release((0, 0), end, 20) == expected


@pytest.mark.parametrize("end,expected", [
    ((25, 25), GestureType.SOUTH),
    ((-25, 25), GestureType.SOUTH),
    ((25, -25), GestureType.NORTH),
    ((-25, -25), GestureType.NORTH),
])
def test_equal_axes_fall_to_vertical(end, expected):
    assert classify_release((0, 0), end, 20) == expected


def test_single_contact_tap():
    gc = classifier()
    assert gc.process_pointer(down(0, 1, 100, 100)) == []
    out = gc.process_pointer(up(80, 1, 105, 103))
    assert [r.gesture for r in out] == [GestureType.TAP]


def test_swipe_classified_from_start_not_last_move():
    gc = classifier()
    gc.process_pointer(down(0, 1, 100, 100))
    drags = gc.process_pointer(move(10, 1, 150, 100))
    assert drags[0].drag == (50, 0)
    # ends back near the start: still a tap, the path does not matter
    out = gc.process_pointer(up(20, 1, 104, 100))
    assert [r.gesture for r in out] == [GestureType.TAP]

    gc.process_pointer(down(100, 1, 100, 100))
    out = gc.process_pointer(up(120, 1, 100, 30))
    assert [r.gesture for r in out] == [GestureType.NORTH]


def test_pinch_emits_zoom_on_every_move():
    gc = classifier()
    gc.process_pointer(down(0, 1, 100, 100))
    gc.process_pointer(down(5, 2, 300, 100))
    assert gc.cache.prev_diff == 200

    out = gc.process_pointer(move(10, 2, 250, 100))
    assert len(out) == 1
    # separation shrank by 50 -> zoom in
    assert out[0].zoom_delta == pytest.approx(50 * 0.04)

    out = gc.process_pointer(move(20, 1, 50, 100))
    assert out[0].zoom_delta == pytest.approx(-50 * 0.04)


def test_pinch_baseline_dropped_below_two_contacts():
    gc = classifier()
    gc.process_pointer(down(0, 1, 100, 100))
    gc.process_pointer(down(5, 2, 300, 100))
    assert gc.process_pointer(up(10, 2, 300, 100)) == []
    assert gc.cache.prev_diff is None

    # lone survivor drags from where it is, no stale zoom
    out = gc.process_pointer(move(20, 1, 110, 100))
    assert [r.drag for r in out] == [(10, 0)]

    # sequence held two contacts: final release is not a tap or swipe
    assert gc.process_pointer(up(30, 1, 400, 100)) == []


def test_cancel_never_classifies():
    gc = classifier()
    gc.process_pointer(down(0, 1, 100, 100))
    out = gc.process_pointer(PointerEvent(10, 1, PointerPhase.CANCEL, 100, 100))
    assert out == []
    assert len(gc.cache) == 0


def test_pinch_zoom_delta_user_multiplier():
    assert pinch_zoom_delta(100, 120, 0.04, 2.0) == pytest.approx(1.6)
    assert pinch_zoom_delta(120, 100, 0.04, 1.0) == pytest.approx(-0.8)


def test_wheel_and_trackpad_sensitivity():
    gc = classifier()
    assert gc.process_wheel(WheelEvent(0, 100.0))[0].zoom_delta == pytest.approx(0.8)
    assert gc.process_wheel(WheelEvent(0, 100.0, pinch_modifier=True))[0].zoom_delta == pytest.approx(1.6)
    assert gc.process_wheel(WheelEvent(0, 0.0)) == []


def test_user_zoom_sensitivity_applies_to_wheel():
    gc = GestureClassifier(GestureTuning(), UserSensitivity(zoom=0.5))
    assert gc.process_wheel(WheelEvent(0, -100.0))[0].zoom_delta == pytest.approx(-0.4)


def test_pinch_baseline_follows_new_pair_after_lift():
    c = classifier()
    c.process_pointer(down(0, 1, 100, 0))
    c.process_pointer(down(0, 2, 110, 0))
    c.process_pointer(down(0, 3, 600, 0))
    c.process_pointer(up(10, 1, 100, 0))
    # 2 and 3 are the pinching pair now; a still move is no zoom
    assert c.process_pointer(move(20, 2, 110, 0)) == []
    assert c.cache.prev_diff == 490
