from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from spacepad.core.types import MotionSample, Orientation, OrientationSample, PointerEvent, Vec3


@dataclass
class PointerContact:
    pointer_id: int
    x: float
    y: float


class PointerCache:
    """
    Active contacts keyed by pointer id, in press order.

    Only 0, 1 and 2 contacts mean anything to the classifiers; a third
    finger is tracked but never drives a pinch.
    """

    def __init__(self) -> None:
        self._contacts: dict[int, PointerContact] = {}
        # first contact of the current touch sequence
        self.start: Optional[Tuple[float, float]] = None
        self.primary_id: Optional[int] = None
        # last position of a lone contact (drag deltas)
        self.last_single: Optional[Tuple[float, float]] = None
        # pinch baseline (horizontal separation); None whenever < 2 contacts
        self.prev_diff: Optional[float] = None
        # sequence ever held two contacts -> no tap/direction on release
        self.was_multi: bool = False

    def __len__(self) -> int:
        return len(self._contacts)

    def __contains__(self, pointer_id: int) -> bool:
        return pointer_id in self._contacts

    def contacts(self) -> list[PointerContact]:
        return list(self._contacts.values())

    def separation(self) -> Optional[float]:
        if len(self._contacts) < 2:
            return None
        a, b = self.contacts()[:2]
        return abs(a.x - b.x)

    def press(self, ev: PointerEvent) -> None:
        self._contacts[ev.pointer_id] = PointerContact(ev.pointer_id, ev.x, ev.y)
        n = len(self._contacts)
        if n == 1:
            self.start = (ev.x, ev.y)
            self.primary_id = ev.pointer_id
            self.last_single = (ev.x, ev.y)
            self.was_multi = False
        elif n == 2:
            self.prev_diff = self.separation()
            self.was_multi = True
            self.last_single = None

    def move(self, ev: PointerEvent) -> bool:
        c = self._contacts.get(ev.pointer_id)
        if c is None:
            return False
        c.x = ev.x
        c.y = ev.y
        return True

    def release(self, ev: PointerEvent) -> Optional[PointerContact]:
        c = self._contacts.pop(ev.pointer_id, None)
        if c is None:
            return None
        c.x, c.y = ev.x, ev.y
        n = len(self._contacts)
        # the first two contacts may now be a different pair
        self.prev_diff = self.separation()
        if n == 1:
            # survivor becomes a lone contact again; restart drag from its spot
            rest = self.contacts()[0]
            self.last_single = (rest.x, rest.y)
        if n == 0:
            self.last_single = None
        return c

    def end_sequence(self) -> None:
        self.start = None
        self.primary_id = None
        self.was_multi = False

    def clear(self) -> None:
        self._contacts.clear()
        self.prev_diff = None
        self.last_single = None
        self.end_sequence()


class SensorReadout:
    """
    Last raw sensor values, kept regardless of what the classifiers do with them.
    Read back for diagnostics only.
    """

    def __init__(self) -> None:
        self.accel: Vec3 = (0.0, 0.0, 0.0)
        self.accel_with_gravity: Vec3 = (0.0, 0.0, 0.0)
        self.magnitude: float = 0.0
        self.magnitude_with_gravity: float = 0.0
        self.orientation: Optional[Orientation] = None
        self.last_motion_t: Optional[int] = None
        self.last_orientation_t: Optional[int] = None

    def record_motion(self, sample: MotionSample) -> None:
        self.last_motion_t = sample.t_ms
        if sample.accel is not None:
            self.accel = sample.accel
            self.magnitude = _norm(sample.accel)
        if sample.accel_with_gravity is not None:
            self.accel_with_gravity = sample.accel_with_gravity
            self.magnitude_with_gravity = _norm(sample.accel_with_gravity)

    def record_orientation(self, sample: OrientationSample) -> None:
        if sample.orientation is None:
            return
        self.orientation = sample.orientation
        self.last_orientation_t = sample.t_ms

    def as_dict(self) -> dict:
        o = self.orientation
        return {
            "accel": list(self.accel),
            "accel_with_gravity": list(self.accel_with_gravity),
            "magnitude": round(self.magnitude, 3),
            "magnitude_with_gravity": round(self.magnitude_with_gravity, 3),
            "orientation": None if o is None else {"alpha": o.alpha, "beta": o.beta, "gamma": o.gamma},
        }


def _norm(v: Vec3) -> float:
    x, y, z = v
    return (x * x + y * y + z * z) ** 0.5
