from __future__ import annotations

import logging
from typing import Optional

import evdev
from evdev import InputDevice, ecodes

from spacepad.core.types import PointerEvent, PointerPhase

logger = logging.getLogger(__name__)


def find_touchscreen() -> Optional[InputDevice]:
    """First device that reports multitouch slots."""
    for path in evdev.list_devices():
        try:
            device = InputDevice(path)
        except PermissionError:
            logger.debug("no access to %s", path)
            continue
        abs_caps = device.capabilities().get(ecodes.EV_ABS, [])
        codes = [code for code, _ in abs_caps]
        if ecodes.ABS_MT_SLOT in codes:
            logger.info("found touchscreen: %s (%s)", device.name, path)
            return device
        device.close()
    logger.warning("no touchscreen device found")
    return None


class SlotDecoder:
    """
    Multitouch protocol B -> PointerEvents.

    Slot changes are buffered and flushed on SYN_REPORT so a contact's
    DOWN already carries both coordinates. The slot number is the pointer id.
    """

    def __init__(self) -> None:
        self.slot = 0
        self.pos: dict[int, list[float]] = {}
        self.active: set[int] = set()
        self._placed: set[int] = set()
        self._lifted: set[int] = set()
        self._moved: set[int] = set()
        self._lift_pos: dict[int, tuple[float, float]] = {}
        self._down_at_end: dict[int, bool] = {}

    def feed(self, ev_type: int, code: int, value: int, t_ms: int) -> list[PointerEvent]:
        if ev_type == ecodes.EV_ABS:
            if code == ecodes.ABS_MT_SLOT:
                self.slot = value
            elif code == ecodes.ABS_MT_TRACKING_ID:
                if value == -1:
                    self._lifted.add(self.slot)
                    self._lift_pos.setdefault(self.slot, tuple(self.pos.get(self.slot, (0.0, 0.0))))
                    self._down_at_end[self.slot] = False
                else:
                    self._placed.add(self.slot)
                    self.pos.setdefault(self.slot, [0.0, 0.0])
                    self._down_at_end[self.slot] = True
            elif code == ecodes.ABS_MT_POSITION_X:
                self.pos.setdefault(self.slot, [0.0, 0.0])[0] = float(value)
                self._moved.add(self.slot)
            elif code == ecodes.ABS_MT_POSITION_Y:
                self.pos.setdefault(self.slot, [0.0, 0.0])[1] = float(value)
                self._moved.add(self.slot)
            return []
        if ev_type == ecodes.EV_SYN and code == ecodes.SYN_REPORT:
            return self._flush(t_ms)
        return []

    def _flush(self, t_ms: int) -> list[PointerEvent]:
        out: list[PointerEvent] = []
        # lifts of existing contacts go first: the slot may carry a new contact already
        for slot in sorted(self._lifted):
            if slot in self.active:
                self.active.discard(slot)
                x, y = self._lift_pos.get(slot, (0.0, 0.0))
                out.append(PointerEvent(t_ms, slot, PointerPhase.UP, x, y))
        for slot in sorted(self._placed):
            if slot not in self.active:
                self.active.add(slot)
                x, y = self.pos[slot]
                out.append(PointerEvent(t_ms, slot, PointerPhase.DOWN, x, y))
        for slot in sorted(self._moved - self._placed - self._lifted):
            if slot in self.active:
                x, y = self.pos[slot]
                out.append(PointerEvent(t_ms, slot, PointerPhase.MOVE, x, y))
        # contacts that started and ended inside this frame
        for slot in sorted(self._lifted):
            if slot in self.active and not self._down_at_end.get(slot, False):
                self.active.discard(slot)
                x, y = self.pos[slot]
                out.append(PointerEvent(t_ms, slot, PointerPhase.UP, x, y))
        self._placed.clear()
        self._lifted.clear()
        self._moved.clear()
        self._lift_pos.clear()
        self._down_at_end.clear()
        return out


class TouchscreenSource:
    def __init__(self, device: InputDevice) -> None:
        self.device = device
        self.decoder = SlotDecoder()

    @classmethod
    def open(cls) -> Optional["TouchscreenSource"]:
        device = find_touchscreen()
        return None if device is None else cls(device)

    def poll(self, t_ms: int) -> list[PointerEvent]:
        """Non-blocking read of everything the kernel has queued."""
        out: list[PointerEvent] = []
        try:
            for ev in self.device.read():
                out.extend(self.decoder.feed(ev.type, ev.code, ev.value, t_ms))
        except BlockingIOError:
            pass
        return out

    def close(self) -> None:
        self.device.close()
