from __future__ import annotations

import queue
import time
from typing import Union

from pynput import keyboard, mouse

from spacepad.core.types import PointerEvent, PointerPhase, WheelEvent

# one wheel notch, in the pixel units browsers report for deltaY
WHEEL_NOTCH_PX = 100.0

DesktopEvent = Union[PointerEvent, WheelEvent]


def now_ms() -> int:
    return int(time.monotonic() * 1000)


class DesktopSource:
    """
    Mouse and keyboard as a single-pointer surface.

    Left-button drags are pointer contacts; the wheel is zoom, and holding
    Ctrl marks wheel events as trackpad pinches. pynput calls us on its own
    threads, so everything is pushed into a queue and drained by the run loop.
    """

    CTRL_KEYS = {keyboard.Key.ctrl, keyboard.Key.ctrl_l, keyboard.Key.ctrl_r}

    def __init__(self) -> None:
        self.events: "queue.Queue[DesktopEvent]" = queue.Queue()
        self._pressed = False
        self._ctrl: set = set()
        self._mouse = mouse.Listener(on_move=self._on_move, on_click=self._on_click, on_scroll=self._on_scroll)
        self._keys = keyboard.Listener(on_press=self._on_key_press, on_release=self._on_key_release)

    def start(self) -> None:
        self._mouse.start()
        self._keys.start()

    def stop(self) -> None:
        self._mouse.stop()
        self._keys.stop()

    def drain(self) -> list[DesktopEvent]:
        out: list[DesktopEvent] = []
        while True:
            try:
                out.append(self.events.get_nowait())
            except queue.Empty:
                return out

    # ---------------------- pynput callbacks ----------------------

    def _on_click(self, x, y, button, pressed) -> None:
        if button != mouse.Button.left:
            return
        self._pressed = pressed
        phase = PointerPhase.DOWN if pressed else PointerPhase.UP
        self.events.put(PointerEvent(now_ms(), 0, phase, float(x), float(y)))

    def _on_move(self, x, y) -> None:
        if self._pressed:
            self.events.put(PointerEvent(now_ms(), 0, PointerPhase.MOVE, float(x), float(y)))

    def _on_scroll(self, x, y, dx, dy) -> None:
        # pynput: dy > 0 scrolls up; browsers: deltaY > 0 scrolls down
        self.events.put(WheelEvent(now_ms(), -dy * WHEEL_NOTCH_PX, pinch_modifier=bool(self._ctrl)))

    def _on_key_press(self, k) -> None:
        if k in self.CTRL_KEYS:
            self._ctrl.add(k)

    def _on_key_release(self, k) -> None:
        self._ctrl.discard(k)
