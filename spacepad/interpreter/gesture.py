"""
Pointer gesture classification.

Turns contact start/end positions into one of five discrete gestures and
two-contact separation changes into a continuous zoom delta. Wheel and
trackpad input map onto the same zoom delta.
"""

from __future__ import annotations

import logging
import math
from typing import Tuple

from spacepad.core.config import GestureTuning, UserSensitivity
from spacepad.core.types import GestureResult, GestureType, PointerEvent, PointerPhase, WheelEvent
from spacepad.interpreter.normalizer import PointerCache

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def classify_release(start: Point, end: Point, inactive_radius: float) -> GestureType:
    """
    Tap if the contact stayed inside the inactive radius, otherwise the
    dominant axis decides. |dx| == |dy| takes the vertical branch.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if math.hypot(dx, dy) <= inactive_radius:
        return GestureType.TAP
    if abs(dx) > abs(dy):
        return GestureType.EAST if dx > 0 else GestureType.WEST
    # screen y grows downwards
    return GestureType.SOUTH if dy > 0 else GestureType.NORTH


def pinch_zoom_delta(cur_diff: float, prev_diff: float, pinch_sensitivity: float, user_zoom: float) -> float:
    # fingers closing (shrinking separation) zooms in
    return (cur_diff - prev_diff) * pinch_sensitivity * user_zoom * -1


def wheel_zoom_delta(delta_y: float, pinch_modifier: bool, tuning: GestureTuning, user_zoom: float) -> float:
    sensitivity = tuning.trackpad_zoom_sensitivity if pinch_modifier else tuning.wheel_zoom_sensitivity
    return delta_y * sensitivity * user_zoom


class GestureClassifier:
    """Feeds pointer events through the contact cache and classifies them."""

    def __init__(self, tuning: GestureTuning, sensitivity: UserSensitivity) -> None:
        self.tuning = tuning
        self.sensitivity = sensitivity
        self.cache = PointerCache()

    def process_pointer(self, ev: PointerEvent) -> list[GestureResult]:
        if ev.phase == PointerPhase.DOWN:
            self.cache.press(ev)
            return []
        if ev.phase == PointerPhase.MOVE:
            return self._on_move(ev)
        if ev.phase == PointerPhase.UP:
            return self._on_release(ev, classify=True)
        if ev.phase == PointerPhase.CANCEL:
            return self._on_release(ev, classify=False)
        return []

    def process_wheel(self, ev: WheelEvent) -> list[GestureResult]:
        delta = wheel_zoom_delta(ev.delta_y, ev.pinch_modifier, self.tuning, self.sensitivity.zoom)
        if delta == 0.0:
            return []
        return [GestureResult(zoom_delta=delta)]

    def reset(self) -> None:
        self.cache.clear()

    # ---------------------- phases ----------------------

    def _on_move(self, ev: PointerEvent) -> list[GestureResult]:
        cache = self.cache
        if not cache.move(ev):
            return []

        if len(cache) == 2:
            cur = cache.separation()
            out: list[GestureResult] = []
            if cur is not None and cache.prev_diff is not None:
                delta = pinch_zoom_delta(cur, cache.prev_diff,
                                         self.tuning.pinch_zoom_sensitivity, self.sensitivity.zoom)
                if delta != 0.0:
                    out.append(GestureResult(zoom_delta=delta))
            cache.prev_diff = cur
            return out

        if len(cache) == 1 and cache.last_single is not None:
            lx, ly = cache.last_single
            cache.last_single = (ev.x, ev.y)
            dx, dy = ev.x - lx, ev.y - ly
            if dx or dy:
                return [GestureResult(drag=(dx, dy))]
        return []

    def _on_release(self, ev: PointerEvent, classify: bool) -> list[GestureResult]:
        cache = self.cache
        if cache.release(ev) is None:
            return []
        if len(cache) > 0:
            return []

        out: list[GestureResult] = []
        if classify and not cache.was_multi and cache.start is not None:
            g = classify_release(cache.start, (ev.x, ev.y), self.tuning.inactive_radius_px)
            logger.debug("release %s start=%s end=(%.1f, %.1f)", g.value, cache.start, ev.x, ev.y)
            out.append(GestureResult(gesture=g))
        cache.end_sequence()
        return out
