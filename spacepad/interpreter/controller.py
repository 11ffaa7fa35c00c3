from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from spacepad.core.config import Preset
from spacepad.core.control import StatusBoard
from spacepad.core.types import (
    Action, ClientIdentity, GestureResult, GestureType,
    MotionSample, OrientationSample, PointerEvent, Role, Status,
    TiltSignal, WheelEvent,
    pan, select, zoom,
)
from spacepad.interpreter.gesture import GestureClassifier
from spacepad.interpreter.motion import ShakeDetector
from spacepad.interpreter.normalizer import SensorReadout
from spacepad.interpreter.tilt import TiltGenerator

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COMPASS = frozenset({GestureType.NORTH, GestureType.SOUTH, GestureType.EAST, GestureType.WEST})
_ALL_GESTURES = frozenset(GestureType)


@dataclass(frozen=True)
class RoleHandlers:
    """What a role turns each classifier output into."""
    drag_pan: bool = False
    zoom: bool = False
    # gestures forwarded as select{action}
    select_gestures: frozenset = frozenset()
    # shaken compass gestures become fixed pan steps, up/down fixed zoom steps;
    # pointer releases never step
    shake_steps: bool = False
    tilt_pan: bool = False


ROLE_HANDLERS: dict[Role, RoleHandlers] = {
    Role.HOST: RoleHandlers(),
    Role.NAVIGATOR: RoleHandlers(drag_pan=True, zoom=True, shake_steps=True, tilt_pan=True),
    Role.SELECTOR: RoleHandlers(select_gestures=_ALL_GESTURES, tilt_pan=True),
    Role.INSPECTOR: RoleHandlers(select_gestures=frozenset({GestureType.TAP}) | _COMPASS),
}

# screen y grows downwards, so north pans up
_PAN_STEPS = {
    GestureType.NORTH: (0.0, -1.0),
    GestureType.SOUTH: (0.0, 1.0),
    GestureType.EAST: (1.0, 0.0),
    GestureType.WEST: (-1.0, 0.0),
}


class ControllerEngine:
    """
    Controller-side pipeline for one client.

    Every process_* call runs synchronously on the caller's thread and
    returns the actions to hand to the update channel. Nothing raised by a
    classifier escapes: it is logged and recorded on the status board.
    """

    def __init__(self, identity: ClientIdentity, preset: Preset, status: StatusBoard | None = None) -> None:
        self.identity = identity
        self.preset = preset
        self.handlers = ROLE_HANDLERS[identity.role]
        self.status = status if status is not None else StatusBoard()

        self.gestures = GestureClassifier(preset.gesture, preset.sensitivity)
        self.shake = ShakeDetector(preset.shake)
        self.tilt = TiltGenerator(preset.tilt)
        self.readout = SensorReadout()

        self.diagnostics_enabled: bool = False

    # ---------------------- input entry points ----------------------

    def process_pointer(self, ev: PointerEvent) -> list[Action]:
        return self._guard("input", lambda: self._from_gestures(ev.t_ms, self.gestures.process_pointer(ev)))

    def process_wheel(self, ev: WheelEvent) -> list[Action]:
        return self._guard("input", lambda: self._from_gestures(ev.t_ms, self.gestures.process_wheel(ev)))

    def process_motion(self, sample: MotionSample) -> list[Action]:
        def step() -> list[Action]:
            self.readout.record_motion(sample)
            if not self.status.motion_usable():
                return []
            shake = self.shake.update(sample)
            if shake is None:
                return []
            return self._from_gestures(sample.t_ms, [GestureResult(gesture=shake)], shaken=True)
        return self._guard("motion", step)

    def process_orientation(self, sample: OrientationSample) -> list[Action]:
        def step() -> list[Action]:
            self.readout.record_orientation(sample)
            if not self.status.orientation_usable():
                return []
            return self._from_tilt(self.tilt.update(sample))
        return self._guard("orientation", step)

    # ---------------------- capability switches ----------------------

    def set_motion_status(self, t_ms: int, value: Status, reason: str | None = None) -> list[Action]:
        """Motion source reported its capability; anything but GRANTED stops shake and tilt."""
        self.status.set("motion", value, reason)
        self.status.set("orientation", value, reason)
        if value == Status.GRANTED:
            return []
        self.shake.reset()
        return self.disable_tilt(t_ms)

    def set_shake_enabled(self, enabled: bool) -> None:
        self.shake.set_enabled(enabled)
        logger.info("shake tracking %s", "on" if enabled else "off")

    def enable_tilt(self, t_ms: int) -> list[Action]:
        if not self.handlers.tilt_pan:
            logger.info("tilt not available for role %s", self.identity.role.value)
            return []
        if not self.status.orientation_usable():
            logger.warning("tilt needs orientation (status %s)", self.status.orientation.value)
            return []
        self.tilt.enable(t_ms, self.readout.orientation)
        return []

    def disable_tilt(self, t_ms: int) -> list[Action]:
        return self._guard("orientation", lambda: self._from_tilt(self.tilt.disable(t_ms)))

    def toggle_tilt(self, t_ms: int) -> list[Action]:
        if self.tilt.transmitting:
            return self.disable_tilt(t_ms)
        return self.enable_tilt(t_ms)

    def confirm(self, t_ms: int) -> list[Action]:
        """Spoken/typed confirmation acts like a tap."""
        return self._from_gestures(t_ms, [GestureResult(gesture=GestureType.TAP)], "command")

    def toggle_diagnostics(self) -> bool:
        self.diagnostics_enabled = not self.diagnostics_enabled
        logger.info("diagnostics %s", "on" if self.diagnostics_enabled else "off")
        return self.diagnostics_enabled

    def diagnostics(self) -> dict:
        return {
            "role": self.identity.role.value,
            "sensors": self.readout.as_dict(),
            "shake": self.shake.as_dict(),
            "tilt": {
                "transmitting": self.tilt.transmitting,
                "neutral": self.tilt.neutral is not None,
                "x": round(self.tilt.tilt_x, 2),
                "z": round(self.tilt.tilt_z, 2),
            },
            "status": self.status.as_dict(),
        }

    # ---------------------- dispatch ----------------------

    def _from_gestures(self, t_ms: int, results: list[GestureResult], shaken: bool = False) -> list[Action]:
        h = self.handlers
        stepping = h.shake_steps and shaken
        steps = self.preset.steps
        user = self.preset.sensitivity
        out: list[Action] = []

        for r in results:
            if r.zoom_delta is not None:
                if h.zoom:
                    out.append(zoom(t_ms, r.zoom_delta))
            elif r.drag is not None:
                if h.drag_pan:
                    dx = r.drag[0] * self.preset.gesture.drag_pan_scale * user.pan
                    dy = r.drag[1] * self.preset.gesture.drag_pan_scale * user.pan
                    if abs(dx) > self.preset.gesture.drag_min_step or abs(dy) > self.preset.gesture.drag_min_step:
                        out.append(pan(t_ms, dx, dy))
            elif r.gesture is not None:
                g = r.gesture
                if g in h.select_gestures:
                    out.append(select(t_ms, g))
                elif stepping and g in _PAN_STEPS:
                    sx, sy = _PAN_STEPS[g]
                    out.append(pan(t_ms, sx * steps.pan_step, sy * steps.pan_step, source="shake"))
                elif stepping and g == GestureType.UP:
                    out.append(zoom(t_ms, steps.zoom_step))
                elif stepping and g == GestureType.DOWN:
                    out.append(zoom(t_ms, -steps.zoom_step))
                else:
                    logger.debug("%s ignored for role %s", g.value, self.identity.role.value)
        return out

    def _from_tilt(self, signal: Optional[TiltSignal]) -> list[Action]:
        if signal is None or not self.handlers.tilt_pan:
            return []
        scale = self.preset.tilt.pan_scale * self.preset.sensitivity.pan
        # gamma (left/right) drives x, beta (front/back) drives y
        return [pan(signal.t_ms, signal.tilt_z * scale, signal.tilt_x * scale, source="tilt")]

    def _guard(self, capability: str, fn: Callable[[], list[T]]) -> list[T]:
        try:
            return fn()
        except Exception as e:
            logger.exception("%s handler failed", capability)
            self.status.set(capability, Status.ERROR, f"{capability}: {e}")
            return []
