from __future__ import annotations

import logging
import math
from typing import Optional

from spacepad.core.config import ShakeTuning
from spacepad.core.types import Axis, GestureType, MotionSample, ShakePhase, Sign, Vec3

logger = logging.getLogger(__name__)

_AXIS_INDEX = {Axis.X: 0, Axis.Y: 1, Axis.Z: 2}

# (axis, sign of the confirming component) -> direction
_DIRECTIONS = {
    (Axis.X, Sign.POSITIVE): GestureType.EAST,
    (Axis.X, Sign.NEGATIVE): GestureType.WEST,
    (Axis.Y, Sign.POSITIVE): GestureType.NORTH,
    (Axis.Y, Sign.NEGATIVE): GestureType.SOUTH,
    (Axis.Z, Sign.POSITIVE): GestureType.UP,
    (Axis.Z, Sign.NEGATIVE): GestureType.DOWN,
}


def dominant_axis(accel: Vec3) -> tuple[Axis, Sign]:
    """Axis with the strongest component; anything short of a strict winner is z."""
    x, y, z = accel
    ax, ay, az = abs(x), abs(y), abs(z)
    if ax > ay and ax > az:
        axis, v = Axis.X, x
    elif ay > ax and ay > az:
        axis, v = Axis.Y, y
    else:
        axis, v = Axis.Z, z
    return axis, (Sign.POSITIVE if v > 0 else Sign.NEGATIVE)


class ShakeDetector:
    """
    Two-bar shake detector.

    IDLE --(|a| > impulse bar)--> IMPULSE_DETECTED
    IMPULSE_DETECTED --(too old)--> IDLE, nothing emitted
    IMPULSE_DETECTED --(|a| > shake bar and recorded axis > direction bar)--> IDLE, one shake emitted

    After a confirmed shake nothing re-arms until the debounce window passes.
    All timing comes from sample timestamps, never from a wall clock.
    """

    def __init__(self, tuning: ShakeTuning) -> None:
        self.tuning = tuning
        self.enabled: bool = True
        self.phase: ShakePhase = ShakePhase.IDLE
        self.axis: Optional[Axis] = None
        self.direction: Optional[Sign] = None
        self.impulse_start_ms: Optional[int] = None
        self.last_shake_ms: Optional[int] = None
        self.last_shake: Optional[GestureType] = None
        self.last_magnitude: float = 0.0

    def reset(self) -> None:
        self.phase = ShakePhase.IDLE
        self.axis = None
        self.direction = None
        self.impulse_start_ms = None

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if not enabled:
            self.reset()

    def in_cooldown(self, t_ms: int) -> bool:
        return self.last_shake_ms is not None and (t_ms - self.last_shake_ms) < self.tuning.debounce_ms

    def update(self, sample: MotionSample) -> Optional[GestureType]:
        if not self.enabled or sample.accel is None:
            return None

        t_ms = sample.t_ms
        accel = sample.accel
        mag = math.sqrt(accel[0] * accel[0] + accel[1] * accel[1] + accel[2] * accel[2])
        self.last_magnitude = mag

        if self.in_cooldown(t_ms):
            return None

        if self.phase == ShakePhase.IDLE:
            if mag <= self.tuning.impulse_threshold:
                return None
            self.axis, self.direction = dominant_axis(accel)
            self.impulse_start_ms = t_ms
            self.phase = ShakePhase.IMPULSE_DETECTED
            logger.debug("impulse %s-%s |a|=%.2f", self.axis.value, self.direction.value, mag)
            # the triggering sample may already be strong enough to confirm

        start, axis = self.impulse_start_ms, self.axis
        if start is None or axis is None:
            self.reset()
            return None

        if (t_ms - start) > self.tuning.impulse_max_duration_ms:
            logger.debug("impulse timed out after %d ms", t_ms - start)
            self.reset()
            return None

        if mag <= self.tuning.shake_threshold:
            return None

        component = accel[_AXIS_INDEX[axis]]
        if abs(component) <= self.tuning.direction_threshold:
            return None

        shake = _DIRECTIONS[(axis, Sign.POSITIVE if component > 0 else Sign.NEGATIVE)]
        self.last_shake_ms = t_ms
        self.last_shake = shake
        self.reset()
        logger.info("shake confirmed: %s |a|=%.2f", shake.value, mag)
        return shake

    def as_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "impulse": None if self.axis is None else f"{self.axis.value}-{self.direction.value}",
            "last_shake": None if self.last_shake is None else self.last_shake.value,
            "last_shake_ms": self.last_shake_ms,
            "magnitude": round(self.last_magnitude, 3),
        }
