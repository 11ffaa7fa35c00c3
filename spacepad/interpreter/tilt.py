from __future__ import annotations

import logging
from typing import Optional

from spacepad.core.config import TiltTuning
from spacepad.core.types import Orientation, OrientationSample, TiltSignal, clamp

logger = logging.getLogger(__name__)


class TiltGenerator:
    """
    Continuous tilt relative to a neutral pose captured when tilt is enabled.

    Emission needs both: min_interval_ms since the last emission, and a
    change larger than delta_deg on either axis (or a flip of the
    transmitting flag). Disabling always emits one final zeroed signal.
    """

    def __init__(self, tuning: TiltTuning) -> None:
        self.tuning = tuning
        self.neutral: Optional[Orientation] = None
        self.transmitting: bool = False
        self.tilt_x: float = 0.0
        self.tilt_z: float = 0.0
        self._last_emit_ms: Optional[int] = None
        self._last_x: float = 0.0
        self._last_z: float = 0.0
        self._last_flag: bool = False

    @property
    def active(self) -> bool:
        return self.transmitting and self.neutral is not None

    def enable(self, t_ms: int, current: Optional[Orientation] = None) -> None:
        """Start transmitting; neutral is `current` or, if unknown, the next sample."""
        self.transmitting = True
        self.neutral = current
        self.tilt_x = 0.0
        self.tilt_z = 0.0
        logger.info("tilt enabled at %d ms (neutral %s)", t_ms,
                    "captured" if current is not None else "pending")

    def disable(self, t_ms: int) -> Optional[TiltSignal]:
        if not self.transmitting:
            return None
        self.transmitting = False
        self.neutral = None
        self.tilt_x = 0.0
        self.tilt_z = 0.0
        logger.info("tilt disabled at %d ms", t_ms)
        return self._emit(t_ms)

    def update(self, sample: OrientationSample) -> Optional[TiltSignal]:
        if not self.transmitting or sample.orientation is None:
            return None

        o = sample.orientation
        if self.neutral is None:
            self.neutral = o

        lim = self.tuning.limit_deg
        self.tilt_x = clamp(o.beta - self.neutral.beta, -lim, lim)
        self.tilt_z = clamp(o.gamma - self.neutral.gamma, -lim, lim)

        t_ms = sample.t_ms
        if self._last_emit_ms is not None and (t_ms - self._last_emit_ms) < self.tuning.min_interval_ms:
            return None

        moved = (abs(self.tilt_x - self._last_x) > self.tuning.delta_deg
                 or abs(self.tilt_z - self._last_z) > self.tuning.delta_deg)
        if not moved and self.transmitting == self._last_flag:
            return None
        return self._emit(t_ms)

    def _emit(self, t_ms: int) -> TiltSignal:
        self._last_emit_ms = t_ms
        self._last_x = self.tilt_x
        self._last_z = self.tilt_z
        self._last_flag = self.transmitting
        return TiltSignal(t_ms=t_ms, tilt_x=self.tilt_x, tilt_z=self.tilt_z, transmitting=self.transmitting)
