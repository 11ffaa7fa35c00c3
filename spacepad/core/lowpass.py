from __future__ import annotations

import math

from spacepad.core.types import Vec3


def _alpha(cutoff_hz: float, dt: float) -> float:
    # smoothing factor from cutoff frequency
    tau = 1.0 / (2.0 * math.pi * cutoff_hz)
    return 1.0 / (1.0 + tau / max(dt, 1e-6))


class LowPass:
    def __init__(self, x0: float = 0.0):
        self.x = x0
        self.initialized = False

    def reset(self):
        self.initialized = False

    def apply(self, x: float, a: float) -> float:
        if not self.initialized:
            self.x = x
            self.initialized = True
            return x
        self.x = a * x + (1.0 - a) * self.x
        return self.x


class GravitySplitter:
    """
    Splits a raw accelerometer reading (gravity included) into a slow
    gravity estimate and the fast linear part.

    Hardware without a fused "linear acceleration" channel only gives us
    the raw vector; gravity is whatever survives a low cutoff.
    """

    def __init__(self, cutoff_hz: float = 0.8):
        self.cutoff_hz = float(cutoff_hz)
        self._axes = (LowPass(), LowPass(), LowPass())
        self._last_t: float | None = None

    def reset(self):
        for lp in self._axes:
            lp.reset()
        self._last_t = None

    def split(self, raw: Vec3, t: float) -> tuple[Vec3, Vec3]:
        """Return (gravity, linear) for a raw sample taken at time t (seconds)."""
        dt = 1.0 if self._last_t is None else max(1e-4, t - self._last_t)
        self._last_t = t
        a = _alpha(self.cutoff_hz, dt)
        g = tuple(lp.apply(v, a) for lp, v in zip(self._axes, raw))
        lin = tuple(v - gv for v, gv in zip(raw, g))
        return g, lin  # type: ignore[return-value]


def tilt_from_gravity(g: Vec3) -> tuple[float, float]:
    """
    Beta (front/back) and gamma (left/right) in degrees from a gravity vector,
    using the same axis conventions as browser DeviceOrientation events.
    """
    gx, gy, gz = g
    beta = math.degrees(math.atan2(gy, gz))
    gamma = math.degrees(math.atan2(-gx, math.hypot(gy, gz)))
    return beta, gamma
