"""
Linux IIO accelerometer as a motion + orientation source.

Reads raw counts from sysfs, scales them to m/s², splits gravity out with a
low-pass filter, and derives beta/gamma from the gravity estimate. Devices
that only report accel with gravity (almost all of them) still feed the
shake detector through the linear part.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from spacepad.core.lowpass import GravitySplitter, tilt_from_gravity
from spacepad.core.types import MotionSample, Orientation, OrientationSample, Status

logger = logging.getLogger(__name__)

IIO_ROOT = Path("/sys/bus/iio/devices")
_AXES = ("x", "y", "z")


def find_accelerometer(root: Path = IIO_ROOT) -> Optional[Path]:
    if not root.exists():
        return None
    for dev in sorted(root.glob("iio:device*")):
        if (dev / "in_accel_x_raw").exists():
            return dev
    return None


class IIOMotionSource:
    def __init__(self, device: Path, cutoff_hz: float = 0.8) -> None:
        self.device = device
        self.splitter = GravitySplitter(cutoff_hz)
        self.scale = self._read_scale()

    @classmethod
    def open(cls, root: Path = IIO_ROOT) -> tuple[Optional["IIOMotionSource"], Status, str | None]:
        """Returns (source, status, reason). Never raises for missing hardware or permissions."""
        dev = find_accelerometer(root)
        if dev is None:
            return None, Status.UNAVAILABLE, "no IIO accelerometer"
        try:
            src = cls(dev)
            src.read_raw()
        except PermissionError as e:
            return None, Status.DENIED, str(e)
        except (OSError, ValueError) as e:
            return None, Status.UNAVAILABLE, str(e)
        logger.info("accelerometer at %s (scale %g)", dev, src.scale)
        return src, Status.GRANTED, None

    def _read_scale(self) -> float:
        for name in ("in_accel_scale", "in_accel_x_scale"):
            p = self.device / name
            if p.exists():
                return float(p.read_text().strip())
        return 1.0

    def read_raw(self) -> tuple[float, float, float]:
        vals = [float((self.device / f"in_accel_{a}_raw").read_text().strip()) * self.scale for a in _AXES]
        return vals[0], vals[1], vals[2]

    def sample(self, t_ms: int) -> tuple[MotionSample, OrientationSample]:
        raw = self.read_raw()
        gravity, linear = self.splitter.split(raw, t_ms / 1000.0)
        beta, gamma = tilt_from_gravity(gravity)
        return (
            MotionSample(t_ms=t_ms, accel=linear, accel_with_gravity=raw),
            OrientationSample(t_ms=t_ms, orientation=Orientation(alpha=0.0, beta=beta, gamma=gamma)),
        )
