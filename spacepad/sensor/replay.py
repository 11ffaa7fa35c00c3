from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator, Union

from spacepad.core.types import (
    MotionSample, Orientation, OrientationSample, PointerEvent, PointerPhase, WheelEvent,
)

ReplayEvent = Union[PointerEvent, WheelEvent, MotionSample, OrientationSample]


def _vec(v):
    return None if v is None else (float(v[0]), float(v[1]), float(v[2]))


def decode(line: dict) -> ReplayEvent | None:
    """One recorded input line back into its contract type; output-only lines give None."""
    kind = line.get("kind")
    d = line.get("data") or {}
    if kind == "pointer":
        return PointerEvent(int(d["t_ms"]), int(d["pointer_id"]), PointerPhase(d["phase"]), float(d["x"]), float(d["y"]))
    if kind == "wheel":
        return WheelEvent(int(d["t_ms"]), float(d["delta_y"]), bool(d.get("pinch_modifier", False)))
    if kind == "motion":
        return MotionSample(int(d["t_ms"]), _vec(d.get("accel")), _vec(d.get("accel_with_gravity")))
    if kind == "orientation":
        o = d.get("orientation")
        return OrientationSample(int(d["t_ms"]), None if o is None else Orientation(**o))
    return None


def replay(path: Path) -> Iterator[ReplayEvent]:
    with path.open() as f:
        for raw in f:
            raw = raw.strip()
            if not raw:
                continue
            ev = decode(json.loads(raw))
            if ev is not None:
                yield ev
