"""
SpacePad Session Recorder
Writes JSONL logs to ~/.cache/spacepad/sessions/session_<timestamp>.jsonl
One line = one input (pointer / wheel / motion / orientation) or one emitted action.
The input lines can be fed back through sensor/replay.py.
"""

from __future__ import annotations

import json
import time
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Optional, TextIO

from spacepad.core.types import Action, MotionSample, OrientationSample, PointerEvent, WheelEvent

_KINDS = (
    (PointerEvent, "pointer"),
    (WheelEvent, "wheel"),
    (MotionSample, "motion"),
    (OrientationSample, "orientation"),
    (Action, "action"),
)


def _ser(x: Any) -> Any:
    if x is None:
        return None
    if is_dataclass(x):
        return asdict(x)
    return str(x)


def default_path() -> Path:
    outdir = Path.home() / ".cache" / "spacepad" / "sessions"
    outdir.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    return outdir / f"session_{ts}.jsonl"


class SessionRecorder:
    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._f: Optional[TextIO] = path.open("a")
        self.lines = 0

    def record(self, item: Any) -> None:
        if self._f is None:
            return
        kind = next((k for t, k in _KINDS if isinstance(item, t)), None)
        if kind is None:
            raise TypeError(f"cannot record {type(item).__name__}")
        self._f.write(json.dumps({"kind": kind, "data": _ser(item)}) + "\n")
        self.lines += 1

    def note(self, text: str, t_ms: int) -> None:
        if self._f is not None:
            self._f.write(json.dumps({"kind": "note", "data": {"t_ms": t_ms, "text": text}}) + "\n")
            self.lines += 1

    def close(self) -> None:
        if self._f is not None:
            self._f.close()
            self._f = None
