"""
SpacePad: core contracts

Single source of truth for every value that crosses a module boundary:
raw input (sensor → interpreter), semantic actions (interpreter → update
channel) and presence records (coordination channel → presence client).

All contracts are immutable. State machines own their mutable state
privately and only ever hand out these values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


Vec3 = Tuple[float, float, float]


# ============================================================
# Sensor → Interpreter (raw input)
# ============================================================

class PointerPhase(str, Enum):
    DOWN = "DOWN"
    MOVE = "MOVE"
    UP = "UP"
    CANCEL = "CANCEL"


@dataclass(frozen=True)
class PointerEvent:
    """One contact update in screen pixels."""
    t_ms: int
    pointer_id: int
    phase: PointerPhase
    x: float
    y: float


@dataclass(frozen=True)
class WheelEvent:
    """
    Desktop wheel / trackpad scroll.

    pinch_modifier is True when the platform reports a trackpad pinch
    (browsers and most toolkits deliver it as Ctrl+wheel).
    """
    t_ms: int
    delta_y: float
    pinch_modifier: bool = False


@dataclass(frozen=True)
class MotionSample:
    """
    Accelerometer reading in m/s².

    accel excludes gravity and drives shake detection.
    accel_with_gravity is kept for diagnostics only.
    """
    t_ms: int
    accel: Optional[Vec3]
    accel_with_gravity: Optional[Vec3] = None


@dataclass(frozen=True)
class Orientation:
    """Device orientation in degrees (alpha = yaw, beta = front/back, gamma = left/right)."""
    alpha: float
    beta: float
    gamma: float


@dataclass(frozen=True)
class OrientationSample:
    t_ms: int
    orientation: Optional[Orientation]


# ============================================================
# Interpreter internals (exposed for diagnostics / tests)
# ============================================================

class Role(str, Enum):
    HOST = "host"
    NAVIGATOR = "navigator"
    SELECTOR = "selector"
    INSPECTOR = "inspector"


class GestureType(str, Enum):
    TAP = "tap"
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    UP = "up"
    DOWN = "down"


class Axis(str, Enum):
    X = "x"
    Y = "y"
    Z = "z"


class Sign(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class ShakePhase(str, Enum):
    IDLE = "IDLE"
    IMPULSE_DETECTED = "IMPULSE_DETECTED"


class Status(str, Enum):
    """Capability / connection status flag."""
    UNKNOWN = "unknown"
    INACTIVE = "inactive"
    PENDING = "pending"
    GRANTED = "granted"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"
    ERROR = "error"


@dataclass(frozen=True)
class GestureResult:
    """
    Output of the gesture classifier for one input event.

    Exactly ONE of gesture / zoom_delta / drag is set.
    """
    gesture: Optional[GestureType] = None
    zoom_delta: Optional[float] = None
    drag: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class TiltSignal:
    """Tilt relative to the neutral pose, in degrees, clamped to ±90."""
    t_ms: int
    tilt_x: float
    tilt_z: float
    transmitting: bool


# ============================================================
# Interpreter → Update channel (semantic actions)
# ============================================================

class ActionType(str, Enum):
    PAN = "pan"
    ZOOM = "zoom"
    SELECT = "select"


@dataclass(frozen=True)
class PanAction:
    dx: float
    dy: float
    source: str = "pointer"   # "pointer" | "shake" | "tilt"


@dataclass(frozen=True)
class ZoomAction:
    delta: float


@dataclass(frozen=True)
class SelectAction:
    action: GestureType


@dataclass(frozen=True)
class Action:
    """
    A single semantic action for the host.

    Exactly ONE payload field must be non-None depending on `type`.
    """
    t_ms: int
    type: ActionType
    pan: Optional[PanAction] = None
    zoom: Optional[ZoomAction] = None
    select: Optional[SelectAction] = None

    def payload(self) -> Dict[str, Any]:
        if self.type == ActionType.PAN and self.pan is not None:
            return {"dx": self.pan.dx, "dy": self.pan.dy, "source": self.pan.source}
        if self.type == ActionType.ZOOM and self.zoom is not None:
            return {"delta": self.zoom.delta}
        if self.type == ActionType.SELECT and self.select is not None:
            return {"action": self.select.action.value}
        raise ValueError(f"action {self.type.value} has no matching payload")


def pan(t_ms: int, dx: float, dy: float, source: str = "pointer") -> Action:
    return Action(t_ms=t_ms, type=ActionType.PAN, pan=PanAction(dx=dx, dy=dy, source=source))


def zoom(t_ms: int, delta: float) -> Action:
    return Action(t_ms=t_ms, type=ActionType.ZOOM, zoom=ZoomAction(delta=delta))


def select(t_ms: int, gesture: GestureType) -> Action:
    return Action(t_ms=t_ms, type=ActionType.SELECT, select=SelectAction(action=gesture))


# ============================================================
# Coordination channel ↔ Presence client
# ============================================================

@dataclass(frozen=True)
class ClientIdentity:
    """Created once at startup; never changes during a session."""
    client_id: str
    role: Role
    display_name: str
    session_start_ms: int

    def to_record(self, search_query: Optional[str] = None) -> Dict[str, Any]:
        rec: Dict[str, Any] = {
            "clientId": self.client_id,
            "clientType": self.role.value,
            "clientName": self.display_name,
            "startTime": self.session_start_ms,
        }
        if search_query is not None:
            rec["searchQuery"] = search_query
        return rec


@dataclass(frozen=True)
class SharedSessionState:
    """Host-owned state, mirrored read-only by every controller."""
    host_id: str
    session_start_ms: float
    selected_item_ids: Tuple[str, ...] = ()
    highlighted_item_ids: Tuple[str, ...] = ()
    current_collection_id: Optional[str] = None
    current_collection_items: Tuple[Mapping[str, Any], ...] = ()
    available_tags: Tuple[str, ...] = ()
    current_screen_id: Optional[str] = None
    search_query: Optional[str] = None


@dataclass(frozen=True)
class PresenceRecord:
    key: str
    identity: ClientIdentity
    search_query: Optional[str] = None
    shared: Optional[SharedSessionState] = None
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


def clamp(x: float, lo: float, hi: float) -> float:
    if x < lo:
        return lo
    if x > hi:
        return hi
    return x
