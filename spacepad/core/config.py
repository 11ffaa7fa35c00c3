"""
SpacePad: defaults (presets)

Every threshold the classifiers use lives here as an immutable value.
A preset is picked once at startup, optionally adjusted from the user
profile with dataclasses.replace, and then passed explicitly to whoever
needs it. Nothing mutates these at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PresetName(str, Enum):
    DEFAULT = "default"
    HANDHELD = "handheld"
    DESKTOP = "desktop"


@dataclass(frozen=True)
class GestureTuning:
    inactive_radius_px: float = 20.0     # release within this radius => tap
    pinch_zoom_sensitivity: float = 0.04
    wheel_zoom_sensitivity: float = 0.008
    trackpad_zoom_sensitivity: float = 0.016
    drag_pan_scale: float = 0.125
    drag_min_step: float = 0.001         # smaller drag pans are not sent


@dataclass(frozen=True)
class ShakeTuning:
    impulse_threshold: float = 5.0       # m/s², gravity excluded
    shake_threshold: float = 15.0
    direction_threshold: float = 8.0
    impulse_max_duration_ms: int = 300
    debounce_ms: int = 500


@dataclass(frozen=True)
class TiltTuning:
    min_interval_ms: int = 50
    delta_deg: float = 0.5
    limit_deg: float = 90.0
    pan_scale: float = 0.05              # degrees -> pan units when tilt drives pan


@dataclass(frozen=True)
class StepTuning:
    """Fixed steps for navigator shakes."""
    pan_step: float = 5.0
    zoom_step: float = 0.2


@dataclass(frozen=True)
class UserSensitivity:
    pan: float = 1.0
    zoom: float = 1.0


@dataclass(frozen=True)
class ChannelSettings:
    url: str = "ws://localhost:8765"
    channel_name: str = "spacecraft"
    reconnect_delay_s: float = 2.0
    poll_timeout_s: float = 0.01


@dataclass(frozen=True)
class Preset:
    name: PresetName
    gesture: GestureTuning
    shake: ShakeTuning
    tilt: TiltTuning
    steps: StepTuning = StepTuning()
    sensitivity: UserSensitivity = UserSensitivity()
    channel: ChannelSettings = ChannelSettings()


DEFAULT_PRESET = Preset(
    name=PresetName.DEFAULT,
    gesture=GestureTuning(),
    shake=ShakeTuning(),
    tilt=TiltTuning(),
)

# Phones are held loosely; keep the shake bars but make tilt a little calmer.
HANDHELD_PRESET = Preset(
    name=PresetName.HANDHELD,
    gesture=GestureTuning(inactive_radius_px=24.0),
    shake=ShakeTuning(),
    tilt=TiltTuning(min_interval_ms=66, delta_deg=1.0),
)

DESKTOP_PRESET = Preset(
    name=PresetName.DESKTOP,
    gesture=GestureTuning(inactive_radius_px=12.0, wheel_zoom_sensitivity=0.006),
    shake=ShakeTuning(),
    tilt=TiltTuning(),
)

PRESETS = {
    PresetName.DEFAULT: DEFAULT_PRESET,
    PresetName.HANDHELD: HANDHELD_PRESET,
    PresetName.DESKTOP: DESKTOP_PRESET,
}
