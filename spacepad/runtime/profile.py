from __future__ import annotations

import json
import logging
import random
import uuid
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from spacepad.core.config import Preset, UserSensitivity

logger = logging.getLogger(__name__)

DISPLAY_NAMES = (
    "Andromeda", "Betelgeuse", "Cassiopeia", "Deneb", "Enceladus", "Fomalhaut",
    "Ganymede", "Hyperion", "Io", "Janus", "Kepler", "Lyra", "Mira", "Nebula",
    "Orion", "Pulsar", "Quasar", "Rigel", "Sirius", "Titan", "Umbriel", "Vega",
    "Wolf", "Xena", "Yildun", "Zeta", "Arrakis", "Caladan", "Gallifrey", "Hoth",
    "Krypton", "Pern", "Solaris", "Terminus", "Trantor", "Vulcan",
)


@dataclass
class UserProfile:
    client_id: str
    display_name: str
    pan_sensitivity: float = 1.0
    zoom_sensitivity: float = 1.0


def profile_path() -> Path:
    p = Path.home() / ".config" / "spacepad"
    p.mkdir(parents=True, exist_ok=True)
    return p / "profile.json"


def new_profile(rng: Optional[random.Random] = None) -> UserProfile:
    rng = rng or random.Random()
    return UserProfile(client_id=uuid.uuid4().hex, display_name=rng.choice(DISPLAY_NAMES))


def save_profile(profile: UserProfile, path: Optional[Path] = None) -> None:
    (path or profile_path()).write_text(json.dumps(profile.__dict__, indent=2))


def load_profile(path: Optional[Path] = None) -> Optional[UserProfile]:
    p = path or profile_path()
    if not p.exists():
        return None
    try:
        d = json.loads(p.read_text())
        return UserProfile(
            client_id=str(d["client_id"]),
            display_name=str(d["display_name"]),
            pan_sensitivity=float(d.get("pan_sensitivity", 1.0)),
            zoom_sensitivity=float(d.get("zoom_sensitivity", 1.0)),
        )
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.warning("ignoring unreadable profile %s: %s", p, e)
        return None


def load_or_create(path: Optional[Path] = None) -> UserProfile:
    """Keeps a device's name across sessions; writes a fresh profile on first run."""
    profile = load_profile(path)
    if profile is None:
        profile = new_profile()
        try:
            save_profile(profile, path)
        except OSError as e:
            logger.warning("could not save profile: %s", e)
    return profile


def apply_profile(preset: Preset, profile: UserProfile) -> Preset:
    return replace(preset, sensitivity=UserSensitivity(pan=profile.pan_sensitivity, zoom=profile.zoom_sensitivity))
