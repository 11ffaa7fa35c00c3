import random

from spacepad.core.config import DEFAULT_PRESET
from spacepad.runtime.profile import (
    DISPLAY_NAMES, UserProfile, apply_profile, load_or_create, load_profile, new_profile, save_profile,
)


def test_new_profile_picks_listed_name():
    p = new_profile(random.Random(3))
    assert p.display_name in DISPLAY_NAMES
    assert len(p.client_id) == 32


def test_save_and_load(tmp_path):
    path = tmp_path / "profile.json"
    save_profile(UserProfile("abc", "Vega", pan_sensitivity=0.5, zoom_sensitivity=2.0), path)
    p = load_profile(path)
    assert p == UserProfile("abc", "Vega", 0.5, 2.0)


def test_missing_or_corrupt_profile(tmp_path):
    assert load_profile(tmp_path / "nope.json") is None
    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert load_profile(bad) is None
    bad.write_text('{"display_name": "Vega"}')
    assert load_profile(bad) is None


def test_name_survives_sessions(tmp_path):
    path = tmp_path / "profile.json"
    first = load_or_create(path)
    second = load_or_create(path)
    assert first == second


def test_apply_profile_only_touches_sensitivity():
    preset = apply_profile(DEFAULT_PRESET, UserProfile("abc", "Vega", 0.5, 2.0))
    assert (preset.sensitivity.pan, preset.sensitivity.zoom) == (0.5, 2.0)
    assert preset.gesture == DEFAULT_PRESET.gesture
    assert DEFAULT_PRESET.sensitivity.pan == 1.0
