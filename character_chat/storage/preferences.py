"""Per-user preferences (default instruction, pinned personas, voice settings).

Loaded once per request from preferences/<user>.json with defaults merged
over stored values, saved whenever they change.
"""

import json
from pathlib import Path
from typing import Any

from .core import preferences_dir, read_json, safe_name, write_json

_PREFERENCE_DEFAULTS: dict[str, Any] = {
    "default_instruction": "",
    "pinned_personas": [],
    "voice": {"language": "en-US", "pitch": 1.0, "rate": 1.0},
}


def _preferences_path(owner: str) -> Path:
    return preferences_dir() / f"{safe_name(owner)}.json"


def _dedupe(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def get_preferences(owner: str) -> dict[str, Any]:
    """Read preferences, returning defaults merged with stored values."""
    prefs: dict[str, Any] = json.loads(json.dumps(_PREFERENCE_DEFAULTS))
    stored = read_json(_preferences_path(owner), {})
    if "default_instruction" in stored:
        prefs["default_instruction"] = stored["default_instruction"]
    if "pinned_personas" in stored:
        prefs["pinned_personas"] = _dedupe(stored["pinned_personas"])
    if isinstance(stored.get("voice"), dict):
        prefs["voice"].update(
            {k: v for k, v in stored["voice"].items() if k in prefs["voice"]}
        )
    return prefs


def update_preferences(owner: str, fields: dict[str, Any]) -> dict[str, Any]:
    """Merge fields into preferences and persist. Returns the full preferences.

    default_instruction is overwritten, pinned_personas replaced wholesale,
    voice merged key by key.
    """
    prefs = get_preferences(owner)
    if fields.get("default_instruction") is not None:
        prefs["default_instruction"] = fields["default_instruction"]
    if fields.get("pinned_personas") is not None:
        prefs["pinned_personas"] = _dedupe(fields["pinned_personas"])
    if isinstance(fields.get("voice"), dict):
        prefs["voice"].update(
            {k: v for k, v in fields["voice"].items() if k in prefs["voice"] and v is not None}
        )
    write_json(_preferences_path(owner), prefs)
    return prefs


def clear_default_instruction(owner: str) -> dict[str, Any]:
    """Forget the user's default instruction (on logout)."""
    prefs = get_preferences(owner)
    prefs["default_instruction"] = ""
    write_json(_preferences_path(owner), prefs)
    return prefs
