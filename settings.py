"""Persistent settings for Yambo.

Preferences (sound, theme, player name, roll animation length) live in
~/.yambo_settings.json. No frontend dependency.
"""

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULTS = {
    "sound_enabled": True,
    "dark_mode": False,
    "player_name": "Player 1",
    "juggle_time": 200,   # roll animation length in ms
}


def _default_path():
    return Path.home() / ".yambo_settings.json"


def _valid(key, value):
    """Check a stored value has the type of its default."""
    default = DEFAULTS[key]
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, int):
        return isinstance(value, int) and not isinstance(value, bool) and value > 0
    return isinstance(value, type(default))


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Merges with DEFAULTS so missing keys get default values. Unknown keys
    and values of the wrong type are ignored.
    """
    path = Path(path) if path is not None else _default_path()
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        return dict(DEFAULTS)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable settings file %s: %s", path, e)
        return dict(DEFAULTS)

    result = dict(DEFAULTS)
    if not isinstance(data, dict):
        return result
    for key in DEFAULTS:
        if key in data and _valid(key, data[key]):
            result[key] = data[key]
    return result


def save_settings(settings, path=None):
    """Write settings dict to JSON via a temp file. Write errors are logged, not raised."""
    path = Path(path) if path is not None else _default_path()
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(json.dumps(settings, indent=2))
        os.replace(tmp, path)
    except OSError as e:
        logger.warning("Could not save settings to %s: %s", path, e)
