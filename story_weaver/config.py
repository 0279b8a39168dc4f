"""Runtime configuration (presets location, seeding, windows, logging)."""

import json
import os
import random
from pathlib import Path
from typing import Any

ENV_PREFIX = "STORY_WEAVER_"

_CONFIG_DEFAULTS: dict[str, Any] = {
    "presets_dir": None,
    "seed": None,
    "history_window": 5,
    "cast_size": 3,
    "log_level": "INFO",
}

_INT_KEYS = ("seed", "history_window", "cast_size")


def _coerce(key: str, value: Any) -> Any:
    if value is None or value == "":
        return _CONFIG_DEFAULTS[key]
    if key in _INT_KEYS:
        return int(value)
    if key == "log_level":
        return str(value).upper()
    return value


def get_config(path: Path | str | None = None) -> dict[str, Any]:
    """Defaults, then an optional JSON file, then STORY_WEAVER_* variables."""
    config = dict(_CONFIG_DEFAULTS)
    if path is not None:
        path = Path(path)
        if path.is_file():
            stored = json.loads(path.read_text())
            for key in _CONFIG_DEFAULTS:
                if key in stored:
                    config[key] = _coerce(key, stored[key])
    for key in _CONFIG_DEFAULTS:
        env_value = os.environ.get(f"{ENV_PREFIX}{key.upper()}")
        if env_value is not None:
            config[key] = _coerce(key, env_value)
    return config


def make_rng(seed: int | None = None) -> random.Random:
    """A private generator; seeded runs are reproducible."""
    return random.Random(seed)
