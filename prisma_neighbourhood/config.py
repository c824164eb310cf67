from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import yaml

from .constants import CONFIG_FILENAME_DEFAULT

# key -> accepted python type(s)
CONFIG_KEYS: dict[str, tuple[type, ...]] = {
    "schema": (str,),
    "model": (str,),
    "depth": (int,),
    "renderer": (str,),
    "output": (str,),
    "strict": (bool,),
}

# Keys holding paths; resolved relative to the config file's directory.
PATH_KEYS = ("schema", "output")


class ConfigError(ValueError):
    """Raised for unreadable or malformed configuration files."""


def find_default_config(cwd: Path) -> Optional[Path]:
    candidate = cwd / CONFIG_FILENAME_DEFAULT
    if candidate.is_file():
        return candidate
    return None


def load_config(path: Path) -> dict[str, Any]:
    """Load CLI defaults from a YAML mapping.

    Unknown keys are reported on stderr and ignored. Relative `schema` and
    `output` paths are resolved against the config file's directory.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config {path}: {e.strerror or e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML {path}: {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(
            f"Top-level YAML must be a mapping in {path}, got {type(data).__name__}"
        )

    out: dict[str, Any] = {}
    for key, value in data.items():
        expected = CONFIG_KEYS.get(key)
        if expected is None:
            print(f"warning: {path}: unknown config key {key!r} ignored", file=sys.stderr)
            continue

        # bool is an int subclass; only accept it where bool is expected.
        if not isinstance(value, expected) or (isinstance(value, bool) and bool not in expected):
            raise ConfigError(
                f"{path}: config key {key!r} must be {expected[0].__name__}, "
                f"got {type(value).__name__}"
            )

        if key == "depth" and value < 0:
            raise ConfigError(f"{path}: config key 'depth' must be >= 0, got {value}")

        if key in PATH_KEYS:
            value_path = Path(value)
            if not value_path.is_absolute():
                value_path = path.parent / value_path
            value = str(value_path)

        out[key] = value

    return out
