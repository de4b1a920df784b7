"""Host configuration.

`load_config` accepts a path to a YAML file, a dictionary or None and
returns a normalized configuration dict using DEFAULTS for missing values.
Machine constants (memory size, display size) are not configurable.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

DEFAULTS: dict[str, Any] = {
    "cpu_hz": 600,
    "timer_hz": 60,
    "scale": 10,
    "vsync": False,
    "foreground": [255, 255, 255],
    "background": [0, 0, 0],
    "beep_frequency": 440,
    "beep_duration": 0.2,
    "pitch_variation": 15,
    "show_stats": True,
}


def _color(value: Any) -> tuple[int, int, int]:
    rgb = tuple(int(c) for c in value)
    if len(rgb) != 3:
        raise ValueError(f"colour needs 3 components, got {len(rgb)}")
    return rgb


def _convert_types(cfg: dict[str, Any]) -> None:
    """Normalize types in-place, raising ConfigError on conversion failure."""
    try:
        for name in ("cpu_hz", "timer_hz", "scale", "pitch_variation"):
            cfg[name] = int(cfg[name])
        for name in ("beep_frequency", "beep_duration"):
            cfg[name] = float(cfg[name])
        cfg["foreground"] = _color(cfg["foreground"])
        cfg["background"] = _color(cfg["background"])
    except (TypeError, ValueError) as e:
        msg = f"Bad types in config: {e}"
        raise ConfigError(msg) from e


def _validate_cfg(cfg: dict[str, Any]) -> None:
    for name in ("cpu_hz", "timer_hz", "scale"):
        if cfg[name] <= 0:
            msg = f"{name} must be positive"
            raise ConfigError(msg)

    if cfg["beep_frequency"] <= 0 or cfg["beep_duration"] <= 0:
        msg = "beep_frequency and beep_duration must be positive"
        raise ConfigError(msg)

    if cfg["pitch_variation"] < 0:
        msg = "pitch_variation must be non-negative"
        raise ConfigError(msg)

    for name in ("foreground", "background"):
        if not all(0 <= c <= 255 for c in cfg[name]):
            msg = f"{name} components must be in range 0..255"
            raise ConfigError(msg)

    for name in ("vsync", "show_stats"):
        if not isinstance(cfg[name], bool):
            msg = f"{name} must be boolean"
            raise ConfigError(msg)


def load_config(path_or_dict: str | Path | dict[str, Any] | None = None) -> dict[str, Any]:
    """Load and normalize configuration.

    Accepts:
      - None -> returns DEFAULTS copy
      - dict -> overlay DEFAULTS with provided dict
      - str or Path -> load YAML and overlay DEFAULTS

    Returns a normalized dict or raises ConfigError.
    """
    if path_or_dict is None:
        data: dict[str, Any] = {}
    elif isinstance(path_or_dict, dict):
        data = path_or_dict
    elif isinstance(path_or_dict, (str, Path)):
        p = Path(path_or_dict)
        if not p.exists():
            msg = f"Config file not found: {path_or_dict}"
            raise ConfigError(msg)
        try:
            with p.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            msg = f"Failed to load config file {path_or_dict}: {e}"
            raise ConfigError(msg) from e
        if not isinstance(data, dict):
            msg = f"Config file {path_or_dict} does not contain a mapping"
            raise ConfigError(msg)
    else:
        msg = "Unsupported config input"
        raise ConfigError(msg)

    unknown = sorted(set(data) - set(DEFAULTS))
    if unknown:
        msg = f"Unknown config keys: {', '.join(map(str, unknown))}"
        raise ConfigError(msg)

    cfg = dict(DEFAULTS)
    cfg.update(data)

    _convert_types(cfg)
    _validate_cfg(cfg)

    return cfg
