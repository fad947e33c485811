from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml


@dataclass(frozen=True)
class EngineConfig:
    # Phases without both planned dates are scheduled for one week.
    default_duration_days: int = 7
    # Standard full-time month per resource.
    monthly_capacity_hours: float = 160.0
    busy_threshold_percent: float = 80.0
    on_track_index: float = 1.0
    at_risk_index: float = 0.9
    tcpi_difficult_threshold: float = 1.1
    schedule_risk_buffer_ratio: float = 0.2


DEFAULT_CONFIG = EngineConfig()

_INT_KEYS: set[str] = {"default_duration_days"}
# Zero is a meaningful value for these (e.g. "flag any utilization as busy").
_NON_NEGATIVE_KEYS: set[str] = {"busy_threshold_percent", "schedule_risk_buffer_ratio"}


class EngineConfigError(ValueError):
    pass


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load engine overrides from a YAML file.

    Format:
      monthly_capacity_hours: 152
      default_duration_days: 5

    Returns a mapping of option name -> value. Only known options are accepted.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise EngineConfigError(f"cannot read config file: {e}") from e
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise EngineConfigError(f"config file is not valid YAML: {e}") from e
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise EngineConfigError("config file must be a mapping of option -> number")

    known = {f.name for f in fields(EngineConfig)}
    out: dict[str, Any] = {}
    for k, v in raw.items():
        if not isinstance(k, str) or k not in known:
            raise EngineConfigError(f"unknown config option: {k!r} (known: {', '.join(sorted(known))})")
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise EngineConfigError(f"config option '{k}' must be a number")
        if k in _INT_KEYS and not isinstance(v, int):
            raise EngineConfigError(f"config option '{k}' must be an integer")
        if k in _NON_NEGATIVE_KEYS:
            if v < 0:
                raise EngineConfigError(f"config option '{k}' must be >= 0")
        elif v <= 0:
            raise EngineConfigError(f"config option '{k}' must be > 0")
        out[k] = v
    return out


def merged_config(overrides: Optional[dict[str, Any]] = None) -> EngineConfig:
    """Return DEFAULT_CONFIG with optional overrides applied."""
    if not overrides:
        return DEFAULT_CONFIG
    return replace(DEFAULT_CONFIG, **overrides)


def load_and_merge(config_file: str | None) -> EngineConfig:
    if not config_file:
        return merged_config()
    overrides = load_config_file(config_file)
    return merged_config(overrides)
