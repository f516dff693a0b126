from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from .counters import DEFAULT_INTERVAL_SEC, DEFAULT_SAMPLES
from .eventlog import DEFAULT_EVENT_IDS, DEFAULT_LOG_NAME, DEFAULT_LOOKBACK_HOURS, valid_event_ids

logger = logging.getLogger(__name__)

ENV_PREFIX = "STORAGE_HEALTH_"


def _positive(name: str, value: Any, cast: Callable[[Any], Any], default: Any) -> Any:
    # JSON files may carry numbers as strings ("5"); anything unusable falls back
    try:
        number = cast(value)
    except (TypeError, ValueError):
        number = None
    if isinstance(value, bool) or number is None or number <= 0:
        logger.warning(f"Invalid {name}: {value!r}, using {default}")
        return default
    return number


@dataclass
class Settings:
    """Collection settings for one report run."""

    sample_count: int = DEFAULT_SAMPLES
    sample_interval_sec: int = DEFAULT_INTERVAL_SEC
    lookback_hours: float = DEFAULT_LOOKBACK_HOURS
    event_ids: List[int] = field(default_factory=lambda: list(DEFAULT_EVENT_IDS))
    log_name: str = DEFAULT_LOG_NAME
    powershell: str = "powershell"

    def __post_init__(self):
        self.sample_count = _positive("sample_count", self.sample_count, int, DEFAULT_SAMPLES)
        self.sample_interval_sec = _positive(
            "sample_interval_sec", self.sample_interval_sec, int, DEFAULT_INTERVAL_SEC
        )
        self.lookback_hours = _positive("lookback_hours", self.lookback_hours, float, DEFAULT_LOOKBACK_HOURS)
        self.event_ids = valid_event_ids(self.event_ids)
        if not self.log_name:
            self.log_name = DEFAULT_LOG_NAME
        if not self.powershell:
            self.powershell = "powershell"


def _coerce(name: str, raw: str) -> Any:
    if name == "event_ids":
        return [int(part) for part in raw.replace(";", ",").split(",") if part.strip()]
    if name in ("sample_count", "sample_interval_sec"):
        return int(raw)
    if name == "lookback_hours":
        return float(raw)
    return raw


def load_settings(
    path: Optional[Union[str, Path]] = None, env: Optional[Dict[str, str]] = None
) -> Settings:
    """Build settings from an optional JSON file, then STORAGE_HEALTH_* variables."""
    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}

    if path is not None:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a JSON object")
        for key, value in data.items():
            if key in known:
                values[key] = value
            else:
                logger.warning("Ignoring unknown config key: %s", key)

    env = os.environ if env is None else env
    for name in known:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw is None:
            continue
        try:
            values[name] = _coerce(name, raw)
        except ValueError:
            logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name.upper(), raw)

    return Settings(**values)
