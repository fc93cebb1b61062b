from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict

import yaml

from .solver import SearchOptions
from .tolerance import TolerancePolicy

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "tol_ratio": 1.0,
    "inverted_tolerance": False,
    "repeat_unseeded": False,
    "max_steps": None,
    "max_seconds": None,
}

_BOOL_KEYS = ("inverted_tolerance", "repeat_unseeded")


def settings_path() -> str:
    env_path = os.getenv("BUCKETFILL_SETTINGS")
    if env_path:
        return os.path.expanduser(env_path)
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "settings.yaml")


def _coerce(key: str, value: Any) -> Any:
    if value is None:
        return None
    if key in _BOOL_KEYS:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if key == "max_steps":
        return int(value)
    return float(value)


@lru_cache(maxsize=None)
def load_settings() -> Dict[str, Any]:
    """Load solver defaults from ``settings.yaml`` when available."""

    path = settings_path()
    data: Dict[str, Any] = {}
    if os.path.exists(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            logger.warning("Could not read settings from %s, using defaults", path, exc_info=True)
            loaded = {}
        if isinstance(loaded, dict):
            data = loaded
        else:
            logger.warning("Ignoring settings in %s: expected a mapping", path)

    settings = DEFAULT_SETTINGS.copy()
    for key in DEFAULT_SETTINGS:
        if key in data:
            try:
                settings[key] = _coerce(key, data[key])
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid setting %s=%r", key, data[key])
                continue
    return settings


def default_options() -> SearchOptions:
    settings = load_settings()
    return SearchOptions(
        repeat_unseeded=settings["repeat_unseeded"],
        max_steps=settings["max_steps"],
        max_seconds=settings["max_seconds"],
    )


def default_policy(tol_ratio: float | None = None) -> TolerancePolicy:
    settings = load_settings()
    ratio = settings["tol_ratio"] if tol_ratio is None else tol_ratio
    return TolerancePolicy(ratio=ratio, inverted=settings["inverted_tolerance"])
