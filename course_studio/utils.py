"""Generic helper utilities used across the project."""
from __future__ import annotations

import os
from typing import Optional

_TRUE_VALUES = ("1", "true", "yes", "on")


def resolve_path(value: str, base_dir: str) -> str:
    """Resolve a path relative to base_dir when value is not absolute."""
    if not os.path.isabs(value):
        return os.path.join(base_dir, value)
    return value


def _clamp(value, min_value, max_value):
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def parse_int_env(
    name: str,
    default: int,
    *,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    """Parse an integer environment variable with optional bounds."""
    try:
        value = int(os.getenv(name, str(default)).strip())
    except ValueError:
        value = default
    return _clamp(value, min_value, max_value)


def parse_float_env(
    name: str,
    default: float,
    *,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> float:
    """Parse a float environment variable with optional bounds."""
    try:
        value = float(os.getenv(name, str(default)).strip())
    except ValueError:
        value = default
    return _clamp(value, min_value, max_value)


def parse_flag_env(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in _TRUE_VALUES


def parse_choice_env(name: str, default: str, choices) -> str:
    """Return a lower-cased env value when it is one of choices, else default."""
    value = os.getenv(name, default).strip().lower()
    if value not in choices:
        return default
    return value
