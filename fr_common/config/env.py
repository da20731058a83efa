"""Environment variable parsing utilities and providers."""

from __future__ import annotations

import os
from typing import Mapping, Protocol


class EnvironmentProvider(Protocol):
    """Read-only view over process-style environment variables."""

    def get(self, key: str) -> str | None: ...


class OsEnvironment:
    """Provider backed by the real process environment."""

    def get(self, key: str) -> str | None:
        return os.environ.get(key)


class StaticEnvironment:
    """Provider backed by a fixed mapping, handy for tests and embedding."""

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        self._values = dict(values or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)


def parse_bool_env(value: str | None) -> bool | None:
    """Parse a boolean from an environment variable string.

    Returns True for "1", "true", "yes", "on" (case-insensitive).
    Returns None if value is None.
    """
    if value is None:
        return None
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_int_env(value: str | None) -> int | None:
    """Parse an integer from an environment variable string.

    Returns None if value is None or cannot be parsed.
    """
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def non_empty_env(env: EnvironmentProvider, key: str) -> str | None:
    """Return the variable value, treating blank strings as unset."""
    value = env.get(key)
    if value is None or not value.strip():
        return None
    return value
