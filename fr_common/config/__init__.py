"""Configuration helpers for fr_common."""

from .env import (
    EnvironmentProvider,
    OsEnvironment,
    StaticEnvironment,
    non_empty_env,
    parse_bool_env,
    parse_int_env,
)

__all__ = [
    "EnvironmentProvider",
    "OsEnvironment",
    "StaticEnvironment",
    "non_empty_env",
    "parse_bool_env",
    "parse_int_env",
]
