"""Shared helpers for fly-runner-lib."""

from fr_common.api import (
    EnvironmentProvider,
    OsEnvironment,
    StaticEnvironment,
    configure_logging,
)

__all__ = [
    "configure_logging",
    "EnvironmentProvider",
    "OsEnvironment",
    "StaticEnvironment",
]
