"""Public API surface for fr_common."""

from fr_common.config.env import EnvironmentProvider, OsEnvironment, StaticEnvironment
from fr_common.logging import configure_logging

__all__ = [
    "configure_logging",
    "EnvironmentProvider",
    "OsEnvironment",
    "StaticEnvironment",
]
