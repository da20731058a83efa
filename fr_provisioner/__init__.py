"""Fly machines runner backend for fly-runner-lib."""

from fr_common.api import configure_logging as _configure_logging

_configure_logging()

from fr_provisioner.api import (  # noqa: F401, E402
    Backend,
    BackendConfig,
    Closure,
    FlyBackend,
    HandshakeRegistry,
    MountRequest,
    NamedCall,
    ParentDescriptor,
    RunnerHandle,
    RunnerState,
    deliver_handshake,
    init_config,
)

__all__ = [
    "Backend",
    "BackendConfig",
    "Closure",
    "FlyBackend",
    "HandshakeRegistry",
    "MountRequest",
    "NamedCall",
    "ParentDescriptor",
    "RunnerHandle",
    "RunnerState",
    "deliver_handshake",
    "init_config",
]
