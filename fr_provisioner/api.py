"""Public provisioning API surface."""

from fr_provisioner.engine.backend import FlyBackend, build_machine_payload
from fr_provisioner.engine.config import init_config
from fr_provisioner.engine.handshake import (
    HandshakeRegistry,
    default_registry,
    deliver_handshake,
)
from fr_provisioner.interfaces import Backend, RemoteTransport
from fr_provisioner.models.config import BackendConfig, InitConfig
from fr_provisioner.models.mounts import MountRequest, parse_mounts
from fr_provisioner.models.parent import ParentDescriptor
from fr_provisioner.models.types import RunnerHandle, RunnerState, Volume
from fr_provisioner.remote import Closure, NamedCall, coerce_task
from fr_provisioner.services.http_client import HttpRetryClient
from fr_provisioner.services.volumes import VolumeAllocator

__all__ = [
    "Backend",
    "BackendConfig",
    "Closure",
    "FlyBackend",
    "HandshakeRegistry",
    "HttpRetryClient",
    "InitConfig",
    "MountRequest",
    "NamedCall",
    "ParentDescriptor",
    "RemoteTransport",
    "RunnerHandle",
    "RunnerState",
    "Volume",
    "VolumeAllocator",
    "build_machine_payload",
    "coerce_task",
    "default_registry",
    "deliver_handshake",
    "init_config",
    "parse_mounts",
]
