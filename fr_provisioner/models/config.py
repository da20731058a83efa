"""Backend configuration models (options bag and resolved template)."""

from __future__ import annotations

import secrets
from dataclasses import replace
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fr_provisioner.models.mounts import MountRequest
from fr_provisioner.models.parent import PARENT_ENV, ParentDescriptor

DEFAULT_HOST = "https://api.machines.dev"
DEFAULT_CPU_KIND = "performance"
DEFAULT_MEMORY_MB = 4096
DEFAULT_BOOT_TIMEOUT_MS = 30_000
TOKEN_BYTES = 16


def new_token() -> str:
    """Return a fresh correlation token."""
    return secrets.token_hex(TOKEN_BYTES)


class InitConfig(BaseModel):
    """Init directives passed through to the machines create endpoint."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    cmd: Optional[List[str]] = None
    entrypoint: Optional[List[str]] = None
    exec_: Optional[List[str]] = Field(default=None, alias="exec")
    kernel_args: Optional[List[str]] = None
    swap_size_mb: Optional[int] = Field(default=None, ge=0)
    tty: Optional[bool] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BackendOptions(BaseModel):
    """Caller-facing option bag; anything not listed here is rejected."""

    model_config = ConfigDict(extra="forbid")

    app: Optional[str] = None
    region: Optional[str] = None
    image: Optional[str] = None
    token: Optional[str] = None
    host: Optional[str] = None
    init: Optional[InitConfig] = None
    cpu_kind: Optional[str] = None
    cpus: Optional[int] = None
    memory_mb: Optional[int] = None
    gpu_kind: Optional[str] = None
    gpus: Optional[int] = None
    mounts: Any = None
    boot_timeout: Optional[int] = None
    env: Optional[Dict[str, str]] = None
    log: Union[bool, int, str, None] = None
    services: Optional[List[Dict[str, Any]]] = None
    metadata: Optional[Dict[str, str]] = None


class BackendConfig(BaseModel):
    """Resolved, validated runner-request template owned by one backend."""

    host: str
    token: str = Field(repr=False)
    app: str
    image: str
    region: Optional[str] = None
    cpu_kind: str = DEFAULT_CPU_KIND
    cpus: int = Field(default=1, gt=0)
    memory_mb: int = Field(default=DEFAULT_MEMORY_MB, gt=0)
    gpu_kind: Optional[str] = None
    gpus: Optional[int] = Field(default=None, gt=0)
    mounts: List[MountRequest] = Field(default_factory=list)
    init: InitConfig = Field(default_factory=InitConfig)
    services: List[Dict[str, Any]] = Field(default_factory=list)
    metadata: Dict[str, str] = Field(default_factory=dict)
    boot_timeout: int = Field(default=DEFAULT_BOOT_TIMEOUT_MS, gt=0, description="Boot timeout in ms")
    env: Dict[str, str] = Field(default_factory=dict, repr=False)
    log: Union[bool, int, str] = False
    runner_node_base: str
    parent: ParentDescriptor

    @field_validator("host", "token", "app", "image")
    @classmethod
    def validate_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must be non-empty")
        return value

    @field_validator("memory_mb")
    @classmethod
    def validate_memory_multiple(cls, value: int) -> int:
        if value % 1024:
            raise ValueError(f"memory_mb must be a multiple of 1024, got {value}")
        return value

    @model_validator(mode="after")
    def default_gpus(self) -> "BackendConfig":
        if self.gpu_kind and self.gpus is None:
            self.gpus = 1
        return self

    @property
    def parent_token(self) -> str:
        return self.parent.token

    @property
    def local_ip(self) -> str:
        return self.parent.parent_ip

    def with_new_token(self) -> "BackendConfig":
        """Return a snapshot carrying a fresh correlation token.

        The encoded parent descriptor in ``env`` is refreshed unless the
        caller replaced it with their own value.
        """
        old_encoded = self.parent.encode()
        parent = replace(self.parent, token=new_token())
        env = dict(self.env)
        if env.get(PARENT_ENV) == old_encoded:
            env[PARENT_ENV] = parent.encode()
        return self.model_copy(update={"parent": parent, "env": env})
