"""Resolve defaults, environment and caller options into a BackendConfig."""

from __future__ import annotations

import logging
import os
import secrets
import socket
from typing import Any, Mapping

from pydantic import ValidationError

from fr_common.config.env import EnvironmentProvider, OsEnvironment, non_empty_env
from fr_common.errors import ConfigurationError
from fr_provisioner.models.config import (
    DEFAULT_BOOT_TIMEOUT_MS,
    DEFAULT_CPU_KIND,
    DEFAULT_HOST,
    DEFAULT_MEMORY_MB,
    BackendConfig,
    BackendOptions,
    new_token,
)
from fr_provisioner.models.mounts import parse_mounts
from fr_provisioner.models.parent import (
    PARENT_ENV,
    RUNNER_PRIVATE_IP_ENV,
    ParentDescriptor,
)

logger = logging.getLogger(__name__)

BACKEND_NAME = "FlyBackend"
REQUIRED_KEYS = ("token", "image", "host", "app")
NODE_SUFFIX_LEN = 20
SERVER_ENV = "FLAME_SERVER"
INHERITED_TUNING_ENV = ("PYTHONOPTIMIZE", "PYTHONWARNINGS")
# An explicit None for these replaces lower layers; elsewhere it is ignored.
NULLABLE_KEYS = frozenset(
    {"region", "gpu_kind", "gpus", "mounts", "env", *REQUIRED_KEYS}
)

_ENV_DEFAULTS = {
    "app": "FLY_APP_NAME",
    "region": "FLY_REGION",
    "image": "FLY_IMAGE_REF",
    "token": "FLY_API_TOKEN",
}


def rand_id(length: int) -> str:
    """Cryptographically random lowercase hex string of ``length`` chars."""
    return secrets.token_hex((length + 1) // 2)[:length]


def _local_ip(env: EnvironmentProvider) -> str:
    address = non_empty_env(env, RUNNER_PRIVATE_IP_ENV)
    if address:
        return address
    try:
        return socket.gethostbyname(socket.gethostname())
    except OSError:
        logger.debug("Could not resolve local hostname, using loopback")
        return "127.0.0.1"


def _validate_options(raw: Mapping[str, Any], source: str) -> dict[str, Any]:
    try:
        options = BackendOptions.model_validate(dict(raw))
    except ValidationError as exc:
        unknown = sorted(
            ".".join(str(part) for part in err["loc"])
            for err in exc.errors()
            if err["type"] == "extra_forbidden"
        )
        if unknown:
            raise ConfigurationError(
                f"unknown {source} option(s) for {BACKEND_NAME}: {', '.join(unknown)}",
                context={"unknown": unknown},
                cause=exc,
            ) from exc
        raise ConfigurationError(
            f"invalid {source} options for {BACKEND_NAME}: {exc.errors(include_url=False)}",
            cause=exc,
        ) from exc
    return options.model_dump(exclude_unset=True)


def _merge_layer(merged: dict[str, Any], layer: Mapping[str, Any]) -> None:
    for key, value in layer.items():
        if value is None and key not in NULLABLE_KEYS:
            continue
        merged[key] = value


def build_runner_env(
    caller_env: Mapping[str, str],
    encoded_parent: str,
    env: EnvironmentProvider,
) -> dict[str, str]:
    """Compose the runner environment.

    Fixed keys first, caller values on top, then a small set of interpreter
    tuning variables copied from this host only when the caller left them out.
    """
    merged = {SERVER_ENV: "false", PARENT_ENV: encoded_parent}
    merged.update(caller_env)
    for key in INHERITED_TUNING_ENV:
        value = env.get(key)
        if value is not None:
            merged.setdefault(key, value)
    return merged


def init_config(
    options: Mapping[str, Any] | None = None,
    *,
    app_config: Mapping[str, Any] | None = None,
    env: EnvironmentProvider | None = None,
) -> BackendConfig:
    """Resolve a backend configuration without touching the network.

    ``app_config`` is the static application-level configuration; caller
    ``options`` win over it, and both win over environment defaults.
    """
    env = env or OsEnvironment()

    defaults: dict[str, Any] = {
        "host": DEFAULT_HOST,
        "cpu_kind": DEFAULT_CPU_KIND,
        "cpus": os.cpu_count() or 1,
        "memory_mb": DEFAULT_MEMORY_MB,
        "boot_timeout": DEFAULT_BOOT_TIMEOUT_MS,
        "log": False,
    }
    for key, var in _ENV_DEFAULTS.items():
        value = non_empty_env(env, var)
        if value is not None:
            defaults[key] = value

    merged = dict(defaults)
    _merge_layer(merged, _validate_options(app_config or {}, "application"))
    _merge_layer(merged, _validate_options(options or {}, "backend"))

    for key in REQUIRED_KEYS:
        value = merged.get(key)
        if not value or not str(value).strip():
            raise ConfigurationError(
                f"missing {key} config for {BACKEND_NAME}", context={"key": key}
            )

    mounts = parse_mounts(merged.pop("mounts", None))
    node_base = f"{merged['app']}-flame-{rand_id(NODE_SUFFIX_LEN)}"
    parent = ParentDescriptor(
        token=new_token(),
        parent_ip=_local_ip(env),
        backend=BACKEND_NAME,
        node_base=node_base,
    )
    merged["env"] = build_runner_env(merged.get("env") or {}, parent.encode(), env)

    try:
        config = BackendConfig(
            **merged,
            mounts=mounts,
            runner_node_base=node_base,
            parent=parent,
        )
    except ValidationError as exc:
        raise ConfigurationError(
            f"invalid configuration for {BACKEND_NAME}: {exc.errors(include_url=False)}",
            cause=exc,
        ) from exc

    logger.debug(
        "Resolved backend config",
        extra={"app": config.app, "region": config.region, "node_base": node_base},
    )
    return config
