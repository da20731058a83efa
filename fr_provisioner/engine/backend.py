"""Fly machines backend: create a runner and wait for it to call home."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, Mapping, Tuple, TypeVar

from fr_common.config.env import EnvironmentProvider
from fr_common.errors import BootTimeoutError, RunnerCreateError
from fr_common.logging import resolve_log_level
from fr_provisioner.engine.config import init_config
from fr_provisioner.engine.handshake import (
    HandshakeRegistry,
    HandshakeTimeout,
    default_registry,
)
from fr_provisioner.interfaces import Backend, RemoteTransport
from fr_provisioner.models.config import BackendConfig
from fr_provisioner.models.types import RunnerHandle, RunnerState
from fr_provisioner.remote import dispatch
from fr_provisioner.remote import system_shutdown as _system_shutdown
from fr_provisioner.services.http_client import DEFAULT_RETRIES, HttpRetryClient
from fr_provisioner.services.volumes import VolumeAllocator

logger = logging.getLogger(__name__)

PARENT_IP_METADATA_KEY = "flame_parent_ip"
RESTART_POLICY_NEVER = "no"

T = TypeVar("T")


def with_elapsed_ms(
    func: Callable[[], T], clock: Callable[[], float] = time.monotonic
) -> Tuple[T, int]:
    """Run ``func`` and return its result with the wall time in milliseconds."""
    started = clock()
    result = func()
    return result, int((clock() - started) * 1000)


def build_machine_payload(
    config: BackendConfig, mounts: list[Dict[str, Any]]
) -> Dict[str, Any]:
    """Create-machine request body for the machines API."""
    guest: Dict[str, Any] = {
        "cpu_kind": config.cpu_kind,
        "cpus": config.cpus,
        "memory_mb": config.memory_mb,
    }
    if config.gpu_kind:
        guest["gpu_kind"] = config.gpu_kind
        guest["gpus"] = config.gpus or 1

    metadata = dict(config.metadata)
    metadata[PARENT_IP_METADATA_KEY] = config.local_ip

    return {
        "name": config.runner_node_base,
        "region": config.region,
        "config": {
            "image": config.image,
            "mounts": mounts,
            "init": config.init.to_payload(),
            "guest": guest,
            "auto_destroy": True,
            "restart": {"policy": RESTART_POLICY_NEVER},
            "env": dict(config.env),
            "services": list(config.services),
            "metadata": metadata,
        },
    }


class FlyBackend(Backend):
    """Provision runners as Fly machines.

    Configuration is resolved once, at construction, and never touches the
    network. Each :meth:`provision` call is one independent attempt: it
    allocates volumes, creates the machine, then blocks until the runner
    confirms its handshake or the boot timeout runs out.
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        app_config: Mapping[str, Any] | None = None,
        env: EnvironmentProvider | None = None,
        http: HttpRetryClient | None = None,
        handshakes: HandshakeRegistry | None = None,
        transport: RemoteTransport | None = None,
        volumes: VolumeAllocator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = init_config(options, app_config=app_config, env=env)
        self._http = http or HttpRetryClient()
        self._handshakes = handshakes or default_registry
        self._transport = transport
        self._volumes = volumes or VolumeAllocator(self._http)
        self._clock = clock
        self._lock = threading.Lock()
        self._attempts = 0

    def __repr__(self) -> str:
        return f"FlyBackend({self.config!r})"

    def _next_config(self) -> BackendConfig:
        with self._lock:
            self._attempts += 1
            first = self._attempts == 1
        return self.config if first else self.config.with_new_token()

    def _create_machine(self, config: BackendConfig) -> Any:
        mounts = self._volumes.allocate(config.mounts, config)
        payload = build_machine_payload(config, mounts)
        return self._http.post(
            f"{config.host}/v1/apps/{config.app}/machines",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {config.token}",
            },
            body=payload,
            connect_timeout_ms=config.boot_timeout,
            retries=DEFAULT_RETRIES,
        )

    def provision(self) -> RunnerHandle:
        """Create a machine and return its handle once the runner connects.

        Raises :class:`RunnerCreateError` when the create response lacks the
        machine identifiers and :class:`BootTimeoutError` when the runner does
        not confirm within ``boot_timeout``. HTTP and volume allocation
        errors propagate unchanged.
        """
        config = self._next_config()
        handle = RunnerHandle(node_base=config.runner_node_base, token=config.parent_token)
        self._handshakes.expect(handle.token)
        try:
            try:
                resp, create_ms = with_elapsed_ms(
                    lambda: self._create_machine(config), self._clock
                )
            except Exception:
                handle.state = RunnerState.FAILED
                raise
            handle.create_ms = create_ms

            log_level = resolve_log_level(config.log)
            if log_level is not None:
                logger.log(
                    log_level,
                    "FlyBackend %s machine create %dms",
                    config.runner_node_base,
                    create_ms,
                )

            if not (
                isinstance(resp, dict)
                and resp.get("id")
                and resp.get("instance_id")
                and resp.get("private_ip")
            ):
                handle.state = RunnerState.FAILED
                raise RunnerCreateError(
                    f"machine create for {config.runner_node_base} returned no machine",
                    response=resp,
                    handle=handle,
                )

            handle.runner_id = resp["id"]
            handle.instance_id = resp["instance_id"]
            handle.private_ip = resp["private_ip"]
            handle.state = RunnerState.AWAITING_HANDSHAKE

            remaining_ms = config.boot_timeout - create_ms
            try:
                endpoint = self._handshakes.wait(handle.token, remaining_ms / 1000)
            except HandshakeTimeout as exc:
                logger.error(
                    "failed to connect to fly machine within %dms", config.boot_timeout
                )
                handle.state = RunnerState.TIMED_OUT
                raise BootTimeoutError(
                    f"runner {handle.runner_id} did not connect within "
                    f"{config.boot_timeout}ms",
                    context={
                        "boot_timeout": config.boot_timeout,
                        "runner_id": handle.runner_id,
                        "instance_id": handle.instance_id,
                        "private_ip": handle.private_ip,
                    },
                    cause=exc,
                    handle=handle,
                ) from exc

            handle.endpoint = endpoint
            handle.state = RunnerState.CONNECTED
            logger.info(
                "Runner %s connected at %s", handle.runner_id, handle.endpoint
            )
            return handle
        finally:
            self._handshakes.discard(handle.token)

    def execute_remote(self, handle: RunnerHandle, task: Any) -> Future[Any]:
        return dispatch(self._transport, handle, task)

    @staticmethod
    def system_shutdown() -> None:
        _system_shutdown()
