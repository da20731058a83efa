"""Capability contracts implemented by runner backends and their transports."""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import TYPE_CHECKING, Any, Callable, Protocol, Sequence

if TYPE_CHECKING:
    from fr_provisioner.models.types import RunnerHandle


class RemoteTransport(Protocol):
    """RPC-capable link to connected runners, owned by the connection layer."""

    def spawn(self, endpoint: str, func: Callable[[], Any]) -> Future[Any]: ...

    def spawn_call(
        self, endpoint: str, module: str, function: str, args: Sequence[Any]
    ) -> Future[Any]: ...


class Backend(ABC):
    """Generic runner backend used by pools deciding when to provision."""

    @abstractmethod
    def provision(self) -> "RunnerHandle":
        """Boot a runner and block until it is connected."""

    @abstractmethod
    def execute_remote(self, handle: "RunnerHandle", task: Any) -> Future[Any]:
        """Dispatch ``task`` onto a connected runner."""

    @staticmethod
    @abstractmethod
    def system_shutdown() -> None:
        """Terminate the local runner process."""
