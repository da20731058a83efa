"""Remote task shapes and their dispatch onto a connected runner."""

from __future__ import annotations

import inspect
import logging
import os
import signal
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import Any, Callable, List, Union

from fr_common.errors import InvalidTaskError, RemoteExecutionError
from fr_provisioner.interfaces import RemoteTransport
from fr_provisioner.models.types import RunnerHandle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Closure:
    """Zero-argument callable shipped to the runner."""

    func: Callable[[], Any]


@dataclass(frozen=True)
class NamedCall:
    """``module.function(*args)`` resolved on the runner side."""

    module: str
    function: str
    args: List[Any] = field(default_factory=list)


RemoteTask = Union[Closure, NamedCall]


def _is_nullary(func: Callable[..., Any]) -> bool:
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures.
        return True
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return False
    return True


def coerce_task(term: Any) -> RemoteTask:
    """Validate ``term`` and return its tagged task variant."""
    if isinstance(term, (Closure, NamedCall)):
        return term
    if callable(term) and not isinstance(term, type) and _is_nullary(term):
        return Closure(term)
    if (
        isinstance(term, tuple)
        and len(term) == 3
        and isinstance(term[0], str)
        and isinstance(term[1], str)
        and isinstance(term[2], list)
    ):
        return NamedCall(term[0], term[1], list(term[2]))
    raise InvalidTaskError(
        f"expected a zero-argument callable or (module, function, args). Got: {term!r}",
        context={"task": repr(term)},
    )


def dispatch(
    transport: RemoteTransport | None, handle: RunnerHandle, term: Any
) -> Future[Any]:
    """Send ``term`` to the runner behind ``handle`` and return its future."""
    task = coerce_task(term)
    if not handle.connected or not handle.endpoint:
        raise RemoteExecutionError(
            f"runner {handle.node_base} is not connected",
            context={"state": handle.state.value, "runner_id": handle.runner_id},
        )
    if transport is None:
        raise RemoteExecutionError("no remote transport configured")
    if isinstance(task, Closure):
        logger.debug("Spawning closure on %s", handle.endpoint)
        return transport.spawn(handle.endpoint, task.func)
    logger.debug("Spawning %s.%s on %s", task.module, task.function, handle.endpoint)
    return transport.spawn_call(handle.endpoint, task.module, task.function, task.args)


def system_shutdown() -> None:
    """Ask the current process to stop, as SIGINT/SIGTERM handlers would."""
    logger.info("Runner requested local shutdown")
    os.kill(os.getpid(), signal.SIGTERM)
