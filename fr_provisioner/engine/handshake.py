"""Token-keyed rendezvous between a provisioning attempt and its runner."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, InvalidStateError
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict

logger = logging.getLogger(__name__)


class HandshakeTimeout(Exception):
    """No confirmation arrived for the token inside the wait window."""


class HandshakeRegistry:
    """Pending handshakes keyed by correlation token.

    The provisioning side calls :meth:`expect` before creating the machine
    and :meth:`wait` afterwards. Whatever listener receives the runner's
    confirmation calls :meth:`deliver` with the same token.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[str, Future[str]] = {}

    def expect(self, token: str) -> Future[str]:
        with self._lock:
            if token in self._pending:
                raise ValueError(f"handshake already expected for token {token}")
            future: Future[str] = Future()
            self._pending[token] = future
            return future

    def deliver(self, token: str, endpoint: str) -> bool:
        """Fulfil the wait for ``token``; False when nobody is waiting for it."""
        with self._lock:
            future = self._pending.get(token)
        if future is None or future.done():
            logger.debug("Dropping handshake for unknown token %s", token)
            return False
        try:
            future.set_result(endpoint)
        except InvalidStateError:
            # Lost a race with another delivery for the same token.
            return False
        return True

    def wait(self, token: str, timeout_s: float) -> str:
        """Block until ``token`` is confirmed and return the runner endpoint."""
        with self._lock:
            future = self._pending.get(token)
        if future is None:
            raise KeyError(token)
        if timeout_s <= 0 and not future.done():
            raise HandshakeTimeout(token)
        try:
            return future.result(timeout=max(timeout_s, 0))
        except FutureTimeoutError as exc:
            raise HandshakeTimeout(token) from exc

    def discard(self, token: str) -> None:
        with self._lock:
            future = self._pending.pop(token, None)
        if future is not None:
            future.cancel()

    def pending(self) -> int:
        with self._lock:
            return len(self._pending)


default_registry = HandshakeRegistry()


def deliver_handshake(token: str, endpoint: str) -> bool:
    """Entry point for inbound listeners using the process-wide registry."""
    return default_registry.deliver(token, endpoint)
