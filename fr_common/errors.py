"""Shared error taxonomy for fly-runner-lib."""

from __future__ import annotations

from typing import Any, Mapping, TypeVar


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {str(key): _normalize_context_value(val) for key, val in context.items()}


class FRError(Exception):
    """Base error type for typed failure handling."""

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(FRError):
    """Failure due to invalid or incomplete backend configuration."""


class HttpRequestError(FRError):
    """Provider API call failed, either by status or by transport."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status: int | None = None,
        reason: str | None = None,
        body: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message,
            context={
                "method": method,
                "url": url,
                "status": status,
                "reason": reason,
                "body": body,
            },
            cause=cause,
        )
        self.method = method
        self.url = url
        self.status = status
        self.reason = reason
        self.body = body


class VolumeAllocationError(FRError):
    """No eligible provider volume could satisfy a mount request."""


class RunnerCreateError(FRError):
    """The machine create call returned an unusable response."""

    def __init__(self, message: str, *, response: Any, handle: Any = None) -> None:
        super().__init__(message, context={"response": response})
        self.response = response
        self.handle = handle


class BootTimeoutError(FRError):
    """A runner was created but never confirmed its handshake in time.

    Fatal for the provisioning attempt. Unrelated to :class:`HttpRequestError`:
    the machine exists, it just never finished bootstrapping.
    """

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
        handle: Any = None,
    ) -> None:
        super().__init__(message, context=context, cause=cause)
        self.handle = handle


class RemoteExecutionError(FRError):
    """Failure dispatching work onto a runner."""


class InvalidTaskError(RemoteExecutionError, ValueError):
    """A remote task had neither a closure nor a (module, function, args) shape."""


T = TypeVar("T", bound=FRError)


def wrap_error(
    error_cls: type[T],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> T:
    """Create a typed FRError with optional context and cause."""
    return error_cls(message, context=context, cause=cause)


def error_to_payload(error: FRError) -> dict[str, Any]:
    """Convert an FRError to a result/journal payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
    }
