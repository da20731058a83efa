"""HTTP client for the machines API with a fixed retry budget."""

from __future__ import annotations

import json
import logging
import os
import ssl
import threading
import time
from typing import Any, Callable, Mapping, Union
from urllib import error, request

from fr_common.errors import HttpRequestError

logger = logging.getLogger(__name__)

DEFAULT_RETRIES = 10
RETRY_DELAY_SECONDS = 1.0
# Rate limiting and transient capacity shortages on the provider side.
RETRYABLE_STATUSES = frozenset({429, 412, 409, 422})

Body = Union[bytes, str, Mapping[str, Any], list, None]
BodyFactory = Callable[[], Body]

_ssl_lock = threading.Lock()
_ssl_context: ssl.SSLContext | None = None


def _trust_store_available(context: ssl.SSLContext) -> bool:
    if context.cert_store_stats().get("x509_ca", 0):
        return True
    paths = ssl.get_default_verify_paths()
    if paths.cafile and os.path.isfile(paths.cafile):
        return True
    return bool(paths.capath and os.path.isdir(paths.capath))


def default_ssl_context() -> ssl.SSLContext:
    """Return the shared verifying TLS context, warning once without a trust store."""
    global _ssl_context
    with _ssl_lock:
        if _ssl_context is None:
            context = ssl.create_default_context()
            context.check_hostname = True
            context.verify_mode = ssl.CERT_REQUIRED
            if not _trust_store_available(context):
                logger.warning(
                    "No certificate trust store was found. Peer verification of "
                    "the machines API will fail until a system CA bundle is "
                    "installed or SSL_CERT_FILE points to one."
                )
            _ssl_context = context
        return _ssl_context


def _encode_body(body: Body) -> bytes | None:
    if body is None or isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


class HttpRetryClient:
    """GET/POST JSON requests retried on transient provider statuses."""

    def __init__(
        self,
        *,
        opener: Callable[..., Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        ssl_context: ssl.SSLContext | None = None,
        retry_delay: float = RETRY_DELAY_SECONDS,
    ) -> None:
        self._opener = opener or request.urlopen
        self._sleep = sleep
        self._ssl_context = ssl_context
        self._retry_delay = retry_delay

    def get(self, url: str, *, headers: Mapping[str, str], **kwargs: Any) -> Any:
        return self.request("GET", url, headers=headers, **kwargs)

    def post(
        self,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Body | BodyFactory,
        **kwargs: Any,
    ) -> Any:
        return self.request("POST", url, headers=headers, body=body, **kwargs)

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        body: Body | BodyFactory = None,
        connect_timeout_ms: int = 30_000,
        retries: int = DEFAULT_RETRIES,
    ) -> Any:
        """Issue ``method url`` and return the decoded JSON of a 200 response.

        ``retries`` is the total number of attempts. Statuses in
        ``RETRYABLE_STATUSES`` are retried after a fixed one second pause;
        every other failure raises :class:`HttpRequestError` immediately.
        """
        method = method.upper()
        if method not in {"GET", "POST"}:
            raise ValueError(f"unsupported method {method}")
        if retries < 1:
            raise ValueError("retries must be at least 1")
        context = self._ssl_context
        if context is None and url.startswith("https://"):
            context = default_ssl_context()

        for attempt in range(1, retries + 1):
            payload = _encode_body(body() if callable(body) else body)
            req = request.Request(url, data=payload, headers=dict(headers), method=method)
            logger.debug("%s %s (attempt %d/%d)", method, url, attempt, retries)
            try:
                with self._opener(  # nosec B310
                    req, timeout=connect_timeout_ms / 1000, context=context
                ) as resp:
                    status = resp.status
                    reason = getattr(resp, "reason", "")
                    raw = resp.read().decode("utf-8", errors="replace")
            except error.HTTPError as exc:
                status = exc.code
                reason = str(exc.reason)
                raw = exc.read().decode("utf-8", errors="replace") if exc.fp else ""
            except (error.URLError, OSError) as exc:
                raise HttpRequestError(
                    f"failed {method} {url} with {exc}",
                    method=method,
                    url=url,
                    cause=exc,
                ) from exc

            if status == 200:
                try:
                    return json.loads(raw) if raw else None
                except json.JSONDecodeError as exc:
                    raise HttpRequestError(
                        f"failed {method} {url}: response is not JSON",
                        method=method,
                        url=url,
                        status=status,
                        reason=reason,
                        body=raw,
                        cause=exc,
                    ) from exc
            if status in RETRYABLE_STATUSES and attempt < retries:
                logger.warning(
                    "%s %s returned %s, retrying in %.0fms (%d attempts left)",
                    method,
                    url,
                    status,
                    self._retry_delay * 1000,
                    retries - attempt,
                )
                self._sleep(self._retry_delay)
                continue
            raise HttpRequestError(
                f"failed {method} {url} with {status} ({reason}): {raw}",
                method=method,
                url=url,
                status=status,
                reason=reason,
                body=raw,
            )
        raise HttpRequestError(  # pragma: no cover - loop always returns or raises
            f"failed {method} {url} after {retries} attempts", method=method, url=url
        )
