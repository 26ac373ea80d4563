"""HTTP transport with retry and exponential backoff.

Every network call the client makes goes through `RetryTransport.execute`.
Rate limiting (429), server errors (5xx) and transport failures are retried
up to `max_attempts` times, waiting `base_delay * 2**k` seconds before the
retry that follows attempt *k*. Any other response is handed back to the
caller after a single attempt so it can decide what the status means.
"""

from collections.abc import Callable, Mapping
import logging
import time
from types import TracebackType
from typing import Any, Self

import httpx

from ..constants import MAX_ATTEMPTS, NETWORK_TIMEOUT, RETRY_BASE_DELAY, RETRYABLE_STATUS_CODES
from ..exceptions import APIError
from ..telemetry import TelemetryContext, TelemetryContextProtocol
from .error_handler import error_message, parse_error_body

log = logging.getLogger(__name__)


def is_retryable_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES or 500 <= status_code <= 599


def _redact(url: str | httpx.URL) -> str:
    """Drop the query string so keys and upload tokens stay out of logs."""
    return str(url).split("?", 1)[0]


class RetryTransport:
    """Executes HTTP requests, retrying transient failures.

    Holds no state between calls beyond its configuration and the
    underlying `httpx.Client`.
    """

    def __init__(
        self,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        base_delay: float = RETRY_BASE_DELAY,
        timeout: float = NETWORK_TIMEOUT,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        telemetry_context: TelemetryContextProtocol | None = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=timeout)
        self.tele = telemetry_context or TelemetryContext()

    def execute(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        json: Any | None = None,
        content: bytes | None = None,
        timeout: float | None = None,
    ) -> httpx.Response:
        """Send a request, retrying 429, 5xx and network errors.

        Returns:
            The first response that is not retryable, 2xx or otherwise.

        Raises:
            APIError: Once every attempt has failed. `status_code` is that of
                the last response, or 0 if the last attempt got no response.
        """
        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout

        with self.tele("transport.execute", method=method):
            last_response: httpx.Response | None = None
            last_error: httpx.TransportError | None = None

            for attempt in range(self.max_attempts):
                try:
                    response = self._client.request(
                        method,
                        url,
                        params=params,
                        headers=headers,
                        json=json,
                        content=content,
                        **extra,
                    )
                except httpx.TransportError as e:
                    last_response, last_error = None, e
                    reason = f"{type(e).__name__}: {e}"
                else:
                    if not is_retryable_status(response.status_code):
                        self.tele.metric("attempts", attempt + 1)
                        return response
                    last_response, last_error = response, None
                    reason = f"status {response.status_code}"

                if attempt + 1 >= self.max_attempts:
                    break

                delay = self.base_delay * (2**attempt)
                log.warning(
                    "%s %s failed with %s. Retrying in %.2fs (Attempt %d/%d)",
                    method,
                    _redact(url),
                    reason,
                    delay,
                    attempt + 2,
                    self.max_attempts,
                )
                self._sleep(delay)

            self.tele.metric("attempts", self.max_attempts)
            log.error(
                "%s %s failed after %d attempts.",
                method,
                _redact(url),
                self.max_attempts,
            )

            if last_response is not None:
                body = parse_error_body(last_response)
                raise APIError(
                    f"Request failed after {self.max_attempts} attempts with status "
                    f"{last_response.status_code}: {error_message(body)}",
                    status_code=last_response.status_code,
                    response=body,
                )
            raise APIError(
                f"Request failed after {self.max_attempts} attempts: {last_error}",
                status_code=0,
            ) from last_error

    def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"<RetryTransport max_attempts={self.max_attempts} "
            f"base_delay={self.base_delay}>"
        )
