# === NAVMAP v1 ===
# {
#   "module": "NSArchive.net",
#   "purpose": "HTTPX client construction and Tenacity retry policy for NationStates requests",
#   "sections": [
#     {"id": "constants", "name": "Constants", "anchor": "CONST", "kind": "constants"},
#     {"id": "retry", "name": "Retry policy", "anchor": "RETRY", "kind": "helpers"},
#     {"id": "api", "name": "Public API", "anchor": "API", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""HTTP plumbing shared by the dump and foundings jobs.

NationStates asks API clients to identify themselves with a descriptive
``User-Agent`` and enforces a rate limit, so every request goes through a
client built here and is wrapped in a Tenacity policy that backs off on
transient failures and honours ``Retry-After``.
"""

from __future__ import annotations

import email.utils
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_random_exponential,
)
from tenacity.wait import wait_base

from .errors import DownloadFailure
from .settings import HttpSettings

__all__ = [
    "RETRYABLE_STATUS_CODES",
    "build_http_client",
    "create_http_retry_policy",
    "get_with_retries",
]

LOGGER = logging.getLogger("NSArchive.net")

# --- Constants -----------------------------------------------------------------

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

_TRANSIENT_ERRORS = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.ReadTimeout,
    httpx.RemoteProtocolError,
)

# --- Retry policy ----------------------------------------------------------------


def _parse_retry_after_value(value: Optional[str]) -> Optional[float]:
    """Convert a Retry-After header value into a delay in seconds."""
    if not value:
        return None

    try:
        delay = float(int(value))
    except ValueError:
        try:
            dt = email.utils.parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        delay = (dt - datetime.now(timezone.utc)).total_seconds()

    return max(0.0, delay)


class _RetryAfterOrBackoff(wait_base):
    """Wait strategy that honours Retry-After before falling back to backoff."""

    def __init__(self, fallback_wait: wait_base, max_delay_seconds: float) -> None:
        self._fallback_wait = fallback_wait
        self._max_delay_seconds = max_delay_seconds

    def __call__(self, retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None else None
        response = getattr(exc, "response", None)
        headers = getattr(response, "headers", None)
        if headers is not None:
            delay = _parse_retry_after_value(headers.get("Retry-After"))
            if delay is not None:
                return min(delay, self._max_delay_seconds)
        return float(self._fallback_wait(retry_state))


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, _TRANSIENT_ERRORS):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    return False


def create_http_retry_policy(
    max_attempts: int = 5,
    max_delay_seconds: float = 120.0,
) -> Retrying:
    """Create a Tenacity policy for idempotent GET requests.

    Retries connection errors, timeouts, 429 and 5xx responses with full-jitter
    exponential backoff, stopping at ``max_attempts`` or ``max_delay_seconds``,
    whichever comes first. The original exception is re-raised on exhaustion.

    Example:
        >>> policy = create_http_retry_policy(max_attempts=3)
        >>> for attempt in policy:
        ...     with attempt:
        ...         response = client.get(url)
    """

    wait_strategy = _RetryAfterOrBackoff(
        fallback_wait=wait_random_exponential(multiplier=0.5, max=min(60.0, max_delay_seconds)),
        max_delay_seconds=max_delay_seconds,
    )
    return Retrying(
        stop=stop_after_attempt(max_attempts) | stop_after_delay(max_delay_seconds),
        wait=wait_strategy,
        retry=retry_if_exception(_is_retryable),
        before_sleep=before_sleep_log(LOGGER, logging.WARNING),
        reraise=True,
    )


# --- Public API ------------------------------------------------------------------


def build_http_client(
    settings: Optional[HttpSettings] = None,
    *,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Return an :class:`httpx.Client` carrying the polite headers and timeouts."""

    settings = settings or HttpSettings()
    timeout = httpx.Timeout(settings.timeout_sec, connect=settings.connect_timeout_sec)
    return httpx.Client(
        headers={"User-Agent": settings.user_agent},
        timeout=timeout,
        follow_redirects=True,
        transport=transport,
    )


def get_with_retries(
    client: httpx.Client,
    url: str,
    *,
    settings: Optional[HttpSettings] = None,
    policy: Optional[Retrying] = None,
) -> httpx.Response:
    """GET ``url`` (body fully read) under the retry policy.

    Raises:
        DownloadFailure: When the request still fails after retries.
    """

    settings = settings or HttpSettings()
    policy = policy or create_http_retry_policy(
        max_attempts=settings.max_retries,
        max_delay_seconds=settings.max_retry_delay_sec,
    )
    try:
        for attempt in policy:
            with attempt:
                response = client.get(url)
                response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        raise DownloadFailure(
            f"GET {url} failed with HTTP {status}",
            status_code=status,
            retryable=status in RETRYABLE_STATUS_CODES,
        ) from exc
    except httpx.HTTPError as exc:
        raise DownloadFailure(
            f"GET {url} failed: {exc}", retryable=_is_retryable(exc)
        ) from exc
    return response
