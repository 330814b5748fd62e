"""HTTP client construction and the Tenacity retry policy."""

from __future__ import annotations

from typing import List

import httpx
import pytest
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_none

from NSArchive.errors import DownloadFailure
from NSArchive.net import _is_retryable, _parse_retry_after_value, build_http_client, get_with_retries
from NSArchive.settings import HttpSettings


def _fast_policy(attempts: int = 3) -> Retrying:
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_none(),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )


# --- Test Cases ---


def test_client_sends_polite_user_agent() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"ok")

    settings = HttpSettings(user_agent="nsarchive tests")
    with build_http_client(settings, transport=httpx.MockTransport(handler)) as client:
        response = get_with_retries(client, "https://www.nationstates.net/x", policy=_fast_policy())

    assert response.content == b"ok"
    assert seen[0].headers["User-Agent"] == "nsarchive tests"


def test_transient_errors_are_retried_until_success() -> None:
    statuses = iter([503, 429, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses), content=b"done")

    with build_http_client(transport=httpx.MockTransport(handler)) as client:
        response = get_with_retries(client, "https://example.org/dump", policy=_fast_policy())

    assert response.status_code == 200


def test_client_errors_are_not_retried() -> None:
    calls: List[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(404)

    with build_http_client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(DownloadFailure) as excinfo:
            get_with_retries(client, "https://example.org/missing", policy=_fast_policy())

    assert len(calls) == 1
    assert excinfo.value.status_code == 404
    assert excinfo.value.retryable is False


def test_exhausted_retries_raise_download_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with build_http_client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(DownloadFailure) as excinfo:
            get_with_retries(client, "https://example.org/down", policy=_fast_policy(2))

    assert excinfo.value.retryable is True


def test_parse_retry_after_value() -> None:
    assert _parse_retry_after_value("7") == 7.0
    assert _parse_retry_after_value(None) is None
    assert _parse_retry_after_value("not a date") is None
    assert _parse_retry_after_value("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0
