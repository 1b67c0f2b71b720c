"""Blocking HTTP access to JSON task feeds."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from task_ranker import __version__

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_USER_AGENT = f"task-ranker/{__version__}"


@dataclass(slots=True)
class FeedResponse:
    """Body or failure of one feed request.

    `status_code` stays 0 when no HTTP response arrived at all.
    """

    url: str
    status_code: int = 0
    body: str = ""
    error: str | None = None
    retry_after: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class HttpFetcher:
    """One `httpx.Client` shared by every feed of a ranking run.

    Connection failures are retried by the transport. Error statuses come back
    as failed responses so the feed source decides how to report them.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        user_agent: str = DEFAULT_USER_AGENT,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds, connect=10.0),
            headers={"User-Agent": user_agent, "Accept": "application/json", **(headers or {})},
            transport=transport or httpx.HTTPTransport(retries=max_retries),
            follow_redirects=True,
        )

    def fetch(self, url: str) -> FeedResponse:
        try:
            response = self._client.get(url)
        except httpx.TimeoutException:
            return _failed(url, "timeout")
        except httpx.HTTPError as exc:
            return _failed(url, str(exc))

        if response.is_success:
            return FeedResponse(url=url, status_code=response.status_code, body=response.text)
        return _failed(
            url,
            f"HTTP {response.status_code}",
            status_code=response.status_code,
            body=response.text,
            retry_after=_retry_after_seconds(response.headers.get("retry-after")),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def _failed(
    url: str,
    error: str,
    *,
    status_code: int = 0,
    body: str = "",
    retry_after: int | None = None,
) -> FeedResponse:
    logger.warning("Feed request %s failed: %s", url, error)
    return FeedResponse(
        url=url,
        status_code=status_code,
        body=body,
        error=error,
        retry_after=retry_after,
    )


def _retry_after_seconds(value: str | None) -> int | None:
    # HTTP-date values are not honoured; only delta-seconds.
    if not value:
        return None
    try:
        return max(0, int(value))
    except ValueError:
        return None
