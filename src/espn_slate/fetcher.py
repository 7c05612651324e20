"""HTTP fetch primitive with bounded exponential-backoff retry."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from time import perf_counter
from typing import Any

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from espn_slate.errors import ExhaustedRetries, HttpError, TransportError
from espn_slate.settings import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchResponse:
    """Parsed body and metadata from one fetch."""

    data: Any
    url: str
    status_code: int
    duration_ms: int
    retry_count: int


def backoff_seconds(base_s: float, attempt_number: int) -> float:
    """Wait before the next attempt: base, 2*base, 4*base, ... (no jitter)."""
    return base_s * (2 ** (attempt_number - 1))


class ResourceFetcher:
    """Thin JSON GET client; retries only on non-2xx responses."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or Settings()
        self._sleep = sleep
        workers = self.settings.max_workers
        limits = httpx.Limits(max_connections=workers, max_keepalive_connections=workers)
        self._http = httpx.Client(
            timeout=self.settings.timeout_s,
            limits=limits,
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json;q=0.9,*/*;q=0.8",
            },
            follow_redirects=True,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> ResourceFetcher:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _wait(self, retry_state) -> float:
        return backoff_seconds(self.settings.backoff_base_s, retry_state.attempt_number)

    def _get_once(self, url: str) -> tuple[Any, int]:
        try:
            response = self._http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"transport error for {url}: {exc}") from exc
        if not response.is_success:
            raise HttpError(url, response.status_code)
        try:
            return response.json(), response.status_code
        except ValueError as exc:
            raise TransportError(f"unparseable body from {url}: {exc}") from exc

    def fetch(self, url: str, *, retry: bool = True) -> FetchResponse:
        """GET and parse JSON; with retry, up to max_attempts on HttpError."""
        attempts = self.settings.max_attempts if retry else 1
        retries = 0
        started = perf_counter()
        result: tuple[Any, int] | None = None
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(attempts),
                retry=retry_if_exception_type(HttpError),
                wait=self._wait,
                sleep=self._sleep,
                reraise=True,
            ):
                with attempt:
                    retries = attempt.retry_state.attempt_number - 1
                    if retries:
                        logger.debug("retry %d for %s", retries, url)
                    result = self._get_once(url)
        except HttpError as exc:
            if not retry:
                raise
            logger.warning("giving up on %s after %d attempts", url, attempts)
            raise ExhaustedRetries(url, attempts=attempts, last_status=exc.status_code) from exc
        if result is None:
            raise TransportError(f"{url} failed without a response")

        data, status_code = result
        return FetchResponse(
            data=data,
            url=url,
            status_code=status_code,
            duration_ms=int((perf_counter() - started) * 1000),
            retry_count=retries,
        )

    def fetch_json(self, url: str, *, retry: bool = True) -> Any:
        """Return only the parsed body."""
        return self.fetch(url, retry=retry).data
