"""URL fetching over `requests` with retry, politeness, and robots.txt logic."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import requests

from .config import CrawlConfig
from .types import FetchResult
from .url import base_domain


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _AttemptConfig:
    attempts: int
    backoff_seconds: float


class Fetcher:
    """Fetch URLs with one shared `requests.Session`.

    The crawl loop is sequential, so a single session is reused for every
    request. A fixed minimum interval is kept between requests to the same
    host.
    """

    def __init__(self, config: CrawlConfig, *, session: requests.Session | None = None) -> None:
        self.config = config

        self._session = session or requests.Session()
        self._owns_session = session is None

        self._next_allowed_time_by_host: dict[str, float] = {}
        self._robots_cache: dict[str, RobotFileParser | None] = {}

        self._closed = False

    def fetch(self, url: str) -> FetchResult:
        """GET one URL following redirects, with configured retries and policies."""

        if self._closed:
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="Fetcher is closed",
            )

        if self.config.respect_robots and not self._is_allowed_by_robots(url):
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="Blocked by robots.txt",
            )

        attempt_cfg = _AttemptConfig(
            attempts=max(1, self.config.retries + 1),
            backoff_seconds=max(0.0, self.config.retry_backoff_seconds),
        )
        return self._fetch_with_retries(url, attempt_cfg)

    def close(self) -> None:
        self._closed = True
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _fetch_with_retries(self, url: str, attempt_cfg: _AttemptConfig) -> FetchResult:
        last_result: FetchResult | None = None

        for attempt in range(1, attempt_cfg.attempts + 1):
            result = self._fetch_once(url)
            last_result = result

            if self._is_terminal_result(result):
                return result

            LOGGER.debug(
                "Retryable fetch result for %s (attempt %d/%d): status=%s error=%s",
                url,
                attempt,
                attempt_cfg.attempts,
                result.status_code,
                result.error,
            )
            if attempt < attempt_cfg.attempts and attempt_cfg.backoff_seconds > 0:
                # Linear backoff keeps behavior simple and predictable.
                time.sleep(attempt_cfg.backoff_seconds * attempt)

        if last_result is None:
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="Unknown fetch failure",
            )

        return last_result

    @staticmethod
    def _is_terminal_result(result: FetchResult) -> bool:
        if result.error is not None:
            return False

        if result.status_code is None:
            return False

        if result.status_code in {408, 429} or result.status_code >= 500:
            return False

        return True

    def _fetch_once(self, url: str) -> FetchResult:
        self._wait_for_politeness(url)
        started = time.perf_counter()

        try:
            response = self._session.get(
                url,
                headers=self.config.headers(),
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
            )
            elapsed_ms = int((time.perf_counter() - started) * 1000)

            body = response.content if response.content is not None else b""
            return FetchResult(
                requested_url=url,
                final_url=response.url or url,
                status_code=response.status_code,
                content_type=response.headers.get("Content-Type"),
                body=body,
                elapsed_ms=elapsed_ms,
                error=None,
            )
        except requests.RequestException as exc:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                elapsed_ms=elapsed_ms,
                error=f"{exc.__class__.__name__}: {exc}",
            )

    def _wait_for_politeness(self, url: str) -> None:
        wait_seconds = max(0.0, self.config.request_delay_seconds)
        if wait_seconds <= 0:
            return

        host = base_domain(url)
        now = time.monotonic()
        next_allowed = self._next_allowed_time_by_host.get(host, 0.0)
        if now < next_allowed:
            time.sleep(next_allowed - now)
            now = time.monotonic()
        self._next_allowed_time_by_host[host] = now + wait_seconds

    def _is_allowed_by_robots(self, url: str) -> bool:
        parsed = urlsplit(url)
        host_key = f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"

        if host_key not in self._robots_cache:
            self._robots_cache[host_key] = self._load_robots_parser(host_key)
        parser = self._robots_cache[host_key]

        # If robots cannot be loaded, fail open to avoid stalling crawling.
        if parser is None:
            return True

        return parser.can_fetch(self.config.user_agent or "*", url)

    def _load_robots_parser(self, host_root: str) -> RobotFileParser | None:
        robots_url = f"{host_root}/robots.txt"

        try:
            response = self._session.get(
                robots_url,
                headers={"User-Agent": self.config.user_agent},
                timeout=min(10.0, self.config.timeout_seconds),
            )
        except requests.RequestException as exc:
            LOGGER.debug("robots.txt unavailable at %s: %s", robots_url, exc)
            return None

        if response.status_code >= 400:
            return None

        parser = RobotFileParser()
        parser.set_url(robots_url)
        parser.parse(response.text.splitlines())
        return parser


__all__ = ["Fetcher"]
