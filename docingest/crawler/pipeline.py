"""Breadth-first documentation crawl loop."""

from __future__ import annotations

import logging
import time
from typing import Callable
from urllib.parse import urlsplit

from .config import CrawlConfig
from .content import extract_main, extract_title, has_documentation_content, to_text
from .fetcher import Fetcher
from .frontier import CrawlSession
from .types import (
    CrawledPage,
    CrawlEvent,
    CrawlEventType,
    CrawlResult,
    CrawlStage,
    ErrorRecord,
    FetchResult,
    UrlClass,
)
from .url import base_domain, classify_url, extract_links, is_http_url


LOGGER = logging.getLogger(__name__)

EventCallback = Callable[[CrawlEvent], None]


def _noop(_event: CrawlEvent) -> None:
    return None


class Crawler:
    """Discover and materialize documentation pages starting from one URL.

    Strictly sequential: one fetch finishes before the next begins, so crawl
    order (and therefore dedup) is reproducible.
    """

    def __init__(
        self,
        config: CrawlConfig | None = None,
        *,
        fetcher: Fetcher | None = None,
    ) -> None:
        self.config = config or CrawlConfig()
        self.fetcher = fetcher

    def crawl(
        self,
        start_url: str,
        max_pages: int | None = None,
        *,
        on_event: EventCallback | None = None,
    ) -> CrawlResult:
        """Crawl from `start_url` until `max_pages` pages are kept or the frontier empties."""

        if not start_url or not start_url.strip():
            raise ValueError("A start URL is required")
        start_url = start_url.strip()
        if not is_http_url(start_url):
            raise ValueError(f"Start URL must be an absolute http(s) URL: {start_url!r}")

        limit = max_pages if max_pages is not None else self.config.max_pages
        if limit <= 0:
            raise ValueError("max_pages must be > 0")

        emit = on_event or _noop
        # Without an injected fetcher each crawl gets, and closes, its own.
        fetcher = self.fetcher or Fetcher(self.config)
        session = CrawlSession(start_url=start_url, max_pages=limit)
        domain = base_domain(start_url)
        started = time.perf_counter()

        LOGGER.info("Starting crawl: start_url=%s, max_pages=%d", start_url, limit)
        try:
            while session.has_work:
                url = session.pop()
                if session.is_visited(url):
                    session.stats.skipped_visited += 1
                    continue
                session.mark_visited(url)

                try:
                    self._process_url(session, fetcher, url, domain, emit)
                except Exception as exc:
                    LOGGER.exception("Unexpected failure while processing %s", url)
                    self._record_error(
                        session,
                        ErrorRecord.from_exception(stage=CrawlStage.PARSE, url=url, exc=exc),
                        emit,
                    )
        finally:
            if fetcher is not self.fetcher:
                fetcher.close()

        session.stats.finish()
        emit(CrawlEvent(type=CrawlEventType.COMPLETE, page_count=len(session.pages)))
        duration = time.perf_counter() - started
        LOGGER.info(
            "Crawl complete: pages=%d, errors=%d, visited=%d, duration=%.1fs",
            len(session.pages),
            len(session.errors),
            len(session.visited),
            duration,
        )

        return CrawlResult(
            pages=session.pages,
            errors=session.errors,
            stats=session.stats,
            duration_seconds=duration,
        )

    def _process_url(
        self,
        session: CrawlSession,
        fetcher: Fetcher,
        url: str,
        domain: str,
        emit: EventCallback,
    ) -> None:
        url_class = classify_url(url, exclude_patterns=self.config.compiled_excludes)
        if url_class != UrlClass.CONTENT:
            session.stats.skipped_url_pattern += 1
            LOGGER.debug("Skipping %s (%s)", url, url_class.value)
            emit(CrawlEvent(type=CrawlEventType.SKIPPED, url=url, reason=url_class.value))
            return

        emit(CrawlEvent(type=CrawlEventType.NAVIGATING, url=url))
        fetch_result = fetcher.fetch(url)
        if not fetch_result.ok or not fetch_result.is_html:
            session.stats.fetched_error += 1
            self._record_error(session, self._fetch_error(fetch_result), emit)
            return
        session.stats.fetched_ok += 1

        final_url = fetch_result.effective_url
        session.mark_visited(final_url)
        html = fetch_result.text()

        # Links are harvested before any content filter so discovery is not starved.
        links = extract_links(
            html,
            base_url=final_url,
            domain=domain,
            extra_domains=self.config.allowed_domains,
        )
        session.push_many(links)

        if not has_documentation_content(html, threshold=self.config.doc_indicator_threshold):
            session.stats.skipped_not_docs += 1
            self._skip(final_url, "no documentation content detected", emit)
            return

        main_html = extract_main(html, min_chars=self.config.min_main_chars)
        content = to_text(main_html)
        if len(content) < self.config.min_content_chars:
            session.stats.skipped_too_short += 1
            self._skip(final_url, "content too short", emit)
            return

        if not session.claim_fingerprint(content, chars=self.config.fingerprint_chars):
            session.stats.skipped_duplicate += 1
            self._skip(final_url, "duplicate content", emit)
            return

        path = urlsplit(final_url).path or "/"
        title = extract_title(html) or path
        session.add_page(
            CrawledPage(
                url=final_url,
                path=path,
                title=title,
                content=content,
                raw_main_html=main_html,
            )
        )
        LOGGER.info("[%d/%d] %s", len(session.pages), session.max_pages, title)
        emit(
            CrawlEvent(
                type=CrawlEventType.EXTRACTED,
                url=final_url,
                title=title,
                page_count=len(session.pages),
                total_pages=session.max_pages,
            )
        )

    @staticmethod
    def _skip(url: str, reason: str, emit: EventCallback) -> None:
        LOGGER.debug("Skipping %s: %s", url, reason)
        emit(CrawlEvent(type=CrawlEventType.SKIPPED, url=url, reason=reason))

    @staticmethod
    def _fetch_error(fetch_result: FetchResult) -> ErrorRecord:
        if fetch_result.error:
            message = fetch_result.error
        elif fetch_result.status_code is not None and not 200 <= fetch_result.status_code < 300:
            message = f"HTTP {fetch_result.status_code}"
        elif not fetch_result.is_html:
            message = f"Not HTML: {fetch_result.content_type or 'unknown content type'}"
        else:
            message = "Unknown fetch failure"

        error_type = message.split(":", maxsplit=1)[0].strip() if ":" in message else None
        return ErrorRecord(
            stage=CrawlStage.FETCH,
            url=fetch_result.requested_url,
            message=message,
            error_type=error_type,
            status_code=fetch_result.status_code,
        )

    @staticmethod
    def _record_error(session: CrawlSession, error: ErrorRecord, emit: EventCallback) -> None:
        LOGGER.warning("Error: %s", error)
        session.record_error(error)
        emit(CrawlEvent(type=CrawlEventType.ERROR, url=error.url, error=error.message))


def crawl(
    start_url: str,
    max_pages: int | None = None,
    *,
    config: CrawlConfig | None = None,
    on_event: EventCallback | None = None,
) -> CrawlResult:
    """Convenience wrapper: crawl with a fresh `Crawler` and its own fetcher."""

    return Crawler(config).crawl(start_url, max_pages, on_event=on_event)


__all__ = [
    "Crawler",
    "EventCallback",
    "crawl",
]
