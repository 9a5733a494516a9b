"""Core type definitions for the crawler pipeline.

This module is intentionally dependency-light so other crawler, chunker and
endpoint modules can import shared records without introducing cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from .constants import HTML_CONTENT_TYPES


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


class CrawlStage(str, Enum):
    """Pipeline stage names for error reporting."""

    FETCH = "fetch"
    PARSE = "parse"
    CHUNK = "chunk"
    EXTRACT = "extract"


class UrlClass(str, Enum):
    """Outcome of classifying a URL before fetching it."""

    CONTENT = "content"
    INVALID = "invalid"
    NON_CONTENT = "non_content"
    LOW_RELEVANCE = "low_relevance"
    EXCLUDED = "excluded"


class CrawlEventType(str, Enum):
    NAVIGATING = "navigating"
    EXTRACTED = "extracted"
    SKIPPED = "skipped"
    ERROR = "error"
    COMPLETE = "complete"


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for manifests/JSON."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def is_html_content_type(content_type: str | None) -> bool:
    normalized = (content_type or "").split(";", maxsplit=1)[0].strip().lower()
    return any(normalized.startswith(kind) for kind in HTML_CONTENT_TYPES)


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def is_html(self) -> bool:
        return is_html_content_type(self.content_type)

    @property
    def effective_url(self) -> str:
        return self.final_url or self.requested_url

    def text(self) -> str:
        return (self.body or b"").decode("utf-8", errors="replace")


@dataclass(slots=True)
class CrawledPage:
    """One fetched page that passed every crawl filter.

    Only `content` is expected to change after creation (content cleaning).
    """

    url: str
    path: str
    title: str
    content: str
    raw_main_html: str
    crawled_at: str = field(default_factory=utc_now_iso)

    def with_content(self, content: str) -> "CrawledPage":
        return replace(self, content=content)

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "CrawledPage":
        url = payload.get("url")
        if not isinstance(url, str) or not url:
            raise ValueError("Missing required page field: 'url'")
        path = str(payload.get("path") or "/")
        return cls(
            url=url,
            path=path,
            title=str(payload.get("title") or path),
            content=str(payload.get("content") or ""),
            raw_main_html=str(payload.get("raw_main_html") or ""),
            crawled_at=str(payload.get("crawled_at") or utc_now_iso()),
        )

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "path": self.path,
            "title": self.title,
            "content": self.content,
            "raw_main_html": self.raw_main_html,
            "crawled_at": self.crawled_at,
        }


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """One recoverable error collected during a run."""

    stage: CrawlStage
    url: str
    message: str
    error_type: str | None = None
    status_code: int | None = None
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_exception(
        cls,
        *,
        stage: CrawlStage,
        url: str,
        exc: Exception,
        **kwargs: Any,
    ) -> "ErrorRecord":
        return cls(
            stage=stage,
            url=url,
            message=str(exc),
            error_type=exc.__class__.__name__,
            **kwargs,
        )

    def __str__(self) -> str:
        return f"{self.url}: {self.message}"

    def to_json(self) -> JSONDict:
        return {
            "stage": self.stage.value,
            "url": self.url,
            "message": self.message,
            "error_type": self.error_type,
            "status_code": self.status_code,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class CrawlEvent:
    """Progress notification emitted by the crawler."""

    type: CrawlEventType
    url: str | None = None
    title: str | None = None
    page_count: int | None = None
    total_pages: int | None = None
    reason: str | None = None
    error: str | None = None


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    dequeued: int = 0
    skipped_visited: int = 0
    skipped_url_pattern: int = 0
    fetched_ok: int = 0
    fetched_error: int = 0
    links_enqueued: int = 0
    skipped_not_docs: int = 0
    skipped_too_short: int = 0
    skipped_duplicate: int = 0
    pages_kept: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "dequeued": self.dequeued,
            "skipped_visited": self.skipped_visited,
            "skipped_url_pattern": self.skipped_url_pattern,
            "fetched_ok": self.fetched_ok,
            "fetched_error": self.fetched_error,
            "links_enqueued": self.links_enqueued,
            "skipped_not_docs": self.skipped_not_docs,
            "skipped_too_short": self.skipped_too_short,
            "skipped_duplicate": self.skipped_duplicate,
            "pages_kept": self.pages_kept,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


@dataclass(slots=True)
class CrawlResult:
    """Pages and recoverable errors from one crawl run."""

    pages: list[CrawledPage] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)
    duration_seconds: float = 0.0

    @property
    def total_pages(self) -> int:
        return len(self.pages)


__all__ = [
    "CrawlEvent",
    "CrawlEventType",
    "CrawlResult",
    "CrawlStage",
    "CrawlStats",
    "CrawledPage",
    "ErrorRecord",
    "FetchResult",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "UrlClass",
    "is_html_content_type",
    "utc_now_iso",
]
