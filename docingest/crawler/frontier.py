"""Per-run crawl state: FIFO frontier, visited keys, and content fingerprints."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from .types import CrawledPage, CrawlStats, ErrorRecord
from .url import normalize_url


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_INVALID_URL = "skipped_invalid_url"
    SKIPPED_SEEN = "skipped_seen"


@dataclass(slots=True)
class CrawlSession:
    """State owned by exactly one crawl run.

    URLs are marked visited when they are popped (not when pushed), so the
    same URL may sit in the queue more than once; `pop` callers must check
    `is_visited` before fetching.
    """

    start_url: str
    max_pages: int

    queue: deque[str] = field(default_factory=deque)
    visited: set[str] = field(default_factory=set)
    fingerprints: set[str] = field(default_factory=set)

    pages: list[CrawledPage] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)
    stats: CrawlStats = field(default_factory=CrawlStats)

    def __post_init__(self) -> None:
        if not self.queue:
            self.queue.append(self.start_url)

    @property
    def has_work(self) -> bool:
        return bool(self.queue) and len(self.pages) < self.max_pages

    def pop(self) -> str:
        self.stats.dequeued += 1
        return self.queue.popleft()

    def is_visited(self, url: str) -> bool:
        key = normalize_url(url)
        return key is not None and key in self.visited

    def mark_visited(self, url: str) -> str | None:
        key = normalize_url(url)
        if key is not None:
            self.visited.add(key)
        return key

    def push(self, url: str) -> EnqueueStatus:
        key = normalize_url(url)
        if key is None:
            return EnqueueStatus.SKIPPED_INVALID_URL
        if key in self.visited:
            return EnqueueStatus.SKIPPED_SEEN
        self.queue.append(url)
        self.stats.links_enqueued += 1
        return EnqueueStatus.ENQUEUED

    def push_many(self, urls: Iterable[str]) -> list[EnqueueStatus]:
        return [self.push(url) for url in urls]

    def claim_fingerprint(self, content: str, *, chars: int) -> bool:
        """Record the content prefix; False if an earlier page already had it."""

        fingerprint = content[:chars]
        if fingerprint in self.fingerprints:
            return False
        self.fingerprints.add(fingerprint)
        return True

    def record_error(self, error: ErrorRecord) -> None:
        self.errors.append(error)

    def add_page(self, page: CrawledPage) -> None:
        self.pages.append(page)
        self.stats.pages_kept += 1


__all__ = [
    "CrawlSession",
    "EnqueueStatus",
]
