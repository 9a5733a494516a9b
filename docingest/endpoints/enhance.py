"""Optional content-cleaning pass over crawled pages."""

from __future__ import annotations

import logging
from typing import Iterable

from ..crawler.types import CrawledPage, CrawlStage, ErrorRecord
from .client import CompletionClient


LOGGER = logging.getLogger(__name__)

CLEANUP_INSTRUCTIONS = (
    "Clean up this documentation content. Remove navigation elements, ads, cookie notices, "
    "and other non-documentation content. Keep all code examples, API references, and "
    "explanatory text. Output clean markdown only, no explanation."
)


def build_cleanup_prompt(page: CrawledPage) -> str:
    return (
        f"{CLEANUP_INSTRUCTIONS}\n\n"
        f"Title: {page.title}\n"
        f"URL: {page.url}\n\n"
        "Content:\n"
        f"{page.content}"
    )


def enhance_pages(
    pages: Iterable[CrawledPage],
    client: CompletionClient,
) -> tuple[list[CrawledPage], list[ErrorRecord]]:
    """Replace each page's content with a cleaned version.

    A page whose cleanup fails, or comes back empty, keeps its original content.
    """

    enhanced: list[CrawledPage] = []
    errors: list[ErrorRecord] = []

    for page in pages:
        try:
            cleaned = client.complete("", build_cleanup_prompt(page))
        except Exception as exc:
            LOGGER.warning("Content cleanup failed for %s: %s", page.url, exc)
            errors.append(ErrorRecord.from_exception(stage=CrawlStage.PARSE, url=page.url, exc=exc))
            enhanced.append(page)
            continue

        if cleaned and cleaned.strip():
            enhanced.append(page.with_content(cleaned.strip() + "\n"))
        else:
            enhanced.append(page)

    return enhanced, errors


__all__ = [
    "build_cleanup_prompt",
    "enhance_pages",
]
