"""End-to-end ingest orchestration: crawl, persist, chunk, extract, persist."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

from tqdm import tqdm

from .chunker.chunk import chunk_pages, index_records
from .chunker.types import Chunk
from .config import IngestConfig
from .crawler.fetcher import Fetcher
from .crawler.pipeline import Crawler, EventCallback
from .crawler.types import CrawledPage, CrawlStats, ErrorRecord, JSONDict
from .endpoints.client import CompletionClient
from .endpoints.enhance import enhance_pages
from .endpoints.extractor import EndpointExtractor, ExtractionCallback
from .endpoints.types import APIEndpoint, ExtractionEvent, ExtractionEventType
from .endpoints.validate import unique_resources
from .storage import Storage


LOGGER = logging.getLogger(__name__)


class NoPagesCrawledError(RuntimeError):
    """Raised when a crawl run accepts no pages at all."""

    def __init__(self, start_url: str, errors: list[ErrorRecord]) -> None:
        super().__init__(f"No pages crawled from {start_url} ({len(errors)} errors)")
        self.start_url = start_url
        self.errors = errors


@dataclass(slots=True)
class IngestResult:
    start_url: str
    pages: list[CrawledPage] = field(default_factory=list)
    chunks: list[Chunk] = field(default_factory=list)
    endpoints: list[APIEndpoint] = field(default_factory=list)
    errors: list[ErrorRecord] = field(default_factory=list)
    crawl_stats: CrawlStats = field(default_factory=CrawlStats)
    paths: JSONDict = field(default_factory=dict)
    duration_seconds: float = 0.0

    def summary(self) -> JSONDict:
        return {
            "start_url": self.start_url,
            "pages": len(self.pages),
            "chunks": len(self.chunks),
            "endpoints": len(self.endpoints),
            "resources": unique_resources(self.endpoints),
            "errors": len(self.errors),
            "crawl_stats": self.crawl_stats.to_json(),
            "duration_seconds": round(self.duration_seconds, 3),
        }


def _progress_callback(bar: tqdm) -> ExtractionCallback:
    def on_event(event: ExtractionEvent) -> None:
        if event.type == ExtractionEventType.EXTRACTED and event.page_index is not None:
            bar.update(event.page_index - bar.n)

    return on_event


def run_ingest(
    start_url: str,
    config: IngestConfig | None = None,
    output_dir: str | Path = "docingest_output",
    *,
    client: CompletionClient | None = None,
    fetcher: Fetcher | None = None,
    on_crawl_event: EventCallback | None = None,
    show_progress: bool = False,
) -> IngestResult:
    """Run one ingest and persist every artifact under `output_dir`.

    Per-page failures in any stage are collected as `ErrorRecord`s. The run
    itself fails only on an invalid start URL (`ValueError`) or when the crawl
    accepts no pages (`NoPagesCrawledError`).
    """

    config = config or IngestConfig()
    storage = Storage(output_dir)
    started = time.perf_counter()

    crawl_result = Crawler(config.crawl, fetcher=fetcher).crawl(start_url, on_event=on_crawl_event)
    result = IngestResult(
        start_url=start_url,
        pages=list(crawl_result.pages),
        errors=list(crawl_result.errors),
        crawl_stats=crawl_result.stats,
        paths=storage.paths,
    )

    if not result.pages:
        storage.save_errors(result.errors)
        raise NoPagesCrawledError(start_url, result.errors)

    storage.save_pages(result.pages)
    LOGGER.info("Saved %d pages to %s", len(result.pages), storage.cache_dir)

    if config.enhance:
        if client is None:
            LOGGER.warning("Content cleanup requested but no extraction client is configured")
        else:
            result.pages, enhance_errors = enhance_pages(result.pages, client)
            result.errors.extend(enhance_errors)
            storage.save_pages(result.pages)

    pages_iter = tqdm(
        result.pages,
        desc="Chunking pages",
        unit="page",
        disable=not show_progress,
    )
    result.chunks, chunk_errors = chunk_pages(pages_iter, config.chunker)
    result.errors.extend(chunk_errors)
    storage.save_chunks(result.chunks)
    storage.save_index_records(index_records(result.chunks))
    LOGGER.info("Saved %d chunks", len(result.chunks))

    if not config.extract_endpoints:
        LOGGER.info("Endpoint extraction disabled")
    elif client is None:
        LOGGER.info("No extraction client configured; skipping endpoint extraction")
    else:
        extractor = EndpointExtractor(client, config.extractor)
        with tqdm(
            total=len(result.pages),
            desc="Extracting endpoints",
            unit="page",
            disable=not show_progress,
        ) as bar:
            extraction = extractor.extract_all(result.pages, on_event=_progress_callback(bar))
        result.endpoints = extraction.endpoints
        result.errors.extend(extraction.errors)

    # Written on every run; empty when extraction is skipped.
    storage.save_endpoints(result.endpoints)
    LOGGER.info("Saved %d endpoints", len(result.endpoints))

    result.duration_seconds = time.perf_counter() - started
    storage.save_errors(result.errors)
    storage.save_summary(result.summary())

    LOGGER.info(
        "Ingest complete: pages=%d, chunks=%d, endpoints=%d, errors=%d, duration=%.1fs",
        len(result.pages),
        len(result.chunks),
        len(result.endpoints),
        len(result.errors),
        result.duration_seconds,
    )
    return result


__all__ = [
    "IngestResult",
    "NoPagesCrawledError",
    "run_ingest",
]
