"""Batched API endpoint extraction over crawled pages.

Pages are sent to the extraction collaborator in fixed-size batches. Calls in
a batch run concurrently; the whole batch is collected before its endpoints
are merged into the corpus-wide set and before the next batch starts, so the
dedup set is only ever touched from the calling thread.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from ..crawler.types import CrawledPage, CrawlStage, ErrorRecord, JSONDict
from .client import CompletionClient
from .types import APIEndpoint, ExtractionEvent, ExtractionEventType, ExtractionResult
from .validate import (
    DEFAULT_API_INDICATOR_THRESHOLD,
    looks_like_api_page,
    parse_candidates,
    sort_endpoints,
    validate_candidates,
)


LOGGER = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_PAUSE_SECONDS = 0.5
DEFAULT_MAX_CONTENT_CHARS = 30000

EXTRACTION_SYSTEM_PROMPT = """You are an API endpoint extraction agent. Analyze documentation content and extract structured API endpoint information.

For each endpoint found, extract:
- method: HTTP method (GET, POST, PUT, DELETE, PATCH, HEAD, OPTIONS)
- path: The endpoint path (e.g., /users, /posts/{id}, /v1/chat/completions)
- title: A short title/name for the endpoint
- description: What the endpoint does
- parameters: list of {name, in (path|query|header|cookie), type, required, description, default}
- requestBody: {contentType, schema, example} if available
- responses: list of {status, description, example}
- codeExamples: list of {language, code, title} (curl, python, javascript, etc.)

Output a JSON array of endpoints. Only include endpoints that are clearly documented with at least method and path.

If no API endpoints are found on a page, output an empty array: []"""

ExtractionCallback = Callable[[ExtractionEvent], None]


def _noop(_event: ExtractionEvent) -> None:
    return None


@dataclass(slots=True)
class ExtractorConfig:
    batch_size: int = DEFAULT_BATCH_SIZE
    batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS
    max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS
    api_indicator_threshold: int = DEFAULT_API_INDICATOR_THRESHOLD

    def __post_init__(self) -> None:
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.batch_pause_seconds < 0:
            raise ValueError("batch_pause_seconds must be >= 0")
        if self.max_content_chars <= 0:
            raise ValueError("max_content_chars must be > 0")
        if self.api_indicator_threshold < 0:
            raise ValueError("api_indicator_threshold must be >= 0")

    def to_dict(self) -> JSONDict:
        return {
            "batch_size": self.batch_size,
            "batch_pause_seconds": self.batch_pause_seconds,
            "max_content_chars": self.max_content_chars,
            "api_indicator_threshold": self.api_indicator_threshold,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ExtractorConfig":
        return cls(
            batch_size=int(payload.get("batch_size", DEFAULT_BATCH_SIZE)),
            batch_pause_seconds=float(
                payload.get("batch_pause_seconds", DEFAULT_BATCH_PAUSE_SECONDS)
            ),
            max_content_chars=int(payload.get("max_content_chars", DEFAULT_MAX_CONTENT_CHARS)),
            api_indicator_threshold=int(
                payload.get("api_indicator_threshold", DEFAULT_API_INDICATOR_THRESHOLD)
            ),
        )


@dataclass(slots=True)
class _PageOutcome:
    endpoints: list[APIEndpoint]
    error: ErrorRecord | None = None


def build_prompt(page: CrawledPage, max_content_chars: int = DEFAULT_MAX_CONTENT_CHARS) -> str:
    return (
        "Extract API endpoints from this documentation page.\n\n"
        f"Title: {page.title}\n"
        f"URL: {page.url}\n\n"
        "Content:\n"
        f"{page.content[:max_content_chars]}"
    )


class EndpointExtractor:
    """Propose, validate and deduplicate API endpoints for a page corpus."""

    def __init__(
        self,
        client: CompletionClient,
        config: ExtractorConfig | None = None,
    ) -> None:
        self.client = client
        self.config = config or ExtractorConfig()

    def extract_page(self, page: CrawledPage) -> list[APIEndpoint]:
        """Extract endpoints from one page; raises on collaborator failure."""

        if not looks_like_api_page(page.content, threshold=self.config.api_indicator_threshold):
            LOGGER.debug("Skipping %s: no API indicators", page.url)
            return []

        response = self.client.complete(
            EXTRACTION_SYSTEM_PROMPT,
            build_prompt(page, self.config.max_content_chars),
        )
        candidates = parse_candidates(response)
        if candidates is None:
            raise ValueError("Extraction response did not contain a JSON array")
        return validate_candidates(candidates, page.url, page.title)

    def _extract_safely(self, page: CrawledPage) -> _PageOutcome:
        try:
            return _PageOutcome(endpoints=self.extract_page(page))
        except Exception as exc:
            return _PageOutcome(
                endpoints=[],
                error=ErrorRecord.from_exception(stage=CrawlStage.EXTRACT, url=page.url, exc=exc),
            )

    def extract_all(
        self,
        pages: Sequence[CrawledPage],
        *,
        on_event: ExtractionCallback | None = None,
    ) -> ExtractionResult:
        emit = on_event or _noop
        total = len(pages)
        batch_size = self.config.batch_size

        endpoints: list[APIEndpoint] = []
        seen_ids: set[str] = set()
        errors: list[ErrorRecord] = []

        LOGGER.info("Extracting endpoints from %d pages (batch_size=%d)", total, batch_size)
        emit(ExtractionEvent(type=ExtractionEventType.PROCESSING, page_index=0, total_pages=total))

        with ThreadPoolExecutor(max_workers=batch_size, thread_name_prefix="extract") as pool:
            for start in range(0, total, batch_size):
                batch = pages[start : start + batch_size]
                for offset, page in enumerate(batch):
                    emit(
                        ExtractionEvent(
                            type=ExtractionEventType.PROCESSING,
                            page_index=start + offset,
                            total_pages=total,
                            page_url=page.url,
                        )
                    )

                futures = [pool.submit(self._extract_safely, page) for page in batch]
                outcomes = [future.result() for future in futures]

                for outcome in outcomes:
                    if outcome.error is not None:
                        LOGGER.warning("Error extracting from %s", outcome.error)
                        errors.append(outcome.error)
                        emit(
                            ExtractionEvent(
                                type=ExtractionEventType.ERROR,
                                page_url=outcome.error.url,
                                error=outcome.error.message,
                            )
                        )
                    for endpoint in outcome.endpoints:
                        if endpoint.id in seen_ids:
                            continue
                        seen_ids.add(endpoint.id)
                        endpoints.append(endpoint)

                done = min(start + batch_size, total)
                LOGGER.debug("Extracted batch: pages=%d/%d, endpoints=%d", done, total, len(endpoints))
                emit(
                    ExtractionEvent(
                        type=ExtractionEventType.EXTRACTED,
                        page_index=done,
                        total_pages=total,
                        endpoint_count=len(endpoints),
                    )
                )

                if done < total and self.config.batch_pause_seconds > 0:
                    time.sleep(self.config.batch_pause_seconds)

        ordered = sort_endpoints(endpoints)
        emit(ExtractionEvent(type=ExtractionEventType.COMPLETE, endpoint_count=len(ordered)))
        LOGGER.info("Endpoint extraction complete: endpoints=%d, errors=%d", len(ordered), len(errors))

        return ExtractionResult(endpoints=ordered, processed_pages=total, errors=errors)


def extract_endpoints(
    pages: Sequence[CrawledPage],
    client: CompletionClient,
    config: ExtractorConfig | None = None,
    *,
    on_event: ExtractionCallback | None = None,
) -> ExtractionResult:
    return EndpointExtractor(client, config).extract_all(pages, on_event=on_event)


__all__ = [
    "EXTRACTION_SYSTEM_PROMPT",
    "EndpointExtractor",
    "ExtractionCallback",
    "ExtractorConfig",
    "build_prompt",
    "extract_endpoints",
]
