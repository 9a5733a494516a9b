"""Crawler package: config, shared types, URL helpers, and the fetch loop."""

from .config import CrawlConfig, load_config, save_config
from .content import extract_main, extract_title, has_documentation_content, to_text
from .fetcher import Fetcher
from .frontier import CrawlSession, EnqueueStatus
from .pipeline import Crawler, crawl
from .types import (
    CrawlEvent,
    CrawlEventType,
    CrawlResult,
    CrawlStage,
    CrawlStats,
    CrawledPage,
    ErrorRecord,
    FetchResult,
    UrlClass,
    utc_now_iso,
)
from .url import (
    base_domain,
    classify_url,
    extract_links,
    is_low_relevance_url,
    is_non_content_url,
    is_same_domain,
    normalize_url,
    resolve_url,
)

__all__ = [
    "CrawlConfig",
    "CrawlEvent",
    "CrawlEventType",
    "CrawlResult",
    "CrawlSession",
    "CrawlStage",
    "CrawlStats",
    "CrawledPage",
    "Crawler",
    "EnqueueStatus",
    "ErrorRecord",
    "FetchResult",
    "Fetcher",
    "UrlClass",
    "base_domain",
    "classify_url",
    "crawl",
    "extract_links",
    "extract_main",
    "extract_title",
    "has_documentation_content",
    "is_low_relevance_url",
    "is_non_content_url",
    "is_same_domain",
    "load_config",
    "normalize_url",
    "resolve_url",
    "save_config",
    "to_text",
    "utc_now_iso",
]
