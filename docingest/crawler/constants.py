"""Default crawl limits, request headers, and URL/content pattern lists."""

from __future__ import annotations

import re


DEFAULT_MAX_PAGES = 500
DEFAULT_MIN_CONTENT_CHARS = 100
DEFAULT_MIN_MAIN_CHARS = 500
DEFAULT_FINGERPRINT_CHARS = 500
DEFAULT_DOC_INDICATOR_THRESHOLD = 2

DEFAULT_TIMEOUT_SECONDS = 20.0
DEFAULT_RETRIES = 1
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_REQUEST_DELAY_SECONDS = 0.1
DEFAULT_RESPECT_ROBOTS = False

DEFAULT_USER_AGENT = (
    "docingest/0.1 (documentation indexer; +https://github.com/docingest/docingest)"
)
DEFAULT_HTTP_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

HTML_CONTENT_TYPES = ("text/html", "application/xhtml")

SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
JSON_INDENT = 2


NON_CONTENT_URL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        # Static assets
        r"\.(png|jpg|jpeg|gif|svg|ico|webp|pdf|zip|tar|gz|mp4|mp3|wav|woff|woff2|ttf|eot)$",
        r"\.(css|js|mjs|jsx|ts|tsx)$",
        r"\.(json|xml|yaml|yml)$",
        r"/assets/",
        r"/_next/",
        r"/static/",
        r"/chunks/",
        # Non-HTTP handlers
        r"^mailto:",
        r"^tel:",
        r"^javascript:",
        r"^#",
        # Feeds
        r"/feed/?$",
        r"/rss/?$",
        r"/atom/?$",
        # Auth / account
        r"/(login|logout|signin|signout|signup|register|auth)(/|$)",
        r"/(account|profile|settings|dashboard)/?$",
        # E-commerce
        r"/(cart|checkout|payment|order)(/|$)",
        # Search
        r"/search\?",
        r"/search/?$",
    )
)

LOW_RELEVANCE_URL_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"/blog/",
        r"/news/",
        r"/press/",
        r"/careers/",
        r"/jobs/",
        r"/about-us/?$",
        r"/contact-us/?$",
        r"/terms/?$",
        r"/privacy/?$",
        r"/legal/?$",
        r"/cookie",
        r"/pricing/?$",
        r"/enterprise/?$",
        r"/customers/?$",
        r"/case-studies/",
        r"/testimonials/",
    )
)

DOC_INDICATOR_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"<pre[^>]*>",
        r"<code[^>]*>",
        r"```",
        r"class=\"[^\"]*(?:highlight|syntax|code)[^\"]*\"",
        r"api",
        r"endpoint",
        r"parameter",
        r"request",
        r"response",
        r"example",
        r"usage",
        r"installation",
        r"getting.?started",
        r"quickstart",
        r"tutorial",
        r"guide",
        r"reference",
        r"documentation",
    )
)


__all__ = [
    "DEFAULT_DOC_INDICATOR_THRESHOLD",
    "DEFAULT_FINGERPRINT_CHARS",
    "DEFAULT_HTTP_HEADERS",
    "DEFAULT_MAX_PAGES",
    "DEFAULT_MIN_CONTENT_CHARS",
    "DEFAULT_MIN_MAIN_CHARS",
    "DEFAULT_REQUEST_DELAY_SECONDS",
    "DEFAULT_RESPECT_ROBOTS",
    "DEFAULT_RETRIES",
    "DEFAULT_RETRY_BACKOFF_SECONDS",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "DOC_INDICATOR_PATTERNS",
    "HTML_CONTENT_TYPES",
    "JSON_INDENT",
    "LOW_RELEVANCE_URL_PATTERNS",
    "NON_CONTENT_URL_PATTERNS",
    "SUPPORTED_CONFIG_SUFFIXES",
]
