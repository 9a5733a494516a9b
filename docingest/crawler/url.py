"""URL normalization, classification, and link extraction helpers.

`normalize_url` is the single source of truth for "is this the same page":
every visited-set and frontier check goes through it.
"""

from __future__ import annotations

import re
from typing import Iterable, Sequence
from urllib.parse import (
    parse_qsl,
    urldefrag,
    urlencode,
    urljoin,
    urlsplit,
    urlunsplit,
)

from bs4 import BeautifulSoup

from .constants import LOW_RELEVANCE_URL_PATTERNS, NON_CONTENT_URL_PATTERNS
from .types import UrlClass


DEFAULT_ALLOWED_SCHEMES = ("http", "https")
SKIP_HREF_PREFIXES = ("javascript:", "mailto:", "tel:", "data:")
TRACKING_QUERY_PARAM_PREFIXES = ("utm_",)
TRACKING_QUERY_PARAMS = {
    "fbclid",
    "gclid",
    "ref",
    "source",
    "mc_cid",
    "mc_eid",
    "mkt_tok",
    "spm",
    "igshid",
    "ref_src",
}


def base_domain(url: str) -> str:
    """Extract normalized host from URL, without a leading `www.`."""

    parsed = urlsplit(url)
    host = (parsed.hostname or "").strip().lower()
    if host.startswith("www."):
        host = host[4:]
    return host.strip(".")


def is_http_url(url: str, allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES) -> bool:
    """Return True if URL is absolute and has an allowed HTTP-like scheme."""

    parsed = urlsplit(url)
    if not parsed.scheme or not parsed.netloc:
        return False
    return parsed.scheme.lower() in {scheme.lower() for scheme in allowed_schemes}


def _has_default_port(scheme: str, port: int | None) -> bool:
    if port is None:
        return False
    return (scheme == "http" and port == 80) or (scheme == "https" and port == 443)


def _normalize_netloc(parsed_url) -> str:  # urllib.parse.SplitResult
    host = (parsed_url.hostname or "").lower()
    if not host:
        return parsed_url.netloc.lower()

    try:
        port = parsed_url.port
    except ValueError:
        port = None

    if port is not None and not _has_default_port(parsed_url.scheme.lower(), port):
        return f"{host}:{port}"
    return host


def _normalize_path(path: str) -> str:
    if not path:
        return "/"

    collapsed = re.sub(r"/{2,}", "/", path)
    if collapsed != "/":
        collapsed = collapsed.rstrip("/")
    return collapsed or "/"


def _is_tracking_query_key(key: str) -> bool:
    normalized = key.strip().lower()
    if not normalized:
        return False

    if normalized in TRACKING_QUERY_PARAMS:
        return True

    return any(normalized.startswith(prefix) for prefix in TRACKING_QUERY_PARAM_PREFIXES)


def _normalize_query(query: str) -> str:
    if not query:
        return ""

    pairs = parse_qsl(query, keep_blank_values=True)
    pairs = [(key, value) for key, value in pairs if not _is_tracking_query_key(key)]
    if not pairs:
        return ""

    pairs = sorted(pairs, key=lambda item: (item[0], item[1]))
    return urlencode(pairs, doseq=True)


def normalize_url(
    url: str | None,
    *,
    allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES,
) -> str | None:
    """Return the dedup key for a URL.

    Lower-cases, drops the fragment, default port, trailing slash and tracking
    query parameters; every other query parameter is kept. Returns `None` for
    URLs that are invalid or outside allowed schemes.
    """

    if not url:
        return None

    raw = url.strip()
    if not raw:
        return None

    parsed = urlsplit(raw)
    if not parsed.scheme or not parsed.netloc:
        return None

    scheme = parsed.scheme.lower()
    if scheme not in {item.lower() for item in allowed_schemes}:
        return None

    netloc = _normalize_netloc(parsed)
    if not netloc:
        return None

    path = _normalize_path(parsed.path)
    query = _normalize_query(parsed.query)

    return urlunsplit((scheme, netloc, path, query, "")).lower()


def resolve_url(
    base_url: str,
    href: str | None,
    *,
    allowed_schemes: Sequence[str] = DEFAULT_ALLOWED_SCHEMES,
) -> str | None:
    """Resolve a possibly relative link into a fetchable absolute URL.

    The fragment is dropped but path/query case is kept, since servers may be
    case-sensitive even though the dedup key is not.
    """

    if href is None:
        return None

    candidate = href.strip()
    if not candidate or candidate.startswith("#"):
        return None

    lowered = candidate.lower()
    if any(lowered.startswith(prefix) for prefix in SKIP_HREF_PREFIXES):
        return None

    absolute, _fragment = urldefrag(urljoin(base_url, candidate))
    if not is_http_url(absolute, allowed_schemes=allowed_schemes):
        return None
    return absolute


def is_non_content_url(url: str) -> bool:
    """Static assets, feeds, auth/account, cart and search pages."""

    return any(pattern.search(url) for pattern in NON_CONTENT_URL_PATTERNS)


def is_low_relevance_url(url: str) -> bool:
    """Blog, press, legal, pricing and similar marketing sections."""

    return any(pattern.search(url) for pattern in LOW_RELEVANCE_URL_PATTERNS)


def classify_url(
    url: str,
    *,
    exclude_patterns: Sequence[re.Pattern[str]] = (),
) -> UrlClass:
    """Decide, without fetching, whether a URL is worth a round trip."""

    if not is_http_url(url):
        return UrlClass.INVALID
    if is_non_content_url(url):
        return UrlClass.NON_CONTENT
    if is_low_relevance_url(url):
        return UrlClass.LOW_RELEVANCE
    if any(pattern.search(url) for pattern in exclude_patterns):
        return UrlClass.EXCLUDED
    return UrlClass.CONTENT


def is_same_domain(url: str, domain: str, *, extra_domains: Iterable[str] = ()) -> bool:
    """Return True if URL host is `domain` (or a subdomain) or an extra allowed domain."""

    host = base_domain(url)
    if not host:
        return False

    for candidate in (domain, *extra_domains):
        allowed = base_domain(candidate) if "://" in candidate else candidate.strip().lower()
        if allowed.startswith("www."):
            allowed = allowed[4:]
        if not allowed:
            continue
        if host == allowed or host.endswith("." + allowed):
            return True
    return False


def extract_links(
    html: str | bytes,
    *,
    base_url: str,
    domain: str,
    extra_domains: Iterable[str] = (),
) -> list[str]:
    """Extract same-domain content links from HTML anchor/area tags.

    Returns resolved URLs in document order, deduplicated by normalized key.
    """

    soup = BeautifulSoup(html, "lxml")
    extra = tuple(extra_domains)

    out: list[str] = []
    seen: set[str] = set()

    for element in soup.find_all(["a", "area"]):
        resolved = resolve_url(base_url, element.get("href"))
        if not resolved:
            continue

        if not is_same_domain(resolved, domain, extra_domains=extra):
            continue

        key = normalize_url(resolved)
        if key is None or key in seen:
            continue
        if is_non_content_url(key):
            continue

        seen.add(key)
        out.append(resolved)

    return out


__all__ = [
    "DEFAULT_ALLOWED_SCHEMES",
    "SKIP_HREF_PREFIXES",
    "TRACKING_QUERY_PARAM_PREFIXES",
    "TRACKING_QUERY_PARAMS",
    "base_domain",
    "classify_url",
    "extract_links",
    "is_http_url",
    "is_low_relevance_url",
    "is_non_content_url",
    "is_same_domain",
    "normalize_url",
    "resolve_url",
]
