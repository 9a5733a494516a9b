"""Shared fixtures: an in-memory documentation site and fake collaborators."""

from __future__ import annotations

import json
import threading
import time
from typing import Any

import pytest

from docingest.crawler import CrawlConfig, Fetcher


SITE_ROOT = "https://docs.example.com"
START_URL = f"{SITE_ROOT}/docs"
QUICKSTART_URL = f"{SITE_ROOT}/docs/quickstart"
USERS_URL = f"{SITE_ROOT}/docs/users"

FILLER = (
    "<p>Each section of this documentation is written for developers integrating with the "
    "Example platform. Code samples are provided in several languages, and every sample can be "
    "copied into a terminal or editor without modification. When something is unclear, the "
    "reference pages describe each field in detail, including its type, whether it is required, "
    "and the default value that applies when it is omitted from a call.</p>"
)


class FakeResponse:
    def __init__(
        self,
        url: str,
        status_code: int = 200,
        body: str = "",
        content_type: str = "text/html; charset=utf-8",
    ) -> None:
        self.url = url
        self.status_code = status_code
        self.headers = {"Content-Type": content_type}
        self.content = body.encode("utf-8")
        self.text = body


class FakeSession:
    """Stand-in for `requests.Session` serving canned responses.

    Route values are an HTML string (200 text/html), a `FakeResponse`, an
    exception to raise, or a list of those consumed one per request.
    """

    def __init__(
        self,
        routes: dict[str, Any] | None = None,
        *,
        redirects: dict[str, str] | None = None,
    ) -> None:
        self.routes = dict(routes or {})
        self.redirects = dict(redirects or {})
        self.calls: list[str] = []
        self.headers_seen: list[dict[str, str]] = []
        self.closed = False

    def get(self, url, headers=None, timeout=None, allow_redirects=True):
        self.calls.append(url)
        self.headers_seen.append(dict(headers or {}))

        final_url = self.redirects.get(url, url) if allow_redirects else url
        route = self.routes.get(final_url)
        if route is None:
            route = self.routes.get(final_url.rstrip("/"))
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]

        if route is None:
            return FakeResponse(final_url, 404, "Not found", "text/plain")
        if isinstance(route, Exception):
            raise route
        if isinstance(route, FakeResponse):
            return route
        return FakeResponse(final_url, 200, route)

    def close(self) -> None:
        self.closed = True


def html_page(title: str, main_html: str, links: tuple[str, ...] = ()) -> str:
    nav = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return (
        "<!DOCTYPE html><html><head>"
        f"<title>{title}</title>"
        "</head><body>"
        f"<nav>{nav}</nav>"
        f"<main>{main_html}</main>"
        "<footer>Copyright Example Inc.</footer>"
        "</body></html>"
    )


INDEX_HTML = html_page(
    "Example API Documentation",
    "<h1>Example API Documentation</h1>"
    "<p>Welcome to the Example API reference. Start with the quickstart guide, then read "
    "about the users resource.</p>" + FILLER,
    links=(
        "/docs/quickstart#intro",
        "/docs/quickstart/",
        "/docs/users",
        "/blog/announcing-v2",
        "/static/app.js",
        "https://other.example.org/docs",
        "/login",
        "mailto:team@example.com",
    ),
)

QUICKSTART_HTML = html_page(
    "Quickstart",
    "<h1>Quickstart</h1>"
    "<p>Send your first request in five minutes. Create an API key, then call the users "
    "endpoint.</p>"
    '<pre><code class="language-bash">curl -H "Authorization: Bearer $KEY" '
    "https://api.example.com/v1/users</code></pre>" + FILLER,
    links=("/docs", "/docs/users"),
)

USERS_HTML = html_page(
    "Users",
    "<h1>Users</h1>"
    "<p>The users resource lets you list and create users. Every request needs an API key.</p>"
    "<h2>List users</h2>"
    "<p>GET /v1/users returns a page of users.</p>"
    '<pre><code class="language-bash">curl https://api.example.com/v1/users</code></pre>'
    "<h2>Create a user</h2>"
    "<p>POST /v1/users creates a user and returns it in the response.</p>"
    '<pre><code class="language-json">{"name": "Ada"}</code></pre>' + FILLER,
    links=("/docs", "/docs/quickstart"),
)


def site_routes() -> dict[str, Any]:
    return {
        START_URL: INDEX_HTML,
        QUICKSTART_URL: QUICKSTART_HTML,
        USERS_URL: USERS_HTML,
    }


USERS_ENDPOINTS = [
    {
        "method": "get",
        "path": "/v1/users",
        "title": "List users",
        "description": "Returns a page of users.",
        "parameters": [{"name": "limit", "in": "query", "type": "integer"}],
        "responses": [{"status": 200, "description": "OK"}],
        "codeExamples": [{"language": "bash", "code": "curl https://api.example.com/v1/users"}],
    },
    {
        "method": "POST",
        "path": "/v1/users",
        "requestBody": {"example": {"name": "Ada"}},
    },
    {"method": "FETCH", "path": "/v1/users"},
    {"method": "GET", "path": "v1/users"},
]

QUICKSTART_ENDPOINTS = [
    {"method": "GET", "path": "/v1/users", "title": "Fetch users (quickstart)"},
]


class FakeCompletionClient:
    """Answers extraction prompts from a URL-keyed table of responses.

    Values are raw response text or an exception to raise. Tracks the peak
    number of concurrent calls.
    """

    def __init__(self, responses: dict[str, Any] | None = None, *, delay: float = 0.0) -> None:
        self.responses = dict(responses or {})
        self.delay = delay
        self.prompts: list[str] = []
        self.calls: list[tuple[str, float, float]] = []
        self.max_active = 0
        self._active = 0
        self._lock = threading.Lock()

    @staticmethod
    def url_of(prompt: str) -> str:
        for line in prompt.splitlines():
            if line.startswith("URL: "):
                return line[len("URL: ") :].strip()
        return ""

    def complete(self, system: str, prompt: str) -> str | None:
        url = self.url_of(prompt)
        with self._lock:
            self.prompts.append(prompt)
            self._active += 1
            self.max_active = max(self.max_active, self._active)
        started = time.monotonic()
        try:
            if self.delay:
                time.sleep(self.delay)
            value = self.responses.get(url, "[]")
            if isinstance(value, Exception):
                raise value
            return value
        finally:
            with self._lock:
                self._active -= 1
                self.calls.append((url, started, time.monotonic()))


@pytest.fixture
def crawl_config() -> CrawlConfig:
    return CrawlConfig(max_pages=10, retries=0, request_delay_seconds=0.0)


@pytest.fixture
def site_session() -> FakeSession:
    return FakeSession(site_routes())


@pytest.fixture
def site_fetcher(crawl_config: CrawlConfig, site_session: FakeSession) -> Fetcher:
    return Fetcher(crawl_config, session=site_session)


@pytest.fixture
def extraction_client() -> FakeCompletionClient:
    return FakeCompletionClient(
        {
            USERS_URL: "Here are the endpoints:\n" + json.dumps(USERS_ENDPOINTS),
            QUICKSTART_URL: json.dumps(QUICKSTART_ENDPOINTS),
        }
    )
