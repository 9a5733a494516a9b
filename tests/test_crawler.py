"""Tests for the breadth-first crawl loop."""

from __future__ import annotations

from unittest import mock

import pytest
import requests

from docingest.crawler import CrawlConfig, Crawler, CrawlEventType, CrawlStage, Fetcher

from conftest import (
    FILLER,
    INDEX_HTML,
    QUICKSTART_URL,
    SITE_ROOT,
    START_URL,
    USERS_URL,
    FakeResponse,
    FakeSession,
    html_page,
    site_routes,
)


def _crawler(config: CrawlConfig, session: FakeSession) -> Crawler:
    return Crawler(config, fetcher=Fetcher(config, session=session))


class TestCrawl:
    def test_crawls_documentation_pages_breadth_first(self, crawl_config, site_session):
        result = _crawler(crawl_config, site_session).crawl(START_URL)

        assert [page.url for page in result.pages] == [START_URL, QUICKSTART_URL, USERS_URL]
        assert result.errors == []
        assert result.pages[2].title == "Users"
        assert result.pages[2].path == "/docs/users"
        assert result.pages[2].content.startswith("# Users")
        assert "```bash" in result.pages[2].content

    def test_only_content_urls_are_fetched(self, crawl_config, site_session):
        _crawler(crawl_config, site_session).crawl(START_URL)

        assert site_session.calls == [START_URL, QUICKSTART_URL, USERS_URL]

    def test_sends_client_identity_header(self, crawl_config, site_session):
        _crawler(crawl_config, site_session).crawl(START_URL)

        assert site_session.headers_seen[0]["User-Agent"] == crawl_config.user_agent

    def test_low_relevance_links_are_skipped_without_fetch(self, crawl_config, site_session):
        result = _crawler(crawl_config, site_session).crawl(START_URL)

        assert f"{SITE_ROOT}/blog/announcing-v2" not in site_session.calls
        assert result.stats.skipped_url_pattern >= 1

    def test_fetch_failure_is_recorded_and_crawl_continues(self, crawl_config):
        routes = site_routes()
        routes[QUICKSTART_URL] = FakeResponse(QUICKSTART_URL, 500, "boom")
        result = _crawler(crawl_config, FakeSession(routes)).crawl(START_URL)

        assert [page.url for page in result.pages] == [START_URL, USERS_URL]
        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.stage == CrawlStage.FETCH
        assert error.url == QUICKSTART_URL
        assert error.status_code == 500
        assert str(error) == f"{QUICKSTART_URL}: HTTP 500"

    def test_non_html_response_is_an_error(self, crawl_config):
        routes = site_routes()
        routes[USERS_URL] = FakeResponse(USERS_URL, 200, "binary", "application/octet-stream")
        result = _crawler(crawl_config, FakeSession(routes)).crawl(START_URL)

        assert [error.message for error in result.errors] == ["Not HTML: application/octet-stream"]

    def test_transport_error_is_recorded(self, crawl_config):
        routes = site_routes()
        routes[USERS_URL] = requests.ConnectionError("connection refused")
        result = _crawler(crawl_config, FakeSession(routes)).crawl(START_URL)

        assert len(result.pages) == 2
        assert result.errors[0].url == USERS_URL
        assert "connection refused" in result.errors[0].message

    def test_redirect_target_is_not_fetched_twice(self, crawl_config):
        start_alias = f"{SITE_ROOT}/docs/start"
        routes = site_routes()
        routes[START_URL] = INDEX_HTML.replace('href="/docs/quickstart#intro"', f'href="{start_alias}"')
        session = FakeSession(routes, redirects={start_alias: QUICKSTART_URL})

        result = _crawler(crawl_config, session).crawl(START_URL)

        assert session.calls.count(start_alias) == 1
        assert QUICKSTART_URL not in session.calls
        assert [page.url for page in result.pages].count(QUICKSTART_URL) == 1

    def test_duplicate_content_is_suppressed(self, crawl_config):
        routes = site_routes()
        routes[USERS_URL] = routes[QUICKSTART_URL]
        result = _crawler(crawl_config, FakeSession(routes)).crawl(START_URL)

        assert [page.url for page in result.pages] == [START_URL, QUICKSTART_URL]
        assert result.stats.skipped_duplicate == 1
        assert result.errors == []

    def test_non_documentation_page_still_contributes_links(self, crawl_config):
        routes = site_routes()
        routes[START_URL] = html_page(
            "Welcome",
            "<p>Hello there, friend. Nothing to see on this page.</p>",
            links=("/docs/users",),
        )
        result = _crawler(crawl_config, FakeSession(routes)).crawl(START_URL)

        assert [page.url for page in result.pages] == [USERS_URL, QUICKSTART_URL]
        assert result.stats.skipped_not_docs == 1

    def test_short_content_is_skipped(self, crawl_config):
        routes = site_routes()
        routes[QUICKSTART_URL] = html_page(
            "Quickstart",
            "<h1>Quickstart</h1><p>API example.</p>",
            links=("/docs",),
        )
        result = _crawler(crawl_config, FakeSession(routes)).crawl(START_URL)

        assert QUICKSTART_URL not in [page.url for page in result.pages]
        assert result.stats.skipped_too_short == 1

    def test_page_cap(self, site_session):
        config = CrawlConfig(max_pages=2, retries=0, request_delay_seconds=0.0)
        result = _crawler(config, site_session).crawl(START_URL)

        assert len(result.pages) == 2
        assert USERS_URL not in site_session.calls

    def test_max_pages_argument_overrides_config(self, crawl_config, site_session):
        result = _crawler(crawl_config, site_session).crawl(START_URL, max_pages=1)

        assert [page.url for page in result.pages] == [START_URL]

    def test_exclude_patterns(self, site_session):
        config = CrawlConfig(retries=0, request_delay_seconds=0.0, exclude_patterns=[r"/users$"])
        result = _crawler(config, site_session).crawl(START_URL)

        assert USERS_URL not in site_session.calls
        assert len(result.pages) == 2

    def test_events(self, crawl_config, site_session):
        events = []
        _crawler(crawl_config, site_session).crawl(START_URL, on_event=events.append)

        types = [event.type for event in events]
        assert types.count(CrawlEventType.EXTRACTED) == 3
        assert types[-1] == CrawlEventType.COMPLETE
        assert events[-1].page_count == 3
        assert CrawlEventType.NAVIGATING in types

    @pytest.mark.parametrize("start_url", ["", "   ", "docs.example.com/docs", "ftp://example.com"])
    def test_invalid_start_url_raises(self, crawl_config, site_session, start_url):
        with pytest.raises(ValueError):
            _crawler(crawl_config, site_session).crawl(start_url)

    def test_single_page_site(self, crawl_config):
        html = html_page("Solo", "<h1>Solo reference</h1><p>API example request.</p>" + FILLER)
        result = _crawler(crawl_config, FakeSession({START_URL: html})).crawl(START_URL)

        assert len(result.pages) == 1
        assert result.stats.pages_kept == 1


class TestRepeatedCrawls:
    def test_owned_fetcher_is_created_per_crawl(self, crawl_config):
        sessions = []

        def make_fetcher(config):
            session = FakeSession(site_routes())
            sessions.append(session)
            return Fetcher(config, session=session)

        crawler = Crawler(crawl_config)
        with mock.patch("docingest.crawler.pipeline.Fetcher", side_effect=make_fetcher):
            first = crawler.crawl(START_URL)
            second = crawler.crawl(START_URL)

        assert len(first.pages) == 3
        assert len(second.pages) == 3
        assert second.errors == []
        assert len(sessions) == 2

    def test_injected_fetcher_stays_open_between_crawls(self, crawl_config, site_fetcher):
        crawler = Crawler(crawl_config, fetcher=site_fetcher)

        first = crawler.crawl(START_URL)
        second = crawler.crawl(START_URL)

        assert [page.url for page in first.pages] == [page.url for page in second.pages]
        assert second.errors == []
