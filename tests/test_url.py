"""Tests for URL normalization, classification, and link extraction."""

from __future__ import annotations

import re

import pytest

from docingest.crawler.types import UrlClass
from docingest.crawler.url import (
    base_domain,
    classify_url,
    extract_links,
    is_same_domain,
    normalize_url,
    resolve_url,
)


class TestNormalizeUrl:
    def test_lowercases_and_drops_fragment_and_trailing_slash(self):
        assert normalize_url("https://Docs.Example.com/Guide/Intro/#setup") == (
            "https://docs.example.com/guide/intro"
        )

    def test_root_path_is_kept(self):
        assert normalize_url("https://example.com") == "https://example.com/"
        assert normalize_url("https://example.com/") == "https://example.com/"

    def test_strips_tracking_parameters(self):
        url = "https://example.com/docs?utm_source=x&utm_medium=y&fbclid=1&gclid=2&ref=nav&source=tw"
        assert normalize_url(url) == "https://example.com/docs"

    def test_keeps_meaningful_parameters_sorted(self):
        assert normalize_url("https://example.com/docs?version=2&lang=py&utm_campaign=z") == (
            "https://example.com/docs?lang=py&version=2"
        )

    def test_drops_default_port_and_collapses_slashes(self):
        assert normalize_url("https://example.com:443//docs//api/") == "https://example.com/docs/api"
        assert normalize_url("http://example.com:8080/docs") == "http://example.com:8080/docs"

    @pytest.mark.parametrize(
        "url",
        [
            "https://Example.com/Docs/?utm_source=a#top",
            "https://example.com/a//b/?z=1&a=2",
            "http://example.com:80/x/y/",
            "https://example.com/path%2Fwith%2Fescapes?q=A%20B",
        ],
    )
    def test_idempotent(self, url):
        once = normalize_url(url)
        assert once is not None
        assert normalize_url(once) == once

    @pytest.mark.parametrize("url", [None, "", "   ", "/relative/path", "ftp://example.com/file", "mailto:a@b.c"])
    def test_invalid_urls_return_none(self, url):
        assert normalize_url(url) is None

    def test_variants_share_a_key(self):
        keys = {
            normalize_url("https://docs.example.com/docs/quickstart"),
            normalize_url("https://docs.example.com/docs/quickstart/"),
            normalize_url("https://docs.example.com/docs/quickstart#intro"),
            normalize_url("https://DOCS.example.com/docs/Quickstart?utm_source=nav"),
        }
        assert len(keys) == 1


class TestResolveUrl:
    def test_resolves_relative_and_drops_fragment(self):
        assert resolve_url("https://example.com/docs/guide", "../api/Users#list") == (
            "https://example.com/api/Users"
        )

    @pytest.mark.parametrize("href", [None, "", "#top", "javascript:void(0)", "mailto:x@y.z", "tel:123", "data:text/plain,hi"])
    def test_rejects_non_navigational_hrefs(self, href):
        assert resolve_url("https://example.com/docs", href) is None


class TestClassifyUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/logo.png",
            "https://example.com/static/app.css",
            "https://example.com/_next/data.json",
            "https://example.com/login",
            "https://example.com/account",
            "https://example.com/cart",
            "https://example.com/search?q=x",
            "https://example.com/feed",
        ],
    )
    def test_non_content(self, url):
        assert classify_url(url) == UrlClass.NON_CONTENT

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/blog/launch",
            "https://example.com/pricing",
            "https://example.com/privacy",
            "https://example.com/careers/engineer",
        ],
    )
    def test_low_relevance(self, url):
        assert classify_url(url) == UrlClass.LOW_RELEVANCE

    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/docs/authentication",
            "https://example.com/docs/api/orders",
            "https://example.com/guides/getting-started",
        ],
    )
    def test_documentation_pages_are_content(self, url):
        assert classify_url(url) == UrlClass.CONTENT

    def test_user_exclude_patterns(self):
        patterns = [re.compile(r"/v1/", re.IGNORECASE)]
        assert classify_url("https://example.com/docs/v1/users", exclude_patterns=patterns) == UrlClass.EXCLUDED
        assert classify_url("https://example.com/docs/v2/users", exclude_patterns=patterns) == UrlClass.CONTENT

    def test_invalid(self):
        assert classify_url("not a url") == UrlClass.INVALID


class TestDomains:
    def test_base_domain_strips_www(self):
        assert base_domain("https://www.Example.com/docs") == "example.com"

    def test_same_domain_accepts_subdomains(self):
        assert is_same_domain("https://api.example.com/x", "example.com")
        assert is_same_domain("https://example.com/x", "example.com")
        assert not is_same_domain("https://example.org/x", "example.com")
        assert not is_same_domain("https://notexample.com/x", "example.com")

    def test_extra_domains(self):
        assert is_same_domain("https://cdn-docs.io/page", "example.com", extra_domains=["cdn-docs.io"])


class TestExtractLinks:
    def test_same_domain_content_links_in_document_order(self):
        html = """
        <html><body>
          <a href="/docs/b">B</a>
          <a href="/docs/a#part">A</a>
          <a href="/docs/a/">A again</a>
          <a href="https://other.org/docs">Other</a>
          <a href="/static/site.css">CSS</a>
          <a href="javascript:void(0)">JS</a>
          <map><area href="/docs/c"></map>
        </body></html>
        """
        links = extract_links(html, base_url="https://example.com/docs/", domain="example.com")
        assert links == [
            "https://example.com/docs/b",
            "https://example.com/docs/a",
            "https://example.com/docs/c",
        ]
