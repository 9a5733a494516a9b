"""Tests for heading-aware chunking."""

from __future__ import annotations

import hashlib
from unittest import mock

import pytest

from docingest.chunker import (
    Chunker,
    ChunkerConfig,
    ChunkType,
    chunk_pages,
    estimate_tokens,
    index_records,
    make_chunk_id,
    split_large_chunk,
)
from docingest.crawler.types import CrawledPage, CrawlStage


GUIDE = """# Guide

Intro text.

## Install

Run it.

### Linux

Use apt.

## Configure

Set it.
"""


def _page(url: str, content: str) -> CrawledPage:
    path = url.split("example.com", 1)[1]
    return CrawledPage(url=url, path=path, title="Page", content=content, raw_main_html="")


class TestHeadingHierarchy:
    def test_chunks_follow_heading_stack(self):
        chunks = Chunker().chunk(GUIDE, "/docs/guide")

        assert [chunk.content for chunk in chunks] == [
            "# Guide\n\nIntro text.",
            "## Install\n\nRun it.",
            "### Linux\n\nUse apt.",
            "## Configure\n\nSet it.",
        ]
        assert [chunk.heading_hierarchy for chunk in chunks] == [
            ["Guide"],
            ["Guide", "Install"],
            ["Guide", "Install", "Linux"],
            ["Guide", "Configure"],
        ]
        assert [chunk.title for chunk in chunks] == ["Guide", "Install", "Linux", "Configure"]
        assert all(chunk.type == ChunkType.TEXT for chunk in chunks)

    def test_sibling_heading_replaces_same_level(self):
        chunks = Chunker().chunk("## A\n\none\n\n## B\n\ntwo", "/p")
        assert [chunk.heading_hierarchy for chunk in chunks] == [["A"], ["B"]]

    def test_heading_only_section_is_kept(self):
        chunks = Chunker().chunk("# Lonely\n\n# Next\n\nBody", "/p")
        assert [chunk.content for chunk in chunks] == ["# Lonely", "# Next\n\nBody"]


class TestCodeChunks:
    def test_code_is_its_own_chunk(self):
        text = "# API\n\nCall it:\n\n```python\nprint('hi')\n```\n\nAfter."
        chunks = Chunker().chunk(text, "/docs/api")

        assert [chunk.type for chunk in chunks] == [ChunkType.TEXT, ChunkType.CODE, ChunkType.TEXT]
        code = chunks[1]
        assert code.content == "```python\nprint('hi')\n```"
        assert code.code_language == "python"
        assert code.heading_hierarchy == ["API"]
        assert chunks[0].content == "# API\n\nCall it:"
        assert chunks[2].content == "After."
        assert chunks[2].title == "API"

    def test_code_without_language(self):
        chunks = Chunker().chunk("```\nls -la\n```", "/p")
        assert chunks[0].content == "```\nls -la\n```"
        assert chunks[0].code_language is None

    def test_empty_code_block_is_dropped(self):
        assert Chunker().chunk("```\n```", "/p") == []

    def test_oversized_code_is_split_into_fenced_pieces(self):
        code = "\n".join(f"line_{i} = compute({i})" for i in range(400))
        chunks = Chunker().chunk(f"```python\n{code}\n```", "/p")

        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.type == ChunkType.CODE
            assert chunk.content.startswith("```python\n")
            assert chunk.content.endswith("\n```")
            assert chunk.token_count <= 500

    def test_oversized_code_with_inner_fences_stays_bounded(self):
        text = "````\n```\n" + "a\n" * 2000 + "````"
        chunks = Chunker().chunk(text, "/docs/md")

        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.type == ChunkType.CODE
            assert estimate_tokens(chunk.content) <= 500
            assert chunk.token_count <= 500
            assert len(chunk.content) <= 2000
        assert chunks[0].content.startswith("````\n```\n")


class TestTokenBound:
    def test_estimate_tokens(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2

    def test_long_section_is_split_at_lines(self):
        lines = [f"Line {i}: " + "word " * 20 for i in range(200)]
        chunks = Chunker().chunk("# Big\n\n" + "\n".join(lines), "/docs/big")

        assert len(chunks) > 1
        for chunk in chunks:
            assert chunk.token_count <= 500
            assert len(chunk.content) <= 2000
            assert chunk.heading_hierarchy == ["Big"]
        joined = "\n".join(chunk.content for chunk in chunks)
        assert "Line 0:" in joined and "Line 199:" in joined

    def test_single_huge_line_is_still_bounded(self):
        chunks = Chunker().chunk("x" * 5000, "/p")
        assert [len(chunk.content) for chunk in chunks] == [2000, 2000, 1000]

    def test_custom_limits(self):
        config = ChunkerConfig(max_chunk_tokens=10, chars_per_token=2)
        chunks = Chunker(config).chunk("alpha beta gamma delta epsilon zeta eta theta", "/p")
        assert all(len(chunk.content) <= 20 for chunk in chunks)
        assert " ".join(chunk.content for chunk in chunks) == "alpha beta gamma delta epsilon zeta eta theta"

    def test_split_large_chunk_keeps_lines_whole(self):
        pieces = split_large_chunk("aaaa\nbbbb\ncccc", 9)
        assert pieces == ["aaaa\nbbbb", "cccc"]

    def test_split_large_chunk_rejects_zero_budget(self):
        with pytest.raises(ValueError):
            split_large_chunk("text", 0)


class TestChunkIds:
    def test_id_format(self):
        expected_hash = hashlib.md5(b"/docs/users.md:3:hello").hexdigest()[:8]
        assert make_chunk_id("/docs/users.md", 3, "hello") == f"-docs-users-md-3-{expected_hash}"

    def test_ids_are_deterministic(self):
        first = [chunk.id for chunk in Chunker().chunk(GUIDE, "/docs/guide")]
        second = [chunk.id for chunk in Chunker().chunk(GUIDE, "/docs/guide")]
        assert first == second
        assert len(set(first)) == len(first)

    def test_ids_change_with_content(self):
        first = Chunker().chunk("# A\n\none", "/p")[0].id
        second = Chunker().chunk("# A\n\ntwo", "/p")[0].id
        assert first != second


class TestTitles:
    def test_title_from_path(self):
        assert Chunker().chunk("Just text.", "guides/setup.mdx")[0].title == "setup"

    def test_default_title(self):
        assert Chunker().chunk("Just text.", "")[0].title == "Document"

    def test_explicit_title(self):
        assert Chunker().chunk("Just text.", "/p", title="My Page")[0].title == "My Page"

    def test_empty_document(self):
        assert Chunker().chunk("", "/p") == []


class TestChunkPages:
    def test_chunks_every_page(self):
        pages = [
            _page("https://example.com/a", "# A\n\nalpha"),
            _page("https://example.com/b", "# B\n\nbeta"),
        ]
        chunks, errors = chunk_pages(pages)

        assert [chunk.file_path for chunk in chunks] == ["/a", "/b"]
        assert errors == []

    def test_failure_is_recorded_per_page(self):
        pages = [
            _page("https://example.com/a", "# A\n\nalpha"),
            _page("https://example.com/b", "# B\n\nbeta"),
        ]
        original = Chunker.chunk

        def flaky(self, page_text, path, title=None):
            if path == "/a":
                raise RuntimeError("parser exploded")
            return original(self, page_text, path, title=title)

        with mock.patch.object(Chunker, "chunk", flaky):
            chunks, errors = chunk_pages(pages)

        assert [chunk.file_path for chunk in chunks] == ["/b"]
        assert len(errors) == 1
        assert errors[0].stage == CrawlStage.CHUNK
        assert errors[0].url == "https://example.com/a"
        assert errors[0].error_type == "RuntimeError"


class TestIndexRecords:
    def test_chunk_index_counts_within_each_file(self):
        chunks = Chunker().chunk(GUIDE, "/docs/guide") + Chunker().chunk("# Other\n\ntext", "/docs/other")
        records = index_records(chunks)

        assert [record["id"] for record in records] == [chunk.id for chunk in chunks]
        assert [(r["metadata"]["file_path"], r["metadata"]["chunk_index"]) for r in records] == [
            ("/docs/guide", 0),
            ("/docs/guide", 1),
            ("/docs/guide", 2),
            ("/docs/guide", 3),
            ("/docs/other", 0),
        ]
        assert records[1]["metadata"] == {
            "file_path": "/docs/guide",
            "chunk_index": 1,
            "title": "Install",
            "type": "text",
            "content": "## Install\n\nRun it.",
        }
