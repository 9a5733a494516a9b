"""Tests for config loading, saving and validation."""

from __future__ import annotations

import pytest

from docingest.chunker import ChunkerConfig
from docingest.config import IngestConfig, LLMConfig, load_config, save_config
from docingest.crawler import CrawlConfig
from docingest.crawler.config import load_mapping


class TestIngestConfig:
    @pytest.mark.parametrize("suffix", [".yaml", ".json"])
    def test_round_trip(self, tmp_path, suffix):
        config = IngestConfig(
            crawl=CrawlConfig(max_pages=25, exclude_patterns=[r"/changelog"]),
            chunker=ChunkerConfig(max_chunk_tokens=300),
            llm=LLMConfig(model="gpt-4o", timeout_seconds=30.0),
            enhance=True,
        )
        path = tmp_path / f"ingest{suffix}"
        save_config(config, path)

        loaded = load_config(path)
        assert loaded.to_dict() == config.to_dict()

    def test_missing_sections_use_defaults(self, tmp_path):
        path = tmp_path / "ingest.yaml"
        path.write_text("crawl:\n  max_pages: 5\n", encoding="utf-8")

        config = load_config(path)
        assert config.crawl.max_pages == 5
        assert config.chunker.max_chunk_tokens == 500
        assert config.extractor.batch_size == 5
        assert config.llm.model == "gpt-4o-mini"
        assert config.extract_endpoints is True
        assert config.enhance is False

    def test_empty_yaml_is_default_config(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load_config(path).to_dict() == IngestConfig().to_dict()

    @pytest.mark.parametrize(
        "payload",
        [
            {"crawl": ["not", "a", "mapping"]},
            {"extract_endpoints": "yes"},
            {"crawl": {"max_pages": 0}},
            {"crawl": {"exclude_patterns": ["("]}},
            {"chunker": {"max_chunk_tokens": -1}},
            {"extractor": {"batch_size": 0}},
            {"llm": {"max_tokens": 0}},
            {"llm": {"timeout_seconds": -5}},
        ],
    )
    def test_invalid_values(self, payload):
        with pytest.raises(ValueError):
            IngestConfig.from_dict(payload)


class TestMappingFiles:
    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "ingest.toml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ValueError):
            load_mapping(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "ingest.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError):
            load_mapping(path)


class TestCrawlConfig:
    def test_headers_include_user_agent(self):
        config = CrawlConfig(user_agent="docingest-test/1.0")
        assert config.headers()["User-Agent"] == "docingest-test/1.0"

    def test_user_agent_overrides_default_header(self):
        config = CrawlConfig(user_agent="bot/2", default_headers={"User-Agent": "other", "Accept": "text/html"})
        headers = config.headers()
        assert headers["User-Agent"] == "bot/2"
        assert headers["Accept"] == "text/html"

    def test_single_exclude_string_becomes_list(self):
        config = CrawlConfig.from_dict({"exclude_patterns": "/private"})
        assert config.exclude_patterns == ["/private"]
        assert config.compiled_excludes[0].search("/PRIVATE/x")
