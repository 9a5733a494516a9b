"""Run-level configuration bundling the crawl, chunk and extraction sections.

A config file is a JSON/YAML mapping with optional sections:

    crawl:      CrawlConfig fields
    chunker:    ChunkerConfig fields
    extractor:  ExtractorConfig fields
    llm:        model, max_tokens, timeout_seconds
    extract_endpoints, enhance: booleans
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from .chunker.config import ChunkerConfig
from .crawler.config import CrawlConfig, load_mapping, save_mapping
from .crawler.types import JSONDict
from .endpoints.client import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from .endpoints.extractor import ExtractorConfig


def _section(payload: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = payload.get(key)
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Config section '{key}' must be a mapping")
    return value


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


@dataclass(slots=True)
class LLMConfig:
    model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    timeout_seconds: float | None = None

    def __post_init__(self) -> None:
        self.model = str(self.model or "").strip() or DEFAULT_MODEL
        if self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0 when set")

    def to_dict(self) -> JSONDict:
        return {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "timeout_seconds": self.timeout_seconds,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "LLMConfig":
        timeout = payload.get("timeout_seconds")
        return cls(
            model=str(payload.get("model") or DEFAULT_MODEL),
            max_tokens=int(payload.get("max_tokens", DEFAULT_MAX_TOKENS)),
            timeout_seconds=None if timeout is None else float(timeout),
        )


@dataclass(slots=True)
class IngestConfig:
    """Top-level ingest configuration."""

    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    chunker: ChunkerConfig = field(default_factory=ChunkerConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)

    extract_endpoints: bool = True
    enhance: bool = False

    def to_dict(self) -> JSONDict:
        return {
            "crawl": self.crawl.to_dict(),
            "chunker": self.chunker.to_dict(),
            "extractor": self.extractor.to_dict(),
            "llm": self.llm.to_dict(),
            "extract_endpoints": self.extract_endpoints,
            "enhance": self.enhance,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "IngestConfig":
        return cls(
            crawl=CrawlConfig.from_dict(_section(payload, "crawl")),
            chunker=ChunkerConfig.from_dict(_section(payload, "chunker")),
            extractor=ExtractorConfig.from_dict(_section(payload, "extractor")),
            llm=LLMConfig.from_dict(_section(payload, "llm")),
            extract_endpoints=_as_bool(
                payload.get("extract_endpoints", True),
                "extract_endpoints",
            ),
            enhance=_as_bool(payload.get("enhance", False), "enhance"),
        )


def load_config(path: str | Path) -> IngestConfig:
    """Load IngestConfig from JSON/YAML path."""

    return IngestConfig.from_dict(load_mapping(path))


def save_config(config: IngestConfig, path: str | Path) -> None:
    """Save IngestConfig as JSON or YAML based on file extension."""

    save_mapping(config.to_dict(), path)


__all__ = [
    "IngestConfig",
    "LLMConfig",
    "load_config",
    "save_config",
]
