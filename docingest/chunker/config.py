"""Chunker configuration loading and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..crawler.config import load_mapping, save_mapping
from ..crawler.types import JSONDict


DEFAULT_MAX_CHUNK_TOKENS = 500
DEFAULT_CHARS_PER_TOKEN = 4
DEFAULT_DOCUMENT_TITLE = "Document"


@dataclass(slots=True)
class ChunkerConfig:
    """Size limits for chunks handed to the index stage."""

    max_chunk_tokens: int = DEFAULT_MAX_CHUNK_TOKENS
    chars_per_token: int = DEFAULT_CHARS_PER_TOKEN
    default_title: str = DEFAULT_DOCUMENT_TITLE

    def __post_init__(self) -> None:
        if self.max_chunk_tokens <= 0:
            raise ValueError("max_chunk_tokens must be > 0")
        if self.chars_per_token <= 0:
            raise ValueError("chars_per_token must be > 0")
        self.default_title = str(self.default_title or "").strip() or DEFAULT_DOCUMENT_TITLE

    @property
    def max_chunk_chars(self) -> int:
        """Largest text length whose token estimate stays within the limit."""

        return self.max_chunk_tokens * self.chars_per_token

    def to_dict(self) -> JSONDict:
        return {
            "max_chunk_tokens": self.max_chunk_tokens,
            "chars_per_token": self.chars_per_token,
            "default_title": self.default_title,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ChunkerConfig":
        return cls(
            max_chunk_tokens=int(payload.get("max_chunk_tokens", DEFAULT_MAX_CHUNK_TOKENS)),
            chars_per_token=int(payload.get("chars_per_token", DEFAULT_CHARS_PER_TOKEN)),
            default_title=str(payload.get("default_title") or DEFAULT_DOCUMENT_TITLE),
        )


def load_config(path: str | Path) -> ChunkerConfig:
    """Load chunker config from JSON/YAML file."""

    return ChunkerConfig.from_dict(load_mapping(path))


def save_config(config: ChunkerConfig, path: str | Path) -> None:
    """Save chunker config as JSON or YAML based on output file extension."""

    save_mapping(config.to_dict(), path)


__all__ = [
    "ChunkerConfig",
    "DEFAULT_CHARS_PER_TOKEN",
    "DEFAULT_MAX_CHUNK_TOKENS",
    "load_config",
    "save_config",
]
