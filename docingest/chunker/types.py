"""Shared type definitions for the chunker.

Markdown is parsed into a flat list of `Node` values drawn from a closed set
of kinds; the chunker dispatches on `Node.kind`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..crawler.types import JSONDict


class ChunkType(str, Enum):
    TEXT = "text"
    CODE = "code"


class NodeKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    TABLE = "table"


@dataclass(frozen=True, slots=True)
class Node:
    """One top-level markdown block.

    `text` is the rendered flat form: heading text without `#` markers, code
    body without fences, list/blockquote/table lines as written.
    """

    kind: NodeKind
    text: str
    level: int = 0
    language: str | None = None


@dataclass(frozen=True, slots=True)
class Chunk:
    """One retrieval-sized unit of a page, handed to the embedding/index stage."""

    id: str
    content: str
    title: str
    type: ChunkType
    file_path: str
    heading_hierarchy: list[str] = field(default_factory=list)
    token_count: int = 0
    code_language: str | None = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "Chunk":
        chunk_id = payload.get("id")
        if not isinstance(chunk_id, str) or not chunk_id:
            raise ValueError("Missing required chunk field: 'id'")
        language = payload.get("code_language")
        return cls(
            id=chunk_id,
            content=str(payload.get("content") or ""),
            title=str(payload.get("title") or ""),
            type=ChunkType(str(payload.get("type") or ChunkType.TEXT.value)),
            file_path=str(payload.get("file_path") or ""),
            heading_hierarchy=[str(item) for item in payload.get("heading_hierarchy") or []],
            token_count=int(payload.get("token_count") or 0),
            code_language=None if language is None else str(language),
        )

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "content": self.content,
            "title": self.title,
            "type": self.type.value,
            "file_path": self.file_path,
            "heading_hierarchy": list(self.heading_hierarchy),
            "code_language": self.code_language,
            "token_count": self.token_count,
        }

    def index_metadata(self, chunk_index: int) -> JSONDict:
        """Metadata expected by the downstream embedding/upsert stage."""

        return {
            "file_path": self.file_path,
            "chunk_index": chunk_index,
            "title": self.title,
            "type": self.type.value,
            "content": self.content,
        }


@dataclass(frozen=True, slots=True)
class CodeBlock:
    content: str
    language: str
    file_path: str


__all__ = [
    "Chunk",
    "ChunkType",
    "CodeBlock",
    "Node",
    "NodeKind",
]
