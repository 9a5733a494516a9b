"""Chunker package: markdown block parsing and heading-aware chunking."""

from .chunk import (
    Chunker,
    chunk_pages,
    document_title,
    estimate_tokens,
    index_records,
    make_chunk_id,
    split_large_chunk,
)
from .config import ChunkerConfig
from .markdown import extract_code_blocks, parse_markdown
from .types import Chunk, ChunkType, CodeBlock, Node, NodeKind

__all__ = [
    "Chunk",
    "ChunkType",
    "Chunker",
    "ChunkerConfig",
    "CodeBlock",
    "Node",
    "NodeKind",
    "chunk_pages",
    "document_title",
    "estimate_tokens",
    "extract_code_blocks",
    "index_records",
    "make_chunk_id",
    "parse_markdown",
    "split_large_chunk",
]
