"""Heading-aware markdown chunking.

Walk the parsed block list keeping a heading-ancestry stack and a text buffer:

1) a heading flushes the buffer, pops ancestors at or below its level and
   starts a new buffer with the heading line
2) a code block flushes the buffer and becomes its own fenced chunk
3) paragraphs, lists, blockquotes and tables append to the buffer
4) any flushed unit over the token budget is split at line boundaries
"""

from __future__ import annotations

import hashlib
import logging
import math
import re
import textwrap
from dataclasses import dataclass, field
from typing import Iterable

from ..crawler.types import CrawledPage, CrawlStage, ErrorRecord, JSONDict
from .config import DEFAULT_CHARS_PER_TOKEN, ChunkerConfig
from .markdown import parse_markdown
from .types import Chunk, ChunkType, NodeKind


LOGGER = logging.getLogger(__name__)

_ID_UNSAFE_RE = re.compile(r"[/.]")
_DOC_SUFFIX_RE = re.compile(r"\.(md|mdx)$", flags=re.IGNORECASE)
_BACKTICK_RUN_RE = re.compile(r"`+")


def estimate_tokens(text: str, chars_per_token: int = DEFAULT_CHARS_PER_TOKEN) -> int:
    return math.ceil(len(text or "") / chars_per_token)


def make_chunk_id(path: str, index: int, content: str) -> str:
    """Stable id: same path, ordinal and text always give the same id."""

    digest = hashlib.md5(f"{path}:{index}:{content}".encode("utf-8")).hexdigest()[:8]
    return f"{_ID_UNSAFE_RE.sub('-', path)}-{index}-{digest}"


def document_title(path: str, default: str = "Document") -> str:
    segment = (path or "").rstrip("/").split("/")[-1]
    return _DOC_SUFFIX_RE.sub("", segment) or default


def _split_long_line(line: str, max_chars: int) -> list[str]:
    if len(line) <= max_chars:
        return [line]
    # Prefer whitespace breaks; words longer than the budget are hard-cut.
    return textwrap.wrap(
        line,
        width=max_chars,
        expand_tabs=False,
        replace_whitespace=False,
        break_long_words=True,
        break_on_hyphens=False,
    ) or [line[:max_chars]]


def split_large_chunk(text: str, max_chars: int) -> list[str]:
    """Split text into pieces of at most `max_chars` characters.

    Lines are accumulated until the next one would overflow; a line is only
    broken when it alone exceeds the budget.
    """

    if max_chars <= 0:
        raise ValueError("max_chars must be > 0")

    pieces: list[str] = []
    current: list[str] = []
    current_len = 0

    for line in text.split("\n"):
        for segment in _split_long_line(line, max_chars):
            added = len(segment) + (1 if current else 0)
            if current and current_len + added > max_chars:
                pieces.append("\n".join(current))
                current = []
                current_len = 0
                added = len(segment)
            current.append(segment)
            current_len += added

    if current:
        pieces.append("\n".join(current))

    return [piece.strip() for piece in pieces if piece.strip()]


def _fence_for(code: str) -> str:
    longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(code)), default=0)
    return "`" * max(3, longest + 1)


def _render_code(code: str, language: str | None) -> str:
    fence = _fence_for(code)
    return f"{fence}{language or ''}\n{code}\n{fence}"


@dataclass(slots=True)
class _HeadingEntry:
    level: int
    text: str


@dataclass(slots=True)
class _ChunkState:
    path: str
    document_title: str
    chunks: list[Chunk] = field(default_factory=list)
    headings: list[_HeadingEntry] = field(default_factory=list)
    buffer: list[str] = field(default_factory=list)
    current_title: str = ""

    @property
    def title(self) -> str:
        return self.current_title or self.document_title

    @property
    def hierarchy(self) -> list[str]:
        return [entry.text for entry in self.headings]


class Chunker:
    """Turn one page of markdown into retrieval-sized chunks."""

    def __init__(self, config: ChunkerConfig | None = None) -> None:
        self.config = config or ChunkerConfig()

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text, self.config.chars_per_token)

    def chunk(self, page_text: str, path: str, title: str | None = None) -> list[Chunk]:
        state = _ChunkState(
            path=path,
            document_title=(title or "").strip() or document_title(path, self.config.default_title),
        )

        for node in parse_markdown(page_text):
            if node.kind == NodeKind.HEADING:
                self._flush_text(state)
                while state.headings and state.headings[-1].level >= node.level:
                    state.headings.pop()
                state.headings.append(_HeadingEntry(level=node.level, text=node.text))
                state.current_title = node.text
                state.buffer.append("#" * node.level + " " + node.text)
            elif node.kind == NodeKind.CODE:
                self._flush_text(state)
                self._emit_code(state, node.text, node.language)
            elif node.text.strip():
                state.buffer.append(node.text)

        self._flush_text(state)
        LOGGER.debug("Chunked %s into %d chunks", path, len(state.chunks))
        return state.chunks

    def _flush_text(self, state: _ChunkState) -> None:
        content = "\n\n".join(state.buffer).strip()
        state.buffer = []
        if not content:
            return

        if self.estimate_tokens(content) <= self.config.max_chunk_tokens:
            self._append(state, content, ChunkType.TEXT, None)
            return

        for piece in split_large_chunk(content, self.config.max_chunk_chars):
            self._append(state, piece, ChunkType.TEXT, None)

    def _emit_code(self, state: _ChunkState, code: str, language: str | None) -> None:
        if not code.strip():
            return

        rendered = _render_code(code, language)
        if self.estimate_tokens(rendered) <= self.config.max_chunk_tokens:
            self._append(state, rendered, ChunkType.CODE, language)
            return

        # Re-fence every piece so each code chunk stays a valid fenced block.
        # A piece never holds a longer backtick run than the whole block, so
        # the block's fence bounds every piece's fence.
        overhead = 2 * len(_fence_for(code)) + len(language or "") + 2
        budget = max(1, self.config.max_chunk_chars - overhead)
        for piece in split_large_chunk(code, budget):
            self._append(state, _render_code(piece, language), ChunkType.CODE, language)

    def _append(
        self,
        state: _ChunkState,
        content: str,
        chunk_type: ChunkType,
        language: str | None,
    ) -> None:
        index = len(state.chunks)
        state.chunks.append(
            Chunk(
                id=make_chunk_id(state.path, index, content),
                content=content,
                title=state.title,
                type=chunk_type,
                file_path=state.path,
                heading_hierarchy=state.hierarchy,
                token_count=self.estimate_tokens(content),
                code_language=language,
            )
        )


def chunk_pages(
    pages: Iterable[CrawledPage],
    config: ChunkerConfig | None = None,
) -> tuple[list[Chunk], list[ErrorRecord]]:
    """Chunk every page; a page that fails is recorded and skipped."""

    chunker = Chunker(config)
    chunks: list[Chunk] = []
    errors: list[ErrorRecord] = []

    for page in pages:
        try:
            chunks.extend(chunker.chunk(page.content, page.path, title=page.title))
        except Exception as exc:
            LOGGER.warning("Chunking failed for %s: %s", page.url, exc)
            errors.append(ErrorRecord.from_exception(stage=CrawlStage.CHUNK, url=page.url, exc=exc))

    return chunks, errors


def index_records(chunks: Iterable[Chunk]) -> list[JSONDict]:
    """Hand-off records for the embedding/upsert stage.

    `chunk_index` is the ordinal of the chunk within its source file.
    """

    counters: dict[str, int] = {}
    records: list[JSONDict] = []
    for chunk in chunks:
        index = counters.get(chunk.file_path, 0)
        counters[chunk.file_path] = index + 1
        records.append({"id": chunk.id, "metadata": chunk.index_metadata(index)})
    return records


__all__ = [
    "Chunker",
    "chunk_pages",
    "document_title",
    "estimate_tokens",
    "index_records",
    "make_chunk_id",
    "split_large_chunk",
]
