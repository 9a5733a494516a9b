"""Line-oriented markdown block parser.

Produces the top-level blocks of a document (headings, paragraphs, fenced or
indented code, lists, blockquotes, pipe tables) as `Node` values. Inline
markup is kept verbatim; only block structure matters for chunking.
"""

from __future__ import annotations

import re

from .types import CodeBlock, Node, NodeKind


FENCE_OPEN_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*(?P<info>[^\s`]*)[^`]*$")
ATX_HEADING_RE = re.compile(r"^ {0,3}(?P<marks>#{1,6})(?:[ \t]+(?P<text>.*?))?(?:[ \t]+#+)?[ \t]*$")
SETEXT_UNDERLINE_RE = re.compile(r"^ {0,3}(?P<char>=+|-+)[ \t]*$")
THEMATIC_BREAK_RE = re.compile(r"^ {0,3}([-*_])(?:[ \t]*\1){2,}[ \t]*$")
BLOCKQUOTE_RE = re.compile(r"^ {0,3}>")
LIST_ITEM_RE = re.compile(r"^[ \t]*(?:[-*+]|\d{1,9}[.)])(?:[ \t]+|$)")
INDENTED_CODE_RE = re.compile(r"^(?: {4}|\t)")
TABLE_SEPARATOR_CHARS = set("|:- \t")


def _normalize(text: str) -> list[str]:
    value = (text or "").replace("\r\n", "\n").replace("\r", "\n").replace("\xa0", " ")
    return value.split("\n")


def _is_table_separator(line: str) -> bool:
    stripped = line.strip()
    return (
        "-" in stripped
        and "|" in stripped
        and all(char in TABLE_SEPARATOR_CHARS for char in stripped)
    )


def _closes_fence(line: str, fence: str) -> bool:
    stripped = line.strip()
    if len(line) - len(line.lstrip(" ")) > 3:
        return False
    return (
        len(stripped) >= len(fence)
        and set(stripped) == {fence[0]}
    )


def parse_markdown(text: str) -> list[Node]:
    """Parse markdown text into an ordered list of block nodes."""

    lines = _normalize(text)
    total = len(lines)
    nodes: list[Node] = []
    paragraph: list[str] = []

    def flush_paragraph() -> None:
        if paragraph:
            nodes.append(Node(kind=NodeKind.PARAGRAPH, text="\n".join(paragraph)))
            paragraph.clear()

    index = 0
    while index < total:
        line = lines[index]
        stripped = line.strip()

        if not stripped:
            flush_paragraph()
            index += 1
            continue

        fence_match = FENCE_OPEN_RE.match(line)
        if fence_match:
            flush_paragraph()
            fence = fence_match.group("fence")
            language = fence_match.group("info") or None
            body: list[str] = []
            index += 1
            while index < total and not _closes_fence(lines[index], fence):
                body.append(lines[index])
                index += 1
            index += 1  # closing fence, or past the end when unterminated
            nodes.append(Node(kind=NodeKind.CODE, text="\n".join(body), language=language))
            continue

        heading_match = ATX_HEADING_RE.match(line)
        if heading_match:
            flush_paragraph()
            heading_text = (heading_match.group("text") or "").strip()
            if heading_text:
                nodes.append(
                    Node(
                        kind=NodeKind.HEADING,
                        text=heading_text,
                        level=len(heading_match.group("marks")),
                    )
                )
            index += 1
            continue

        setext_match = SETEXT_UNDERLINE_RE.match(line)
        if setext_match and paragraph:
            level = 1 if setext_match.group("char").startswith("=") else 2
            heading_text = " ".join(part.strip() for part in paragraph)
            paragraph.clear()
            nodes.append(Node(kind=NodeKind.HEADING, text=heading_text, level=level))
            index += 1
            continue

        if THEMATIC_BREAK_RE.match(line):
            flush_paragraph()
            index += 1
            continue

        if BLOCKQUOTE_RE.match(line):
            flush_paragraph()
            quoted: list[str] = []
            while index < total and BLOCKQUOTE_RE.match(lines[index]):
                quoted.append(lines[index].strip())
                index += 1
            nodes.append(Node(kind=NodeKind.BLOCKQUOTE, text="\n".join(quoted)))
            continue

        if LIST_ITEM_RE.match(line):
            flush_paragraph()
            items, index = _collect_list(lines, index)
            nodes.append(Node(kind=NodeKind.LIST, text="\n".join(items)))
            continue

        if "|" in stripped and index + 1 < total and _is_table_separator(lines[index + 1]):
            flush_paragraph()
            rows: list[str] = []
            while index < total and "|" in lines[index] and lines[index].strip():
                rows.append(lines[index].strip())
                index += 1
            nodes.append(Node(kind=NodeKind.TABLE, text="\n".join(rows)))
            continue

        if INDENTED_CODE_RE.match(line) and not paragraph:
            body = []
            while index < total and (INDENTED_CODE_RE.match(lines[index]) or not lines[index].strip()):
                body.append(lines[index][4:] if lines[index].startswith("    ") else lines[index].lstrip("\t"))
                index += 1
            while body and not body[-1].strip():
                body.pop()
            nodes.append(Node(kind=NodeKind.CODE, text="\n".join(body)))
            continue

        paragraph.append(stripped)
        index += 1

    flush_paragraph()
    return nodes


def _collect_list(lines: list[str], start: int) -> tuple[list[str], int]:
    """Collect list items, their indented continuations, and nested items."""

    items: list[str] = []
    index = start
    total = len(lines)

    while index < total:
        line = lines[index]
        if not line.strip():
            lookahead = index + 1
            while lookahead < total and not lines[lookahead].strip():
                lookahead += 1
            if lookahead < total and (
                LIST_ITEM_RE.match(lines[lookahead]) or INDENTED_CODE_RE.match(lines[lookahead])
            ):
                index = lookahead
                continue
            break

        if LIST_ITEM_RE.match(line) or line[:1] in {" ", "\t"}:
            items.append(line.rstrip())
            index += 1
            continue
        break

    return items, index


def extract_code_blocks(text: str, file_path: str) -> list[CodeBlock]:
    """Return every code block in the document with its language."""

    return [
        CodeBlock(content=node.text, language=node.language or "", file_path=file_path)
        for node in parse_markdown(text)
        if node.kind == NodeKind.CODE
    ]


__all__ = [
    "extract_code_blocks",
    "parse_markdown",
]
