"""Main-content isolation and HTML-to-markdown conversion.

Documentation sites vary widely in markup, so `extract_main` tries semantic
containers first and only falls back to a stripped `<body>` when nothing
large enough is found. `to_text` renders the isolated region as markdown that
the chunker can parse back into headings, prose and fenced code.
"""

from __future__ import annotations

import re
from typing import Iterable

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from .constants import DEFAULT_DOC_INDICATOR_THRESHOLD, DEFAULT_MIN_MAIN_CHARS, DOC_INDICATOR_PATTERNS


# Ordered: each entry is one CSS selector group; matches are tried in document order.
MAIN_CONTENT_SELECTORS: tuple[str, ...] = (
    "main",
    "article",
    "div[class*='content'], div[class*='docs'], div[class*='documentation'], "
    "div[class*='markdown'], div[class*='prose']",
    "div#content, div#main, div#docs",
    "div[role='main']",
)

CHROME_TAGS = ("nav", "header", "footer", "aside", "script", "style", "noscript")
NOISE_CLASS_RE = re.compile(r"cookie|banner|popup|modal|overlay", re.IGNORECASE)
CODE_LANGUAGE_RE = re.compile(r"^(?:language|lang)-([\w+#.-]+)$")

BLOCK_TAGS = {
    "address", "article", "aside", "blockquote", "details", "dd", "div", "dl", "dt",
    "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
    "header", "hr", "li", "main", "nav", "ol", "p", "pre", "section", "summary",
    "table", "ul",
}
HEADING_TAGS = {"h1": 1, "h2": 2, "h3": 3, "h4": 4, "h5": 5, "h6": 6}

_INLINE_SPACE_RE = re.compile(r"\s+")


def _soup(html: str | bytes) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


def _remove_comments(root: Tag) -> None:
    for comment in root.find_all(string=lambda value: isinstance(value, Comment)):
        comment.extract()


def extract_main(html: str | bytes, *, min_chars: int = DEFAULT_MIN_MAIN_CHARS) -> str:
    """Return the markup of the page's main content region."""

    soup = _soup(html)

    for selector in MAIN_CONTENT_SELECTORS:
        for candidate in soup.select(selector):
            inner = candidate.decode_contents()
            if len(inner) > min_chars:
                return inner

    body = soup.body
    if body is None:
        return html.decode("utf-8", errors="replace") if isinstance(html, bytes) else html

    for tag in body.find_all(CHROME_TAGS):
        tag.decompose()
    _remove_comments(body)
    return body.decode_contents()


def extract_title(html: str | bytes) -> str | None:
    """Return `<title>` text, else the first h1/h2 text."""

    soup = _soup(html)
    if soup.title and soup.title.get_text(strip=True):
        return soup.title.get_text(" ", strip=True)
    heading = soup.find(["h1", "h2"])
    if heading:
        text = heading.get_text(" ", strip=True)
        if text:
            return text
    return None


def has_documentation_content(
    html: str,
    *,
    threshold: int = DEFAULT_DOC_INDICATOR_THRESHOLD,
) -> bool:
    """Positive-evidence check: code blocks, API vocabulary, guide vocabulary."""

    matches = 0
    for pattern in DOC_INDICATOR_PATTERNS:
        if pattern.search(html):
            matches += 1
            if matches >= threshold:
                return True
    return matches >= threshold


def to_text(main_html: str) -> str:
    """Convert main-content markup to markdown text ending in one newline."""

    soup = _soup(main_html)
    root: Tag = soup.body or soup

    _remove_comments(root)
    for tag in root.find_all(CHROME_TAGS):
        tag.decompose()
    for tag in root.find_all(attrs={"aria-hidden": "true"}):
        tag.decompose()
    for tag in root.find_all(_is_noise_container):
        tag.decompose()

    blocks = _render_blocks(root)
    markdown = "\n\n".join(block for block in blocks if block.strip())

    markdown = re.sub(r"\n{4,}", "\n\n\n", markdown)
    markdown = re.sub(r"[ \t]+$", "", markdown, flags=re.MULTILINE)
    return markdown.strip() + "\n"


def _is_noise_container(tag: Tag) -> bool:
    if tag.name != "div" or tag.attrs is None:
        return False
    classes = tag.get("class") or []
    return any(NOISE_CLASS_RE.search(value) for value in classes)


def _render_blocks(container: Tag) -> list[str]:
    blocks: list[str] = []
    inline_parts: list[str] = []

    def flush_inline() -> None:
        text = _INLINE_SPACE_RE.sub(" ", "".join(inline_parts)).strip()
        inline_parts.clear()
        if text:
            blocks.append(text)

    for child in container.children:
        if isinstance(child, Tag) and child.name in BLOCK_TAGS:
            flush_inline()
            rendered = _render_block(child)
            if isinstance(rendered, list):
                blocks.extend(rendered)
            elif rendered:
                blocks.append(rendered)
        else:
            inline_parts.append(_render_inline(child))

    flush_inline()
    return blocks


def _render_block(tag: Tag) -> str | list[str]:
    name = tag.name

    if name in HEADING_TAGS:
        text = _inline_text(tag)
        return f"{'#' * HEADING_TAGS[name]} {text}" if text else ""
    if name == "p":
        return _inline_text(tag)
    if name == "pre":
        return _render_code_block(tag)
    if name in {"ul", "ol"}:
        return _render_list(tag, depth=0)
    if name == "table":
        return _render_table(tag)
    if name == "blockquote":
        inner = "\n\n".join(_render_blocks(tag))
        if not inner.strip():
            return ""
        return "\n".join(f"> {line}" if line else ">" for line in inner.split("\n"))
    if name == "hr":
        return "---"
    return _render_blocks(tag)


def _render_inline(node) -> str:
    if isinstance(node, Comment):
        return ""
    if isinstance(node, NavigableString):
        return str(node)
    if not isinstance(node, Tag):
        return ""

    name = node.name
    if name == "br":
        return "\n"
    if name == "img":
        return ""
    if name == "code":
        code = node.get_text()
        if not code:
            return ""
        if "`" in code:
            return f"``{code}``"
        return f"`{code}`"

    inner = "".join(_render_inline(child) for child in node.children)
    if name in {"strong", "b"} and inner.strip():
        return f"**{inner.strip()}**"
    if name in {"em", "i"} and inner.strip():
        return f"*{inner.strip()}*"
    return inner


def _inline_text(tag: Tag) -> str:
    text = "".join(_render_inline(child) for child in tag.children)
    return _INLINE_SPACE_RE.sub(" ", text).strip()


def _code_language(pre: Tag, code: Tag | None) -> str:
    for element in (code, pre):
        if element is None:
            continue
        for value in element.get("class") or []:
            match = CODE_LANGUAGE_RE.match(value)
            if match:
                return match.group(1)
    return ""


def _render_code_block(pre: Tag) -> str:
    code = pre.find("code")
    text = (code or pre).get_text().strip("\n")
    if not text.strip():
        return ""

    longest_run = max((len(run) for run in re.findall(r"`{3,}", text)), default=0)
    fence = "`" * max(3, longest_run + 1)
    language = _code_language(pre, code if isinstance(code, Tag) else None)
    return f"{fence}{language}\n{text}\n{fence}"


def _render_list(tag: Tag, *, depth: int) -> str:
    ordered = tag.name == "ol"
    lines: list[str] = []

    for index, item in enumerate(tag.find_all("li", recursive=False), start=1):
        marker = f"{index}. " if ordered else "- "
        text_parts: list[str] = []
        nested: list[str] = []
        for child in item.children:
            if isinstance(child, Tag) and child.name in {"ul", "ol"}:
                rendered = _render_list(child, depth=depth + 1)
                if rendered:
                    nested.append(rendered)
            else:
                text_parts.append(_render_inline(child))
        text = _INLINE_SPACE_RE.sub(" ", " ".join(text_parts)).strip()
        if text:
            lines.append("  " * depth + marker + text)
        lines.extend(nested)

    return "\n".join(lines)


def _render_table(table: Tag) -> str:
    rows: list[list[str]] = []
    for row in table.find_all("tr"):
        cells = [
            _inline_text(cell).replace("|", "\\|")
            for cell in row.find_all(["th", "td"], recursive=False)
        ]
        if cells:
            rows.append(cells)
    if not rows:
        return ""

    width = max(len(row) for row in rows)
    padded = [row + [""] * (width - len(row)) for row in rows]
    lines = [_table_line(padded[0]), _table_line(["---"] * width)]
    lines.extend(_table_line(row) for row in padded[1:])
    return "\n".join(lines)


def _table_line(cells: Iterable[str]) -> str:
    return "| " + " | ".join(cells) + " |"


__all__ = [
    "MAIN_CONTENT_SELECTORS",
    "extract_main",
    "extract_title",
    "has_documentation_content",
    "to_text",
]
