"""Filesystem-backed storage for ingest artifacts.

Storage owns the on-disk layout. Other modules should use this API instead of
building paths manually:

    <output_dir>/cache/pages-<n>.json    crawled pages, batches of 50
    <output_dir>/cache/chunks-<n>.json   chunks, batches of 100
    <output_dir>/index_records.jsonl     chunk hand-off records for the index stage
    <output_dir>/endpoints.json          extracted endpoints (empty when extraction is skipped)
    <output_dir>/errors.jsonl            recoverable errors, one per line
    <output_dir>/summary.json            run summary
    <output_dir>/logs/                   log files
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from .chunker.types import Chunk
from .crawler.types import CrawledPage, ErrorRecord, JSONDict
from .endpoints.types import APIEndpoint


LOGGER = logging.getLogger(__name__)

PAGES_BATCH_SIZE = 50
CHUNKS_BATCH_SIZE = 100
JSON_INDENT = 2

T = TypeVar("T")


def _json_lines(records: Iterable[Mapping[str, Any]]) -> str:
    return "".join(
        json.dumps(dict(record), ensure_ascii=False, sort_keys=True) + "\n" for record in records
    )


class Storage:
    """Persist ingest outputs under a single `output_dir` root."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

        self.cache_dir = self.output_dir / "cache"
        self.logs_dir = self.output_dir / "logs"

        self.index_records_path = self.output_dir / "index_records.jsonl"
        self.endpoints_path = self.output_dir / "endpoints.json"
        self.errors_path = self.output_dir / "errors.jsonl"
        self.summary_path = self.output_dir / "summary.json"

        self._ensure_layout()

    @property
    def paths(self) -> JSONDict:
        """Return important output paths for logging/CLI status messages."""

        return {
            "output_dir": str(self.output_dir),
            "cache_dir": str(self.cache_dir),
            "index_records": str(self.index_records_path),
            "endpoints": str(self.endpoints_path),
            "errors": str(self.errors_path),
            "summary": str(self.summary_path),
            "log_dir": str(self.logs_dir),
        }

    def _ensure_layout(self) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def batch_files(self, prefix: str) -> list[Path]:
        """Existing `<prefix>-<n>.json` files ordered by batch number."""

        pattern = re.compile(rf"^{re.escape(prefix)}-(\d+)\.json$")
        numbered: list[tuple[int, Path]] = []
        for path in self.cache_dir.iterdir():
            match = pattern.match(path.name)
            if match:
                numbered.append((int(match.group(1)), path))
        return [path for _, path in sorted(numbered)]

    def _save_batches(self, prefix: str, records: Sequence[JSONDict], batch_size: int) -> list[Path]:
        # Stale batches from a previous, larger run would otherwise be reloaded.
        for stale in self.batch_files(prefix):
            stale.unlink()

        written: list[Path] = []
        for batch_number, start in enumerate(range(0, len(records), batch_size)):
            path = self.cache_dir / f"{prefix}-{batch_number}.json"
            self._atomic_write_json(path, list(records[start : start + batch_size]))
            written.append(path)
        LOGGER.debug("Saved %d %s in %d files", len(records), prefix, len(written))
        return written

    def _load_batches(self, prefix: str, factory: Callable[[Mapping[str, Any]], T]) -> list[T]:
        items: list[T] = []
        for path in self.batch_files(prefix):
            payload = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(payload, list):
                raise ValueError(f"Expected a JSON array in {path}")
            items.extend(factory(item) for item in payload)
        return items

    def save_pages(self, pages: Iterable[CrawledPage]) -> list[Path]:
        return self._save_batches("pages", [page.to_json() for page in pages], PAGES_BATCH_SIZE)

    def load_pages(self) -> list[CrawledPage]:
        return self._load_batches("pages", CrawledPage.from_json)

    def save_chunks(self, chunks: Iterable[Chunk]) -> list[Path]:
        return self._save_batches("chunks", [chunk.to_json() for chunk in chunks], CHUNKS_BATCH_SIZE)

    def load_chunks(self) -> list[Chunk]:
        return self._load_batches("chunks", Chunk.from_json)

    def save_index_records(self, records: Iterable[Mapping[str, Any]]) -> Path:
        self._atomic_write_text(self.index_records_path, _json_lines(records))
        return self.index_records_path

    def save_endpoints(self, endpoints: Iterable[APIEndpoint]) -> Path:
        self._atomic_write_json(self.endpoints_path, [endpoint.to_json() for endpoint in endpoints])
        return self.endpoints_path

    def load_endpoints(self) -> list[APIEndpoint]:
        if not self.endpoints_path.exists():
            return []
        payload = json.loads(self.endpoints_path.read_text(encoding="utf-8"))
        if not isinstance(payload, list):
            raise ValueError(f"Expected a JSON array in {self.endpoints_path}")
        return [APIEndpoint.from_json(item) for item in payload]

    def save_errors(self, errors: Iterable[ErrorRecord]) -> Path:
        self._atomic_write_text(self.errors_path, _json_lines(error.to_json() for error in errors))
        return self.errors_path

    def save_summary(self, summary: Mapping[str, Any]) -> Path:
        self._atomic_write_json(self.summary_path, dict(summary))
        return self.summary_path

    @staticmethod
    def _atomic_write_json(path: Path, payload: Any) -> None:
        content = json.dumps(payload, ensure_ascii=False, indent=JSON_INDENT) + "\n"
        Storage._atomic_write_text(path, content)

    @staticmethod
    def _atomic_write_text(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


__all__ = [
    "CHUNKS_BATCH_SIZE",
    "PAGES_BATCH_SIZE",
    "Storage",
]
