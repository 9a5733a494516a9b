"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_DOC_INDICATOR_THRESHOLD,
    DEFAULT_FINGERPRINT_CHARS,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_MAX_PAGES,
    DEFAULT_MIN_CONTENT_CHARS,
    DEFAULT_MIN_MAIN_CHARS,
    DEFAULT_REQUEST_DELAY_SECONDS,
    DEFAULT_RESPECT_ROBOTS,
    DEFAULT_RETRIES,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import JSONDict


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def _as_str_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise ValueError(f"Invalid list for '{key}': {value!r}")


@dataclass(slots=True)
class CrawlConfig:
    """Crawler configuration used by the fetch loop and fetcher."""

    max_pages: int = DEFAULT_MAX_PAGES
    min_content_chars: int = DEFAULT_MIN_CONTENT_CHARS
    min_main_chars: int = DEFAULT_MIN_MAIN_CHARS
    fingerprint_chars: int = DEFAULT_FINGERPRINT_CHARS
    doc_indicator_threshold: int = DEFAULT_DOC_INDICATOR_THRESHOLD

    allowed_domains: list[str] = field(default_factory=list)
    exclude_patterns: list[str] = field(default_factory=list)

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    retries: int = DEFAULT_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    request_delay_seconds: float = DEFAULT_REQUEST_DELAY_SECONDS

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))
    respect_robots: bool = DEFAULT_RESPECT_ROBOTS

    _compiled_excludes: list[re.Pattern[str]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_pages <= 0:
            raise ValueError("max_pages must be > 0")
        if self.min_content_chars < 0:
            raise ValueError("min_content_chars must be >= 0")
        if self.min_main_chars < 0:
            raise ValueError("min_main_chars must be >= 0")
        if self.fingerprint_chars <= 0:
            raise ValueError("fingerprint_chars must be > 0")
        if self.doc_indicator_threshold < 0:
            raise ValueError("doc_indicator_threshold must be >= 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.request_delay_seconds < 0:
            raise ValueError("request_delay_seconds must be >= 0")

        self.allowed_domains = [d.strip().lower() for d in self.allowed_domains if d and d.strip()]
        try:
            self._compiled_excludes = [re.compile(p, re.IGNORECASE) for p in self.exclude_patterns]
        except re.error as exc:
            raise ValueError(f"Invalid exclude pattern: {exc}") from exc

    @property
    def compiled_excludes(self) -> list[re.Pattern[str]]:
        return self._compiled_excludes

    def headers(self) -> dict[str, str]:
        """Return request headers; `user_agent` always wins over a default header."""

        merged: dict[str, str] = dict(self.default_headers)
        merged["User-Agent"] = self.user_agent
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "max_pages": self.max_pages,
            "min_content_chars": self.min_content_chars,
            "min_main_chars": self.min_main_chars,
            "fingerprint_chars": self.fingerprint_chars,
            "doc_indicator_threshold": self.doc_indicator_threshold,
            "allowed_domains": list(self.allowed_domains),
            "exclude_patterns": list(self.exclude_patterns),
            "timeout_seconds": self.timeout_seconds,
            "retries": self.retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "request_delay_seconds": self.request_delay_seconds,
            "user_agent": self.user_agent,
            "default_headers": dict(self.default_headers),
            "respect_robots": self.respect_robots,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        return cls(
            max_pages=int(payload.get("max_pages", DEFAULT_MAX_PAGES)),
            min_content_chars=int(payload.get("min_content_chars", DEFAULT_MIN_CONTENT_CHARS)),
            min_main_chars=int(payload.get("min_main_chars", DEFAULT_MIN_MAIN_CHARS)),
            fingerprint_chars=int(payload.get("fingerprint_chars", DEFAULT_FINGERPRINT_CHARS)),
            doc_indicator_threshold=int(
                payload.get("doc_indicator_threshold", DEFAULT_DOC_INDICATOR_THRESHOLD)
            ),
            allowed_domains=_as_str_list(payload.get("allowed_domains"), "allowed_domains"),
            exclude_patterns=_as_str_list(payload.get("exclude_patterns"), "exclude_patterns"),
            timeout_seconds=float(payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
            retries=int(payload.get("retries", DEFAULT_RETRIES)),
            retry_backoff_seconds=float(
                payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS)
            ),
            request_delay_seconds=float(
                payload.get("request_delay_seconds", DEFAULT_REQUEST_DELAY_SECONDS)
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            respect_robots=_as_bool(
                payload.get("respect_robots", DEFAULT_RESPECT_ROBOTS),
                "respect_robots",
            ),
        )


def load_mapping(path: str | Path) -> dict[str, Any]:
    """Read a JSON/YAML file that must hold a mapping at top level."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        if payload is None:
            payload = {}

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")
    return payload


def save_mapping(payload: Mapping[str, Any], path: str | Path) -> None:
    """Write a mapping as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(dict(payload), indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(yaml.safe_dump(dict(payload), sort_keys=False), encoding="utf-8")
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    return CrawlConfig.from_dict(load_mapping(path))


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    save_mapping(config.to_dict(), path)


__all__ = [
    "CrawlConfig",
    "load_config",
    "load_mapping",
    "save_config",
    "save_mapping",
]
