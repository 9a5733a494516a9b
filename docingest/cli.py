"""CLI entrypoint for the documentation ingest pipeline."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from .config import IngestConfig, load_config
from .endpoints.client import OpenAIChatClient
from .pipeline import IngestResult, NoPagesCrawledError, run_ingest


NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a documentation site, chunk it, and extract its API endpoints.",
    )

    parser.add_argument("start_url", type=str, help="Documentation URL to start crawling from.")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML ingest config.",
    )
    parser.add_argument(
        "--output_dir",
        type=Path,
        default=Path("docingest_output"),
        help="Root output directory for cache/endpoints/logs.",
    )
    parser.add_argument("--max_pages", type=int, default=None)
    parser.add_argument("--request_delay_seconds", type=float, default=None)
    parser.add_argument("--user_agent", type=str, default=None)
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Regex of URLs to skip (repeatable). Added to config exclude_patterns.",
    )

    parser.add_argument(
        "--no_endpoints",
        action="store_true",
        help="Skip API endpoint extraction.",
    )
    parser.add_argument(
        "--enhance",
        action="store_true",
        help="Clean page content with the extraction model before chunking.",
    )
    parser.add_argument("--model", type=str, default=None, help="Extraction model name.")

    parser.add_argument(
        "--print_summary_json",
        action="store_true",
        help="Print full summary JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> IngestConfig:
    payload: dict[str, Any] = load_config(args.config).to_dict() if args.config else {}
    crawl = dict(payload.get("crawl") or {})
    llm = dict(payload.get("llm") or {})

    if args.max_pages is not None:
        crawl["max_pages"] = args.max_pages
    if args.request_delay_seconds is not None:
        crawl["request_delay_seconds"] = args.request_delay_seconds
    if args.user_agent is not None:
        crawl["user_agent"] = args.user_agent
    if args.exclude:
        crawl["exclude_patterns"] = list(crawl.get("exclude_patterns") or []) + list(args.exclude)

    if args.model is not None:
        llm["model"] = args.model
    if args.no_endpoints:
        payload["extract_endpoints"] = False
    if args.enhance:
        payload["enhance"] = True

    payload["crawl"] = crawl
    payload["llm"] = llm
    return IngestConfig.from_dict(payload)


def build_client(config: IngestConfig) -> OpenAIChatClient | None:
    if not (config.extract_endpoints or config.enhance):
        return None
    return OpenAIChatClient(
        config.llm.model,
        config.llm.max_tokens,
        timeout_seconds=config.llm.timeout_seconds,
    )


def setup_logging(output_dir: Path, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "ingest.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # HTTP client libraries log every request at DEBUG/INFO.
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def print_summary(result: IngestResult, *, print_summary_json: bool) -> None:
    summary = result.summary()
    paths = result.paths

    print("\n=== Ingest Complete ===")
    print(f"start_url: {result.start_url}")
    print(f"output_dir: {paths.get('output_dir')}")
    print(f"cache: {paths.get('cache_dir')}")
    print(f"endpoints: {paths.get('endpoints')}")
    print(f"errors: {paths.get('errors')}")

    print("\n--- Core Stats ---")
    for key in ["pages", "chunks", "endpoints", "errors", "duration_seconds"]:
        print(f"{key}: {summary[key]}")
    if summary["resources"]:
        print(f"resources: {', '.join(summary['resources'])}")

    if print_summary_json:
        print("\n--- Full Summary JSON ---")
        print(json.dumps(summary, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.output_dir, verbose=args.verbose)

    try:
        config = build_config(args)
        client = build_client(config)
    except Exception as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    logging.info(
        "Starting ingest: start_url=%s, output_dir=%s, max_pages=%d, endpoints=%s",
        args.start_url,
        args.output_dir,
        config.crawl.max_pages,
        config.extract_endpoints,
    )

    try:
        result = run_ingest(
            args.start_url,
            config,
            args.output_dir,
            client=client,
            show_progress=True,
        )
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except ValueError as exc:
        logging.error("Invalid input: %s", exc)
        return 2
    except NoPagesCrawledError as exc:
        logging.error("%s", exc)
        for error in exc.errors[:10]:
            logging.error("  %s", error)
        return 1
    except Exception:
        logging.exception("Ingest failed")
        return 1

    print_summary(result, print_summary_json=args.print_summary_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
