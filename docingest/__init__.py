"""Documentation ingestion: crawl a docs site, chunk it for retrieval, extract its API endpoints."""

from .config import IngestConfig, LLMConfig
from .pipeline import IngestResult, NoPagesCrawledError, run_ingest
from .storage import Storage

__version__ = "0.1.0"

__all__ = [
    "IngestConfig",
    "IngestResult",
    "LLMConfig",
    "NoPagesCrawledError",
    "Storage",
    "run_ingest",
]
