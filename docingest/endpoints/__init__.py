"""Endpoint extraction package: candidate validation, grouping, and batched extraction."""

from .client import CompletionClient, OpenAIChatClient
from .enhance import enhance_pages
from .extractor import EndpointExtractor, ExtractorConfig, extract_endpoints
from .types import (
    APIEndpoint,
    CodeExample,
    EndpointParameter,
    EndpointResponse,
    ExtractionEvent,
    ExtractionEventType,
    ExtractionResult,
    HTTPMethod,
    ParameterLocation,
    RequestBody,
)
from .validate import (
    derive_resource,
    endpoint_id,
    group_by_method,
    group_by_resource,
    looks_like_api_page,
    parse_candidates,
    unique_resources,
    validate_endpoint,
)

__all__ = [
    "APIEndpoint",
    "CodeExample",
    "CompletionClient",
    "EndpointExtractor",
    "EndpointParameter",
    "EndpointResponse",
    "ExtractionEvent",
    "ExtractionEventType",
    "ExtractionResult",
    "ExtractorConfig",
    "HTTPMethod",
    "OpenAIChatClient",
    "ParameterLocation",
    "RequestBody",
    "derive_resource",
    "endpoint_id",
    "enhance_pages",
    "extract_endpoints",
    "group_by_method",
    "group_by_resource",
    "looks_like_api_page",
    "parse_candidates",
    "unique_resources",
    "validate_endpoint",
]
