"""Local, deterministic validation of extraction candidates.

Candidates proposed by the extraction collaborator are untrusted JSON. A
candidate is accepted only with a known HTTP method and a path starting with
`/`; every other field is coerced to a safe default instead of rejecting the
endpoint, since partially documented endpoints are still worth keeping.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from typing import Any, Iterable, Mapping

from .types import (
    APIEndpoint,
    CodeExample,
    EndpointParameter,
    EndpointResponse,
    HTTPMethod,
    ParameterLocation,
    RequestBody,
)


LOGGER = logging.getLogger(__name__)

DEFAULT_RESOURCE = "general"
DEFAULT_API_INDICATOR_THRESHOLD = 2

METHOD_ORDER: tuple[HTTPMethod, ...] = (
    HTTPMethod.GET,
    HTTPMethod.POST,
    HTTPMethod.PUT,
    HTTPMethod.PATCH,
    HTTPMethod.DELETE,
    HTTPMethod.HEAD,
    HTTPMethod.OPTIONS,
)

API_INDICATOR_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\bGET\b"),
    re.compile(r"\bPOST\b"),
    re.compile(r"\bPUT\b"),
    re.compile(r"\bDELETE\b"),
    re.compile(r"\bPATCH\b"),
    re.compile(r"endpoint", flags=re.IGNORECASE),
    re.compile(r"api", flags=re.IGNORECASE),
    re.compile(r"request", flags=re.IGNORECASE),
    re.compile(r"response", flags=re.IGNORECASE),
    re.compile(r"curl", flags=re.IGNORECASE),
    re.compile(r"http", flags=re.IGNORECASE),
)

_PREFIX_SEGMENT_RE = re.compile(r"^(?:v\d+|api)$", flags=re.IGNORECASE)
_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_TRUE_STRINGS = {"true", "yes", "1", "required"}
_VALID_METHODS = {method.value for method in HTTPMethod}
_VALID_LOCATIONS = {location.value for location in ParameterLocation}


def looks_like_api_page(
    text: str,
    threshold: int = DEFAULT_API_INDICATOR_THRESHOLD,
) -> bool:
    """True when the text shows at least `threshold` API-documentation signals."""

    hits = 0
    for pattern in API_INDICATOR_PATTERNS:
        if pattern.search(text or ""):
            hits += 1
            if hits >= threshold:
                return True
    return False


def endpoint_id(method: str, path: str) -> str:
    return hashlib.md5(f"{method}:{path}".encode("utf-8")).hexdigest()[:12]


def derive_resource(path: str) -> str:
    """Grouping key for a path.

    `/v1/users/{id}` and `/api/users` both give `users`; `/` gives `general`.
    """

    segments = [segment for segment in (path or "").split("/") if segment]
    # Every leading api/vN segment goes, not just the first: /api/v1/users -> users.
    while segments and _PREFIX_SEGMENT_RE.match(segments[0]):
        segments.pop(0)

    for segment in segments:
        if segment.startswith("{") or segment.startswith(":"):
            continue
        return segment.lower()
    return DEFAULT_RESOURCE


def parse_candidates(text: str | None) -> list[Any] | None:
    """Pull the first JSON array out of a collaborator response.

    Returns None when no array is present or it does not parse.
    """

    if not text:
        return None
    match = _JSON_ARRAY_RE.search(text)
    if match is None:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        LOGGER.debug("Candidate JSON did not parse: %s", exc)
        return None
    if not isinstance(parsed, list):
        return None
    return parsed


def _field(raw: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None:
            return value
    return None


def _as_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value)
    return text if text else default


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def _as_status(value: Any) -> int:
    try:
        status = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 200
    return status or 200


def _as_list(value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _parameter(raw: Mapping[str, Any]) -> EndpointParameter:
    location = _as_text(_field(raw, "in", "location")).lower()
    description = _field(raw, "description")
    return EndpointParameter(
        name=_as_text(_field(raw, "name")),
        location=ParameterLocation(location if location in _VALID_LOCATIONS else "query"),
        type=_as_text(_field(raw, "type"), "string"),
        required=_as_bool(_field(raw, "required")),
        description=_as_text(description) if description else None,
        default=raw.get("default"),
    )


def _request_body(raw: Any) -> RequestBody | None:
    if not isinstance(raw, Mapping) or not raw:
        return None
    schema = raw.get("schema")
    return RequestBody(
        content_type=_as_text(_field(raw, "contentType", "content_type"), "application/json"),
        schema=dict(schema) if isinstance(schema, Mapping) else None,
        example=raw.get("example"),
    )


def _response(raw: Mapping[str, Any]) -> EndpointResponse:
    return EndpointResponse(
        status=_as_status(_field(raw, "status", "status_code")),
        description=_as_text(_field(raw, "description")),
        example=raw.get("example"),
    )


def _code_example(raw: Mapping[str, Any]) -> CodeExample:
    title = _field(raw, "title")
    return CodeExample(
        language=_as_text(_field(raw, "language", "lang"), "text"),
        code=_as_text(_field(raw, "code")),
        title=_as_text(title) if title else None,
    )


def validate_endpoint(
    raw: Any,
    source_url: str,
    source_title: str,
) -> APIEndpoint | None:
    """Coerce one raw candidate into an `APIEndpoint`, or None if unusable."""

    if not isinstance(raw, Mapping):
        return None

    method = _as_text(raw.get("method")).strip().upper()
    path = _as_text(raw.get("path")).strip()
    if method not in _VALID_METHODS or not path.startswith("/"):
        return None

    return APIEndpoint(
        id=endpoint_id(method, path),
        method=HTTPMethod(method),
        path=path,
        title=_as_text(raw.get("title"), f"{method} {path}"),
        description=_as_text(raw.get("description")),
        resource=derive_resource(path),
        parameters=[_parameter(item) for item in _as_list(raw.get("parameters"))],
        request_body=_request_body(_field(raw, "requestBody", "request_body")),
        responses=[_response(item) for item in _as_list(raw.get("responses"))],
        code_examples=[
            _code_example(item) for item in _as_list(_field(raw, "codeExamples", "code_examples"))
        ],
        source_url=source_url,
        source_page_title=source_title,
    )


def validate_candidates(
    candidates: Iterable[Any],
    source_url: str,
    source_title: str,
) -> list[APIEndpoint]:
    endpoints: list[APIEndpoint] = []
    for raw in candidates:
        endpoint = validate_endpoint(raw, source_url, source_title)
        if endpoint is None:
            LOGGER.debug("Dropping invalid endpoint candidate from %s: %r", source_url, raw)
            continue
        endpoints.append(endpoint)
    return endpoints


def sort_endpoints(endpoints: Iterable[APIEndpoint]) -> list[APIEndpoint]:
    return sorted(endpoints, key=lambda endpoint: (endpoint.resource, endpoint.path))


def unique_resources(endpoints: Iterable[APIEndpoint]) -> list[str]:
    return sorted({endpoint.resource for endpoint in endpoints})


def group_by_resource(endpoints: Iterable[APIEndpoint]) -> dict[str, list[APIEndpoint]]:
    grouped: dict[str, list[APIEndpoint]] = {}
    for endpoint in endpoints:
        grouped.setdefault(endpoint.resource, []).append(endpoint)
    return grouped


def group_by_method(endpoints: Iterable[APIEndpoint]) -> dict[HTTPMethod, list[APIEndpoint]]:
    """Group by method in GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS order."""

    grouped: dict[HTTPMethod, list[APIEndpoint]] = {method: [] for method in METHOD_ORDER}
    for endpoint in endpoints:
        grouped[endpoint.method].append(endpoint)
    return {method: items for method, items in grouped.items() if items}


__all__ = [
    "API_INDICATOR_PATTERNS",
    "METHOD_ORDER",
    "derive_resource",
    "endpoint_id",
    "group_by_method",
    "group_by_resource",
    "looks_like_api_page",
    "parse_candidates",
    "sort_endpoints",
    "unique_resources",
    "validate_candidates",
    "validate_endpoint",
]
