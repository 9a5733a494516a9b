"""Shared type definitions for API endpoint extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from ..crawler.types import ErrorRecord, JSONDict, JSONValue


class HTTPMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ParameterLocation(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class ExtractionEventType(str, Enum):
    PROCESSING = "processing"
    EXTRACTED = "extracted"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class EndpointParameter:
    name: str
    location: ParameterLocation = ParameterLocation.QUERY
    type: str = "string"
    required: bool = False
    description: str | None = None
    default: JSONValue = None

    def to_json(self) -> JSONDict:
        return {
            "name": self.name,
            "in": self.location.value,
            "type": self.type,
            "required": self.required,
            "description": self.description,
            "default": self.default,
        }


@dataclass(frozen=True, slots=True)
class RequestBody:
    content_type: str = "application/json"
    schema: dict[str, JSONValue] | None = None
    example: JSONValue = None

    def to_json(self) -> JSONDict:
        return {
            "content_type": self.content_type,
            "schema": self.schema,
            "example": self.example,
        }


@dataclass(frozen=True, slots=True)
class EndpointResponse:
    status: int = 200
    description: str = ""
    example: JSONValue = None

    def to_json(self) -> JSONDict:
        return {
            "status": self.status,
            "description": self.description,
            "example": self.example,
        }


@dataclass(frozen=True, slots=True)
class CodeExample:
    language: str = "text"
    code: str = ""
    title: str | None = None

    def to_json(self) -> JSONDict:
        return {
            "language": self.language,
            "code": self.code,
            "title": self.title,
        }


@dataclass(frozen=True, slots=True)
class APIEndpoint:
    """One validated HTTP operation; `id` is the corpus-wide dedup key."""

    id: str
    method: HTTPMethod
    path: str
    title: str
    description: str
    resource: str
    parameters: list[EndpointParameter] = field(default_factory=list)
    request_body: RequestBody | None = None
    responses: list[EndpointResponse] = field(default_factory=list)
    code_examples: list[CodeExample] = field(default_factory=list)
    source_url: str = ""
    source_page_title: str = ""

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "method": self.method.value,
            "path": self.path,
            "title": self.title,
            "description": self.description,
            "resource": self.resource,
            "parameters": [item.to_json() for item in self.parameters],
            "request_body": None if self.request_body is None else self.request_body.to_json(),
            "responses": [item.to_json() for item in self.responses],
            "code_examples": [item.to_json() for item in self.code_examples],
            "source_url": self.source_url,
            "source_page_title": self.source_page_title,
        }

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> "APIEndpoint":
        endpoint_id = payload.get("id")
        if not isinstance(endpoint_id, str) or not endpoint_id:
            raise ValueError("Missing required endpoint field: 'id'")

        body = payload.get("request_body")
        return cls(
            id=endpoint_id,
            method=HTTPMethod(str(payload.get("method") or "").upper()),
            path=str(payload.get("path") or "/"),
            title=str(payload.get("title") or ""),
            description=str(payload.get("description") or ""),
            resource=str(payload.get("resource") or "general"),
            parameters=[
                EndpointParameter(
                    name=str(item.get("name") or ""),
                    location=ParameterLocation(str(item.get("in") or ParameterLocation.QUERY.value)),
                    type=str(item.get("type") or "string"),
                    required=bool(item.get("required")),
                    description=item.get("description"),
                    default=item.get("default"),
                )
                for item in payload.get("parameters") or []
            ],
            request_body=None
            if not isinstance(body, Mapping)
            else RequestBody(
                content_type=str(body.get("content_type") or "application/json"),
                schema=body.get("schema"),
                example=body.get("example"),
            ),
            responses=[
                EndpointResponse(
                    status=int(item.get("status") or 200),
                    description=str(item.get("description") or ""),
                    example=item.get("example"),
                )
                for item in payload.get("responses") or []
            ],
            code_examples=[
                CodeExample(
                    language=str(item.get("language") or "text"),
                    code=str(item.get("code") or ""),
                    title=item.get("title"),
                )
                for item in payload.get("code_examples") or []
            ],
            source_url=str(payload.get("source_url") or ""),
            source_page_title=str(payload.get("source_page_title") or ""),
        )


@dataclass(frozen=True, slots=True)
class ExtractionEvent:
    """Progress notification emitted by the endpoint extractor."""

    type: ExtractionEventType
    page_index: int | None = None
    total_pages: int | None = None
    page_url: str | None = None
    endpoint_count: int | None = None
    error: str | None = None


@dataclass(slots=True)
class ExtractionResult:
    endpoints: list[APIEndpoint] = field(default_factory=list)
    processed_pages: int = 0
    errors: list[ErrorRecord] = field(default_factory=list)


__all__ = [
    "APIEndpoint",
    "CodeExample",
    "EndpointParameter",
    "EndpointResponse",
    "ExtractionEvent",
    "ExtractionEventType",
    "ExtractionResult",
    "HTTPMethod",
    "ParameterLocation",
    "RequestBody",
]
