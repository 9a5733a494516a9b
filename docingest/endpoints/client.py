"""Structured-extraction collaborator used by the endpoint extractor."""

from __future__ import annotations

import logging
import os
from typing import Protocol

from openai import OpenAI


LOGGER = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 8192
DEFAULT_TEMPERATURE = 0.0
API_KEY_ENV = "OPENAI_API_KEY"


class CompletionClient(Protocol):
    """Anything that turns a system prompt and a user prompt into text."""

    def complete(self, system: str, prompt: str) -> str | None:
        ...


class OpenAIChatClient:
    """`CompletionClient` backed by the OpenAI chat completions API.

    The underlying `OpenAI` client is thread-safe and shared by concurrent
    extraction calls.
    """

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        *,
        api_key: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout_seconds: float | None = None,
    ) -> None:
        key = api_key or os.getenv(API_KEY_ENV, "")
        if not key:
            raise ValueError(f"An API key is required (pass api_key or set {API_KEY_ENV})")
        if max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = OpenAI(api_key=key, timeout=timeout_seconds)

    def complete(self, system: str, prompt: str) -> str | None:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        if not response.choices:
            LOGGER.debug("Completion returned no choices (model=%s)", self.model)
            return None
        return response.choices[0].message.content


__all__ = [
    "CompletionClient",
    "DEFAULT_MODEL",
    "OpenAIChatClient",
]
