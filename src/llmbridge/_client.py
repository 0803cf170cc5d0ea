"""Client — the main user-facing entry point."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from llmbridge._batch import BatchClient
from llmbridge._codec import request_to_wire
from llmbridge._decoders import parse_chat, parse_chat_completion, parse_generate, parse_models
from llmbridge._exceptions import StreamingNotSupportedError
from llmbridge._http import DEFAULT_TIMEOUT, Transport
from llmbridge._types import (
    ChatCompletionResult,
    ChatResult,
    GenerateResult,
    ModelDesc,
    RequestOptions,
)

API_KEY_HEADER = "x-api-key"
BASE_URL_ENV = "LLMBRIDGE_BASE_URL"
API_KEY_ENV = "LLMBRIDGE_API_KEY"


class Client:
    """Multi-provider LLM client bound to a single base address.

    The native protocol (``generate``, ``chat``), the OpenAI-compatible protocol
    (``chat_completion``, ``list_models``) and the message batch protocol
    (``batches``) are all resolved against ``base_url``; pick the base address
    that serves the protocol you call.

    Usage::

        from llmbridge import Client, Message, RequestOptions

        client = Client("http://localhost:11434")
        result = client.chat(
            RequestOptions(model="llama3", messages=(Message("user", "Hello!"),))
        )
        print(result.message.content)
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        merged = dict(headers or {})
        if api_key:
            merged[API_KEY_HEADER] = api_key
        self._transport = Transport(base_url, merged, timeout=timeout)
        self.batches = BatchClient(self._transport)

    @classmethod
    def from_env(
        cls,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Client:
        """Build a client from ``LLMBRIDGE_BASE_URL`` and ``LLMBRIDGE_API_KEY``."""
        base_url = os.environ.get(BASE_URL_ENV, "")
        if not base_url:
            raise ValueError(f"No base URL provided. Set the {BASE_URL_ENV} environment variable.")
        return cls(
            base_url,
            api_key=os.environ.get(API_KEY_ENV) or None,
            headers=headers,
            timeout=timeout,
        )

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def headers(self) -> Mapping[str, str]:
        """Read-only view of the headers sent with every request."""
        return self._transport.headers

    @property
    def timeout(self) -> float:
        return self._transport.timeout

    def with_headers(self, headers: Mapping[str, str] | None = None, **extra: str) -> Client:
        """Return a new client whose header snapshot adds ``headers`` and ``extra``."""
        merged = {**self.headers, **(headers or {}), **extra}
        return Client(self.base_url, headers=merged, timeout=self.timeout)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @staticmethod
    def _payload(opts: RequestOptions, operation: str) -> dict[str, Any]:
        if opts.stream:
            raise StreamingNotSupportedError(operation)
        return request_to_wire(opts)

    def generate(self, opts: RequestOptions) -> GenerateResult:
        """Send a completion request to ``/api/generate``."""
        payload = self._payload(opts, "generate")
        raw = self._transport.post_json("/api/generate", payload, operation="generate")
        return parse_generate(raw)

    def chat(self, opts: RequestOptions) -> ChatResult:
        """Send a chat request to ``/api/chat``."""
        payload = self._payload(opts, "chat")
        return parse_chat(self._transport.post_json("/api/chat", payload, operation="chat"))

    def chat_completion(self, opts: RequestOptions) -> ChatCompletionResult:
        """Send a request to the OpenAI-compatible ``/chat/completions`` endpoint."""
        payload = self._payload(opts, "chat completion")
        raw = self._transport.post_json("/chat/completions", payload, operation="chat completion")
        return parse_chat_completion(raw)

    def list_models(self) -> list[ModelDesc]:
        """List models from the OpenAI-compatible ``/models`` endpoint."""
        return parse_models(self._transport.get_json("/models", operation="list models"))
