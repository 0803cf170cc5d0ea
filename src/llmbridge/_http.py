"""Thin HTTP transport around a ``requests`` session."""

from __future__ import annotations

import contextlib
import json
import logging
from collections.abc import Generator, Mapping
from types import MappingProxyType
from typing import Any

import requests

from llmbridge._exceptions import (
    APIError,
    DecodeError,
    EncodeError,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


def _raise_for_status(r: requests.Response) -> None:
    if r.status_code == 200:
        return
    # Read the whole body so the error carries it verbatim.
    body = r.text
    logger.debug("%s -> HTTP %d", r.url, r.status_code)
    if r.status_code == 429:
        raw_retry = r.headers.get("Retry-After")
        retry_after: float | None = None
        if raw_retry is not None:
            with contextlib.suppress(ValueError, TypeError):
                retry_after = float(raw_retry)
        raise RateLimitError(r.status_code, body, retry_after, url=r.url)
    raise APIError(r.status_code, body, url=r.url)


def _dump_payload(payload: Any) -> str | None:
    if payload is None:
        return None
    try:
        return json.dumps(payload, separators=(",", ":"))
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"error marshaling request: {exc}") from exc


class Transport:
    """Sends requests to a fixed base address with a fixed set of headers.

    The header snapshot is taken at construction and never changes afterwards,
    so one transport can be shared by concurrent callers.
    """

    def __init__(
        self,
        base_url: str,
        headers: Mapping[str, str] | None = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.headers: Mapping[str, str] = MappingProxyType(dict(headers or {}))
        self.timeout = timeout
        self._session = session or requests.Session()

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def close(self) -> None:
        self._session.close()

    def post(self, path: str, payload: Any = None) -> requests.Response:
        """POST ``payload`` as JSON. ``None`` sends an empty body."""
        data = _dump_payload(payload)
        url = self.url(path)
        headers = {"Content-Type": "application/json", **self.headers}
        logger.debug("POST %s", url)
        try:
            r = self._session.post(url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"error sending request to {url}: {exc}") from exc
        _raise_for_status(r)
        return r

    def get(self, path: str, *, stream: bool = False) -> requests.Response:
        url = self.url(path)
        logger.debug("GET %s", url)
        try:
            r = self._session.get(
                url, headers=dict(self.headers), timeout=self.timeout, stream=stream
            )
        except requests.RequestException as exc:
            raise TransportError(f"error sending request to {url}: {exc}") from exc
        _raise_for_status(r)
        return r

    def post_json(self, path: str, payload: Any, *, operation: str) -> dict[str, Any]:
        """POST JSON and return the parsed object, raising on HTTP errors."""
        return _json_object(self.post(path, payload), operation)

    def get_json(self, path: str, *, operation: str) -> dict[str, Any]:
        """GET and return the parsed object, raising on HTTP errors."""
        return _json_object(self.get(path), operation)

    def get_lines(self, path: str) -> Generator[bytes, None, None]:
        """GET a newline-delimited response and yield its raw lines, blank ones included.

        Lines stay bytes: decoded text would also split on U+2028, U+0085 and
        friends, which JSON allows unescaped inside strings.
        """
        with contextlib.closing(self.get(path, stream=True)) as r:
            try:
                yield from r.iter_lines()
            except requests.RequestException as exc:
                raise TransportError(f"error reading response from {r.url}: {exc}") from exc


def _json_object(r: requests.Response, operation: str) -> dict[str, Any]:
    try:
        data = json.loads(r.text)
    except ValueError as exc:
        raise DecodeError(operation, str(exc)) from exc
    if not isinstance(data, dict):
        raise DecodeError(operation, f"expected a JSON object, got {type(data).__name__}")
    return data
