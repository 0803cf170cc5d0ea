"""Exceptions raised by the client."""

from __future__ import annotations


class ClientError(Exception):
    """Base class for every error raised by llmbridge."""


class TransportError(ClientError):
    """Raised when a request could not be completed (connection failure, timeout)."""


class APIError(TransportError):
    """Raised when a provider answers with a non-200 status.

    ``body`` holds the response body exactly as it was received.
    """

    def __init__(self, status_code: int, body: str, *, url: str = "") -> None:
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"API returned non-200 status code {status_code}: {body}")


class RateLimitError(APIError):
    """Raised on HTTP 429 — includes optional ``retry_after`` from the server."""

    def __init__(
        self,
        status_code: int,
        body: str,
        retry_after: float | None = None,
        *,
        url: str = "",
    ) -> None:
        super().__init__(status_code, body, url=url)
        self.retry_after = retry_after


class EncodeError(ClientError):
    """Raised when a request payload cannot be serialized to JSON."""


class DecodeError(ClientError):
    """Raised when a response does not match the shape expected by an operation."""

    def __init__(self, operation: str, detail: str, *, line: int | None = None) -> None:
        self.operation = operation
        self.line = line
        where = f" at line {line}" if line is not None else ""
        super().__init__(f"error decoding {operation} response{where}: {detail}")


class StreamingNotSupportedError(ClientError):
    """Raised when ``stream=True`` is requested; incremental delivery is not implemented."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"streaming is not supported for {operation}; set stream=False")


class BatchTimeoutError(ClientError):
    """Raised when a batch does not end within the allotted wait."""

    def __init__(self, batch_id: str, waited: float, status: str) -> None:
        self.batch_id = batch_id
        self.waited = waited
        self.status = status
        super().__init__(
            f"batch {batch_id} still {status!r} after waiting {waited:.1f}s"
        )
