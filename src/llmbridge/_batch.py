"""Message Batches API: create, poll, list, cancel and fetch results."""

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import Sequence
from urllib.parse import quote, urlencode

from llmbridge._codec import batch_request_to_wire
from llmbridge._decoders import parse_batch, parse_batch_list, parse_batch_results
from llmbridge._exceptions import BatchTimeoutError
from llmbridge._http import Transport
from llmbridge._types import Batch, BatchList, BatchRequest, BatchResult

logger = logging.getLogger(__name__)

_BATCHES_PATH = "/messages/batches"


def _batch_path(batch_id: str, suffix: str = "") -> str:
    return f"{_BATCHES_PATH}/{quote(batch_id, safe='')}{suffix}"


def list_query(limit: int = 0, before_id: str = "", after_id: str = "") -> str:
    """Build the ``?limit=&before_id=&after_id=`` suffix, leaving out unset values."""
    params: list[tuple[str, str | int]] = []
    if limit > 0:
        params.append(("limit", limit))
    if before_id:
        params.append(("before_id", before_id))
    if after_id:
        params.append(("after_id", after_id))
    return f"?{urlencode(params)}" if params else ""


class BatchClient:
    """Synchronous client for the asynchronous message batch endpoints.

    Every call is a single request; polling cadence and retries on transient
    failures are left to the caller (``wait`` is a plain polling loop).

    Usage::

        batch = client.batches.create([BatchRequest("a", params), BatchRequest("b", params)])
        batch = client.batches.wait(batch.id)
        by_id = {r.custom_id: r for r in client.batches.fetch_results(batch.id)}
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    def create(self, requests: Sequence[BatchRequest]) -> Batch:
        """Submit all requests in one call. No chunking is done here."""
        payload = {"requests": [batch_request_to_wire(r) for r in requests]}
        raw = self._transport.post_json(_BATCHES_PATH, payload, operation="create batch")
        return parse_batch(raw)

    def get(self, batch_id: str) -> Batch:
        raw = self._transport.get_json(_batch_path(batch_id), operation="get batch")
        return parse_batch(raw)

    def list(self, limit: int = 0, before_id: str = "", after_id: str = "") -> BatchList:
        """Return one page of batches; ``limit <= 0`` uses the provider default."""
        path = _BATCHES_PATH + list_query(limit, before_id, after_id)
        raw = self._transport.get_json(path, operation="list batches")
        return parse_batch_list(raw)

    def cancel(self, batch_id: str) -> Batch:
        """Request cancellation.

        The returned batch shows cancellation as initiated (usually
        ``processing_status == "canceling"``); poll ``get`` to see it end.
        """
        raw = self._transport.post_json(
            _batch_path(batch_id, "/cancel"), None, operation="cancel batch"
        )
        return parse_batch(raw)

    def fetch_results(self, batch_id: str) -> list[BatchResult]:
        """Retrieve per-item results of an ended batch.

        Items that errored are returned as data; only transport and decode
        failures raise.
        """
        lines = self._transport.get_lines(_batch_path(batch_id, "/results"))
        # Closing the generator releases the streamed response on decode errors too.
        with contextlib.closing(lines):
            return parse_batch_results(lines)

    def wait(
        self,
        batch_id: str,
        *,
        poll_interval: float = 30.0,
        max_wait: float | None = None,
    ) -> Batch:
        """Poll ``get`` until the batch has ended and return it."""
        start = time.monotonic()
        while True:
            batch = self.get(batch_id)
            c = batch.request_counts
            logger.debug(
                "batch %s: %s (processing=%d succeeded=%d errored=%d)",
                batch_id,
                batch.processing_status,
                c.processing,
                c.succeeded,
                c.errored,
            )
            if batch.is_ended:
                return batch
            waited = time.monotonic() - start
            if max_wait is not None and waited + poll_interval > max_wait:
                raise BatchTimeoutError(batch_id, waited, batch.processing_status)
            time.sleep(poll_interval)
