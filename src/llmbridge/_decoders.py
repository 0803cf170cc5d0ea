"""Decoders from provider JSON envelopes to result types.

The decoder is chosen by the operation that was called, never by inspecting
the payload.
"""

from __future__ import annotations

import contextlib
import json
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from llmbridge._codec import message_from_wire
from llmbridge._exceptions import DecodeError
from llmbridge._types import (
    Batch,
    BatchError,
    BatchList,
    BatchMessage,
    BatchRequestCounts,
    BatchResult,
    BatchResultDetail,
    BatchUsage,
    ChatCompletionResult,
    ChatResult,
    Choice,
    ContentBlock,
    GenerateResult,
    ModelDesc,
    NestedBatchError,
    Usage,
)

_SHAPE_ERRORS = (TypeError, AttributeError, ValueError)


@contextlib.contextmanager
def _decoding(operation: str) -> Iterator[None]:
    try:
        yield
    except _SHAPE_ERRORS as exc:
        raise DecodeError(operation, str(exc)) from exc


def parse_generate(raw: dict[str, Any]) -> GenerateResult:
    with _decoding("generate"):
        return GenerateResult(
            model=raw.get("model") or "",
            created_at=raw.get("created_at") or "",
            response=raw.get("response") or "",
            done=bool(raw.get("done", False)),
            context=tuple(raw.get("context") or ()),
            total_duration=raw.get("total_duration") or 0,
            load_duration=raw.get("load_duration") or 0,
            prompt_eval_duration=raw.get("prompt_eval_duration") or 0,
            eval_count=raw.get("eval_count") or 0,
            eval_duration=raw.get("eval_duration") or 0,
            error=raw.get("error") or "",
            raw=raw,
        )


def parse_chat(raw: dict[str, Any]) -> ChatResult:
    with _decoding("chat"):
        return ChatResult(
            model=raw.get("model") or "",
            message=message_from_wire(raw.get("message") or {}),
            created_at=raw.get("created_at") or "",
            done=bool(raw.get("done", False)),
            error=raw.get("error") or "",
            prompt_eval_count=raw.get("prompt_eval_count") or 0,
            prompt_eval_duration=raw.get("prompt_eval_duration") or 0,
            eval_count=raw.get("eval_count") or 0,
            eval_duration=raw.get("eval_duration") or 0,
            raw=raw,
        )


def _parse_usage(raw_usage: Mapping[str, Any]) -> Usage:
    details = raw_usage.get("prompt_tokens_details") or {}
    return Usage(
        prompt_tokens=raw_usage.get("prompt_tokens") or 0,
        completion_tokens=raw_usage.get("completion_tokens") or 0,
        total_tokens=raw_usage.get("total_tokens") or 0,
        cached_tokens=details.get("cached_tokens") or 0,
    )


def parse_chat_completion(raw: dict[str, Any]) -> ChatCompletionResult:
    with _decoding("chat completion"):
        choices = tuple(
            Choice(
                index=c.get("index") or 0,
                message=message_from_wire(c.get("message") or {}),
                finish_reason=c.get("finish_reason") or "",
            )
            for c in raw.get("choices") or ()
        )
        # Some servers report failures as a 200 with an ``error`` object.
        error = raw.get("error") or ""
        if isinstance(error, Mapping):
            error = error.get("message") or json.dumps(error)
        return ChatCompletionResult(
            id=raw.get("id") or "",
            model=raw.get("model") or "",
            created=raw.get("created") or 0,
            choices=choices,
            usage=_parse_usage(raw.get("usage") or {}),
            error=error,
            raw=raw,
        )


def parse_models(raw: dict[str, Any]) -> list[ModelDesc]:
    with _decoding("list models"):
        return [
            ModelDesc(
                id=m.get("id") or "",
                object=m.get("object") or "",
                root=m.get("root") or "",
                owned_by=m.get("owned_by") or "",
            )
            for m in raw.get("data") or ()
        ]


# --- Message batches ---


def _batch(raw: Mapping[str, Any]) -> Batch:
    counts = raw.get("request_counts") or {}
    return Batch(
        id=raw.get("id") or "",
        type=raw.get("type") or "message_batch",
        processing_status=raw.get("processing_status") or "",
        request_counts=BatchRequestCounts(
            processing=counts.get("processing") or 0,
            succeeded=counts.get("succeeded") or 0,
            errored=counts.get("errored") or 0,
            canceled=counts.get("canceled") or 0,
            expired=counts.get("expired") or 0,
        ),
        created_at=raw.get("created_at") or "",
        expires_at=raw.get("expires_at") or "",
        ended_at=raw.get("ended_at"),
        archived_at=raw.get("archived_at"),
        cancel_initiated_at=raw.get("cancel_initiated_at"),
        results_url=raw.get("results_url"),
        raw=dict(raw),
    )


def parse_batch(raw: dict[str, Any]) -> Batch:
    with _decoding("batch"):
        return _batch(raw)


def parse_batch_list(raw: dict[str, Any]) -> BatchList:
    with _decoding("list batches"):
        return BatchList(
            data=tuple(_batch(b) for b in raw.get("data") or ()),
            has_more=bool(raw.get("has_more", False)),
            first_id=raw.get("first_id"),
            last_id=raw.get("last_id"),
        )


def _batch_message(raw: Mapping[str, Any]) -> BatchMessage:
    usage = raw.get("usage") or {}
    return BatchMessage(
        id=raw.get("id") or "",
        type=raw.get("type") or "message",
        role=raw.get("role") or "assistant",
        content=tuple(
            ContentBlock(type=b.get("type") or "", text=b.get("text") or "")
            for b in raw.get("content") or ()
        ),
        model=raw.get("model") or "",
        stop_reason=raw.get("stop_reason") or "",
        stop_sequence=raw.get("stop_sequence") or "",
        usage=BatchUsage(
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
        ),
    )


def _batch_error(raw: Mapping[str, Any]) -> BatchError:
    nested = raw.get("error")
    return BatchError(
        type=raw.get("type") or "",
        message=raw.get("message") or "",
        error=NestedBatchError(
            type=nested.get("type") or "",
            message=nested.get("message") or "",
            details=nested.get("details"),
        )
        if nested
        else None,
    )


def _batch_result(row: Mapping[str, Any]) -> BatchResult:
    result = row.get("result") or {}
    message = result.get("message")
    error = result.get("error")
    return BatchResult(
        custom_id=row.get("custom_id") or "",
        result=BatchResultDetail(
            type=result.get("type") or "",
            message=_batch_message(message) if message else None,
            error=_batch_error(error) if error else None,
        ),
    )


def parse_batch_results(lines: Iterable[str | bytes]) -> list[BatchResult]:
    """Decode a newline-delimited stream of batch results.

    Lines are consumed one at a time. A malformed line fails the whole call
    with its 1-indexed line number; no partial list is returned.

    Each non-blank line must hold exactly one JSON object, as the results
    endpoint emits; values spanning or sharing lines are rejected. Byte lines
    are decoded as UTF-8 regardless of any charset the server advertised.
    """
    results: list[BatchResult] = []
    for lineno, line in enumerate(lines, start=1):
        try:
            if isinstance(line, bytes):
                line = line.decode("utf-8")
            if not line.strip():
                continue
            row = json.loads(line)
            if not isinstance(row, dict):
                raise TypeError(f"expected a JSON object, got {type(row).__name__}")
            results.append(_batch_result(row))
        except _SHAPE_ERRORS as exc:
            raise DecodeError("batch results", str(exc), line=lineno) from exc
    return results
