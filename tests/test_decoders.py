"""Tests for response decoders."""

from __future__ import annotations

import json

import pytest

from llmbridge import DecodeError
from llmbridge._decoders import (
    parse_batch,
    parse_batch_list,
    parse_batch_results,
    parse_chat,
    parse_chat_completion,
    parse_generate,
    parse_models,
)

_GENERATE_RESPONSE = {
    "model": "llama3",
    "created_at": "2024-01-01T00:00:00Z",
    "response": "The sky is blue because...",
    "done": True,
    "context": [1, 2, 3],
    "total_duration": 5000,
    "load_duration": 100,
    "prompt_eval_duration": 200,
    "eval_count": 42,
    "eval_duration": 4000,
}

_CHAT_RESPONSE = {
    "model": "llama3",
    "created_at": "2024-01-01T00:00:00Z",
    "message": {
        "role": "assistant",
        "content": "",
        "thinking": "The user wants weather.",
        "tool_calls": [{"function": {"name": "get_weather", "arguments": {"city": "Paris"}}}],
    },
    "done": True,
    "prompt_eval_count": 12,
    "eval_count": 7,
}

_COMPLETION_RESPONSE = {
    "id": "chatcmpl-123",
    "object": "chat.completion",
    "created": 1700000000,
    "model": "gpt-4o",
    "choices": [
        {
            "index": 0,
            "message": {"role": "assistant", "content": "Hello there!"},
            "finish_reason": "stop",
        },
        {
            "index": 1,
            "message": {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "get_weather", "arguments": '{"city": "Paris"}'},
                    }
                ],
            },
            "finish_reason": "tool_calls",
        },
    ],
    "usage": {
        "prompt_tokens": 10,
        "completion_tokens": 5,
        "total_tokens": 15,
        "prompt_tokens_details": {"cached_tokens": 4},
    },
}


def _result_line(custom_id: str, text: str = "Hi!") -> str:
    return json.dumps(
        {
            "custom_id": custom_id,
            "result": {
                "type": "succeeded",
                "message": {
                    "id": f"msg_{custom_id}",
                    "type": "message",
                    "role": "assistant",
                    "model": "claude-sonnet-4-5",
                    "content": [{"type": "text", "text": text}],
                    "stop_reason": "end_turn",
                    "usage": {"input_tokens": 10, "output_tokens": 5},
                },
            },
        }
    )


# --- Generate / chat ---


def test_parse_generate() -> None:
    r = parse_generate(_GENERATE_RESPONSE)
    assert r.response == "The sky is blue because..."
    assert r.done is True
    assert r.context == (1, 2, 3)
    assert r.eval_count == 42
    assert r.error == ""
    assert r.raw is _GENERATE_RESPONSE


def test_parse_generate_wrong_shape() -> None:
    with pytest.raises(DecodeError, match="generate"):
        parse_generate({"context": 5})


def test_parse_chat() -> None:
    r = parse_chat(_CHAT_RESPONSE)
    assert r.message.role == "assistant"
    assert r.message.thinking == "The user wants weather."
    assert r.message.tool_calls[0].name == "get_weather"
    assert json.loads(r.message.tool_calls[0].arguments) == {"city": "Paris"}
    assert r.prompt_eval_count == 12


def test_parse_chat_structured_content() -> None:
    raw = {"message": {"role": "assistant", "content": [{"type": "text", "text": "hi"}]}}
    assert parse_chat(raw).message.content == "hi"


def test_parse_chat_message_not_object() -> None:
    with pytest.raises(DecodeError, match="chat"):
        parse_chat({"message": "hello"})


# --- Chat completion ---


def test_parse_chat_completion() -> None:
    r = parse_chat_completion(_COMPLETION_RESPONSE)
    assert r.id == "chatcmpl-123"
    assert len(r.choices) == 2
    assert r.choices[0].index == 0
    assert r.choices[0].finish_reason == "stop"
    assert r.text == "Hello there!"
    assert r.choices[1].message.content == ""
    assert r.choices[1].message.tool_calls[0].arguments == '{"city": "Paris"}'
    assert r.usage.prompt_tokens == 10
    assert r.usage.completion_tokens == 5
    assert r.usage.total_tokens == 15
    assert r.usage.cached_tokens == 4


def test_parse_chat_completion_cached_tokens_default() -> None:
    raw = {**_COMPLETION_RESPONSE, "usage": {"prompt_tokens": 1, "total_tokens": 1}}
    assert parse_chat_completion(raw).usage.cached_tokens == 0
    raw["usage"]["prompt_tokens_details"] = None
    assert parse_chat_completion(raw).usage.cached_tokens == 0


def test_parse_chat_completion_no_choices() -> None:
    r = parse_chat_completion({"model": "gpt-4o"})
    assert r.choices == ()
    assert r.text == ""


def test_parse_chat_completion_error_object() -> None:
    r = parse_chat_completion({"error": {"message": "model overloaded"}})
    assert r.error == "model overloaded"


def test_parse_chat_completion_bad_choices() -> None:
    with pytest.raises(DecodeError, match="chat completion"):
        parse_chat_completion({"choices": ["oops"]})


# --- Models ---


def test_parse_models() -> None:
    models = parse_models(
        {
            "object": "list",
            "data": [
                {"id": "llama3", "object": "model", "root": "llama3"},
                {"id": "gpt-4o", "object": "model", "owned_by": "openai"},
            ],
        }
    )
    assert [m.id for m in models] == ["llama3", "gpt-4o"]
    assert models[0].root == "llama3"
    assert models[1].owned_by == "openai"


def test_parse_models_empty() -> None:
    assert parse_models({"object": "list"}) == []


# --- Batches ---


def test_parse_batch() -> None:
    b = parse_batch(
        {
            "id": "msgbatch_1",
            "type": "message_batch",
            "processing_status": "ended",
            "request_counts": {"processing": 0, "succeeded": 2, "errored": 1},
            "created_at": "2024-09-24T18:37:24Z",
            "expires_at": "2024-09-25T18:37:24Z",
            "ended_at": "2024-09-24T18:40:00Z",
            "results_url": "https://api.example.com/v1/messages/batches/msgbatch_1/results",
        }
    )
    assert b.id == "msgbatch_1"
    assert b.request_counts.succeeded == 2
    assert b.request_counts.errored == 1
    assert b.request_counts.canceled == 0
    assert b.archived_at is None
    assert b.is_ended
    assert b.results_ready


def test_parse_batch_in_progress_not_ready() -> None:
    b = parse_batch({"id": "b", "processing_status": "in_progress"})
    assert not b.is_ended
    assert not b.results_ready


def test_parse_batch_list() -> None:
    page = parse_batch_list(
        {
            "data": [{"id": "b1", "processing_status": "ended"}, {"id": "b2"}],
            "has_more": True,
            "first_id": "b1",
            "last_id": "b2",
        }
    )
    assert [b.id for b in page.data] == ["b1", "b2"]
    assert page.has_more
    assert page.last_id == "b2"


# --- Batch results stream ---


def test_parse_batch_results_in_stream_order() -> None:
    lines = [_result_line("c"), _result_line("a"), _result_line("b")]
    results = parse_batch_results(lines)
    assert [r.custom_id for r in results] == ["c", "a", "b"]
    assert all(r.succeeded for r in results)
    assert results[0].result.message is not None
    assert results[0].result.message.text == "Hi!"
    assert results[0].result.message.usage.output_tokens == 5


def test_parse_batch_results_skips_blank_lines() -> None:
    results = parse_batch_results(["", _result_line("a"), "   ", _result_line("b"), ""])
    assert len(results) == 2


def test_parse_batch_results_accepts_bytes() -> None:
    results = parse_batch_results([_result_line("a").encode()])
    assert results[0].custom_id == "a"


def test_parse_batch_results_empty_stream() -> None:
    assert parse_batch_results([]) == []


@pytest.mark.parametrize("bad_line", [2, 3])
def test_parse_batch_results_malformed_line_fails_whole_call(bad_line: int) -> None:
    lines = [_result_line("a"), _result_line("b"), _result_line("c")]
    lines[bad_line - 1] = '{"custom_id": "x", "result": '
    with pytest.raises(DecodeError) as exc_info:
        parse_batch_results(lines)
    assert exc_info.value.line == bad_line
    assert f"line {bad_line}" in str(exc_info.value)


def test_parse_batch_results_non_object_line() -> None:
    with pytest.raises(DecodeError) as exc_info:
        parse_batch_results([_result_line("a"), "[1, 2]"])
    assert exc_info.value.line == 2


@pytest.mark.parametrize(
    "lines",
    [
        ['{"custom_id": "a",', '"result": {"type": "expired"}}'],
        ['{"custom_id": "a"} {"custom_id": "b"}'],
    ],
    ids=["spanning", "sharing"],
)
def test_parse_batch_results_requires_one_object_per_line(lines: list[str]) -> None:
    with pytest.raises(DecodeError) as exc_info:
        parse_batch_results(lines)
    assert exc_info.value.line == 1


def test_parse_batch_results_errored_item_is_data() -> None:
    line = json.dumps(
        {
            "custom_id": "bad",
            "result": {
                "type": "errored",
                "error": {
                    "type": "error",
                    "error": {
                        "type": "invalid_request_error",
                        "message": "max_tokens: too large",
                        "details": {"field": "max_tokens"},
                    },
                },
            },
        }
    )
    results = parse_batch_results([_result_line("good"), line])
    by_id = {r.custom_id: r for r in results}
    assert by_id["good"].succeeded
    bad = by_id["bad"]
    assert not bad.succeeded
    assert bad.result.message is None
    assert bad.result.error is not None
    assert bad.result.error.error is not None
    assert bad.result.error.error.details == {"field": "max_tokens"}
    assert bad.error_message == "max_tokens: too large"


def test_parse_batch_results_canceled_item() -> None:
    line = json.dumps({"custom_id": "c", "result": {"type": "canceled"}})
    (r,) = parse_batch_results([line])
    assert r.result.type == "canceled"
    assert r.error_message is None
