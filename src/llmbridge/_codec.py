"""Wire encoding for messages, tools and request payloads.

A message without images is sent in the flat form::

    {"role": "user", "content": "hi"}

A message with images switches ``content`` to a list of parts, text first and
then one base64 image part per image, because some providers reject flat
content on image-carrying messages::

    {"role": "user", "content": [{"type": "text", "text": "hi"},
                                 {"type": "image", "source": {...}}]}

Optional fields (thinking, reasoning, tool calls, tool call id) are sibling keys
in both forms and are left out when empty.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from llmbridge._exceptions import EncodeError
from llmbridge._types import (
    BatchRequest,
    Message,
    Options,
    RequestOptions,
    Tool,
    ToolCall,
    ToolParameters,
    ToolSchema,
)

IMAGE_MEDIA_TYPE = "image/jpeg"

_COMPACT = (",", ":")


def _dumps(obj: Any) -> str:
    try:
        return json.dumps(obj, separators=_COMPACT)
    except (TypeError, ValueError) as exc:
        raise EncodeError(f"error marshaling request: {exc}") from exc


# --- Tools ---


def schema_to_wire(schema: ToolSchema) -> dict[str, Any]:
    if isinstance(schema, ToolParameters):
        return {
            "type": schema.type,
            "properties": dict(schema.properties),
            "required": list(schema.required),
        }
    return dict(schema)


def tool_to_wire(tool: Tool) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": schema_to_wire(tool.parameters),
        },
    }


def tool_call_to_wire(tc: ToolCall) -> dict[str, Any]:
    return {
        "function": {"name": tc.name, "arguments": tc.arguments},
        "type": tc.type,
        "id": tc.id,
    }


def _arguments_to_str(raw: Any) -> str:
    # The native protocol returns arguments as an object, OpenAI as a string.
    if raw is None:
        return "{}"
    if isinstance(raw, str):
        return raw
    return _dumps(raw)


def tool_call_from_wire(data: Mapping[str, Any]) -> ToolCall:
    fn = data.get("function") or {}
    return ToolCall(
        id=data.get("id") or "",
        name=fn.get("name") or "",
        arguments=_arguments_to_str(fn.get("arguments")),
        type=data.get("type") or "function",
    )


# --- Messages ---


def _image_part(data: str) -> dict[str, Any]:
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": IMAGE_MEDIA_TYPE, "data": data},
    }


def message_to_wire(msg: Message) -> dict[str, Any]:
    """Convert a Message to its wire dict, picking the flat or structured form."""
    wire: dict[str, Any] = {"role": msg.role}
    if msg.images:
        wire["content"] = [
            {"type": "text", "text": msg.content},
            *(_image_part(img) for img in msg.images),
        ]
    else:
        wire["content"] = msg.content
    if msg.thinking:
        wire["thinking"] = msg.thinking
    if msg.reasoning:
        wire["reasoning_content"] = msg.reasoning
    if msg.tool_calls:
        wire["tool_calls"] = [tool_call_to_wire(tc) for tc in msg.tool_calls]
    if msg.tool_call_id:
        wire["tool_call_id"] = msg.tool_call_id
    return wire


def encode_message(msg: Message) -> str:
    """Serialize a Message to compact JSON."""
    return _dumps(message_to_wire(msg))


def _content_from_wire(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Image parts are not expected in model output and are dropped.
        return "".join(
            part.get("text") or ""
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        )
    raise TypeError(f"message content must be a string or a list, got {type(content).__name__}")


def message_from_wire(data: Mapping[str, Any]) -> Message:
    """Build a Message from a response, accepting flat or structured content."""
    if not isinstance(data, Mapping):
        raise TypeError(f"message must be an object, got {type(data).__name__}")
    images = data.get("images") or ()
    return Message(
        role=data.get("role") or "",
        content=_content_from_wire(data.get("content")),
        thinking=data.get("thinking") or "",
        reasoning=data.get("reasoning_content") or "",
        images=tuple(img for img in images if isinstance(img, str)),
        tool_calls=tuple(tool_call_from_wire(tc) for tc in data.get("tool_calls") or ()),
        tool_call_id=data.get("tool_call_id") or "",
    )


# --- Requests ---


def _options_to_wire(opts: Options) -> dict[str, Any]:
    wire: dict[str, Any] = {}
    if opts.temperature is not None:
        wire["temperature"] = opts.temperature
    if opts.top_p is not None:
        wire["top_p"] = opts.top_p
    if opts.top_k is not None:
        wire["top_k"] = opts.top_k
    if opts.max_tokens is not None:
        wire["num_predict"] = opts.max_tokens
    return wire


def request_to_wire(opts: RequestOptions) -> dict[str, Any]:
    """Build the payload for generate, chat and chat-completion calls.

    ``model`` and ``stream`` are always sent; every other unset field is omitted.
    """
    payload: dict[str, Any] = {"model": opts.model}
    if opts.prompt:
        payload["prompt"] = opts.prompt
    if opts.system:
        payload["system"] = opts.system
    if opts.context:
        payload["context"] = list(opts.context)
    if opts.format:
        payload["format"] = opts.format
    if opts.raw:
        payload["raw"] = True
    if opts.images:
        payload["images"] = list(opts.images)
    payload["stream"] = opts.stream
    if opts.messages:
        payload["messages"] = [message_to_wire(m) for m in opts.messages]
    if opts.options is not None and (options := _options_to_wire(opts.options)):
        payload["options"] = options
    if opts.think:
        payload["think"] = True
    if opts.tools:
        payload["tools"] = [tool_to_wire(t) for t in opts.tools]
    if opts.tool_choice:
        payload["tool_choice"] = opts.tool_choice
    return payload


def batch_request_to_wire(req: BatchRequest) -> dict[str, Any]:
    p = req.params
    params: dict[str, Any] = {
        "model": p.model,
        "max_tokens": p.max_tokens,
        "messages": [message_to_wire(m) for m in p.messages],
    }
    if p.system:
        params["system"] = p.system
    if p.temperature is not None:
        params["temperature"] = p.temperature
    if p.top_p is not None:
        params["top_p"] = p.top_p
    if p.top_k is not None:
        params["top_k"] = p.top_k
    if p.stop_sequences:
        params["stop_sequences"] = list(p.stop_sequences)
    if p.metadata:
        params["metadata"] = dict(p.metadata)
    return {"custom_id": req.custom_id, "params": params}
