"""Typed request and response values shared by every protocol."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias

Role: TypeAlias = Literal["system", "user", "assistant", "tool"]

# --- Tools ---


@dataclass(frozen=True, slots=True)
class ToolParameters:
    """JSON schema for a tool's parameters."""

    properties: dict[str, Any] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    type: str = "object"


# A structured schema or any JSON-serializable schema object taken verbatim.
ToolSchema: TypeAlias = ToolParameters | Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Tool:
    """A tool/function definition passed to the model."""

    name: str
    description: str
    parameters: ToolSchema = field(default_factory=ToolParameters)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A tool call made by the model.

    ``arguments`` is the raw JSON string the provider produced; it is not parsed.
    """

    id: str
    name: str
    arguments: str = "{}"
    type: str = "function"


# --- Messages ---


@dataclass(frozen=True, slots=True)
class Message:
    """A chat message.

    ``images`` holds base64 blobs. A message carrying images is serialized with
    structured content parts instead of a flat string.
    """

    role: Role | str
    content: str = ""
    thinking: str = ""
    reasoning: str = ""
    images: tuple[str, ...] = ()
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str = ""


# --- Requests ---


@dataclass(frozen=True, slots=True)
class Options:
    """Sampling parameters. ``None`` leaves the provider default in place."""

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class RequestOptions:
    """Superset of request fields for the native and OpenAI-compatible protocols.

    Fields that do not apply to an endpoint are left unset and are omitted from
    the payload.
    """

    model: str
    prompt: str = ""
    system: str = ""
    context: tuple[int, ...] = ()
    format: str = ""
    raw: bool = False
    images: tuple[str, ...] = ()
    stream: bool = False
    messages: tuple[Message, ...] = ()
    options: Options | None = None
    think: bool = False
    tools: tuple[Tool, ...] = ()
    tool_choice: str = ""


# --- Results ---


@dataclass(frozen=True, slots=True)
class GenerateResult:
    """Result of a native ``/api/generate`` call."""

    model: str = ""
    created_at: str = ""
    response: str = ""
    done: bool = False
    context: tuple[int, ...] = ()
    total_duration: int = 0
    load_duration: int = 0
    prompt_eval_duration: int = 0
    eval_count: int = 0
    eval_duration: int = 0
    error: str = ""
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ChatResult:
    """Result of a native ``/api/chat`` call."""

    model: str = ""
    message: Message = field(default_factory=lambda: Message(role="assistant"))
    created_at: str = ""
    done: bool = False
    error: str = ""
    prompt_eval_count: int = 0
    prompt_eval_duration: int = 0
    eval_count: int = 0
    eval_duration: int = 0
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Usage:
    """Token usage counts."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    cached_tokens: int = 0


@dataclass(frozen=True, slots=True)
class Choice:
    """One indexed completion choice."""

    index: int
    message: Message
    finish_reason: str = ""


@dataclass(frozen=True, slots=True)
class ChatCompletionResult:
    """Result of an OpenAI-compatible ``/chat/completions`` call."""

    id: str = ""
    model: str = ""
    created: int = 0
    choices: tuple[Choice, ...] = ()
    usage: Usage = field(default_factory=Usage)
    error: str = ""
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        """Content of the first choice, or ``""`` when there are none."""
        if not self.choices:
            return ""
        return self.choices[0].message.content


@dataclass(frozen=True, slots=True)
class ModelDesc:
    """A model entry from ``/models``."""

    id: str
    object: str = ""
    root: str = ""
    owned_by: str = ""


# --- Message batches ---


@dataclass(frozen=True, slots=True)
class BatchRequestParams:
    """Generation parameters for one item of a message batch."""

    model: str
    max_tokens: int
    messages: tuple[Message, ...]
    system: str = ""
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    stop_sequences: tuple[str, ...] = ()
    metadata: Mapping[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class BatchRequest:
    """A single request within a batch, tagged with a caller-chosen ``custom_id``."""

    custom_id: str
    params: BatchRequestParams


@dataclass(frozen=True, slots=True)
class BatchRequestCounts:
    processing: int = 0
    succeeded: int = 0
    errored: int = 0
    canceled: int = 0
    expired: int = 0


@dataclass(frozen=True, slots=True)
class Batch:
    """A message batch and its processing state."""

    id: str
    type: str = "message_batch"
    processing_status: str = ""
    request_counts: BatchRequestCounts = field(default_factory=BatchRequestCounts)
    created_at: str = ""
    expires_at: str = ""
    ended_at: str | None = None
    archived_at: str | None = None
    cancel_initiated_at: str | None = None
    results_url: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def is_ended(self) -> bool:
        return self.processing_status == "ended"

    @property
    def results_ready(self) -> bool:
        """True once the batch has ended and a results location is published."""
        return self.is_ended and bool(self.results_url)


@dataclass(frozen=True, slots=True)
class BatchList:
    """One page of batches. Continue with ``after_id=last_id`` while ``has_more``."""

    data: tuple[Batch, ...] = ()
    has_more: bool = False
    first_id: str | None = None
    last_id: str | None = None


@dataclass(frozen=True, slots=True)
class ContentBlock:
    type: str
    text: str = ""


@dataclass(frozen=True, slots=True)
class BatchUsage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass(frozen=True, slots=True)
class BatchMessage:
    """The assistant message produced for a succeeded batch item."""

    id: str = ""
    type: str = "message"
    role: str = "assistant"
    content: tuple[ContentBlock, ...] = ()
    model: str = ""
    stop_reason: str = ""
    stop_sequence: str = ""
    usage: BatchUsage = field(default_factory=BatchUsage)

    @property
    def text(self) -> str:
        return "".join(block.text for block in self.content if block.type == "text")


@dataclass(frozen=True, slots=True)
class NestedBatchError:
    type: str = ""
    message: str = ""
    details: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class BatchError:
    """Error reported for a single batch item."""

    type: str = ""
    message: str = ""
    error: NestedBatchError | None = None

    def resolve_message(self) -> str:
        """Return the most descriptive message available.

        Providers fill these fields inconsistently, so the lookup order is:
        nested message, top-level message, nested type, top-level type.
        """
        if self.error is not None and self.error.message:
            return self.error.message
        if self.message:
            return self.message
        if self.error is not None and self.error.type:
            return self.error.type
        return self.type


@dataclass(frozen=True, slots=True)
class BatchResultDetail:
    type: str
    message: BatchMessage | None = None
    error: BatchError | None = None


@dataclass(frozen=True, slots=True)
class BatchResult:
    """Outcome of one batch item. Correlate by ``custom_id``, never by position."""

    custom_id: str
    result: BatchResultDetail

    @property
    def succeeded(self) -> bool:
        return self.result.type == "succeeded"

    @property
    def error_message(self) -> str | None:
        if self.result.error is None:
            return None
        return self.result.error.resolve_message()
