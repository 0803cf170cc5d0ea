"""llmbridge — typed client for native, OpenAI-compatible and message batch LLM APIs."""

import logging

from llmbridge._batch import BatchClient
from llmbridge._client import Client
from llmbridge._codec import encode_message, message_from_wire, message_to_wire
from llmbridge._exceptions import (
    APIError,
    BatchTimeoutError,
    ClientError,
    DecodeError,
    EncodeError,
    RateLimitError,
    StreamingNotSupportedError,
    TransportError,
)
from llmbridge._images import encode_image_file
from llmbridge._types import (
    Batch,
    BatchError,
    BatchList,
    BatchMessage,
    BatchRequest,
    BatchRequestCounts,
    BatchRequestParams,
    BatchResult,
    BatchResultDetail,
    BatchUsage,
    ChatCompletionResult,
    ChatResult,
    Choice,
    ContentBlock,
    GenerateResult,
    Message,
    ModelDesc,
    NestedBatchError,
    Options,
    RequestOptions,
    Tool,
    ToolCall,
    ToolParameters,
    Usage,
)

logging.getLogger("llmbridge").addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "Batch",
    "BatchClient",
    "BatchError",
    "BatchList",
    "BatchMessage",
    "BatchRequest",
    "BatchRequestCounts",
    "BatchRequestParams",
    "BatchResult",
    "BatchResultDetail",
    "BatchTimeoutError",
    "BatchUsage",
    "ChatCompletionResult",
    "ChatResult",
    "Choice",
    "Client",
    "ClientError",
    "ContentBlock",
    "DecodeError",
    "EncodeError",
    "GenerateResult",
    "Message",
    "ModelDesc",
    "NestedBatchError",
    "Options",
    "RateLimitError",
    "RequestOptions",
    "StreamingNotSupportedError",
    "Tool",
    "ToolCall",
    "ToolParameters",
    "TransportError",
    "Usage",
    "encode_image_file",
    "encode_message",
    "message_from_wire",
    "message_to_wire",
]
