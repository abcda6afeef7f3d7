"""Hosted assistant services (threads, runs, tool calls)."""

from reservas.services.assistant.client import AssistantClient
from reservas.services.assistant.extractor import StructuredDataExtractor
from reservas.services.assistant.poller import RunPoller
from reservas.services.assistant.protocol import (
    AssistantService,
    Role,
    RunState,
    RunStatus,
    ThreadMessage,
    ToolCall,
    ToolHandler,
    ToolOutput,
)
from reservas.services.exceptions import (
    AuthError,
    ExtractionExhausted,
    PollTimeoutError,
    RateLimitError,
    RunFailed,
    ServiceError,
    ServiceTimeoutError,
    TransportError,
    UpstreamError,
)

__all__ = [
    # Protocol and types
    "AssistantService",
    "Role",
    "RunState",
    "RunStatus",
    "ThreadMessage",
    "ToolCall",
    "ToolHandler",
    "ToolOutput",
    # Implementation
    "AssistantClient",
    "RunPoller",
    "StructuredDataExtractor",
    # Exceptions
    "ServiceError",
    "TransportError",
    "ServiceTimeoutError",
    "UpstreamError",
    "AuthError",
    "RateLimitError",
    "RunFailed",
    "PollTimeoutError",
    "ExtractionExhausted",
]
