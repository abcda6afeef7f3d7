"""Assistant service protocol and data types."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class Role(str, Enum):
    """Message role in a conversation thread."""

    USER = "user"
    ASSISTANT = "assistant"


class RunStatus(str, Enum):
    """Lifecycle status of an assistant run."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    INCOMPLETE = "incomplete"

    @classmethod
    def parse(cls, value: str) -> RunStatus:
        """Map an API status string, treating unknown values as still running."""
        try:
            return cls(value)
        except ValueError:
            return cls.IN_PROGRESS

    @property
    def is_pending(self) -> bool:
        return self in _PENDING_STATUSES

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_STATUSES


_PENDING_STATUSES = frozenset({RunStatus.QUEUED, RunStatus.IN_PROGRESS, RunStatus.CANCELLING})
_FAILURE_STATUSES = frozenset(
    {RunStatus.FAILED, RunStatus.EXPIRED, RunStatus.CANCELLED, RunStatus.INCOMPLETE}
)


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A function call the assistant asks us to execute."""

    call_id: str
    name: str
    arguments: str = "{}"


@dataclass(frozen=True, slots=True)
class ToolOutput:
    """Result of one tool call, sent back to the run."""

    call_id: str
    output: str


@dataclass(frozen=True, slots=True)
class RunState:
    """Snapshot of a run as returned by a status poll."""

    run_id: str
    status: RunStatus
    pending_tool_calls: tuple[ToolCall, ...] = ()
    last_error: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RunState:
        """Build from an Assistants v2 run object."""
        status = RunStatus.parse(data.get("status", ""))

        calls: list[ToolCall] = []
        if status == RunStatus.REQUIRES_ACTION:
            required = data.get("required_action") or {}
            submit = required.get("submit_tool_outputs") or {}
            for raw in submit.get("tool_calls") or []:
                function = raw.get("function") or {}
                calls.append(
                    ToolCall(
                        call_id=raw.get("id", ""),
                        name=function.get("name", ""),
                        arguments=function.get("arguments") or "{}",
                    )
                )

        error = data.get("last_error") or {}
        return cls(
            run_id=data.get("id", ""),
            status=status,
            pending_tool_calls=tuple(calls),
            last_error=error.get("message") if error else None,
        )


@dataclass(frozen=True, slots=True)
class ThreadMessage:
    """A message read back from a conversation thread."""

    role: Role
    text: str
    message_id: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ThreadMessage:
        """Build from an Assistants v2 message object (first text part only)."""
        text = ""
        for part in data.get("content") or []:
            if part.get("type", "text") == "text" and part.get("text"):
                text = part["text"].get("value", "")
                break

        return cls(
            role=Role(data.get("role", Role.ASSISTANT.value)),
            text=text,
            message_id=data.get("id", ""),
        )


# Tool handlers receive the decoded arguments and return the output string
ToolHandler = Callable[[dict[str, Any]], Awaitable[str]]


class AssistantService(Protocol):
    """Protocol for hosted assistant implementations."""

    async def create_conversation(self) -> str:
        """Create a new conversation thread and return its id."""
        ...

    async def post_message(self, conversation_id: str, role: Role, text: str) -> None:
        """Append a message to the thread."""
        ...

    async def start_run(self, conversation_id: str) -> str:
        """Start the assistant on the thread and return the run id."""
        ...

    async def get_run(self, conversation_id: str, run_id: str) -> RunState:
        """Poll the current state of a run."""
        ...

    async def submit_tool_outputs(
        self,
        conversation_id: str,
        run_id: str,
        outputs: list[ToolOutput],
    ) -> None:
        """Resume a run waiting on tool calls."""
        ...

    async def list_messages(self, conversation_id: str) -> list[ThreadMessage]:
        """List thread messages, most recent first."""
        ...

    async def cancel_run(self, conversation_id: str, run_id: str) -> None:
        """Cancel a run that is still pending."""
        ...
