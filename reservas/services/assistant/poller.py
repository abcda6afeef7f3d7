"""Drive an assistant run to a terminal status, answering tool calls."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from reservas.logging_config import get_logger
from reservas.services.assistant.protocol import (
    AssistantService,
    RunState,
    RunStatus,
    ToolCall,
    ToolHandler,
    ToolOutput,
)
from reservas.services.exceptions import (
    PollTimeoutError,
    RunFailed,
    ServiceError,
)

logger: Any = get_logger(__name__)


class RunPoller:
    """Poll a run until it completes, fails, or runs out of time.

    On ``requires_action`` every tool call with a registered handler is
    executed in order and all outputs are submitted in one batch.
    """

    def __init__(
        self,
        assistant: AssistantService,
        *,
        poll_interval: float = 1.0,
        max_wait: float = 60.0,
        cancel_polls: int = 10,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize poller.

        Args:
            assistant: Assistant service used for polling and tool submission
            poll_interval: Seconds to wait before each poll
            max_wait: Budget for one run in seconds, excluding time in tool handlers
            cancel_polls: Polls allowed for a cancelled run to settle
            sleep: Sleep coroutine (swappable in tests)
        """
        self._assistant = assistant
        self._poll_interval = poll_interval
        self._max_wait = max_wait
        self._cancel_polls = cancel_polls
        self._sleep = sleep

    async def drive(
        self,
        conversation_id: str,
        run_id: str,
        handlers: Mapping[str, ToolHandler] | None = None,
        *,
        max_polls: int | None = None,
    ) -> RunState:
        """Poll until the run reaches a terminal status.

        Args:
            conversation_id: Thread the run belongs to
            run_id: Run to drive
            handlers: Tool handlers by function name
            max_polls: Optional cap on the number of polls

        Returns:
            The completed RunState

        Raises:
            RunFailed: When the run ends failed/expired/cancelled/incomplete
            PollTimeoutError: When the time or poll budget is exhausted
        """
        handlers = handlers or {}
        started = time.monotonic()
        polls = 0

        while True:
            await self._sleep(self._poll_interval)
            state = await self._assistant.get_run(conversation_id, run_id)
            polls += 1
            logger.debug(f"Run {run_id} status: {state.status.value} (poll {polls})")

            if state.status == RunStatus.COMPLETED:
                return state

            if state.status.is_failure:
                logger.warning(f"Run {run_id} ended with status {state.status.value}")
                raise RunFailed(state.status.value, run_id=run_id, detail=state.last_error)

            if state.status == RunStatus.REQUIRES_ACTION:
                handler_started = time.monotonic()
                await self._answer_tool_calls(conversation_id, run_id, state, handlers)
                # Time spent in handlers (user prompts included) is not run time
                started += time.monotonic() - handler_started

            elapsed = time.monotonic() - started
            if (max_polls is not None and polls >= max_polls) or elapsed >= self._max_wait:
                await self._cancel_and_settle(conversation_id, run_id)
                raise PollTimeoutError(run_id, polls, elapsed)

    async def _answer_tool_calls(
        self,
        conversation_id: str,
        run_id: str,
        state: RunState,
        handlers: Mapping[str, ToolHandler],
    ) -> None:
        outputs: list[ToolOutput] = []

        for call in state.pending_tool_calls:
            handler = handlers.get(call.name)
            if handler is None:
                # The run will wait for this output until it expires
                logger.warning(f"No handler for tool {call.name!r} (call {call.call_id})")
                continue

            output = await handler(decode_arguments(call))
            outputs.append(ToolOutput(call_id=call.call_id, output=output))

        if not outputs:
            logger.warning(f"Run {run_id} requires action but no tool output was produced")
            return

        await self._assistant.submit_tool_outputs(conversation_id, run_id, outputs)
        logger.debug(f"Submitted {len(outputs)} tool output(s) for run {run_id}")

    async def _cancel_and_settle(self, conversation_id: str, run_id: str) -> None:
        """Cancel a stalled run and wait until the thread accepts new messages.

        Cancellation is asynchronous: the run sits in ``cancelling`` (still
        active for the thread) until it reaches a terminal status.
        """
        try:
            await self._assistant.cancel_run(conversation_id, run_id)
        except ServiceError as e:
            logger.warning(f"Failed to cancel run {run_id}: {e}")

        for _ in range(self._cancel_polls):
            await self._sleep(self._poll_interval)
            try:
                state = await self._assistant.get_run(conversation_id, run_id)
            except ServiceError as e:
                logger.warning(f"Failed to poll cancelled run {run_id}: {e}")
                return
            if not (state.status.is_pending or state.status == RunStatus.REQUIRES_ACTION):
                logger.debug(f"Run {run_id} settled as {state.status.value}")
                return

        logger.warning(f"Run {run_id} still active after {self._cancel_polls} polls")


def decode_arguments(call: ToolCall) -> dict[str, Any]:
    """Decode a tool call's JSON arguments, falling back to an empty dict."""
    try:
        args = json.loads(call.arguments or "{}")
    except ValueError:
        logger.warning(f"Undecodable arguments for tool {call.name!r}: {call.arguments!r}")
        return {}
    if not isinstance(args, dict):
        logger.warning(f"Tool {call.name!r} arguments are not an object: {call.arguments!r}")
        return {}
    return args
