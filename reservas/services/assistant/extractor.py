"""Extract structured reservation data from the whole conversation.

Uses the same thread as the chat:
1. Post an extraction prompt asking for a fixed-key JSON object
2. Run the assistant with a short poll cap
3. Decode the JSON from the newest assistant message

Failed attempts (stalled run, failed run, no JSON) are retried a fixed
number of times before giving up.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from reservas.core.heuristics import find_json_object
from reservas.logging_config import get_logger, sanitize_for_log
from reservas.prompts.extraction import ExtractionPromptBuilder
from reservas.services.assistant.poller import RunPoller
from reservas.services.assistant.protocol import AssistantService, Role, ToolHandler
from reservas.services.exceptions import (
    ExtractionExhausted,
    PollTimeoutError,
    RunFailed,
)

logger: Any = get_logger(__name__)


class StructuredDataExtractor:
    """Ask the assistant to summarize the conversation as JSON.

    The returned dict always has every extraction key, with "" for
    anything the assistant left out.
    """

    def __init__(
        self,
        assistant: AssistantService,
        poller: RunPoller,
        *,
        max_polls: int = 15,
        max_retries: int = 3,
        prompts: ExtractionPromptBuilder | None = None,
    ) -> None:
        """Initialize extractor.

        Args:
            assistant: Assistant service holding the conversation
            poller: Poller used to drive each extraction run
            max_polls: Poll cap per extraction run
            max_retries: Extra attempts after the first one fails
            prompts: Optional prompt builder
        """
        self._assistant = assistant
        self._poller = poller
        self._max_polls = max_polls
        self._max_retries = max_retries
        self._prompts = prompts or ExtractionPromptBuilder()

    @property
    def max_attempts(self) -> int:
        return self._max_retries + 1

    async def extract(
        self,
        conversation_id: str,
        handlers: Mapping[str, ToolHandler] | None = None,
    ) -> dict[str, str]:
        """Run extraction attempts until one yields a JSON object.

        Args:
            conversation_id: Thread to summarize
            handlers: Tool handlers in case the assistant calls a tool mid-run

        Returns:
            Normalized dict with every extraction key

        Raises:
            ExtractionExhausted: When every attempt failed
        """
        for attempt in range(1, self.max_attempts + 1):
            logger.info(f"Structured-data extraction attempt {attempt}/{self.max_attempts}")
            data = await self._attempt(conversation_id, handlers)
            if data is not None:
                result = self.normalize(data)
                logger.info(f"Extracted reservation data: {sanitize_for_log(result)}")
                return result

        logger.warning(f"Extraction gave up after {self.max_attempts} attempts")
        raise ExtractionExhausted(self.max_attempts)

    async def _attempt(
        self,
        conversation_id: str,
        handlers: Mapping[str, ToolHandler] | None,
    ) -> dict[str, Any] | None:
        """One extraction round trip. Returns None on any recoverable failure."""
        await self._assistant.post_message(
            conversation_id, Role.USER, self._prompts.build_extraction_prompt()
        )
        run_id = await self._assistant.start_run(conversation_id)

        try:
            await self._poller.drive(
                conversation_id, run_id, handlers, max_polls=self._max_polls
            )
        except PollTimeoutError as e:
            logger.warning(f"Extraction run timed out: {e}")
            return None
        except RunFailed as e:
            logger.warning(f"Extraction run failed: {e}")
            return None

        messages = await self._assistant.list_messages(conversation_id)
        if not messages or messages[0].role != Role.ASSISTANT:
            logger.warning("Extraction run produced no assistant message")
            return None

        data = find_json_object(messages[0].text)
        if data is None:
            logger.warning(f"No JSON object in extraction reply: {messages[0].text[:200]!r}")
        return data

    def normalize(self, data: dict[str, Any]) -> dict[str, str]:
        """Keep the extraction keys, stringified, with "" for missing/null values.

        Extra keys the assistant adds are kept as well.
        """
        result: dict[str, str] = {}
        for key, value in data.items():
            result[key] = "" if value is None else str(value).strip()
        for key in self._prompts.fields:
            result.setdefault(key, "")
        return result
