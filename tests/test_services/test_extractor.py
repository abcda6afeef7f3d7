"""Tests for structured-data extraction."""

import json

import pytest
from fakes import FakeAssistant, completed, failed, in_progress, no_sleep

from reservas.prompts.extraction import EXTRACTION_PROMPT, STRUCTURED_FIELDS
from reservas.services.assistant.extractor import StructuredDataExtractor
from reservas.services.assistant.poller import RunPoller
from reservas.services.exceptions import ExtractionExhausted

FULL_JSON = {
    "reserva_fecha": "2025-05-14",
    "reserva_hora": "21:00",
    "reserva_invitados": 4,
    "reserva_nombre": "Laura",
    "reserva_telefono": "699112233",
    "solicitudes_especiales": None,
}


@pytest.fixture
def extractor(assistant: FakeAssistant) -> StructuredDataExtractor:
    poller = RunPoller(assistant, poll_interval=0, max_wait=30, sleep=no_sleep)
    return StructuredDataExtractor(assistant, poller, max_polls=3, max_retries=3)


class TestExtract:
    """Tests for StructuredDataExtractor.extract."""

    @pytest.mark.asyncio
    async def test_first_attempt_succeeds(
        self, extractor: StructuredDataExtractor, assistant: FakeAssistant
    ) -> None:
        assistant.script(in_progress(), completed(), reply=json.dumps(FULL_JSON))

        data = await extractor.extract("thread_test")

        assert data["reserva_fecha"] == "2025-05-14"
        assert data["reserva_invitados"] == "4"
        assert data["solicitudes_especiales"] == ""
        assert assistant.user_messages() == [EXTRACTION_PROMPT]

    @pytest.mark.asyncio
    async def test_json_wrapped_in_prose(
        self, extractor: StructuredDataExtractor, assistant: FakeAssistant
    ) -> None:
        reply = "Claro, aquí está:\n```json\n" + json.dumps(FULL_JSON) + "\n```"
        assistant.script(completed(), reply=reply)

        data = await extractor.extract("thread_test")

        assert data["reserva_nombre"] == "Laura"

    @pytest.mark.asyncio
    async def test_missing_keys_filled_with_empty(
        self, extractor: StructuredDataExtractor, assistant: FakeAssistant
    ) -> None:
        assistant.script(completed(), reply='{"reserva_nombre": "Laura"}')

        data = await extractor.extract("thread_test")

        assert set(STRUCTURED_FIELDS) <= set(data)
        assert data["reserva_nombre"] == "Laura"
        assert data["reserva_telefono"] == ""

    @pytest.mark.asyncio
    async def test_retries_until_json(
        self, extractor: StructuredDataExtractor, assistant: FakeAssistant
    ) -> None:
        assistant.script(completed(), reply="No tengo suficiente información.")
        assistant.script(failed())
        assistant.script(completed(), reply=json.dumps(FULL_JSON))

        data = await extractor.extract("thread_test")

        assert data["reserva_telefono"] == "699112233"
        assert len(assistant.started) == 3
        assert assistant.user_messages().count(EXTRACTION_PROMPT) == 3

    @pytest.mark.asyncio
    async def test_stalled_runs_exhaust_retries(
        self, extractor: StructuredDataExtractor, assistant: FakeAssistant
    ) -> None:
        for _ in range(4):
            assistant.script(in_progress())

        with pytest.raises(ExtractionExhausted) as exc_info:
            await extractor.extract("thread_test")

        assert exc_info.value.attempts == 4
        assert len(assistant.started) == 4
        assert len(assistant.cancelled) == 4

    @pytest.mark.asyncio
    async def test_reply_must_be_newest_message(
        self, extractor: StructuredDataExtractor, assistant: FakeAssistant
    ) -> None:
        """A completed run with no new message does not reuse an older reply."""
        for _ in range(4):
            assistant.script(completed())

        with pytest.raises(ExtractionExhausted):
            await extractor.extract("thread_test")

    def test_max_attempts(self, extractor: StructuredDataExtractor) -> None:
        assert extractor.max_attempts == 4


class TestNormalize:
    """Tests for StructuredDataExtractor.normalize."""

    def test_values_stringified_and_stripped(self, extractor: StructuredDataExtractor) -> None:
        data = extractor.normalize({"reserva_invitados": 4, "reserva_nombre": " Ana ", "extra": None})

        assert data["reserva_invitados"] == "4"
        assert data["reserva_nombre"] == "Ana"
        assert data["extra"] == ""
        assert data["reserva_fecha"] == ""
