"""Orchestrate the reservation conversation.

Coordinates between:
- The hosted assistant (one run per user turn)
- The availability webhook, called from the assistant's tool calls
- Local heuristics on user input and assistant replies
- Structured-data extraction and the final webhook submission
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from reservas.config import Settings, get_settings
from reservas.core.availability import AvailabilityResult, parse_availability
from reservas.core.conversation_state import ConversationPhase, ReservationDraft
from reservas.core.heuristics import (
    extract_name,
    extract_phone,
    is_confirmation_signal,
    is_exit_command,
    mentions_phone,
)
from reservas.core.session import ConversationSession
from reservas.logging_config import get_logger, mask_phone, sanitize_for_log
from reservas.prompts.extraction import REASK_REPLY, ExtractionPromptBuilder
from reservas.prompts.restaurant import NO_REPLY, RestaurantPromptBuilder
from reservas.services.assistant.extractor import StructuredDataExtractor
from reservas.services.assistant.poller import RunPoller
from reservas.services.assistant.protocol import AssistantService, Role, ToolHandler
from reservas.services.exceptions import (
    ExtractionExhausted,
    PollTimeoutError,
    RunFailed,
    TransportError,
    UpstreamError,
)
from reservas.services.webhook import WebhookClient

logger: Any = get_logger(__name__)

AVAILABILITY_TOOL = "checkAvailability"

RESPONSES = {
    "run_failed": 'La conversación terminó con estado "{status}"',
    "run_timeout": "El asistente no respondió a tiempo, inténtalo de nuevo.",
    "submitted": "¡Reserva completada con éxito!",
    "extraction_failed": "No se pudieron extraer los datos necesarios de la conversación",
}


@dataclass
class TurnResult:
    """Outcome of one user turn."""

    reply: str | None = None  # Assistant reply to show
    notices: list[str] = field(default_factory=list)  # Local status lines
    error: str | None = None  # Recoverable turn error
    exit: bool = False
    completed: bool = False


class ReservationFlow:
    """Drive one reservation conversation, turn by turn.

    All per-conversation state lives in the ConversationSession passed to
    each call; the flow itself only holds the service clients.
    """

    def __init__(
        self,
        assistant: AssistantService,
        webhook: WebhookClient,
        settings: Settings | None = None,
        *,
        before_webhook: Callable[[], Awaitable[None]] | None = None,
        now: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize reservation flow.

        Args:
            assistant: Hosted assistant service
            webhook: Availability/reservation webhook client
            settings: Application settings
            before_webhook: Awaited once before the first webhook call
            now: Clock for the date context message
            sleep: Sleep coroutine used between polls
        """
        self._settings = settings or get_settings()
        self._assistant = assistant
        self._webhook = webhook
        self._before_webhook = before_webhook
        self._now = now or (lambda: datetime.now(UTC))

        self._restaurant = RestaurantPromptBuilder(
            restaurant_name=self._settings.restaurant_name,
            agent_name=self._settings.agent_name,
            timezone=self._settings.timezone,
        )
        self._extraction_prompts = ExtractionPromptBuilder()
        self._poller = RunPoller(
            assistant,
            poll_interval=self._settings.run_poll_interval_seconds,
            max_wait=self._settings.run_max_wait_seconds,
            cancel_polls=self._settings.run_cancel_max_polls,
            sleep=sleep,
        )
        self._extractor = StructuredDataExtractor(
            assistant,
            self._poller,
            max_polls=self._settings.extraction_max_polls,
            max_retries=self._settings.extraction_max_retries,
            prompts=self._extraction_prompts,
        )

    @property
    def greeting(self) -> str:
        return self._restaurant.greeting()

    @property
    def farewell(self) -> str:
        return self._restaurant.farewell()

    @property
    def agent_name(self) -> str:
        return self._restaurant.agent_name

    async def start(self) -> ConversationSession:
        """Create the thread and seed it with the current date context."""
        conversation_id = await self._assistant.create_conversation()
        session = ConversationSession(conversation_id=conversation_id)

        await self._assistant.post_message(
            conversation_id, Role.USER, self._restaurant.build_date_context(self._now())
        )
        session.transition_to(ConversationPhase.COLLECTING)
        logger.info(f"Conversation started: {conversation_id}")
        return session

    async def handle_turn(self, session: ConversationSession, user_input: str) -> TurnResult:
        """Process one line of user input.

        Args:
            session: Current conversation session
            user_input: Raw text typed by the user

        Returns:
            TurnResult with the assistant reply and any local notices

        Raises:
            TransportError: When a service is unreachable (fatal for the session)
            UpstreamError: When a service rejects a request (fatal for the session)
        """
        if is_exit_command(user_input):
            session.transition_to(ConversationPhase.USER_EXIT)
            logger.info(f"User exited conversation {session.conversation_id}")
            return TurnResult(exit=True)

        session.turns += 1
        self._apply_user_heuristics(session, user_input)

        await self._assistant.post_message(session.conversation_id, Role.USER, user_input)

        try:
            reply = await self._run_assistant(session)
        except RunFailed as e:
            logger.warning(f"Turn {session.turns} aborted: {e}")
            self._settle_phase(session)
            return TurnResult(error=RESPONSES["run_failed"].format(status=e.status))
        except PollTimeoutError as e:
            logger.warning(f"Turn {session.turns} aborted: {e}")
            self._settle_phase(session)
            return TurnResult(error=RESPONSES["run_timeout"])

        self._settle_phase(session)

        if reply is None:
            return TurnResult(reply=NO_REPLY)

        result = TurnResult(reply=reply)
        if self.should_finalize(session, reply):
            await self.finalize(session, result)
        return result

    def _apply_user_heuristics(self, session: ConversationSession, text: str) -> None:
        name = extract_name(text)
        if name:
            session.draft.customer_name = name
            logger.debug(f"Name captured from input: {name}")

        if (
            session.availability_checked
            and not session.phone_collected
            and mentions_phone(text)
        ):
            phone = extract_phone(text)
            if phone:
                session.draft.customer_phone = phone
            session.phone_collected = True
            logger.info(f"Phone collected: {mask_phone(phone)}")

    def _settle_phase(self, session: ConversationSession) -> None:
        """Pick the collecting phase that matches the session flags."""
        if session.availability_checked and not session.phone_collected:
            session.transition_to(ConversationPhase.PHONE_COLLECTION)
        else:
            session.transition_to(ConversationPhase.COLLECTING)

    async def _run_assistant(self, session: ConversationSession) -> str | None:
        """Start a run, drive it to completion and return the latest reply."""
        run_id = await self._assistant.start_run(session.conversation_id)
        await self._poller.drive(session.conversation_id, run_id, self._tool_handlers(session))

        messages = await self._assistant.list_messages(session.conversation_id)
        # Newest first; a user message on top means the run added no reply
        if messages and messages[0].role == Role.ASSISTANT:
            return messages[0].text or None
        return None

    def _tool_handlers(self, session: ConversationSession) -> dict[str, ToolHandler]:
        async def check_availability(args: dict[str, Any]) -> str:
            return await self.check_availability(session, args)

        return {AVAILABILITY_TOOL: check_availability}

    async def check_availability(self, session: ConversationSession, args: dict[str, Any]) -> str:
        """Answer a checkAvailability tool call.

        Records the requested slot on the draft, asks the webhook, and keeps
        any table identifiers it returns. Webhook failures are reported to
        the assistant as an unavailable result instead of ending the session.

        Returns:
            Serialized AvailabilityResult for the tool output
        """
        session.transition_to(ConversationPhase.AVAILABILITY_CHECK)
        session.draft.apply_availability_args(args)
        logger.info(
            f"Checking availability: {args.get('reserva_fecha')} at {args.get('hora')} "
            f"for {args.get('reserva_invitados')}"
        )

        await self._ensure_webhook_ready(session)
        try:
            raw = await self._webhook.post_availability_check(args)
            result = parse_availability(raw)
        except (TransportError, UpstreamError) as e:
            logger.error(f"Availability check failed: {e}")
            result = AvailabilityResult(
                available=False,
                error_message=f"Error al verificar disponibilidad: {e}",
            )

        session.draft.apply_identifiers(
            result.resource_id, result.schedule_slot_id, result.table_id
        )
        session.availability_checked = True
        session.availability_checks += 1

        if result.error_message:
            logger.warning(f"Availability result error: {result.error_message}")
        logger.info(
            f"Availability: available={result.available} mesa={result.resource_id!r} "
            f"dispo={result.schedule_slot_id!r}"
        )
        return result.to_tool_output()

    def should_finalize(self, session: ConversationSession, reply: str) -> bool:
        """Decide whether the reservation looks closed.

        Requires a collected phone, plus either a confirmation phrase in the
        reply or a draft with date, time, party size and a name or phone.
        """
        if not session.phone_collected:
            return False
        if is_confirmation_signal(reply):
            return True
        draft = session.draft
        return draft.has_slot_details and bool(draft.customer_name or draft.customer_phone)

    async def finalize(self, session: ConversationSession, result: TurnResult) -> None:
        """Extract the final data and submit it, or re-ask on failure."""
        session.transition_to(ConversationPhase.FINALIZING)
        logger.info(f"Finalizing reservation for {session.conversation_id}")

        try:
            data = await self._extractor.extract(
                session.conversation_id, self._tool_handlers(session)
            )
        except ExtractionExhausted as e:
            logger.warning(f"{e}; asking the user to restate the details")
            session.transition_to(ConversationPhase.RETRYING)
            await self._assistant.post_message(
                session.conversation_id,
                Role.USER,
                self._extraction_prompts.build_reask_prompt(session.draft.missing_fields),
            )
            session.transition_to(ConversationPhase.COLLECTING)
            result.error = RESPONSES["extraction_failed"]
            result.notices.append(REASK_REPLY)
            return

        reservation = self.merge_extracted(session.draft, data)
        if not reservation.is_complete:
            missing = ", ".join(reservation.missing_fields)
            logger.warning(f"Submitting incomplete reservation, missing: {missing}")
        await self.submit(session, reservation)
        result.completed = True
        result.notices.append(RESPONSES["submitted"])

    @staticmethod
    def merge_extracted(draft: ReservationDraft, data: dict[str, Any]) -> ReservationDraft:
        """Combine extraction output with the live draft.

        Extracted values win for the conversational fields (blank ones fall
        back to the draft). Table identifiers always come from the draft,
        since only the availability check can produce them.
        """
        extracted = ReservationDraft.from_structured_data(data)
        return extracted.fill_missing_from(draft).with_identifiers_from(draft)

    def build_submission(
        self,
        session: ConversationSession,
        reservation: ReservationDraft,
    ) -> dict[str, Any]:
        """Build the analysis message the webhook stores as a reservation."""
        started_at = session.started_at_utc.astimezone(UTC)
        return {
            "message": {
                "analysis": {
                    "summary": reservation.summary(),
                    "structuredData": reservation.to_structured_data(),
                    "durationSeconds": session.duration_seconds,
                    "startedAt": started_at.isoformat(timespec="milliseconds").replace(
                        "+00:00", "Z"
                    ),
                    "cost": self._settings.reservation_cost,
                    "type": "text",
                }
            }
        }

    async def submit(self, session: ConversationSession, reservation: ReservationDraft) -> None:
        """Send the reservation to the webhook and close the session."""
        await self._ensure_webhook_ready(session)
        payload = self.build_submission(session, reservation)
        logger.info(f"Submitting reservation: {sanitize_for_log(payload)}")

        await self._webhook.post_reservation(payload)

        session.draft = reservation
        session.completed = True
        session.transition_to(ConversationPhase.SUBMITTED)
        logger.info(
            f"Reservation submitted for {session.conversation_id} "
            f"after {session.duration_seconds}s and {session.turns} turns"
        )

    async def _ensure_webhook_ready(self, session: ConversationSession) -> None:
        """Await the readiness callback once per session, if configured."""
        if self._before_webhook is None or session.confirmation_prompt_shown:
            return
        await self._before_webhook()
        session.confirmation_prompt_shown = True
