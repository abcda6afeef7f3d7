"""Conversation session state."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import UTC, datetime

from reservas.core.conversation_state import ConversationPhase, ReservationDraft


@dataclass
class ConversationSession:
    """All state for one chat with the assistant.

    Created when the chat starts and discarded when the loop exits
    (exit command, submitted reservation, or fatal error). Nothing is
    persisted.
    """

    conversation_id: str
    draft: ReservationDraft = field(default_factory=ReservationDraft)
    phase: ConversationPhase = ConversationPhase.GREETING

    availability_checked: bool = False
    phone_collected: bool = False
    confirmation_prompt_shown: bool = False
    completed: bool = False

    started_at: float = field(default_factory=time.monotonic)
    started_at_utc: datetime = field(default_factory=lambda: datetime.now(UTC))

    # Metrics
    turns: int = field(default=0, init=False)
    availability_checks: int = field(default=0, init=False)

    @property
    def duration_seconds(self) -> int:
        """Whole seconds since the session started."""
        return int(time.monotonic() - self.started_at)

    @property
    def is_over(self) -> bool:
        return self.completed or self.phase in (
            ConversationPhase.SUBMITTED,
            ConversationPhase.USER_EXIT,
        )

    def transition_to(self, new_phase: ConversationPhase) -> None:
        self.phase = new_phase
