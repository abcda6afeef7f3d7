"""Core reservation conversation components.

This module provides the per-conversation state and local parsing:
- ConversationSession: Per-conversation state and flags
- ReservationDraft: Reservation details gathered so far
- parse_availability: Decoder for the webhook's availability answers

The orchestration lives in reservas.core.reservation_flow, which depends
on the service clients and is imported directly.
"""

from reservas.core.availability import AvailabilityResult, parse_availability
from reservas.core.conversation_state import ConversationPhase, ReservationDraft
from reservas.core.session import ConversationSession

__all__ = [
    # State
    "ConversationSession",
    "ConversationPhase",
    "ReservationDraft",
    # Availability
    "AvailabilityResult",
    "parse_availability",
]
