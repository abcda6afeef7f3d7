"""Conversation phases and the reservation draft.

The draft is filled from three sources over a conversation:
- availability tool calls (date, time, party size, table identifiers)
- local heuristics on user input (name, phone)
- the structured-data extraction run at the end
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum, auto
from typing import Any


class ConversationPhase(Enum):
    """Conversation phases for the reservation flow."""

    GREETING = auto()  # Session created, greeting shown
    COLLECTING = auto()  # Talking with the assistant
    AVAILABILITY_CHECK = auto()  # Availability tool call in flight
    PHONE_COLLECTION = auto()  # Slot found, waiting for a phone number
    FINALIZING = auto()  # Extracting structured data before submission
    RETRYING = auto()  # Extraction failed, re-asking for the details
    SUBMITTED = auto()  # Reservation sent to the webhook
    USER_EXIT = auto()  # User typed the exit command


TIME_RE = re.compile(r"(\d{1,2})(?:[:.h](\d{2}))?")
INT_RE = re.compile(r"\d+")


def parse_date(value: Any) -> date | None:
    """Parse YYYY-MM-DD or DD-MM-YYYY (also with slashes)."""
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None

    text = value.strip().replace("/", "-")
    for fmt in ("%Y-%m-%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            pass
    return None


def parse_time(value: Any) -> str | None:
    """Normalize "20:30", "20.30", "20h", "8:05h" into HH:MM (24h)."""
    if not value or not isinstance(value, str):
        return None

    match = TIME_RE.search(value.strip())
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def parse_party_size(value: Any) -> int | None:
    """Parse 4, "4" or "4 personas" into a positive int."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if not value or not isinstance(value, str):
        return None

    match = INT_RE.search(value)
    if not match:
        return None
    size = int(match.group(0))
    return size if size > 0 else None


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass
class ReservationDraft:
    """Reservation details accumulated across a conversation.

    Identifier fields come from the availability check and are opaque:
    they are carried to submission unmodified.
    """

    reservation_date: date | None = None
    reservation_time: str | None = None  # HH:MM format (24h)
    party_size: int | None = None
    customer_name: str = ""
    customer_phone: str = ""
    special_requests: str = ""
    resource_id: str = ""  # idmesa_mesas
    schedule_slot_id: str = ""  # idmesa_disp
    table_id: str = ""  # idmesa

    @property
    def missing_fields(self) -> list[str]:
        """Required fields that are still empty."""
        missing = []
        if self.reservation_date is None:
            missing.append("date")
        if self.reservation_time is None:
            missing.append("time")
        if self.party_size is None:
            missing.append("party_size")
        if not self.customer_name:
            missing.append("name")
        if not self.customer_phone:
            missing.append("phone")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    @property
    def has_slot_details(self) -> bool:
        """Date, time and party size are all known."""
        return (
            self.reservation_date is not None
            and self.reservation_time is not None
            and self.party_size is not None
        )

    def apply_availability_args(self, args: dict[str, Any]) -> None:
        """Record the slot the assistant asked about.

        Values that do not parse leave the current field untouched.
        """
        self.reservation_date = parse_date(args.get("reserva_fecha")) or self.reservation_date
        self.reservation_time = parse_time(args.get("hora")) or self.reservation_time
        self.party_size = parse_party_size(args.get("reserva_invitados")) or self.party_size

    def apply_identifiers(self, resource_id: str, schedule_slot_id: str, table_id: str) -> None:
        """Store identifiers from an availability check (empty values are ignored)."""
        self.resource_id = resource_id or self.resource_id
        self.schedule_slot_id = schedule_slot_id or self.schedule_slot_id
        self.table_id = table_id or self.table_id

    def fill_missing_from(self, other: ReservationDraft) -> ReservationDraft:
        """Return a copy with blank fields taken from ``other``."""
        return replace(
            self,
            reservation_date=self.reservation_date or other.reservation_date,
            reservation_time=self.reservation_time or other.reservation_time,
            party_size=self.party_size or other.party_size,
            customer_name=self.customer_name or other.customer_name,
            customer_phone=self.customer_phone or other.customer_phone,
            special_requests=self.special_requests or other.special_requests,
        )

    def with_identifiers_from(self, other: ReservationDraft) -> ReservationDraft:
        """Return a copy carrying ``other``'s identifiers, even empty ones."""
        return replace(
            self,
            resource_id=other.resource_id,
            schedule_slot_id=other.schedule_slot_id,
            table_id=other.table_id,
        )

    @classmethod
    def from_structured_data(cls, data: dict[str, Any]) -> ReservationDraft:
        """Build a draft from the extraction JSON (``reserva_*`` keys)."""
        return cls(
            reservation_date=parse_date(data.get("reserva_fecha")),
            reservation_time=parse_time(data.get("reserva_hora")),
            party_size=parse_party_size(data.get("reserva_invitados")),
            customer_name=_clean_text(data.get("reserva_nombre")),
            customer_phone=re.sub(r"\D", "", _clean_text(data.get("reserva_telefono"))),
            special_requests=_clean_text(data.get("solicitudes_especiales")),
            resource_id=_clean_text(data.get("reserva_idMesa")),
            schedule_slot_id=_clean_text(data.get("reserva_idDispo")),
            table_id=_clean_text(data.get("reserva_idmesa")),
        )

    def to_structured_data(self) -> dict[str, Any]:
        """Render the webhook's structuredData body."""
        return {
            "Reserva": True,
            "reserva_nombre": self.customer_name,
            "reserva_fecha": self.reservation_date.isoformat() if self.reservation_date else "",
            "reserva_hora": self.reservation_time or "",
            "reserva_invitados": self.party_size if self.party_size is not None else "",
            "reserva_telefono": self.customer_phone,
            "reserva_idMesa": self.resource_id,
            "reserva_idDispo": self.schedule_slot_id,
            "reserva_idmesa": self.table_id,
            "solicitudes_especiales": self.special_requests,
        }

    def summary(self) -> str:
        """One-line Spanish summary sent along with the reservation."""
        text = (
            f"Reserva para {self.customer_name or 'cliente'} "
            f"el {self.reservation_date.isoformat() if self.reservation_date else '?'} "
            f"a las {self.reservation_time or '?'} "
            f"para {self.party_size if self.party_size is not None else '?'} personas."
        )
        if self.special_requests:
            text += f" Solicitudes especiales: {self.special_requests}"
        return text
