"""Decode the webhook's availability answer.

The n8n workflow answers in one of a few loose shapes:

- a plain string ("No hay disponibilidad para ese día")
- a delimited status string
  ("disponible:Disponible,idmesa_mesas:12,idmesa_disp:340,idmesa:7")
- a JSON envelope {"results": [{"result": <string or object>}]}

``parse_availability`` never raises; unknown shapes come back as
unavailable with a diagnostic and the raw body kept for debugging.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

STATUS_PREFIX = "disponible:"
NO_AVAILABILITY_PHRASE = "no hay disponibilidad"
AVAILABLE_VALUES = frozenset({"disponible", "true"})
UNRECOGNIZED_FORMAT = "Formato de respuesta no reconocido"


@dataclass(frozen=True, slots=True)
class AvailabilityResult:
    """Outcome of one availability check."""

    available: bool
    resource_id: str = ""  # idmesa_mesas
    schedule_slot_id: str = ""  # idmesa_disp
    table_id: str = ""  # idmesa
    raw_result: str = ""
    error_message: str | None = None

    def to_tool_output(self) -> str:
        """Serialize for the assistant, using the keys its function schema expects."""
        data: dict[str, Any] = {
            "available": self.available,
            "mesa_id": self.resource_id,
            "dispo_id": self.schedule_slot_id,
            "idmesa": self.table_id,
            "result": self.raw_result,
        }
        if self.error_message:
            data["error"] = self.error_message
        return json.dumps(data, ensure_ascii=False)


def _segment_value(segment: str) -> str:
    _, _, value = segment.partition(":")
    return value.strip()


def is_status_string(text: str) -> bool:
    return text.strip().lower().startswith(STATUS_PREFIX)


def parse_status_string(text: str) -> AvailabilityResult:
    """Parse ``disponible:<flag>[,idmesa_mesas:<id>][,idmesa_disp:<id>][,idmesa:<id>]``.

    Identifier segments are matched by key, not position. The specific keys
    are checked before the bare ``idmesa`` key, which is a prefix of both.
    """
    segments = text.strip().split(",")
    flag = _segment_value(segments[0]).lower()

    resource_id = schedule_slot_id = table_id = ""
    for segment in segments[1:]:
        key = segment.partition(":")[0].strip().lower()
        if "idmesa_mesas" in key:
            resource_id = _segment_value(segment)
        elif "idmesa_disp" in key:
            schedule_slot_id = _segment_value(segment)
        elif key == "idmesa":
            table_id = _segment_value(segment)

    return AvailabilityResult(
        available=flag in AVAILABLE_VALUES,
        resource_id=resource_id,
        schedule_slot_id=schedule_slot_id,
        table_id=table_id,
        raw_result=text,
    )


def _parse_plain_string(text: str) -> AvailabilityResult:
    return AvailabilityResult(
        available=NO_AVAILABILITY_PHRASE not in text.lower(),
        raw_result=text,
    )


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in AVAILABLE_VALUES
    return False


def _first_str(data: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return str(value)
    return ""


def _parse_result_object(result: dict[str, Any]) -> AvailabilityResult:
    available_value = result.get("available", result.get("disponible", False))
    return AvailabilityResult(
        available=_as_bool(available_value),
        resource_id=_first_str(result, "mesa_id", "idmesa_mesas"),
        schedule_slot_id=_first_str(result, "dispo_id", "idmesa_disp"),
        table_id=_first_str(result, "idmesa"),
        raw_result=json.dumps(result, ensure_ascii=False, default=str),
    )


def _unwrap_envelope(raw: Any) -> Any:
    """Return the first ``results[].result`` of an envelope, or None."""
    if not isinstance(raw, dict):
        return None
    results = raw.get("results")
    if not isinstance(results, list) or not results:
        return None
    first = results[0]
    if not isinstance(first, dict):
        return None
    return first.get("result")


def _unrecognized(raw: Any) -> AvailabilityResult:
    try:
        raw_text = json.dumps(raw, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        raw_text = repr(raw)
    return AvailabilityResult(
        available=False,
        raw_result=raw_text,
        error_message=UNRECOGNIZED_FORMAT,
    )


def parse_availability(raw: Any) -> AvailabilityResult:
    """Decode a raw webhook response into an AvailabilityResult.

    Args:
        raw: Decoded JSON body or raw text from the webhook

    Returns:
        AvailabilityResult (never raises)
    """
    if isinstance(raw, str):
        if is_status_string(raw):
            return parse_status_string(raw)
        return _parse_plain_string(raw)

    result = _unwrap_envelope(raw)

    if isinstance(result, str) and result:
        if is_status_string(result):
            return parse_status_string(result)
        return AvailabilityResult(
            available="disponible:true" in result.lower(),
            raw_result=result,
        )

    if isinstance(result, dict):
        return _parse_result_object(result)

    return _unrecognized(raw)
