"""Prompts for JSON extraction from the reservation conversation.

The extraction prompt is posted on the same thread as the conversation,
so the assistant summarizes everything said so far into fixed keys.
"""

from __future__ import annotations

# Keys the extraction prompt asks the assistant for
STRUCTURED_FIELDS = (
    "reserva_fecha",
    "reserva_hora",
    "reserva_invitados",
    "reserva_nombre",
    "reserva_telefono",
    "solicitudes_especiales",
)

EXTRACTION_PROMPT = """Analiza toda esta conversación y genera un JSON con la siguiente estructura exacta:
{
  "reserva_fecha": "YYYY-MM-DD",
  "reserva_hora": "HH:MM",
  "reserva_invitados": "número de personas",
  "reserva_nombre": "nombre del cliente",
  "reserva_telefono": "número de teléfono",
  "solicitudes_especiales": "cualquier preferencia mencionada"
}

Rellena cada campo con la información de la conversación. Los campos obligatorios son fecha, hora, invitados, nombre y teléfono. Si falta alguno, usa cadena vacía.
IMPORTANTE: NO INCLUYAS NINGÚN TEXTO EXPLICATIVO, SOLO EL JSON."""

# Posted on the thread after extraction gave up, so the next run re-asks
REASK_PROMPT = """[Sistema] No se pudieron confirmar todos los datos de la reserva.
Pide amablemente al cliente que repita los siguientes datos: fecha, hora, número de personas, nombre, teléfono y cualquier solicitud especial."""

# Shown to the user locally while the thread catches up
REASK_REPLY = (
    "Disculpa, no he podido registrar todos los datos de la reserva. "
    "¿Podrías repetirme la fecha, la hora, el número de personas, tu nombre, "
    "tu teléfono y si tienes alguna solicitud especial?"
)


class ExtractionPromptBuilder:
    """Build messages for the structured-data extraction run."""

    def __init__(self, fields: tuple[str, ...] = STRUCTURED_FIELDS) -> None:
        self._fields = fields

    @property
    def fields(self) -> tuple[str, ...]:
        return self._fields

    def build_extraction_prompt(self) -> str:
        return EXTRACTION_PROMPT

    def build_reask_prompt(self, missing: list[str] | None = None) -> str:
        """Re-ask message, naming the fields the draft still lacks when known."""
        if not missing:
            return REASK_PROMPT
        return f"{REASK_PROMPT}\nFaltan especialmente: {', '.join(missing)}."
