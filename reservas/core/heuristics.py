"""Text heuristics over Spanish chat messages.

Plain functions on strings so they can be tuned or replaced without
touching the conversation loop.
"""

from __future__ import annotations

import json
import re
from typing import Any

EXIT_COMMANDS = frozenset({"salir", "exit"})

# Assistant phrases that mean the reservation was verbally closed
CONFIRMATION_PHRASES = (
    "realizo la reserva",
    "quedamos así",
    "reserva confirmada",
    "reservado",
    "confirmada",
)

PHONE_KEYWORDS = ("teléfono", "telefono")
MIN_PHONE_DIGITS = 6

DIGIT_RUN_RE = re.compile(r"\d+")
PHONE_HINT_RE = re.compile(rf"\d{{{MIN_PHONE_DIGITS},}}")
NAME_INTRO_RE = re.compile(r"(?:mi nombre es|me llamo)\s+(.+)", re.IGNORECASE)
# Stop the captured name at a conjunction or a phone mention
NAME_TAIL_RE = re.compile(r"\s+(?:y|con|el tel[ée]fono|mi tel[ée]fono)\b.*$", re.IGNORECASE)
JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def is_exit_command(text: str) -> bool:
    return text.strip().lower() in EXIT_COMMANDS


def is_confirmation_signal(text: str) -> bool:
    """Check if an assistant reply reads as a closed reservation."""
    lowered = text.lower()
    return any(phrase in lowered for phrase in CONFIRMATION_PHRASES)


def mentions_phone(text: str) -> bool:
    """Check if user input looks like it carries a phone number."""
    lowered = text.lower()
    if any(keyword in lowered for keyword in PHONE_KEYWORDS):
        return True
    return PHONE_HINT_RE.search(text) is not None


def extract_phone(text: str) -> str:
    """Return the longest run of digits (6+), or "" if there is none.

    Ties go to the first run.
    """
    longest = ""
    for run in DIGIT_RUN_RE.findall(text):
        if len(run) > len(longest):
            longest = run
    if len(longest) < MIN_PHONE_DIGITS:
        return ""
    return longest


def extract_name(text: str) -> str:
    """Pull a name from "mi nombre es X" / "me llamo X", else "".

    >>> extract_name("Hola, me llamo Laura Gómez y mi teléfono es 612345678")
    'Laura Gómez'
    """
    match = NAME_INTRO_RE.search(text)
    if not match:
        return ""
    name = re.split(r"[,.;!?]", match.group(1), maxsplit=1)[0]
    name = NAME_TAIL_RE.sub("", name)
    return name.strip()


def find_json_object(text: str) -> dict[str, Any] | None:
    """Decode the outermost {...} region of a reply, or None.

    The match is greedy (first "{" to last "}"), so prose around a single
    JSON object is tolerated but two separate objects are not.
    """
    match = JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data
