"""Tests for Spanish text heuristics."""

import pytest

from reservas.core.heuristics import (
    extract_name,
    extract_phone,
    find_json_object,
    is_confirmation_signal,
    is_exit_command,
    mentions_phone,
)


class TestPhone:
    """Tests for phone detection and extraction."""

    def test_extract_phone_from_sentence(self) -> None:
        assert extract_phone("mi telefono es 612345678 gracias") == "612345678"

    def test_short_digit_runs_are_not_phones(self) -> None:
        assert extract_phone("tengo 2 personas") == ""

    def test_longest_run_wins(self) -> None:
        assert extract_phone("somos 4, el 699112233 o el 1234567") == "699112233"

    def test_first_run_wins_ties(self) -> None:
        assert extract_phone("612345678 o 698765432") == "612345678"

    def test_separated_digits_are_not_joined(self) -> None:
        assert extract_phone("612 34 56 78") == ""

    @pytest.mark.parametrize(
        "text",
        [
            "mi teléfono es el seis uno dos",
            "te doy el TELEFONO ahora",
            "apunta 699112233",
        ],
    )
    def test_mentions_phone(self, text: str) -> None:
        assert mentions_phone(text) is True

    @pytest.mark.parametrize("text", ["somos 4 personas", "a las 21:00", "el 15 de mayo"])
    def test_does_not_mention_phone(self, text: str) -> None:
        assert mentions_phone(text) is False


class TestName:
    """Tests for name extraction."""

    def test_me_llamo(self) -> None:
        assert extract_name("Hola, me llamo Laura Gómez") == "Laura Gómez"

    def test_mi_nombre_es(self) -> None:
        assert extract_name("Mi nombre es Carlos.") == "Carlos"

    def test_stops_at_phone_mention(self) -> None:
        text = "me llamo Laura Gómez y mi teléfono es 612345678"
        assert extract_name(text) == "Laura Gómez"

    def test_stops_at_punctuation(self) -> None:
        assert extract_name("me llamo Ana, somos cuatro") == "Ana"

    def test_no_name(self) -> None:
        assert extract_name("quiero reservar para mañana") == ""


class TestConfirmation:
    """Tests for the confirmation signal."""

    @pytest.mark.parametrize(
        "reply",
        [
            "Perfecto, reserva confirmada para el viernes.",
            "¡Listo! Quedamos así entonces.",
            "Ahora mismo realizo la reserva.",
            "Su mesa ha quedado RESERVADO.",
            "Tu reserva está confirmada",
        ],
    )
    def test_confirmation_phrases(self, reply: str) -> None:
        assert is_confirmation_signal(reply) is True

    def test_plain_reply_is_not_confirmation(self) -> None:
        assert is_confirmation_signal("¿Para cuántas personas sería?") is False


class TestExitCommand:
    """Tests for the exit command."""

    @pytest.mark.parametrize("text", ["salir", "EXIT", "  Salir  "])
    def test_exit(self, text: str) -> None:
        assert is_exit_command(text) is True

    @pytest.mark.parametrize("text", ["quiero salir a cenar", "exit now", ""])
    def test_not_exit(self, text: str) -> None:
        assert is_exit_command(text) is False


class TestFindJsonObject:
    """Tests for JSON recovery from assistant replies."""

    def test_bare_object(self) -> None:
        assert find_json_object('{"reserva_nombre": "Ana"}') == {"reserva_nombre": "Ana"}

    def test_object_in_prose_and_fences(self) -> None:
        reply = 'Aquí tienes:\n```json\n{"reserva_fecha": "2025-05-14",\n "reserva_hora": "21:00"}\n```'
        assert find_json_object(reply) == {"reserva_fecha": "2025-05-14", "reserva_hora": "21:00"}

    def test_nested_object(self) -> None:
        assert find_json_object('x {"a": {"b": 1}} y') == {"a": {"b": 1}}

    def test_no_braces(self) -> None:
        assert find_json_object("Lo siento, no tengo los datos") is None

    def test_invalid_json(self) -> None:
        assert find_json_object("{reserva_fecha: mañana}") is None

    def test_two_objects_are_not_decoded(self) -> None:
        """The greedy match spans both objects, which is not valid JSON."""
        assert find_json_object('{"a": 1} y {"b": 2}') is None
