"""Restaurant-facing texts: greeting and the date context message."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

SPANISH_DAYS = ("lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo")
SPANISH_MONTHS = (
    "enero",
    "febrero",
    "marzo",
    "abril",
    "mayo",
    "junio",
    "julio",
    "agosto",
    "septiembre",
    "octubre",
    "noviembre",
    "diciembre",
)

GREETING_TEMPLATE = "Hola! Soy {agent}, el agente virtual del {restaurant}. En qué puedo ayudarte?"
FAREWELL_TEMPLATE = "¡Hasta luego! Gracias por contactar al {restaurant}."
NO_REPLY = "Lo siento, no pude generar una respuesta."


class RestaurantPromptBuilder:
    """Build the greeting and context messages for one restaurant."""

    def __init__(
        self,
        restaurant_name: str = "Restaurante Park",
        agent_name: str = "Andy",
        timezone: str = "Europe/Madrid",
    ) -> None:
        self._restaurant = restaurant_name
        self._agent = agent_name
        self._tz = ZoneInfo(timezone)
        self._timezone_name = timezone

    @property
    def agent_name(self) -> str:
        return self._agent

    def greeting(self) -> str:
        return GREETING_TEMPLATE.format(agent=self._agent, restaurant=self._restaurant)

    def farewell(self) -> str:
        return FAREWELL_TEMPLATE.format(restaurant=self._restaurant)

    def format_spanish_datetime(self, moment: datetime) -> str:
        """Format as 'martes, 14 de mayo de 2025, 13:05:09 (Europe/Madrid)'."""
        local = moment.astimezone(self._tz)
        day = SPANISH_DAYS[local.weekday()]
        month = SPANISH_MONTHS[local.month - 1]
        return (
            f"{day}, {local.day} de {month} de {local.year}, "
            f"{local:%H:%M:%S} ({self._timezone_name})"
        )

    def build_date_context(self, now: datetime) -> str:
        """Current date/time message so the assistant can reject past dates.

        Args:
            now: Timezone-aware current time
        """
        local = now.astimezone(self._tz)
        return (
            f"La fecha actual en horario España ({self._timezone_name}) es: "
            f"{self.format_spanish_datetime(now)}.\n"
            f"Para tus cálculos internos: date={local.date().isoformat()}, "
            f"time={local:%H:%M:%S}.\n"
            "Por favor, usa esta información para verificar la disponibilidad "
            "y confirmar que las reservas no estén en el pasado."
        )
